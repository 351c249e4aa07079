from typing import Optional

from moomines.core.rng import TrueRNG, rng as default_rng


class HazardGenerator:
    """
    Picks the hazard tile for a fresh round.
    Uniform over the board, independent across calls, no state of its own.
    """

    def __init__(self, total_tiles: int, source: Optional[TrueRNG] = None):
        if total_tiles < 1:
            raise ValueError("total_tiles must be at least 1")
        self.total_tiles = total_tiles
        self.source = source or default_rng

    def next_hazard(self) -> int:
        return self.source.next_int(self.total_tiles)

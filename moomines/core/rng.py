import random
import secrets
from typing import Optional


class TrueRNG:
    """
    A wrapper around Python's `secrets` module to provide cryptographically strong
    random numbers for hazard placement.
    """

    def next_int(self, bound: int) -> int:
        """Returns a uniform integer in [0, bound)."""
        if bound < 1:
            raise ValueError("bound must be at least 1")
        return secrets.randbelow(bound)


class SeededRNG(TrueRNG):
    """
    Deterministic source backed by `random.Random`.
    Same seed, same hazard sequence; used by tests and replays.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._random = random.Random(seed)

    def next_int(self, bound: int) -> int:
        if bound < 1:
            raise ValueError("bound must be at least 1")
        return self._random.randrange(bound)


rng = TrueRNG()

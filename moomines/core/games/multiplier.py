"""
Payout curve - maps safe tiles revealed to a payout multiplier.
Flat 1.00x before the first pick, a jump to the first step, then an
ease-in climb to the cap on the last safe tile.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from moomines.config import BoardConfig
from moomines.core.amounts import CENT


class MultiplierCurve:
    """Deterministic, monotone multiplier table for one board shape."""

    def __init__(self, config: Optional[BoardConfig] = None):
        self.config = config or BoardConfig()
        self.safe_tiles = self.config.safe_tiles
        self.min_multiplier = Decimal(repr(self.config.min_multiplier)).quantize(CENT)
        self.max_multiplier = Decimal(repr(self.config.max_multiplier)).quantize(CENT)

    def multiplier(self, safe_revealed: int) -> Decimal:
        """
        Multiplier after `safe_revealed` safe tiles.

        Args:
            safe_revealed: Safe tiles opened this round (0..safe_tiles)

        Returns:
            Multiplier rounded half-up to 2 places, within [min, max]
        """
        if safe_revealed < 0 or safe_revealed > self.safe_tiles:
            raise ValueError(
                f"safe_revealed must be between 0 and {self.safe_tiles}, got {safe_revealed}"
            )
        if safe_revealed == 0:
            return self.min_multiplier

        cfg = self.config
        t = min(max(safe_revealed / self.safe_tiles, 0.0), 1.0)
        m = cfg.first_step_multiplier + (cfg.max_multiplier - cfg.first_step_multiplier) * t ** cfg.gamma

        value = Decimal(repr(m)).quantize(CENT, rounding=ROUND_HALF_UP)
        return max(self.min_multiplier, min(value, self.max_multiplier))

    __call__ = multiplier

    def table(self) -> List[Decimal]:
        """Multiplier for every reachable progress value, index = safe tiles."""
        return [self.multiplier(n) for n in range(self.safe_tiles + 1)]


_default_curve = MultiplierCurve()


def curved_multiplier(safe_revealed: int) -> Decimal:
    """Multiplier on the default 5x5 board."""
    return _default_curve.multiplier(safe_revealed)

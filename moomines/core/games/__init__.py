"""Moo Mines game logic: payout curve, hazard placement and the round engine."""

from .multiplier import MultiplierCurve, curved_multiplier
from .hazard import HazardGenerator
from .mines import MinesGame, RoundState, StartResult, RevealResult, CashOutResult

__all__ = [
    "MultiplierCurve",
    "curved_multiplier",
    "HazardGenerator",
    "MinesGame",
    "RoundState",
    "StartResult",
    "RevealResult",
    "CashOutResult",
]

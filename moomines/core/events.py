"""
Event sink between the round engine and whatever renders it.
The engine publishes a signal per reveal and a state snapshot after every
mutating call; listeners are plain callables.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Callable, List, Optional

from moomines.core.logger import get_logger

logger = get_logger("events")


class RoundSignal(str, Enum):
    SAFE_REVEALED = "safe"
    HAZARD_REVEALED = "hazard"


@dataclass(frozen=True)
class RoundSnapshot:
    """Everything a renderer needs after a mutating call."""

    state: str
    multiplier: Decimal
    next_multiplier: Decimal
    balance: Decimal
    safe_revealed: int
    wager: Decimal
    potential_payout: Decimal
    revealed: List[int] = field(default_factory=list)
    hazard_position: Optional[int] = None
    claim_available: bool = False
    claim_offered: bool = False
    time_until_claim_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "state": self.state,
            "multiplier": float(self.multiplier),
            "next_multiplier": float(self.next_multiplier),
            "balance": float(self.balance),
            "safe_revealed": self.safe_revealed,
            "wager": float(self.wager),
            "potential_payout": float(self.potential_payout),
            "revealed": list(self.revealed),
            "hazard_position": self.hazard_position,
            "claim_available": self.claim_available,
            "claim_offered": self.claim_offered,
            "time_until_claim_ms": self.time_until_claim_ms,
        }


@dataclass(frozen=True)
class RoundEvent:
    kind: str  # "signal" or "state"
    snapshot: RoundSnapshot
    signal: Optional[RoundSignal] = None

    def to_dict(self) -> dict:
        data = {"type": self.kind, "snapshot": self.snapshot.to_dict()}
        if self.signal is not None:
            data["signal"] = self.signal.value
        return data


Listener = Callable[[RoundEvent], None]


class EventBus:
    """Synchronous fan-out to registered listeners."""

    def __init__(self):
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener):
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def publish(self, event: RoundEvent):
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                # Listener failures never reach the engine
                logger.error(f"Listener {listener!r} failed on {event.kind}: {e}", exc_info=True)

    def __len__(self):
        return len(self._listeners)

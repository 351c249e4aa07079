"""
Moo Mines round engine - one hidden hazard on a square board.
Each safe reveal climbs the multiplier curve; cash out anytime or lose
the wager when the hazard turns up.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Callable, Dict, FrozenSet, Optional, Set

from moomines.config import BoardConfig, EconomyConfig
from moomines.core.amounts import ZERO, multiply, parse_amount, to_points
from moomines.core.economy import Economy, now_ms
from moomines.core.events import EventBus, Listener, RoundEvent, RoundSignal, RoundSnapshot
from moomines.core.exceptions import NoFunds
from moomines.core.games.hazard import HazardGenerator
from moomines.core.games.multiplier import MultiplierCurve
from moomines.core.logger import get_logger
from moomines.core.rng import TrueRNG

logger = get_logger("engine")

MIN_WAGER = Decimal("1.00")


class RoundState(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"
    CASHED_OUT = "cashed_out"
    BUSTED = "busted"


# Action -> states it may be invoked from
TRANSITIONS: Dict[str, FrozenSet[RoundState]] = {
    "start": frozenset({RoundState.IDLE, RoundState.CASHED_OUT, RoundState.BUSTED}),
    "reveal": frozenset({RoundState.PLAYING}),
    "cashout": frozenset({RoundState.PLAYING}),
    "reset": frozenset(RoundState),
}

# States where the hazard location may be shown
DISCLOSED_STATES = frozenset({RoundState.CASHED_OUT, RoundState.BUSTED})


@dataclass(frozen=True)
class StartResult:
    applied: bool
    wager: Decimal
    balance: Decimal


@dataclass(frozen=True)
class RevealResult:
    applied: bool
    index: int
    signal: Optional[RoundSignal]
    safe_revealed: int
    multiplier: Decimal
    state: RoundState


@dataclass(frozen=True)
class CashOutResult:
    applied: bool
    payout: Decimal
    multiplier: Decimal
    balance: Decimal


class MinesGame:
    """
    Round state machine: idle -> playing -> cashed_out | busted -> (start) playing.
    Owns the board for the current round; mutates the wallet on wager and payout.
    """

    def __init__(
        self,
        economy: Economy,
        board: Optional[BoardConfig] = None,
        source: Optional[TrueRNG] = None,
        economy_config: Optional[EconomyConfig] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.economy = economy
        self.board = board or BoardConfig()
        self.curve = MultiplierCurve(self.board)
        self.hazards = HazardGenerator(self.board.total_tiles, source)
        self.clock = clock
        self.events = EventBus()

        economy_config = economy_config or economy.config
        self.default_wager = to_points(economy_config.default_wager)

        self.state = RoundState.IDLE
        self.wager = self.default_wager
        self.safe_revealed = 0
        self._revealed: Set[int] = set()
        self._hazard = self.hazards.next_hazard()

    @property
    def lock(self):
        return self.economy.lock

    # ==================== Read Accessors ====================

    @property
    def total_tiles(self) -> int:
        return self.board.total_tiles

    @property
    def balance(self) -> Decimal:
        return self.economy.balance

    @property
    def multiplier(self) -> Decimal:
        return self.curve.multiplier(self.safe_revealed)

    @property
    def next_multiplier(self) -> Decimal:
        return self.curve.multiplier(min(self.safe_revealed + 1, self.curve.safe_tiles))

    @property
    def potential_payout(self) -> Decimal:
        """What cashing out right now would pay; nothing outside a live round."""
        if self.state != RoundState.PLAYING:
            return ZERO
        return multiply(self.wager, self.multiplier)

    @property
    def revealed(self) -> FrozenSet[int]:
        return frozenset(self._revealed)

    @property
    def hazard_position(self) -> int:
        return self._hazard

    def time_until_claim(self, now: Optional[int] = None) -> int:
        return self.economy.time_until_claim(self.clock() if now is None else now)

    def snapshot(self, now: Optional[int] = None) -> RoundSnapshot:
        """Current round and wallet state for rendering."""
        if now is None:
            now = self.clock()
        with self.lock:
            balance = self.economy.balance
            return RoundSnapshot(
                state=self.state.value,
                multiplier=self.multiplier,
                next_multiplier=self.next_multiplier,
                balance=balance,
                safe_revealed=self.safe_revealed,
                wager=self.wager,
                potential_payout=self.potential_payout,
                revealed=sorted(self._revealed),
                hazard_position=self._hazard if self.state in DISCLOSED_STATES else None,
                claim_available=self.economy.can_claim(now),
                claim_offered=balance <= ZERO,
                time_until_claim_ms=self.economy.time_until_claim(now),
            )

    # ==================== Events ====================

    def subscribe(self, listener: Listener):
        self.events.subscribe(listener)

    def unsubscribe(self, listener: Listener):
        self.events.unsubscribe(listener)

    def _publish_state(self):
        self.events.publish(RoundEvent("state", self.snapshot()))

    def _publish_signal(self, signal: RoundSignal):
        self.events.publish(RoundEvent("signal", self.snapshot(), signal))

    # ==================== Transitions ====================

    def _allowed(self, action: str) -> bool:
        return self.state in TRANSITIONS[action]

    def _clear_board(self):
        self._revealed = set()
        self._hazard = self.hazards.next_hazard()
        self.safe_revealed = 0

    def start_round(self, requested_wager=None) -> StartResult:
        """
        Commit a wager and deal a fresh board.

        Args:
            requested_wager: Points to wager; defaults to the previous wager.
                Clamped to at least 1 and at most the current balance.

        Returns:
            StartResult with the committed wager and remaining balance

        Raises:
            NoFunds: If the balance is zero. State is left untouched.
        """
        with self.lock:
            if not self._allowed("start"):
                logger.debug(f"start_round ignored in state {self.state.value}")
                return StartResult(False, self.wager, self.economy.balance)

            balance = self.economy.balance
            if balance <= ZERO:
                raise NoFunds(balance, self.economy.time_until_claim(self.clock()))

            requested = self.wager if requested_wager is None else parse_amount(requested_wager)
            # Clamp before rounding so any oversized request resolves to the balance;
            # the balance cap wins when it is below the minimum wager
            wager = to_points(min(max(requested, MIN_WAGER), balance))

            new_balance = self.economy.deduct(wager)
            self._clear_board()
            self.wager = wager
            self.state = RoundState.PLAYING

            logger.info(f"Round started: wager={wager}, balance={new_balance}")
            self._publish_state()
            return StartResult(True, wager, new_balance)

    def reveal_tile(self, index: int) -> RevealResult:
        """
        Open one tile.

        Out-of-range indexes, repeated indexes and calls outside a round are
        ignored and come back with applied=False.
        """
        with self.lock:
            if (
                not self._allowed("reveal")
                or not 0 <= index < self.total_tiles
                or index in self._revealed
            ):
                logger.debug(f"reveal_tile({index}) ignored in state {self.state.value}")
                return RevealResult(
                    False, index, None, self.safe_revealed, self.multiplier, self.state
                )

            self._revealed.add(index)

            if index == self._hazard:
                self.state = RoundState.BUSTED
                signal = RoundSignal.HAZARD_REVEALED
                logger.info(
                    f"Busted on tile {index} after {self.safe_revealed} safe tiles, lost {self.wager}"
                )
            else:
                self.safe_revealed += 1
                signal = RoundSignal.SAFE_REVEALED

            multiplier = self.multiplier
            self._publish_signal(signal)
            self._publish_state()
            return RevealResult(True, index, signal, self.safe_revealed, multiplier, self.state)

    def cash_out(self) -> CashOutResult:
        """Bank wager x current multiplier and end the round."""
        with self.lock:
            if not self._allowed("cashout"):
                logger.debug(f"cash_out ignored in state {self.state.value}")
                return CashOutResult(False, ZERO, self.multiplier, self.economy.balance)

            multiplier = self.multiplier
            payout = multiply(self.wager, multiplier)
            new_balance = self.economy.credit(payout)
            self.state = RoundState.CASHED_OUT

            logger.info(
                f"Cashed out {payout} ({multiplier}x on {self.wager}), balance={new_balance}"
            )
            self._publish_state()
            return CashOutResult(True, payout, multiplier, new_balance)

    def reset_round(self) -> RoundSnapshot:
        """
        Back to idle with a fresh board. Always allowed; a wager committed to
        an unfinished round is not refunded.
        """
        with self.lock:
            if self.state == RoundState.PLAYING:
                logger.info(f"Round abandoned with {self.safe_revealed} safe tiles, wager {self.wager} forfeited")
            self._clear_board()
            self.state = RoundState.IDLE
            self._publish_state()
            return self.snapshot()

    def claim(self, now: Optional[int] = None):
        """Claim the stipend through the wallet and publish the new state."""
        with self.lock:
            result = self.economy.claim(self.clock() if now is None else now)
            if result.claimed:
                self._publish_state()
            return result

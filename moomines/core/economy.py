"""
Wallet for Moo Mines.
Features:
- Balance in fixed-point points, persisted after every change
- Stipend claim gated by a cooldown window
- Single re-entrant lock shared with the round engine
"""

import threading
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from moomines.config import EconomyConfig, PersistenceConfig
from moomines.core.amounts import ZERO, to_points
from moomines.core.exceptions import InsufficientFunds, InvalidAmount
from moomines.core.logger import get_logger
from moomines.core.storage import PersistenceStore

logger = get_logger("economy")


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def format_cooldown(ms: int) -> str:
    """Render a countdown as '5h 59m', or 'Ready!' once it has elapsed."""
    if ms <= 0:
        return "Ready!"
    hours = ms // (1000 * 60 * 60)
    minutes = (ms % (1000 * 60 * 60)) // (1000 * 60)
    return f"{hours}h {minutes}m"


@dataclass(frozen=True)
class ClaimResult:
    claimed: bool
    amount: Decimal
    balance: Decimal
    time_until_claim_ms: int


class Economy:
    """Owns the balance and the stipend cooldown."""

    def __init__(
        self,
        store: PersistenceStore,
        config: Optional[EconomyConfig] = None,
        persistence: Optional[PersistenceConfig] = None,
        balance=None,
        last_claim_ms: int = 0,
        lock: Optional[threading.RLock] = None,
    ):
        self.store = store
        self.config = config or EconomyConfig()
        self.persistence = persistence or PersistenceConfig()
        self.lock = lock or threading.RLock()

        if balance is None:
            balance = self.config.starting_balance
        self._balance = to_points(balance)
        self._last_claim_ms = int(last_claim_ms)

        self.claim_amount = to_points(self.config.claim_amount)
        self.claim_interval_ms = self.config.claim_interval_ms

    @classmethod
    def load(
        cls,
        store: PersistenceStore,
        config: Optional[EconomyConfig] = None,
        persistence: Optional[PersistenceConfig] = None,
    ) -> "Economy":
        """
        Build the wallet from the store.

        Missing keys mean a first run and take the defaults. Malformed or
        negative values are logged and also fall back to the defaults.
        """
        config = config or EconomyConfig()
        persistence = persistence or PersistenceConfig()

        balance = to_points(config.starting_balance)
        raw_balance = store.get(persistence.balance_key)
        if raw_balance is not None:
            try:
                parsed = to_points(raw_balance)
                if parsed < ZERO:
                    raise InvalidAmount(f"negative balance {raw_balance!r}")
                balance = parsed
            except InvalidAmount as e:
                logger.warning(f"Ignoring stored balance: {e}")

        last_claim = 0
        raw_claim = store.get(persistence.last_claim_key)
        if raw_claim is not None:
            try:
                last_claim = int(raw_claim)
            except ValueError:
                logger.warning(f"Ignoring stored last claim time {raw_claim!r}")

        logger.info(f"Wallet loaded: balance={balance}, last_claim={last_claim}")
        return cls(store, config, persistence, balance=balance, last_claim_ms=last_claim)

    # ==================== Accessors ====================

    @property
    def balance(self) -> Decimal:
        return self._balance

    @property
    def last_claim_ms(self) -> int:
        return self._last_claim_ms

    def can_afford(self, amount) -> bool:
        return to_points(amount) <= self._balance

    # ==================== Balance Operations ====================

    def deduct(self, amount) -> Decimal:
        """Remove points from the balance. Returns the new balance."""
        amount = to_points(amount)
        if amount <= ZERO:
            raise InvalidAmount(f"Deduction must be positive, got {amount}")

        with self.lock:
            if amount > self._balance:
                logger.warning(f"Rejected deduction of {amount} (balance {self._balance})")
                raise InsufficientFunds(amount, self._balance)
            self._balance = to_points(self._balance - amount)
            self._persist_balance()
            logger.debug(f"Deducted {amount}, balance now {self._balance}")
            return self._balance

    def credit(self, amount) -> Decimal:
        """Add points to the balance. Returns the new balance."""
        amount = to_points(amount)
        if amount < ZERO:
            raise InvalidAmount(f"Credit must not be negative, got {amount}")

        with self.lock:
            self._balance = to_points(self._balance + amount)
            self._persist_balance()
            logger.debug(f"Credited {amount}, balance now {self._balance}")
            return self._balance

    # ==================== Stipend Claim ====================

    def can_claim(self, now: Optional[int] = None) -> bool:
        if now is None:
            now = now_ms()
        return now - self._last_claim_ms >= self.claim_interval_ms

    def time_until_claim(self, now: Optional[int] = None) -> int:
        """Milliseconds until the next claim is allowed (0 when ready)."""
        if now is None:
            now = now_ms()
        return max(0, self.claim_interval_ms - (now - self._last_claim_ms))

    def claim(self, now: Optional[int] = None) -> ClaimResult:
        """
        Grant the stipend if the cooldown has elapsed.

        Claiming does not require an empty balance; only the interval is
        enforced here. During the cooldown nothing changes.
        """
        if now is None:
            now = now_ms()

        with self.lock:
            if not self.can_claim(now):
                remaining = self.time_until_claim(now)
                logger.info(f"Claim refused, next in {format_cooldown(remaining)}")
                return ClaimResult(False, ZERO, self._balance, remaining)

            self._balance = to_points(self._balance + self.claim_amount)
            self._last_claim_ms = int(now)
            self._persist_balance()
            self._persist_last_claim()

            logger.info(f"Claimed {self.claim_amount} points, balance now {self._balance}")
            return ClaimResult(True, self.claim_amount, self._balance, self.time_until_claim(now))

    # ==================== Persistence ====================

    def _persist_balance(self):
        self._write(self.persistence.balance_key, str(self._balance))

    def _persist_last_claim(self):
        self._write(self.persistence.last_claim_key, str(self._last_claim_ms))

    def _write(self, key: str, value: str):
        # Writes are fire-and-forget: the in-memory wallet stays authoritative
        try:
            self.store.set(key, value)
        except Exception as e:
            logger.error(f"Failed to persist {key}={value}: {e}", exc_info=True)

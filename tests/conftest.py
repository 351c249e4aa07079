"""
Shared fixtures for the Moo Mines tests.
"""

import itertools

import pytest

from moomines.config import BoardConfig, EconomyConfig, PersistenceConfig
from moomines.core.economy import Economy
from moomines.core.games.mines import MinesGame
from moomines.core.rng import TrueRNG
from moomines.core.storage import MemoryStore

# Comfortably more than one claim interval after the epoch
NOW = 1_700_000_000_000
SIX_HOURS_MS = 6 * 60 * 60 * 1000
HAZARD = 7


class ScriptedRNG(TrueRNG):
    """Replays a fixed sequence of draws (cycled), reduced modulo the bound."""

    def __init__(self, values):
        self.calls = []
        self._values = itertools.cycle(values)

    def next_int(self, bound: int) -> int:
        self.calls.append(bound)
        return next(self._values) % bound


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def economy(store):
    return Economy.load(store, EconomyConfig(), PersistenceConfig())


@pytest.fixture
def make_game():
    """Build an engine with a scripted hazard sequence and a fixed clock."""

    def _make(balance=None, hazards=(HAZARD,), last_claim_ms=0, store=None, now=NOW):
        store = store if store is not None else MemoryStore()
        economy = Economy(store, EconomyConfig(), PersistenceConfig(), balance=balance,
                          last_claim_ms=last_claim_ms)
        return MinesGame(economy, BoardConfig(), source=ScriptedRNG(hazards), clock=lambda: now)

    return _make


@pytest.fixture
def game(make_game):
    return make_game()

import pytest

from moomines.config import PathsConfig, PersistenceConfig
from moomines.core.economy import Economy
from moomines.core.storage import MemoryStore, SqliteStore, create_store


def test_memory_store_missing_key():
    assert MemoryStore().get("moo_balance") is None


def test_memory_store_last_write_wins():
    store = MemoryStore()
    store.set("moo_balance", "10.00")
    store.set("moo_balance", "12.00")
    assert store.get("moo_balance") == "12.00"
    assert store.as_dict() == {"moo_balance": "12.00"}


def test_sqlite_store_roundtrip(tmp_path):
    store = SqliteStore(tmp_path / "nested" / "wallet.db")
    assert store.get("moo_balance") is None
    store.set("moo_balance", "950.00")
    store.set("moo_balance", "1003.50")
    assert store.get("moo_balance") == "1003.50"


def test_sqlite_store_survives_reopen(tmp_path):
    path = tmp_path / "wallet.db"
    store = SqliteStore(path)
    store.set("moo_lastClaim", "1700000000000")
    store.close()

    reopened = SqliteStore(path)
    assert reopened.get("moo_lastClaim") == "1700000000000"


def test_wallet_restored_from_sqlite(tmp_path):
    path = tmp_path / "wallet.db"
    economy = Economy.load(SqliteStore(path))
    economy.deduct(250)
    economy.claim(1_700_000_000_000)

    restored = Economy.load(SqliteStore(path))
    assert str(restored.balance) == "850.00"
    assert restored.last_claim_ms == 1_700_000_000_000


def test_create_store_memory():
    store = create_store(PersistenceConfig(backend="memory"), PathsConfig())
    assert isinstance(store, MemoryStore)


def test_create_store_sqlite(tmp_path):
    paths = PathsConfig(database=str(tmp_path / "kv.db"))
    store = create_store(PersistenceConfig(backend="SQLite"), paths)
    assert isinstance(store, SqliteStore)
    assert store.db_path == tmp_path / "kv.db"


def test_create_store_unknown_backend():
    with pytest.raises(ValueError):
        create_store(PersistenceConfig(backend="redis"), PathsConfig())

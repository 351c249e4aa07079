import json

from moomines.config import AppConfig, BoardConfig, EconomyConfig, load_config, save_config


def test_defaults(tmp_path):
    config = load_config(tmp_path / "missing.json")
    assert config.board.size == 5
    assert config.board.total_tiles == 25
    assert config.board.safe_tiles == 24
    assert config.economy.starting_balance == 1000.0
    assert config.economy.claim_amount == 100.0
    assert config.persistence.balance_key == "moo_balance"
    assert config.persistence.last_claim_key == "moo_lastClaim"


def test_claim_interval_in_ms():
    assert EconomyConfig().claim_interval_ms == 6 * 60 * 60 * 1000
    assert EconomyConfig(claim_interval_hours=0.5).claim_interval_ms == 30 * 60 * 1000


def test_board_derived_sizes():
    board = BoardConfig(size=4)
    assert board.total_tiles == 16
    assert board.safe_tiles == 15


def test_json_file_is_read(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"economy": {"claim_amount": 250}, "server": {"port": 9000}}))
    config = load_config(path)
    assert config.economy.claim_amount == 250
    assert config.server.port == 9000


def test_env_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"economy": {"starting_balance": 10}}))
    monkeypatch.setenv("STARTING_BALANCE", "500")
    monkeypatch.setenv("STORE_BACKEND", "memory")
    monkeypatch.setenv("LOG_TO_FILE", "yes")
    config = load_config(path)
    assert config.economy.starting_balance == 500.0
    assert config.persistence.backend == "memory"
    assert config.logging.log_to_file is True


def test_malformed_env_number_uses_default(tmp_path, monkeypatch):
    monkeypatch.setenv("SERVER_PORT", "not-a-port")
    config = load_config(tmp_path / "missing.json")
    assert config.server.port == 8000


def test_save_config(tmp_path):
    path = tmp_path / "config.json"
    config = AppConfig()
    config.economy.claim_amount = 75
    save_config(config, path)

    data = json.loads(path.read_text())
    assert data["economy"]["claim_amount"] == 75
    assert "paths" not in data
    assert load_config(path).economy.claim_amount == 75

import orjson
import pytest
from fastapi.testclient import TestClient

from moomines.config import AppConfig
from moomines.core.storage import MemoryStore
from moomines.main import create_app

from tests.conftest import HAZARD, NOW, SIX_HOURS_MS, ScriptedRNG


def make_client(store=None):
    config = AppConfig(
        rate_limit={"enabled": False},
        persistence={"backend": "memory"},
    )
    app = create_app(
        config,
        store=store if store is not None else MemoryStore(),
        source=ScriptedRNG([HAZARD]),
        clock=lambda: NOW,
    )
    return TestClient(app)


@pytest.fixture
def client():
    with make_client() as c:
        yield c


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_initial_state(client):
    data = client.get("/api/state").json()
    assert data["state"] == "idle"
    assert data["balance"] == 1000.0
    assert data["multiplier"] == 1.0
    assert data["hazard_position"] is None


def test_board_table(client):
    data = client.get("/api/board").json()
    assert data["size"] == 5
    assert data["total_tiles"] == 25
    assert len(data["multipliers"]) == 25
    assert data["multipliers"][0] == 1.0
    assert data["multipliers"][1] == 1.07
    assert data["multipliers"][-1] == 20.0


def test_full_round_over_http(client):
    start = client.post("/api/round/start", json={"wager": 50})
    assert start.status_code == 200
    assert start.json()["wager"] == 50.0
    assert start.json()["balance"] == 950.0

    reveal = client.post("/api/round/reveal", json={"index": 0}).json()
    assert reveal["applied"] is True
    assert reveal["signal"] == "safe"
    assert reveal["multiplier"] == 1.07

    cash = client.post("/api/round/cashout").json()
    assert cash["applied"] is True
    assert cash["payout"] == 53.5
    assert cash["balance"] == 1003.5
    assert cash["snapshot"]["state"] == "cashed_out"
    assert cash["snapshot"]["hazard_position"] == HAZARD


def test_bust_over_http(client):
    client.post("/api/round/start", json={"wager": 10})
    reveal = client.post("/api/round/reveal", json={"index": HAZARD}).json()
    assert reveal["signal"] == "hazard"
    assert reveal["state"] == "busted"
    assert reveal["snapshot"]["balance"] == 990.0


def test_repeat_reveal_not_applied(client):
    client.post("/api/round/start", json={"wager": 10})
    client.post("/api/round/reveal", json={"index": 3})
    again = client.post("/api/round/reveal", json={"index": 3}).json()
    assert again["applied"] is False
    assert again["safe_revealed"] == 1


def test_start_uses_previous_wager_when_omitted(client):
    data = client.post("/api/round/start", json={}).json()
    assert data["wager"] == 50.0


def test_huge_wager_stakes_whole_balance(client):
    response = client.post("/api/round/start", json={"wager": 1e30})
    assert response.status_code == 200
    assert response.json()["wager"] == 1000.0
    assert response.json()["balance"] == 0.0
    assert client.get("/api/state").json()["state"] == "playing"


def test_start_while_playing_conflicts(client):
    client.post("/api/round/start", json={"wager": 10})
    response = client.post("/api/round/start", json={"wager": 10})
    assert response.status_code == 409


def test_reset(client):
    client.post("/api/round/start", json={"wager": 10})
    data = client.post("/api/round/reset").json()
    assert data["state"] == "idle"
    assert data["balance"] == 990.0
    assert data["revealed"] == []


def test_invalid_reveal_body(client):
    response = client.post("/api/round/reveal", json={"index": "middle"})
    assert response.status_code == 422


def test_no_funds_then_claim():
    store = MemoryStore({"moo_balance": "0", "moo_lastClaim": str(NOW - 1000)})
    with make_client(store) as client:
        response = client.post("/api/round/start", json={"wager": 50})
        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "no_funds"
        assert body["time_until_claim_ms"] == SIX_HOURS_MS - 1000
        assert client.get("/api/state").json()["state"] == "idle"

        status = client.get("/api/economy/claim").json()
        assert status["can_claim"] is False
        assert status["countdown"] == "5h 59m"

        refused = client.post("/api/economy/claim")
        assert refused.status_code == 400


def test_claim_when_ready():
    store = MemoryStore({"moo_balance": "0", "moo_lastClaim": str(NOW - SIX_HOURS_MS)})
    with make_client(store) as client:
        assert client.get("/api/state").json()["claim_offered"] is True

        claimed = client.post("/api/economy/claim")
        assert claimed.status_code == 200
        assert claimed.json()["balance"] == 100.0
        assert store.get("moo_balance") == "100.00"
        assert store.get("moo_lastClaim") == str(NOW)

        assert client.post("/api/round/start", json={"wager": 50}).status_code == 200


def test_websocket_initial_state_and_ping(client):
    with client.websocket_connect("/ws") as websocket:
        initial = orjson.loads(websocket.receive_bytes())
        assert initial["type"] == "state"
        assert initial["snapshot"]["state"] == "idle"

        websocket.send_text('{"type": "ping"}')
        assert orjson.loads(websocket.receive_bytes()) == {"type": "pong"}

"""Integration tests for the dashboard API."""

import inspect

import pytest
from fastapi.routing import APIRoute
from fastapi.testclient import TestClient

from betledger.api.server import app, get_store
from betledger.storage import LedgerStore


@pytest.fixture
def store(tmp_path, sample_bets):
    ledger = LedgerStore(tmp_path / "bets.json")
    ledger.replace_all(sample_bets)
    return ledger


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_list_bets_returns_view(client):
    response = client.get("/api/bets")
    assert response.status_code == 200
    body = response.json()
    assert [b["id"] for b in body["bets"]] == ["b3", "b2", "b4", "b1"]
    assert body["bets"][0]["oddsType"] == "American"
    assert body["stats"]["count"] == 4
    assert len(body["equity_curve"]) == 3
    assert {row["id"] for row in body["rows"]} == {"b1", "b2", "b3", "b4"}
    assert body["sports"] == ["NBA", "NFL", "Soccer"]


def test_list_bets_with_filters(client):
    response = client.get("/api/bets", params={"sport": "nba", "from": "2024-03-02", "to": "2024-03-05"})
    assert response.status_code == 200
    assert [b["id"] for b in response.json()["bets"]] == ["b3"]


def test_list_bets_rejects_unknown_result(client):
    response = client.get("/api/bets", params={"result": "Cashed"})
    assert response.status_code == 422


def test_list_bets_odds_view(client):
    response = client.get("/api/bets", params={"odds_view": "Decimal"})
    rows = {row["id"]: row for row in response.json()["rows"]}
    assert rows["b3"]["odds_display"] == "2.50"
    assert rows["b2"]["odds_display"] == "2.0"


def test_get_bet_detail(client):
    response = client.get("/api/bets/b1")
    assert response.status_code == 200
    body = response.json()
    assert body["bet"]["id"] == "b1"
    assert body["settlement"]["profit"] == pytest.approx(90.909, abs=0.001)
    assert body["settlement"]["payout_if_win"] == pytest.approx(190.909, abs=0.001)


def test_get_unknown_bet_is_404(client):
    assert client.get("/api/bets/nope").status_code == 404


def test_create_update_delete(client, store):
    response = client.post(
        "/api/bets",
        json={"date": "2024-04-01", "sport": "MLB", "oddsType": "American", "odds": "+120", "stake": 10},
    )
    assert response.status_code == 201
    bet_id = response.json()["bet"]["id"]
    assert store.get(bet_id).stake == "10"

    response = client.patch(f"/api/bets/{bet_id}", json={"result": "Won"})
    assert response.status_code == 200
    assert response.json()["settlement"]["profit"] == pytest.approx(12.0)

    assert client.delete(f"/api/bets/{bet_id}").status_code == 204
    assert client.get(f"/api/bets/{bet_id}").status_code == 404


def test_create_rejects_client_supplied_id(client):
    response = client.post("/api/bets", json={"id": "mine", "odds": "-110", "stake": "10"})
    assert response.status_code == 422


def test_export(client, sample_bets):
    response = client.get("/api/export")
    assert response.status_code == 200
    assert response.json() == [b.to_record() for b in sample_bets]


def test_import_rejects_non_array_and_keeps_bets(client, store, sample_bets):
    response = client.post("/api/import", json={"bets": []})
    assert response.status_code == 400
    assert store.bets == tuple(sample_bets)


def test_import_replaces_bets(client, store):
    response = client.post(
        "/api/import",
        json=[{"id": "n1", "date": "2024-01-01", "oddsType": "Decimal", "odds": "2.0", "stake": "5", "result": "Won"}],
    )
    assert response.status_code == 200
    assert response.json() == {"imported": 1}
    assert [b.id for b in store.bets] == ["n1"]


def test_clear(client, store):
    response = client.delete("/api/bets")
    assert response.json() == {"deleted": 4}
    assert len(store) == 0


def test_settle_preview(client):
    response = client.get("/api/settle", params={"odds_type": "American", "odds": "-120", "stake": "120"})
    assert response.status_code == 200
    body = response.json()
    assert body["profit"] == pytest.approx(100.0)
    assert body["payout_if_win"] == pytest.approx(220.0)
    assert body["implied_probability"] == pytest.approx(0.5455, abs=1e-4)


def test_writing_endpoints_run_off_the_event_loop():
    writing = {
        route.endpoint.__name__
        for route in app.routes
        if isinstance(route, APIRoute) and route.methods & {"POST", "PATCH", "DELETE"}
    }
    assert writing == {"create_bet", "update_bet", "delete_bet", "clear_bets", "import_bets"}
    for route in app.routes:
        if isinstance(route, APIRoute) and route.endpoint.__name__ in writing:
            assert not inspect.iscoroutinefunction(route.endpoint)

"""Tests for ui/app.py — the local JSON API."""

import csv
import io

import pytest
from fastapi.testclient import TestClient

from ui.app import app


@pytest.fixture
def client(workspace):
    return TestClient(app)


def test_healthz(client):
    assert client.get("/healthz").json() == {"ok": "true"}


def test_list_counters(client):
    counters = client.get("/api/counters").json()["counters"]
    assert [c["id"] for c in counters] == ["birds", "cars"]
    assert counters[0]["detailCount"] == 2


def test_create_counter(client):
    resp = client.post("/api/counters", json={"name": "Trees"})
    assert resp.status_code == 200
    assert resp.json()["counter"]["name"] == "Trees"
    names = [c["name"] for c in client.get("/api/counters").json()["counters"]]
    assert names[-1] == "Trees"


def test_create_counter_blank_name(client):
    assert client.post("/api/counters", json={"name": "  "}).status_code == 400


def test_create_detail_uses_settings(client):
    client.put("/api/settings", json={"stepCount": 5, "startCountingAtZero": False})
    resp = client.post("/api/counters/cars/details", json={"name": "Blue"})
    assert resp.json()["detail"]["count"] == 5


def test_increment_decrement(client):
    assert client.post("/api/details/red/increment").json()["detail"]["count"] == 3
    client.put("/api/settings", json={"stepCount": 10})
    assert client.post("/api/details/red/decrement").json()["detail"]["count"] == 0


def test_set_count(client):
    assert client.put("/api/details/red", json={"count": 123456}).json()["detail"]["count"] == 99999
    assert client.put("/api/details/red", json={"count": "x"}).status_code == 400


def test_unknown_ids_404(client):
    assert client.get("/api/counters/missing/details").status_code == 404
    assert client.post("/api/details/missing/increment").status_code == 404
    assert client.delete("/api/counters/missing").status_code == 404


def test_delete_counter_cascades(client):
    assert client.delete("/api/counters/birds").status_code == 200
    assert client.get("/api/counters/birds/details").status_code == 404
    assert client.post("/api/details/sparrow/increment").status_code == 404


def test_delete_details_at_with_view(client):
    client.post("/api/counters/birds/details", json={"name": "Albatross"})
    resp = client.post(
        "/api/counters/birds/details/delete_at",
        json={"positions": [1], "view": ["blackbird", "sparrow"]},
    )
    assert resp.json()["deleted"] == ["sparrow"]
    names = [d["name"] for d in client.get("/api/counters/birds/details").json()["details"]]
    assert names == ["Albatross", "Blackbird"]


def test_delete_at_bad_position(client):
    resp = client.post("/api/counters/delete_at", json={"positions": [9]})
    assert resp.status_code == 400
    assert client.post("/api/counters/delete_at", json={"positions": "0"}).status_code == 400


def test_export_csv(client, workspace):
    resp = client.get("/api/counters/birds/export.csv")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert 'filename="bird-count.csv"' in resp.headers["content-disposition"]
    rows = list(csv.reader(io.StringIO(resp.text)))
    assert rows == [["Name", "Count"], ["Blackbird", "3"], ["Sparrow", "7"]]
    assert (workspace / "exports" / "bird-count.csv").exists()


def test_settings_clamped(client):
    data = client.put("/api/settings", json={"stepCount": 1000, "listPadding": 0}).json()
    assert data["stepCount"] == 100
    assert data["listPadding"] == 1
    assert client.get("/api/settings").json()["stepCount"] == 100


def test_auth_required_when_configured(client, monkeypatch):
    monkeypatch.setenv("EASYCOUNT_USERNAME", "me")
    monkeypatch.setenv("EASYCOUNT_PASSWORD", "secret")
    assert client.get("/api/counters").status_code == 401
    assert client.get("/api/counters", auth=("me", "wrong")).status_code == 401
    assert client.get("/api/counters", auth=("me", "secret")).status_code == 200


def test_settings_boolean_strings(client):
    data = client.put("/api/settings", json={"startCountingAtZero": "false"}).json()
    assert data["startCountingAtZero"] is False
    assert client.put("/api/settings", json={"startCountingAtZero": "nope"}).status_code == 400
    assert client.get("/api/settings").json()["startCountingAtZero"] is False

# backend/tests/test_auth.py
from conftest import ALICE


def test_health_is_public(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "db": "ok"}
    assert r.headers["X-Request-Id"]


def test_missing_token(client):
    r = client.get("/missions")
    assert r.status_code == 401
    body = r.json()
    assert body["error"] == "AUTH_001"
    assert body["retryable"] is False
    assert body["request_id"] == r.headers["X-Request-Id"]


def test_request_id_echoed(client):
    r = client.get("/missions", headers={"X-Request-Id": "abc123"})
    assert r.headers["X-Request-Id"] == "abc123"
    assert r.json()["request_id"] == "abc123"


def test_expired_or_unknown_token(client):
    for token in ("stale-token", "nope"):
        r = client.get("/missions", headers={"Authorization": f"Bearer {token}"})
        assert r.status_code == 401


def test_wrong_scheme(client):
    r = client.get("/missions", headers={"Authorization": "Basic alice-token"})
    assert r.status_code == 401


def test_rows_scoped_to_owner(client, alice, bob, make_mission, make_quest):
    m = make_mission(ALICE, "Alice only")
    q = make_quest(ALICE, "Secret")

    assert client.get(f"/missions/{m.id}", headers=bob).status_code == 404
    assert client.get(f"/quests/{q.id}", headers=bob).status_code == 404
    assert client.get("/quests", headers=bob).json() == []
    r = client.delete(f"/missions/{m.id}", headers=bob)
    assert r.status_code == 404
    assert r.json()["error"] == "RESOURCE_001"
    assert client.get(f"/missions/{m.id}", headers=alice).status_code == 200


def test_quest_cannot_point_at_foreign_mission(client, bob, make_mission):
    m = make_mission(ALICE)
    r = client.post("/quests", json={"title": "x", "mission_id": m.id}, headers=bob)
    assert r.status_code == 404

# backend/tests/test_feedback_onboarding.py
from datetime import datetime, timedelta

from sqlalchemy import select

from command_ops.models import Feedback, QuestStatus
from command_ops.rate_limit import MemoryRateLimiter
from conftest import ALICE


def test_feedback_sanitized_and_stored(client, alice, db):
    r = client.post("/feedback", json={"message": "<p>Love the  kanban</p>"}, headers=alice)
    assert r.status_code == 201
    assert r.json()["message"] == "Love the  kanban"
    rows = db.scalars(select(Feedback).where(Feedback.user_id == ALICE)).all()
    assert [f.message for f in rows] == ["Love the  kanban"]


def test_feedback_limits(client, alice):
    assert client.post("/feedback", json={"message": "   "}, headers=alice).status_code == 422
    assert client.post("/feedback", json={"message": "x" * 10_001}, headers=alice).status_code == 422


def test_onboarding_flag(client, alice, bob):
    assert client.get("/onboarding", headers=alice).json() == {"onboarding_completed": False}
    r = client.post("/onboarding", json={"completed": True}, headers=alice)
    assert r.json() == {"onboarding_completed": True}
    assert client.get("/onboarding", headers=alice).json() == {"onboarding_completed": True}
    assert client.get("/onboarding", headers=bob).json() == {"onboarding_completed": False}


def test_profile(client, alice, bob):
    assert client.get("/me", headers=alice).json() == {
        "id": ALICE,
        "name": "Alice",
        "email": "alice@example.com",
        "onboarding_completed": False,
    }
    client.post("/onboarding", json={"completed": True}, headers=bob)
    assert client.get("/me", headers=bob).json()["onboarding_completed"] is True

    r = client.get("/me", headers={"Authorization": "Bearer stale-token"})
    assert r.status_code == 401
    assert r.json()["error"] == "AUTH_001"


def test_analytics_snapshot_and_cache(client, alice, make_quest, analytics_cache):
    now = datetime.now()
    make_quest(ALICE, status=QuestStatus.ACTIVE)
    make_quest(ALICE, status=QuestStatus.COMPLETED, completed_at=now - timedelta(days=1),
               deadline=now, estimated_time=60, actual_time=90)
    q = make_quest(ALICE)

    r = client.get("/analytics", headers=alice)
    assert r.status_code == 200
    assert r.json() == {
        "operational_load": 1 / 3,
        "weekly_momentum": 1,
        "success_rate": 100,
        "estimate_accuracy": 67,
    }

    client.post(f"/quests/{q.id}/activate", json={}, headers=alice)
    assert analytics_cache.get(ALICE)["active_count"] == 2
    assert client.get("/analytics", headers=alice).json()["operational_load"] == 2 / 3

    client.delete(f"/quests/{q.id}", headers=alice)
    assert analytics_cache.get(ALICE) is None


def test_rate_limit_enforced(app, client, alice):
    app.state.rate_limiter = MemoryRateLimiter(enabled=True)
    m = client.post("/missions", json={"title": "m"}, headers=alice).json()

    for _ in range(5):
        assert client.post(f"/missions/{m['id']}/quests/archive", headers=alice).status_code == 200
    r = client.post(f"/missions/{m['id']}/quests/archive", headers=alice)
    assert r.status_code == 429
    assert r.headers["Retry-After"] == "3600"
    assert r.json()["error"] == "RATE_001"
    assert r.json()["retryable"] is True

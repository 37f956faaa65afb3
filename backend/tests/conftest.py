# backend/tests/conftest.py
import os

# must be set before command_ops.db is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from command_ops.db import Base, get_db
from command_ops.main import build_app
from command_ops.models import AuthSession, Mission, MissionStatus, Quest, QuestStatus, User
from command_ops.rate_limit import MemoryRateLimiter
from command_ops.services.analytics import AnalyticsCache

ALICE = "user_alice"
BOB = "user_bob"


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    s = session_factory()
    yield s
    s.close()


@pytest.fixture
def users(db):
    later = datetime.now() + timedelta(days=1)
    db.add_all([
        User(id=ALICE, name="Alice", email="alice@example.com"),
        User(id=BOB, name="Bob", email="bob@example.com"),
    ])
    db.flush()
    db.add_all([
        AuthSession(token="alice-token", user_id=ALICE, expires_at=later),
        AuthSession(token="bob-token", user_id=BOB, expires_at=later),
        AuthSession(token="stale-token", user_id=ALICE, expires_at=datetime.now() - timedelta(minutes=1)),
    ])
    db.commit()
    return {ALICE: "alice-token", BOB: "bob-token"}


@pytest.fixture
def rate_limiter():
    return MemoryRateLimiter(enabled=False)


@pytest.fixture
def analytics_cache():
    return AnalyticsCache(ttl=60)


@pytest.fixture
def app(session_factory, users, rate_limiter, analytics_cache):
    app = build_app(rate_limiter=rate_limiter, analytics_cache=analytics_cache)

    def _get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _get_db
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def alice():
    return {"Authorization": "Bearer alice-token"}


@pytest.fixture
def bob():
    return {"Authorization": "Bearer bob-token"}


@pytest.fixture
def make_mission(db, users):
    def _make(user_id=ALICE, title="Mission", **kw):
        kw.setdefault("status", MissionStatus.ACTIVE)
        m = Mission(user_id=user_id, title=title, **kw)
        db.add(m)
        db.commit()
        return m
    return _make


@pytest.fixture
def make_quest(db, users):
    def _make(user_id=ALICE, title="Quest", **kw):
        kw.setdefault("status", QuestStatus.PLANNING)
        q = Quest(user_id=user_id, title=title, **kw)
        db.add(q)
        db.commit()
        return q
    return _make


@pytest.fixture
def fresh(db):
    """Re-read a row, ignoring anything cached in the test session."""
    def _get(model, pk):
        return db.get(model, pk, populate_existing=True)
    return _get

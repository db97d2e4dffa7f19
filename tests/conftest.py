import random
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from alignment.main import app
from alignment.db.base import Base
from alignment.db.session import get_db
from alignment.core.assessment_store import AssessmentStore
from alignment.core.audit import AuditTrail
from alignment.db.repository import AssessmentRepository


@pytest.fixture()
def engine():
    """
    A fresh in-memory SQLite database per test. StaticPool keeps the single
    connection alive so every session sees the same database.
    """
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture()
def db_session(engine):
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def override_get_db(db_session):
    def _get_db_override():
        yield db_session

    app.dependency_overrides[get_db] = _get_db_override
    yield
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_legal_basis():
    yield
    app.state.legal_basis.reset()


@pytest.fixture()
def client():
    return TestClient(app)


class FakeClock:
    """Deterministic clock; advance() moves it forward."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta):
        self.now = self.now + delta


@pytest.fixture()
def clock():
    return FakeClock(datetime(2025, 3, 14, 9, 30, 0, 123000, tzinfo=timezone.utc))


@pytest.fixture()
def store(db_session, clock):
    return AssessmentStore(
        AssessmentRepository(db_session),
        audit=AuditTrail(db_session, "consultant-1"),
        clock=clock,
        rng=random.Random(7),
    )

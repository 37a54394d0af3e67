"""Shared fixtures for journal tests."""
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from config.settings import get_prompts
from journal.ai.services import CoachService
from journal.api import deps
from journal.api.main import app
from journal.api.rate_limit import RateLimiter
from journal.core.profile import ProfileStore
from journal.core.store import TradeStore
from journal.models.base import Base, get_db
from journal.models.snapshots import SnapshotRepository


class FakeCompletionClient:
    """Records chat requests and answers with canned text."""

    def __init__(self, reply: str = "- Recommend taking profits at 2x\n- Warning: position too large\nConfidence: 80"):
        self.reply = reply
        self.calls = []

    def complete(self, messages, model=None, max_tokens=None, temperature=0.5):
        self.calls.append({'messages': messages, 'model': model, 'max_tokens': max_tokens})
        return self.reply


@pytest.fixture
def session_factory():
    """Fresh in-memory SQLite database shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def repository(session_factory) -> SnapshotRepository:
    return SnapshotRepository(session_factory)


@pytest.fixture
def store(repository) -> TradeStore:
    return TradeStore(repository, "test-trades")


@pytest.fixture
def profiles(repository) -> ProfileStore:
    return ProfileStore(repository, "test-profile")


@pytest.fixture
def fake_client() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture
def coach(fake_client) -> CoachService:
    return CoachService(fake_client, get_prompts())


@pytest.fixture
def limiter() -> RateLimiter:
    return RateLimiter(window_seconds=60, max_requests=3)


@pytest.fixture
def client(session_factory, store, profiles, coach, limiter):
    """API client wired to the in-memory stores and the fake coach."""

    def override_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[deps.get_trade_store] = lambda: store
    app.dependency_overrides[deps.get_profile_store] = lambda: profiles
    app.dependency_overrides[deps.get_coach_service] = lambda: coach
    app.dependency_overrides[deps.get_rate_limiter] = lambda: limiter
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def t0() -> datetime:
    return datetime(2024, 3, 1, 10, 0, 0)

"""
Pytest configuration and shared fixtures for all tests.
"""
import os

# Settings are read at import time, so the environment must be ready first
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-quality-control")
os.environ.setdefault("APP_ENV", "test")

import uuid
from datetime import datetime, timezone
from typing import AsyncGenerator

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.orm import Session

from qc_api.db.models import Base
from qc_api.db.session import build_engine
from qc_api.main import create_app
from qc_api.repositories import couple_repo
from qc_api.repositories.action_item_repo import SqlAlchemyActionItemRepository
from qc_api.repositories.checkin_repo import SqlAlchemyCheckInRepository
from qc_api.repositories.note_repo import SqlAlchemyNoteRepository
from qc_api.services.checkin import SessionLifecycleManager
from qc_api.services.stats import CoupleStatsObserver


@pytest.fixture
def test_engine():
    """Fresh in-memory database per test."""
    engine = build_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(test_engine):
    """Create a new database session for a test."""
    session = Session(test_engine, expire_on_commit=False)
    yield session
    session.close()


@pytest.fixture
def test_user_id() -> uuid.UUID:
    """The first partner of the test couple."""
    return uuid.UUID("123e4567-e89b-12d3-a456-426614174000")


@pytest.fixture
def another_user_id() -> uuid.UUID:
    """The second partner of the test couple."""
    return uuid.UUID("223e4567-e89b-12d3-a456-426614174001")


@pytest.fixture
def outsider_id() -> uuid.UUID:
    """A user who belongs to no couple."""
    return uuid.UUID("323e4567-e89b-12d3-a456-426614174002")


@pytest.fixture
def users(db_session, test_user_id, another_user_id, outsider_id):
    return {
        "alice": couple_repo.upsert_user(db_session, test_user_id, "Alice", "alice@example.com"),
        "bob": couple_repo.upsert_user(db_session, another_user_id, "Bob", "bob@example.com"),
        "carol": couple_repo.upsert_user(db_session, outsider_id, "Carol"),
    }


@pytest.fixture
def couple(db_session, users):
    """Alice and Bob, with the default categories."""
    c = couple_repo.create_couple(db_session, "Alice & Bob", users["alice"])
    return couple_repo.add_member(db_session, c, users["bob"])


@pytest.fixture
def checkin_repo(db_session):
    return SqlAlchemyCheckInRepository(db_session)


@pytest.fixture
def manager(db_session, checkin_repo):
    return SessionLifecycleManager(
        checkin_repo,
        note_repo=SqlAlchemyNoteRepository(db_session),
        action_item_repo=SqlAlchemyActionItemRepository(db_session),
        observers=[CoupleStatsObserver(db_session)],
    )


@pytest.fixture
def identity(test_user_id):
    """Who the test client is authenticated as. Tests may reassign user_id."""
    return {"user_id": str(test_user_id), "jti": None}


@pytest.fixture
async def client(db_session, identity) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with mocked authentication."""
    app = create_app(init_database=False)

    # Override database dependency
    def override_get_db():
        yield db_session

    # Override auth dependency for testing
    def override_auth():
        return dict(identity)

    from qc_api.db.session import get_db
    from qc_api.core.security import get_current_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_auth

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def utc_now():
    """Get current UTC time."""
    return datetime.now(timezone.utc)

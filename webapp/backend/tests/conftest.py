"""
Pytest fixtures for backend tests.

Usage:
    pytest tests/
"""
from typing import Callable, Generator
from unittest.mock import MagicMock, patch

import fakeredis
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from auth.jwt_handler import TokenIssuer
from auth.passwords import hash_password
from config import Settings
from database import Base, get_db
from main import create_app
from models import Parent, Teacher
from utils.rate_limiter import clear_rate_limits

from tests.fixtures.account_fixtures import TEST_PASSWORD

TEST_SETTINGS = Settings(
    environment="test",
    log_level="DEBUG",
    # In-memory SQLite for fast tests (no external DB dependency)
    database_url="sqlite:///:memory:",
    redis_url="redis://localhost:6379/15",
    jwt_secret="test-secret-key-for-testing-only-0123456789",
    admin_username="admin",
    admin_password="admin-password",
    resend_api_key="re_test_key",
    email_from="noreply@example.com",
    email_from_name="Tutoring Team",
    project_name="Tutoring Platform",
    frontend_url="http://localhost:3000",
    google_client_id="test-google-client-id",
    google_client_secret="test-google-client-secret",
)


@pytest.fixture
def settings() -> Settings:
    return TEST_SETTINGS


@pytest.fixture(scope="function")
def app(settings: Settings) -> FastAPI:
    """
    Fresh app per test with its own in-memory database and a fake Redis.
    """
    application = create_app(settings)
    application.state.redis = fakeredis.FakeRedis(decode_responses=True)
    return application


@pytest.fixture
def fake_redis(app: FastAPI):
    return app.state.redis


@pytest.fixture
def issuer(app: FastAPI) -> TokenIssuer:
    return app.state.token_issuer


@pytest.fixture(scope="function")
def db_session(app: FastAPI) -> Generator[Session, None, None]:
    """
    Create a fresh database session for each test.
    Tables are created before and dropped after each test.
    """
    engine = app.state.engine
    Base.metadata.create_all(bind=engine)

    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()
        # Drop all tables after test
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(app: FastAPI, db_session: Session) -> Generator[TestClient, None, None]:
    """
    FastAPI test client with overridden database dependency.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_rate_limits():
    clear_rate_limits()
    yield
    clear_rate_limits()


@pytest.fixture(autouse=True)
def mock_resend_send() -> Generator[MagicMock, None, None]:
    """No test ever talks to Resend."""
    with patch("services.email_service.resend.Emails.send") as send:
        send.return_value = {"id": "test-email-id"}
        yield send


# ============================================================================
# Account Fixtures
# ============================================================================

@pytest.fixture
def make_teacher(db_session: Session) -> Callable[..., Teacher]:
    def _make(email: str = "teacher@example.com", password: str = TEST_PASSWORD, **fields) -> Teacher:
        teacher = Teacher(
            email=email,
            first_name=fields.pop("first_name", "Tess"),
            last_name=fields.pop("last_name", "Teacher"),
            password_hash=hash_password(password),
            **fields,
        )
        db_session.add(teacher)
        db_session.commit()
        db_session.refresh(teacher)
        return teacher

    return _make


@pytest.fixture
def make_parent(db_session: Session) -> Callable[..., Parent]:
    def _make(email: str = "parent@example.com", password: str = TEST_PASSWORD, **fields) -> Parent:
        parent = Parent(
            email=email,
            first_name=fields.pop("first_name", "Pat"),
            last_name=fields.pop("last_name", "Parent"),
            password_hash=hash_password(password) if password else None,
            email_verified=fields.pop("email_verified", False),
            **fields,
        )
        db_session.add(parent)
        db_session.commit()
        db_session.refresh(parent)
        return parent

    return _make


@pytest.fixture
def sample_registration() -> dict:
    """Sample parent registration body."""
    return {
        "email": "a@x.com",
        "password": TEST_PASSWORD,
        "first_name": "Ana",
        "last_name": "Parent",
        "phone": "12345678",
    }

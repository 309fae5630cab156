"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient
from passlib.context import CryptContext
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from api.auth import get_current_user
from api.market_data import get_quote_refresh_service
from database import Base, get_db
from main import app
from services.quote_refresh_service import QuoteRefreshService
# Pytest fixtures - imported to make them available to tests
from tests.fixtures import (  # noqa: F401
    closed_position,
    holding,
    other_user,
    user,
    watchlist_entry,
)
from tests.fixtures.mocks import SAMPLE_QUOTES, MockQuoteProvider


@pytest.fixture(autouse=True)
def cheap_password_hashing(monkeypatch):
    """Use the minimum bcrypt cost so user fixtures stay fast."""
    monkeypatch.setattr(
        "services.auth_service.pwd_context",
        CryptContext(schemes=["bcrypt"], bcrypt__rounds=4),
    )


@pytest.fixture(name="db")
def db_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="mock_quote_provider")
def mock_quote_provider_fixture():
    """Quote provider returning the sample quotes."""
    return MockQuoteProvider(quotes=SAMPLE_QUOTES)


@pytest.fixture(name="anon_client")
def anon_client_fixture(db, mock_quote_provider):
    """Test client with the test database and mocked quotes, but no login."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    def override_get_quote_refresh_service():
        return QuoteRefreshService(provider=mock_quote_provider, timeout_seconds=2.0)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_quote_refresh_service] = override_get_quote_refresh_service
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="client")
def client_fixture(anon_client, user):
    """Test client logged in as ``user``."""
    app.dependency_overrides[get_current_user] = lambda: user
    yield anon_client

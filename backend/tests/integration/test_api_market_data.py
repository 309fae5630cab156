"""Integration tests for market data API endpoints."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from api.auth import get_current_user
from api.market_data import get_quote_refresh_service
from database import get_db
from main import app
from services.quote_refresh_service import QuoteRefreshService
from tests.fixtures import create_holding
from tests.fixtures.mocks import SAMPLE_QUOTES, MockQuoteProvider


@pytest.fixture
def failing_client(client):
    """Logged-in client whose provider cannot reach INFY."""
    provider = MockQuoteProvider(quotes=SAMPLE_QUOTES, failing={"INFY"})

    def override():
        return QuoteRefreshService(provider=provider)

    app.dependency_overrides[get_quote_refresh_service] = override
    yield client


class TestRefresh:
    def test_refresh_updates_prices(self, client, db, holding):
        response = client.post("/api/market-data/refresh")

        assert response.status_code == 200
        assert response.json() == {"requested": 1, "updated": 1, "failed": {}}
        db.refresh(holding)
        assert holding.current_price == Decimal("2600")

    def test_refresh_reports_failed_tickers(self, failing_client, db, user, holding):
        infy = create_holding(db, user, ticker="INFY", buy_price=Decimal("1400"))

        response = failing_client.post("/api/market-data/refresh")

        assert response.status_code == 200
        data = response.json()
        assert data["updated"] == 1
        assert list(data["failed"]) == ["INFY"]
        db.refresh(infy)
        assert infy.current_price == Decimal("1400")

    def test_refresh_in_progress_is_409(self, client, user):
        lock = QuoteRefreshService._lock_for(user.id)
        lock.acquire()
        try:
            response = client.post("/api/market-data/refresh")
        finally:
            lock.release()

        assert response.status_code == 409


class TestQuote:
    def test_quote(self, client):
        response = client.get("/api/market-data/quote/tcs")

        assert response.status_code == 200
        data = response.json()
        assert data["symbol"] == "TCS"
        assert Decimal(data["current_price"]) == Decimal("3600")

    def test_unknown_quote_is_404(self, client):
        assert client.get("/api/market-data/quote/NOSUCH").status_code == 404

    def test_provider_failure_is_502(self, failing_client):
        assert failing_client.get("/api/market-data/quote/INFY").status_code == 502


class TestIndicesAndStatus:
    def test_indices(self, client):
        response = client.get("/api/market-data/indices")

        assert response.status_code == 200
        data = response.json()
        assert [i["key"] for i in data] == ["nifty", "sensex", "banknifty", "finnifty"]
        assert Decimal(data[0]["value"]) == Decimal("24350.45")
        assert data[3]["error"] is not None

    def test_status(self, anon_client):
        response = anon_client.get("/api/market-data/status")

        assert response.status_code == 200
        data = response.json()
        assert isinstance(data["is_open"], bool)
        assert data["timezone"] == "Asia/Kolkata"


class TestDatabaseUnavailable:
    def test_operational_error_is_503(self, user):
        def broken_db():
            raise OperationalError("SELECT 1", {}, Exception("unable to open database file"))

        app.dependency_overrides[get_db] = broken_db
        app.dependency_overrides[get_current_user] = lambda: user
        try:
            response = TestClient(app).get("/api/portfolio")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 503

"""Market data API endpoints."""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from api.auth import get_current_user
from api.helpers import to_http_exception
from config import settings
from database import get_db
from integrations.exceptions import ProviderError, QuoteUnavailableError
from models import User
from schemas import IndexQuoteResponse, MarketStatusResponse, QuoteResponse, RefreshResponse
from services.exceptions import PortfolioError
from services.market_service import MarketService, is_market_open
from services.quote_refresh_service import QuoteRefreshService
from utils.ticker import normalize_ticker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/market-data", tags=["market-data"])

# Dependency injection for testing
_quote_refresh_service_override: Optional[QuoteRefreshService] = None


def get_quote_refresh_service() -> QuoteRefreshService:
    """Get QuoteRefreshService instance, allowing for test overrides."""
    if _quote_refresh_service_override is not None:
        return _quote_refresh_service_override
    return QuoteRefreshService()


def set_quote_refresh_service_override(service: Optional[QuoteRefreshService]) -> None:
    """Set a QuoteRefreshService override for testing."""
    global _quote_refresh_service_override
    _quote_refresh_service_override = service


@router.post("/refresh", response_model=RefreshResponse)
def refresh_prices(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: QuoteRefreshService = Depends(get_quote_refresh_service),
):
    """Refresh live prices for everything the user holds or watches.

    Tickers whose quote fails keep their last known price and are listed
    in ``failed``.

    Raises:
        HTTPException:
            - 409 Conflict: A refresh is already in progress
            - 503 Service Unavailable: The database could not be reached
    """
    try:
        outcome = service.refresh_user(db, user.id)
    except PortfolioError as e:
        raise to_http_exception(e)
    return RefreshResponse(
        requested=outcome.requested, updated=outcome.updated, failed=outcome.failed
    )


@router.get("/quote/{ticker}", response_model=QuoteResponse)
def get_quote(
    ticker: str,
    user: User = Depends(get_current_user),
    service: QuoteRefreshService = Depends(get_quote_refresh_service),
):
    """Look up the live quote for one ticker."""
    try:
        symbol = normalize_ticker(ticker)
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"message": str(e), "field": "ticker"})

    try:
        quote = service.fetch_quote(symbol)
    except QuoteUnavailableError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ProviderError as e:
        logger.warning("Quote lookup failed for %s: %s", symbol, e)
        raise HTTPException(
            status_code=502, detail=f"Could not reach the quote provider for {symbol}"
        )

    return QuoteResponse(
        symbol=quote.symbol,
        current_price=quote.current_price,
        previous_close=quote.previous_close,
        day_change=quote.day_change,
        day_change_percent=quote.day_change_percent,
        name=quote.name,
        sector=quote.sector,
    )


@router.get("/indices", response_model=list[IndexQuoteResponse])
def get_indices(
    user: User = Depends(get_current_user),
    service: QuoteRefreshService = Depends(get_quote_refresh_service),
):
    """Latest levels of the benchmark indices."""
    return [
        IndexQuoteResponse(
            key=q.key,
            label=q.label,
            symbol=q.symbol,
            value=q.value,
            change=q.change,
            change_percent=q.change_percent,
            error=q.error,
        )
        for q in MarketService(service).get_indices()
    ]


@router.get("/status", response_model=MarketStatusResponse)
def get_market_status():
    """Whether the exchange is in its regular trading session."""
    now = datetime.now(timezone.utc)
    return MarketStatusResponse(
        is_open=is_market_open(now), timezone=settings.MARKET_TIMEZONE, checked_at=now
    )

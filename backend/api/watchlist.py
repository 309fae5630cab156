"""Watchlist API endpoints."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.auth import get_current_user
from api.helpers import to_http_exception
from api.market_data import get_quote_refresh_service
from database import get_db
from integrations.market_data_protocol import QuoteError
from models import User
from schemas import (
    HoldingResponse,
    PromoteRequest,
    WatchlistEntryCreate,
    WatchlistEntryResponse,
    WatchlistEntryUpdate,
)
from services.exceptions import PortfolioError
from services.lifecycle_service import PortfolioLifecycleService
from services.quote_refresh_service import QuoteRefreshService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/watchlist", tags=["watchlist"])


@router.get("", response_model=list[WatchlistEntryResponse])
def list_watchlist(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """List watchlist entries."""
    return PortfolioLifecycleService.list_watchlist(db, user.id)


@router.post("", response_model=WatchlistEntryResponse, status_code=201)
def add_to_watchlist(
    body: WatchlistEntryCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    refresh_service: QuoteRefreshService = Depends(get_quote_refresh_service),
):
    """Start watching a ticker, priced from a live quote when one is available."""
    quote = refresh_service.refresh_quotes([body.ticker]).get(body.ticker)
    if isinstance(quote, QuoteError):
        logger.warning(
            "price refresh failed for %s, using last known value: %s",
            body.ticker, quote.message,
        )

    try:
        return PortfolioLifecycleService.add_to_watchlist(
            db,
            user.id,
            ticker=body.ticker,
            name=body.name,
            sector=body.sector,
            target_price=body.target_price,
            stop_loss=body.stop_loss,
            notes=body.notes,
            quote=quote,
        )
    except PortfolioError as e:
        raise to_http_exception(e)


@router.put("/{entry_id}", response_model=WatchlistEntryResponse)
def update_watchlist_entry(
    entry_id: str,
    body: WatchlistEntryUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Edit target price, stop loss or notes."""
    try:
        return PortfolioLifecycleService.update_watchlist_entry(
            db, user.id, entry_id, body.model_dump(exclude_unset=True)
        )
    except PortfolioError as e:
        raise to_http_exception(e)


@router.delete("/{entry_id}", status_code=204)
def remove_from_watchlist(
    entry_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Stop watching a ticker."""
    try:
        PortfolioLifecycleService.remove_from_watchlist(db, user.id, entry_id)
    except PortfolioError as e:
        raise to_http_exception(e)


@router.post("/{entry_id}/promote", response_model=HoldingResponse, status_code=201)
def promote_to_holding(
    entry_id: str,
    body: PromoteRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Buy a watched ticker, moving it from the watchlist to the portfolio."""
    try:
        return PortfolioLifecycleService.promote_to_holding(
            db,
            user.id,
            entry_id,
            quantity=body.quantity,
            buy_price=body.buy_price,
            purchase_date=body.purchase_date,
            average_into_existing=body.average_into_existing,
        )
    except PortfolioError as e:
        raise to_http_exception(e)

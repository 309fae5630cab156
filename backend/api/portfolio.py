"""Portfolio (open holdings) API endpoints."""

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
    ActivityResponse,
    BuyMoreRequest,
    ClosedPositionResponse,
    HoldingCreate,
    HoldingResponse,
    HoldingUpdate,
    PortfolioSummaryResponse,
    SectorAllocationItem,
    SellRequest,
    SellResponse,
)
from services import portfolio_analytics
from services.exceptions import PortfolioError
from services.lifecycle_service import PortfolioLifecycleService
from services.quote_refresh_service import QuoteRefreshService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/portfolio", tags=["portfolio"])


@router.get("", response_model=list[HoldingResponse])
def list_holdings(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """List open holdings."""
    return PortfolioLifecycleService.list_holdings(db, user.id)


@router.post("", response_model=HoldingResponse, status_code=201)
def add_holding(
    body: HoldingCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    refresh_service: QuoteRefreshService = Depends(get_quote_refresh_service),
):
    """Add a stock to the portfolio.

    Unless ``current_price`` is supplied, the live quote is looked up; if
    that fails the holding is marked at its buy price until the next
    refresh.
    """
    quote = None
    if body.current_price is None:
        quote = refresh_service.refresh_quotes([body.ticker]).get(body.ticker)
        if isinstance(quote, QuoteError):
            logger.warning(
                "price refresh failed for %s, using last known value: %s",
                body.ticker, quote.message,
            )

    try:
        return PortfolioLifecycleService.add_holding(
            db,
            user.id,
            ticker=body.ticker,
            quantity=body.quantity,
            buy_price=body.buy_price,
            purchase_date=body.purchase_date,
            name=body.name,
            sector=body.sector,
            current_price=body.current_price,
            target_price=body.target_price,
            stop_loss=body.stop_loss,
            quote=quote,
        )
    except PortfolioError as e:
        raise to_http_exception(e)


@router.get("/summary", response_model=PortfolioSummaryResponse)
def get_summary(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Totals, sector allocation, top performers and top holdings."""
    holdings = PortfolioLifecycleService.list_holdings(db, user.id)
    summary = portfolio_analytics.portfolio_summary(holdings)
    return PortfolioSummaryResponse(
        total_invested=summary.total_invested,
        total_current_value=summary.total_current_value,
        total_pl=summary.total_pl,
        total_pl_percent=summary.total_pl_percent,
        todays_pl=summary.todays_pl,
        holdings_count=summary.holdings_count,
        sector_allocation=[
            SectorAllocationItem(sector=a.sector, value=a.value, percent=a.percent)
            for a in portfolio_analytics.sector_allocation(holdings)
        ],
        top_performers=[
            HoldingResponse.model_validate(h)
            for h in portfolio_analytics.top_performers(holdings)
        ],
        top_holdings=[
            HoldingResponse.model_validate(h)
            for h in portfolio_analytics.top_holdings(holdings)
        ],
    )


@router.get("/activity", response_model=list[ActivityResponse])
def get_activity(
    limit: int = portfolio_analytics.DEFAULT_RECENT_ACTIVITIES,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Recent buys, watchlist additions and sales."""
    activities = portfolio_analytics.recent_activity(
        PortfolioLifecycleService.list_holdings(db, user.id),
        PortfolioLifecycleService.list_watchlist(db, user.id),
        PortfolioLifecycleService.list_closed_positions(db, user.id),
        limit=max(1, min(limit, 50)),
    )
    return [
        ActivityResponse(
            type=a.type,
            ticker=a.ticker,
            title=a.title,
            subtitle=a.subtitle,
            activity_date=a.activity_date,
        )
        for a in activities
    ]


@router.get("/{holding_id}", response_model=HoldingResponse)
def get_holding(
    holding_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get one holding."""
    try:
        return PortfolioLifecycleService.get_holding(db, user.id, holding_id)
    except PortfolioError as e:
        raise to_http_exception(e)


@router.put("/{holding_id}", response_model=HoldingResponse)
def edit_holding(
    holding_id: str,
    body: HoldingUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Correct buy price, quantity, targets or purchase date."""
    changes = body.model_dump(exclude_unset=True, exclude={"version"})
    try:
        return PortfolioLifecycleService.edit_terms(
            db, user.id, holding_id, changes, expected_version=body.version
        )
    except PortfolioError as e:
        raise to_http_exception(e)


@router.post("/{holding_id}/buy", response_model=HoldingResponse)
def buy_more(
    holding_id: str,
    body: BuyMoreRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Buy more shares, averaging into the existing holding."""
    try:
        return PortfolioLifecycleService.buy_more(
            db, user.id, holding_id, body.quantity, body.buy_price,
            expected_version=body.version,
        )
    except PortfolioError as e:
        raise to_http_exception(e)


@router.post("/{holding_id}/sell", response_model=SellResponse)
def sell(
    holding_id: str,
    body: SellRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Sell part or all of a holding."""
    try:
        closed, remaining = PortfolioLifecycleService.sell(
            db, user.id, holding_id, body.quantity, body.sell_price, body.sell_date,
            expected_version=body.version,
        )
    except PortfolioError as e:
        raise to_http_exception(e)
    return SellResponse(
        closed_position=ClosedPositionResponse.model_validate(closed),
        remaining_holding=HoldingResponse.model_validate(remaining) if remaining else None,
    )


@router.delete("/{holding_id}", status_code=204)
def delete_holding(
    holding_id: str,
    version: int | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Remove a holding without recording a sale."""
    try:
        PortfolioLifecycleService.delete_holding(
            db, user.id, holding_id, expected_version=version
        )
    except PortfolioError as e:
        raise to_http_exception(e)

"""Closed positions API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.auth import get_current_user
from api.helpers import to_http_exception
from database import get_db
from models import User
from schemas import ClosedPositionResponse, ClosedPositionsSummaryResponse
from services import portfolio_analytics
from services.exceptions import PortfolioError
from services.lifecycle_service import PortfolioLifecycleService

router = APIRouter(prefix="/api/closed-positions", tags=["closed-positions"])


@router.get("", response_model=list[ClosedPositionResponse])
def list_closed_positions(
    user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    """List closed positions, most recent sale first."""
    return PortfolioLifecycleService.list_closed_positions(db, user.id)


@router.get("/summary", response_model=ClosedPositionsSummaryResponse)
def get_closed_positions_summary(
    user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    """Realized totals across all closed positions."""
    summary = portfolio_analytics.closed_positions_summary(
        PortfolioLifecycleService.list_closed_positions(db, user.id)
    )
    return ClosedPositionsSummaryResponse(
        total_realized=summary.total_realized,
        total_profit=summary.total_profit,
        total_positions=summary.total_positions,
        average_return=summary.average_return,
    )


@router.delete("/{closed_id}", status_code=204)
def delete_closed_position(
    closed_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a closed-position record."""
    try:
        PortfolioLifecycleService.delete_closed_position(db, user.id, closed_id)
    except PortfolioError as e:
        raise to_http_exception(e)

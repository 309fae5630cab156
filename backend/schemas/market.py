"""Pydantic schemas for quotes, refresh results and market widgets."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class QuoteResponse(BaseModel):
    """A single quote."""

    symbol: str
    current_price: Decimal
    previous_close: Optional[Decimal] = None
    day_change: Decimal
    day_change_percent: Decimal
    name: Optional[str] = None
    sector: Optional[str] = None


class RefreshResponse(BaseModel):
    """Outcome of refreshing a user's prices.

    ``failed`` maps each ticker whose quote could not be fetched to the
    reason; those rows keep their last known price.
    """

    requested: int
    updated: int
    failed: dict[str, str] = {}


class IndexQuoteResponse(BaseModel):
    """One market index widget."""

    key: str
    label: str
    symbol: str
    value: Optional[Decimal] = None
    change: Optional[Decimal] = None
    change_percent: Optional[Decimal] = None
    error: Optional[str] = None


class MarketStatusResponse(BaseModel):
    """Whether the exchange is currently in its regular session."""

    is_open: bool
    timezone: str
    checked_at: datetime

"""Pydantic schemas for watchlist entries."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from utils.ticker import normalize_ticker


class WatchlistEntryCreate(BaseModel):
    """Schema for adding a ticker to the watchlist."""

    ticker: str
    name: Optional[str] = None
    sector: Optional[str] = None
    target_price: Optional[Decimal] = Field(default=None, gt=0)
    stop_loss: Optional[Decimal] = Field(default=None, gt=0)
    notes: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("ticker")
    @classmethod
    def normalize(cls, v: str) -> str:
        return normalize_ticker(v)


class WatchlistEntryUpdate(BaseModel):
    """Schema for editing a watchlist entry."""

    target_price: Optional[Decimal] = Field(default=None, gt=0)
    stop_loss: Optional[Decimal] = Field(default=None, gt=0)
    notes: Optional[str] = Field(default=None, max_length=2000)


class PromoteRequest(BaseModel):
    """Schema for buying a watchlisted ticker."""

    quantity: int = Field(gt=0)
    buy_price: Decimal = Field(gt=0)
    purchase_date: date = Field(default_factory=date.today)
    average_into_existing: bool = False


class WatchlistEntryResponse(BaseModel):
    """Schema for WatchlistEntry API response."""

    id: str
    ticker: str
    name: str
    sector: Optional[str] = None
    current_price: Decimal
    day_change: Decimal
    day_change_percent: Decimal
    target_price: Optional[Decimal] = None
    stop_loss: Optional[Decimal] = None
    notes: Optional[str] = None
    added_date: date
    last_updated: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

"""Pydantic schemas for holdings, sells and closed positions."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from utils.ticker import normalize_ticker


class HoldingCreate(BaseModel):
    """Schema for adding a new holding directly."""

    ticker: str
    quantity: int = Field(gt=0)
    buy_price: Decimal = Field(gt=0)
    purchase_date: date = Field(default_factory=date.today)
    name: Optional[str] = None
    sector: Optional[str] = None
    current_price: Optional[Decimal] = Field(default=None, ge=0)  # Skips the quote lookup when set
    target_price: Optional[Decimal] = Field(default=None, gt=0)
    stop_loss: Optional[Decimal] = Field(default=None, gt=0)

    @field_validator("ticker")
    @classmethod
    def normalize(cls, v: str) -> str:
        return normalize_ticker(v)


class HoldingUpdate(BaseModel):
    """Schema for correcting the terms of a holding.

    ``version`` is the holding version the client last saw; when given,
    the edit is rejected if the holding has changed since.
    """

    buy_price: Optional[Decimal] = Field(default=None, gt=0)
    quantity: Optional[int] = Field(default=None, gt=0)
    target_price: Optional[Decimal] = Field(default=None, gt=0)
    stop_loss: Optional[Decimal] = Field(default=None, gt=0)
    purchase_date: Optional[date] = None
    version: Optional[int] = None


class BuyMoreRequest(BaseModel):
    """Schema for buying more of an existing holding."""

    quantity: int = Field(gt=0)
    buy_price: Decimal = Field(gt=0)
    version: Optional[int] = None


class SellRequest(BaseModel):
    """Schema for selling part or all of a holding."""

    quantity: int = Field(gt=0)
    sell_price: Decimal = Field(gt=0)
    sell_date: date = Field(default_factory=date.today)
    version: Optional[int] = None


class HoldingResponse(BaseModel):
    """Schema for Holding API response."""

    id: str
    ticker: str
    name: str
    sector: Optional[str] = None
    quantity: int
    buy_price: Decimal
    current_price: Decimal
    invested: Decimal
    current_value: Decimal
    pl: Decimal
    pl_percent: Decimal
    day_change: Decimal
    day_change_percent: Decimal
    target_price: Optional[Decimal] = None
    stop_loss: Optional[Decimal] = None
    purchase_date: date
    last_updated: Optional[datetime] = None
    version: int

    model_config = ConfigDict(from_attributes=True)


class ClosedPositionResponse(BaseModel):
    """Schema for ClosedPosition API response."""

    id: str
    ticker: str
    name: str
    sector: Optional[str] = None
    quantity: int
    buy_price: Decimal
    sell_price: Decimal
    invested: Decimal
    realized: Decimal
    pl: Decimal
    pl_percent: Decimal
    purchase_date: date
    closed_date: date
    holding_period: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SellResponse(BaseModel):
    """Result of a sell: the new sale record and what is left, if anything."""

    closed_position: ClosedPositionResponse
    remaining_holding: Optional[HoldingResponse] = None


class SectorAllocationItem(BaseModel):
    """Share of current portfolio value in one sector."""

    sector: str
    value: Decimal
    percent: Decimal


class PortfolioSummaryResponse(BaseModel):
    """Totals and breakdowns across all open holdings."""

    total_invested: Decimal
    total_current_value: Decimal
    total_pl: Decimal
    total_pl_percent: Decimal
    todays_pl: Decimal
    holdings_count: int
    sector_allocation: list[SectorAllocationItem] = []
    top_performers: list[HoldingResponse] = []
    top_holdings: list[HoldingResponse] = []


class ClosedPositionsSummaryResponse(BaseModel):
    """Totals across all closed positions."""

    total_realized: Decimal
    total_profit: Decimal
    total_positions: int
    average_return: Decimal


class ActivityResponse(BaseModel):
    """One entry of the recent-activity feed."""

    type: str  # "buy" / "watchlist" / "sell"
    ticker: str
    title: str
    subtitle: str
    activity_date: date

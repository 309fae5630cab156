"""Pydantic request/response schemas."""

from .auth import LoginRequest, LoginResponse, RegisterRequest, UserResponse
from .market import IndexQuoteResponse, MarketStatusResponse, QuoteResponse, RefreshResponse
from .portfolio import (
    ActivityResponse,
    BuyMoreRequest,
    ClosedPositionResponse,
    ClosedPositionsSummaryResponse,
    HoldingCreate,
    HoldingResponse,
    HoldingUpdate,
    PortfolioSummaryResponse,
    SectorAllocationItem,
    SellRequest,
    SellResponse,
)
from .watchlist import (
    PromoteRequest,
    WatchlistEntryCreate,
    WatchlistEntryResponse,
    WatchlistEntryUpdate,
)

__all__ = [
    "ActivityResponse",
    "BuyMoreRequest",
    "ClosedPositionResponse",
    "ClosedPositionsSummaryResponse",
    "HoldingCreate",
    "HoldingResponse",
    "HoldingUpdate",
    "IndexQuoteResponse",
    "LoginRequest",
    "LoginResponse",
    "MarketStatusResponse",
    "PortfolioSummaryResponse",
    "PromoteRequest",
    "QuoteResponse",
    "RefreshResponse",
    "RegisterRequest",
    "SectorAllocationItem",
    "SellRequest",
    "SellResponse",
    "UserResponse",
    "WatchlistEntryCreate",
    "WatchlistEntryResponse",
    "WatchlistEntryUpdate",
]

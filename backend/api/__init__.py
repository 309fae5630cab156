"""API route handlers."""
from . import auth, closed_positions, market_data, portfolio, watchlist

__all__ = ["auth", "closed_positions", "market_data", "portfolio", "watchlist"]

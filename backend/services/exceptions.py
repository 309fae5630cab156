"""Typed exception hierarchy for portfolio operations.

Services raise these; route handlers translate them to HTTP responses
(see ``api.helpers.to_http_exception``). Input problems also subclass
``ValueError`` so generic ``except ValueError`` handling keeps working.
"""

from typing import Optional


class PortfolioError(Exception):
    """Base exception for all portfolio domain errors."""

    pass


class InvalidInputError(PortfolioError, ValueError):
    """Bad input: non-positive quantity or price, missing field, bad date.

    Carries the offending field name so the caller can tie the message
    to a form input.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class InvalidQuantityError(InvalidInputError):
    """A quantity that must be positive was not."""

    def __init__(self, message: str, field: str = "quantity"):
        super().__init__(message, field)


class InsufficientQuantityError(InvalidInputError):
    """Attempt to sell more shares than are held."""

    def __init__(self, requested: int, available: int):
        self.requested = requested
        self.available = available
        super().__init__(
            f"Cannot sell {requested} shares; only {available} held",
            field="quantity",
        )


class DuplicateTickerError(PortfolioError):
    """The ticker is already active (held or watchlisted) for this user."""

    def __init__(self, ticker: str, location: str = "portfolio"):
        self.ticker = ticker
        self.location = location
        super().__init__(f"{ticker} is already in your {location}")


class NotFoundError(PortfolioError):
    """Unknown id or ticker for this user."""

    pass


class ConcurrentModificationError(PortfolioError):
    """The row changed between read and write; the caller's write lost."""

    pass


class StoreUnavailableError(PortfolioError):
    """The database could not be reached; the request made no changes."""

    pass


class RefreshInProgressError(PortfolioError):
    """A quote refresh cycle is already running."""

    pass

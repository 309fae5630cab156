"""Market data provider protocol definitions.

Defines the quote shape consumed by the refresh service and the
valuation engine, the per-ticker error marker, and the interface that
quote providers implement.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Protocol, Union


@dataclass(frozen=True)
class Quote:
    """A point-in-time price snapshot for one ticker."""

    symbol: str  # The user-facing ticker, not the provider symbol
    current_price: Decimal
    previous_close: Optional[Decimal] = None
    day_change: Decimal = Decimal("0")
    day_change_percent: Decimal = Decimal("0")
    name: Optional[str] = None
    sector: Optional[str] = None


@dataclass(frozen=True)
class QuoteError:
    """Marker standing in for a quote that could not be fetched.

    Consumers must leave previously stored prices untouched when they see
    one of these.
    """

    symbol: str
    message: str


QuoteResult = Union[Quote, QuoteError]


class QuoteProvider(Protocol):
    """Protocol for quote providers.

    Implementations fetch the latest price for a single ticker from an
    external source.
    """

    @property
    def provider_name(self) -> str:
        """Return the provider name (e.g., 'yahoo')."""
        ...

    def fetch_quote(self, ticker: str) -> Quote:
        """Fetch the latest quote for a ticker.

        Args:
            ticker: User-facing ticker symbol (e.g. ``RELIANCE``) or an
                    index symbol (e.g. ``^NSEI``).

        Returns:
            The quote, with ``symbol`` set to the ticker that was asked for.

        Raises:
            QuoteUnavailableError: The provider had no usable price.
            ProviderError: Any other provider failure.
        """
        ...

"""Mock implementations for external services."""

import threading
import time
from decimal import Decimal

from integrations.exceptions import ProviderConnectionError, QuoteUnavailableError
from integrations.market_data_protocol import Quote


def make_quote(
    symbol: str,
    price: str,
    previous_close: str | None = None,
    name: str | None = None,
    sector: str | None = None,
) -> Quote:
    """Build a Quote with day change derived from the previous close."""
    current = Decimal(price)
    prev = Decimal(previous_close) if previous_close is not None else current
    change = current - prev
    return Quote(
        symbol=symbol,
        current_price=current,
        previous_close=prev,
        day_change=change,
        day_change_percent=change / prev * 100,
        name=name,
        sector=sector,
    )


SAMPLE_QUOTES = {
    "RELIANCE": make_quote("RELIANCE", "2600", "2550", "Reliance Industries Ltd", "Energy"),
    "TCS": make_quote("TCS", "3600", "3580", "Tata Consultancy Services Ltd", "Technology"),
    "INFY": make_quote("INFY", "1500", "1520", "Infosys Ltd", "Technology"),
    "HDFCBANK": make_quote("HDFCBANK", "1650", "1640", "HDFC Bank Ltd", "Financial Services"),
    "^NSEI": make_quote("^NSEI", "24350.45", "24225.15", "NIFTY 50"),
    "^BSESN": make_quote("^BSESN", "79825.15", "79914.60", "S&P BSE SENSEX"),
    "^NSEBANK": make_quote("^NSEBANK", "51234.80", "51000.30", "NIFTY BANK"),
}


class MockQuoteProvider:
    """Mock quote provider for testing.

    Tickers missing from ``quotes`` raise QuoteUnavailableError. Tickers in
    ``failing`` raise a connection error; tickers in ``slow`` sleep for
    ``delay`` seconds before answering.
    """

    def __init__(
        self,
        quotes: dict[str, Quote] | None = None,
        failing: set[str] | None = None,
        slow: set[str] | None = None,
        delay: float = 0.0,
        name: str = "mock",
    ):
        self._quotes = quotes or {}
        self._failing = failing or set()
        self._slow = slow or set()
        self._delay = delay
        self._name = name
        self._lock = threading.Lock()
        self.calls: list[str] = []

    @property
    def provider_name(self) -> str:
        return self._name

    def fetch_quote(self, ticker: str) -> Quote:
        with self._lock:
            self.calls.append(ticker)
        if ticker in self._slow:
            time.sleep(self._delay)
        if ticker in self._failing:
            raise ProviderConnectionError(f"Connection reset for {ticker}", self._name)
        if ticker not in self._quotes:
            raise QuoteUnavailableError(ticker, provider_name=self._name)
        return self._quotes[ticker]


class BlockingQuoteProvider(MockQuoteProvider):
    """Quote provider that holds every request until ``release`` is set."""

    def __init__(self, quotes: dict[str, Quote] | None = None):
        super().__init__(quotes=quotes)
        self.started = threading.Event()
        self.release = threading.Event()

    def fetch_quote(self, ticker: str) -> Quote:
        self.started.set()
        self.release.wait(timeout=5)
        return super().fetch_quote(ticker)

"""Yahoo Finance quote provider implementation."""

import logging
import math
from decimal import Decimal
from typing import Any, Optional

import yfinance as yf

from config import settings
from integrations.exceptions import ProviderConnectionError, QuoteUnavailableError
from integrations.market_data_protocol import Quote
from utils.ticker import is_index_symbol, to_provider_symbol

logger = logging.getLogger(__name__)


def _to_decimal(value: Any) -> Optional[Decimal]:
    """Convert a yfinance float to Decimal, treating NaN/None/<=0 as missing."""
    if value is None:
        return None
    try:
        as_float = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(as_float) or as_float <= 0:
        return None
    return Decimal(str(round(as_float, 6)))


def _read_fast_info(fast_info: Any, key: str) -> Any:
    """Read one field from ``Ticker.fast_info``, returning None when absent."""
    try:
        return fast_info[key]
    except (KeyError, TypeError, AttributeError):
        return None


class YahooFinanceClient:
    """Quote provider using Yahoo Finance (yfinance library).

    Bare tickers are looked up on the configured exchange by appending
    ``QUOTE_SYMBOL_SUFFIX`` (``.NS`` for NSE); index symbols such as
    ``^NSEI`` are passed through.
    """

    def __init__(self, symbol_suffix: Optional[str] = None):
        self._suffix = settings.QUOTE_SYMBOL_SUFFIX if symbol_suffix is None else symbol_suffix

    @property
    def provider_name(self) -> str:
        return "yahoo"

    def fetch_quote(self, ticker: str) -> Quote:
        """Fetch the latest price, previous close, name and sector.

        Price fields come from ``fast_info``; the descriptive fields come
        from ``info``, which is a separate request and is allowed to fail
        without failing the quote.

        Raises:
            QuoteUnavailableError: Yahoo returned no usable last price.
            ProviderConnectionError: The request itself failed.
        """
        symbol = to_provider_symbol(ticker, self._suffix)
        logger.debug("Yahoo Finance: fetching quote for %s (%s)", ticker, symbol)

        try:
            yf_ticker = yf.Ticker(symbol)
            fast_info = yf_ticker.fast_info
            last_price = _to_decimal(_read_fast_info(fast_info, "lastPrice"))
            previous_close = _to_decimal(_read_fast_info(fast_info, "previousClose"))
        except Exception as e:
            raise ProviderConnectionError(
                f"Yahoo Finance request failed for {symbol}: {e}",
                provider_name=self.provider_name,
            ) from e

        current_price = last_price or previous_close
        if current_price is None:
            raise QuoteUnavailableError(
                ticker,
                f"Yahoo Finance returned no price for {symbol}",
                provider_name=self.provider_name,
            )

        if previous_close is not None:
            day_change = current_price - previous_close
            day_change_percent = day_change / previous_close * Decimal("100")
        else:
            day_change = Decimal("0")
            day_change_percent = Decimal("0")

        name, sector = self._fetch_profile(yf_ticker, symbol, ticker)

        return Quote(
            symbol=ticker,
            current_price=current_price,
            previous_close=previous_close,
            day_change=day_change,
            day_change_percent=day_change_percent,
            name=name,
            sector=sector,
        )

    @staticmethod
    def _fetch_profile(yf_ticker: Any, symbol: str, ticker: str) -> tuple[Optional[str], Optional[str]]:
        """Return (name, sector) from ``Ticker.info``, or Nones on failure."""
        try:
            info = yf_ticker.info or {}
        except Exception:
            logger.debug("Yahoo Finance: no profile for %s", symbol, exc_info=True)
            return None, None

        name = info.get("longName") or info.get("shortName")
        sector = None
        if not is_index_symbol(ticker):
            sector = info.get("sector") or info.get("industry")
        return name, sector

"""Market-wide widgets: benchmark index quotes and exchange session status."""

import logging
from dataclasses import dataclass
from datetime import datetime, time, timezone
from decimal import Decimal
from typing import Optional
from zoneinfo import ZoneInfo

from config import settings
from integrations.market_data_protocol import QuoteError
from services.quote_refresh_service import QuoteRefreshService

logger = logging.getLogger(__name__)

MARKET_OPEN = time(9, 15)
MARKET_CLOSE = time(15, 30)


@dataclass(frozen=True)
class MarketIndex:
    key: str
    label: str
    symbol: str


INDICES = (
    MarketIndex("nifty", "NIFTY 50", "^NSEI"),
    MarketIndex("sensex", "SENSEX", "^BSESN"),
    MarketIndex("banknifty", "BANK NIFTY", "^NSEBANK"),
    MarketIndex("finnifty", "FIN NIFTY", "NIFTY_FIN_SERVICE.NS"),
)


@dataclass(frozen=True)
class IndexQuote:
    """Latest level of one index, or the reason it is missing."""

    key: str
    label: str
    symbol: str
    value: Optional[Decimal] = None
    change: Optional[Decimal] = None
    change_percent: Optional[Decimal] = None
    error: Optional[str] = None


def is_market_open(now: Optional[datetime] = None, tz_name: Optional[str] = None) -> bool:
    """Whether the exchange is in its regular session at ``now``.

    Regular session is Monday to Friday, 09:15 to 15:30 inclusive, in
    ``MARKET_TIMEZONE``. Exchange holidays are not modelled. A naive
    ``now`` is taken to be UTC.
    """
    tz = ZoneInfo(tz_name or settings.MARKET_TIMEZONE)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local = now.astimezone(tz)
    if local.weekday() >= 5:
        return False
    return MARKET_OPEN <= local.time().replace(second=0, microsecond=0) <= MARKET_CLOSE


class MarketService:
    """Benchmark index quotes, fetched through the quote refresh service."""

    def __init__(self, refresh_service: Optional[QuoteRefreshService] = None):
        self._refresh_service = refresh_service

    @property
    def refresh_service(self) -> QuoteRefreshService:
        if self._refresh_service is None:
            self._refresh_service = QuoteRefreshService()
        return self._refresh_service

    def get_indices(self) -> list[IndexQuote]:
        """Fetch all benchmark indices; a failed index carries its error."""
        results = self.refresh_service.refresh_quotes(index.symbol for index in INDICES)
        quotes = []
        for index in INDICES:
            result = results.get(index.symbol)
            if result is None or isinstance(result, QuoteError):
                message = result.message if result is not None else "No data"
                logger.warning("Index quote failed for %s: %s", index.symbol, message)
                quotes.append(IndexQuote(index.key, index.label, index.symbol, error=message))
                continue
            quotes.append(
                IndexQuote(
                    key=index.key,
                    label=index.label,
                    symbol=index.symbol,
                    value=result.current_price,
                    change=result.day_change,
                    change_percent=result.day_change_percent,
                )
            )
        return quotes

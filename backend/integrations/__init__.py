"""External API integrations.

This package contains:
- Market data protocol: Quote shape, error marker, and provider interface
- Yahoo Finance client: Quote provider backed by yfinance
- Typed provider exceptions
"""

from integrations.market_data_protocol import Quote, QuoteError, QuoteProvider, QuoteResult

__all__ = [
    "Quote",
    "QuoteError",
    "QuoteProvider",
    "QuoteResult",
]

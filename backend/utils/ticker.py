"""Utility functions for handling ticker symbols."""

import re

_TICKER_RE = re.compile(r"^\^?[A-Z0-9][A-Z0-9&._-]{0,49}$")


def normalize_ticker(ticker: str) -> str:
    """Strip whitespace and uppercase a user-entered ticker.

    Raises:
        ValueError: If the result is empty or contains characters that
                    never appear in exchange symbols.
    """
    cleaned = (ticker or "").strip().upper()
    if not _TICKER_RE.match(cleaned):
        raise ValueError(f"Invalid ticker symbol: {ticker!r}")
    return cleaned


def is_index_symbol(ticker: str) -> bool:
    """Check if ticker is a market index (Yahoo's ``^`` prefix)."""
    return ticker.startswith("^")


def to_provider_symbol(ticker: str, suffix: str) -> str:
    """Map a user ticker to the symbol the quote provider expects.

    Bare tickers get the exchange suffix appended (``RELIANCE`` ->
    ``RELIANCE.NS``). Indices and symbols that already carry an exchange
    suffix are passed through unchanged.
    """
    if not suffix or is_index_symbol(ticker) or "." in ticker:
        return ticker
    return f"{ticker}{suffix}"

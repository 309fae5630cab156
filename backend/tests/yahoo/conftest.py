"""Live Yahoo Finance fixtures."""

import pytest

from integrations.yahoo_finance_client import YahooFinanceClient


@pytest.fixture
def yahoo_client():
    """Real client pinned to NSE listings, whatever the local .env says."""
    return YahooFinanceClient(symbol_suffix=".NS")

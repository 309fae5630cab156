"""Quote refresh service - fetches live prices and applies them to a portfolio."""

import logging
import threading
import time
import weakref
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from config import settings
from integrations.exceptions import ProviderError
from integrations.market_data_protocol import Quote, QuoteError, QuoteProvider, QuoteResult
from services.exceptions import RefreshInProgressError
from services.lifecycle_service import PortfolioLifecycleService

logger = logging.getLogger(__name__)


@dataclass
class RefreshOutcome:
    """Result of refreshing one user's prices."""

    requested: int
    updated: int
    failed: dict[str, str] = field(default_factory=dict)


class QuoteRefreshService:
    """Fetches quotes for many tickers without letting one slow ticker stall the rest.

    Requests run on a thread pool of at most ``QUOTE_MAX_WORKERS`` threads.
    Each ticker has its own ``QUOTE_TIMEOUT_SECONDS`` deadline; a ticker that
    misses it, or whose provider call fails, is reported as a ``QuoteError``
    and never fails the batch.
    """

    # One refresh cycle per user at a time; a second one is skipped, not queued.
    # Entries live only while a cycle (or caller) holds the lock object.
    _user_locks: "weakref.WeakValueDictionary[str, threading.Lock]" = (
        weakref.WeakValueDictionary()
    )
    _user_locks_guard = threading.Lock()

    def __init__(
        self,
        provider: Optional[QuoteProvider] = None,
        timeout_seconds: Optional[float] = None,
        max_workers: Optional[int] = None,
    ):
        """Initialize with optional provider for dependency injection.

        Args:
            provider: Quote provider. If None, a YahooFinanceClient is
                     created on first use.
            timeout_seconds: Per-ticker deadline; defaults to settings.
            max_workers: Thread pool bound; defaults to settings.
        """
        self._provider = provider
        self._timeout = (
            settings.QUOTE_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        )
        self._max_workers = settings.QUOTE_MAX_WORKERS if max_workers is None else max_workers

    @property
    def provider(self) -> QuoteProvider:
        """Get the quote provider, creating if not provided."""
        if self._provider is None:
            from integrations.yahoo_finance_client import YahooFinanceClient

            self._provider = YahooFinanceClient()
        return self._provider

    @classmethod
    def _lock_for(cls, user_id: str) -> threading.Lock:
        with cls._user_locks_guard:
            lock = cls._user_locks.get(user_id)
            if lock is None:
                lock = threading.Lock()
                cls._user_locks[user_id] = lock
            return lock

    @classmethod
    def is_refresh_in_progress(cls, user_id: str) -> bool:
        """Check if a refresh cycle is currently running for a user."""
        lock = cls._lock_for(user_id)
        acquired = lock.acquire(blocking=False)
        if acquired:
            lock.release()
            return False
        return True

    def fetch_quote(self, ticker: str) -> Quote:
        """Fetch a single quote, raising the provider's error on failure."""
        return self.provider.fetch_quote(ticker)

    def _fetch_one(self, ticker: str) -> QuoteResult:
        try:
            return self.provider.fetch_quote(ticker)
        except ProviderError as e:
            return QuoteError(symbol=ticker, message=str(e))
        except Exception as e:
            logger.exception("Unexpected error fetching quote for %s", ticker)
            return QuoteError(symbol=ticker, message=f"Unexpected error: {e}")

    def refresh_quotes(self, tickers: Iterable[str]) -> dict[str, QuoteResult]:
        """Fetch quotes for a set of tickers.

        Tickers are requested in batches of at most ``max_workers``; each
        batch gets a fresh pool so a thread stuck on a timed-out request
        never delays the next batch.

        Returns:
            Dict mapping every requested ticker to a Quote or QuoteError.
        """
        unique = sorted(set(tickers))
        results: dict[str, QuoteResult] = {}
        if not unique:
            return results

        batch_size = max(1, self._max_workers)
        for start in range(0, len(unique), batch_size):
            batch = unique[start:start + batch_size]
            executor = ThreadPoolExecutor(
                max_workers=len(batch), thread_name_prefix="quote-refresh"
            )
            try:
                started = time.monotonic()
                futures = {ticker: executor.submit(self._fetch_one, ticker) for ticker in batch}
                for ticker, future in futures.items():
                    remaining = max(0.0, started + self._timeout - time.monotonic())
                    try:
                        results[ticker] = future.result(timeout=remaining)
                    except FutureTimeoutError:
                        future.cancel()
                        results[ticker] = QuoteError(
                            symbol=ticker,
                            message=f"Timed out after {self._timeout:g}s",
                        )
            finally:
                executor.shutdown(wait=False, cancel_futures=True)

        failed = [t for t, r in results.items() if isinstance(r, QuoteError)]
        logger.info(
            "Quote refresh: %d requested, %d ok, %d failed",
            len(unique), len(unique) - len(failed), len(failed),
        )
        return results

    def refresh_user(self, db: Session, user_id: str) -> RefreshOutcome:
        """Refresh prices for everything a user holds or watches.

        Raises:
            RefreshInProgressError: A refresh for this user is already running.
        """
        lock = self._lock_for(user_id)
        if not lock.acquire(blocking=False):
            logger.info("Quote refresh already running for user %s, skipping", user_id)
            raise RefreshInProgressError("A price refresh is already in progress")

        try:
            tickers = {h.ticker for h in PortfolioLifecycleService.list_holdings(db, user_id)}
            tickers |= {w.ticker for w in PortfolioLifecycleService.list_watchlist(db, user_id)}

            quotes = self.refresh_quotes(tickers)
            failed = {}
            for ticker, result in quotes.items():
                if isinstance(result, QuoteError):
                    logger.warning(
                        "price refresh failed for %s, using last known value: %s",
                        ticker, result.message,
                    )
                    failed[ticker] = result.message

            updated = PortfolioLifecycleService.apply_quotes(db, user_id, quotes)
            return RefreshOutcome(requested=len(tickers), updated=updated, failed=failed)
        finally:
            lock.release()

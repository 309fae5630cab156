"""Service for moving tickers between watchlist, holdings and closed positions.

Each public method is one lifecycle transition for one user and runs in
exactly one database transaction: it commits when the transition is
complete and rolls back on any failure. Multi-row moves (watchlist entry
to holding, holding to closed position) therefore never leave half the
change behind.

All arithmetic is delegated to ``services.valuation``.
"""

import logging
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Iterator, Mapping, Optional

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from integrations.market_data_protocol import Quote, QuoteResult
from models import ClosedPosition, Holding, WatchlistEntry
from services import valuation
from services.exceptions import (
    ConcurrentModificationError,
    DuplicateTickerError,
    InvalidInputError,
    NotFoundError,
    StoreUnavailableError,
)
from services.valuation import ZERO, HoldingState
from utils.ticker import normalize_ticker

logger = logging.getLogger(__name__)

# Fields a user may correct on an open holding.
EDITABLE_HOLDING_FIELDS = frozenset(
    {"buy_price", "quantity", "target_price", "stop_loss", "purchase_date"}
)
EDITABLE_WATCHLIST_FIELDS = frozenset({"target_price", "stop_loss", "notes"})


@contextmanager
def _transaction(db: Session, ticker: Optional[str] = None) -> Iterator[None]:
    """Commit the enclosed work, or roll all of it back.

    Translates store-level failures into domain errors:
    ``StaleDataError`` (a version check failed) becomes
    ``ConcurrentModificationError``, ``OperationalError`` becomes
    ``StoreUnavailableError`` and a unique-constraint ``IntegrityError``
    on ``ticker`` becomes ``DuplicateTickerError``.
    """
    try:
        yield
        db.commit()
    except StaleDataError as e:
        db.rollback()
        raise ConcurrentModificationError(
            "The holding was changed by another request; reload and try again"
        ) from e
    except OperationalError as e:
        db.rollback()
        logger.error("Database unavailable, transaction rolled back: %s", e)
        raise StoreUnavailableError("Database unavailable; no changes were saved") from e
    except IntegrityError as e:
        db.rollback()
        if ticker is not None:
            raise DuplicateTickerError(ticker) from e
        raise
    except Exception:
        db.rollback()
        raise


def holding_state(holding: Holding) -> HoldingState:
    """Detach an ORM holding into a valuation-engine state."""
    return HoldingState(
        ticker=holding.ticker,
        name=holding.name,
        quantity=holding.quantity,
        buy_price=holding.buy_price,
        current_price=holding.current_price if holding.current_price is not None else ZERO,
        purchase_date=holding.purchase_date,
        sector=holding.sector,
        day_change=holding.day_change if holding.day_change is not None else ZERO,
        day_change_percent=(
            holding.day_change_percent if holding.day_change_percent is not None else ZERO
        ),
        target_price=holding.target_price,
        stop_loss=holding.stop_loss,
        last_updated=holding.last_updated,
        invested=holding.invested if holding.invested is not None else ZERO,
        current_value=holding.current_value if holding.current_value is not None else ZERO,
        pl=holding.pl if holding.pl is not None else ZERO,
        pl_percent=holding.pl_percent if holding.pl_percent is not None else ZERO,
    )


def _write_state(holding: Holding, state: HoldingState) -> None:
    """Copy a valuation-engine state onto an ORM holding."""
    holding.ticker = state.ticker
    holding.name = state.name
    holding.sector = state.sector
    holding.quantity = state.quantity
    holding.buy_price = state.buy_price
    holding.current_price = state.current_price
    holding.invested = state.invested
    holding.current_value = state.current_value
    holding.pl = state.pl
    holding.pl_percent = state.pl_percent
    holding.day_change = state.day_change
    holding.day_change_percent = state.day_change_percent
    holding.target_price = state.target_price
    holding.stop_loss = state.stop_loss
    holding.purchase_date = state.purchase_date
    holding.last_updated = state.last_updated


def _apply_quote_to_entry(entry: WatchlistEntry, quote: Quote, as_of: datetime) -> None:
    entry.current_price = quote.current_price
    entry.day_change = quote.day_change
    entry.day_change_percent = quote.day_change_percent
    entry.name = quote.name or entry.name
    entry.sector = quote.sector or entry.sector
    entry.last_updated = as_of


def _clean_ticker(ticker: str) -> str:
    try:
        return normalize_ticker(ticker)
    except ValueError as e:
        raise InvalidInputError(str(e), field="ticker") from e


def _check_optional_price(value: Optional[Decimal], field: str) -> None:
    if value is not None and value <= ZERO:
        raise InvalidInputError(f"{field.replace('_', ' ').capitalize()} must be positive", field=field)


def _check_version(holding: Holding, expected_version: Optional[int]) -> None:
    if expected_version is not None and expected_version != holding.version:
        raise ConcurrentModificationError(
            f"{holding.ticker} was modified (now version {holding.version}, "
            f"you had version {expected_version}); reload and try again"
        )


class PortfolioLifecycleService:
    """Lifecycle transitions for one user's watchlist, holdings and sales."""

    # --- Queries ---

    @staticmethod
    def list_holdings(db: Session, user_id: str) -> list[Holding]:
        """Open holdings, most recently added first."""
        return (
            db.query(Holding)
            .filter(Holding.user_id == user_id)
            .order_by(Holding.created_at.desc(), Holding.ticker.asc())
            .all()
        )

    @staticmethod
    def list_watchlist(db: Session, user_id: str) -> list[WatchlistEntry]:
        """Watchlist entries, most recently added first."""
        return (
            db.query(WatchlistEntry)
            .filter(WatchlistEntry.user_id == user_id)
            .order_by(WatchlistEntry.created_at.desc(), WatchlistEntry.ticker.asc())
            .all()
        )

    @staticmethod
    def list_closed_positions(db: Session, user_id: str) -> list[ClosedPosition]:
        """Closed positions, most recent sale first."""
        return (
            db.query(ClosedPosition)
            .filter(ClosedPosition.user_id == user_id)
            .order_by(ClosedPosition.closed_date.desc(), ClosedPosition.created_at.desc())
            .all()
        )

    @staticmethod
    def get_holding(db: Session, user_id: str, holding_id: str) -> Holding:
        """Fetch one of the user's holdings or raise NotFoundError."""
        holding = (
            db.query(Holding)
            .filter(Holding.id == holding_id, Holding.user_id == user_id)
            .first()
        )
        if holding is None:
            raise NotFoundError(f"Holding {holding_id} not found")
        return holding

    @staticmethod
    def get_watchlist_entry(db: Session, user_id: str, entry_id: str) -> WatchlistEntry:
        """Fetch one of the user's watchlist entries or raise NotFoundError."""
        entry = (
            db.query(WatchlistEntry)
            .filter(WatchlistEntry.id == entry_id, WatchlistEntry.user_id == user_id)
            .first()
        )
        if entry is None:
            raise NotFoundError(f"Watchlist entry {entry_id} not found")
        return entry

    @staticmethod
    def find_holding_by_ticker(db: Session, user_id: str, ticker: str) -> Optional[Holding]:
        return (
            db.query(Holding)
            .filter(Holding.user_id == user_id, Holding.ticker == ticker)
            .first()
        )

    @staticmethod
    def find_watchlist_entry_by_ticker(
        db: Session, user_id: str, ticker: str
    ) -> Optional[WatchlistEntry]:
        return (
            db.query(WatchlistEntry)
            .filter(WatchlistEntry.user_id == user_id, WatchlistEntry.ticker == ticker)
            .first()
        )

    # --- Watchlist ---

    @staticmethod
    def add_to_watchlist(
        db: Session,
        user_id: str,
        ticker: str,
        name: Optional[str] = None,
        sector: Optional[str] = None,
        target_price: Optional[Decimal] = None,
        stop_loss: Optional[Decimal] = None,
        notes: Optional[str] = None,
        quote: Optional[QuoteResult] = None,
    ) -> WatchlistEntry:
        """Start tracking a ticker without owning it.

        Raises:
            DuplicateTickerError: The ticker is already held or watchlisted.
        """
        ticker = _clean_ticker(ticker)
        _check_optional_price(target_price, "target_price")
        _check_optional_price(stop_loss, "stop_loss")

        with _transaction(db, ticker):
            if PortfolioLifecycleService.find_holding_by_ticker(db, user_id, ticker):
                raise DuplicateTickerError(ticker, "portfolio")
            if PortfolioLifecycleService.find_watchlist_entry_by_ticker(db, user_id, ticker):
                raise DuplicateTickerError(ticker, "watchlist")

            live = quote if isinstance(quote, Quote) else None
            entry = WatchlistEntry(
                user_id=user_id,
                ticker=ticker,
                name=name or (live.name if live else None) or ticker,
                sector=sector or (live.sector if live else None),
                current_price=ZERO,
                day_change=ZERO,
                day_change_percent=ZERO,
                target_price=target_price,
                stop_loss=stop_loss,
                notes=notes,
                added_date=date.today(),
            )
            if live is not None:
                _apply_quote_to_entry(entry, live, datetime.now(timezone.utc))
            db.add(entry)

        logger.info("Watchlist add: %s (user %s)", ticker, user_id)
        return entry

    @staticmethod
    def update_watchlist_entry(
        db: Session, user_id: str, entry_id: str, changes: Mapping[str, Any]
    ) -> WatchlistEntry:
        """Edit target price, stop loss or notes of a watchlist entry.

        Keys present in ``changes`` are written (None clears the field).
        """
        unknown = set(changes) - EDITABLE_WATCHLIST_FIELDS
        if unknown:
            raise InvalidInputError(
                f"Cannot edit watchlist fields: {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0],
            )
        _check_optional_price(changes.get("target_price"), "target_price")
        _check_optional_price(changes.get("stop_loss"), "stop_loss")

        with _transaction(db):
            entry = PortfolioLifecycleService.get_watchlist_entry(db, user_id, entry_id)
            for key, value in changes.items():
                setattr(entry, key, value)

        logger.info("Watchlist update: %s (user %s)", entry.ticker, user_id)
        return entry

    @staticmethod
    def remove_from_watchlist(db: Session, user_id: str, entry_id: str) -> None:
        """Stop tracking a ticker."""
        with _transaction(db):
            entry = PortfolioLifecycleService.get_watchlist_entry(db, user_id, entry_id)
            ticker = entry.ticker
            db.delete(entry)

        logger.info("Watchlist remove: %s (user %s)", ticker, user_id)

    @staticmethod
    def promote_to_holding(
        db: Session,
        user_id: str,
        entry_id: str,
        quantity: int,
        buy_price: Decimal,
        purchase_date: date,
        average_into_existing: bool = False,
    ) -> Holding:
        """Buy a watchlisted ticker.

        Deletes the watchlist entry and creates the holding in one
        transaction. The new holding inherits the entry's name, sector,
        target, stop loss and last price.

        If a holding for the ticker already exists, raises
        DuplicateTickerError unless ``average_into_existing`` is set, in
        which case the buy is averaged into that holding instead.
        """
        with _transaction(db):
            entry = PortfolioLifecycleService.get_watchlist_entry(db, user_id, entry_id)
            ticker = entry.ticker
            existing = PortfolioLifecycleService.find_holding_by_ticker(db, user_id, ticker)

            if existing is not None:
                if not average_into_existing:
                    raise DuplicateTickerError(ticker, "portfolio")
                state = valuation.average_in(holding_state(existing), quantity, buy_price)
                _write_state(existing, state)
                holding = existing
            else:
                state = valuation.new_holding(
                    ticker=ticker,
                    name=entry.name,
                    quantity=quantity,
                    buy_price=buy_price,
                    purchase_date=purchase_date,
                    current_price=entry.current_price if entry.current_price else None,
                    sector=entry.sector,
                    target_price=entry.target_price,
                    stop_loss=entry.stop_loss,
                )
                state = replace(
                    state,
                    day_change=entry.day_change or ZERO,
                    day_change_percent=entry.day_change_percent or ZERO,
                    last_updated=entry.last_updated,
                )
                holding = Holding(user_id=user_id)
                _write_state(holding, state)
                db.add(holding)

            db.delete(entry)

        logger.info(
            "Promoted %s from watchlist: %d @ %s (user %s)",
            ticker, quantity, buy_price, user_id,
        )
        return holding

    # --- Holdings ---

    @staticmethod
    def add_holding(
        db: Session,
        user_id: str,
        ticker: str,
        quantity: int,
        buy_price: Decimal,
        purchase_date: date,
        name: Optional[str] = None,
        sector: Optional[str] = None,
        current_price: Optional[Decimal] = None,
        target_price: Optional[Decimal] = None,
        stop_loss: Optional[Decimal] = None,
        quote: Optional[QuoteResult] = None,
    ) -> Holding:
        """Open a new position.

        A watchlist entry for the same ticker is removed in the same
        transaction. The position is marked at ``current_price`` if given,
        else at the quote, else at the entry's last price, else at the buy
        price.

        Raises:
            DuplicateTickerError: The ticker is already held; use
                                  ``buy_more`` to average in.
        """
        ticker = _clean_ticker(ticker)
        _check_optional_price(target_price, "target_price")
        _check_optional_price(stop_loss, "stop_loss")

        with _transaction(db, ticker):
            if PortfolioLifecycleService.find_holding_by_ticker(db, user_id, ticker):
                raise DuplicateTickerError(ticker, "portfolio")
            entry = PortfolioLifecycleService.find_watchlist_entry_by_ticker(db, user_id, ticker)

            mark_price = current_price
            if mark_price is None and entry is not None and entry.current_price:
                mark_price = entry.current_price

            state = valuation.new_holding(
                ticker=ticker,
                name=name or (entry.name if entry else None) or ticker,
                quantity=quantity,
                buy_price=buy_price,
                purchase_date=purchase_date,
                current_price=mark_price,
                sector=sector or (entry.sector if entry else None),
                target_price=target_price or (entry.target_price if entry else None),
                stop_loss=stop_loss or (entry.stop_loss if entry else None),
            )
            if current_price is None and quote is not None:
                state = valuation.apply_quote(state, quote)

            holding = Holding(user_id=user_id)
            _write_state(holding, state)
            db.add(holding)
            if entry is not None:
                db.delete(entry)

        logger.info(
            "Holding added: %s %d @ %s (user %s)", ticker, quantity, buy_price, user_id
        )
        return holding

    @staticmethod
    def buy_more(
        db: Session,
        user_id: str,
        holding_id: str,
        quantity: int,
        buy_price: Decimal,
        expected_version: Optional[int] = None,
    ) -> Holding:
        """Average a further buy into an existing holding."""
        with _transaction(db):
            holding = PortfolioLifecycleService.get_holding(db, user_id, holding_id)
            _check_version(holding, expected_version)
            state = valuation.average_in(holding_state(holding), quantity, buy_price)
            _write_state(holding, state)

        logger.info(
            "Averaged into %s: +%d @ %s, now %d (user %s)",
            holding.ticker, quantity, buy_price, holding.quantity, user_id,
        )
        return holding

    @staticmethod
    def sell(
        db: Session,
        user_id: str,
        holding_id: str,
        quantity: int,
        sell_price: Decimal,
        sell_date: date,
        expected_version: Optional[int] = None,
    ) -> tuple[ClosedPosition, Optional[Holding]]:
        """Sell part or all of a holding.

        Always records one ClosedPosition. A full sell deletes the holding;
        a partial sell reduces its quantity at the original buy price.

        Returns:
            (closed position, remaining holding or None)
        """
        with _transaction(db):
            holding = PortfolioLifecycleService.get_holding(db, user_id, holding_id)
            _check_version(holding, expected_version)
            result = valuation.close_out(holding_state(holding), quantity, sell_price, sell_date)

            values = result.closed_position
            closed = ClosedPosition(
                user_id=user_id,
                ticker=values.ticker,
                name=values.name,
                sector=values.sector,
                quantity=values.quantity,
                buy_price=values.buy_price,
                sell_price=values.sell_price,
                invested=values.invested,
                realized=values.realized,
                pl=values.pl,
                pl_percent=values.pl_percent,
                purchase_date=values.purchase_date,
                closed_date=values.closed_date,
                holding_period=values.holding_period,
            )
            db.add(closed)

            if result.remaining is None:
                db.delete(holding)
                remaining = None
            else:
                _write_state(holding, result.remaining)
                remaining = holding

        logger.info(
            "Sold %s: %d @ %s, P&L %s (%s) (user %s)",
            values.ticker, quantity, sell_price, values.pl,
            "closed" if remaining is None else f"{remaining.quantity} left", user_id,
        )
        return closed, remaining

    @staticmethod
    def edit_terms(
        db: Session,
        user_id: str,
        holding_id: str,
        changes: Mapping[str, Any],
        expected_version: Optional[int] = None,
    ) -> Holding:
        """Correct the recorded terms of a holding and re-derive its value.

        Keys present in ``changes`` are applied; ``target_price`` and
        ``stop_loss`` may be None to clear them. Correcting ``buy_price``
        or ``quantity`` resets the cost basis to their product.
        """
        unknown = set(changes) - EDITABLE_HOLDING_FIELDS
        if unknown:
            raise InvalidInputError(
                f"Cannot edit holding fields: {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0],
            )
        for field in ("buy_price", "quantity", "purchase_date"):
            if field in changes and changes[field] is None:
                raise InvalidInputError(f"{field} cannot be cleared", field=field)
        _check_optional_price(changes.get("target_price"), "target_price")
        _check_optional_price(changes.get("stop_loss"), "stop_loss")

        with _transaction(db):
            holding = PortfolioLifecycleService.get_holding(db, user_id, holding_id)
            _check_version(holding, expected_version)
            state = replace(holding_state(holding), **dict(changes))
            valuation.validate_terms(state.quantity, state.buy_price, state.current_price)
            if "buy_price" in changes or "quantity" in changes:
                state = valuation.restate(state)
            else:
                state = valuation.revalue(state)
            _write_state(holding, state)

        logger.info(
            "Holding edited: %s (%s) (user %s)",
            holding.ticker, ", ".join(sorted(changes)), user_id,
        )
        return holding

    @staticmethod
    def delete_holding(
        db: Session,
        user_id: str,
        holding_id: str,
        expected_version: Optional[int] = None,
    ) -> None:
        """Discard a holding without recording a sale."""
        with _transaction(db):
            holding = PortfolioLifecycleService.get_holding(db, user_id, holding_id)
            _check_version(holding, expected_version)
            ticker = holding.ticker
            db.delete(holding)

        logger.info("Holding deleted without sale: %s (user %s)", ticker, user_id)

    # --- Closed positions ---

    @staticmethod
    def delete_closed_position(db: Session, user_id: str, closed_id: str) -> None:
        """Delete a closed-position record."""
        with _transaction(db):
            closed = (
                db.query(ClosedPosition)
                .filter(ClosedPosition.id == closed_id, ClosedPosition.user_id == user_id)
                .first()
            )
            if closed is None:
                raise NotFoundError(f"Closed position {closed_id} not found")
            ticker = closed.ticker
            db.delete(closed)

        logger.info("Closed position deleted: %s (user %s)", ticker, user_id)

    # --- Prices ---

    @staticmethod
    def apply_quotes(
        db: Session,
        user_id: str,
        quotes: Mapping[str, QuoteResult],
        as_of: Optional[datetime] = None,
    ) -> int:
        """Write refreshed prices onto the user's holdings and watchlist.

        Tickers missing from ``quotes`` or mapped to an error marker keep
        their last known prices.

        Returns:
            Number of rows (holdings plus watchlist entries) updated.
        """
        as_of = as_of or datetime.now(timezone.utc)
        updated = 0

        with _transaction(db):
            for holding in PortfolioLifecycleService.list_holdings(db, user_id):
                quote = quotes.get(holding.ticker)
                if not isinstance(quote, Quote):
                    continue
                _write_state(holding, valuation.apply_quote(holding_state(holding), quote, as_of))
                updated += 1

            for entry in PortfolioLifecycleService.list_watchlist(db, user_id):
                quote = quotes.get(entry.ticker)
                if not isinstance(quote, Quote):
                    continue
                _apply_quote_to_entry(entry, quote, as_of)
                updated += 1

        return updated

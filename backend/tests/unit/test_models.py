"""Tests for database models and their constraints."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from models import ClosedPosition, Holding, WatchlistEntry
from tests.fixtures import create_holding


class TestHolding:
    def test_version_starts_at_one_and_increments(self, db, holding):
        assert holding.version == 1

        holding.stop_loss = Decimal("2000")
        db.commit()

        assert holding.version == 2

    def test_unique_ticker_per_user(self, db, user, holding):
        with pytest.raises(IntegrityError):
            create_holding(db, user, ticker="RELIANCE")
        db.rollback()

    def test_same_ticker_for_different_users(self, db, other_user, holding):
        theirs = create_holding(db, other_user, ticker="RELIANCE")
        assert theirs.id != holding.id

    def test_quantity_must_be_positive(self, db, user):
        db.add(
            Holding(
                user_id=user.id,
                ticker="BAD",
                name="Bad",
                quantity=0,
                buy_price=Decimal("1"),
                purchase_date=date(2024, 1, 1),
            )
        )
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()


class TestWatchlistEntry:
    def test_defaults(self, db, user):
        entry = WatchlistEntry(user_id=user.id, ticker="TCS", name="TCS")
        db.add(entry)
        db.commit()

        assert entry.added_date == date.today()
        assert entry.current_price == Decimal("0")
        assert entry.notes is None

    def test_unique_ticker_per_user(self, db, user, watchlist_entry):
        db.add(WatchlistEntry(user_id=user.id, ticker="TCS", name="TCS again"))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()


class TestClosedPosition:
    def test_sell_price_must_be_positive(self, db, user):
        db.add(
            ClosedPosition(
                user_id=user.id,
                ticker="INFY",
                name="Infosys",
                quantity=1,
                buy_price=Decimal("1"),
                sell_price=Decimal("0"),
                invested=Decimal("1"),
                realized=Decimal("0"),
                pl=Decimal("-1"),
                pl_percent=Decimal("-100"),
                purchase_date=date(2024, 1, 1),
                closed_date=date(2024, 1, 2),
                holding_period="1 day",
            )
        )
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()

    def test_multiple_sales_of_same_ticker_allowed(self, db, user, closed_position):
        db.add(
            ClosedPosition(
                user_id=user.id,
                ticker="INFY",
                name="Infosys",
                quantity=1,
                buy_price=Decimal("1400"),
                sell_price=Decimal("1600"),
                invested=Decimal("1400"),
                realized=Decimal("1600"),
                pl=Decimal("200"),
                pl_percent=Decimal("14.28571429"),
                purchase_date=date(2023, 6, 1),
                closed_date=date(2024, 3, 1),
                holding_period="9 months 4 days",
            )
        )
        db.commit()

        assert db.query(ClosedPosition).filter(ClosedPosition.ticker == "INFY").count() == 2

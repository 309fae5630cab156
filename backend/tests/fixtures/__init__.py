"""Test fixtures and sample data."""
import pytest
from datetime import date
from decimal import Decimal

from models import ClosedPosition, Holding, User, WatchlistEntry
from services import valuation
from services.auth_service import hash_password
from sqlalchemy.orm import Session


def create_user(db: Session, username: str = "alice", password: str = "correct-horse") -> User:
    """Create a user; hashing is cheap under the test CryptContext."""
    user = User(username=username, password_hash=hash_password(password))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_holding(
    db: Session,
    user: User,
    ticker: str = "RELIANCE",
    quantity: int = 10,
    buy_price: Decimal = Decimal("2400"),
    current_price: Decimal | None = None,
    purchase_date: date = date(2024, 1, 1),
    sector: str | None = "Energy",
    day_change: Decimal = Decimal("0"),
    day_change_percent: Decimal = Decimal("0"),
) -> Holding:
    """Create a valued holding directly in the database.

    Args:
        db: Database session
        user: Owner
        ticker: Ticker symbol
        quantity: Shares held
        buy_price: Average cost per share
        current_price: Latest price; defaults to buy_price
        purchase_date: Date bought
        sector: Sector label
        day_change: Per-share change today
        day_change_percent: Percent change today

    Returns:
        The created Holding
    """
    price = buy_price if current_price is None else current_price
    values = valuation.value_holding(quantity, buy_price, price)
    holding = Holding(
        user_id=user.id,
        ticker=ticker,
        name=f"{ticker} Ltd",
        sector=sector,
        quantity=quantity,
        buy_price=buy_price,
        current_price=price,
        invested=values.invested,
        current_value=values.current_value,
        pl=values.pl,
        pl_percent=values.pl_percent,
        day_change=day_change,
        day_change_percent=day_change_percent,
        purchase_date=purchase_date,
    )
    db.add(holding)
    db.commit()
    db.refresh(holding)
    return holding


def create_watchlist_entry(
    db: Session,
    user: User,
    ticker: str = "TCS",
    current_price: Decimal = Decimal("3500"),
    added_date: date = date(2024, 1, 5),
) -> WatchlistEntry:
    """Create a watchlist entry directly in the database."""
    entry = WatchlistEntry(
        user_id=user.id,
        ticker=ticker,
        name=f"{ticker} Ltd",
        sector="Technology",
        current_price=current_price,
        day_change=Decimal("0"),
        day_change_percent=Decimal("0"),
        target_price=Decimal("4000"),
        added_date=added_date,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


@pytest.fixture
def user(db):
    """The logged-in test user."""
    return create_user(db)


@pytest.fixture
def other_user(db):
    """A second user whose data must stay invisible to ``user``."""
    return create_user(db, username="bob")


@pytest.fixture
def holding(db, user):
    """10 RELIANCE @ 2400, marked at 2500."""
    return create_holding(db, user, current_price=Decimal("2500"))


@pytest.fixture
def watchlist_entry(db, user):
    """TCS on the watchlist at 3500."""
    return create_watchlist_entry(db, user)


@pytest.fixture
def closed_position(db, user):
    """A closed sale of 5 INFY bought at 1400, sold at 1500."""
    position = ClosedPosition(
        user_id=user.id,
        ticker="INFY",
        name="Infosys Ltd",
        sector="Technology",
        quantity=5,
        buy_price=Decimal("1400"),
        sell_price=Decimal("1500"),
        invested=Decimal("7000"),
        realized=Decimal("7500"),
        pl=Decimal("500"),
        pl_percent=Decimal("7.14285714"),
        purchase_date=date(2023, 6, 1),
        closed_date=date(2024, 2, 1),
        holding_period="8 months 5 days",
    )
    db.add(position)
    db.commit()
    db.refresh(position)
    return position

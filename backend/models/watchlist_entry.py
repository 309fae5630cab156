"""WatchlistEntry model - a tracked but unowned ticker."""

from datetime import date
from decimal import Decimal

from sqlalchemy import Column, Date, DateTime, ForeignKey, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid, utc_now


class WatchlistEntry(Base):
    """A ticker the user follows without holding it."""

    __tablename__ = "watchlist_entries"
    __table_args__ = (
        UniqueConstraint("user_id", "ticker", name="uix_watchlist_user_ticker"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    ticker = Column(String(50), nullable=False)
    name = Column(String(255), nullable=False)
    sector = Column(String(100), nullable=True)
    current_price = Column(Numeric(18, 4), nullable=False, default=Decimal("0"))
    day_change = Column(Numeric(18, 4), nullable=False, default=Decimal("0"))
    day_change_percent = Column(Numeric(18, 8), nullable=False, default=Decimal("0"))
    target_price = Column(Numeric(18, 4), nullable=True)
    stop_loss = Column(Numeric(18, 4), nullable=True)
    notes = Column(Text, nullable=True)
    added_date = Column(Date, nullable=False, default=date.today)
    last_updated = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utc_now)

    user = relationship("User", back_populates="watchlist_entries")

"""Holding model - an open, owned position."""

from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid, utc_now


class Holding(Base):
    """An open position in one ticker for one user.

    ``invested``, ``current_value``, ``pl`` and ``pl_percent`` are derived
    from quantity and prices by the valuation engine and stored so list
    views do not need to recompute them. ``version`` is the optimistic
    concurrency counter: every UPDATE or DELETE is conditional on the
    version that was read.
    """

    __tablename__ = "holdings"
    __table_args__ = (
        UniqueConstraint("user_id", "ticker", name="uix_holding_user_ticker"),
        CheckConstraint("quantity > 0", name="ck_holding_quantity_positive"),
        CheckConstraint("buy_price > 0", name="ck_holding_buy_price_positive"),
        CheckConstraint("current_price >= 0", name="ck_holding_current_price_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    ticker = Column(String(50), nullable=False)
    name = Column(String(255), nullable=False)
    sector = Column(String(100), nullable=True)
    quantity = Column(Integer, nullable=False)
    buy_price = Column(Numeric(18, 4), nullable=False)
    current_price = Column(Numeric(18, 4), nullable=False, default=Decimal("0"))
    invested = Column(Numeric(18, 4), nullable=False, default=Decimal("0"))
    current_value = Column(Numeric(18, 4), nullable=False, default=Decimal("0"))
    pl = Column(Numeric(18, 4), nullable=False, default=Decimal("0"))
    pl_percent = Column(Numeric(18, 8), nullable=False, default=Decimal("0"))
    day_change = Column(Numeric(18, 4), nullable=False, default=Decimal("0"))
    day_change_percent = Column(Numeric(18, 8), nullable=False, default=Decimal("0"))
    target_price = Column(Numeric(18, 4), nullable=True)
    stop_loss = Column(Numeric(18, 4), nullable=True)
    purchase_date = Column(Date, nullable=False)
    last_updated = Column(DateTime, nullable=True)  # Last successful price refresh
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(
        DateTime,
        default=utc_now,
        onupdate=utc_now,
    )

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    user = relationship("User", back_populates="holdings")

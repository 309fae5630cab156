"""ClosedPosition model - an immutable record of one sell action."""

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid, utc_now


class ClosedPosition(Base):
    """A completed sale, full or partial.

    Each sell creates exactly one row. Rows are never updated afterwards;
    the user may only delete them.
    """

    __tablename__ = "closed_positions"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_closed_position_quantity_positive"),
        CheckConstraint("sell_price > 0", name="ck_closed_position_sell_price_positive"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    ticker = Column(String(50), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    sector = Column(String(100), nullable=True)
    quantity = Column(Integer, nullable=False)
    buy_price = Column(Numeric(18, 4), nullable=False)
    sell_price = Column(Numeric(18, 4), nullable=False)
    invested = Column(Numeric(18, 4), nullable=False)
    realized = Column(Numeric(18, 4), nullable=False)
    pl = Column(Numeric(18, 4), nullable=False)
    pl_percent = Column(Numeric(18, 8), nullable=False)
    purchase_date = Column(Date, nullable=False)
    closed_date = Column(Date, nullable=False)
    holding_period = Column(String(50), nullable=False)  # e.g. "1 month 15 days"
    created_at = Column(DateTime, default=utc_now)

    user = relationship("User", back_populates="closed_positions")

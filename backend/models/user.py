"""User and session models - the owners of every portfolio row."""

from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid, utc_now


class User(Base):
    """A registered user.

    Deleting a user removes their holdings, watchlist, closed positions
    and sessions.
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    username = Column(String(64), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=True)
    password_hash = Column(String, nullable=False)  # bcrypt, via passlib
    created_at = Column(DateTime, default=utc_now)

    # Relationships
    holdings = relationship("Holding", back_populates="user", cascade="all, delete-orphan")
    watchlist_entries = relationship(
        "WatchlistEntry", back_populates="user", cascade="all, delete-orphan"
    )
    closed_positions = relationship(
        "ClosedPosition", back_populates="user", cascade="all, delete-orphan"
    )
    sessions = relationship("UserSession", back_populates="user", cascade="all, delete-orphan")


class UserSession(Base):
    """An opaque login token issued to a user."""

    __tablename__ = "user_sessions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token = Column(String(64), nullable=False, unique=True, index=True)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=utc_now)

    user = relationship("User", back_populates="sessions")

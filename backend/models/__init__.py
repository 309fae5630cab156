"""SQLAlchemy ORM models."""

from .closed_position import ClosedPosition
from .holding import Holding
from .user import User, UserSession
from .utils import generate_uuid
from .watchlist_entry import WatchlistEntry

__all__ = ["ClosedPosition", "Holding", "User", "UserSession", "WatchlistEntry", "generate_uuid"]

"""Database setup and session management."""

import logging
from functools import lru_cache

from sqlalchemy import create_engine, event
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from config import settings

logger = logging.getLogger(__name__)

# Milliseconds a writer waits on a locked SQLite file before the
# statement fails with OperationalError ("database is locked").
SQLITE_BUSY_TIMEOUT_MS = 5000


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def _attach_sqlite_pragmas(engine) -> None:
    """Register a ``connect`` listener enabling foreign keys and a busy timeout.

    SQLite ships with foreign-key enforcement off, so ``ON DELETE
    CASCADE`` from ``users`` would otherwise be ignored.
    """

    @event.listens_for(engine, "connect")
    def _set_pragmas(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS}")
        cursor.close()


@lru_cache
def get_engine():
    """Get or create the database engine (cached)."""
    database_url = settings.DATABASE_URL
    is_sqlite = database_url.startswith("sqlite")

    engine = create_engine(
        database_url,
        # Request handlers run in a threadpool; one connection may serve several threads
        connect_args={"check_same_thread": False} if is_sqlite else {},
        echo=False,
    )
    if is_sqlite:
        _attach_sqlite_pragmas(engine)

    logger.info("Database engine created for %s", engine.url.render_as_string(hide_password=True))
    return engine


def get_session_local():
    """Get a sessionmaker bound to the engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def init_db() -> None:
    """Create any missing tables.

    Alembic owns schema changes for deployed databases; this only makes a
    fresh checkout usable without running migrations first.
    """
    import models  # noqa: F401  (registers all mappers on Base.metadata)

    Base.metadata.create_all(bind=get_engine())


def get_db():
    """Dependency that provides a database session.

    Transaction conventions:
    - ``PortfolioLifecycleService`` owns its transactions: each transition
      commits on success and rolls back on any failure, so a multi-row move
      (watchlist -> holding, holding -> closed position) is all-or-nothing.
    - ``QuoteRefreshService.refresh_user`` commits through
      ``PortfolioLifecycleService.apply_quotes``.
    - ``AuthService`` commits its own writes.
    - Read-only routes never commit.
    """
    SessionLocal = get_session_local()
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

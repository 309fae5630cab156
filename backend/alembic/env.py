"""Alembic environment: migrates the database named by settings.DATABASE_URL."""

from alembic import context

import models  # noqa: F401  (registers all mappers on Base.metadata)
from database import Base, get_engine

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit SQL without connecting."""
    context.configure(
        url=str(get_engine().url),
        target_metadata=target_metadata,
        literal_binds=True,
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations against a live connection."""
    with get_engine().connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

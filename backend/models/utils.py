"""Shared column defaults for ORM models."""

import uuid
from datetime import datetime, timezone


def generate_uuid() -> str:
    """Primary keys are UUID4 strings."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Timestamp default for ``created_at`` / ``updated_at`` columns."""
    return datetime.now(timezone.utc)

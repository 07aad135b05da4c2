"""Shared SQLAlchemy declarative base and schema helpers for all models."""

from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base

# Single Base for all models to ensure metadata consistency
# and allow foreign key relationships across model modules
Base = declarative_base()


def utcnow() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def strip_text(value):
    """Strip surrounding whitespace from submitted text fields.

    Used as a ``mode="before"`` validator so that ``min_length`` constraints
    reject values made only of whitespace.
    """
    if isinstance(value, str):
        return value.strip()
    return value


def reject_null(value):
    """Refuse an explicit ``null`` on a partial-update field.

    Used as a ``mode="before"`` validator on fields backed by NOT NULL
    columns. Omitting the field still leaves the column unchanged.
    """
    if value is None:
        raise ValueError("Field cannot be null")
    return value

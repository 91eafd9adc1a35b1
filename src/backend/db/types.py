"""
SQLAlchemy Type Decorators.

Provides timezone-safe datetime storage for expiry comparisons.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, TypeDecorator


class UTCDateTime(TypeDecorator):
    """
    SQLAlchemy type that always stores and returns aware UTC datetimes.

    Usage in models:
        expires_at: Mapped[datetime] = mapped_column(UTCDateTime())

    PostgreSQL keeps the offset natively; SQLite stores naive text, so
    values are normalized to UTC before binding and tagged as UTC when read.
    Comparisons in SQL (e.g. ``expires_at > :now``) are then consistent on
    both backends.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        """Normalize to UTC before storing."""
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("UTCDateTime requires timezone-aware datetimes")
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        """Return aware UTC datetimes regardless of backend."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)

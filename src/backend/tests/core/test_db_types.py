"""
Tests for the UTC datetime column type.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from db.types import UTCDateTime, utcnow


def _dialect(name: str) -> MagicMock:
    dialect = MagicMock()
    dialect.name = name
    return dialect


@pytest.mark.unit
class TestUTCDateTime:
    """Test UTCDateTime bind and result processing."""

    def test_sqlite_binds_naive_utc(self) -> None:
        value = datetime(2026, 1, 1, 18, 0, tzinfo=timezone(timedelta(hours=6)))
        bound = UTCDateTime().process_bind_param(value, _dialect("sqlite"))
        assert bound == datetime(2026, 1, 1, 12, 0)

    def test_postgresql_keeps_offset(self) -> None:
        value = datetime(2026, 1, 1, 18, 0, tzinfo=timezone(timedelta(hours=6)))
        bound = UTCDateTime().process_bind_param(value, _dialect("postgresql"))
        assert bound == value
        assert bound.tzinfo == timezone.utc

    def test_rejects_naive(self) -> None:
        with pytest.raises(ValueError):
            UTCDateTime().process_bind_param(datetime(2026, 1, 1), _dialect("sqlite"))

    def test_result_tagged_utc(self) -> None:
        result = UTCDateTime().process_result_value(datetime(2026, 1, 1, 12, 0), _dialect("sqlite"))
        assert result == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_none_passthrough(self) -> None:
        assert UTCDateTime().process_bind_param(None, _dialect("sqlite")) is None
        assert UTCDateTime().process_result_value(None, _dialect("sqlite")) is None

    def test_utcnow_is_aware(self) -> None:
        assert utcnow().utcoffset() == timedelta(0)

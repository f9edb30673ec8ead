from datetime import datetime, timezone
from typing import Union

from dateutil import parser as date_parser


class DateUtils:
    """
    Timestamp helpers for stored carts

    Databases hand timestamps back in different shapes (aware datetimes on
    PostgreSQL, naive datetimes or strings on SQLite). Everything that
    leaves the repository is normalized to an aware UTC datetime.
    """

    UTC = timezone.utc

    @classmethod
    def now_utc(cls) -> datetime:
        """Get current UTC datetime - always use this for database storage"""
        return datetime.now(cls.UTC)

    @classmethod
    def to_utc(cls, dt: datetime) -> datetime:
        """Convert datetime to UTC, assuming UTC for naive values"""
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=cls.UTC)

        return dt.astimezone(cls.UTC)

    @classmethod
    def parse_iso_string(cls, date_string: str) -> datetime:
        """
        Parse ISO 8601 date string to datetime

        Handles various formats:
        - 2026-01-03T10:30:00Z
        - 2026-01-03T10:30:00+00:00
        - 2026-01-03 10:30:00.123456
        """
        try:
            parsed_dt = date_parser.isoparse(date_string)
        except (ValueError, TypeError) as e:
            raise ValueError(f"Invalid date format: {date_string}") from e

        return cls.to_utc(parsed_dt)

    @classmethod
    def coerce(cls, value: Union[datetime, str]) -> datetime:
        """Normalize a database timestamp value to an aware UTC datetime"""
        if isinstance(value, datetime):
            return cls.to_utc(value)
        return cls.parse_iso_string(value)

    @classmethod
    def to_iso_string(cls, dt: datetime) -> str:
        """Convert datetime to ISO 8601 string"""
        return cls.to_utc(dt).isoformat()

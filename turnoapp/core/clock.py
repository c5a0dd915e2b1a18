from datetime import UTC, datetime, tzinfo
from zoneinfo import ZoneInfo

from turnoapp.core.config import settings


def _server_tz() -> tzinfo:
    if settings.timezone.upper() == "UTC":
        return UTC
    return ZoneInfo(settings.timezone)


def local_now() -> datetime:
    """Naive wall-clock time in the server's configured zone.

    Schedule blocks and appointments are stored as local dates and times of day,
    so "now" is compared against them without tzinfo.
    """
    return datetime.now(_server_tz()).replace(tzinfo=None)


def utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)

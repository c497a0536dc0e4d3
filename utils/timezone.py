"""Time helpers.

Timestamps are stored and compared in UTC. The workshop's own calendar
(Asia/Kolkata by default) only matters at the edges, chiefly for the
year embedded in booking, job card and invoice numbers.
"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def now_utc() -> datetime:
    """Timezone-aware current time. Use instead of datetime.now()."""
    return datetime.now(timezone.utc)


def _zone(tz_name: str) -> ZoneInfo:
    try:
        return ZoneInfo(tz_name)
    except (KeyError, ValueError, ZoneInfoNotFoundError):
        raise ValueError(f"Unknown timezone: {tz_name}") from None


def to_local(dt: datetime, tz_name: str) -> datetime:
    """
    Same instant in the named IANA zone.

    Raises:
        ValueError: naive datetime, or a zone name the tz database lacks.
    """
    if dt.tzinfo is None:
        raise ValueError("Cannot convert naive datetime. Datetime must be timezone-aware.")
    return dt.astimezone(_zone(tz_name))


def local_year(tz_name: str, at: datetime | None = None) -> int:
    """Calendar year in tz_name at `at` (default: now)."""
    return to_local(at or now_utc(), tz_name).year


"""Date and time helpers shared by adapters and the aggregator."""
import logging
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from dateutil import parser as dtparser

logger = logging.getLogger(__name__)

YEAR_GUESS_WINDOW_DAYS = 180
DEFAULT_STALE_HOURS = 5
DEFAULT_LOCAL_TIMEZONE = 'Europe/Paris'


def local_iso(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> str:
    """
    Build a local wall-clock timestamp without offset.

    Raises:
        ValueError: If the fields do not form a valid date/time
    """
    return datetime(year, month, day, hour, minute).strftime('%Y-%m-%dT%H:%M:%S')


def utc_iso(value: datetime) -> str:
    """Format an aware datetime as a UTC instant (``...Z``)."""
    return value.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


def guess_year(day: int, month: int, today: Optional[date] = None) -> int:
    """
    Infer the year of a day/month pair published without one.

    Starts from the current year and moves one year forward when the date
    would be more than 180 days in the past, or one year back when it would
    be more than 180 days in the future. When that year has no such date
    (29 February), the closest year around today that has one is used.

    Args:
        day: Day of month
        month: Month number (1-12)
        today: Reference date (default: today)

    Returns:
        The inferred year

    Raises:
        ValueError: If day/month is not a valid date in any nearby year
    """
    today = today or date.today()

    try:
        delta = (date(today.year, month, day) - today).days
    except ValueError:
        delta = None

    if delta is not None:
        year = today.year
        if delta < -YEAR_GUESS_WINDOW_DAYS:
            year += 1
        elif delta > YEAR_GUESS_WINDOW_DAYS:
            year -= 1
        if _is_valid_date(year, month, day):
            return year

    candidates = [
        date(year, month, day)
        for year in (today.year, today.year + 1, today.year - 1)
        if _is_valid_date(year, month, day)
    ]
    if not candidates:
        raise ValueError(f"{day:02d}/{month:02d} is not a valid date")
    return min(candidates, key=lambda candidate: abs((candidate - today).days)).year


def _is_valid_date(year: int, month: int, day: int) -> bool:
    try:
        date(year, month, day)
    except ValueError:
        return False
    return True


def parse_timestamp(value: Optional[str], local_tz: tzinfo) -> Optional[datetime]:
    """
    Parse a feed timestamp into an aware datetime.

    Values without offset are local wall-clock times in ``local_tz``.

    Returns:
        Aware datetime, or None when the value cannot be parsed
    """
    if not value:
        return None

    try:
        parsed = dtparser.isoparse(value)
    except (ValueError, OverflowError):
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=local_tz)
    return parsed


def is_stale(
    start: Optional[str],
    now: datetime,
    local_tz: tzinfo,
    max_past_hours: float = DEFAULT_STALE_HOURS
) -> bool:
    """
    Check whether an event started more than ``max_past_hours`` ago.

    Unparsable timestamps are never stale.
    """
    parsed = parse_timestamp(start, local_tz)
    if parsed is None:
        logger.debug(f"Keeping event with unparsable start: {start!r}")
        return False
    return parsed < now - timedelta(hours=max_past_hours)


def load_timezone(name: str) -> tzinfo:
    """Resolve an IANA zone name, falling back to UTC for unknown names."""
    try:
        return ZoneInfo(name)
    except (KeyError, ValueError):
        logger.warning(f"Unknown timezone {name!r}, using UTC")
        return timezone.utc

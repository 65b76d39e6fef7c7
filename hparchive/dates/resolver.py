"""Date and timezone arithmetic for the daily publish cycle.

All functions are pure: "now" is only read when no reference instant is given.
"""
import re
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Iterable, Optional

from hparchive.dates.markets import load_zone
from hparchive.errors import ArchiveError, ErrorKind

TIMESTAMP_RE = re.compile(r"^\d{12}$")
TIMESTAMP_FORMAT = "%Y%m%d%H%M"


def _aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def format_offset(offset: Optional[timedelta]) -> str:
    """Format a UTC offset as "+hh:mm"."""
    if offset is None:
        return "+00:00"
    minutes = int(offset.total_seconds()) // 60
    sign = "-" if minutes < 0 else "+"
    hours, minutes = divmod(abs(minutes), 60)
    return f"{sign}{hours:02d}:{minutes:02d}"


def offset_name(tz: tzinfo, at: Optional[datetime] = None) -> str:
    """Get the UTC offset of "tz" at "at" (default: now), e.g. "+05:30"."""
    moment = _aware(at) if at is not None else datetime.now(timezone.utc)
    return format_offset(moment.astimezone(tz).utcoffset())


def today(tz: Optional[tzinfo] = None, reference: Optional[datetime] = None) -> datetime:
    """Get local midnight of the current day in "tz".

    When "reference" is given it replaces the current instant, and "tz"
    defaults to the reference's own zone.
    """
    if reference is not None:
        reference = _aware(reference)
        tz = tz or reference.tzinfo
        local = reference.astimezone(tz)
    else:
        tz = tz or timezone.utc
        local = datetime.now(tz)
    return datetime.combine(local.date(), time(), tzinfo=tz)


def days_ago(date: datetime, reference_today: Optional[datetime] = None) -> int:
    """Get how many days ago was "date".

    Both sides are compared as calendar days in the zone of "date", so the
    result is positive for past dates and safe across DST changes.
    """
    date = _aware(date)
    current = today(date.tzinfo, reference_today)
    return (current.date() - date.date()).days


def date_before(
    index: int,
    tz: Optional[tzinfo] = None,
    reference_today: Optional[datetime] = None,
) -> datetime:
    """Get the date "index" days before today in "tz" (negative: after)."""
    current = today(tz, reference_today)
    target = current.date() - timedelta(days=index)
    return datetime.combine(target, time(), tzinfo=current.tzinfo)


def parse_provider_timestamp(raw: str) -> datetime:
    """Parse a "fullstartdate" value into a date with its own UTC offset.

    The provider encodes the UTC instant at which some timezone reached a
    new calendar day. Before 12:00 UTC that zone is west of UTC, so the
    offset is minus the time of day. From 12:00 UTC on, the zone is the one
    reaching the next UTC midnight early, so the offset is the gap up to
    that midnight and the local date is the next UTC day.
    """
    if not isinstance(raw, str) or not TIMESTAMP_RE.match(raw):
        raise ArchiveError(ErrorKind.INVALID_INPUT, f"Failed to parse full start date {raw}")
    try:
        moment = datetime.strptime(raw, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError as e:
        raise ArchiveError(
            ErrorKind.INVALID_INPUT, f"Failed to parse full start date {raw}", cause=e
        ) from e

    if moment.hour < 12:
        offset = -timedelta(hours=moment.hour, minutes=moment.minute)
        local_date = moment.date()
    else:
        next_midnight = datetime.combine(
            moment.date() + timedelta(days=1), time(), tzinfo=timezone.utc
        )
        offset = next_midnight - moment
        local_date = next_midnight.date()

    return datetime.combine(local_date, time(), tzinfo=timezone(offset))


def day_roll_status(
    timezones: Iterable[str],
    now_utc: datetime,
    reference_offset_seconds: int,
) -> dict[str, bool]:
    """Report which timezones already rolled past the reference day.

    A zone has rolled when its local date at "now_utc" is later than the
    date at the fixed reference offset.
    """
    now_utc = _aware(now_utc)
    reference = timezone(timedelta(seconds=reference_offset_seconds))
    reference_date = now_utc.astimezone(reference).date()
    status = {}
    for name in timezones:
        local_date = now_utc.astimezone(load_zone(name)).date()
        status[name] = local_date > reference_date
    return status

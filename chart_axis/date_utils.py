from __future__ import annotations

import calendar
from datetime import datetime, timedelta, timezone, tzinfo

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MILLI = timedelta(milliseconds=1)


def to_epoch_millis(dt: datetime) -> int:
    # floor division keeps pre-1970 instants on the right millisecond
    return (dt - EPOCH) // _ONE_MILLI


def from_epoch_millis(ms: int, zone: tzinfo = timezone.utc) -> datetime:
    return (EPOCH + timedelta(milliseconds=int(ms))).astimezone(zone)


def localize(dt: datetime, zone: tzinfo) -> datetime:
    """Naive datetimes are taken as wall-clock time in ``zone``; aware ones are converted."""
    if dt.tzinfo is None:
        return normalize(dt.replace(tzinfo=zone))
    return dt.astimezone(zone)


def normalize(dt: datetime) -> datetime:
    """
    Resolve a wall-clock time against its zone rules.

    Times inside a DST gap move forward by the gap length; ambiguous times
    keep the earlier offset.
    """
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).astimezone(dt.tzinfo)


def last_day_of_month(year: int, month: int) -> int:
    return int(calendar.monthrange(int(year), int(month))[1])


def add_months(dt: datetime, months: int) -> datetime:
    if months == 0:
        return dt
    total = (dt.year * 12) + (dt.month - 1) + int(months)
    year = total // 12
    month = (total % 12) + 1
    day = min(dt.day, last_day_of_month(year, month))
    return normalize(dt.replace(year=year, month=month, day=day))


def add_wall_clock(dt: datetime, delta: timedelta) -> datetime:
    # same local time of day, whatever the offset does in between
    return normalize(dt + delta)


def add_elapsed(dt: datetime, delta: timedelta) -> datetime:
    if dt.tzinfo is None:
        return dt + delta
    return (dt.astimezone(timezone.utc) + delta).astimezone(dt.tzinfo)

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from .config import TimeAxisConfig
from .date_utils import add_elapsed, add_months, add_wall_clock, localize, normalize, to_epoch_millis

log = logging.getLogger(__name__)


class TimeUnit(str, Enum):
    MILLIS = "millis"
    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"
    YEARS = "years"


_ELAPSED = {
    TimeUnit.MILLIS: timedelta(milliseconds=1),
    TimeUnit.SECONDS: timedelta(seconds=1),
    TimeUnit.MINUTES: timedelta(minutes=1),
    TimeUnit.HOURS: timedelta(hours=1),
}


@dataclass(frozen=True)
class CalendarInterval:
    unit: TimeUnit
    amount: int

    def add_to(self, dt: datetime) -> datetime:
        """
        Step ``dt`` forward by this interval.

        Years, months, weeks and days move the local calendar date and keep the
        time of day; hours and finer units move the instant.
        """
        if self.unit == TimeUnit.YEARS:
            return add_months(dt, 12 * self.amount)
        if self.unit == TimeUnit.MONTHS:
            return add_months(dt, self.amount)
        if self.unit == TimeUnit.WEEKS:
            return add_wall_clock(dt, timedelta(weeks=self.amount))
        if self.unit == TimeUnit.DAYS:
            return add_wall_clock(dt, timedelta(days=self.amount))
        return add_elapsed(dt, _ELAPSED[self.unit] * self.amount)

    def __str__(self) -> str:
        return f"{self.amount} {self.unit.value}"


# Coarsest first; the resolver walks it until a candidate is dense enough.
INTERVAL_LADDER: Tuple[CalendarInterval, ...] = (
    CalendarInterval(TimeUnit.YEARS, 10),
    CalendarInterval(TimeUnit.YEARS, 1),
    CalendarInterval(TimeUnit.MONTHS, 6),
    CalendarInterval(TimeUnit.MONTHS, 3),
    CalendarInterval(TimeUnit.MONTHS, 1),
    CalendarInterval(TimeUnit.WEEKS, 1),
    CalendarInterval(TimeUnit.DAYS, 1),
    CalendarInterval(TimeUnit.HOURS, 12),
    CalendarInterval(TimeUnit.HOURS, 6),
    CalendarInterval(TimeUnit.HOURS, 3),
    CalendarInterval(TimeUnit.HOURS, 1),
    CalendarInterval(TimeUnit.MINUTES, 30),
    CalendarInterval(TimeUnit.MINUTES, 10),
    CalendarInterval(TimeUnit.MINUTES, 5),
    CalendarInterval(TimeUnit.MINUTES, 1),
    CalendarInterval(TimeUnit.SECONDS, 15),
    CalendarInterval(TimeUnit.SECONDS, 5),
    CalendarInterval(TimeUnit.SECONDS, 1),
    CalendarInterval(TimeUnit.MILLIS, 500),
    CalendarInterval(TimeUnit.MILLIS, 100),
    CalendarInterval(TimeUnit.MILLIS, 10),
    CalendarInterval(TimeUnit.MILLIS, 1),
)


@dataclass(frozen=True)
class TemporalTick:
    """
    A tick timestamp tagged with the calendar unit that produced it.

    Two ticks at the same instant but from different granularities are not
    equal, so label caches keyed on ticks never reuse a stale label.
    """
    value: datetime
    unit: TimeUnit

    @property
    def epoch_millis(self) -> int:
        return to_epoch_millis(self.value)


@dataclass(frozen=True)
class TemporalTickSet:
    ticks: Tuple[TemporalTick, ...]
    interval: CalendarInterval

    def __len__(self) -> int:
        return len(self.ticks)

    def __iter__(self) -> Iterator[TemporalTick]:
        return iter(self.ticks)

    @property
    def values(self) -> List[datetime]:
        return [t.value for t in self.ticks]


def start_of_unit(dt: datetime, unit: TimeUnit) -> datetime:
    """Canonical start of the calendar unit enclosing ``dt`` (midnight, 1st of month, ...)."""
    if unit == TimeUnit.YEARS:
        snapped = dt.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
    elif unit == TimeUnit.MONTHS:
        snapped = dt.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    elif unit in (TimeUnit.WEEKS, TimeUnit.DAYS):
        snapped = dt.replace(hour=0, minute=0, second=0, microsecond=0)
    elif unit == TimeUnit.HOURS:
        snapped = dt.replace(minute=0, second=0, microsecond=0)
    elif unit == TimeUnit.MINUTES:
        snapped = dt.replace(second=0, microsecond=0)
    elif unit == TimeUnit.SECONDS:
        snapped = dt.replace(microsecond=0)
    else:
        snapped = dt.replace(microsecond=(dt.microsecond // 1000) * 1000)
    return normalize(snapped)


def _walk(lower: datetime, upper_ms: int, interval: CalendarInterval) -> List[datetime]:
    out: List[datetime] = []
    cur = lower
    while to_epoch_millis(cur) <= upper_ms:
        out.append(cur)
        cur = interval.add_to(cur)
    return out


def _make_dates_even(dates: List[datetime], unit: TimeUnit) -> List[datetime]:
    # bounds stay exactly as requested, only the ticks in between are snapped
    if len(dates) <= 2:
        return list(dates)
    return [dates[0]] + [start_of_unit(d, unit) for d in dates[1:-1]] + [dates[-1]]


def _drop_crowded_last(dates: List[datetime]) -> List[datetime]:
    """
    Drop the last generated tick when it sits closer to the upper bound than
    half the gap before it, e.g. a 2014-01-01 year tick right before an upper
    bound of 2014-01-03.
    """
    if len(dates) <= 2:
        return dates
    upper = to_epoch_millis(dates[-1])
    last = to_epoch_millis(dates[-2])
    previous_last = to_epoch_millis(dates[-3])
    if upper - last < (last - previous_last) // 2:
        return dates[:-2] + dates[-1:]
    return dates


def _strictly_increasing(dates: List[datetime]) -> List[datetime]:
    out: List[datetime] = []
    for d in dates:
        # later entries win, so the upper bound always survives
        while out and to_epoch_millis(out[-1]) >= to_epoch_millis(d):
            out.pop()
        out.append(d)
    return out


def resolve_temporal_ticks(
    lower: datetime,
    upper: datetime,
    axis_length_px: float,
    average_tick_gap_px: float = 100.0,
    zone: Optional[tzinfo] = None,
) -> TemporalTickSet:
    """
    Pick a calendar granularity and aligned tick timestamps for [lower, upper].

    Intervals are tried from coarsest to finest; the first one producing more
    ticks than ``axis_length_px / average_tick_gap_px`` wins, which can
    overshoot the target density at unit boundaries (2 month ticks, then 40
    week ticks). The upper bound is always the last tick; interior ticks are
    snapped to the start of their unit.
    """
    if zone is None:
        zone = lower.tzinfo or upper.tzinfo or timezone.utc
    lower = localize(lower, zone)
    upper = localize(upper, zone)
    if to_epoch_millis(upper) < to_epoch_millis(lower):
        lower, upper = upper, lower

    upper_ms = to_epoch_millis(upper)
    if to_epoch_millis(lower) == upper_ms:
        finest = INTERVAL_LADDER[-1]
        return TemporalTickSet((TemporalTick(upper, finest.unit),), finest)

    average_ticks = 0.0
    if average_tick_gap_px > 0 and axis_length_px > 0:
        average_ticks = axis_length_px / average_tick_gap_px
    if not math.isfinite(average_ticks):
        average_ticks = 0.0

    active = INTERVAL_LADDER[0]
    dates: List[datetime] = []
    for interval in INTERVAL_LADDER:
        if len(dates) > average_ticks:
            break
        active = interval
        dates = _walk(lower, upper_ms, interval)
    dates.append(upper)

    dates = _make_dates_even(dates, active.unit)
    dates = _drop_crowded_last(dates)
    dates = _strictly_increasing(dates)

    log.debug(
        "time ticks for [%s, %s] over %.1fpx: interval=%s count=%d",
        lower.isoformat(), upper.isoformat(), axis_length_px, active, len(dates),
    )
    return TemporalTickSet(tuple(TemporalTick(d, active.unit) for d in dates), active)


def resolve_time_axis(
    lower: datetime,
    upper: datetime,
    axis_length_px: float,
    config: TimeAxisConfig = TimeAxisConfig(),
) -> TemporalTickSet:
    return resolve_temporal_ticks(
        lower, upper, axis_length_px, config.average_tick_gap_px, zone=config.zone,
    )


def time_range_of(timestamps: Iterable[datetime], zone: tzinfo = timezone.utc) -> Tuple[datetime, datetime]:
    """Auto-range bounds for a time axis: earliest and latest timestamp, or now/now when empty."""
    values: Sequence[datetime] = sorted((localize(t, zone) for t in timestamps), key=to_epoch_millis)
    if not values:
        now = datetime.now(zone)
        return now, now
    return values[0], values[-1]

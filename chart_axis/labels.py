from __future__ import annotations

import bisect
import math
from datetime import datetime
from typing import Dict, List, Sequence

from .config import NumberFormat
from .temporal import TemporalTick, TimeUnit


def _decimal(v: float) -> str:
    # up to two decimals with thousands grouping, trailing zeros dropped
    s = f"{v:,.2f}"
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    return "0" if s in ("-0", "") else s


class PrefixFormatter:
    """
    Format tick values with a unit prefix: 1500 -> "1.5k", 3 * 1024**2 -> "3Mi".

    Values below ``base`` are printed as plain decimals.
    """

    def __init__(self, base: int, suffixes: Sequence[str]):
        self.base = int(base)
        self._divisors: List[float] = [float(self.base) ** (i + 1) for i in range(len(suffixes))]
        self._suffixes: List[str] = list(suffixes)

    def format(self, value: float) -> str:
        value = float(value)
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinite"
        if value < 0:
            return "-" + self.format(-value)
        if value < self.base or not self._divisors:
            return _decimal(value)
        i = bisect.bisect_right(self._divisors, value) - 1
        return _decimal(value / self._divisors[i]) + self._suffixes[i]

    __call__ = format


METRIC_PREFIXES = PrefixFormatter(1000, ["k", "M", "G", "T", "P", "E"])
BINARY_PREFIXES = PrefixFormatter(1024, ["Ki", "Mi", "Gi", "Ti", "Pi", "Ei"])


def formatter_for(fmt: NumberFormat) -> PrefixFormatter:
    return BINARY_PREFIXES if NumberFormat(fmt) is NumberFormat.BINARY else METRIC_PREFIXES


_TIME_PATTERNS: Dict[TimeUnit, str] = {
    TimeUnit.YEARS: "%Y",
    TimeUnit.MONTHS: "%b %Y",
    TimeUnit.WEEKS: "%Y-%m-%d",
    TimeUnit.DAYS: "%Y-%m-%d",
    TimeUnit.HOURS: "%H:%M",
    TimeUnit.MINUTES: "%H:%M",
    TimeUnit.SECONDS: "%H:%M:%S",
}


def format_time(value: datetime, unit: TimeUnit) -> str:
    if unit == TimeUnit.MILLIS:
        return value.strftime("%H:%M:%S.") + f"{value.microsecond // 1000:03d}"
    return value.strftime(_TIME_PATTERNS[TimeUnit(unit)])


def format_tick(tick: TemporalTick) -> str:
    return format_time(tick.value, tick.unit)

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import numpy as np

from .config import METRIC_LADDER, DividerLadder, NumericAxisConfig
from .errors import InvalidDisplayConstraintError, InvalidRangeError

log = logging.getLogger(__name__)

# Spans narrower than this are drawn as a flat line around the value.
FLAT_RANGE_EPSILON = 1e-300


@dataclass(frozen=True)
class ValueRange:
    min: float
    max: float

    def __post_init__(self) -> None:
        if not self.min <= self.max:
            raise InvalidRangeError(f"ValueRange requires min <= max, got min={self.min} max={self.max}")

    @property
    def is_flat(self) -> bool:
        return abs(self.max - self.min) < FLAT_RANGE_EPSILON

    @classmethod
    def of(cls, samples: Iterable[float]) -> Optional["ValueRange"]:
        """Extrema of the finite samples; None when there is nothing to show."""
        arr = np.asarray(list(samples), dtype=np.float64)
        arr = arr[np.isfinite(arr)]
        if arr.size == 0:
            return None
        return cls(float(arr.min()), float(arr.max()))


@dataclass(frozen=True)
class TickSet:
    low: float
    high: float
    spacing: float
    # pixels per data unit
    scale: float

    @property
    def delta(self) -> float:
        return self.high - self.low

    def value_to_px(self, v: float) -> float:
        return (v - self.low) * self.scale

    def px_to_value(self, p: float) -> float:
        return self.low + p / self.scale


def _signum(v: float) -> float:
    if v > 0:
        return 1.0
    if v < 0:
        return -1.0
    return 0.0


def _log_base(v: float, base: int) -> float:
    # log10/log2 are exact on exact powers, math.log(v, base) is not
    if base == 10:
        return math.log10(v)
    if base == 2:
        return math.log2(v)
    return math.log(v) / math.log(base)


def calculate_tick_spacing(delta: float, max_ticks: int, ladder: DividerLadder = METRIC_LADDER) -> float:
    """
    Coarsest ladder spacing giving at most ``max_ticks`` ticks over ``delta``.

    Starts from ``dividers[0] * base**floor(log_base(delta))``. With too few
    ticks the ladder is walked down until there are enough, then backed off
    one rung unless the count was hit exactly; with too many it is walked up
    until the count fits.
    """
    if not math.isfinite(delta) or delta <= 0.0:
        raise InvalidRangeError(f"delta must be positive, got {delta}")
    if max_ticks < 1:
        raise InvalidDisplayConstraintError(f"must be at least one tick, got {max_ticks}")

    n = len(ladder)
    factor = math.floor(_log_base(delta, ladder.base))
    divider = 0
    num_ticks = delta / ladder.spacing(divider, factor)

    if num_ticks < max_ticks:
        while num_ticks < max_ticks:
            divider -= 1
            if divider < 0:
                factor -= 1
                divider = n - 1
            num_ticks = delta / ladder.spacing(divider, factor)

        if num_ticks != max_ticks:
            divider += 1
            if divider >= n:
                factor += 1
                divider = 0
    else:
        while num_ticks > max_ticks:
            divider += 1
            if divider >= n:
                factor += 1
                divider = 0
            num_ticks = delta / ladder.spacing(divider, factor)

    return ladder.spacing(divider, factor)


def auto_range(
    min_value: float,
    max_value: float,
    padding: float = 0.1,
    force_zero_in_range: bool = True,
) -> ValueRange:
    """
    Pad the data extrema for display.

    A flat span is widened by one unit on each side. Otherwise both ends get
    ``padding * span``, and an end whose sign flips because of the padding is
    clamped to 0. With ``force_zero_in_range`` and both ends on the same side
    of zero, the nearer end becomes 0 and only the far end is padded.
    """
    if not (math.isfinite(min_value) and math.isfinite(max_value)):
        raise InvalidRangeError(f"Range bounds must be finite, got min={min_value} max={max_value}")

    if abs(min_value - max_value) < FLAT_RANGE_EPSILON:
        lo = min_value - 1.0
        hi = max_value + 1.0
        far_lo, far_hi = lo, hi
    else:
        delta = max_value - min_value
        lo = min_value - delta * padding
        if _signum(lo) != _signum(min_value):
            lo = 0.0
        hi = max_value + delta * padding
        if _signum(hi) != _signum(max_value):
            hi = 0.0
        far_lo, far_hi = min_value, max_value

    if force_zero_in_range:
        if lo < 0 and hi < 0:
            hi = 0.0
            lo = far_lo - (-far_lo) * padding
        elif lo > 0 and hi > 0:
            lo = 0.0
            hi = far_hi + far_hi * padding

    return ValueRange(lo, hi)


def resolve_ticks(
    min_value: float,
    max_value: float,
    axis_length_px: float,
    tick_label_spacing_px: float,
    auto_range_padding: float = 0.1,
    force_zero_in_range: bool = True,
    ladder: DividerLadder = METRIC_LADDER,
) -> TickSet:
    if not (axis_length_px > 0 and math.isfinite(axis_length_px)):
        raise InvalidDisplayConstraintError(f"axis length must be finite and > 0 px, got {axis_length_px}")
    if not (tick_label_spacing_px > 0 and math.isfinite(tick_label_spacing_px)):
        raise InvalidDisplayConstraintError(f"tick label spacing must be finite and > 0 px, got {tick_label_spacing_px}")

    rng = auto_range(min_value, max_value, auto_range_padding, force_zero_in_range)
    delta = rng.max - rng.min
    max_ticks = max(1, int(axis_length_px / tick_label_spacing_px))
    spacing = calculate_tick_spacing(delta, max_ticks, ladder)

    ticks = TickSet(low=rng.min, high=rng.max, spacing=spacing, scale=axis_length_px / delta)
    log.debug(
        "ticks for [%r, %r] over %.1fpx: range=[%r, %r] spacing=%r max_ticks=%d",
        min_value, max_value, axis_length_px, ticks.low, ticks.high, spacing, max_ticks,
    )
    return ticks


def resolve_numeric_axis(
    value_range: ValueRange,
    axis_length_px: float,
    config: NumericAxisConfig = NumericAxisConfig(),
) -> TickSet:
    return resolve_ticks(
        value_range.min,
        value_range.max,
        axis_length_px,
        config.tick_label_spacing_px,
        auto_range_padding=config.auto_range_padding,
        force_zero_in_range=config.force_zero_in_range,
        ladder=config.ladder,
    )


def tick_values(ticks: TickSet, minor_count: int = 3) -> Tuple[List[float], List[float]]:
    """
    Major and minor tick positions for a resolved TickSet.

    The first major tick is floored onto the spacing grid, so it may sit just
    before ``low``; one extra major is generated past the end so minor ticks
    exist on both sides of the first and last visible majors. Callers clip to
    [low, high].
    """
    if minor_count < 0:
        raise InvalidDisplayConstraintError(f"minor tick count must be >= 0, got {minor_count}")

    first = math.floor(ticks.low / ticks.spacing) * ticks.spacing
    num_ticks = int(ticks.delta / ticks.spacing) + 1
    minor_spacing = ticks.spacing / (minor_count + 1)

    major: List[float] = []
    minor: List[float] = []
    for i in range(num_ticks + 1):
        m = first + ticks.spacing * i
        major.append(m)
        for j in range(1, minor_count + 1):
            minor.append(m + minor_spacing * j)
    return major, minor


def numeric_axis_ticks(
    value_range: ValueRange,
    axis_length_px: float,
    config: NumericAxisConfig = NumericAxisConfig(),
) -> Tuple[TickSet, List[float], List[float]]:
    """Resolve a numeric axis and lay out its major and minor ticks in one call."""
    ticks = resolve_numeric_axis(value_range, axis_length_px, config)
    major, minor = tick_values(ticks, config.minor_tick_count)
    return ticks, major, minor

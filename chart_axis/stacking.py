from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple, Union

import numpy as np

from .series import Samples, SeriesGrid
from .ticks import ValueRange

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccumulatedRange:
    min: float
    max: float

    @property
    def has_data(self) -> bool:
        return math.isfinite(self.min) or math.isfinite(self.max)

    def to_value_range(self) -> Optional[ValueRange]:
        if not self.has_data:
            return None
        return ValueRange(min(self.min, self.max), max(self.min, self.max))


# Returned when there is nothing to stack; renderers fall back to their default range.
NO_DATA = AccumulatedRange(min=math.inf, max=-math.inf)


def _sample(keys: np.ndarray, values: np.ndarray, at: np.ndarray) -> np.ndarray:
    """
    Read a non-empty piecewise-linear series at ``at``.

    Exact keys return their own value. Between two keys the value is
    interpolated linearly; before the first key it is clamped to the first
    value and after the last key to the last value.
    """
    n = keys.size
    i = np.searchsorted(keys, at, side="left")
    out = np.empty(at.shape, dtype=np.float64)

    before = i == 0
    after = i == n
    out[before] = values[0]
    out[after] = values[-1]

    between = ~(before | after)
    j = i[between]
    x = at[between]
    xl, xh = keys[j - 1], keys[j]
    yl, yh = values[j - 1], values[j]
    out[between] = yl + (x - xl) / (xh - xl) * (yh - yl)

    hit = np.zeros(at.shape, dtype=bool)
    hit[~after] = keys[i[~after]] == at[~after]
    out[hit] = values[i[hit]]
    return out


def _stack(
    prev_keys: np.ndarray,
    prev_values: np.ndarray,
    keys: np.ndarray,
    values: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Put one series on top of the accumulated grid.

    Keys of the new series read the accumulated grid underneath them; keys
    only the accumulated grid has read the new series at that x. Both use
    the clamped linear reading of ``_sample``.
    """
    if prev_keys.size == 0:
        return keys, values.copy()
    if keys.size == 0:
        return prev_keys, prev_values
    merged = np.union1d(prev_keys, keys)
    return merged, _sample(prev_keys, prev_values, merged) + _sample(keys, values, merged)


def accumulate_stacked_range(series: Iterable[Union[SeriesGrid, Samples]]) -> AccumulatedRange:
    """
    Vertical extent needed by a stacked chart, series given in draw order.

    The minimum comes from the first series holding samples (NaN samples
    skipped; a series of only NaN counts as 0). The maximum is the highest
    cumulative value over the union of all sample keys. NaN samples
    contribute 0 to the running sum.
    """
    prev_keys = np.empty(0, dtype=np.float64)
    prev_values = np.empty(0, dtype=np.float64)
    total_min: Optional[float] = None
    count = 0

    for s in series:
        grid = s if isinstance(s, SeriesGrid) else SeriesGrid.of(s)
        count += 1
        if len(grid) == 0:
            continue
        values = grid.zero_filled()
        if total_min is None:
            real = grid.values[~np.isnan(grid.values)]
            total_min = float(real.min()) if real.size else 0.0
            prev_keys, prev_values = grid.keys, values
            continue
        prev_keys, prev_values = _stack(prev_keys, prev_values, grid.keys, values)

    if total_min is None:
        log.debug("stacked range over %d series: no data", count)
        return NO_DATA

    result = AccumulatedRange(min=total_min, max=float(prev_values.max()))
    log.debug(
        "stacked range over %d series, %d keys: [%r, %r]",
        count, prev_keys.size, result.min, result.max,
    )
    return result

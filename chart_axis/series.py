from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Mapping, Optional, Tuple, Union

import numpy as np

Samples = Union[Mapping[float, float], Iterable[Tuple[float, float]]]


@dataclass(frozen=True, eq=False)
class SeriesGrid:
    """
    Samples of one rendered series, keyed by x (e.g. epoch millis).

    Keys are unique and ascending; when the same x is given twice the later
    sample wins. Values may be NaN (a gap in the source data).
    """
    keys: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=np.float64))
    values: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=np.float64))
    name: Optional[str] = None

    def __post_init__(self) -> None:
        keys = np.array(self.keys, dtype=np.float64).reshape(-1)
        values = np.array(self.values, dtype=np.float64).reshape(-1)
        if keys.shape != values.shape:
            raise ValueError(f"keys and values differ in length: {keys.size} != {values.size}")
        if keys.size and np.isnan(keys).any():
            raise ValueError("SeriesGrid keys must not be NaN")
        if keys.size > 1 and not np.all(np.diff(keys) > 0):
            keys, values = _sorted_unique(keys, values)
        keys.setflags(write=False)
        values.setflags(write=False)
        object.__setattr__(self, "keys", keys)
        object.__setattr__(self, "values", values)

    @classmethod
    def of(cls, samples: Samples, name: Optional[str] = None) -> "SeriesGrid":
        items = samples.items() if isinstance(samples, Mapping) else samples
        pairs = [(float(x), float(y)) for x, y in items]
        if not pairs:
            return cls(name=name)
        xs, ys = zip(*pairs)
        return cls(np.array(xs, dtype=np.float64), np.array(ys, dtype=np.float64), name=name)

    def __len__(self) -> int:
        return int(self.keys.size)

    def __iter__(self) -> Iterator[Tuple[float, float]]:
        for x, y in zip(self.keys.tolist(), self.values.tolist()):
            yield x, y

    def __contains__(self, x: float) -> bool:
        i = int(np.searchsorted(self.keys, x))
        return i < self.keys.size and self.keys[i] == x

    def get(self, x: float, default: Optional[float] = None) -> Optional[float]:
        i = int(np.searchsorted(self.keys, x))
        if i < self.keys.size and self.keys[i] == x:
            return float(self.values[i])
        return default

    def zero_filled(self) -> np.ndarray:
        """Values with NaN gaps counted as 0, the way stacked areas draw them."""
        return np.nan_to_num(self.values, nan=0.0, posinf=np.inf, neginf=-np.inf)


def _sorted_unique(keys: np.ndarray, values: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    # stable sort keeps insertion order among equal keys; keep the last of each run
    order = np.argsort(keys, kind="stable")
    keys = keys[order]
    values = values[order]
    last = np.ones(keys.size, dtype=bool)
    last[:-1] = keys[1:] != keys[:-1]
    return keys[last].copy(), values[last].copy()

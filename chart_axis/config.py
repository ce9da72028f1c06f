from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timezone, tzinfo
from enum import Enum
from typing import Tuple

from .errors import InvalidDisplayConstraintError


@dataclass(frozen=True)
class DividerLadder:
    """
    "Nice" tick spacings are generated as ``divider * base**factor``.

    Dividers are walked in order; stepping past either end wraps to the
    next/previous power of ``base``.
    """
    base: int
    dividers: Tuple[float, ...]

    def __post_init__(self) -> None:
        if int(self.base) < 2:
            raise InvalidDisplayConstraintError(f"Ladder base must be >= 2, got {self.base}")
        if not self.dividers:
            raise InvalidDisplayConstraintError("Ladder needs at least one divider")
        divs = tuple(float(d) for d in self.dividers)
        if divs[0] < 1.0:
            raise InvalidDisplayConstraintError(f"Ladder dividers must be >= 1, got {divs[0]}")
        if any(b <= a for a, b in zip(divs, divs[1:])):
            raise InvalidDisplayConstraintError(f"Ladder dividers must be strictly ascending: {divs}")
        object.__setattr__(self, "base", int(self.base))
        object.__setattr__(self, "dividers", divs)

    def __len__(self) -> int:
        return len(self.dividers)

    def spacing(self, index: int, factor: int) -> float:
        return self.dividers[index] * float(self.base) ** factor


METRIC_LADDER = DividerLadder(base=10, dividers=(1.0, 2.5, 5.0))
# The upper binary dividers go past the base on purpose: they let a binary axis
# skip straight to 8x/16x steps before moving to the next power of two.
BINARY_LADDER = DividerLadder(base=2, dividers=(1.0, 2.0, 4.0, 8.0, 16.0))


class NumberFormat(str, Enum):
    METRIC = "metric"
    BINARY = "binary"

    @property
    def ladder(self) -> DividerLadder:
        return BINARY_LADDER if self is NumberFormat.BINARY else METRIC_LADDER


@dataclass(frozen=True)
class NumericAxisConfig:
    # preferred pixel distance between two major tick labels
    tick_label_spacing_px: float = 30.0
    # fraction of the data span added at each end when auto ranging
    auto_range_padding: float = 0.1
    # pull the nearer bound to 0 when both bounds share a sign
    force_zero_in_range: bool = True
    ladder: DividerLadder = METRIC_LADDER
    minor_tick_count: int = 3

    @classmethod
    def for_format(cls, fmt: NumberFormat, **overrides) -> "NumericAxisConfig":
        return cls(ladder=NumberFormat(fmt).ladder, **overrides)


@dataclass(frozen=True)
class TimeAxisConfig:
    # preferred pixel distance between two time ticks
    average_tick_gap_px: float = 100.0
    zone: tzinfo = field(default=timezone.utc)

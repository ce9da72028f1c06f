import math

import numpy as np
import pytest

from chart_axis.config import BINARY_LADDER, METRIC_LADDER, DividerLadder, NumberFormat, NumericAxisConfig
from chart_axis.errors import ChartAxisError, InvalidDisplayConstraintError, InvalidRangeError
from chart_axis.ticks import (
    TickSet,
    ValueRange,
    auto_range,
    calculate_tick_spacing,
    numeric_axis_ticks,
    resolve_numeric_axis,
    resolve_ticks,
    tick_values,
)


def test_flat_range_is_widened_by_one_unit() -> None:
    ticks = resolve_ticks(5.0, 5.0, 300.0, 30.0, force_zero_in_range=False)
    assert ticks.low == 4.0
    assert ticks.high == 6.0
    assert ticks.spacing > 0


def test_flat_range_with_zero_forced_pads_far_bound() -> None:
    ticks = resolve_ticks(5.0, 5.0, 300.0, 30.0, auto_range_padding=0.1, force_zero_in_range=True)
    assert ticks.low == 0.0
    assert ticks.high == pytest.approx(6.6)


def test_zero_forced_without_padding() -> None:
    ticks = resolve_ticks(5.0, 10.0, 300.0, 30.0, auto_range_padding=0.0, force_zero_in_range=True)
    assert ticks.low == 0.0
    assert ticks.high == 10.0


def test_zero_forced_pads_only_far_bound() -> None:
    rng = auto_range(5.0, 10.0, padding=0.1, force_zero_in_range=True)
    assert rng.min == 0.0
    assert rng.max == pytest.approx(11.0)


def test_zero_forced_for_negative_range() -> None:
    rng = auto_range(-10.0, -5.0, padding=0.1, force_zero_in_range=True)
    assert rng.max == 0.0
    assert rng.min == pytest.approx(-11.0)


def test_zero_forcing_ignored_when_range_spans_zero() -> None:
    rng = auto_range(-5.0, 5.0, padding=0.0, force_zero_in_range=True)
    assert (rng.min, rng.max) == (-5.0, 5.0)


@pytest.mark.parametrize(
    "lo, hi, pad, expected",
    [
        (0.0, 10.0, 0.1, (0.0, 11.0)),
        (-10.0, 0.0, 0.1, (-11.0, 0.0)),
        (2.0, 10.0, 0.5, (0.0, 14.0)),
        (-10.0, -2.0, 0.5, (-14.0, 0.0)),
    ],
)
def test_padding_never_crosses_zero(lo, hi, pad, expected) -> None:
    rng = auto_range(lo, hi, padding=pad, force_zero_in_range=False)
    assert rng.min == pytest.approx(expected[0])
    assert rng.max == pytest.approx(expected[1])


def test_padding_applied_on_both_sides() -> None:
    rng = auto_range(10.0, 20.0, padding=0.1, force_zero_in_range=False)
    assert rng.min == pytest.approx(9.0)
    assert rng.max == pytest.approx(21.0)


@pytest.mark.parametrize(
    "delta, max_ticks, expected",
    [
        (10.0, 5, 2.5),
        (100.0, 10, 10.0),
        (1000.0, 1, 1000.0),
        (7.0, 1, 10.0),
        (1.0, 4, 0.25),
    ],
)
def test_metric_spacing(delta, max_ticks, expected) -> None:
    assert calculate_tick_spacing(delta, max_ticks) == pytest.approx(expected)


def test_binary_spacing_uses_powers_of_two() -> None:
    assert calculate_tick_spacing(1000.0, 10, BINARY_LADDER) == 128.0


def test_custom_ladder() -> None:
    ladder = DividerLadder(base=10, dividers=(1.0, 2.0, 5.0))
    assert calculate_tick_spacing(10.0, 5, ladder) == pytest.approx(2.0)


def test_spacing_bound_holds_for_random_ranges() -> None:
    rng = np.random.default_rng(20240611)
    nice = {1.0, 2.5, 5.0}
    for _ in range(1000):
        delta = float(10.0 ** rng.uniform(-6.0, 9.0))
        max_ticks = int(rng.integers(3, 40))
        spacing = calculate_tick_spacing(delta, max_ticks)
        n = delta / spacing
        assert 1.0 <= n <= max_ticks
        mantissa = spacing / 10.0 ** math.floor(math.log10(spacing) + 1e-9)
        assert any(math.isclose(mantissa, d, rel_tol=1e-9) for d in nice)


def test_spacing_never_exceeds_max_ticks_with_one_tick() -> None:
    rng = np.random.default_rng(7)
    for _ in range(200):
        delta = float(10.0 ** rng.uniform(-3.0, 6.0))
        assert delta / calculate_tick_spacing(delta, 1) <= 1.0


@pytest.mark.parametrize("delta", [0.0, -1.0, float("nan"), float("inf")])
def test_invalid_delta_raises(delta) -> None:
    with pytest.raises(InvalidRangeError):
        calculate_tick_spacing(delta, 5)


def test_zero_max_ticks_raises() -> None:
    with pytest.raises(InvalidDisplayConstraintError):
        calculate_tick_spacing(10.0, 0)


@pytest.mark.parametrize("length, spacing", [(0.0, 30.0), (-10.0, 30.0), (300.0, 0.0), (300.0, -1.0)])
def test_invalid_display_constraints_raise(length, spacing) -> None:
    with pytest.raises(InvalidDisplayConstraintError):
        resolve_ticks(0.0, 10.0, length, spacing)


def test_non_finite_bounds_raise() -> None:
    with pytest.raises(InvalidRangeError):
        resolve_ticks(float("nan"), 10.0, 300.0, 30.0)


def test_errors_are_value_errors() -> None:
    assert issubclass(InvalidRangeError, ChartAxisError)
    assert issubclass(InvalidDisplayConstraintError, ValueError)


def test_resolve_ticks_is_deterministic() -> None:
    a = resolve_ticks(-3.7, 1234.5, 417.0, 30.0, 0.1, True, METRIC_LADDER)
    b = resolve_ticks(-3.7, 1234.5, 417.0, 30.0, 0.1, True, METRIC_LADDER)
    assert a == b
    assert a.spacing.hex() == b.spacing.hex()


def test_resolve_ticks_scale_and_mapping() -> None:
    ticks = resolve_ticks(0.0, 100.0, 300.0, 30.0, auto_range_padding=0.0, force_zero_in_range=False)
    assert ticks.spacing == 10.0
    assert ticks.scale == 3.0
    assert ticks.value_to_px(50.0) == 150.0
    assert ticks.px_to_value(150.0) == 50.0
    assert (ticks.high - ticks.low) / ticks.spacing >= 1


def test_resolve_numeric_axis_uses_config() -> None:
    config = NumericAxisConfig.for_format(NumberFormat.BINARY, auto_range_padding=0.0, force_zero_in_range=False)
    ticks = resolve_numeric_axis(ValueRange(0.0, 1000.0), 300.0, config)
    assert ticks.spacing == 128.0


def test_tick_values_majors_and_minors() -> None:
    major, minor = tick_values(TickSet(low=0.5, high=10.0, spacing=2.5, scale=1.0), minor_count=3)
    assert major == [0.0, 2.5, 5.0, 7.5, 10.0]
    assert len(minor) == 15
    assert minor[:3] == [0.625, 1.25, 1.875]


def test_tick_values_without_minors() -> None:
    major, minor = tick_values(TickSet(low=-10.0, high=10.0, spacing=5.0, scale=1.0), minor_count=0)
    assert major[0] == -10.0
    assert major[-1] == 15.0
    assert minor == []


def test_value_range_of_skips_nan_and_infinities() -> None:
    rng = ValueRange.of([float("nan"), 3.0, 1.0, float("inf"), 2.0])
    assert rng == ValueRange(1.0, 3.0)
    assert ValueRange.of([float("nan")]) is None
    assert ValueRange.of([]) is None


def test_value_range_rejects_inverted_bounds() -> None:
    with pytest.raises(InvalidRangeError):
        ValueRange(2.0, 1.0)


@pytest.mark.parametrize(
    "base, dividers",
    [(1, (1.0,)), (10, ()), (10, (0.5, 2.0)), (10, (2.0, 1.0)), (10, (1.0, 1.0))],
)
def test_divider_ladder_validation(base, dividers) -> None:
    with pytest.raises(InvalidDisplayConstraintError):
        DividerLadder(base=base, dividers=dividers)


@pytest.mark.parametrize("length, spacing", [(math.inf, 30.0), (300.0, math.inf), (math.nan, 30.0)])
def test_non_finite_display_constraints_raise(length, spacing) -> None:
    with pytest.raises(InvalidDisplayConstraintError):
        resolve_ticks(0.0, 10.0, length, spacing)


def test_numeric_axis_ticks_follow_minor_tick_count() -> None:
    plain = NumericAxisConfig(auto_range_padding=0.0, force_zero_in_range=False)
    ticks, major, minor = numeric_axis_ticks(ValueRange(0.0, 100.0), 300.0, plain)
    assert ticks.spacing == 10.0
    assert len(major) == 12
    assert len(minor) == 3 * len(major)

    single = NumericAxisConfig(auto_range_padding=0.0, force_zero_in_range=False, minor_tick_count=1)
    _, major, minor = numeric_axis_ticks(ValueRange(0.0, 100.0), 300.0, single)
    assert len(minor) == len(major)
    assert minor[:2] == [5.0, 15.0]


def test_single_tick_spacing_may_exceed_span() -> None:
    # one tick allowed: the ladder walks forward to the next nice step past the span
    ticks = resolve_ticks(0.0, 7.0, 30.0, 30.0, auto_range_padding=0.0, force_zero_in_range=False)
    assert ticks.spacing == 10.0
    assert (ticks.high - ticks.low) / ticks.spacing < 1

"""Unit tests for the daily Power aggregation."""

from __future__ import annotations

from datetime import datetime, timezone

from models.records import PowerPoint, StoredReading
from services.aggregator import PowerAggregator, day_start, format_power

# 2023-11-14T22:13:20Z
DAY_ONE = 1700000000
# 2023-11-15T00:00:00Z
DAY_TWO = 1700006400


def _reading(time: int, value: float) -> StoredReading:
    return StoredReading(time=time, value=value)


def test_day_start_truncates_to_utc_midnight() -> None:
    assert day_start(DAY_ONE) == datetime(2023, 11, 14, tzinfo=timezone.utc)
    assert day_start(DAY_TWO) == datetime(2023, 11, 15, tzinfo=timezone.utc)
    assert day_start(DAY_TWO - 1) == datetime(2023, 11, 14, tzinfo=timezone.utc)


def test_power_is_product_of_daily_means() -> None:
    aggregator = PowerAggregator()

    power = aggregator.compute_power([_reading(DAY_ONE, 2.0)], [_reading(DAY_ONE + 60, 3.0)])

    assert power == [PowerPoint(time="2023-11-14T00:00:00.000Z", value="6.00")]
    assert power[0].name == "Power"


def test_means_are_taken_per_channel_before_multiplying() -> None:
    aggregator = PowerAggregator()
    current = [_reading(DAY_ONE, 1.0), _reading(DAY_ONE + 1, 3.0)]
    voltage = [_reading(DAY_ONE, 10.0), _reading(DAY_ONE + 2, 20.0), _reading(DAY_ONE + 3, 30.0)]

    power = aggregator.compute_power(current, voltage)

    assert [point.value for point in power] == ["40.00"]


def test_day_with_single_channel_is_skipped() -> None:
    aggregator = PowerAggregator()

    assert aggregator.compute_power([_reading(DAY_ONE, 2.0)], []) == []
    assert aggregator.compute_power([], [_reading(DAY_ONE, 2.0)]) == []
    assert aggregator.compute_power(
        [_reading(DAY_ONE, 2.0)], [_reading(DAY_TWO, 3.0)]
    ) == []


def test_zero_mean_still_yields_a_point() -> None:
    aggregator = PowerAggregator()

    power = aggregator.compute_power([_reading(DAY_ONE, 0.0)], [_reading(DAY_ONE, 230.0)])

    assert [point.value for point in power] == ["0.00"]


def test_points_sorted_by_day_by_default() -> None:
    aggregator = PowerAggregator()
    current = [_reading(DAY_TWO, 1.0), _reading(DAY_ONE, 1.0)]
    voltage = [_reading(DAY_ONE, 2.0), _reading(DAY_TWO, 3.0)]

    power = aggregator.compute_power(current, voltage)

    assert [point.time for point in power] == [
        "2023-11-14T00:00:00.000Z",
        "2023-11-15T00:00:00.000Z",
    ]
    assert [point.value for point in power] == ["2.00", "3.00"]


def test_unsorted_mode_keeps_first_seen_order() -> None:
    aggregator = PowerAggregator(sort_by_day=False)
    current = [_reading(DAY_TWO, 1.0), _reading(DAY_ONE, 1.0)]
    voltage = [_reading(DAY_ONE, 2.0), _reading(DAY_TWO, 3.0)]

    power = aggregator.compute_power(current, voltage)

    assert [point.time for point in power] == [
        "2023-11-15T00:00:00.000Z",
        "2023-11-14T00:00:00.000Z",
    ]


def test_value_is_rounded_to_two_decimals() -> None:
    aggregator = PowerAggregator()

    power = aggregator.compute_power([_reading(DAY_ONE, 1.5)], [_reading(DAY_ONE, 3.3)])

    assert power[0].value == "4.95"


def test_exact_ties_round_away_from_zero() -> None:
    aggregator = PowerAggregator()

    power = aggregator.compute_power([_reading(DAY_ONE, 0.5)], [_reading(DAY_ONE, 0.25)])

    assert power[0].value == "0.13"
    assert format_power(-0.125) == "-0.13"


def test_rounding_uses_the_stored_binary_value() -> None:
    # 1.005 is held as 1.00499999999999989..., so it is not a tie.
    assert format_power(1.005) == "1.00"
    assert format_power(2.675) == "2.67"
    assert format_power(2.0 ** 70) == "1180591620717411303424.00"


def test_non_finite_power_is_spelled_out() -> None:
    aggregator = PowerAggregator()

    power = aggregator.compute_power([_reading(DAY_ONE, float("inf"))], [_reading(DAY_ONE, 2.0)])

    assert power[0].value == "Infinity"
    assert format_power(float("-inf")) == "-Infinity"
    assert format_power(float("nan")) == "NaN"

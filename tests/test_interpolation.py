#!/usr/bin/env python3
"""Tests for odometer interpolation between meterstand readings."""

import pytest

from mileage import (
    AmbiguousBasis,
    NoPriorReading,
    OdometerReading,
    ReadingKind,
    calculate_odometer,
    expected_odometer_reading,
)
from mileage.interpolation import (
    find_next_reading,
    find_previous_reading,
    interpolate,
    meterstand_readings,
)


def meterstand(timestamp, km, record_id=None):
    return OdometerReading("car", timestamp, km, ReadingKind.METERSTAND, record_id)


class TestFindReadings:
    """Tests for the bracketing reading lookups."""

    @pytest.fixture
    def readings(self):
        return [meterstand(0, 1000, "a"), meterstand(1000, 2000, "b")]

    def test_previous_includes_exact_timestamp(self, readings):
        assert find_previous_reading(readings, 1000).record_id == "b"

    def test_previous_is_last_before(self, readings):
        assert find_previous_reading(readings, 999).record_id == "a"

    def test_no_previous(self, readings):
        assert find_previous_reading(readings, -1) is None

    def test_next_is_strictly_after(self, readings):
        assert find_next_reading(readings, 0).record_id == "b"
        assert find_next_reading(readings, 1000) is None

    def test_meterstand_readings_filters_and_sorts(self):
        readings = [
            meterstand(500, 1500),
            OdometerReading("car", 100, 1100, ReadingKind.TRIP_START, "t"),
            meterstand(0, 1000),
        ]
        result = meterstand_readings(readings)
        assert [r.timestamp for r in result] == [0, 500]


class TestCalculateOdometer:
    """Tests for calculate_odometer."""

    def test_interpolates_between_readings(self):
        """Halfway between 1000 km and 2000 km is 1500 km."""
        readings = [meterstand(0, 1000, "a"), meterstand(1000, 2000, "b")]
        result = calculate_odometer(readings, 500)
        assert result.start_odometer_km == 1500
        assert result.end_odometer_km is None
        assert result.basis.previous.record_id == "a"
        assert result.basis.next.record_id == "b"
        assert result.basis.method == "linear"

    def test_distance_ignored_when_next_reading_exists(self):
        readings = [meterstand(0, 1000), meterstand(1000, 2000)]
        result = calculate_odometer(readings, 500, explicit_distance_km=50)
        assert result.start_odometer_km == 1500
        assert result.end_odometer_km is None

    def test_only_previous_uses_last_reading(self):
        """No extrapolation forward in time."""
        readings = [meterstand(0, 1000, "a")]
        result = calculate_odometer(readings, 500)
        assert result.start_odometer_km == 1000
        assert result.end_odometer_km is None
        assert result.basis.next is None

    def test_only_previous_with_distance_sets_end(self):
        readings = [meterstand(0, 1500)]
        result = calculate_odometer(readings, 500, explicit_distance_km=50)
        assert result.start_odometer_km == 1500
        assert result.end_odometer_km == 1550

    def test_zero_distance_leaves_end_open(self):
        readings = [meterstand(0, 1500)]
        result = calculate_odometer(readings, 500, explicit_distance_km=0)
        assert result.end_odometer_km is None

    def test_at_exact_reading_uses_that_reading(self):
        readings = [meterstand(0, 1000), meterstand(1000, 2000), meterstand(2000, 2600)]
        result = calculate_odometer(readings, 1000)
        assert result.start_odometer_km == 2000

    def test_no_prior_reading(self):
        readings = [meterstand(1000, 2000)]
        with pytest.raises(NoPriorReading) as exc:
            calculate_odometer(readings, 500)
        assert exc.value.code == "no_prior_reading"

    def test_no_readings_at_all(self):
        with pytest.raises(NoPriorReading):
            calculate_odometer([], 500)

    def test_trip_readings_are_not_anchors(self):
        """Trip start/end readings are never used as the interpolation basis."""
        readings = [
            OdometerReading("car", 0, 1000, ReadingKind.TRIP_START, "t1"),
            OdometerReading("car", 0, 1040, ReadingKind.TRIP_END, "t1"),
        ]
        with pytest.raises(NoPriorReading):
            calculate_odometer(readings, 500)

    def test_unsorted_input(self):
        readings = [meterstand(1000, 2000, "b"), meterstand(0, 1000, "a")]
        assert calculate_odometer(readings, 250).start_odometer_km == 1250

    def test_descending_readings_are_ambiguous(self):
        readings = [meterstand(0, 2000), meterstand(1000, 1000)]
        with pytest.raises(AmbiguousBasis):
            calculate_odometer(readings, 500)

    def test_interpolate_rejects_equal_timestamps(self):
        with pytest.raises(AmbiguousBasis):
            interpolate(meterstand(100, 1000), meterstand(100, 1200), 100)

    def test_result_within_anchor_range(self):
        """Interpolated start lies between both anchors for every target."""
        readings = [meterstand(1000, 12345.5), meterstand(9000, 13001)]
        for target in range(1000, 9000, 137):
            start = calculate_odometer(readings, target).start_odometer_km
            assert 12345.5 <= start <= 13001

    def test_deterministic(self):
        readings = [meterstand(0, 1000), meterstand(3000, 1700)]
        first = calculate_odometer(readings, 1234, 10)
        second = calculate_odometer(readings, 1234, 10)
        assert first == second


class TestExpectedOdometerReading:
    """Tests for expected_odometer_reading."""

    def test_returns_interpolated_value(self):
        readings = [meterstand(0, 1000), meterstand(1000, 2000)]
        assert expected_odometer_reading(readings, 250) == 1250

    def test_returns_none_without_prior(self):
        assert expected_odometer_reading([meterstand(100, 1000)], 50) is None

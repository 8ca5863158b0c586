#!/usr/bin/env python3
"""Tests for registration records."""

from mileage import (
    CalculationBasis,
    MeterstandRecord,
    ReadingKind,
    TripPurpose,
    TripRecord,
    effective_odometer,
)


class TestTripRecord:
    """Tests for TripRecord."""

    def test_defaults(self):
        trip = TripRecord("t1", "car", 1000, 5000)
        assert trip.purpose == TripPurpose.BUSINESS
        assert trip.end_odometer_km is None
        assert trip.odometer_calculated is False
        assert trip.created_at == 1000
        assert trip.type == "trip"

    def test_incomplete_until_end_recorded(self):
        trip = TripRecord("t1", "car", 1000, 5000)
        assert trip.is_incomplete
        trip.end_odometer_km = 5040
        assert not trip.is_incomplete

    def test_distance_prefers_stored_value(self):
        trip = TripRecord("t1", "car", 0, 5000, end_odometer_km=5040, distance_km=38)
        assert trip.trip_distance_km == 38

    def test_distance_from_odometer(self):
        trip = TripRecord("t1", "car", 0, 5000, end_odometer_km=5040)
        assert trip.trip_distance_km == 40

    def test_distance_unknown(self):
        assert TripRecord("t1", "car", 0, 5000).trip_distance_km == 0

    def test_readings_start_only(self):
        readings = TripRecord("t1", "car", 10, 5000).readings()
        assert len(readings) == 1
        assert readings[0].kind == ReadingKind.TRIP_START
        assert readings[0].record_id == "t1"

    def test_readings_start_and_end(self):
        readings = TripRecord("t1", "car", 10, 5000, end_odometer_km=5040).readings()
        assert [r.kind for r in readings] == [ReadingKind.TRIP_START, ReadingKind.TRIP_END]
        assert [r.odometer_km for r in readings] == [5000, 5040]


class TestMeterstandRecord:
    """Tests for MeterstandRecord."""

    def test_single_meterstand_reading(self):
        readings = MeterstandRecord("m1", "car", 10, 4200).readings()
        assert len(readings) == 1
        assert readings[0].kind == ReadingKind.METERSTAND
        assert readings[0].odometer_km == 4200

    def test_created_at_defaults_to_timestamp(self):
        assert MeterstandRecord("m1", "car", 10, 4200).created_at == 10
        assert MeterstandRecord("m1", "car", 10, 4200, created_at=99).created_at == 99


class TestEffectiveOdometer:
    """Tests for effective_odometer."""

    def test_trip_end(self):
        assert effective_odometer(TripRecord("t", "car", 0, 100, end_odometer_km=150)) == 150

    def test_trip_without_end(self):
        assert effective_odometer(TripRecord("t", "car", 0, 100)) == 100

    def test_meterstand(self):
        assert effective_odometer(MeterstandRecord("m", "car", 0, 777)) == 777


class TestCalculationBasis:
    """Tests for CalculationBasis equality."""

    def test_equal(self):
        assert CalculationBasis("a", "b") == CalculationBasis("a", "b", "linear")

    def test_not_equal(self):
        assert CalculationBasis("a", "b") != CalculationBasis("a", None)

#!/usr/bin/env python3
"""Tests for chronology validation and gap diagnostics."""

import pytest

from mileage import (
    AboveNext,
    BelowPrior,
    ChronologyError,
    EndAboveNext,
    EndBeforeStart,
    FutureTimestamp,
    ProposedReading,
    Severity,
    TripRecord,
    classify_gap,
    compute_gap,
    diagnose_gap,
    validate_chronology,
    validate_reading,
)
from mileage.chronology import find_next_trip, find_prior_trip

NOW = 1_700_000_000_000
MINUTE = 60 * 1000


def trip(trip_id, timestamp, start, end=None):
    return TripRecord(trip_id, "car", timestamp, start, end_odometer_km=end)


class TestNeighbours:
    """Tests for prior/next trip lookup."""

    @pytest.fixture
    def trips(self):
        return [trip("b", 200, 5100), trip("a", 100, 5000, 5050)]

    def test_prior_is_strictly_before(self, trips):
        assert find_prior_trip(trips, 200).id == "a"
        assert find_prior_trip(trips, 100) is None

    def test_next_is_strictly_after(self, trips):
        assert find_next_trip(trips, 100).id == "b"
        assert find_next_trip(trips, 200) is None


class TestValidateChronology:
    """Tests for validate_chronology."""

    def test_rejects_regression(self):
        """Prior trip ends at 5000 km; starting at 4999 km is rejected."""
        trips = [trip("a", 100, 4950, 5000)]
        with pytest.raises(BelowPrior) as exc:
            validate_chronology(trips, ProposedReading(150, 4999), now=NOW)
        assert exc.value.neighbor_km == 5000
        assert "5,000 km" in str(exc.value)

    def test_message_keeps_fractional_km(self):
        """The reported neighbour is not rounded past the value compared."""
        trips = [trip("a", 100, 4950, 5000.6)]
        with pytest.raises(BelowPrior) as exc:
            validate_chronology(trips, ProposedReading(150, 5000.5), now=NOW)
        assert "(5,000.6 km)" in str(exc.value)

    def test_accepts_exact_boundary(self):
        trips = [trip("a", 100, 4950, 5000)]
        validate_chronology(trips, ProposedReading(150, 5000), now=NOW)

    def test_prior_without_end_uses_start(self):
        trips = [trip("a", 100, 5000)]
        with pytest.raises(BelowPrior):
            validate_chronology(trips, ProposedReading(150, 4990), now=NOW)

    def test_rejects_start_above_next(self):
        trips = [trip("a", 300, 6000)]
        with pytest.raises(AboveNext) as exc:
            validate_chronology(trips, ProposedReading(150, 6001), now=NOW)
        assert exc.value.neighbor_km == 6000

    def test_rejects_end_above_next(self):
        trips = [trip("a", 300, 6000)]
        with pytest.raises(EndAboveNext):
            validate_chronology(trips, ProposedReading(150, 5900, 6050), now=NOW)

    def test_accepts_end_equal_to_next_start(self):
        trips = [trip("a", 300, 6000)]
        validate_chronology(trips, ProposedReading(150, 5900, 6000), now=NOW)

    def test_rejects_end_before_start(self):
        with pytest.raises(EndBeforeStart):
            validate_chronology([], ProposedReading(150, 5000, 5000), now=NOW)

    def test_rejects_far_future_timestamp(self):
        with pytest.raises(FutureTimestamp):
            validate_chronology([], ProposedReading(NOW + 6 * MINUTE, 5000), now=NOW)

    def test_accepts_small_clock_skew(self):
        validate_chronology([], ProposedReading(NOW + 4 * MINUTE, 5000), now=NOW)

    def test_short_circuits_on_first_failure(self):
        """BelowPrior wins even though the end is also before the start."""
        trips = [trip("a", 100, 4950, 5000)]
        with pytest.raises(BelowPrior):
            validate_chronology(
                trips, ProposedReading(NOW + 60 * MINUTE, 4000, 3000), now=NOW
            )

    def test_between_two_trips(self):
        trips = [trip("a", 100, 5000, 5050), trip("c", 300, 5200, 5300)]
        validate_chronology(trips, ProposedReading(200, 5060, 5190), now=NOW)

    def test_all_errors_share_base_class(self):
        with pytest.raises(ChronologyError):
            validate_chronology([], ProposedReading(150, 10, 5), now=NOW)


class TestValidateReading:
    """Tests for validate_reading (checks without neighbours)."""

    def test_ignores_history(self):
        validate_reading(ProposedReading(150, 100, 200), now=NOW)

    def test_custom_skew(self):
        with pytest.raises(FutureTimestamp):
            validate_reading(ProposedReading(NOW + 2 * MINUTE, 100), NOW, 1)


class TestGapDiagnostics:
    """Tests for compute_gap, classify_gap and diagnose_gap."""

    def test_compute_gap(self):
        assert compute_gap(5000, 5060) == 60

    def test_within_tolerance_is_not_a_gap(self):
        assert classify_gap(compute_gap(5000, 5000.5)) is None
        assert classify_gap(1) is None

    def test_severity_levels(self):
        assert classify_gap(compute_gap(5000, 5060)) == Severity.URGENT
        assert classify_gap(50) == Severity.HIGH
        assert classify_gap(21) == Severity.HIGH
        assert classify_gap(20) == Severity.MEDIUM
        assert classify_gap(6) == Severity.MEDIUM
        assert classify_gap(5) == Severity.NORMAL
        assert classify_gap(1.5) == Severity.NORMAL

    def test_custom_tolerance(self):
        assert classify_gap(4, tolerance_km=5) is None

    def test_diagnose_gap(self):
        prior = trip("a", 100, 4950, 5000)
        diagnostic = diagnose_gap(prior, 5030)
        assert diagnostic.prior_trip_id == "a"
        assert diagnostic.prior_odometer_km == 5000
        assert diagnostic.gap_km == 30
        assert diagnostic.severity == Severity.HIGH

    def test_diagnose_no_gap(self):
        assert diagnose_gap(trip("a", 100, 4950, 5000), 5000) is None

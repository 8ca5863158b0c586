"""Chronological consistency checks for trip odometer readings."""

import time
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .errors import (
    AboveNext,
    BelowPrior,
    EndAboveNext,
    EndBeforeStart,
    FutureTimestamp,
)
from .records import TripRecord, effective_odometer
from .severity import Severity

GAP_TOLERANCE_KM = 1
FUTURE_SKEW_MINUTES = 5


def now_ms() -> int:
    """Current time in milliseconds since epoch."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class ProposedReading:
    """Odometer values proposed for a new trip."""

    timestamp: int
    start_odometer_km: float
    end_odometer_km: Optional[float] = None


@dataclass(frozen=True)
class GapDiagnostic:
    """Unaccounted kilometers between the prior trip and a new one."""

    prior_trip_id: str
    prior_odometer_km: float
    new_odometer_km: float
    gap_km: float
    severity: Severity


def _sorted_trips(trips: Iterable[TripRecord]) -> List[TripRecord]:
    return sorted(trips, key=lambda t: t.timestamp)


def find_prior_trip(trips: Iterable[TripRecord], timestamp: int) -> Optional[TripRecord]:
    """Latest trip strictly before timestamp."""
    prior = None
    for trip in _sorted_trips(trips):
        if trip.timestamp < timestamp:
            prior = trip
        else:
            break
    return prior


def find_next_trip(trips: Iterable[TripRecord], timestamp: int) -> Optional[TripRecord]:
    """Earliest trip strictly after timestamp."""
    for trip in _sorted_trips(trips):
        if trip.timestamp > timestamp:
            return trip
    return None


def validate_reading(
    proposed: ProposedReading,
    now: Optional[int] = None,
    future_skew_minutes: float = FUTURE_SKEW_MINUTES,
) -> None:
    """Checks that only involve the proposed reading itself."""
    end = proposed.end_odometer_km
    if end is not None and end <= proposed.start_odometer_km:
        raise EndBeforeStart(proposed.start_odometer_km)

    if now is None:
        now = now_ms()
    if proposed.timestamp > now + future_skew_minutes * 60 * 1000:
        raise FutureTimestamp(future_skew_minutes)


def validate_chronology(
    trips: Iterable[TripRecord],
    proposed: ProposedReading,
    now: Optional[int] = None,
    future_skew_minutes: float = FUTURE_SKEW_MINUTES,
) -> None:
    """
    Reject a proposed reading that breaks ordering against trip history.

    Checks run in order and stop at the first failure:
    BelowPrior, AboveNext, EndAboveNext, EndBeforeStart, FutureTimestamp.
    Equal values at the boundaries are accepted. Meterstand entries are a
    separate series and must not be passed in.
    """
    trips = _sorted_trips(trips)

    prior = find_prior_trip(trips, proposed.timestamp)
    if prior is not None:
        prior_km = effective_odometer(prior)
        if proposed.start_odometer_km < prior_km:
            raise BelowPrior(prior_km)

    next_trip = find_next_trip(trips, proposed.timestamp)
    if next_trip is not None:
        next_km = next_trip.start_odometer_km
        if proposed.start_odometer_km > next_km:
            raise AboveNext(next_km)
        end = proposed.end_odometer_km
        if end is not None and end > next_km:
            raise EndAboveNext(next_km)

    validate_reading(proposed, now, future_skew_minutes)


# =============================================================================
# Gap diagnostics
# =============================================================================


def compute_gap(prior_odometer_km: float, new_start_km: float) -> float:
    """Kilometers driven between the prior reading and the new start."""
    return new_start_km - prior_odometer_km


def classify_gap(
    gap_km: float, tolerance_km: float = GAP_TOLERANCE_KM
) -> Optional[Severity]:
    """Severity of a gap, or None when it is within the rounding tolerance."""
    if gap_km <= tolerance_km:
        return None
    if gap_km > 50:
        return Severity.URGENT
    if gap_km > 20:
        return Severity.HIGH
    if gap_km > 5:
        return Severity.MEDIUM
    return Severity.NORMAL


def diagnose_gap(
    prior_trip: TripRecord,
    new_start_km: float,
    tolerance_km: float = GAP_TOLERANCE_KM,
) -> Optional[GapDiagnostic]:
    """Build a gap diagnostic against the prior trip, if there is a gap."""
    prior_km = effective_odometer(prior_trip)
    gap = compute_gap(prior_km, new_start_km)
    severity = classify_gap(gap, tolerance_km)
    if severity is None:
        return None
    return GapDiagnostic(
        prior_trip_id=prior_trip.id,
        prior_odometer_km=prior_km,
        new_odometer_km=new_start_km,
        gap_km=gap,
        severity=severity,
    )

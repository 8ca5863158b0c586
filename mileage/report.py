"""Odometer and meterstand reports for a reporting period."""

from dataclasses import dataclass, field
from typing import List, Optional

from .kinds import TripPurpose
from .records import MeterstandRecord, TripRecord, effective_odometer
from .vehicle import Vehicle


def _in_period(timestamp: int, start_ts: Optional[int], end_ts: Optional[int]) -> bool:
    if start_ts is not None and timestamp < start_ts:
        return False
    if end_ts is not None and timestamp > end_ts:
        return False
    return True


def private_km(trip: TripRecord) -> float:
    """Private kilometers: whole private trips, detours on business trips."""
    if trip.purpose == TripPurpose.PRIVATE:
        return trip.trip_distance_km
    if trip.purpose == TripPurpose.BUSINESS and trip.private_detour_km:
        return trip.private_detour_km
    return 0


@dataclass
class OdometerReport:
    """Trip totals for a period. Meterstand entries are not journeys."""

    trips: List[TripRecord] = field(default_factory=list)
    total_distance_km: float = 0
    private_km: float = 0
    business_km: float = 0
    commute_km: float = 0
    first_reading: Optional[float] = None
    last_reading: Optional[float] = None

    @property
    def total_readings(self) -> int:
        return len(self.trips)


def build_odometer_report(
    vehicle: Vehicle,
    start_ts: Optional[int] = None,
    end_ts: Optional[int] = None,
    purpose: Optional[TripPurpose] = None,
) -> OdometerReport:
    report = OdometerReport()
    for trip in vehicle.trips:
        if not _in_period(trip.timestamp, start_ts, end_ts):
            continue
        if purpose is not None and trip.purpose != purpose:
            continue

        report.trips.append(trip)
        distance = trip.trip_distance_km
        report.total_distance_km += distance
        report.private_km += private_km(trip)
        if trip.purpose == TripPurpose.BUSINESS:
            report.business_km += distance - (trip.private_detour_km or 0)
        elif trip.purpose == TripPurpose.COMMUTE:
            report.commute_km += distance

        odometer = effective_odometer(trip)
        if report.first_reading is None or odometer < report.first_reading:
            report.first_reading = odometer
        if report.last_reading is None or odometer > report.last_reading:
            report.last_reading = odometer
    return report


@dataclass
class MeterstandRow:
    entry: MeterstandRecord
    km_since_previous: Optional[float] = None


@dataclass
class MeterstandReport:
    rows: List[MeterstandRow] = field(default_factory=list)

    @property
    def first_reading(self) -> Optional[float]:
        return min((r.entry.odometer_km for r in self.rows), default=None)

    @property
    def last_reading(self) -> Optional[float]:
        return max((r.entry.odometer_km for r in self.rows), default=None)

    @property
    def total_distance_km(self) -> float:
        if not self.rows:
            return 0
        return self.last_reading - self.first_reading


def build_meterstand_report(
    vehicle: Vehicle,
    start_ts: Optional[int] = None,
    end_ts: Optional[int] = None,
) -> MeterstandReport:
    report = MeterstandReport()
    previous = None
    for entry in vehicle.meterstand_entries:
        if not _in_period(entry.timestamp, start_ts, end_ts):
            continue
        delta = entry.odometer_km - previous.odometer_km if previous else None
        report.rows.append(MeterstandRow(entry, delta))
        previous = entry
    return report

"""Registration records: periodic meterstand entries and trips."""

from dataclasses import dataclass
from typing import List, Optional, Union

from .kinds import (
    CalculationMethod,
    ReadingKind,
    TripDirection,
    TripPurpose,
)

INTERPOLATION_METHOD = "linear"


@dataclass(frozen=True)
class OdometerReading:
    """A single point-in-time observation of a vehicle's odometer."""

    vehicle_id: str
    timestamp: int
    odometer_km: float
    kind: ReadingKind
    record_id: Optional[str] = None


class CalculationBasis:
    """Provenance of an auto-calculated trip odometer."""

    def __init__(
        self,
        previous_meterstand_id: Optional[str],
        next_meterstand_id: Optional[str] = None,
        interpolation_method: str = INTERPOLATION_METHOD,
    ):
        self.previous_meterstand_id = previous_meterstand_id
        self.next_meterstand_id = next_meterstand_id
        self.interpolation_method = interpolation_method

    def __eq__(self, other):
        if not isinstance(other, CalculationBasis):
            return NotImplemented
        return (
            self.previous_meterstand_id == other.previous_meterstand_id
            and self.next_meterstand_id == other.next_meterstand_id
            and self.interpolation_method == other.interpolation_method
        )


class MeterstandRecord:
    """A periodic manual odometer reading, not a journey."""

    type = "meterstand"

    def __init__(
        self,
        id: str,
        vehicle_id: str,
        timestamp: int,
        odometer_km: float,
        description: Optional[str] = None,
        created_at: Optional[int] = None,
    ):
        self.id = id
        self.vehicle_id = vehicle_id
        self.timestamp = timestamp
        self.odometer_km = odometer_km
        self.description = description
        self.created_at = created_at if created_at is not None else timestamp

    def readings(self) -> List[OdometerReading]:
        return [
            OdometerReading(
                self.vehicle_id,
                self.timestamp,
                self.odometer_km,
                ReadingKind.METERSTAND,
                self.id,
            )
        ]


class TripRecord:
    """A logged journey between a start and (optional) end odometer."""

    type = "trip"

    def __init__(
        self,
        id: str,
        vehicle_id: str,
        timestamp: int,
        start_odometer_km: float,
        purpose: TripPurpose = TripPurpose.BUSINESS,
        end_odometer_km: Optional[float] = None,
        distance_km: Optional[float] = None,
        calculation_method: Optional[CalculationMethod] = None,
        departure: Optional[str] = None,
        destination: Optional[str] = None,
        description: Optional[str] = None,
        alternative_route: Optional[str] = None,
        private_detour_km: Optional[float] = None,
        linked_trip_id: Optional[str] = None,
        trip_direction: Optional[TripDirection] = None,
        odometer_calculated: bool = False,
        calculation_basis: Optional[CalculationBasis] = None,
        created_at: Optional[int] = None,
    ):
        self.id = id
        self.vehicle_id = vehicle_id
        self.timestamp = timestamp
        self.start_odometer_km = start_odometer_km
        self.end_odometer_km = end_odometer_km
        self.purpose = purpose
        self.distance_km = distance_km
        self.calculation_method = calculation_method
        self.departure = departure
        self.destination = destination
        self.description = description
        self.alternative_route = alternative_route
        self.private_detour_km = private_detour_km
        self.linked_trip_id = linked_trip_id
        self.trip_direction = trip_direction
        self.odometer_calculated = odometer_calculated or False
        self.calculation_basis = calculation_basis
        self.created_at = created_at if created_at is not None else timestamp

    @property
    def is_incomplete(self) -> bool:
        """A trip is incomplete until an actual end odometer is recorded."""
        return self.end_odometer_km is None

    @property
    def trip_distance_km(self) -> float:
        """Stored distance, else odometer delta, else 0."""
        if self.distance_km:
            return self.distance_km
        if self.end_odometer_km is not None:
            return self.end_odometer_km - self.start_odometer_km
        return 0

    def readings(self) -> List[OdometerReading]:
        result = [
            OdometerReading(
                self.vehicle_id,
                self.timestamp,
                self.start_odometer_km,
                ReadingKind.TRIP_START,
                self.id,
            )
        ]
        if self.end_odometer_km is not None:
            result.append(
                OdometerReading(
                    self.vehicle_id,
                    self.timestamp,
                    self.end_odometer_km,
                    ReadingKind.TRIP_END,
                    self.id,
                )
            )
        return result


Registration = Union[TripRecord, MeterstandRecord]


def effective_odometer(record: Registration) -> float:
    """Latest known odometer of a registration: end, else start, else reading."""
    if isinstance(record, TripRecord):
        if record.end_odometer_km is not None:
            return record.end_odometer_km
        return record.start_odometer_km
    return record.odometer_km


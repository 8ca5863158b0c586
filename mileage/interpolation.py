"""
Odometer auto-calculation for trips.

Estimates a trip's start (and, when possible, end) odometer by linear
interpolation between the vehicle's periodic meterstand readings.
Trip readings are never used as anchors.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from .errors import AmbiguousBasis, NoPriorReading
from .kinds import ReadingKind
from .records import INTERPOLATION_METHOD, CalculationBasis, OdometerReading


@dataclass(frozen=True)
class InterpolationBasis:
    """The bracketing meterstand readings a calculation was based on."""

    previous: OdometerReading
    next: Optional[OdometerReading] = None
    method: str = INTERPOLATION_METHOD

    def as_calculation_basis(self) -> CalculationBasis:
        return CalculationBasis(
            self.previous.record_id,
            self.next.record_id if self.next else None,
            self.method,
        )


@dataclass(frozen=True)
class InterpolationResult:
    start_odometer_km: float
    basis: InterpolationBasis
    end_odometer_km: Optional[float] = None


def meterstand_readings(readings: Iterable[OdometerReading]) -> List[OdometerReading]:
    """Meterstand readings only, ascending by timestamp."""
    return sorted(
        (r for r in readings if r.kind == ReadingKind.METERSTAND),
        key=lambda r: r.timestamp,
    )


def find_previous_reading(
    readings: List[OdometerReading], timestamp: int
) -> Optional[OdometerReading]:
    """Last reading at or before timestamp. Expects ascending order."""
    previous = None
    for reading in readings:
        if reading.timestamp <= timestamp:
            previous = reading
        else:
            break
    return previous


def find_next_reading(
    readings: List[OdometerReading], timestamp: int
) -> Optional[OdometerReading]:
    """First reading strictly after timestamp. Expects ascending order."""
    for reading in readings:
        if reading.timestamp > timestamp:
            return reading
    return None


def interpolate(
    previous: OdometerReading, next_reading: OdometerReading, timestamp: int
) -> float:
    """Linear interpolation of the odometer at timestamp between two anchors."""
    total_time = next_reading.timestamp - previous.timestamp
    if total_time <= 0:
        raise AmbiguousBasis(
            "Meterstand readings share a timestamp; interpolation is undefined"
        )
    total_km = next_reading.odometer_km - previous.odometer_km
    if total_km < 0:
        raise AmbiguousBasis(
            f"Meterstand readings decrease from {previous.odometer_km:,.0f} km "
            f"to {next_reading.odometer_km:,.0f} km; correct them first"
        )
    elapsed = timestamp - previous.timestamp
    return previous.odometer_km + total_km * elapsed / total_time


def calculate_odometer(
    readings: Iterable[OdometerReading],
    target_timestamp: int,
    explicit_distance_km: Optional[float] = None,
) -> InterpolationResult:
    """
    Calculate start/end odometer for a trip at target_timestamp.

    - Previous and next meterstand: interpolate the start linearly
    - Previous only: start at the previous reading, end at start + distance
      when a distance is known (no extrapolation forward in time)
    - No previous: NoPriorReading

    Raises:
        NoPriorReading: no meterstand reading at or before the target.
        AmbiguousBasis: the bracketing readings cannot be interpolated.
    """
    basis_readings = meterstand_readings(readings)
    previous = find_previous_reading(basis_readings, target_timestamp)
    next_reading = find_next_reading(basis_readings, target_timestamp)

    if previous is None:
        raise NoPriorReading(target_timestamp)

    if next_reading is not None:
        start = interpolate(previous, next_reading, target_timestamp)
        return InterpolationResult(
            start_odometer_km=start,
            basis=InterpolationBasis(previous, next_reading),
        )

    start = previous.odometer_km
    end = None
    if explicit_distance_km and explicit_distance_km > 0:
        end = start + explicit_distance_km
    return InterpolationResult(
        start_odometer_km=start,
        end_odometer_km=end,
        basis=InterpolationBasis(previous),
    )


def expected_odometer_reading(
    readings: Iterable[OdometerReading], timestamp: int
) -> Optional[float]:
    """Expected odometer at timestamp, or None when it cannot be calculated."""
    try:
        return calculate_odometer(readings, timestamp).start_odometer_km
    except (NoPriorReading, AmbiguousBasis):
        return None

"""
Compliance audit over a vehicle's complete trip history.

Walks consecutive trip pairs and flags:
- Rollback: next start below the previous odometer
- Odometer gap: kilometers not covered by the recorded trip distance
- Missing trips: more than a week and 100 km without registrations
- Trips without an end odometer
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

from .chronology import GAP_TOLERANCE_KM
from .records import effective_odometer
from .severity import Severity
from .vehicle import Vehicle

DAY_MS = 24 * 60 * 60 * 1000


class DeviationType(Enum):
    ODOMETER_ROLLBACK = "odometer_rollback"
    ODOMETER_GAP = "odometer_gap"
    MISSING_TRIPS = "missing_trips"
    MISSING_END = "missing_end"


@dataclass
class Deviation:
    type: DeviationType
    severity: Severity
    description: str
    trip_id: str
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ComplianceReport:
    vehicle_id: str
    deviations: List[Deviation] = field(default_factory=list)
    total_unaccounted_km: float = 0

    @property
    def score(self) -> int:
        """100 minus 5 per deviation and up to 50 for unaccounted kilometers."""
        deviation_penalty = len(self.deviations) * 5
        unaccounted_penalty = min(50, self.total_unaccounted_km / 10)
        return round(max(0, 100 - deviation_penalty - unaccounted_penalty))


def _gap_severity(gap_km: float) -> Severity:
    if gap_km > 50:
        return Severity.HIGH
    if gap_km > 20:
        return Severity.MEDIUM
    return Severity.LOW


def analyze_compliance(
    vehicle: Vehicle, tolerance_km: float = GAP_TOLERANCE_KM
) -> ComplianceReport:
    report = ComplianceReport(vehicle.id)
    trips = vehicle.trips

    for current, following in zip(trips, trips[1:]):
        current_km = effective_odometer(current)
        next_km = following.start_odometer_km

        if next_km < current_km:
            report.deviations.append(
                Deviation(
                    DeviationType.ODOMETER_ROLLBACK,
                    Severity.HIGH,
                    "Odometer is lower than the previous registration",
                    following.id,
                    {
                        "odometerBefore": current_km,
                        "odometerAfter": next_km,
                        "difference": current_km - next_km,
                    },
                )
            )
            continue

        odometer_diff = next_km - current_km
        # A complete trip's distance is already inside its end odometer
        recorded = 0 if current.end_odometer_km is not None else current.distance_km or 0
        gap = odometer_diff - recorded
        if gap > tolerance_km:
            report.deviations.append(
                Deviation(
                    DeviationType.ODOMETER_GAP,
                    _gap_severity(gap),
                    f"{round(gap)} km difference between odometer and recorded distance",
                    current.id,
                    {
                        "odometerBefore": current_km,
                        "odometerAfter": next_km,
                        "recordedDistance": recorded,
                        "gap": round(gap),
                    },
                )
            )
            report.total_unaccounted_km += gap

        days = (following.timestamp - current.timestamp) / DAY_MS
        if days > 7 and odometer_diff > 100:
            report.deviations.append(
                Deviation(
                    DeviationType.MISSING_TRIPS,
                    Severity.HIGH if days > 30 else Severity.MEDIUM,
                    f"{int(days)} days without registrations, "
                    f"but {odometer_diff:,.0f} km driven",
                    current.id,
                    {"days": int(days), "kmDriven": odometer_diff},
                )
            )

        if current.end_odometer_km is None:
            report.deviations.append(
                Deviation(
                    DeviationType.MISSING_END,
                    Severity.MEDIUM,
                    "Trip without end odometer",
                    current.id,
                )
            )

    return report

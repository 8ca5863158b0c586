"""Vehicle class - the aggregate owning a vehicle's registrations."""

from typing import List, Optional

from .kinds import ReadingKind, TrackingMode
from .records import (
    MeterstandRecord,
    OdometerReading,
    Registration,
    TripRecord,
    effective_odometer,
)


def parse_tracking_mode(value: Optional[str]) -> TrackingMode:
    """Unknown or missing modes fall back to manual entry."""
    if value == TrackingMode.AUTO_CALCULATE.value:
        return TrackingMode.AUTO_CALCULATE
    return TrackingMode.MANUAL


class Vehicle:
    """Vehicle identification, access and its full registration history."""

    def __init__(
        self,
        vehicle_id: str,
        license_plate: str,
        make: Optional[str] = None,
        model: Optional[str] = None,
        tracking_mode: TrackingMode = TrackingMode.MANUAL,
        enabled: bool = True,
        owner_id: Optional[str] = None,
        shared_with: Optional[List[str]] = None,
        registrations: Optional[List[Registration]] = None,
    ):
        self.id = vehicle_id
        self.license_plate = license_plate
        self.make = make
        self.model = model
        self.tracking_mode = tracking_mode
        self.enabled = enabled
        self.owner_id = owner_id
        self.shared_with = shared_with or []
        self.registrations = registrations or []

    @property
    def name(self) -> str:
        """Human-readable vehicle name."""
        if self.make and self.model:
            return f"{self.make} {self.model}"
        return self.license_plate

    @property
    def trips(self) -> List[TripRecord]:
        """Trip registrations ordered by timestamp."""
        trips = [r for r in self.registrations if isinstance(r, TripRecord)]
        return sorted(trips, key=lambda t: t.timestamp)

    @property
    def meterstand_entries(self) -> List[MeterstandRecord]:
        """Meterstand registrations ordered by timestamp."""
        entries = [r for r in self.registrations if isinstance(r, MeterstandRecord)]
        return sorted(entries, key=lambda m: m.timestamp)

    @property
    def highest_odometer(self) -> Optional[float]:
        """Highest odometer value seen in any registration."""
        if not self.registrations:
            return None
        return max(effective_odometer(r) for r in self.registrations)

    @property
    def incomplete_trips(self) -> List[TripRecord]:
        """
        Trips still waiting for a manual end odometer.

        Auto-calculated trips are skipped: their odometer is filled in
        from meterstand entries, not by the user.
        """
        return [t for t in self.trips if t.is_incomplete and not t.odometer_calculated]

    def readings(self, kind: Optional[ReadingKind] = None) -> List[OdometerReading]:
        """All odometer readings, optionally of one kind, ordered by timestamp."""
        readings = []
        for registration in self.registrations:
            readings.extend(registration.readings())
        if kind is not None:
            readings = [r for r in readings if r.kind == kind]
        return sorted(readings, key=lambda r: r.timestamp)

    def get_registration(self, registration_id: str) -> Optional[Registration]:
        for registration in self.registrations:
            if registration.id == registration_id:
                return registration
        return None

    def can_be_used_by(self, user_id: str) -> bool:
        """Owners and users the vehicle is shared with may log trips."""
        if self.owner_id is None:
            return True
        return user_id == self.owner_id or user_id in self.shared_with

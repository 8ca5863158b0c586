"""
Trip registration workflows.

TripService ties the engine together:
1. Auto-calculate odometer values for vehicles in auto_calculate mode
2. Validate chronology against existing trips (skipped for calculated values)
3. Persist the registration while holding the vehicle's write lock
4. Report milestones, gaps and incomplete trips as best-effort side effects
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Callable, List, Optional

from .chronology import (
    ProposedReading,
    diagnose_gap,
    find_prior_trip,
    now_ms,
    validate_chronology,
    validate_reading,
)
from .config import Settings
from .errors import (
    AccessDenied,
    EndBeforeStart,
    InvalidRecord,
    RegistrationNotFound,
    VehicleDisabled,
)
from .interpolation import calculate_odometer, expected_odometer_reading
from .kinds import (
    CalculationMethod,
    ReadingKind,
    TrackingMode,
    TripDirection,
    TripPurpose,
)
from .locks import VehicleLocks
from .milestones import detect_milestones, previous_highest_odometer
from .notifications import (
    GAP_EVENT,
    INCOMPLETE_TRIP_EVENT,
    MILESTONE_EVENT,
    NotificationSink,
    gap_payload,
    incomplete_trip_payload,
    milestone_payload,
)
from .records import MeterstandRecord, TripRecord, effective_odometer
from .side_effects import SideEffect, run_side_effects
from .store import YamlRecordStore
from .vehicle import Vehicle

logger = logging.getLogger(__name__)


def new_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass
class TripRequest:
    """Input for creating a trip."""

    vehicle_id: str
    timestamp: int
    purpose: TripPurpose = TripPurpose.BUSINESS
    start_odometer_km: Optional[float] = None
    end_odometer_km: Optional[float] = None
    distance_km: Optional[float] = None
    calculation_method: Optional[CalculationMethod] = None
    departure: Optional[str] = None
    destination: Optional[str] = None
    description: Optional[str] = None
    alternative_route: Optional[str] = None
    private_detour_km: Optional[float] = None
    user_id: Optional[str] = None


class TripService:
    def __init__(
        self,
        store: YamlRecordStore,
        sink: NotificationSink,
        settings: Optional[Settings] = None,
        locks: Optional[VehicleLocks] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.store = store
        self.sink = sink
        self.settings = settings or Settings()
        self.locks = locks or VehicleLocks()
        self.clock = clock

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _usable_vehicle(self, vehicle_id: str, user_id: Optional[str]) -> Vehicle:
        vehicle = self.store.load_vehicle(vehicle_id)
        if not vehicle.enabled:
            raise VehicleDisabled(vehicle_id)
        if user_id is not None and not vehicle.can_be_used_by(user_id):
            raise AccessDenied(vehicle_id, user_id)
        return vehicle

    def _get_trip(self, vehicle: Vehicle, trip_id: str) -> TripRecord:
        registration = vehicle.get_registration(trip_id)
        if registration is None:
            raise RegistrationNotFound(trip_id)
        if not isinstance(registration, TripRecord):
            raise InvalidRecord(f"Registration {trip_id} is a meterstand entry, not a trip")
        return registration

    def _milestone_effect(
        self, vehicle_id: str, trip_id: str, new_odometer: float, user_id: Optional[str]
    ) -> SideEffect:
        def notify():
            vehicle = self.store.load_vehicle(vehicle_id)
            previous = previous_highest_odometer(
                vehicle.trips,
                new_odometer,
                self.settings.milestone_lookback,
                exclude_id=trip_id,
            )
            for milestone in detect_milestones(
                previous, new_odometer, self.settings.milestones
            ):
                self.sink.enqueue(
                    MILESTONE_EVENT, milestone_payload(vehicle, milestone, user_id)
                )
                logger.info(f"Milestone {milestone} km reached by vehicle {vehicle_id}")

        return ("milestone", notify)

    def _incomplete_effect(
        self, vehicle: Vehicle, trip_id: str, user_id: Optional[str]
    ) -> SideEffect:
        def notify():
            self.sink.enqueue(
                INCOMPLETE_TRIP_EVENT, incomplete_trip_payload(vehicle, trip_id, user_id)
            )

        return ("incomplete_trip", notify)

    def _gap_effect(
        self,
        vehicle: Vehicle,
        prior: TripRecord,
        new_start_km: float,
        user_id: Optional[str],
    ) -> SideEffect:
        def notify():
            diagnostic = diagnose_gap(prior, new_start_km, self.settings.gap_tolerance_km)
            if diagnostic is None:
                return
            logger.warning(
                f"Odometer gap of {diagnostic.gap_km:,.0f} km on vehicle {vehicle.id} "
                f"after trip {prior.id}"
            )
            self.sink.enqueue(GAP_EVENT, gap_payload(vehicle, diagnostic, user_id))

        return ("odometer_gap", notify)

    # -------------------------------------------------------------------------
    # Trips
    # -------------------------------------------------------------------------

    def create_trip(self, request: TripRequest) -> TripRecord:
        """
        Validate and store a new trip.

        Raises:
            VehicleNotFound, VehicleDisabled, AccessDenied: vehicle checks.
            InvalidRecord: no start odometer in manual mode.
            InterpolationError: auto-calculation has no usable basis.
            ChronologyError: the odometer values contradict the history.
        """
        with self.locks.hold(request.vehicle_id):
            vehicle = self._usable_vehicle(request.vehicle_id, request.user_id)

            start = request.start_odometer_km
            end = request.end_odometer_km
            odometer_calculated = False
            basis = None

            # 0 is the "please calculate" value in auto_calculate mode
            if vehicle.tracking_mode == TrackingMode.AUTO_CALCULATE and not start:
                result = calculate_odometer(
                    vehicle.readings(ReadingKind.METERSTAND),
                    request.timestamp,
                    request.distance_km,
                )
                start = result.start_odometer_km
                if result.end_odometer_km is not None:
                    end = result.end_odometer_km
                odometer_calculated = True
                basis = result.basis.as_calculation_basis()
            elif start is None:
                raise InvalidRecord("Start odometer is required")

            proposed = ProposedReading(request.timestamp, start, end)
            now = self.clock()
            prior = None
            if odometer_calculated:
                validate_reading(proposed, now, self.settings.future_skew_minutes)
            else:
                validate_chronology(
                    vehicle.trips, proposed, now, self.settings.future_skew_minutes
                )
                prior = find_prior_trip(vehicle.trips, request.timestamp)

            distance = request.distance_km
            method = request.calculation_method
            if not distance and end is not None:
                distance = end - start
                method = CalculationMethod.ODOMETER

            trip = TripRecord(
                new_id(),
                vehicle.id,
                request.timestamp,
                start,
                purpose=request.purpose,
                end_odometer_km=end,
                distance_km=distance,
                calculation_method=method,
                departure=request.departure,
                destination=request.destination,
                description=request.description,
                alternative_route=request.alternative_route,
                private_detour_km=request.private_detour_km,
                odometer_calculated=odometer_calculated,
                calculation_basis=basis,
                created_at=now,
            )
            self.store.insert_trip(trip)

        effects: List[SideEffect] = []
        if trip.end_odometer_km is not None:
            effects.append(
                self._milestone_effect(
                    vehicle.id, trip.id, trip.end_odometer_km, request.user_id
                )
            )
        else:
            effects.append(self._incomplete_effect(vehicle, trip.id, request.user_id))
        if prior is not None:
            effects.append(self._gap_effect(vehicle, prior, start, request.user_id))
        run_side_effects(effects)

        return trip

    def complete_trip(
        self,
        vehicle_id: str,
        trip_id: str,
        end_odometer_km: float,
        user_id: Optional[str] = None,
    ) -> TripRecord:
        """Attach the actual end odometer to an incomplete trip."""
        with self.locks.hold(vehicle_id):
            vehicle = self._usable_vehicle(vehicle_id, user_id)
            trip = self._get_trip(vehicle, trip_id)
            if end_odometer_km <= trip.start_odometer_km:
                raise EndBeforeStart(trip.start_odometer_km)
            updated = self.store.update_trip(
                vehicle_id,
                trip_id,
                {
                    "end_odometer_km": end_odometer_km,
                    "distance_km": end_odometer_km - trip.start_odometer_km,
                    "calculation_method": CalculationMethod.ODOMETER,
                },
            )

        run_side_effects(
            [self._milestone_effect(vehicle_id, trip_id, end_odometer_km, user_id)]
        )
        return updated

    def create_return_journey(
        self,
        vehicle_id: str,
        outward_trip_id: str,
        timestamp: Optional[int] = None,
        user_id: Optional[str] = None,
    ) -> TripRecord:
        """
        Log the way back of an existing trip.

        Departure and destination are swapped, the odometer starts where the
        outward trip ended and both trips stay linked.
        The return trip goes through the same chronology checks as any
        manually entered trip.
        """
        with self.locks.hold(vehicle_id):
            vehicle = self._usable_vehicle(vehicle_id, user_id)
            outward = self._get_trip(vehicle, outward_trip_id)
            now = self.clock()
            start = effective_odometer(outward)
            if timestamp is None:
                timestamp = now
            validate_chronology(
                vehicle.trips,
                ProposedReading(timestamp, start),
                now,
                self.settings.future_skew_minutes,
            )

            description = "Return journey"
            if outward.description:
                description = f"Return journey: {outward.description}"

            trip = TripRecord(
                new_id(),
                vehicle_id,
                timestamp,
                start,
                purpose=outward.purpose,
                distance_km=outward.distance_km,
                calculation_method=outward.calculation_method,
                departure=outward.destination,
                destination=outward.departure,
                description=description,
                linked_trip_id=outward.id,
                trip_direction=TripDirection.RETURN,
                created_at=now,
            )
            self.store.insert_trip(trip)

        run_side_effects([self._incomplete_effect(vehicle, trip.id, user_id)])
        return trip

    def incomplete_trips(self, vehicle_id: str) -> List[TripRecord]:
        return self.store.load_vehicle(vehicle_id).incomplete_trips

    # -------------------------------------------------------------------------
    # Meterstand entries
    # -------------------------------------------------------------------------

    def create_meterstand(
        self,
        vehicle_id: str,
        timestamp: int,
        odometer_km: float,
        description: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> MeterstandRecord:
        """Record a periodic odometer reading. Only the owner may do this."""
        with self.locks.hold(vehicle_id):
            vehicle = self.store.load_vehicle(vehicle_id)
            if not vehicle.enabled:
                raise VehicleDisabled(vehicle_id)
            if user_id is not None and vehicle.owner_id not in (None, user_id):
                raise AccessDenied(vehicle_id, user_id)
            if odometer_km < 0:
                raise InvalidRecord("Odometer cannot be negative")

            now = self.clock()
            validate_reading(
                ProposedReading(timestamp, odometer_km),
                now,
                self.settings.future_skew_minutes,
            )
            entry = MeterstandRecord(
                new_id(), vehicle_id, timestamp, odometer_km, description, created_at=now
            )
            self.store.insert_meterstand(entry)
        return entry

    def expected_odometer(self, vehicle_id: str, timestamp: int) -> Optional[float]:
        """Interpolated odometer at timestamp, None without a prior reading."""
        readings = self.store.find_readings(vehicle_id, ReadingKind.METERSTAND)
        return expected_odometer_reading(readings, timestamp)

    def delete_registration(
        self, vehicle_id: str, registration_id: str, user_id: Optional[str] = None
    ) -> None:
        with self.locks.hold(vehicle_id):
            self._usable_vehicle(vehicle_id, user_id)
            self.store.delete_registration(vehicle_id, registration_id)

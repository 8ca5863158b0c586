"""
YAML record store: one file per vehicle holding its registrations.

Files are validated against schema.yaml when loaded and before every
write, so callers only ever see well-formed records.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .errors import InvalidRecord, RegistrationNotFound, VehicleNotFound
from .kinds import CalculationMethod, ReadingKind, TripDirection, TripPurpose
from .records import (
    CalculationBasis,
    MeterstandRecord,
    OdometerReading,
    Registration,
    TripRecord,
)
from .schema import validate_document
from .vehicle import Vehicle, parse_tracking_mode

logger = logging.getLogger(__name__)


# =============================================================================
# Parsing (YAML dict -> objects)
# =============================================================================


def _enum_or_none(enum_cls, value):
    return enum_cls(value) if value is not None else None


def _parse_registration(vehicle_id: str, dct: Dict[str, Any]) -> Registration:
    """Parse a registration dict into the matching record type."""
    if dct["type"] == MeterstandRecord.type:
        return MeterstandRecord(
            dct["id"],
            vehicle_id,
            dct["timestamp"],
            dct["odometerKm"],
            dct.get("description"),
            dct.get("createdAt"),
        )
    basis = dct.get("calculationBasedOn")
    return TripRecord(
        dct["id"],
        vehicle_id,
        dct["timestamp"],
        dct["startOdometerKm"],
        purpose=TripPurpose(dct["purpose"]),
        end_odometer_km=dct.get("endOdometerKm"),
        distance_km=dct.get("distanceKm"),
        calculation_method=_enum_or_none(CalculationMethod, dct.get("calculationMethod")),
        departure=dct.get("departure"),
        destination=dct.get("destination"),
        description=dct.get("description"),
        alternative_route=dct.get("alternativeRoute"),
        private_detour_km=dct.get("privateDetourKm"),
        linked_trip_id=dct.get("linkedTripId"),
        trip_direction=_enum_or_none(TripDirection, dct.get("tripDirection")),
        odometer_calculated=dct.get("odometerCalculated", False),
        calculation_basis=(
            CalculationBasis(
                basis.get("previousMeterstandId"),
                basis.get("nextMeterstandId"),
                basis.get("interpolationMethod", "linear"),
            )
            if basis
            else None
        ),
        created_at=dct.get("createdAt"),
    )


def _parse_vehicle(vehicle_id: str, data: Dict[str, Any]) -> Vehicle:
    info = data["vehicle"]
    registrations = [
        _parse_registration(vehicle_id, r) for r in data.get("registrations") or []
    ]
    return Vehicle(
        vehicle_id,
        info["licensePlate"],
        make=info.get("make"),
        model=info.get("model"),
        tracking_mode=parse_tracking_mode(info.get("trackingMode")),
        enabled=info.get("enabled", True),
        owner_id=info.get("ownerId"),
        shared_with=info.get("sharedWith"),
        registrations=registrations,
    )


# =============================================================================
# Serialization (objects -> YAML dict, camelCase keys, None omitted)
# =============================================================================


def _meterstand_to_dict(entry: MeterstandRecord) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "id": entry.id,
        "type": entry.type,
        "timestamp": entry.timestamp,
        "createdAt": entry.created_at,
        "odometerKm": entry.odometer_km,
    }
    if entry.description is not None:
        d["description"] = entry.description
    return d


def _trip_to_dict(trip: TripRecord) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "id": trip.id,
        "type": trip.type,
        "timestamp": trip.timestamp,
        "createdAt": trip.created_at,
        "startOdometerKm": trip.start_odometer_km,
        "purpose": trip.purpose.value,
    }
    optional = {
        "endOdometerKm": trip.end_odometer_km,
        "distanceKm": trip.distance_km,
        "calculationMethod": (
            trip.calculation_method.value if trip.calculation_method else None
        ),
        "departure": trip.departure,
        "destination": trip.destination,
        "description": trip.description,
        "alternativeRoute": trip.alternative_route,
        "privateDetourKm": trip.private_detour_km,
        "linkedTripId": trip.linked_trip_id,
        "tripDirection": trip.trip_direction.value if trip.trip_direction else None,
    }
    d.update({k: v for k, v in optional.items() if v is not None})
    if trip.odometer_calculated:
        d["odometerCalculated"] = True
    if trip.calculation_basis is not None:
        basis = trip.calculation_basis
        d["calculationBasedOn"] = {
            k: v
            for k, v in {
                "previousMeterstandId": basis.previous_meterstand_id,
                "nextMeterstandId": basis.next_meterstand_id,
                "interpolationMethod": basis.interpolation_method,
            }.items()
            if v is not None
        }
    return d


def _registration_to_dict(registration: Registration) -> Dict[str, Any]:
    if isinstance(registration, TripRecord):
        return _trip_to_dict(registration)
    return _meterstand_to_dict(registration)


def _vehicle_to_dict(vehicle: Vehicle) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "licensePlate": vehicle.license_plate,
        "trackingMode": vehicle.tracking_mode.value,
        "enabled": vehicle.enabled,
    }
    if vehicle.make is not None:
        d["make"] = vehicle.make
    if vehicle.model is not None:
        d["model"] = vehicle.model
    if vehicle.owner_id is not None:
        d["ownerId"] = vehicle.owner_id
    if vehicle.shared_with:
        d["sharedWith"] = list(vehicle.shared_with)
    return d


# =============================================================================
# Store
# =============================================================================


class YamlRecordStore:
    """Registrations stored as <root>/<vehicle_id>.yaml files."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def path_for(self, vehicle_id: str) -> Path:
        return self.root / f"{vehicle_id}.yaml"

    def exists(self, vehicle_id: str) -> bool:
        return self.path_for(vehicle_id).exists()

    def vehicle_ids(self) -> List[str]:
        return sorted(p.stem for p in self.root.glob("*.yaml"))

    def _read_raw(self, vehicle_id: str) -> Dict[str, Any]:
        path = self.path_for(vehicle_id)
        if not path.exists():
            raise VehicleNotFound(vehicle_id)
        with open(path, "r") as fp:
            data = yaml.load(fp, Loader=yaml.SafeLoader)
        validate_document(data)
        if data.get("registrations") is None:
            data["registrations"] = []
        return data

    def _write_raw(self, vehicle_id: str, data: Dict[str, Any]) -> None:
        """Write via a temp file and rename, so readers never see a partial file."""
        validate_document(data)
        tmp = tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=self.root,
            prefix=f".{vehicle_id}.",
            suffix=".tmp",
            delete=False,
        )
        try:
            with tmp as fp:
                yaml.dump(
                    data,
                    fp,
                    default_flow_style=False,
                    allow_unicode=True,
                    sort_keys=False,
                    width=120,
                )
            os.replace(tmp.name, self.path_for(vehicle_id))
        except BaseException:
            Path(tmp.name).unlink(missing_ok=True)
            raise

    # -- queries --------------------------------------------------------------

    def load_vehicle(self, vehicle_id: str) -> Vehicle:
        return _parse_vehicle(vehicle_id, self._read_raw(vehicle_id))

    def find_readings(
        self, vehicle_id: str, kind: Optional[ReadingKind] = None
    ) -> List[OdometerReading]:
        return self.load_vehicle(vehicle_id).readings(kind)

    def find_trips(self, vehicle_id: str) -> List[TripRecord]:
        return self.load_vehicle(vehicle_id).trips

    def find_meterstand(self, vehicle_id: str) -> List[MeterstandRecord]:
        return self.load_vehicle(vehicle_id).meterstand_entries

    # -- writes ---------------------------------------------------------------

    def create_vehicle(self, vehicle: Vehicle) -> None:
        """Create a new vehicle file. Existing files are never overwritten."""
        if self.exists(vehicle.id):
            raise InvalidRecord(f"Vehicle already exists: {vehicle.id}")
        self.root.mkdir(parents=True, exist_ok=True)
        data = {
            "vehicle": _vehicle_to_dict(vehicle),
            "registrations": [_registration_to_dict(r) for r in vehicle.registrations],
        }
        self._write_raw(vehicle.id, data)
        logger.info(f"Created vehicle {vehicle.id}")

    def _insert(self, registration: Registration) -> None:
        data = self._read_raw(registration.vehicle_id)
        if any(r["id"] == registration.id for r in data["registrations"]):
            raise InvalidRecord(f"Duplicate registration id: {registration.id}")
        data["registrations"].append(_registration_to_dict(registration))
        self._write_raw(registration.vehicle_id, data)
        logger.info(
            f"Inserted {registration.type} {registration.id} "
            f"for vehicle {registration.vehicle_id}"
        )

    def insert_trip(self, trip: TripRecord) -> None:
        self._insert(trip)

    def insert_meterstand(self, entry: MeterstandRecord) -> None:
        self._insert(entry)

    def _index_of(self, data: Dict[str, Any], registration_id: str) -> int:
        for i, r in enumerate(data["registrations"]):
            if r["id"] == registration_id:
                return i
        raise RegistrationNotFound(registration_id)

    def update_trip(
        self, vehicle_id: str, trip_id: str, patch: Dict[str, Any]
    ) -> TripRecord:
        """
        Apply a patch of TripRecord attribute names to a stored trip.

        Returns the updated trip.
        """
        data = self._read_raw(vehicle_id)
        index = self._index_of(data, trip_id)
        trip = _parse_registration(vehicle_id, data["registrations"][index])
        if not isinstance(trip, TripRecord):
            raise InvalidRecord(f"Registration {trip_id} is not a trip")

        for field, value in patch.items():
            if field in ("id", "vehicle_id") or field not in vars(trip):
                raise InvalidRecord(f"Cannot update trip field '{field}'")
            setattr(trip, field, value)

        data["registrations"][index] = _trip_to_dict(trip)
        self._write_raw(vehicle_id, data)
        logger.info(f"Updated trip {trip_id} for vehicle {vehicle_id}")
        return trip

    def delete_registration(self, vehicle_id: str, registration_id: str) -> None:
        data = self._read_raw(vehicle_id)
        index = self._index_of(data, registration_id)
        del data["registrations"][index]
        self._write_raw(vehicle_id, data)
        logger.info(f"Deleted registration {registration_id} for vehicle {vehicle_id}")

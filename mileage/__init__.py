"""
Mileage registration engine.

This package keeps a vehicle's odometer history consistent:
- ReadingKind, TripPurpose, TrackingMode: registration enums
- MeterstandRecord, TripRecord: stored registrations
- Vehicle: aggregate owning a vehicle's registrations
- calculate_odometer: linear interpolation between meterstand readings
- validate_chronology: ordering checks against trip history
- detect_milestones: round-number odometer crossings
- TripService: trip creation and completion workflows
- YamlRecordStore: one YAML file per vehicle
"""

from .kinds import (
    CalculationMethod,
    ReadingKind,
    TrackingMode,
    TripDirection,
    TripPurpose,
)
from .severity import Severity
from .records import (
    CalculationBasis,
    MeterstandRecord,
    OdometerReading,
    TripRecord,
    effective_odometer,
)
from .vehicle import Vehicle
from .errors import (
    AboveNext,
    AccessDenied,
    AmbiguousBasis,
    BelowPrior,
    ChronologyError,
    ConfigError,
    EndAboveNext,
    EndBeforeStart,
    FutureTimestamp,
    InterpolationError,
    InvalidRecord,
    MileageError,
    NoPriorReading,
    RegistrationNotFound,
    VehicleDisabled,
    VehicleNotFound,
)
from .interpolation import (
    InterpolationBasis,
    InterpolationResult,
    calculate_odometer,
    expected_odometer_reading,
)
from .chronology import (
    GapDiagnostic,
    ProposedReading,
    classify_gap,
    compute_gap,
    diagnose_gap,
    validate_chronology,
    validate_reading,
)
from .milestones import MILESTONES, detect_milestones, previous_highest_odometer
from .config import Settings, load_settings
from .store import YamlRecordStore
from .notifications import InMemoryQueue, NotificationSink
from .service import TripRequest, TripService

__all__ = [
    "CalculationMethod",
    "ReadingKind",
    "TrackingMode",
    "TripDirection",
    "TripPurpose",
    "Severity",
    "CalculationBasis",
    "MeterstandRecord",
    "OdometerReading",
    "TripRecord",
    "effective_odometer",
    "Vehicle",
    "AboveNext",
    "AccessDenied",
    "AmbiguousBasis",
    "BelowPrior",
    "ChronologyError",
    "ConfigError",
    "EndAboveNext",
    "EndBeforeStart",
    "FutureTimestamp",
    "InterpolationError",
    "InvalidRecord",
    "MileageError",
    "NoPriorReading",
    "RegistrationNotFound",
    "VehicleDisabled",
    "VehicleNotFound",
    "InterpolationBasis",
    "InterpolationResult",
    "calculate_odometer",
    "expected_odometer_reading",
    "GapDiagnostic",
    "ProposedReading",
    "classify_gap",
    "compute_gap",
    "diagnose_gap",
    "validate_chronology",
    "validate_reading",
    "MILESTONES",
    "detect_milestones",
    "previous_highest_odometer",
    "Settings",
    "load_settings",
    "YamlRecordStore",
    "InMemoryQueue",
    "NotificationSink",
    "TripRequest",
    "TripService",
]

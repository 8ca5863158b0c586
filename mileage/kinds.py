"""Enums describing registrations, trips and vehicle tracking modes."""

from enum import Enum


class ReadingKind(Enum):
    """Where an odometer reading comes from."""

    METERSTAND = "meterstand"  # Periodic manual reading, the interpolation basis
    TRIP_START = "trip_start"
    TRIP_END = "trip_end"


class TripPurpose(Enum):
    """Trip classification used for tax reporting."""

    BUSINESS = "business"
    PRIVATE = "private"
    COMMUTE = "commute"


class TrackingMode(Enum):
    """How odometer values for new trips are obtained."""

    MANUAL = "manual"
    AUTO_CALCULATE = "auto_calculate"


class CalculationMethod(Enum):
    """How a trip's distance was determined."""

    ODOMETER = "odometer"
    ROUTE = "route"
    MANUAL = "manual"


class TripDirection(Enum):
    OUTWARD = "outward"
    RETURN = "return"

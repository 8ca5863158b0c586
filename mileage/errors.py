"""Exceptions raised by the mileage engine and record store."""

from typing import Optional


def format_odometer(km: float) -> str:
    """Odometer for messages, keeping the decimals the comparison used."""
    if float(km).is_integer():
        return f"{km:,.0f}"
    return f"{km:,.2f}".rstrip("0")


class MileageError(Exception):
    """Base class for all mileage registration errors."""


class InvalidRecord(MileageError):
    """A record or request failed field/schema validation."""


class ConfigError(MileageError):
    """The settings file is missing or malformed."""


class VehicleNotFound(MileageError):
    def __init__(self, vehicle_id: str):
        super().__init__(f"Vehicle not found: {vehicle_id}")
        self.vehicle_id = vehicle_id


class RegistrationNotFound(MileageError):
    def __init__(self, registration_id: str):
        super().__init__(f"Registration not found: {registration_id}")
        self.registration_id = registration_id


class VehicleDisabled(MileageError):
    def __init__(self, vehicle_id: str):
        super().__init__(f"Vehicle {vehicle_id} is disabled")
        self.vehicle_id = vehicle_id


class AccessDenied(MileageError):
    def __init__(self, vehicle_id: str, user_id: str):
        super().__init__(f"User {user_id} has no access to vehicle {vehicle_id}")
        self.vehicle_id = vehicle_id
        self.user_id = user_id


# =============================================================================
# Interpolation errors
# =============================================================================


class InterpolationError(MileageError):
    """The odometer could not be auto-calculated."""

    code = "calculation_error"


class NoPriorReading(InterpolationError):
    code = "no_prior_reading"

    def __init__(self, target_timestamp: int):
        super().__init__(
            "No odometer reading found before this trip. "
            "Cannot auto-calculate, enter a manual reading first."
        )
        self.target_timestamp = target_timestamp


class AmbiguousBasis(InterpolationError):
    code = "ambiguous_basis"


# =============================================================================
# Chronology errors
# =============================================================================


class ChronologyError(MileageError):
    """A proposed reading is inconsistent with the vehicle's history."""

    code = "chronology"

    def __init__(self, message: str, neighbor_km: Optional[float] = None):
        super().__init__(message)
        self.neighbor_km = neighbor_km


class BelowPrior(ChronologyError):
    code = "below_prior"

    def __init__(self, prior_km: float):
        super().__init__(
            f"Start odometer must be higher than the previous registration "
            f"({format_odometer(prior_km)} km)",
            prior_km,
        )


class AboveNext(ChronologyError):
    code = "above_next"

    def __init__(self, next_km: float):
        super().__init__(
            f"Start odometer must be lower than the next registration "
            f"({format_odometer(next_km)} km)",
            next_km,
        )


class EndAboveNext(ChronologyError):
    code = "end_above_next"

    def __init__(self, next_km: float):
        super().__init__(
            f"End odometer must be lower than the next registration "
            f"({format_odometer(next_km)} km)",
            next_km,
        )


class EndBeforeStart(ChronologyError):
    code = "end_before_start"

    def __init__(self, start_km: float):
        super().__init__(
            f"End odometer must be higher than the start odometer "
            f"({format_odometer(start_km)} km)",
            start_km,
        )


class FutureTimestamp(ChronologyError):
    code = "future_timestamp"

    def __init__(self, skew_minutes: float):
        super().__init__(
            f"Timestamp may not be more than {skew_minutes:g} minutes in the future"
        )
        self.skew_minutes = skew_minutes

"""
Notification events and the sink they are enqueued on.

Delivery (email, webhook, ...) is handled by whatever consumes the queue;
this module only builds payloads and hands them over.
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from .chronology import GapDiagnostic
from .vehicle import Vehicle

logger = logging.getLogger(__name__)

MILESTONE_EVENT = "odometer_milestone"
GAP_EVENT = "odometer_gap"
INCOMPLETE_TRIP_EVENT = "incomplete_trip"


class NotificationSink(Protocol):
    def enqueue(self, event_type: str, payload: Dict[str, Any]) -> str: ...


class InMemoryQueue:
    """Collects enqueued jobs in memory."""

    def __init__(self):
        self.jobs: List[Dict[str, Any]] = []

    def enqueue(self, event_type: str, payload: Dict[str, Any]) -> str:
        job_id = str(uuid.uuid4())
        self.jobs.append(
            {
                "id": job_id,
                "type": event_type,
                "payload": payload,
                "enqueuedAt": datetime.now().isoformat(),
            }
        )
        logger.info(f"Enqueued {event_type} job {job_id}")
        return job_id

    def of_type(self, event_type: str) -> List[Dict[str, Any]]:
        return [job for job in self.jobs if job["type"] == event_type]

    def clear(self) -> None:
        self.jobs.clear()


def format_km(km: float) -> str:
    """Dutch thousands separator, e.g. 10.000."""
    return f"{km:,.0f}".replace(",", ".")


def milestone_payload(
    vehicle: Vehicle, milestone: int, user_id: Optional[str] = None
) -> Dict[str, Any]:
    return {
        "userId": user_id or vehicle.owner_id,
        "title": f"{format_km(milestone)} km milestone!",
        "message": f"Your {vehicle.name} reached {format_km(milestone)} kilometers!",
        "priority": "low",
        "relatedVehicleId": vehicle.id,
        "milestone": milestone,
    }


def gap_payload(
    vehicle: Vehicle, diagnostic: GapDiagnostic, user_id: Optional[str] = None
) -> Dict[str, Any]:
    gap = round(diagnostic.gap_km)
    return {
        "userId": user_id or vehicle.owner_id,
        "title": "Odometer gap detected",
        "message": (
            f"{gap} km are unaccounted for between your last trip "
            f"({format_km(diagnostic.prior_odometer_km)} km) and the new trip "
            f"({format_km(diagnostic.new_odometer_km)} km) for {vehicle.name}. "
            f"Check that no trips are missing."
        ),
        "priority": diagnostic.severity.label,
        "relatedVehicleId": vehicle.id,
        "gapInfo": {
            "lastOdometer": diagnostic.prior_odometer_km,
            "newOdometer": diagnostic.new_odometer_km,
            "gap": gap,
            "lastTripId": diagnostic.prior_trip_id,
        },
    }


def incomplete_trip_payload(
    vehicle: Vehicle, trip_id: str, user_id: Optional[str] = None
) -> Dict[str, Any]:
    return {
        "userId": user_id or vehicle.owner_id,
        "title": "Incomplete trip",
        "message": (
            f"You created a trip without an end odometer for {vehicle.name}. "
            f"Add the end odometer to keep the registration complete."
        ),
        "priority": "high",
        "relatedVehicleId": vehicle.id,
        "relatedRegistrationId": trip_id,
        "incompleteTripIds": [trip_id],
    }

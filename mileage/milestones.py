"""Odometer milestone detection."""

from typing import Iterable, List, Optional, Sequence

from .records import TripRecord, effective_odometer

MILESTONES = (10000, 25000, 50000, 75000, 100000, 150000, 200000, 250000, 500000)
MILESTONE_LOOKBACK = 5


def detect_milestones(
    previous_highest: Optional[float],
    new_odometer: float,
    milestones: Sequence[int] = MILESTONES,
) -> List[int]:
    """
    All milestones m with previous_highest < m <= new_odometer, ascending.

    No previous value means this is the vehicle's first reading, which
    never fires a milestone.
    """
    if previous_highest is None:
        return []
    return [m for m in sorted(milestones) if previous_highest < m <= new_odometer]


def previous_highest_odometer(
    trips: Iterable[TripRecord],
    new_odometer: float,
    lookback: int = MILESTONE_LOOKBACK,
    exclude_id: Optional[str] = None,
) -> Optional[float]:
    """
    Most recent known odometer below new_odometer.

    Only the last `lookback` trips by creation time are scanned.
    """
    recent = sorted(
        (t for t in trips if t.id != exclude_id),
        key=lambda t: t.created_at,
        reverse=True,
    )[:lookback]
    for trip in recent:
        odometer = effective_odometer(trip)
        if odometer < new_odometer:
            return odometer
    return None

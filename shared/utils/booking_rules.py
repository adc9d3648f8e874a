"""
shared/utils/booking_rules.py
Allowed moves for a booking's fulfillment status and partner assignment.

Enforcement is off unless STRICT_BOOKING_TRANSITIONS is set; in the
default mode any status may follow any other and repeating a status
simply appends another history entry.
"""

from datetime import datetime, timezone
from typing import Dict, FrozenSet, Optional

from config.settings import settings
from shared.models.models import AssignmentStatus, BookingStatus


class InvalidTransitionError(Exception):
    def __init__(self, kind: str, current: Optional[str], requested: str):
        self.kind = kind
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move {kind} from '{current or 'none'}' to '{requested}'")


BOOKING_STATUS_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.BOOKED: frozenset({BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED}),
    BookingStatus.IN_PROGRESS: frozenset(
        {BookingStatus.DELIVERABLES_READY, BookingStatus.CANCELLED}
    ),
    BookingStatus.DELIVERABLES_READY: frozenset(
        {BookingStatus.COMPLETED, BookingStatus.CANCELLED}
    ),
    BookingStatus.COMPLETED: frozenset({BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
}

# None = never assigned
ASSIGNMENT_TRANSITIONS: Dict[Optional[AssignmentStatus], FrozenSet[AssignmentStatus]] = {
    None: frozenset({AssignmentStatus.REQUESTED}),
    AssignmentStatus.REQUESTED: frozenset(
        {AssignmentStatus.ACCEPTED, AssignmentStatus.REJECTED, AssignmentStatus.REQUESTED}
    ),
    AssignmentStatus.ACCEPTED: frozenset({AssignmentStatus.COMPLETED, AssignmentStatus.REJECTED}),
    # A rejected booking can be offered to another partner
    AssignmentStatus.REJECTED: frozenset({AssignmentStatus.REQUESTED}),
    AssignmentStatus.COMPLETED: frozenset(),
}


def check_status_transition(
    current: Optional[BookingStatus],
    requested: BookingStatus,
    strict: Optional[bool] = None,
) -> None:
    strict = settings.STRICT_BOOKING_TRANSITIONS if strict is None else strict
    if not strict or current is None:
        return
    current, requested = BookingStatus(current), BookingStatus(requested)
    if requested not in BOOKING_STATUS_TRANSITIONS[current]:
        raise InvalidTransitionError("status", current.value, requested.value)


def check_assignment_transition(
    current: Optional[AssignmentStatus],
    requested: AssignmentStatus,
    strict: Optional[bool] = None,
) -> None:
    strict = settings.STRICT_BOOKING_TRANSITIONS if strict is None else strict
    if not strict:
        return
    current = AssignmentStatus(current) if current is not None else None
    requested = AssignmentStatus(requested)
    if requested not in ASSIGNMENT_TRANSITIONS[current]:
        raise InvalidTransitionError(
            "assignment", current.value if current else None, requested.value
        )


def history_entry(status: str, **extra) -> dict:
    return {
        "status": status,
        "updatedAt": datetime.now(timezone.utc).isoformat(),
        **extra,
    }

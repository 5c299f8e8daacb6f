"""Booking State Machine

    pending ──► confirmed ──► checkedin ──► completed
       │            │
       └──► cancelled ◄┘

``completed`` and ``cancelled`` are terminal.
"""
from typing import Dict, FrozenSet, Optional

from domain.auth import User
from domain.enums import ReservationStatus, Role
from domain.exceptions import AuthorizationError, InvalidTransitionError, ValidationError

ALLOWED_TRANSITIONS: Dict[ReservationStatus, FrozenSet[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset({
        ReservationStatus.CONFIRMED,
        ReservationStatus.CANCELLED,
    }),
    ReservationStatus.CONFIRMED: frozenset({
        ReservationStatus.CHECKED_IN,
        ReservationStatus.CANCELLED,
    }),
    ReservationStatus.CHECKED_IN: frozenset({
        ReservationStatus.COMPLETED,
    }),
    ReservationStatus.COMPLETED: frozenset(),
    ReservationStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)


def can_transition(current: ReservationStatus, target: ReservationStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: ReservationStatus, target: ReservationStatus) -> None:
    """Raise InvalidTransitionError unless current -> target is an edge"""
    if can_transition(current, target):
        return
    raise InvalidTransitionError(_rejection_message(current, target))


def _rejection_message(current: ReservationStatus, target: ReservationStatus) -> str:
    if current == target:
        return {
            ReservationStatus.CONFIRMED: "Booking is already confirmed",
            ReservationStatus.CHECKED_IN: "Booking is already checked in",
            ReservationStatus.COMPLETED: "Booking is already checked out",
            ReservationStatus.CANCELLED: "Booking is already cancelled",
        }.get(current, f"Booking is already {current.value}")

    if current == ReservationStatus.CANCELLED:
        return f"Cannot move a cancelled booking to {target.value}"

    if target == ReservationStatus.CANCELLED:
        return f"Cannot cancel a booking with status {current.value}"

    if target == ReservationStatus.CHECKED_IN:
        return f"Booking must be confirmed before check-in (status: {current.value})"

    if target == ReservationStatus.COMPLETED:
        return f"Booking must be checked in before check-out (status: {current.value})"

    return f"Cannot change booking status from {current.value} to {target.value}"


def initial_status(
    actor: User,
    has_guest: bool,
    has_walk_in: bool,
    confirm: bool = False,
    requested_status: Optional[ReservationStatus] = None,
) -> ReservationStatus:
    """Pick the status a brand-new reservation starts in.

    Guest bookings (self-service or staff acting for a guest account) start
    ``pending`` unless staff explicitly confirm them. Walk-ins created by staff
    start ``confirmed``. Any other requested starting status is refused.
    """
    if has_guest and has_walk_in:
        raise ValidationError("Provide either a guest account or walk-in details, not both")
    if not has_guest and not has_walk_in:
        raise ValidationError("A guest account or walk-in details are required")

    if actor.role == Role.GUEST:
        if has_walk_in:
            raise AuthorizationError("Guests cannot create walk-in bookings")
        status = ReservationStatus.PENDING
    elif has_walk_in:
        status = ReservationStatus.CONFIRMED
    else:
        status = ReservationStatus.CONFIRMED if confirm else ReservationStatus.PENDING

    if requested_status is not None and requested_status != status:
        raise InvalidTransitionError(
            f"A new booking cannot start as {requested_status.value}; "
            f"expected {status.value}"
        )
    return status

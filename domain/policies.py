"""Authorization Policy

Role and ownership rules applied before every read and mutation:

* guests act only on reservations where they are the occupant and never see
  walk-ins;
* receptionists are confined to the hotel they are assigned to;
* admins are unrestricted.
"""
from dataclasses import dataclass
from typing import Optional

from domain.auth import User
from domain.entities import Reservation, RoomInfo
from domain.enums import ReservationStatus, Role
from domain.exceptions import AuthorizationError


@dataclass(frozen=True)
class ReservationScope:
    """Mandatory visibility bounds for an actor"""
    guest_id: Optional[str] = None
    hotel_id: Optional[str] = None
    exclude_walk_ins: bool = False

    def admits(self, reservation: Reservation) -> bool:
        if self.exclude_walk_ins and reservation.is_walk_in:
            return False
        if self.guest_id is not None and reservation.guest_id != self.guest_id:
            return False
        if self.hotel_id is not None and reservation.hotel_id != self.hotel_id:
            return False
        return True


class AuthorizationPolicy:
    def __init__(self, guest_can_cancel_confirmed: bool = False, guest_can_confirm: bool = False):
        self.guest_can_cancel_confirmed = guest_can_cancel_confirmed
        self.guest_can_confirm = guest_can_confirm

    @classmethod
    def from_settings(cls, settings) -> "AuthorizationPolicy":
        return cls(
            guest_can_cancel_confirmed=settings.GUEST_CAN_CANCEL_CONFIRMED,
            guest_can_confirm=settings.GUEST_CAN_CONFIRM,
        )

    # ==================== SCOPE ====================
    def scope_for(self, actor: User) -> ReservationScope:
        if actor.disabled:
            raise AuthorizationError("Inactive user")
        if actor.role == Role.GUEST:
            return ReservationScope(guest_id=actor.user_id, exclude_walk_ins=True)
        if actor.role == Role.RECEPTIONIST:
            if not actor.hotel_id:
                raise AuthorizationError("receptionist must be assigned to a hotel")
            return ReservationScope(hotel_id=actor.hotel_id)
        if actor.role == Role.ADMIN:
            return ReservationScope()
        raise AuthorizationError(f"Unsupported role: {actor.role}")

    def ensure_can_view(self, actor: User, reservation: Reservation) -> None:
        if not self.scope_for(actor).admits(reservation):
            raise AuthorizationError("Access denied. You can only access your own bookings")

    # ==================== MUTATIONS ====================
    def ensure_can_create(
        self,
        actor: User,
        room: RoomInfo,
        guest_id: Optional[str],
        confirm: bool = False,
        walk_in: bool = False,
    ) -> None:
        scope = self.scope_for(actor)
        if actor.role == Role.GUEST:
            if walk_in:
                raise AuthorizationError("Guests cannot create walk-in bookings")
            if guest_id is not None and guest_id != actor.user_id:
                raise AuthorizationError("Guests can only create bookings for themselves")
            if confirm:
                raise AuthorizationError("Guests cannot confirm their own bookings at creation")
            return
        if scope.hotel_id is not None and room.hotel_id != scope.hotel_id:
            raise AuthorizationError("Cannot create bookings for rooms in another hotel")

    def ensure_can_confirm(self, actor: User, reservation: Reservation) -> None:
        self.ensure_can_view(actor, reservation)
        if actor.role == Role.GUEST and not self.guest_can_confirm:
            raise AuthorizationError("Only staff can confirm bookings")

    def ensure_can_check_in(self, actor: User, reservation: Reservation) -> None:
        self.ensure_can_view(actor, reservation)

    def ensure_can_check_out(self, actor: User, reservation: Reservation) -> None:
        self.ensure_can_view(actor, reservation)

    def ensure_can_cancel(self, actor: User, reservation: Reservation, penalty=None) -> None:
        self.ensure_can_view(actor, reservation)
        if actor.role != Role.GUEST:
            return
        if penalty is not None:
            raise AuthorizationError("Only staff can record a cancellation penalty")
        # Terminal and checked-in states fall through to the state machine,
        # which reports them as invalid transitions.
        if reservation.status == ReservationStatus.CONFIRMED and not self.guest_can_cancel_confirmed:
            raise AuthorizationError("Confirmed bookings can only be cancelled by staff")

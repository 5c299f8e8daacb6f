"""Application Services - Business use cases"""
import logging
import math
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from domain.auth import User
from domain.collaborators import NotificationSender, RoomCatalog
from domain.entities import Reservation
from domain.enums import ReservationStatus, Role
from domain.exceptions import NotFoundError, OverlapError, ValidationError
from domain.policies import AuthorizationPolicy
from domain.repositories import ReservationFilters, ReservationRepository
from domain.state_machine import initial_status
from domain.value_objects import (
    CancellationDetails, CheckInDetails, DateRange, WalkInDetails
)
from application.checkout import CheckoutOrchestrator, CheckoutResult

logger = logging.getLogger(__name__)


@dataclass
class AvailabilityResult:
    room_id: str
    check_in: date
    check_out: date
    available: bool


@dataclass
class Pagination:
    page: int = 1
    limit: Optional[int] = None


@dataclass
class ReservationPage:
    items: List[Reservation] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


class ReservationService:
    """Service for Reservation business use cases"""

    def __init__(
        self,
        repository: ReservationRepository,
        room_catalog: RoomCatalog,
        policy: AuthorizationPolicy,
        checkout: CheckoutOrchestrator,
        notifier: Optional[NotificationSender] = None,
        default_page_size: int = 10,
        max_page_size: int = 100,
    ):
        self.repository = repository
        self.room_catalog = room_catalog
        self.policy = policy
        self.checkout = checkout
        self.notifier = notifier
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    async def check_availability(self, room_id: str, check_in: date, check_out: date) -> AvailabilityResult:
        """Check whether a room is free for [check_in, check_out)"""
        date_range = DateRange.of(check_in, check_out)
        await self._require_room(room_id)
        taken = await self.repository.has_overlap(room_id, date_range.check_in, date_range.check_out)
        return AvailabilityResult(
            room_id=room_id,
            check_in=date_range.check_in,
            check_out=date_range.check_out,
            available=not taken,
        )

    async def create_reservation(
        self,
        actor: User,
        room_id: str,
        check_in: date,
        check_out: date,
        guest_id: Optional[str] = None,
        walk_in_details: Optional[WalkInDetails] = None,
        confirm: bool = False,
        requested_status: Optional[ReservationStatus] = None,
        request_key: Optional[str] = None,
    ) -> Reservation:
        """Create new reservation with full validation"""
        if not room_id:
            raise ValidationError("Room, check-in date, and check-out date are required")
        date_range = DateRange.of(check_in, check_out)
        room = await self._require_room(room_id)

        self.policy.ensure_can_create(
            actor, room, guest_id, confirm, walk_in=walk_in_details is not None
        )
        if actor.role == Role.GUEST:
            guest_id = actor.user_id

        status = initial_status(
            actor,
            has_guest=guest_id is not None,
            has_walk_in=walk_in_details is not None,
            confirm=confirm,
            requested_status=requested_status,
        )

        reservation = Reservation.create(
            hotel_id=room.hotel_id,
            room_id=room.room_id,
            date_range=date_range,
            status=status,
            guest_id=guest_id,
            walk_in_details=walk_in_details,
            created_by=actor.user_id if actor.role != Role.GUEST else None,
            request_key=request_key,
        )

        try:
            saved = await self.repository.add_if_available(reservation)
        except OverlapError as e:
            replay = await self._find_retried_create(reservation, e.conflicting_reservation_id, actor)
            if replay is None:
                raise
            logger.info("create retry matched existing reservation %s", replay.reservation_id)
            return replay

        logger.info(
            "reservation %s created on room %s [%s, %s) status=%s by %s",
            saved.reservation_id, saved.room_id, saved.date_range.check_in,
            saved.date_range.check_out, saved.status.value, actor.user_id,
        )
        await self._notify("send_booking_confirmation", saved)
        return saved

    async def list_reservations(
        self,
        actor: User,
        filters: Optional[ReservationFilters] = None,
        pagination: Optional[Pagination] = None,
    ) -> ReservationPage:
        """List reservations visible to the actor, newest first"""
        scope = self.policy.scope_for(actor)
        filters = filters or ReservationFilters()
        pagination = pagination or Pagination()

        page = max(pagination.page or 1, 1)
        limit = pagination.limit or self.default_page_size
        if limit < 1:
            raise ValidationError("limit must be a positive integer")
        limit = min(limit, self.max_page_size)

        items, total = await self.repository.find_matching(
            scope, filters, offset=(page - 1) * limit, limit=limit
        )
        return ReservationPage(items=items, total=total, page=page, limit=limit)

    async def get_reservation(self, reservation_id: UUID, actor: User) -> Reservation:
        """Get reservation by ID"""
        reservation = await self._require(reservation_id)
        self.policy.ensure_can_view(actor, reservation)
        return reservation

    async def confirm_reservation(self, reservation_id: UUID, actor: User) -> Reservation:
        reservation = await self._require(reservation_id)
        self.policy.ensure_can_confirm(actor, reservation)

        expected_version = reservation.version
        reservation.confirm()
        saved = await self.repository.update(reservation, expected_version)
        logger.info("reservation %s confirmed by %s", saved.reservation_id, actor.user_id)
        return saved

    async def check_in_guest(self, reservation_id: UUID, identity: dict, actor: User) -> Reservation:
        """Check in guest, recording identity and visa fields"""
        reservation = await self._require(reservation_id)
        self.policy.ensure_can_check_in(actor, reservation)

        details = CheckInDetails.capture(identity, actor.user_id)
        expected_version = reservation.version
        reservation.check_in(details)
        saved = await self.repository.update(reservation, expected_version)
        logger.info("reservation %s checked in by %s", saved.reservation_id, actor.user_id)
        return saved

    async def check_out_guest(self, reservation_id: UUID, actor: User) -> CheckoutResult:
        """Check out guest; safe to call again after a partial failure"""
        return await self.checkout.check_out(reservation_id, actor)

    async def cancel_reservation(
        self,
        reservation_id: UUID,
        actor: User,
        penalty: Optional[Decimal] = None,
        reason: Optional[str] = None,
    ) -> Reservation:
        """Cancel reservation; staff may record a penalty and reason"""
        reservation = await self._require(reservation_id)
        self.policy.ensure_can_cancel(actor, reservation, penalty)

        if penalty is not None and penalty < 0:
            raise ValidationError("Cancellation penalty cannot be negative")
        details = None
        if actor.is_staff:
            details = CancellationDetails(
                cancelled_by=actor.user_id,
                penalty=penalty if penalty is not None else Decimal("0"),
                reason=reason,
            )

        expected_version = reservation.version
        reservation.cancel(details)
        saved = await self.repository.update(reservation, expected_version)
        logger.info("reservation %s cancelled by %s", saved.reservation_id, actor.user_id)
        await self._notify("send_booking_cancellation", saved)
        return saved

    # ==================== HELPERS ====================
    async def _require(self, reservation_id: UUID) -> Reservation:
        reservation = await self.repository.find_by_id(reservation_id)
        if reservation is None:
            raise NotFoundError("Booking not found")
        return reservation

    async def _require_room(self, room_id: str):
        room = await self.room_catalog.get_room(room_id)
        if room is None:
            raise NotFoundError("Room not found")
        return room

    async def _find_retried_create(
        self, attempt: Reservation, conflicting_id: Optional[UUID], actor: User
    ) -> Optional[Reservation]:
        if attempt.request_key is None or conflicting_id is None:
            return None
        existing = await self.repository.find_by_id(conflicting_id)
        if existing is None or not existing.same_booking_as(attempt):
            return None
        if not self.policy.scope_for(actor).admits(existing):
            return None
        return existing

    async def _notify(self, method: str, reservation: Reservation) -> None:
        if self.notifier is None:
            return
        try:
            await getattr(self.notifier, method)(reservation)
        except Exception:
            logger.exception("failed to send %s for reservation %s", method, reservation.reservation_id)

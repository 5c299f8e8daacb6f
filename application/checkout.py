"""Checkout orchestration.

Order matters:

1. authorize and require ``checkedin`` (or replay a finished checkout, linking
   an invoice that a losing concurrent attempt issued);
2. capture the billing snapshot while the stay is still ``checkedin``;
3. reuse an existing invoice, or generate one (failure is logged, not raised,
   and the invoice store is checked again afterwards);
4. commit ``completed`` with the checkout details and invoice reference;
5. dispatch post-checkout cleaning (failure is logged, not raised).

No store lock is held while invoicing or housekeeping are called.
"""
import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from domain.auth import User
from domain.collaborators import (
    CleaningDispatcher, InvoiceGenerator, RoomCatalog, ServiceChargeSource
)
from domain.entities import BillingSnapshot, Invoice, OccupantIdentity, Reservation
from domain.enums import ReservationStatus
from domain.exceptions import ConcurrentModificationError, DownstreamError, NotFoundError
from domain.policies import AuthorizationPolicy
from domain.repositories import ReservationRepository
from domain.state_machine import ensure_transition
from domain.value_objects import CheckOutDetails

logger = logging.getLogger(__name__)


@dataclass
class CheckoutResult:
    reservation: Reservation
    invoice: Optional[Invoice] = None


class CheckoutOrchestrator:

    def __init__(
        self,
        repository: ReservationRepository,
        room_catalog: RoomCatalog,
        invoice_generator: InvoiceGenerator,
        cleaning_dispatcher: CleaningDispatcher,
        service_charges: ServiceChargeSource,
        policy: AuthorizationPolicy,
    ):
        self.repository = repository
        self.room_catalog = room_catalog
        self.invoice_generator = invoice_generator
        self.cleaning_dispatcher = cleaning_dispatcher
        self.service_charges = service_charges
        self.policy = policy

    async def check_out(self, reservation_id: UUID, actor: User) -> CheckoutResult:
        reservation = await self._load(reservation_id)
        self.policy.ensure_can_check_out(actor, reservation)

        if reservation.status == ReservationStatus.COMPLETED:
            return await self._replay(reservation)
        ensure_transition(reservation.status, ReservationStatus.COMPLETED)

        invoice = await self._obtain_invoice(reservation, actor)

        expected_version = reservation.version
        reservation.complete_checkout(CheckOutDetails(checked_out_by=actor.user_id))
        if invoice is not None:
            reservation.attach_invoice(invoice.invoice_number)
        try:
            reservation = await self.repository.update(reservation, expected_version)
        except ConcurrentModificationError:
            # A parallel checkout of the same stay may have won; that is a replay.
            current = await self._load(reservation_id)
            if current.status == ReservationStatus.COMPLETED:
                return await self._replay(current)
            raise

        logger.info("reservation %s checked out by %s", reservation.reservation_id, actor.user_id)
        await self._dispatch_cleaning(reservation)
        return CheckoutResult(reservation=reservation, invoice=invoice)

    # ==================== STEPS ====================
    async def _load(self, reservation_id: UUID) -> Reservation:
        reservation = await self.repository.find_by_id(reservation_id)
        if reservation is None:
            raise NotFoundError("Booking not found")
        return reservation

    async def _replay(self, reservation: Reservation) -> CheckoutResult:
        invoice = await self.invoice_generator.find_existing(reservation.reservation_id)
        if invoice is not None and reservation.invoice_ref is None:
            reservation = await self._backfill_invoice_ref(reservation, invoice)
        logger.info("checkout replay for reservation %s", reservation.reservation_id)
        return CheckoutResult(reservation=reservation, invoice=invoice)

    async def _backfill_invoice_ref(self, reservation: Reservation, invoice: Invoice) -> Reservation:
        """Link an invoice issued by a checkout attempt that lost the commit race"""
        # Completed is terminal, so the only competing writes are other backfills.
        while reservation.invoice_ref is None:
            expected_version = reservation.version
            reservation.attach_invoice(invoice.invoice_number)
            try:
                reservation = await self.repository.update(reservation, expected_version)
            except ConcurrentModificationError:
                reservation = await self._load(reservation.reservation_id)
                continue
            logger.info(
                "linked invoice %s to completed reservation %s",
                invoice.invoice_number, reservation.reservation_id,
            )
        return reservation

    async def build_snapshot(self, reservation: Reservation, actor: User) -> BillingSnapshot:
        room = await self.room_catalog.get_room(reservation.room_id)
        if room is None:
            raise DownstreamError(f"Room {reservation.room_id} not found in catalog")
        profile = await self.room_catalog.get_billing_profile(reservation.hotel_id)
        if profile is None:
            raise DownstreamError(f"No billing profile for hotel {reservation.hotel_id}")
        charges = await self.service_charges.find_completed(reservation.reservation_id)

        return BillingSnapshot(
            reservation_id=reservation.reservation_id,
            hotel_id=reservation.hotel_id,
            status=reservation.status,
            room=room,
            billing_profile=profile,
            occupant=occupant_identity(reservation),
            date_range=reservation.date_range,
            nights=reservation.get_nights(),
            service_charges=charges,
            requested_by=actor.user_id,
        )

    async def _obtain_invoice(self, reservation: Reservation, actor: User) -> Optional[Invoice]:
        try:
            snapshot = await self.build_snapshot(reservation, actor)
        except Exception:
            logger.exception(
                "could not build billing snapshot for reservation %s", reservation.reservation_id
            )
            snapshot = None

        try:
            existing = await self.invoice_generator.find_existing(reservation.reservation_id)
            if existing is not None:
                logger.info(
                    "reusing invoice %s for reservation %s",
                    existing.invoice_number, reservation.reservation_id,
                )
                return existing
            if snapshot is None:
                return None
            return await self.invoice_generator.generate(snapshot)
        except Exception:
            logger.exception(
                "invoice generation failed for reservation %s", reservation.reservation_id
            )
        # A concurrent attempt may have issued the invoice we were refused.
        return await self._existing_invoice(reservation)

    async def _existing_invoice(self, reservation: Reservation) -> Optional[Invoice]:
        try:
            invoice = await self.invoice_generator.find_existing(reservation.reservation_id)
        except Exception:
            logger.exception("invoice lookup failed for reservation %s", reservation.reservation_id)
            return None
        if invoice is None:
            logger.warning(
                "completing checkout of reservation %s without invoice", reservation.reservation_id
            )
        return invoice

    async def _dispatch_cleaning(self, reservation: Reservation) -> None:
        try:
            await self.cleaning_dispatcher.create_post_checkout_task(
                reservation.hotel_id, reservation.reservation_id, reservation.room_id
            )
        except Exception:
            logger.exception(
                "cleaning dispatch failed for room %s after reservation %s",
                reservation.room_id, reservation.reservation_id,
            )


def occupant_identity(reservation: Reservation) -> OccupantIdentity:
    if reservation.walk_in_details is not None:
        details = reservation.walk_in_details
        return OccupantIdentity(name=details.name, phone=details.phone, email=details.email)
    check_in = reservation.check_in_details
    return OccupantIdentity(
        name=check_in.full_name if check_in else reservation.guest_id,
        phone=check_in.phone if check_in else "",
        guest_id=reservation.guest_id,
    )

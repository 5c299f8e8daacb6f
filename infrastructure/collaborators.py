"""In-memory adapters for the collaborator interfaces.

These stand in for the room catalog, invoicing, housekeeping and mail
services when the core runs on its own (local runs, tests).
"""
import asyncio
import logging
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional
from uuid import UUID

from domain.collaborators import (
    CleaningDispatcher, InvoiceGenerator, NotificationSender, RoomCatalog,
    ServiceChargeSource
)
from domain.entities import (
    BillingSnapshot, CleaningTask, HotelBillingProfile, Invoice, InvoiceLine,
    Reservation, RoomInfo, ServiceCharge
)
from domain.enums import PaymentStatus, ReservationStatus, ServiceChargeStatus
from domain.exceptions import ConflictError, DownstreamError, NotFoundError

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


class InMemoryRoomCatalog(RoomCatalog):

    def __init__(self):
        self._rooms: Dict[str, RoomInfo] = {}
        self._profiles: Dict[str, HotelBillingProfile] = {}

    def add_room(self, room: RoomInfo) -> RoomInfo:
        self._rooms[room.room_id] = room
        return room

    def add_billing_profile(self, profile: HotelBillingProfile) -> HotelBillingProfile:
        self._profiles[profile.hotel_id] = profile
        return profile

    async def get_room(self, room_id: str) -> Optional[RoomInfo]:
        return self._rooms.get(room_id)

    async def get_billing_profile(self, hotel_id: str) -> Optional[HotelBillingProfile]:
        return self._profiles.get(hotel_id)


class InMemoryServiceChargeSource(ServiceChargeSource):

    def __init__(self):
        self._charges: Dict[UUID, ServiceCharge] = {}

    def add(self, charge: ServiceCharge) -> ServiceCharge:
        self._charges[charge.charge_id] = charge
        return charge

    def complete(self, charge_id: UUID) -> ServiceCharge:
        charge = self._charges.get(charge_id)
        if charge is None:
            raise NotFoundError("Service charge not found")
        charge.status = ServiceChargeStatus.COMPLETED
        charge.completed_at = datetime.utcnow()
        return charge

    async def find_completed(self, reservation_id: UUID) -> List[ServiceCharge]:
        return [
            c.model_copy() for c in self._charges.values()
            if c.reservation_id == reservation_id and c.status == ServiceChargeStatus.COMPLETED
        ]


class InMemoryInvoiceGenerator(InvoiceGenerator):
    """Issues one invoice per reservation, numbered INV-YYYYMM-NNNNN.

    The sequence restarts each month and is strictly increasing within it.
    """

    def __init__(self, tax_rate: Decimal = Decimal("0"), currency: str = "USD"):
        self.tax_rate = tax_rate
        self.currency = currency
        self._by_reservation: Dict[UUID, Invoice] = {}
        self._sequences: Dict[str, int] = {}
        self._lock = asyncio.Lock()

    def _next_invoice_number(self, now: datetime) -> str:
        period = now.strftime("%Y%m")
        seq = self._sequences.get(period, 0) + 1
        self._sequences[period] = seq
        return f"INV-{period}-{seq:05d}"

    async def find_existing(self, reservation_id: UUID) -> Optional[Invoice]:
        return self._by_reservation.get(reservation_id)

    async def generate(self, snapshot: BillingSnapshot) -> Invoice:
        if snapshot.status != ReservationStatus.CHECKED_IN:
            raise DownstreamError(
                f"Cannot generate invoice for bookings with status: {snapshot.status.value}"
            )

        room_subtotal = (snapshot.room.rate * snapshot.nights).quantize(CENT, ROUND_HALF_UP)
        room_line = InvoiceLine(
            description=f"Room {snapshot.room.room_number} ({snapshot.room.room_type})",
            quantity=snapshot.nights,
            unit_price=snapshot.room.rate,
            total=room_subtotal,
        )
        service_lines = [
            InvoiceLine(
                description=charge.description or charge.service_type.replace("_", " ").title(),
                unit_price=charge.amount,
                total=charge.amount,
            )
            for charge in snapshot.service_charges
        ]
        subtotal = room_subtotal + sum((line.total for line in service_lines), Decimal("0"))
        tax = (subtotal * self.tax_rate).quantize(CENT, ROUND_HALF_UP)

        async with self._lock:
            if snapshot.reservation_id in self._by_reservation:
                raise ConflictError("Invoice already exists for this booking")
            now = datetime.utcnow()
            invoice = Invoice(
                invoice_number=self._next_invoice_number(now),
                reservation_id=snapshot.reservation_id,
                hotel_id=snapshot.hotel_id,
                guest_id=snapshot.occupant.guest_id,
                occupant=snapshot.occupant,
                room_charges=room_line,
                service_charges=service_lines,
                subtotal=subtotal,
                tax=tax,
                total=subtotal + tax,
                currency=snapshot.billing_profile.currency or self.currency,
                payment_status=PaymentStatus.PENDING,
                generated_at=now,
                generated_by=snapshot.requested_by,
            )
            self._by_reservation[snapshot.reservation_id] = invoice

        logger.info(
            "generated invoice %s for reservation %s total=%s",
            invoice.invoice_number, invoice.reservation_id, invoice.total,
        )
        return invoice


class InMemoryCleaningDispatcher(CleaningDispatcher):

    def __init__(self):
        self.tasks: List[CleaningTask] = []

    async def create_post_checkout_task(
        self, hotel_id: str, reservation_id: UUID, room_id: str
    ) -> CleaningTask:
        task = CleaningTask(hotel_id=hotel_id, reservation_id=reservation_id, room_id=room_id)
        self.tasks.append(task)
        logger.info("queued checkout cleaning for room %s (hotel %s)", room_id, hotel_id)
        return task


class LoggingNotificationSender(NotificationSender):
    """Records outgoing booking mail instead of sending it"""

    def __init__(self):
        self.sent: List[tuple] = []

    async def send_booking_confirmation(self, reservation: Reservation) -> None:
        self.sent.append(("confirmation", reservation.reservation_id))
        logger.info(
            "booking confirmation for %s (room %s, %s to %s, status %s)",
            reservation.reservation_id, reservation.room_id,
            reservation.date_range.check_in, reservation.date_range.check_out,
            reservation.status.value,
        )

    async def send_booking_cancellation(self, reservation: Reservation) -> None:
        self.sent.append(("cancellation", reservation.reservation_id))
        logger.info("booking cancellation for %s (room %s)", reservation.reservation_id, reservation.room_id)

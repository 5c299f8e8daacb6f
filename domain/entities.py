"""Domain Entities - Aggregates"""
from pydantic import BaseModel, ConfigDict, Field, model_validator
from uuid import UUID, uuid4
from datetime import datetime, date
from typing import Optional, List
from decimal import Decimal

from domain.enums import (
    ReservationStatus, ServiceChargeStatus, PaymentStatus, CleaningTaskStatus
)
from domain.exceptions import ValidationError
from domain.state_machine import ensure_transition
from domain.value_objects import (
    DateRange, WalkInDetails, CheckInDetails, CheckOutDetails, CancellationDetails
)


class Reservation(BaseModel):
    """Reservation Aggregate Root Entity"""
    model_config = ConfigDict(from_attributes=True, validate_assignment=False)

    # Identity
    reservation_id: UUID = Field(default_factory=uuid4)

    # References to other contexts
    hotel_id: str
    room_id: str

    # Occupant: exactly one of the two
    guest_id: Optional[str] = None
    walk_in_details: Optional[WalkInDetails] = None

    date_range: DateRange
    status: ReservationStatus = ReservationStatus.PENDING

    check_in_details: Optional[CheckInDetails] = None
    check_out_details: Optional[CheckOutDetails] = None
    cancellation: Optional[CancellationDetails] = None
    invoice_ref: Optional[str] = None

    # Client-supplied idempotency key for safely retrying a create
    request_key: Optional[str] = None

    # Metadata
    created_by: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    modified_at: datetime = Field(default_factory=datetime.utcnow)
    version: int = 1

    @model_validator(mode="after")
    def _check_invariants(self) -> "Reservation":
        if (self.guest_id is None) == (self.walk_in_details is None):
            raise ValueError("Reservation needs exactly one of guest_id or walk_in_details")
        has_check_in = self.status in (ReservationStatus.CHECKED_IN, ReservationStatus.COMPLETED)
        if has_check_in != (self.check_in_details is not None):
            raise ValueError("check_in_details must be present exactly when checked in or completed")
        if (self.status == ReservationStatus.COMPLETED) != (self.check_out_details is not None):
            raise ValueError("check_out_details must be present exactly when completed")
        return self

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        hotel_id: str,
        room_id: str,
        date_range: DateRange,
        status: ReservationStatus,
        guest_id: Optional[str] = None,
        walk_in_details: Optional[WalkInDetails] = None,
        created_by: Optional[str] = None,
        request_key: Optional[str] = None,
        today: Optional[date] = None,
    ) -> "Reservation":
        """Create new reservation with validation"""
        Reservation._validate_date_range(date_range, today or date.today())

        now = datetime.utcnow()
        return Reservation(
            hotel_id=hotel_id,
            room_id=room_id,
            guest_id=guest_id,
            walk_in_details=walk_in_details,
            date_range=date_range,
            status=status,
            created_by=created_by,
            request_key=request_key,
            confirmed_at=now if status == ReservationStatus.CONFIRMED else None,
            created_at=now,
            modified_at=now,
        )

    # ==================== STATE TRANSITION METHODS ====================
    def confirm(self) -> None:
        ensure_transition(self.status, ReservationStatus.CONFIRMED)
        self.status = ReservationStatus.CONFIRMED
        self.confirmed_at = datetime.utcnow()
        self._touch()

    def check_in(self, details: CheckInDetails, today: Optional[date] = None) -> None:
        """Mark guest as checked in"""
        ensure_transition(self.status, ReservationStatus.CHECKED_IN)
        if self.date_range.check_in > (today or date.today()):
            raise ValidationError("Cannot check in before the check-in date")
        self.check_in_details = details
        self.status = ReservationStatus.CHECKED_IN
        self._touch()

    def complete_checkout(self, details: CheckOutDetails) -> None:
        ensure_transition(self.status, ReservationStatus.COMPLETED)
        self.check_out_details = details
        self.status = ReservationStatus.COMPLETED
        self._touch()

    def cancel(self, details: Optional[CancellationDetails] = None) -> None:
        """Cancel; details are recorded for staff-driven cancellations only"""
        ensure_transition(self.status, ReservationStatus.CANCELLED)
        self.cancellation = details
        self.status = ReservationStatus.CANCELLED
        self._touch()

    def attach_invoice(self, invoice_number: str) -> None:
        if self.invoice_ref is not None and self.invoice_ref != invoice_number:
            raise ValidationError(
                f"Reservation already has invoice {self.invoice_ref}"
            )
        self.invoice_ref = invoice_number
        self._touch()

    # ==================== QUERY METHODS ====================
    @property
    def is_walk_in(self) -> bool:
        return self.walk_in_details is not None

    @property
    def is_live(self) -> bool:
        """Live reservations hold their room"""
        return self.status != ReservationStatus.CANCELLED

    def get_nights(self) -> int:
        return self.date_range.nights()

    def same_booking_as(self, other: "Reservation") -> bool:
        """Same request key, room, dates and occupant: a retried create"""
        return (
            self.request_key is not None
            and self.request_key == other.request_key
            and self.room_id == other.room_id
            and self.date_range == other.date_range
            and self.guest_id == other.guest_id
            and self.walk_in_details == other.walk_in_details
        )

    # ==================== PRIVATE METHODS ====================
    def _touch(self) -> None:
        self.modified_at = datetime.utcnow()

    @staticmethod
    def _validate_date_range(date_range: DateRange, today: date) -> None:
        if date_range.check_in < today:
            raise ValidationError("Check-in date cannot be in the past")
        if date_range.nights() < 1:
            raise ValidationError("Minimum stay is 1 night")


class RoomInfo(BaseModel):
    """Catalog view of a room"""
    model_config = ConfigDict(frozen=True)

    room_id: str
    hotel_id: str
    room_number: str
    room_type: str
    rate: Decimal = Field(ge=0)


class HotelBillingProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    hotel_id: str
    name: str
    address: str = ""
    contact_email: Optional[str] = None
    currency: str = "USD"


class ServiceCharge(BaseModel):
    """Ancillary service billed to a stay (room service, laundry, ...)"""
    charge_id: UUID = Field(default_factory=uuid4)
    reservation_id: UUID
    service_type: str
    description: str = ""
    amount: Decimal = Field(ge=0)
    status: ServiceChargeStatus = ServiceChargeStatus.PENDING
    completed_at: Optional[datetime] = None


class OccupantIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    phone: str = ""
    email: Optional[str] = None
    guest_id: Optional[str] = None


class BillingSnapshot(BaseModel):
    """Everything invoicing needs, captured while the stay is still checked in"""
    model_config = ConfigDict(frozen=True)

    reservation_id: UUID
    hotel_id: str
    status: ReservationStatus
    room: RoomInfo
    billing_profile: HotelBillingProfile
    occupant: OccupantIdentity
    date_range: DateRange
    nights: int
    service_charges: List[ServiceCharge] = []
    requested_by: Optional[str] = None


class InvoiceLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str
    quantity: int = 1
    unit_price: Decimal
    total: Decimal


class Invoice(BaseModel):
    invoice_id: UUID = Field(default_factory=uuid4)
    invoice_number: str
    reservation_id: UUID
    hotel_id: str
    guest_id: Optional[str] = None
    occupant: OccupantIdentity
    room_charges: InvoiceLine
    service_charges: List[InvoiceLine] = []
    subtotal: Decimal
    tax: Decimal = Decimal("0")
    total: Decimal
    currency: str = "USD"
    payment_status: PaymentStatus = PaymentStatus.PENDING
    generated_at: datetime = Field(default_factory=datetime.utcnow)
    generated_by: Optional[str] = None


class CleaningTask(BaseModel):
    task_id: UUID = Field(default_factory=uuid4)
    hotel_id: str
    reservation_id: UUID
    room_id: str
    task_type: str = "checkout_cleaning"
    status: CleaningTaskStatus = CleaningTaskStatus.PENDING
    created_at: datetime = Field(default_factory=datetime.utcnow)

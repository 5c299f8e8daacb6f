"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from typing import List, Optional

from domain.enums import ReservationStatus


# ============================================================================
# RESERVATION SCHEMAS
# ============================================================================

class WalkInDetailsRequest(BaseModel):
    name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    email: Optional[str] = None


class CreateReservationRequest(BaseModel):
    """Create reservation request DTO"""
    room_id: str
    check_in: date
    check_out: date
    guest_id: Optional[str] = None
    walk_in_details: Optional[WalkInDetailsRequest] = None
    confirm: bool = False
    status: Optional[ReservationStatus] = None
    request_key: Optional[str] = Field(None, max_length=128, description="Idempotency key for retries")


class CheckInRequest(BaseModel):
    """Check-in request DTO"""
    full_name: str
    id_type: str
    id_number: str
    phone: str
    country: str
    visa_number: Optional[str] = None
    visa_expiry: Optional[date] = None


class CancelReservationRequest(BaseModel):
    """Cancel reservation request DTO"""
    penalty: Optional[Decimal] = Field(None, ge=0)
    reason: Optional[str] = None


class WalkInDetailsResponse(BaseModel):
    name: str
    phone: str
    email: Optional[str] = None


class CheckInDetailsResponse(BaseModel):
    full_name: str
    id_type: str
    id_number: str
    phone: str
    country: str
    visa_number: Optional[str] = None
    visa_expiry: Optional[date] = None
    checked_in_at: datetime
    checked_in_by: Optional[str] = None


class CheckOutDetailsResponse(BaseModel):
    checked_out_at: datetime
    checked_out_by: str


class CancellationResponse(BaseModel):
    cancelled_by: str
    cancelled_at: datetime
    penalty: Decimal
    reason: Optional[str] = None


class ReservationResponse(BaseModel):
    """Reservation response DTO"""
    reservation_id: UUID
    hotel_id: str
    room_id: str
    guest_id: Optional[str] = None
    walk_in_details: Optional[WalkInDetailsResponse] = None
    check_in: date
    check_out: date
    nights: int
    status: str
    check_in_details: Optional[CheckInDetailsResponse] = None
    check_out_details: Optional[CheckOutDetailsResponse] = None
    cancellation: Optional[CancellationResponse] = None
    invoice_ref: Optional[str] = None
    created_by: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    created_at: datetime
    modified_at: datetime
    version: int


class PaginationResponse(BaseModel):
    total_reservations: int
    total_pages: int
    current_page: int
    limit: int


class ReservationListResponse(BaseModel):
    success: bool = True
    count: int
    pagination: PaginationResponse
    data: List[ReservationResponse]


class AvailabilityResponse(BaseModel):
    room_id: str
    check_in: date
    check_out: date
    available: bool


# ============================================================================
# INVOICE SCHEMAS
# ============================================================================

class InvoiceLineResponse(BaseModel):
    description: str
    quantity: int
    unit_price: Decimal
    total: Decimal


class InvoiceResponse(BaseModel):
    invoice_id: UUID
    invoice_number: str
    reservation_id: UUID
    hotel_id: str
    guest_id: Optional[str] = None
    room_charges: InvoiceLineResponse
    service_charges: List[InvoiceLineResponse]
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    currency: str
    payment_status: str
    generated_at: datetime


class CheckoutResponse(BaseModel):
    reservation: ReservationResponse
    invoice: Optional[InvoiceResponse] = None

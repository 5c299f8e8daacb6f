from fastapi import FastAPI, Depends
from uuid import UUID
from datetime import date
from typing import Optional

from api.schemas import (
    CreateReservationRequest, CheckInRequest, CancelReservationRequest,
    ReservationResponse, ReservationListResponse, PaginationResponse,
    AvailabilityResponse, CheckoutResponse, InvoiceResponse, InvoiceLineResponse,
    WalkInDetailsResponse, CheckInDetailsResponse, CheckOutDetailsResponse,
    CancellationResponse,
)
from api.dependencies import get_current_active_user, get_reservation_service
from api.errors import register_error_handlers
from application.bootstrap import build_container
from application.services import ReservationService, Pagination
from domain.auth import User
from domain.enums import ReservationStatus
from domain.repositories import ReservationFilters
from domain.value_objects import WalkInDetails
from infrastructure.config import Settings, get_settings
from infrastructure.logger import setup_logging


def create_app(settings: Optional[Settings] = None, **collaborators) -> FastAPI:
    """Build the FastAPI app around a freshly wired service container"""
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        description="Reservation lifecycle: booking, check-in, check-out and cancellation",
        version="1.0.0"
    )
    app.state.container = build_container(settings, **collaborators)
    register_error_handlers(app)
    _register_routes(app)
    return app


def _register_routes(app: FastAPI) -> None:

    # ========================================================================
    # HEALTH & ENUM REFERENCE ENDPOINTS
    # ========================================================================

    @app.get("/api/health", tags=["Health"])
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "message": "API is running"}

    @app.get("/api/enums/reservation-status", tags=["Enum Reference"])
    async def get_reservation_statuses():
        """Get all ReservationStatus enum values"""
        return {
            "values": [item.value for item in ReservationStatus],
            "description": "Reservation status values: pending, confirmed, checkedin, completed, cancelled"
        }

    # ========================================================================
    # RESERVATION ENDPOINTS
    # ========================================================================

    @app.get("/api/reservations/check-availability", response_model=AvailabilityResponse, tags=["Reservations"])
    async def check_availability(
        room_id: str,
        check_in: date,
        check_out: date,
        service: ReservationService = Depends(get_reservation_service),
    ):
        """Check room availability for given dates (no authentication)"""
        result = await service.check_availability(room_id, check_in, check_out)
        return AvailabilityResponse(
            room_id=result.room_id,
            check_in=result.check_in,
            check_out=result.check_out,
            available=result.available,
        )

    @app.post("/api/reservations", response_model=ReservationResponse, status_code=201, tags=["Reservations"])
    async def create_reservation(
        request: CreateReservationRequest,
        service: ReservationService = Depends(get_reservation_service),
        current_user: User = Depends(get_current_active_user)
    ):
        """Create new reservation"""
        walk_in = None
        if request.walk_in_details is not None:
            walk_in = WalkInDetails(**request.walk_in_details.model_dump())

        reservation = await service.create_reservation(
            actor=current_user,
            room_id=request.room_id,
            check_in=request.check_in,
            check_out=request.check_out,
            guest_id=request.guest_id,
            walk_in_details=walk_in,
            confirm=request.confirm,
            requested_status=request.status,
            request_key=request.request_key,
        )
        return _reservation_to_response(reservation)

    @app.get("/api/reservations", response_model=ReservationListResponse, tags=["Reservations"])
    async def list_reservations(
        status: Optional[ReservationStatus] = None,
        room_id: Optional[str] = None,
        guest_id: Optional[str] = None,
        hotel_id: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        page: int = 1,
        limit: Optional[int] = None,
        service: ReservationService = Depends(get_reservation_service),
        current_user: User = Depends(get_current_active_user)
    ):
        """List reservations visible to the caller"""
        filters = ReservationFilters(
            status=status, room_id=room_id, guest_id=guest_id, hotel_id=hotel_id,
            date_from=date_from, date_to=date_to,
        )
        result = await service.list_reservations(current_user, filters, Pagination(page=page, limit=limit))
        return ReservationListResponse(
            count=len(result.items),
            pagination=PaginationResponse(
                total_reservations=result.total,
                total_pages=result.total_pages,
                current_page=result.page,
                limit=result.limit,
            ),
            data=[_reservation_to_response(r) for r in result.items],
        )

    @app.get("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
    async def get_reservation(
        reservation_id: UUID,
        service: ReservationService = Depends(get_reservation_service),
        current_user: User = Depends(get_current_active_user)
    ):
        """Get reservation by ID"""
        reservation = await service.get_reservation(reservation_id, current_user)
        return _reservation_to_response(reservation)

    @app.post("/api/reservations/{reservation_id}/confirm", response_model=ReservationResponse, tags=["Reservations"])
    async def confirm_reservation(
        reservation_id: UUID,
        service: ReservationService = Depends(get_reservation_service),
        current_user: User = Depends(get_current_active_user)
    ):
        """Confirm a pending reservation"""
        reservation = await service.confirm_reservation(reservation_id, current_user)
        return _reservation_to_response(reservation)

    @app.post("/api/reservations/{reservation_id}/check-in", response_model=ReservationResponse, tags=["Reservations"])
    async def check_in_guest(
        reservation_id: UUID,
        request: CheckInRequest,
        service: ReservationService = Depends(get_reservation_service),
        current_user: User = Depends(get_current_active_user)
    ):
        """Check in guest"""
        reservation = await service.check_in_guest(
            reservation_id, request.model_dump(), current_user
        )
        return _reservation_to_response(reservation)

    @app.post("/api/reservations/{reservation_id}/check-out", response_model=CheckoutResponse, tags=["Reservations"])
    async def check_out_guest(
        reservation_id: UUID,
        service: ReservationService = Depends(get_reservation_service),
        current_user: User = Depends(get_current_active_user)
    ):
        """Check out guest (idempotent)"""
        result = await service.check_out_guest(reservation_id, current_user)
        return CheckoutResponse(
            reservation=_reservation_to_response(result.reservation),
            invoice=_invoice_to_response(result.invoice) if result.invoice else None,
        )

    @app.post("/api/reservations/{reservation_id}/cancel", response_model=ReservationResponse, tags=["Reservations"])
    async def cancel_reservation(
        reservation_id: UUID,
        request: Optional[CancelReservationRequest] = None,
        service: ReservationService = Depends(get_reservation_service),
        current_user: User = Depends(get_current_active_user)
    ):
        """Cancel reservation"""
        request = request or CancelReservationRequest()
        reservation = await service.cancel_reservation(
            reservation_id, current_user, penalty=request.penalty, reason=request.reason
        )
        return _reservation_to_response(reservation)


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _reservation_to_response(reservation) -> ReservationResponse:
    """Convert Reservation entity to ReservationResponse"""
    return ReservationResponse(
        reservation_id=reservation.reservation_id,
        hotel_id=reservation.hotel_id,
        room_id=reservation.room_id,
        guest_id=reservation.guest_id,
        walk_in_details=(
            WalkInDetailsResponse(**reservation.walk_in_details.model_dump())
            if reservation.walk_in_details else None
        ),
        check_in=reservation.date_range.check_in,
        check_out=reservation.date_range.check_out,
        nights=reservation.get_nights(),
        status=reservation.status.value,
        check_in_details=(
            CheckInDetailsResponse(**reservation.check_in_details.model_dump())
            if reservation.check_in_details else None
        ),
        check_out_details=(
            CheckOutDetailsResponse(**reservation.check_out_details.model_dump())
            if reservation.check_out_details else None
        ),
        cancellation=(
            CancellationResponse(**reservation.cancellation.model_dump())
            if reservation.cancellation else None
        ),
        invoice_ref=reservation.invoice_ref,
        created_by=reservation.created_by,
        confirmed_at=reservation.confirmed_at,
        created_at=reservation.created_at,
        modified_at=reservation.modified_at,
        version=reservation.version
    )


def _invoice_to_response(invoice) -> InvoiceResponse:
    """Convert Invoice entity to InvoiceResponse"""
    return InvoiceResponse(
        invoice_id=invoice.invoice_id,
        invoice_number=invoice.invoice_number,
        reservation_id=invoice.reservation_id,
        hotel_id=invoice.hotel_id,
        guest_id=invoice.guest_id,
        room_charges=InvoiceLineResponse(**invoice.room_charges.model_dump()),
        service_charges=[InvoiceLineResponse(**line.model_dump()) for line in invoice.service_charges],
        subtotal=invoice.subtotal,
        tax=invoice.tax,
        total=invoice.total,
        currency=invoice.currency,
        payment_status=invoice.payment_status.value,
        generated_at=invoice.generated_at,
    )


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

"""Domain Exceptions

Every error carries a stable machine-readable ``code`` and the HTTP status the
API layer renders it with.
"""
from typing import Optional


class ReservationError(Exception):
    """Base class for all reservation core errors"""
    code = "reservation_error"
    status_code = 500

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_dict(self) -> dict:
        return {"success": False, "code": self.code, "message": self.message}


class ValidationError(ReservationError, ValueError):
    """Malformed or missing input, bad dates"""
    code = "validation_error"
    status_code = 400


class NotFoundError(ReservationError):
    code = "not_found"
    status_code = 404


class AuthorizationError(ReservationError):
    """Role or ownership violation"""
    code = "forbidden"
    status_code = 403


class ConflictError(ReservationError):
    code = "conflict"
    status_code = 409


class OverlapError(ConflictError):
    """Requested interval intersects a live reservation on the same room"""
    code = "room_unavailable"

    def __init__(self, room_id: str, conflicting_reservation_id=None):
        super().__init__("Room is already booked for the selected dates")
        self.room_id = room_id
        self.conflicting_reservation_id = conflicting_reservation_id


class InvalidTransitionError(ConflictError):
    code = "invalid_transition"


class ConcurrentModificationError(ConflictError):
    """Stored version moved on between read and write"""
    code = "concurrent_modification"


class DownstreamError(ReservationError):
    """Collaborator failure (invoicing, cleaning, notification).

    Never surfaced to the caller of the core; only logged.
    """
    code = "downstream_failure"
    status_code = 502

"""Domain Enums"""
from enum import Enum


class ReservationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checkedin"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Role(str, Enum):
    GUEST = "guest"
    RECEPTIONIST = "receptionist"
    ADMIN = "admin"


class ServiceChargeStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    PARTIALLY_PAID = "partially_paid"


class CleaningTaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

"""Domain Value Objects"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar, Optional, Tuple

from domain.exceptions import ValidationError


class DateRange(BaseModel):
    """Half-open stay interval [check_in, check_out)"""
    model_config = ConfigDict(frozen=True)

    check_in: date
    check_out: date

    @field_validator('check_out')
    @classmethod
    def check_out_after_check_in(cls, v, info):
        check_in = info.data.get('check_in')
        if check_in is not None and v <= check_in:
            raise ValueError('Check-out date must be after check-in date')
        return v

    @classmethod
    def of(cls, check_in: Optional[date], check_out: Optional[date]) -> "DateRange":
        """Build a range, raising the domain ValidationError on bad input"""
        if check_in is None or check_out is None:
            raise ValidationError("Check-in and check-out dates are required")
        if check_out <= check_in:
            raise ValidationError("Check-out date must be after check-in date")
        return cls(check_in=check_in, check_out=check_out)

    def nights(self) -> int:
        """Calculate number of nights"""
        return (self.check_out - self.check_in).days

    def overlaps(self, other: "DateRange") -> bool:
        # A stay ending on day D does not collide with one starting on D.
        return self.check_in < other.check_out and self.check_out > other.check_in


class WalkInDetails(BaseModel):
    """Occupant details for a customer without an account"""
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    email: Optional[str] = None


class CheckInDetails(BaseModel):
    """Identity and visa fields captured at the front desk"""
    model_config = ConfigDict(frozen=True)

    full_name: str
    id_type: str
    id_number: str
    phone: str
    country: str
    visa_number: Optional[str] = None
    visa_expiry: Optional[date] = None
    checked_in_at: datetime = Field(default_factory=datetime.utcnow)
    checked_in_by: Optional[str] = None

    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = ("full_name", "id_type", "id_number", "phone", "country")

    @classmethod
    def capture(cls, identity: dict, actor_id: str) -> "CheckInDetails":
        """Validate raw identity fields and stamp them with the acting user"""
        missing = [
            name for name in cls.REQUIRED_FIELDS
            if not str(identity.get(name) or "").strip()
        ]
        if missing:
            raise ValidationError(
                f"Missing check-in identity fields: {', '.join(missing)}"
            )
        return cls(
            full_name=identity["full_name"].strip(),
            id_type=identity["id_type"].strip(),
            id_number=identity["id_number"].strip(),
            phone=identity["phone"].strip(),
            country=identity["country"].strip(),
            visa_number=identity.get("visa_number") or None,
            visa_expiry=identity.get("visa_expiry") or None,
            checked_in_by=actor_id,
        )


class CheckOutDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    checked_out_at: datetime = Field(default_factory=datetime.utcnow)
    checked_out_by: str


class CancellationDetails(BaseModel):
    """Cancellation metadata; penalty and reason only come from staff"""
    model_config = ConfigDict(frozen=True)

    cancelled_by: str
    cancelled_at: datetime = Field(default_factory=datetime.utcnow)
    penalty: Decimal = Field(default=Decimal("0"), ge=0)
    reason: Optional[str] = None

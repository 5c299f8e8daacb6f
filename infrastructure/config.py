from decimal import Decimal
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "Hotel Reservation API"
    LOG_LEVEL: str = "INFO"

    # Bearer tokens are issued elsewhere; this service only verifies them.
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Booking policy switches
    GUEST_CAN_CANCEL_CONFIRMED: bool = False
    GUEST_CAN_CONFIRM: bool = False

    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # Single-currency billing with a flat tax hook
    CURRENCY: str = "USD"
    TAX_RATE: Decimal = Decimal("0")

    @field_validator("LOG_LEVEL", mode="after")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @field_validator("TAX_RATE", mode="after")
    @classmethod
    def tax_rate_is_a_fraction(cls, v: Decimal) -> Decimal:
        """TAX_RATE is a fraction (0.1 for 10%), not a percentage."""
        if v < 0 or v >= 1:
            raise ValueError("TAX_RATE must be in [0, 1)")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()

"""Domain Entities - Auth"""
from pydantic import BaseModel, ConfigDict
from typing import Optional

from domain.enums import Role


class User(BaseModel):
    """Acting user, as resolved from the bearer token"""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    user_id: str
    username: str
    role: Role
    hotel_id: Optional[str] = None
    disabled: bool = False

    @property
    def is_guest(self) -> bool:
        return self.role == Role.GUEST

    @property
    def is_staff(self) -> bool:
        return self.role in (Role.RECEPTIONIST, Role.ADMIN)

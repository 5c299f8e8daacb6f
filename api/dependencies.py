"""API Dependencies - Authentication and service lookup"""
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from pydantic import ValidationError as PydanticValidationError

from application.services import ReservationService
from domain.auth import User
from infrastructure.security import decode_access_token

# Tokens are minted by the identity service; tokenUrl only documents where.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")


def get_reservation_service(request: Request) -> ReservationService:
    return request.app.state.container.reservation_service


async def get_current_user(token: str = Depends(oauth2_scheme)) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
        user_id = payload.get("sub")
        if user_id is None:
            raise credentials_exception
        return User(
            user_id=str(user_id),
            username=payload.get("username") or str(user_id),
            role=payload.get("role"),
            hotel_id=payload.get("hotel_id"),
            disabled=bool(payload.get("disabled", False)),
        )
    except (JWTError, PydanticValidationError):
        raise credentials_exception


async def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if current_user.disabled:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user

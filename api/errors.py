"""Map domain errors onto HTTP responses"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from domain.exceptions import ReservationError

logger = logging.getLogger(__name__)


async def reservation_error_handler(request: Request, exc: ReservationError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ReservationError, reservation_error_handler)

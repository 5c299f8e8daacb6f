"""Interval overlap checks for room reservations.

Overlap formula: (existing.check_in < check_out) AND (existing.check_out > check_in).
Strict inequality lets a check-out on day D share the day with a check-in on D.
Cancelled reservations never conflict.
"""
import logging
from datetime import date
from typing import Iterable, Optional
from uuid import UUID

from domain.entities import Reservation
from domain.value_objects import DateRange

logger = logging.getLogger(__name__)


def intervals_overlap(a: DateRange, b: DateRange) -> bool:
    return a.overlaps(b)


def find_conflict(
    reservations: Iterable[Reservation],
    room_id: str,
    check_in: date,
    check_out: date,
    exclude_reservation_id: Optional[UUID] = None,
) -> Optional[Reservation]:
    """Return the first live reservation on room_id that intersects the range"""
    for existing in reservations:
        if existing.room_id != room_id or not existing.is_live:
            continue
        if exclude_reservation_id is not None and existing.reservation_id == exclude_reservation_id:
            continue
        if existing.date_range.check_in < check_out and existing.date_range.check_out > check_in:
            logger.warning(
                "room conflict detected: room=%s requested=[%s, %s) existing=%s [%s, %s)",
                room_id,
                check_in.isoformat(),
                check_out.isoformat(),
                existing.reservation_id,
                existing.date_range.check_in.isoformat(),
                existing.date_range.check_out.isoformat(),
            )
            return existing
    return None


def has_overlap(
    reservations: Iterable[Reservation],
    room_id: str,
    check_in: date,
    check_out: date,
    exclude_reservation_id: Optional[UUID] = None,
) -> bool:
    return find_conflict(
        reservations, room_id, check_in, check_out, exclude_reservation_id
    ) is not None

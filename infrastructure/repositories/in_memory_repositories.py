"""In-Memory Repository Implementations"""
import asyncio
import logging
from collections import defaultdict
from datetime import date
from typing import Optional, List, Dict, Set, Tuple
from uuid import UUID

from domain.entities import Reservation
from domain.exceptions import ConcurrentModificationError, NotFoundError, OverlapError
from domain.overlap import find_conflict
from domain.policies import ReservationScope
from domain.repositories import ReservationFilters, ReservationRepository

logger = logging.getLogger(__name__)


class InMemoryReservationRepository(ReservationRepository):
    """In-memory implementation of ReservationRepository

    Each room has its own asyncio.Lock; overlap check plus insert, and every
    versioned update, run under the lock of the room involved. Stored records
    are copied on the way in and out so callers never hold live references.
    """

    def __init__(self):
        self._storage: Dict[UUID, Reservation] = {}
        # room_id -> reservation ids, the overlap query index
        self._by_room: Dict[str, Set[UUID]] = defaultdict(set)
        self._room_locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def _room_reservations(self, room_id: str) -> List[Reservation]:
        return [self._storage[rid] for rid in self._by_room.get(room_id, ())]

    async def add_if_available(self, reservation: Reservation) -> Reservation:
        """Check for overlap and insert under the room lock"""
        async with self._room_locks[reservation.room_id]:
            conflict = find_conflict(
                self._room_reservations(reservation.room_id),
                reservation.room_id,
                reservation.date_range.check_in,
                reservation.date_range.check_out,
                exclude_reservation_id=reservation.reservation_id,
            )
            if conflict is not None:
                raise OverlapError(reservation.room_id, conflict.reservation_id)

            stored = reservation.model_copy(deep=True)
            self._storage[stored.reservation_id] = stored
            self._by_room[stored.room_id].add(stored.reservation_id)
            logger.debug("stored reservation %s on room %s", stored.reservation_id, stored.room_id)
            return stored.model_copy(deep=True)

    async def has_overlap(
        self,
        room_id: str,
        check_in: date,
        check_out: date,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> bool:
        return find_conflict(
            self._room_reservations(room_id), room_id, check_in, check_out,
            exclude_reservation_id,
        ) is not None

    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        stored = self._storage.get(reservation_id)
        return stored.model_copy(deep=True) if stored else None

    async def find_matching(
        self,
        scope: ReservationScope,
        filters: ReservationFilters,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Tuple[List[Reservation], int]:
        matches = [
            r for r in self._storage.values()
            if scope.admits(r) and filters.matches(r)
        ]
        matches.sort(key=lambda r: r.created_at, reverse=True)
        total = len(matches)
        page = matches[offset:] if limit is None else matches[offset:offset + limit]
        return [r.model_copy(deep=True) for r in page], total

    async def update(self, reservation: Reservation, expected_version: int) -> Reservation:
        """Update reservation if nobody else wrote it since expected_version"""
        async with self._room_locks[reservation.room_id]:
            current = self._storage.get(reservation.reservation_id)
            if current is None:
                raise NotFoundError("Reservation not found")
            if current.version != expected_version:
                raise ConcurrentModificationError(
                    "Reservation was modified concurrently; reload and retry"
                )
            stored = reservation.model_copy(deep=True)
            stored.version = expected_version + 1
            self._storage[stored.reservation_id] = stored
            return stored.model_copy(deep=True)

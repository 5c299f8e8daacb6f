"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Optional, List, Tuple
from uuid import UUID

from domain.entities import Reservation
from domain.enums import ReservationStatus
from domain.policies import ReservationScope


@dataclass(frozen=True)
class ReservationFilters:
    """Optional caller filters; always intersected with the actor's scope"""
    status: Optional[ReservationStatus] = None
    room_id: Optional[str] = None
    guest_id: Optional[str] = None
    hotel_id: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None

    def matches(self, reservation: Reservation) -> bool:
        if self.status is not None and reservation.status != self.status:
            return False
        if self.room_id is not None and reservation.room_id != self.room_id:
            return False
        if self.guest_id is not None and reservation.guest_id != self.guest_id:
            return False
        if self.hotel_id is not None and reservation.hotel_id != self.hotel_id:
            return False
        # Stays intersecting [date_from, date_to)
        if self.date_from is not None and reservation.date_range.check_out <= self.date_from:
            return False
        if self.date_to is not None and reservation.date_range.check_in >= self.date_to:
            return False
        return True


class ReservationRepository(ABC):
    """Repository interface for Reservation Aggregate

    There is no delete: cancellation is a status, and records are kept for
    audit history and invoice linkage.
    """

    @abstractmethod
    async def add_if_available(self, reservation: Reservation) -> Reservation:
        """Insert reservation unless a live one on the same room overlaps.

        The overlap check and the insert form one atomic step. Raises
        OverlapError on conflict.
        """
        pass

    @abstractmethod
    async def has_overlap(
        self,
        room_id: str,
        check_in: date,
        check_out: date,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> bool:
        pass

    @abstractmethod
    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        pass

    @abstractmethod
    async def find_matching(
        self,
        scope: ReservationScope,
        filters: ReservationFilters,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Tuple[List[Reservation], int]:
        """Return one page of reservations (newest first) and the total count"""
        pass

    @abstractmethod
    async def update(self, reservation: Reservation, expected_version: int) -> Reservation:
        """Persist a mutated reservation.

        Raises ConcurrentModificationError if the stored version is no longer
        expected_version.
        """
        pass

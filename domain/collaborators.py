"""Collaborator interfaces owned by the reservation core.

Invoicing, housekeeping, the room catalog and notifications implement these and
are injected into the services at construction.
"""
from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from domain.entities import (
    BillingSnapshot, CleaningTask, HotelBillingProfile, Invoice, Reservation,
    RoomInfo, ServiceCharge
)


class RoomCatalog(ABC):

    @abstractmethod
    async def get_room(self, room_id: str) -> Optional[RoomInfo]:
        """Find room by ID"""
        pass

    @abstractmethod
    async def get_billing_profile(self, hotel_id: str) -> Optional[HotelBillingProfile]:
        pass


class InvoiceGenerator(ABC):

    @abstractmethod
    async def generate(self, snapshot: BillingSnapshot) -> Invoice:
        """Generate the invoice for a checked-in stay"""
        pass

    @abstractmethod
    async def find_existing(self, reservation_id: UUID) -> Optional[Invoice]:
        pass


class CleaningDispatcher(ABC):

    @abstractmethod
    async def create_post_checkout_task(
        self, hotel_id: str, reservation_id: UUID, room_id: str
    ) -> CleaningTask:
        pass


class ServiceChargeSource(ABC):

    @abstractmethod
    async def find_completed(self, reservation_id: UUID) -> List[ServiceCharge]:
        """Completed ancillary charges tied to a reservation"""
        pass


class NotificationSender(ABC):
    """Fire-and-forget messages; failures never reach the caller"""

    @abstractmethod
    async def send_booking_confirmation(self, reservation: Reservation) -> None:
        pass

    @abstractmethod
    async def send_booking_cancellation(self, reservation: Reservation) -> None:
        pass

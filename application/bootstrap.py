"""Wiring of the reservation core"""
from dataclasses import dataclass
from typing import Optional

from domain.collaborators import (
    CleaningDispatcher, InvoiceGenerator, NotificationSender, RoomCatalog,
    ServiceChargeSource
)
from domain.policies import AuthorizationPolicy
from domain.repositories import ReservationRepository
from application.checkout import CheckoutOrchestrator
from application.services import ReservationService
from infrastructure.collaborators import (
    InMemoryCleaningDispatcher, InMemoryInvoiceGenerator, InMemoryRoomCatalog,
    InMemoryServiceChargeSource, LoggingNotificationSender
)
from infrastructure.config import Settings
from infrastructure.repositories.in_memory_repositories import InMemoryReservationRepository


@dataclass
class ServiceContainer:
    settings: Settings
    repository: ReservationRepository
    room_catalog: RoomCatalog
    invoice_generator: InvoiceGenerator
    cleaning_dispatcher: CleaningDispatcher
    service_charges: ServiceChargeSource
    notifier: NotificationSender
    policy: AuthorizationPolicy
    checkout: CheckoutOrchestrator
    reservation_service: ReservationService


def build_container(
    settings: Settings,
    repository: Optional[ReservationRepository] = None,
    room_catalog: Optional[RoomCatalog] = None,
    invoice_generator: Optional[InvoiceGenerator] = None,
    cleaning_dispatcher: Optional[CleaningDispatcher] = None,
    service_charges: Optional[ServiceChargeSource] = None,
    notifier: Optional[NotificationSender] = None,
) -> ServiceContainer:
    """Build the service graph; any collaborator may be swapped in"""
    repository = repository or InMemoryReservationRepository()
    room_catalog = room_catalog or InMemoryRoomCatalog()
    invoice_generator = invoice_generator or InMemoryInvoiceGenerator(
        tax_rate=settings.TAX_RATE, currency=settings.CURRENCY
    )
    cleaning_dispatcher = cleaning_dispatcher or InMemoryCleaningDispatcher()
    service_charges = service_charges or InMemoryServiceChargeSource()
    notifier = notifier or LoggingNotificationSender()
    policy = AuthorizationPolicy.from_settings(settings)

    checkout = CheckoutOrchestrator(
        repository=repository,
        room_catalog=room_catalog,
        invoice_generator=invoice_generator,
        cleaning_dispatcher=cleaning_dispatcher,
        service_charges=service_charges,
        policy=policy,
    )
    reservation_service = ReservationService(
        repository=repository,
        room_catalog=room_catalog,
        policy=policy,
        checkout=checkout,
        notifier=notifier,
        default_page_size=settings.DEFAULT_PAGE_SIZE,
        max_page_size=settings.MAX_PAGE_SIZE,
    )
    return ServiceContainer(
        settings=settings,
        repository=repository,
        room_catalog=room_catalog,
        invoice_generator=invoice_generator,
        cleaning_dispatcher=cleaning_dispatcher,
        service_charges=service_charges,
        notifier=notifier,
        policy=policy,
        checkout=checkout,
        reservation_service=reservation_service,
    )

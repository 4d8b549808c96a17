"""Dependency Injection Container."""
from vendorsync_api.application.interfaces.service_interfaces import (
    KeyValueStoreInterface,
    MessagingServiceInterface,
    VendorApiInterface,
)
from vendorsync_api.application.services.data_service import DataService
from vendorsync_api.application.services.intake_service import IntakeService
from vendorsync_api.application.services.payment_service import PaymentService
from vendorsync_api.application.services.performance_service import PerformanceService
from vendorsync_api.infrastructure.messaging.in_memory_event_bus import InMemoryEventBus
from vendorsync_api.infrastructure.repositories.file_key_value_store import FileKeyValueStore
from vendorsync_api.infrastructure.repositories.in_memory_key_value_store import InMemoryKeyValueStore
from vendorsync_api.infrastructure.vendorsync_api_client import VendorSyncApiClient
from shared.config.settings import settings
from shared.utils.logging_config import get_logger

logger = get_logger(__name__)


class DIContainer:
    """Simple dependency injection container."""

    def __init__(self):
        self._services = {}
        self._singletons = {}
        self._setup_services()

    def _setup_services(self):
        logger.info("Setting up Singleton DI Container services...", extra={"store_type": settings.store_type})
        api_client = VendorSyncApiClient()
        messaging_service = InMemoryEventBus()

        if settings.store_type == "in_memory":
            store = InMemoryKeyValueStore()
        else:
            store = FileKeyValueStore()

        data_service = DataService(api_client, store, messaging_service)

        self._singletons[VendorApiInterface] = api_client
        self._singletons[MessagingServiceInterface] = messaging_service
        self._singletons[KeyValueStoreInterface] = store
        self._singletons[DataService] = data_service
        self._singletons[PaymentService] = PaymentService(api_client, data_service, messaging_service)

        self._services[IntakeService] = IntakeService
        self._services[PerformanceService] = PerformanceService

    def get_service(self, service_type, *args, **kwargs):
        """Get a service instance by type."""
        if service_type in self._singletons:
            return self._singletons[service_type]

        if service_type in self._services:
            service_class = self._services[service_type]
            return service_class(*args, **kwargs)
        raise ValueError(f"Service {service_type} not registered")


# Global container instance
_container = DIContainer()


async def close_all_services() -> None:
    """Close all services that require cleanup."""
    # Services first, the client and the bus they use last
    for service_type in (PaymentService, DataService, MessagingServiceInterface, VendorApiInterface):
        service = _container._singletons.get(service_type)
        if service is not None and hasattr(service, "close") and callable(service.close):
            await service.close()


def get_api_client() -> VendorApiInterface:
    return _container.get_service(VendorApiInterface)


def get_messaging_service() -> MessagingServiceInterface:
    return _container.get_service(MessagingServiceInterface)


def get_data_service() -> DataService:
    """Dependency injection function for the dashboard data service."""
    return _container.get_service(DataService)


def get_payment_service() -> PaymentService:
    return _container.get_service(PaymentService)


def get_intake_service() -> IntakeService:
    """Dependency injection function for the upload intake service."""
    return _container.get_service(IntakeService, get_api_client(), get_messaging_service())


def get_performance_service() -> PerformanceService:
    return _container.get_service(PerformanceService, get_api_client())

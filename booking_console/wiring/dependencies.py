from functools import lru_cache
import logging
from typing import Callable

from booking_console.application.ports.catalog import CatalogPort
from booking_console.application.ports.form_session_store import FormSessionStorePort
from booking_console.application.ports.pricing import PricingPort
from booking_console.application.ports.user_directory import UserDirectoryPort
from booking_console.application.use_cases.booking_form import BookingForm
from booking_console.core.config import settings
from booking_console.infrastructure.admin_api.admin_api_client import AdminApiClient
from booking_console.infrastructure.admin_api.http_catalog import HttpCatalog
from booking_console.infrastructure.admin_api.http_pricing import HttpPricing
from booking_console.infrastructure.admin_api.http_user_directory import HttpUserDirectory
from booking_console.infrastructure.admin_api.mock_catalog import MockCatalog
from booking_console.infrastructure.notifications.collecting_notifier import CollectingNotifier
from booking_console.infrastructure.store.memory_store import MemoryFormSessionStore


_form_store: MemoryFormSessionStore | None = None


def _use_mock() -> bool:
    return not settings.ADMIN_API_TOKEN or settings.ENV.lower() in {"dev", "local"}


@lru_cache
def get_mock_catalog() -> MockCatalog:
    return MockCatalog()


@lru_cache
def get_admin_api_client() -> AdminApiClient:
    return AdminApiClient()


def get_catalog() -> CatalogPort:
    if _use_mock():
        return get_mock_catalog()
    return HttpCatalog(get_admin_api_client())


def get_pricing() -> PricingPort:
    if _use_mock():
        return get_mock_catalog()
    return HttpPricing(get_admin_api_client())


def get_user_directory() -> UserDirectoryPort:
    if _use_mock():
        return get_mock_catalog()
    return HttpUserDirectory(get_admin_api_client())


def get_form_store() -> FormSessionStorePort:
    global _form_store
    if _form_store is None:
        _form_store = MemoryFormSessionStore()
    return _form_store


def get_booking_form_factory() -> Callable[[], BookingForm]:
    logger = logging.getLogger(__name__)
    catalog = get_catalog()
    pricing = get_pricing()
    users = get_user_directory()
    logger.debug("Booking form backend", extra={"reason": type(catalog).__name__})

    def factory() -> BookingForm:
        return BookingForm(
            catalog=catalog,
            pricing=pricing,
            users=users,
            notifier=CollectingNotifier(),
        )

    return factory

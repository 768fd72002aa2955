from __future__ import annotations

from abc import ABC, abstractmethod

from booking_console.application.dto.admin_api import ProviderFilters
from booking_console.domain.entities.option import Option
from booking_console.domain.entities.search_session import PageResult


class CatalogPort(ABC):
    @abstractmethod
    async def list_categories(self) -> list[Option]:
        raise NotImplementedError

    @abstractmethod
    async def list_subcategories(self, category_id: str) -> list[Option]:
        raise NotImplementedError

    @abstractmethod
    async def list_filter_attributes(self, category_id: str, subcategory_id: str | None = None) -> list[Option]:
        raise NotImplementedError

    @abstractmethod
    async def list_segments(
        self,
        category_id: str,
        subcategory_id: str,
        attribute_id: str | None = None,
    ) -> list[Option]:
        raise NotImplementedError

    @abstractmethod
    async def list_filter_options(self, attribute_id: str) -> list[Option]:
        raise NotImplementedError

    @abstractmethod
    async def search_providers(
        self,
        filters: ProviderFilters,
        page: int = 1,
        page_size: int = 10,
        search: str = "",
    ) -> PageResult:
        """Providers matching the filters. has_more comes from the server's meta."""
        raise NotImplementedError

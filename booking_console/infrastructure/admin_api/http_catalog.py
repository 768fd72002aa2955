from __future__ import annotations

from booking_console.application.dto.admin_api import ProviderFilters
from booking_console.application.ports.catalog import CatalogPort
from booking_console.domain.entities.option import Option
from booking_console.domain.entities.search_session import PageResult
from booking_console.infrastructure.admin_api.admin_api_client import AdminApiClient


class HttpCatalog(CatalogPort):
    def __init__(self, client: AdminApiClient) -> None:
        self._client = client

    async def list_categories(self) -> list[Option]:
        return await self._client.get_options("categories")

    async def list_subcategories(self, category_id: str) -> list[Option]:
        return await self._client.get_options("subcategories", params={"category_id": category_id})

    async def list_filter_attributes(self, category_id: str, subcategory_id: str | None = None) -> list[Option]:
        return await self._client.get_options(
            "filter-attributes",
            params={"category_id": category_id, "subcategory_id": subcategory_id},
        )

    async def list_segments(
        self,
        category_id: str,
        subcategory_id: str,
        attribute_id: str | None = None,
    ) -> list[Option]:
        return await self._client.get_options(
            "segments",
            params={
                "category_id": category_id,
                "subcategory_id": subcategory_id,
                "attribute_id": attribute_id,
            },
        )

    async def list_filter_options(self, attribute_id: str) -> list[Option]:
        return await self._client.get_options("filter-options", params={"attribute_id": attribute_id})

    async def search_providers(
        self,
        filters: ProviderFilters,
        page: int = 1,
        page_size: int = 10,
        search: str = "",
    ) -> PageResult:
        params = filters.model_dump()
        params.update({"page": page, "limit": page_size, "search": search})
        return await self._client.get_page("providers", params, page, page_size)

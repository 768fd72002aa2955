from __future__ import annotations

from booking_console.application.ports.user_directory import UserDirectoryPort
from booking_console.domain.entities.search_session import PageResult
from booking_console.infrastructure.admin_api.admin_api_client import AdminApiClient


class HttpUserDirectory(UserDirectoryPort):
    def __init__(self, client: AdminApiClient) -> None:
        self._client = client

    async def search_users(self, query: str, page: int = 1, page_size: int = 10) -> PageResult:
        params = {"query": query, "page": page, "pageSize": page_size}
        return await self._client.get_page("users/search", params, page, page_size)

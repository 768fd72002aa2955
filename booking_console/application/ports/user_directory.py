from __future__ import annotations

from abc import ABC, abstractmethod

from booking_console.domain.entities.search_session import PageResult


class UserDirectoryPort(ABC):
    @abstractmethod
    async def search_users(self, query: str, page: int = 1, page_size: int = 10) -> PageResult:
        raise NotImplementedError

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from booking_console.application.exceptions import CatalogContractError, CatalogUpstreamError
from booking_console.application.ports.notifier import NotifierPort
from booking_console.application.ports.user_directory import UserDirectoryPort
from booking_console.core.config import settings
from booking_console.domain.entities.search_session import PageResult, SearchItem, SearchSession, SearchStatus

# (query, page, page_size) -> one page of results
PageFetcher = Callable[[str, int, int], Awaitable[PageResult]]


class DebouncedSearchResolver:
    """
    Search-as-you-type with "load more" pagination.

    idle -> debouncing -> fetching -> idle, or idle -> fetching_more -> idle.
    A keystroke while a fetch is in flight is queued and starts a fresh
    debounce cycle once that fetch resolves. Must be driven from a running
    event loop.
    """

    def __init__(
        self,
        fetch_page: PageFetcher,
        *,
        min_length: int = 0,
        delay_seconds: float | None = None,
        page_size: int | None = None,
        notifier: NotifierPort | None = None,
        name: str = "search",
    ) -> None:
        self._fetch_page = fetch_page
        self._min_length = min_length
        self._delay = settings.SEARCH_DEBOUNCE_SECONDS if delay_seconds is None else delay_seconds
        self._notifier = notifier
        self._name = name
        self._logger = logging.getLogger(__name__)

        self.session = SearchSession(page_size=page_size or settings.SEARCH_PAGE_SIZE)
        self._epoch = 0
        self._debounce_task: asyncio.Task | None = None
        self._inflight: asyncio.Task | None = None
        self._queued = False
        self._closed = False

    @classmethod
    def phone_search(cls, directory: UserDirectoryPort, **kwargs) -> "DebouncedSearchResolver":
        kwargs.setdefault("min_length", settings.PHONE_SEARCH_MIN_LENGTH)
        kwargs.setdefault("name", "customer_search")
        return cls(directory.search_users, **kwargs)

    @property
    def min_length(self) -> int:
        return self._min_length

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None

    def on_query_change(self, text: str) -> None:
        self._epoch += 1
        self.session.reset(text)
        self._cancel_debounce()
        if self._closed:
            return
        if self.in_flight:
            self._queued = True
            return
        self._schedule_debounce()

    def clear(self) -> None:
        """Back to an empty idle session without fetching."""
        self._epoch += 1
        self._queued = False
        self._cancel_debounce()
        self.session.reset("")
        if not self.in_flight:
            self.session.status = SearchStatus.idle

    async def load_more(self) -> bool:
        """Fetch the next page. Returns False when not allowed right now."""
        if self._closed or not self.session.has_more or self.in_flight or self._debounce_task is not None:
            return False
        task = self._start_fetch(self.session.query, self.session.page + 1, more=True)
        await asyncio.wait({task})
        return True

    async def wait_idle(self) -> None:
        while True:
            task = self._debounce_task or self._inflight
            if task is None:
                return
            await asyncio.wait({task})

    def close(self) -> None:
        self._closed = True
        self._queued = False
        self._cancel_debounce()
        if not self.in_flight:
            self.session.status = SearchStatus.idle

    def _cancel_debounce(self) -> None:
        if self._debounce_task is not None:
            self._debounce_task.cancel()
            self._debounce_task = None

    def _schedule_debounce(self) -> None:
        self.session.status = SearchStatus.debouncing
        self._debounce_task = asyncio.get_running_loop().create_task(self._debounce(self._epoch))

    async def _debounce(self, epoch: int) -> None:
        await asyncio.sleep(self._delay)
        if epoch != self._epoch:
            return
        self._debounce_task = None
        query = self.session.query
        if len(query.strip()) < self._min_length:
            self.session.status = SearchStatus.idle
            self._logger.debug("Search below threshold", extra={"query": query, "reason": self._name})
            return
        self._start_fetch(query, 1, more=False)

    def _start_fetch(self, query: str, page: int, more: bool) -> asyncio.Task:
        self.session.status = SearchStatus.fetching_more if more else SearchStatus.fetching
        task = asyncio.get_running_loop().create_task(self._fetch(query, page, more, self._epoch))
        self._inflight = task
        return task

    async def _fetch(self, query: str, page: int, more: bool, epoch: int) -> None:
        result: PageResult | None = None
        error: Exception | None = None
        try:
            result = await self._fetch_page(query, page, self.session.page_size)
        except (CatalogUpstreamError, CatalogContractError) as e:
            error = e
        except Exception as e:
            self._logger.exception("Unexpected search failure", extra={"query": query, "reason": self._name})
            error = e
        finally:
            self._inflight = None

        stale = self._closed or epoch != self._epoch or query != self.session.query
        if stale:
            self._logger.debug("Dropped stale search results", extra={"query": query, "page": page})
        elif error is not None:
            self.session.error = str(error)
            if not more:
                self.session.results = []
                self.session.has_more = False
            self._logger.warning(
                "Search failed",
                extra={"query": query, "page": page, "error": str(error), "reason": self._name},
            )
            if self._notifier:
                self._notifier.notify("error", "Search failed, please try again", query=query, error=str(error))
        elif result is not None:
            if more:
                self.session.results = _merge_unique(self.session.results, result.items)
                self.session.page = page
            else:
                self.session.results = _merge_unique([], result.items)
                self.session.page = 1
            # A short page is always the last one.
            self.session.has_more = result.has_more and len(result.items) >= self.session.page_size
            self.session.error = None
            self._logger.info(
                "Search page loaded",
                extra={"query": query, "page": page, "count": len(result.items), "reason": self._name},
            )

        if self._queued and not self._closed:
            self._queued = False
            self._schedule_debounce()
        elif self._debounce_task is None:
            self.session.status = SearchStatus.idle


def _merge_unique(existing: list[SearchItem], incoming: list[SearchItem]) -> list[SearchItem]:
    seen = {item.id for item in existing}
    merged = list(existing)
    for item in incoming:
        if item.id not in seen:
            seen.add(item.id)
            merged.append(item)
    return merged

from __future__ import annotations

import asyncio

import pytest

from booking_console.application.dto.admin_api import PriceRequest
from booking_console.domain.entities.price_quote import PriceQuote
from booking_console.infrastructure.admin_api.mock_catalog import MockCatalog
from booking_console.infrastructure.notifications.collecting_notifier import CollectingNotifier


class RecordingCatalog(MockCatalog):
    """MockCatalog that records every call and can hold calls until released."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.calls: list[str] = []
        self.price_requests: list[PriceRequest] = []
        self._holds: dict[str, list[asyncio.Event]] = {}

    def hold(self, operation: str) -> asyncio.Event:
        """The next call to `operation` blocks until the returned event is set."""
        event = asyncio.Event()
        self._holds.setdefault(operation, []).append(event)
        return event

    def count(self, operation: str) -> int:
        return self.calls.count(operation)

    async def calculate_price(self, request: PriceRequest) -> PriceQuote:
        self.price_requests.append(request)
        return await super().calculate_price(request)

    async def _call(self, operation: str) -> None:
        self.calls.append(operation)
        holds = self._holds.get(operation)
        if holds:
            await holds.pop(0).wait()
        await super()._call(operation)


async def wait_for_calls(catalog: RecordingCatalog, operation: str, n: int = 1) -> None:
    for _ in range(200):
        if catalog.count(operation) >= n:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"{operation} was called {catalog.count(operation)} times, expected {n}")


@pytest.fixture
def catalog() -> RecordingCatalog:
    return RecordingCatalog()


@pytest.fixture
def notifier() -> CollectingNotifier:
    return CollectingNotifier()


@pytest.fixture
def wait_calls():
    return wait_for_calls

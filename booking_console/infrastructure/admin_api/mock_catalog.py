from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from booking_console.application.dto.admin_api import PriceRequest, ProviderFilters
from booking_console.application.exceptions import CatalogUpstreamError
from booking_console.application.ports.catalog import CatalogPort
from booking_console.application.ports.pricing import PricingPort
from booking_console.application.ports.user_directory import UserDirectoryPort
from booking_console.core.config import settings
from booking_console.domain.entities.option import Option
from booking_console.domain.entities.price_quote import PriceQuote
from booking_console.domain.entities.search_session import PageResult, SearchItem


@dataclass(frozen=True)
class MockProvider:
    id: str
    name: str
    category: str
    subcategory: str
    # filter option ids this provider serves; empty means all
    option_ids: tuple[str, ...] = ()


@dataclass
class MockCatalogData:
    categories: list[str] = field(default_factory=list)
    subcategories: dict[str, list[str]] = field(default_factory=dict)
    attributes: dict[str, list[str]] = field(default_factory=dict)  # subcategory -> attributes
    attribute_options: dict[str, list[str]] = field(default_factory=dict)
    segments: dict[str, list[str]] = field(default_factory=dict)  # subcategory -> segments
    providers: list[MockProvider] = field(default_factory=list)
    rates: dict[str, float] = field(default_factory=dict)  # subcategory -> unit price
    segment_surcharge: dict[str, float] = field(default_factory=dict)
    users: list[dict[str, str]] = field(default_factory=list)


def default_catalog_data() -> MockCatalogData:
    return MockCatalogData(
        categories=["Plumbing", "Cleaning", "Electrical"],
        subcategories={
            "Plumbing": ["Pipe Repair", "Tap Installation"],
            "Cleaning": ["Deep Cleaning", "Sofa Cleaning"],
            "Electrical": ["Wiring", "Fan Installation"],
        },
        attributes={
            "Deep Cleaning": ["Home Size"],
            "Pipe Repair": ["Pipe Material"],
        },
        attribute_options={
            "Home Size": ["1 BHK", "2 BHK", "3 BHK"],
            "Pipe Material": ["PVC", "Copper"],
        },
        segments={
            "Deep Cleaning": ["Standard", "Premium"],
            "Pipe Repair": ["Residential", "Commercial"],
        },
        providers=[
            MockProvider("ProviderX", "ProviderX", "Plumbing", "Pipe Repair"),
            MockProvider("ProviderY", "ProviderY", "Plumbing", "Pipe Repair", option_ids=("Copper",)),
            MockProvider("Sparkle", "Sparkle Homes", "Cleaning", "Deep Cleaning"),
            MockProvider("Shine", "Shine Services", "Cleaning", "Deep Cleaning", option_ids=("1 BHK", "2 BHK")),
        ],
        rates={
            "Pipe Repair": 100.0,
            "Tap Installation": 250.0,
            "Deep Cleaning": 1499.0,
            "Sofa Cleaning": 599.0,
            "Wiring": 350.0,
            "Fan Installation": 200.0,
        },
        segment_surcharge={"Commercial": 50.0, "Premium": 500.0},
        users=[
            {"id": "u1", "name": "Asha Rao", "phone": "9876543210"},
            {"id": "u2", "name": "Vikram Shah", "phone": "9876500011"},
            {"id": "u3", "name": "Meera Iyer", "phone": "9123456780"},
        ],
    )


class MockCatalog(CatalogPort, PricingPort, UserDirectoryPort):
    """In-memory admin API for local runs and tests. Ids equal display names."""

    CONVENIENCE_CHARGE = 10.0

    def __init__(
        self,
        data: MockCatalogData | None = None,
        latency_seconds: float = 0.0,
        gst_rate: float | None = None,
    ) -> None:
        self._data = data or default_catalog_data()
        self._latency = latency_seconds
        self._gst_rate = settings.GST_RATE if gst_rate is None else gst_rate
        self._failing: set[str] = set()
        self._logger = logging.getLogger(__name__)

    def fail(self, operation: str) -> None:
        """Make one operation (method name) raise CatalogUpstreamError until recover()."""
        self._failing.add(operation)

    def recover(self, operation: str) -> None:
        self._failing.discard(operation)

    async def list_categories(self) -> list[Option]:
        await self._call("list_categories")
        return _options(self._data.categories)

    async def list_subcategories(self, category_id: str) -> list[Option]:
        await self._call("list_subcategories")
        return _options(self._data.subcategories.get(category_id, []))

    async def list_filter_attributes(self, category_id: str, subcategory_id: str | None = None) -> list[Option]:
        await self._call("list_filter_attributes")
        if subcategory_id is None:
            names: list[str] = []
            for sub in self._data.subcategories.get(category_id, []):
                names.extend(self._data.attributes.get(sub, []))
            return _options(names)
        return _options(self._data.attributes.get(subcategory_id, []))

    async def list_segments(
        self,
        category_id: str,
        subcategory_id: str,
        attribute_id: str | None = None,
    ) -> list[Option]:
        await self._call("list_segments")
        return _options(self._data.segments.get(subcategory_id, []))

    async def list_filter_options(self, attribute_id: str) -> list[Option]:
        await self._call("list_filter_options")
        return _options(self._data.attribute_options.get(attribute_id, []))

    async def search_providers(
        self,
        filters: ProviderFilters,
        page: int = 1,
        page_size: int = 10,
        search: str = "",
    ) -> PageResult:
        await self._call("search_providers")
        needle = search.strip().lower()
        matches = [
            p
            for p in self._data.providers
            if p.category == filters.category_id
            and p.subcategory == filters.subcategory_id
            and (not filters.option_id or not p.option_ids or filters.option_id in p.option_ids)
            and (not needle or needle in p.name.lower())
        ]
        return _page([SearchItem(id=p.id, label=p.name) for p in matches], page, page_size)

    async def search_users(self, query: str, page: int = 1, page_size: int = 10) -> PageResult:
        await self._call("search_users")
        needle = query.strip().lower()
        matches = [
            SearchItem(id=u["id"], label=u["name"], data=dict(u))
            for u in self._data.users
            if needle in u["phone"] or needle in u["name"].lower()
        ]
        return _page(matches, page, page_size)

    async def calculate_price(self, request: PriceRequest) -> PriceQuote:
        await self._call("calculate_price")
        if request.subcategory_id not in self._data.rates:
            raise CatalogUpstreamError(f"No rate card for {request.subcategory_id}")

        base_price = self._data.rates[request.subcategory_id]
        if request.segment_id:
            base_price += self._data.segment_surcharge.get(request.segment_id, 0.0)
        item_total = base_price * request.quantity
        gst = round(item_total * self._gst_rate, 2)
        total = round(item_total + gst + self.CONVENIENCE_CHARGE, 2)
        return PriceQuote(
            base_price=base_price,
            item_total=item_total,
            gst=gst,
            convenience_charge=self.CONVENIENCE_CHARGE,
            total=total,
            quantity=request.quantity,
            rate_card_id=f"rc-{request.subcategory_id}-{request.provider_id}".lower().replace(" ", "-"),
        )

    async def _call(self, operation: str) -> None:
        if self._latency:
            await asyncio.sleep(self._latency)
        if operation in self._failing:
            self._logger.info("Mock catalog failure", extra={"reason": operation})
            raise CatalogUpstreamError(f"Mock failure in {operation}")


def _options(names: list[str]) -> list[Option]:
    return [Option(id=name, label=name) for name in names]


def _page(items: list[SearchItem], page: int, page_size: int) -> PageResult:
    start = (page - 1) * page_size
    chunk = items[start : start + page_size]
    return PageResult(items=chunk, has_more=start + page_size < len(items))

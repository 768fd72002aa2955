from __future__ import annotations

import logging
from typing import Any

from booking_console.application.dto.admin_api import ProviderFilters
from booking_console.application.exceptions import SelectionValidationError
from booking_console.application.ports.catalog import CatalogPort
from booking_console.application.ports.notifier import NotifierPort
from booking_console.application.ports.pricing import PricingPort
from booking_console.application.ports.user_directory import UserDirectoryPort
from booking_console.application.use_cases.debounced_search import DebouncedSearchResolver
from booking_console.application.use_cases.price_quote import PriceQuoteFetcher
from booking_console.application.use_cases.selection import (
    BOOKING_GRAPH,
    SelectionGraphResolver,
    catalog_fetchers,
)
from booking_console.application.utils.quantity import coerce_quantity
from booking_console.core.config import settings
from booking_console.domain.entities.option import Option
from booking_console.domain.entities.search_session import PageResult

# Changing any of these changes which providers are eligible.
PROVIDER_SCOPE_KEYS = frozenset({"category", "subcategory", "filter_attribute", "filter_option"})


class BookingForm:
    """One open booking / rate-card form: selections, quote and the two searches."""

    def __init__(
        self,
        catalog: CatalogPort,
        pricing: PricingPort,
        users: UserDirectoryPort,
        notifier: NotifierPort | None = None,
        *,
        debounce_seconds: float | None = None,
        page_size: int | None = None,
    ) -> None:
        page_size = page_size or settings.SEARCH_PAGE_SIZE
        self.form_id: str | None = None
        self.notifier = notifier
        self._catalog = catalog
        self._logger = logging.getLogger(__name__)

        self.selection = SelectionGraphResolver(
            catalog_fetchers(catalog, provider_page_size=page_size),
            BOOKING_GRAPH,
            notifier,
        )
        self.quote = PriceQuoteFetcher(pricing, notifier)
        self.provider_search = DebouncedSearchResolver(
            self._search_providers,
            min_length=0,
            delay_seconds=debounce_seconds,
            page_size=page_size,
            notifier=notifier,
            name="provider_search",
        )
        self.customer_search = DebouncedSearchResolver.phone_search(
            users,
            delay_seconds=debounce_seconds,
            page_size=page_size,
            notifier=notifier,
        )
        self.quantity = 1

    async def open(self) -> None:
        await self.selection.load_roots()

    async def select(self, key: str, value: Option | str | None) -> Option | None:
        if key == "provider" and isinstance(value, str) and self.selection.is_enabled("provider"):
            value = self._provider_option(value)

        option = await self.selection.on_node_change(key, value)
        if key in PROVIDER_SCOPE_KEYS:
            self.provider_search.clear()
        await self.refresh_quote()
        return option

    async def set_quantity(self, raw: Any) -> int:
        self.quantity = coerce_quantity(raw)
        await self.refresh_quote()
        return self.quantity

    async def refresh_quote(self) -> None:
        await self.quote.compute_quote(self.selection.selection_tuple(), self.quantity)

    def submission(self) -> dict[str, Any]:
        """Order payload. Only valid once the price has been calculated."""
        selection = self.selection.selection_tuple()
        missing = selection.missing_required()
        if missing:
            raise SelectionValidationError(f"Missing required selection: {', '.join(missing)}")
        quote = self.quote.quote
        if quote is None or self.quote.loading:
            raise SelectionValidationError(
                "Please select all required fields to calculate the price before submitting."
            )

        category = self.selection.value("category")
        subcategory = self.selection.value("subcategory")
        return {
            "category_id": selection.category_id,
            "subcategory_id": selection.subcategory_id,
            "segment_id": selection.segment_id,
            "filter_attribute_id": selection.filter_attribute_id,
            "filter_option_id": selection.filter_option_id,
            "provider_id": selection.provider_id,
            "quantity": quote.quantity,
            "rate_card_id": quote.rate_card_id,
            "base_price": quote.base_price,
            "calculated_price": quote.total,
            "service_name": f"{category.label} - {subcategory.label}",
        }

    def close(self) -> None:
        self.provider_search.close()
        self.customer_search.close()
        self.quote.clear()

    async def _search_providers(self, query: str, page: int, page_size: int) -> PageResult:
        selection = self.selection.selection_tuple()
        if not (selection.category_id and selection.subcategory_id):
            return PageResult(items=[], has_more=False)
        filters = ProviderFilters(
            category_id=selection.category_id,
            subcategory_id=selection.subcategory_id,
            attribute_id=selection.filter_attribute_id,
            option_id=selection.filter_option_id,
        )
        return await self._catalog.search_providers(filters, page=page, page_size=page_size, search=query)

    def _provider_option(self, provider_id: str) -> str:
        """Providers found through the search box are selectable too."""
        for item in self.provider_search.session.results:
            if item.id == provider_id:
                self.selection.offer("provider", Option(id=item.id, label=item.label))
                break
        return provider_id

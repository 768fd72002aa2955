from __future__ import annotations

import logging
from typing import Any

from booking_console.application.dto.admin_api import PriceRequest
from booking_console.application.exceptions import CatalogContractError, CatalogUpstreamError
from booking_console.application.ports.notifier import NotifierPort
from booking_console.application.ports.pricing import PricingPort
from booking_console.application.utils.quantity import coerce_quantity
from booking_console.domain.entities.price_quote import PriceQuote
from booking_console.domain.entities.selection_state import SelectionTuple


def build_price_request(selection: SelectionTuple, quantity: Any) -> PriceRequest | None:
    """None when category, subcategory or provider is missing."""
    if selection.missing_required():
        return None
    return PriceRequest(
        category_id=selection.category_id,
        subcategory_id=selection.subcategory_id,
        provider_id=selection.provider_id,
        segment_id=selection.segment_id,
        filter_attribute_id=selection.filter_attribute_id,
        filter_option_id=selection.filter_option_id,
        quantity=coerce_quantity(quantity),
    )


class PriceQuoteFetcher:
    def __init__(self, pricing: PricingPort, notifier: NotifierPort | None = None) -> None:
        self._pricing = pricing
        self._notifier = notifier
        self._token = 0
        self._logger = logging.getLogger(__name__)
        self.quote: PriceQuote | None = None
        self.loading = False
        self.error: str | None = None

    async def compute_quote(self, selection: SelectionTuple, quantity: Any) -> PriceQuote | None:
        """
        Re-price the selection. Every call supersedes the previous one, including
        calls that end up not fetching because a required member is missing.
        """
        self._token += 1
        token = self._token

        request = build_price_request(selection, quantity)
        if request is None:
            self.quote = None
            self.loading = False
            self.error = None
            self._logger.debug(
                "Quote skipped",
                extra={"reason": "missing " + ",".join(selection.missing_required())},
            )
            return None

        self.loading = True
        try:
            quote = await self._pricing.calculate_price(request)
        except (CatalogUpstreamError, CatalogContractError) as e:
            self._fail(token, e)
            return None
        except Exception as e:
            self._logger.exception("Unexpected pricing failure", extra={"provider": request.provider_id})
            self._fail(token, e)
            return None

        if token != self._token:
            self._logger.debug("Dropped stale quote", extra={"reason": f"token={token} latest={self._token}"})
            return None

        self.quote = quote
        self.loading = False
        self.error = None
        self._logger.info(
            "Quote updated",
            extra={"provider": request.provider_id, "quantity": request.quantity, "total": quote.total},
        )
        return quote

    def clear(self) -> None:
        self._token += 1
        self.quote = None
        self.loading = False
        self.error = None

    def _fail(self, token: int, error: Exception) -> None:
        if token != self._token:
            return
        self.quote = None
        self.loading = False
        self.error = str(error)
        self._logger.warning("Price calculation failed", extra={"error": str(error)})
        if self._notifier:
            self._notifier.notify("error", "Could not calculate the price", error=str(error))

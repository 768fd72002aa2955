from __future__ import annotations

from pydantic import ValidationError

from booking_console.application.dto.admin_api import PriceCalculationDTO, PriceRequest
from booking_console.application.exceptions import CatalogContractError
from booking_console.application.ports.pricing import PricingPort
from booking_console.domain.entities.price_quote import PriceQuote
from booking_console.infrastructure.admin_api.admin_api_client import AdminApiClient


def quote_from_response(body: dict, quantity: int) -> PriceQuote:
    try:
        dto = PriceCalculationDTO.model_validate(body)
    except ValidationError as e:
        raise CatalogContractError(f"Malformed price response: {e.error_count()} errors") from e
    if not dto.status or dto.base_price is None:
        raise CatalogContractError(body.get("message") or "Invalid price response")

    item_total = dto.item_total if dto.item_total else dto.base_price * quantity
    return PriceQuote(
        base_price=dto.base_price,
        item_total=item_total,
        gst=dto.gst_amount,
        convenience_charge=dto.convenience_charge,
        total=dto.final_amount,
        quantity=quantity,
        rate_card_id=dto.rate_card_id,
    )


class HttpPricing(PricingPort):
    def __init__(self, client: AdminApiClient) -> None:
        self._client = client

    async def calculate_price(self, request: PriceRequest) -> PriceQuote:
        body = await self._client.post_json("price/calculate", request.to_body())
        return quote_from_response(body, request.quantity)

from __future__ import annotations

from abc import ABC, abstractmethod

from booking_console.application.dto.admin_api import PriceRequest
from booking_console.domain.entities.price_quote import PriceQuote


class PricingPort(ABC):
    @abstractmethod
    async def calculate_price(self, request: PriceRequest) -> PriceQuote:
        """Price breakdown for a selection tuple. Raises CatalogContractError on a bad response."""
        raise NotImplementedError

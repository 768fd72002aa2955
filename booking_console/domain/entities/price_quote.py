from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PriceQuote:
    base_price: float  # unit price from the rate card
    item_total: float  # base_price * quantity unless the server says otherwise
    gst: float
    convenience_charge: float
    total: float  # opaque, computed server-side
    quantity: int
    rate_card_id: str | None = None

    def display_total(self, currency_symbol: str = "₹") -> str:
        return f"{currency_symbol}{self.total:.2f}"

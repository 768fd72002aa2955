from __future__ import annotations

from booking_console.application.exceptions import SelectionValidationError
from booking_console.core.config import settings


def max_invoice_amount(
    base_remaining: float,
    uninvoiced_additional_costs: float = 0.0,
    include_additional_costs: bool = False,
    gst_rate: float | None = None,
) -> float:
    """
    Largest amount a partial invoice may carry for an order.

    Additional costs are stored net of GST, so they are grossed up before being
    added to the remaining order amount. The result is not rounded; round only
    for display.
    """
    rate = settings.GST_RATE if gst_rate is None else gst_rate
    if not include_additional_costs:
        return base_remaining
    return base_remaining + uninvoiced_additional_costs * (1 + rate)


def validate_invoice_amount(
    amount: float,
    base_remaining: float,
    uninvoiced_additional_costs: float = 0.0,
    include_additional_costs: bool = False,
    gst_rate: float | None = None,
    currency_symbol: str | None = None,
) -> float:
    """Return the allowed maximum rounded for display, or raise SelectionValidationError."""
    symbol = settings.CURRENCY_SYMBOL if currency_symbol is None else currency_symbol
    if amount <= 0:
        raise SelectionValidationError("Invoice amount must be greater than zero")

    maximum = max_invoice_amount(
        base_remaining,
        uninvoiced_additional_costs,
        include_additional_costs,
        gst_rate,
    )
    if amount > maximum:
        what = "remaining amount + additional costs" if include_additional_costs else "remaining amount"
        raise SelectionValidationError(
            f"Amount ({symbol}{amount:,.2f}) exceeds {what} ({symbol}{maximum:,.2f})"
        )
    return round(maximum, 2)

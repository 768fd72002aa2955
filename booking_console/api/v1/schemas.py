from typing import Any

from pydantic import BaseModel, Field

from booking_console.domain.entities.search_session import SearchStatus


class OptionSchema(BaseModel):
    id: str
    label: str


class SelectionNodeSchema(BaseModel):
    key: str
    value: OptionSchema | None = None
    options: list[OptionSchema] = Field(default_factory=list)
    depends_on: list[str] = Field(default_factory=list)
    enabled: bool
    loading: bool
    error: str | None = None


class QuoteSchema(BaseModel):
    base_price: float
    item_total: float
    gst: float
    convenience_charge: float
    total: float
    display_total: str
    quantity: int
    rate_card_id: str | None = None


class SearchItemSchema(BaseModel):
    id: str
    label: str
    data: dict[str, Any] = Field(default_factory=dict)


class SearchSessionSchema(BaseModel):
    query: str
    page: int
    page_size: int
    status: SearchStatus
    has_more: bool
    results: list[SearchItemSchema] = Field(default_factory=list)
    error: str | None = None


class NotificationSchema(BaseModel):
    level: str
    message: str
    context: dict[str, Any] = Field(default_factory=dict)


class FormStateSchema(BaseModel):
    form_id: str
    selections: list[SelectionNodeSchema]
    quantity: int
    quote: QuoteSchema | None = None
    quote_loading: bool = False
    quote_error: str | None = None
    provider_search: SearchSessionSchema
    customer_search: SearchSessionSchema
    notifications: list[NotificationSchema] = Field(default_factory=list)


class SelectRequestSchema(BaseModel):
    option_id: str | None = None


class QuantityRequestSchema(BaseModel):
    # Raw form input; coerced server-side.
    quantity: str | int | float | None = None


class SearchRequestSchema(BaseModel):
    query: str = ""


class SubmissionSchema(BaseModel):
    category_id: str
    subcategory_id: str
    segment_id: str | None = None
    filter_attribute_id: str | None = None
    filter_option_id: str | None = None
    provider_id: str
    quantity: int
    rate_card_id: str | None = None
    base_price: float
    calculated_price: float
    service_name: str


class InvoiceAmountRequestSchema(BaseModel):
    amount: float
    base_remaining: float = Field(ge=0)
    uninvoiced_additional_costs: float = Field(default=0.0, ge=0)
    include_additional_costs: bool = False


class InvoiceAmountResponseSchema(BaseModel):
    valid: bool
    max_allowed_amount: float

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from booking_console.domain.entities.option import Option
from booking_console.domain.entities.search_session import PageResult, SearchItem


def _first(row: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = row.get(key)
        if value not in (None, ""):
            return value
    return None


def _normalize_row(raw: dict[str, Any], *fallback_labels: str) -> dict[str, Any]:
    _id = _first(raw, "id", "_id", "uuid")
    label = _first(raw, "label", "name", "title", "display_name", *fallback_labels)
    if label is None:
        label = _id
    return {
        "id": str(_id) if _id is not None else None,
        "label": str(label) if label is not None else None,
    }


class ApiEnvelopeDTO(BaseModel):
    """The admin API wraps every body in {status, message, data}."""

    model_config = ConfigDict(extra="allow")

    status: bool = True
    message: str | None = None
    data: Any = None


class OptionDTO(BaseModel):
    id: str
    label: str

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, raw: Any) -> Any:
        if not isinstance(raw, dict):
            return raw
        return _normalize_row(raw)

    def to_option(self) -> Option:
        return Option(id=self.id, label=self.label)


class ItemDTO(OptionDTO):
    data: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, raw: Any) -> Any:
        if not isinstance(raw, dict):
            return raw
        normalized = _normalize_row(raw, "phone", "mobile", "email")
        normalized["data"] = dict(raw)
        return normalized

    def to_item(self) -> SearchItem:
        return SearchItem(id=self.id, label=str(self.label), data=self.data)


class PageMetaDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    has_more: bool | None = Field(default=None, alias="hasMore")
    total_pages: int | None = Field(default=None, alias="totalPages")


class PageDTO(BaseModel):
    data: list[ItemDTO] = Field(default_factory=list)
    meta: PageMetaDTO = Field(default_factory=PageMetaDTO)

    def to_page(self, page: int, page_size: int) -> PageResult:
        items = [row.to_item() for row in self.data]
        if self.meta.has_more is not None:
            has_more = self.meta.has_more
        elif self.meta.total_pages is not None:
            has_more = page < self.meta.total_pages
        else:
            has_more = True
        # A short page always ends the listing.
        if len(items) < page_size:
            has_more = False
        return PageResult(items=items, has_more=has_more)


class ProviderFilters(BaseModel):
    category_id: str
    subcategory_id: str
    attribute_id: str | None = None
    option_id: str | None = None


class PriceRequest(BaseModel):
    category_id: str
    subcategory_id: str
    provider_id: str
    segment_id: str | None = None
    filter_attribute_id: str | None = None
    filter_option_id: str | None = None
    quantity: int = Field(default=1, ge=1)

    def to_body(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class PriceCalculationDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    status: bool = False
    base_price: float | None = Field(default=None, alias="basePrice")
    item_total: float | None = Field(default=None, alias="itemTotal")
    gst_amount: float = Field(default=0.0, alias="gstAmount")
    convenience_charge: float = Field(default=0.0, alias="convenienceCharge")
    final_amount: float = Field(default=0.0, alias="finalAmount")
    rate_card_id: str | None = Field(default=None, alias="rateCardId")

    @model_validator(mode="before")
    @classmethod
    def _coerce_nulls(cls, raw: Any) -> Any:
        if not isinstance(raw, dict):
            return raw
        cleaned = {k: v for k, v in raw.items() if v is not None}
        if "rateCardId" in cleaned:
            cleaned["rateCardId"] = str(cleaned["rateCardId"])
        return cleaned

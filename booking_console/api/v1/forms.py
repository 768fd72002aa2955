import logging
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from booking_console.api.v1.schemas import (
    FormStateSchema,
    NotificationSchema,
    OptionSchema,
    QuantityRequestSchema,
    QuoteSchema,
    SearchItemSchema,
    SearchRequestSchema,
    SearchSessionSchema,
    SelectionNodeSchema,
    SelectRequestSchema,
    SubmissionSchema,
)
from booking_console.application.exceptions import (
    CatalogContractError,
    CatalogUpstreamError,
    FormSessionNotFound,
    SelectionValidationError,
)
from booking_console.application.ports.form_session_store import FormSessionStorePort
from booking_console.application.use_cases.booking_form import BookingForm
from booking_console.application.use_cases.debounced_search import DebouncedSearchResolver
from booking_console.core.config import settings
from booking_console.infrastructure.notifications.collecting_notifier import CollectingNotifier
from booking_console.wiring.dependencies import get_booking_form_factory, get_form_store

router = APIRouter()
logger = logging.getLogger(__name__)


def _get_form(form_id: str, store: FormSessionStorePort) -> BookingForm:
    try:
        return store.get(form_id)
    except FormSessionNotFound:
        raise HTTPException(status_code=404, detail=f"Unknown form: {form_id}")


def _search_state(search: DebouncedSearchResolver) -> SearchSessionSchema:
    session = search.session
    return SearchSessionSchema(
        query=session.query,
        page=session.page,
        page_size=session.page_size,
        status=session.status,
        has_more=session.has_more,
        results=[SearchItemSchema(id=i.id, label=i.label, data=i.data) for i in session.results],
        error=session.error,
    )


def _form_state(form: BookingForm) -> FormStateSchema:
    selections = []
    for node in form.selection.snapshot():
        value = node["value"]
        selections.append(
            SelectionNodeSchema(
                key=node["key"],
                value=OptionSchema(id=value.id, label=value.label) if value else None,
                options=[OptionSchema(id=o.id, label=o.label) for o in node["options"]],
                depends_on=node["depends_on"],
                enabled=node["enabled"],
                loading=node["loading"],
                error=node["error"],
            )
        )

    quote = form.quote.quote
    notifications = []
    if isinstance(form.notifier, CollectingNotifier):
        notifications = [
            NotificationSchema(level=n.level, message=n.message, context=n.context)
            for n in form.notifier.drain()
        ]

    return FormStateSchema(
        form_id=form.form_id or "",
        selections=selections,
        quantity=form.quantity,
        quote=(
            QuoteSchema(
                base_price=quote.base_price,
                item_total=quote.item_total,
                gst=quote.gst,
                convenience_charge=quote.convenience_charge,
                total=quote.total,
                display_total=quote.display_total(settings.CURRENCY_SYMBOL),
                quantity=quote.quantity,
                rate_card_id=quote.rate_card_id,
            )
            if quote
            else None
        ),
        quote_loading=form.quote.loading,
        quote_error=form.quote.error,
        provider_search=_search_state(form.provider_search),
        customer_search=_search_state(form.customer_search),
        notifications=notifications,
    )


@router.post("/forms", response_model=FormStateSchema, status_code=201)
async def create_form(
    store: FormSessionStorePort = Depends(get_form_store),
    factory: Callable[[], BookingForm] = Depends(get_booking_form_factory),
):
    form = factory()
    form_id = store.add(form)
    try:
        await form.open()
    except (CatalogUpstreamError, CatalogContractError) as e:
        store.remove(form_id)
        raise HTTPException(status_code=502, detail=str(e))
    logger.info("Form opened", extra={"form_id": form_id})
    return _form_state(form)


@router.get("/forms/{form_id}", response_model=FormStateSchema)
async def get_form(form_id: str, store: FormSessionStorePort = Depends(get_form_store)):
    return _form_state(_get_form(form_id, store))


@router.put("/forms/{form_id}/selections/{key}", response_model=FormStateSchema)
async def select_option(
    form_id: str,
    key: str,
    req: SelectRequestSchema,
    store: FormSessionStorePort = Depends(get_form_store),
):
    form = _get_form(form_id, store)
    try:
        await form.select(key, req.option_id)
    except SelectionValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _form_state(form)


@router.put("/forms/{form_id}/quantity", response_model=FormStateSchema)
async def set_quantity(
    form_id: str,
    req: QuantityRequestSchema,
    store: FormSessionStorePort = Depends(get_form_store),
):
    form = _get_form(form_id, store)
    await form.set_quantity(req.quantity)
    return _form_state(form)


@router.put("/forms/{form_id}/provider-search", response_model=FormStateSchema)
async def search_providers(
    form_id: str,
    req: SearchRequestSchema,
    wait: bool = Query(False),
    store: FormSessionStorePort = Depends(get_form_store),
):
    form = _get_form(form_id, store)
    form.provider_search.on_query_change(req.query)
    if wait:
        await form.provider_search.wait_idle()
    return _form_state(form)


@router.post("/forms/{form_id}/provider-search/more", response_model=FormStateSchema)
async def load_more_providers(form_id: str, store: FormSessionStorePort = Depends(get_form_store)):
    form = _get_form(form_id, store)
    await form.provider_search.load_more()
    return _form_state(form)


@router.put("/forms/{form_id}/customer-search", response_model=FormStateSchema)
async def search_customers(
    form_id: str,
    req: SearchRequestSchema,
    wait: bool = Query(False),
    store: FormSessionStorePort = Depends(get_form_store),
):
    form = _get_form(form_id, store)
    form.customer_search.on_query_change(req.query)
    if wait:
        await form.customer_search.wait_idle()
    return _form_state(form)


@router.post("/forms/{form_id}/submission", response_model=SubmissionSchema)
async def submit_form(form_id: str, store: FormSessionStorePort = Depends(get_form_store)):
    form = _get_form(form_id, store)
    try:
        payload = form.submission()
    except SelectionValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    store.remove(form_id)
    logger.info("Form submitted", extra={"form_id": form_id})
    return SubmissionSchema(**payload)


@router.delete("/forms/{form_id}", status_code=204)
async def close_form(form_id: str, store: FormSessionStorePort = Depends(get_form_store)) -> Response:
    if store.remove(form_id) is None:
        raise HTTPException(status_code=404, detail=f"Unknown form: {form_id}")
    return Response(status_code=204)

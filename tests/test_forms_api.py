"""
HTTP tests for the form session and invoice endpoints.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from booking_console.application.use_cases.booking_form import BookingForm
from booking_console.infrastructure.admin_api.mock_catalog import MockCatalog
from booking_console.infrastructure.notifications.collecting_notifier import CollectingNotifier
from booking_console.infrastructure.store.memory_store import MemoryFormSessionStore
from booking_console.main import app
from booking_console.wiring.dependencies import get_booking_form_factory, get_form_store


@pytest.fixture
def mock_catalog() -> MockCatalog:
    return MockCatalog()


@pytest.fixture
def client(mock_catalog):
    store = MemoryFormSessionStore()

    def factory() -> BookingForm:
        return BookingForm(
            mock_catalog,
            mock_catalog,
            mock_catalog,
            CollectingNotifier(),
            debounce_seconds=0.01,
        )

    app.dependency_overrides[get_form_store] = lambda: store
    app.dependency_overrides[get_booking_form_factory] = lambda: factory
    # One portal for the whole test so debounce tasks share an event loop.
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _node(state: dict, key: str) -> dict:
    return next(n for n in state["selections"] if n["key"] == key)


def _open(client: TestClient) -> dict:
    r = client.post("/api/v1/forms")
    assert r.status_code == 201
    return r.json()


def _select(client: TestClient, form_id: str, key: str, option_id: str | None) -> dict:
    r = client.put(f"/api/v1/forms/{form_id}/selections/{key}", json={"option_id": option_id})
    assert r.status_code == 200, r.text
    return r.json()


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_new_form_loads_categories_only(client):
    state = _open(client)

    category = _node(state, "category")
    assert [o["id"] for o in category["options"]] == ["Plumbing", "Cleaning", "Electrical"]
    assert category["enabled"] is True
    assert _node(state, "subcategory")["enabled"] is False
    assert _node(state, "provider")["options"] == []
    assert state["quote"] is None
    assert state["quantity"] == 1


def test_full_quote_flow(client):
    form_id = _open(client)["form_id"]

    state = _select(client, form_id, "category", "Plumbing")
    assert [o["id"] for o in _node(state, "subcategory")["options"]] == ["Pipe Repair", "Tap Installation"]

    _select(client, form_id, "subcategory", "Pipe Repair")
    _select(client, form_id, "provider", "ProviderX")
    r = client.put(f"/api/v1/forms/{form_id}/quantity", json={"quantity": "3"})

    assert r.status_code == 200
    quote = r.json()["quote"]
    assert quote["display_total"] == "₹364.00"
    assert quote["quantity"] == 3
    assert r.json()["quantity"] == 3


def test_disabled_node_is_rejected(client):
    form_id = _open(client)["form_id"]

    r = client.put(f"/api/v1/forms/{form_id}/selections/provider", json={"option_id": "ProviderX"})

    assert r.status_code == 422


def test_unknown_option_is_rejected(client):
    form_id = _open(client)["form_id"]

    r = client.put(f"/api/v1/forms/{form_id}/selections/category", json={"option_id": "Gardening"})

    assert r.status_code == 422


def test_provider_search_waits_for_results(client):
    form_id = _open(client)["form_id"]
    _select(client, form_id, "category", "Cleaning")
    _select(client, form_id, "subcategory", "Deep Cleaning")

    r = client.put(f"/api/v1/forms/{form_id}/provider-search?wait=true", json={"query": "shine"})

    search = r.json()["provider_search"]
    assert search["status"] == "idle"
    assert [i["id"] for i in search["results"]] == ["Shine"]

    r = client.post(f"/api/v1/forms/{form_id}/provider-search/more")
    assert r.status_code == 200
    assert len(r.json()["provider_search"]["results"]) == 1


def test_customer_search_by_phone(client):
    form_id = _open(client)["form_id"]

    r = client.put(f"/api/v1/forms/{form_id}/customer-search?wait=true", json={"query": "98765"})

    results = r.json()["customer_search"]["results"]
    assert [i["id"] for i in results] == ["u1", "u2"]
    assert results[0]["data"]["phone"] == "9876543210"


def test_failed_load_is_reported_as_notification(client, mock_catalog):
    form_id = _open(client)["form_id"]
    mock_catalog.fail("list_subcategories")

    state = _select(client, form_id, "category", "Plumbing")

    assert _node(state, "subcategory")["error"]
    assert any(n["level"] == "error" for n in state["notifications"])
    # Drained once read.
    assert client.get(f"/api/v1/forms/{form_id}").json()["notifications"] == []


def test_submission_before_quote_is_rejected(client):
    form_id = _open(client)["form_id"]
    _select(client, form_id, "category", "Plumbing")

    r = client.post(f"/api/v1/forms/{form_id}/submission")

    assert r.status_code == 422


def test_submission_closes_the_form(client):
    form_id = _open(client)["form_id"]
    _select(client, form_id, "category", "Plumbing")
    _select(client, form_id, "subcategory", "Pipe Repair")
    _select(client, form_id, "provider", "ProviderX")

    r = client.post(f"/api/v1/forms/{form_id}/submission")

    assert r.status_code == 200
    body = r.json()
    assert body["calculated_price"] == 128
    assert body["service_name"] == "Plumbing - Pipe Repair"
    assert client.get(f"/api/v1/forms/{form_id}").status_code == 404


def test_delete_form(client):
    form_id = _open(client)["form_id"]

    assert client.delete(f"/api/v1/forms/{form_id}").status_code == 204
    assert client.delete(f"/api/v1/forms/{form_id}").status_code == 404


def test_unknown_form_is_404(client):
    assert client.get("/api/v1/forms/nope").status_code == 404


def test_open_with_catalog_down_reports_node_error(client, mock_catalog):
    mock_catalog.fail("list_categories")

    state = _open(client)

    # Root load failures are recoverable, not fatal.
    assert _node(state, "category")["error"]
    assert _node(state, "category")["options"] == []


def test_invoice_amount_validation(client):
    ok = client.post(
        "/api/v1/invoices/validate-amount",
        json={
            "amount": 1100,
            "base_remaining": 1000,
            "uninvoiced_additional_costs": 100,
            "include_additional_costs": True,
        },
    )
    too_much = client.post(
        "/api/v1/invoices/validate-amount",
        json={"amount": 1100, "base_remaining": 1000},
    )

    assert ok.status_code == 200
    assert ok.json() == {"valid": True, "max_allowed_amount": 1118.0}
    assert too_much.status_code == 422
    assert "exceeds remaining amount" in too_much.json()["detail"]

"""API integration tests for the Budget Cycle Engine."""

from collections.abc import Iterator

import pytest
from conftest import CYCLE, HOUSEHOLD, NETFLIX, seed_household
from fastapi.testclient import TestClient

from budget_cycle.api.dependencies import get_store
from budget_cycle.services.memory_store import InMemoryDataStore
from main import app

client = TestClient(app)
HTTP_200_OK = 200
HTTP_201_CREATED = 201
HTTP_404_NOT_FOUND = 404
HTTP_409_CONFLICT = 409
HTTP_422_UNPROCESSABLE = 422
BUDGET = f"/households/{HOUSEHOLD}/budget"
VIEW_DATE = "2026-01-15"


@pytest.fixture(autouse=True)
def memory_store() -> Iterator[InMemoryDataStore]:
    """Serve every request from a freshly seeded in-memory store."""
    store = InMemoryDataStore()
    seed_household(store)
    app.dependency_overrides[get_store] = lambda: store
    yield store
    app.dependency_overrides.clear()


def expect_status(response: object, expected: int) -> dict:
    """Check the status code and return the JSON body."""
    if response.status_code != expected:
        msg = f"Expected status {expected}, got {response.status_code}: {response.text}"
        raise AssertionError(msg)
    return response.json()


def test_health() -> None:
    """Test the /health endpoint returns status ok."""
    response = client.get("/health")
    if response.status_code != HTTP_200_OK:
        msg = f"Expected status {HTTP_200_OK}, got {response.status_code}"
        raise AssertionError(msg)
    if response.json() != {"status": "ok"}:
        msg = f"Expected response {{'status': 'ok'}}, got {response.json()}"
        raise AssertionError(msg)


def test_scalar_docs() -> None:
    """Test the /scalar endpoint returns OpenAPI or Swagger docs."""
    response = client.get("/scalar")
    if response.status_code != HTTP_200_OK:
        msg = f"Expected status {HTTP_200_OK}, got {response.status_code}"
        raise AssertionError(msg)
    if not ("openapi" in response.text or "swagger" in response.text):
        msg = "Expected 'openapi' or 'swagger' in response text"
        raise AssertionError(msg)


def test_categories() -> None:
    """Vehicle categories come with their metadata fields."""
    body = expect_status(client.get("/categories", params={"owner_type": "vehicle"}), HTTP_200_OK)
    fuel = next((c for c in body if c["id"] == "vehicle_fuel"), None)
    if fuel is None or fuel["fields"][0]["key"] != "fuel_type":
        msg = f"Expected vehicle_fuel with a fuel_type field, got {fuel}"
        raise AssertionError(msg)


def test_budget_requires_setup() -> None:
    """A new cycle reports setup_required and ledger writes conflict."""
    body = expect_status(client.get(BUDGET, params={"date": VIEW_DATE}), HTTP_200_OK)
    if body["status"] != "setup_required" or body["reason"] != "cycle_not_initialized":
        msg = f"Expected setup_required, got {body['status']}/{body['reason']}"
        raise AssertionError(msg)
    if body["view"]["window"]["key"] != CYCLE:
        msg = f"Expected cycle {CYCLE}, got {body['view']['window']['key']}"
        raise AssertionError(msg)
    expect_status(client.post(f"{BUDGET}/items/{NETFLIX}/toggle"), HTTP_409_CONFLICT)


def test_setup_toggle_undo_flow() -> None:
    """Set up the cycle, pay Netflix, undo and redo it."""
    client.get(BUDGET, params={"date": VIEW_DATE})
    body = expect_status(client.post(f"{BUDGET}/cycle/setup", json={"mode": "fresh"}), HTTP_200_OK)
    if body["status"] != "ready" or body["cycle"]["actual_pay"] != 2500:
        msg = f"Expected a ready cycle paying 2500, got {body['cycle']}"
        raise AssertionError(msg)

    body = expect_status(client.post(f"{BUDGET}/items/{NETFLIX}/toggle"), HTTP_200_OK)
    netflix = next(i for g in body["view"]["groups"] for i in g["items"] if i["key"] == NETFLIX)
    if not netflix["is_paid"]:
        msg = "Netflix should be paid after toggling"
        raise AssertionError(msg)

    body = expect_status(client.post(f"{BUDGET}/undo"), HTTP_200_OK)
    netflix = next(i for g in body["view"]["groups"] for i in g["items"] if i["key"] == NETFLIX)
    if netflix["is_paid"] or not body["can_redo"]:
        msg = "Undo should return Netflix to pending"
        raise AssertionError(msg)
    expect_status(client.post(f"{BUDGET}/redo"), HTTP_200_OK)
    expect_status(client.post(f"{BUDGET}/redo"), HTTP_409_CONFLICT)


def test_amount_override_and_skip() -> None:
    """Override an amount, then skip and restore the item."""
    client.get(BUDGET, params={"date": VIEW_DATE})
    client.put(f"{BUDGET}/cycle", json={"actual_pay": 2500, "current_balance": 1200, "bank_account_id": 5})
    body = expect_status(client.put(f"{BUDGET}/items/{NETFLIX}/amount", json={"amount": 21}), HTTP_200_OK)
    if body["view"]["totals"]["total"] != 921:
        msg = f"Expected totals of 921 after the override, got {body['view']['totals']}"
        raise AssertionError(msg)
    body = expect_status(client.post(f"{BUDGET}/items/{NETFLIX}/skip"), HTTP_200_OK)
    if [i["key"] for i in body["view"]["skipped"]] != [NETFLIX]:
        msg = f"Netflix should be skipped, got {body['view']['skipped']}"
        raise AssertionError(msg)
    body = expect_status(client.post(f"{BUDGET}/items/{NETFLIX}/restore"), HTTP_200_OK)
    if body["view"]["totals"]["total"] != 918 or body["account"]["id"] != 5:
        msg = f"Expected Netflix back at 18 on account 5, got {body['view']['totals']}"
        raise AssertionError(msg)


def test_errors_map_to_http() -> None:
    """Unknown keys are 404, bad setup modes 422, empty history 409."""
    client.get(BUDGET, params={"date": VIEW_DATE})
    client.post(f"{BUDGET}/cycle/setup", json={"mode": "fresh"})
    expect_status(client.post(f"{BUDGET}/items/recurring_99_0101/skip"), HTTP_404_NOT_FOUND)
    expect_status(client.post(f"{BUDGET}/cycle/setup", json={"mode": "income"}), HTTP_422_UNPROCESSABLE)
    expect_status(client.post(f"/households/{HOUSEHOLD}-new/budget/undo"), HTTP_409_CONFLICT)


def test_add_one_off_and_recurring_cost(memory_store: InMemoryDataStore) -> None:
    """New entries are stored and scheduled."""
    client.get(BUDGET, params={"date": VIEW_DATE})
    payload = {"name": "Boiler", "amount": 300, "due_date": "2026-01-12", "kind": "expense"}
    body = expect_status(client.post(f"{BUDGET}/one-off", json=payload), HTTP_201_CREATED)
    if body["view"]["totals"]["total"] != 1218:
        msg = f"Expected totals of 1218 with the boiler, got {body['view']['totals']}"
        raise AssertionError(msg)
    payload = {
        "name": "Car Tax",
        "amount": 15,
        "day_of_month": 5,
        "category_id": "vehicle_tax",
        "object_type": "vehicle",
        "metadata": {"registration": "AB12 CDE"},
    }
    expect_status(client.post(f"{BUDGET}/recurring-costs", json=payload), HTTP_201_CREATED)
    names = [c.name for c in memory_store.records[HOUSEHOLD]["recurring_costs"]]
    if names[-2:] != ["Boiler", "Car Tax"]:
        msg = f"Expected the new entries to be stored, got {names}"
        raise AssertionError(msg)


def test_reset_cycle_and_actual_date() -> None:
    """Record when Netflix went out, reset the cycle, then undo the reset."""
    client.get(BUDGET, params={"date": VIEW_DATE})
    expect_status(client.delete(f"{BUDGET}/cycle"), HTTP_409_CONFLICT)
    client.post(f"{BUDGET}/cycle/setup", json={"mode": "fresh"})
    payload = {"amount": 18, "actual_date": "2026-01-18"}
    body = expect_status(client.put(f"{BUDGET}/items/{NETFLIX}/amount", json=payload), HTTP_200_OK)
    netflix = next(i for g in body["view"]["groups"] for i in g["items"] if i["key"] == NETFLIX)
    if netflix["due_date"] != "2026-01-18":
        msg = f"Netflix should show its actual date, got {netflix['due_date']}"
        raise AssertionError(msg)
    body = expect_status(client.delete(f"{BUDGET}/cycle"), HTTP_200_OK)
    if body["status"] != "setup_required" or body["cycle"] is not None:
        msg = f"Expected the cycle to need setup again, got {body['status']}"
        raise AssertionError(msg)
    body = expect_status(client.post(f"{BUDGET}/undo"), HTTP_200_OK)
    if body["status"] != "ready":
        msg = f"Undo should bring the cycle back, got {body['status']}"
        raise AssertionError(msg)

"""Shared fixtures: a seeded in-memory household."""

from datetime import date

import pytest

from budget_cycle.core.settings import Settings
from budget_cycle.services.budget_service import BudgetService
from budget_cycle.services.memory_store import InMemoryDataStore

HOUSEHOLD = "1"
TODAY = date(2026, 1, 10)
CYCLE = "2025-12-26"
NETFLIX = "recurring_7_2001"
RENT = "recurring_8_0101"
PAY = "income_1_2912"


def seed_household(store: InMemoryDataStore) -> None:
    """Salary on the 28th, Netflix on the 20th, rent on the 1st and one current account."""
    store.seed(
        HOUSEHOLD,
        incomes=[{"id": 1, "employer": "Acme", "amount": 2500, "payment_day": 28, "is_primary": 1}],
        recurring_costs=[
            {"id": 7, "name": "Netflix", "amount": 18, "frequency": "monthly", "day_of_month": 20},
            {"id": 8, "name": "Rent", "amount": 900, "day_of_month": 1, "adjust_for_working_day": 1},
        ],
        current_accounts=[{"id": 5, "bank_name": "Monzo", "account_name": "Joint", "overdraft_limit": 250}],
    )


@pytest.fixture
def store() -> InMemoryDataStore:
    """An in-memory store holding one seeded household."""
    store = InMemoryDataStore()
    seed_household(store)
    return store


@pytest.fixture
def service(store: InMemoryDataStore) -> BudgetService:
    """A budget session for the seeded household, pinned to TODAY."""
    return BudgetService(store, HOUSEHOLD, Settings(), clock=lambda: TODAY)

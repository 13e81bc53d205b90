"""In-memory data store, used for local runs without a data service and in tests."""

from collections import defaultdict
from datetime import date
from itertools import count
from typing import Any

from budget_cycle.core.models import (
    BudgetCycle,
    BudgetProgressItem,
    CreditCard,
    CurrentAccount,
    IncomeSource,
    Investment,
    Pension,
    RecurringCost,
    SavingsAccount,
    SavingsPot,
)
from budget_cycle.core.utils import parse_iso_date
from budget_cycle.services.data_store import DataStore

SEED_MODELS: dict[str, type] = {
    "incomes": IncomeSource,
    "recurring_costs": RecurringCost,
    "credit_cards": CreditCard,
    "pensions": Pension,
    "investments": Investment,
    "savings": SavingsAccount,
    "savings_pots": SavingsPot,
    "current_accounts": CurrentAccount,
}


class InMemoryDataStore(DataStore):
    """Data store keeping every household's records in dictionaries."""

    def __init__(self, holidays: list[str | date] | None = None) -> None:
        """Initialize an empty store with an optional list of holidays."""
        self.holidays: list[date] = [d for d in (parse_iso_date(h) for h in holidays or []) if d is not None]
        self.records: dict[str, dict[str, list[Any]]] = defaultdict(lambda: defaultdict(list))
        self.cycles: dict[str, dict[str, BudgetCycle]] = defaultdict(dict)
        self.progress: dict[str, dict[tuple[str, str], BudgetProgressItem]] = defaultdict(dict)
        self._ids = count(1000)

    def seed(self, household_id: str, **collections: list[dict[str, Any]]) -> None:
        """Load source records, e.g. `seed("1", incomes=[...], recurring_costs=[...])`."""
        for name, rows in collections.items():
            if name not in SEED_MODELS:
                msg = f"Unknown collection: {name}"
                raise ValueError(msg)
            self.records[household_id][name].extend(SEED_MODELS[name].model_validate(row) for row in rows)

    async def aclose(self) -> None:
        """Nothing to release."""

    def _get(self, household_id: str, name: str) -> list[Any]:
        return list(self.records[household_id][name])

    # --- Reads ---

    async def list_incomes(self, household_id: str) -> list[IncomeSource]:
        """Income sources of a household."""
        return self._get(household_id, "incomes")

    async def list_recurring_costs(self, household_id: str) -> list[RecurringCost]:
        """Recurring and one-off costs of a household."""
        return self._get(household_id, "recurring_costs")

    async def list_credit_cards(self, household_id: str) -> list[CreditCard]:
        """Credit cards of a household."""
        return self._get(household_id, "credit_cards")

    async def list_pensions(self, household_id: str) -> list[Pension]:
        """Pensions of a household."""
        return self._get(household_id, "pensions")

    async def list_investments(self, household_id: str) -> list[Investment]:
        """Investments of a household."""
        return self._get(household_id, "investments")

    async def list_savings(self, household_id: str) -> list[SavingsAccount]:
        """Savings accounts of a household."""
        return self._get(household_id, "savings")

    async def list_savings_pots(self, household_id: str) -> list[SavingsPot]:
        """Savings pots of a household."""
        return self._get(household_id, "savings_pots")

    async def list_current_accounts(self, household_id: str) -> list[CurrentAccount]:
        """Current accounts of a household."""
        return self._get(household_id, "current_accounts")

    async def list_progress(self, household_id: str) -> list[BudgetProgressItem]:
        """Progress records of every cycle of a household."""
        return list(self.progress[household_id].values())

    async def list_cycles(self, household_id: str) -> list[BudgetCycle]:
        """Cycle records of a household."""
        return list(self.cycles[household_id].values())

    async def list_holidays(self) -> list[date]:
        """Declared public holidays."""
        return list(self.holidays)

    # --- Writes ---

    async def put_cycle(self, household_id: str, cycle: BudgetCycle) -> None:
        """Upsert a cycle record keyed by its start date."""
        self.cycles[household_id][cycle.cycle_start.isoformat()] = cycle

    async def delete_cycle(self, household_id: str, cycle_start: str) -> None:
        """Delete a cycle record."""
        self.cycles[household_id].pop(cycle_start, None)

    async def put_progress(self, household_id: str, item: BudgetProgressItem) -> None:
        """Upsert a progress record keyed by (cycle_start, item_key)."""
        self.progress[household_id][(item.cycle_start.isoformat(), item.item_key)] = item

    async def delete_progress(self, household_id: str, cycle_start: str, item_key: str) -> None:
        """Delete a progress record."""
        self.progress[household_id].pop((cycle_start, item_key), None)

    async def create_recurring_cost(self, household_id: str, cost: RecurringCost) -> RecurringCost:
        """Create a recurring or one-off cost and return it with its assigned id."""
        created = cost.model_copy(update={"id": next(self._ids)})
        self.records[household_id]["recurring_costs"].append(created)
        return created

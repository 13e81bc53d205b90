"""Data store port: the request/response interface to the household data service.

This module defines the abstract base class every data store adapter implements. The engine only ever reads
snapshots through it and writes single records back; it never owns persistence.
"""

from abc import ABC, abstractmethod
from datetime import date

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


class DataStore(ABC):
    """Abstract base class for household data stores.

    Every method may suspend. Adapters raise `TransportError` when the underlying service cannot be reached or
    rejects a request.
    """

    # --- Reads ---

    @abstractmethod
    async def list_incomes(self, household_id: str) -> list[IncomeSource]:
        """Income sources of a household."""

    @abstractmethod
    async def list_recurring_costs(self, household_id: str) -> list[RecurringCost]:
        """Recurring and one-off costs of a household."""

    @abstractmethod
    async def list_credit_cards(self, household_id: str) -> list[CreditCard]:
        """Credit cards of a household."""

    @abstractmethod
    async def list_pensions(self, household_id: str) -> list[Pension]:
        """Pensions of a household."""

    @abstractmethod
    async def list_investments(self, household_id: str) -> list[Investment]:
        """Investments of a household."""

    @abstractmethod
    async def list_savings(self, household_id: str) -> list[SavingsAccount]:
        """Savings accounts of a household."""

    @abstractmethod
    async def list_savings_pots(self, household_id: str) -> list[SavingsPot]:
        """Savings pots of a household."""

    @abstractmethod
    async def list_current_accounts(self, household_id: str) -> list[CurrentAccount]:
        """Current accounts of a household."""

    @abstractmethod
    async def list_progress(self, household_id: str) -> list[BudgetProgressItem]:
        """Progress records of every cycle of a household."""

    @abstractmethod
    async def list_cycles(self, household_id: str) -> list[BudgetCycle]:
        """Cycle records of a household."""

    @abstractmethod
    async def list_holidays(self) -> list[date]:
        """Declared public holidays."""

    # --- Writes ---

    @abstractmethod
    async def put_cycle(self, household_id: str, cycle: BudgetCycle) -> None:
        """Upsert a cycle record keyed by its start date."""

    @abstractmethod
    async def delete_cycle(self, household_id: str, cycle_start: str) -> None:
        """Delete a cycle record."""

    @abstractmethod
    async def put_progress(self, household_id: str, item: BudgetProgressItem) -> None:
        """Upsert a progress record keyed by (cycle_start, item_key)."""

    @abstractmethod
    async def delete_progress(self, household_id: str, cycle_start: str, item_key: str) -> None:
        """Delete a progress record."""

    @abstractmethod
    async def create_recurring_cost(self, household_id: str, cost: RecurringCost) -> RecurringCost:
        """Create a recurring or one-off cost and return it with its assigned id."""

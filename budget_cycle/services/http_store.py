"""HTTP adapter for the household data service, built on httpx."""

from datetime import date
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from budget_cycle.core.errors import TransportError
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
from budget_cycle.core.settings import Settings
from budget_cycle.core.utils import get_logger, parse_iso_date
from budget_cycle.services.data_store import DataStore

logger = get_logger("budget-cycle.http-store")

ModelT = TypeVar("ModelT", bound=BaseModel)


class HttpDataStore(DataStore):
    """Data store talking to the household data service over HTTP.

    Every call is a single attempt; network errors and non-2xx responses surface as `TransportError`.
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        """Initialize with settings; an existing client may be injected (tests, shared pools)."""
        self.headers = {"Accept": "application/json"}
        if settings.data_service_token:
            self.headers["Authorization"] = f"Bearer {settings.data_service_token}"
        self.client = client or httpx.AsyncClient(
            base_url=settings.data_service_url.rstrip("/"),
            timeout=settings.data_service_timeout,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()

    async def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        try:
            response = await self.client.request(method, path, json=payload, headers=self.headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.exception(f"{method} {path} failed with status {exc.response.status_code}")
            msg = f"{method} {path} returned {exc.response.status_code}"
            raise TransportError(msg) from exc
        except httpx.HTTPError as exc:
            logger.exception(f"{method} {path} failed")
            msg = f"{method} {path} failed: {exc}"
            raise TransportError(msg) from exc
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            msg = f"{method} {path} returned a non-JSON body"
            raise TransportError(msg) from exc

    async def _list(self, path: str, model: type[ModelT]) -> list[ModelT]:
        rows = await self._request("GET", path)
        if not isinstance(rows, list):
            logger.warning(f"GET {path} did not return a list; treating as empty")
            return []
        records = []
        for row in rows:
            try:
                records.append(model.model_validate(row))
            except ValidationError:
                logger.warning(f"Dropping malformed {model.__name__} row from {path}: {row}")
        return records

    @staticmethod
    def _finance(household_id: str, resource: str) -> str:
        return f"/households/{household_id}/finance/{resource}"

    # --- Reads ---

    async def list_incomes(self, household_id: str) -> list[IncomeSource]:
        """Income sources of a household."""
        return await self._list(self._finance(household_id, "income"), IncomeSource)

    async def list_recurring_costs(self, household_id: str) -> list[RecurringCost]:
        """Recurring and one-off costs of a household."""
        return await self._list(self._finance(household_id, "recurring-costs"), RecurringCost)

    async def list_credit_cards(self, household_id: str) -> list[CreditCard]:
        """Credit cards of a household."""
        return await self._list(self._finance(household_id, "credit-cards"), CreditCard)

    async def list_pensions(self, household_id: str) -> list[Pension]:
        """Pensions of a household."""
        return await self._list(self._finance(household_id, "pensions"), Pension)

    async def list_investments(self, household_id: str) -> list[Investment]:
        """Investments of a household."""
        return await self._list(self._finance(household_id, "investments"), Investment)

    async def list_savings(self, household_id: str) -> list[SavingsAccount]:
        """Savings accounts of a household."""
        return await self._list(self._finance(household_id, "savings"), SavingsAccount)

    async def list_savings_pots(self, household_id: str) -> list[SavingsPot]:
        """Savings pots of a household."""
        return await self._list(self._finance(household_id, "savings/pots"), SavingsPot)

    async def list_current_accounts(self, household_id: str) -> list[CurrentAccount]:
        """Current accounts of a household."""
        return await self._list(self._finance(household_id, "current-accounts"), CurrentAccount)

    async def list_progress(self, household_id: str) -> list[BudgetProgressItem]:
        """Progress records of every cycle of a household."""
        return await self._list(self._finance(household_id, "budget-progress"), BudgetProgressItem)

    async def list_cycles(self, household_id: str) -> list[BudgetCycle]:
        """Cycle records of a household."""
        return await self._list(self._finance(household_id, "budget-cycles"), BudgetCycle)

    async def list_holidays(self) -> list[date]:
        """Declared public holidays, sent as a list of ISO date strings."""
        rows = await self._request("GET", "/system/holidays")
        if not isinstance(rows, list):
            return []
        return [d for d in (parse_iso_date(row) for row in rows) if d is not None]

    # --- Writes ---

    async def put_cycle(self, household_id: str, cycle: BudgetCycle) -> None:
        """Upsert a cycle record keyed by its start date."""
        await self._request("POST", self._finance(household_id, "budget-cycles"), cycle.model_dump(mode="json"))

    async def delete_cycle(self, household_id: str, cycle_start: str) -> None:
        """Delete a cycle record."""
        await self._request("DELETE", self._finance(household_id, f"budget-cycles/{cycle_start}"))

    async def put_progress(self, household_id: str, item: BudgetProgressItem) -> None:
        """Upsert a progress record keyed by (cycle_start, item_key)."""
        await self._request("POST", self._finance(household_id, "budget-progress"), item.model_dump(mode="json"))

    async def delete_progress(self, household_id: str, cycle_start: str, item_key: str) -> None:
        """Delete a progress record."""
        await self._request("DELETE", self._finance(household_id, f"budget-progress/{cycle_start}/{item_key}"))

    async def create_recurring_cost(self, household_id: str, cost: RecurringCost) -> RecurringCost:
        """Create a recurring or one-off cost and return it with its assigned id."""
        payload = cost.model_dump(mode="json", exclude={"id"})
        created = await self._request("POST", self._finance(household_id, "recurring-costs"), payload)
        if isinstance(created, dict):
            return cost.model_copy(update={"id": created.get("id")})
        return cost

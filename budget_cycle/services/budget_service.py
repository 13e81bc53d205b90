"""Budget service: one household session tying the data store, the pure engine and the undo history together.

Every refresh refetches all of the household's records concurrently and re-derives the cycle from scratch.
Every mutation writes through the store, records an undo entry where the mutation is invertible, and ends with
a refresh. Nothing is cached between refreshes except the last snapshot, which ledger operations plan against.
Mutations of one session run one at a time, so each plans against the snapshot left by the one before it.
"""

import asyncio
from collections.abc import Callable
from datetime import date

from pydantic import BaseModel, Field

from budget_cycle.core.errors import (
    ConfigurationMissingError,
    CycleNotInitializedError,
    InvalidSetupModeError,
    OccurrenceNotFoundError,
    TransportError,
)
from budget_cycle.core.models import (
    BudgetCycle,
    BudgetProgressItem,
    CurrentAccount,
    CycleState,
    CycleView,
    IncomeSource,
    Obligations,
    Occurrence,
    RecurringCost,
)
from budget_cycle.core.settings import Settings, get_settings
from budget_cycle.core.utils import get_logger
from budget_cycle.engine.history import Command, HistoryEntry, UndoRedoController
from budget_cycle.engine.ledger import ProgressLedger, plan_cycle_reset, plan_cycle_save
from budget_cycle.engine.projector import project_drawdown
from budget_cycle.engine.registry import MetadataSchemaRegistry
from budget_cycle.engine.view import derive_cycle_view
from budget_cycle.services.data_store import DataStore

logger = get_logger("budget-cycle.service")

SETUP_MODES = ("fresh", "copy")


class HouseholdSnapshot(BaseModel):
    """Everything read from the data store in one refresh."""

    incomes: list[IncomeSource] = Field(default_factory=list)
    costs: list[RecurringCost] = Field(default_factory=list)
    obligations: Obligations = Field(default_factory=Obligations)
    accounts: list[CurrentAccount] = Field(default_factory=list)
    progress: list[BudgetProgressItem] = Field(default_factory=list)
    cycles: list[BudgetCycle] = Field(default_factory=list)
    holidays: list[date] = Field(default_factory=list)


class BudgetService:
    """Budget session of one household."""

    def __init__(
        self,
        store: DataStore,
        household_id: str,
        settings: Settings | None = None,
        clock: Callable[[], date] = date.today,
    ) -> None:
        """Initialize the session; nothing is fetched until the first refresh."""
        settings = settings or get_settings()
        self.store = store
        self.household_id = household_id
        self.clock = clock
        self.history = UndoRedoController(self.execute, limit=settings.history_limit)
        self._lock = asyncio.Lock()
        self.reference_date: date | None = None
        self.snapshot = HouseholdSnapshot()
        self.view: CycleView | None = None
        self.state: CycleState | None = None

    # --- Reads ---

    async def _holidays(self) -> list[date]:
        try:
            return await self.store.list_holidays()
        except TransportError:
            logger.warning("Holiday list unavailable; treating every weekday as a working day")
            return []

    async def fetch(self) -> HouseholdSnapshot:
        """Read every record of the household concurrently."""
        hid = self.household_id
        (
            incomes,
            costs,
            cards,
            pensions,
            investments,
            savings,
            pots,
            accounts,
            progress,
            cycles,
            holidays,
        ) = await asyncio.gather(
            self.store.list_incomes(hid),
            self.store.list_recurring_costs(hid),
            self.store.list_credit_cards(hid),
            self.store.list_pensions(hid),
            self.store.list_investments(hid),
            self.store.list_savings(hid),
            self.store.list_savings_pots(hid),
            self.store.list_current_accounts(hid),
            self.store.list_progress(hid),
            self.store.list_cycles(hid),
            self._holidays(),
        )
        return HouseholdSnapshot(
            incomes=incomes,
            costs=costs,
            obligations=Obligations(
                credit_cards=cards, pensions=pensions, investments=investments, savings=savings, savings_pots=pots
            ),
            accounts=accounts,
            progress=progress,
            cycles=cycles,
            holidays=holidays,
        )

    async def refresh(self, reference_date: date | None = None) -> CycleState:
        """Refetch everything and re-derive the cycle containing `reference_date` (default: the last one viewed)."""
        today = self.clock()
        if reference_date is not None:
            self.reference_date = reference_date
        ref = self.reference_date or today
        self.snapshot = snap = await self.fetch()

        try:
            view = derive_cycle_view(
                snap.incomes, snap.costs, snap.progress, snap.holidays, ref, obligations=snap.obligations
            )
        except ConfigurationMissingError:
            logger.warning(f"Household {self.household_id} has no income to anchor a cycle")
            self.view = None
            self.state = CycleState(
                status="setup_required",
                reason="no_primary_income",
                reference_date=ref,
                can_undo=self.history.can_undo,
                can_redo=self.history.can_redo,
            )
            return self.state

        self.view = view
        cycle = self.current_cycle()
        account = None
        if cycle is not None and cycle.bank_account_id is not None:
            account = next((a for a in snap.accounts if str(a.id) == str(cycle.bank_account_id)), None)

        drawdown = None
        if cycle is not None:
            drawdown = project_drawdown(
                view.window,
                view.active_items,
                cycle.current_balance,
                today,
                account.overdraft_limit if account else 0.0,
            )

        self.state = CycleState(
            status="ready" if cycle else "setup_required",
            reason=None if cycle else "cycle_not_initialized",
            reference_date=ref,
            view=view,
            cycle=cycle,
            account=account,
            drawdown=drawdown,
            progress=view.window.progress(today),
            projected_income=view.income.total,
            can_undo=self.history.can_undo,
            can_redo=self.history.can_redo,
        )
        return self.state

    def current_cycle(self) -> BudgetCycle | None:
        """Cycle record of the viewed cycle, if it has been set up."""
        if self.view is None:
            return None
        start = self.view.window.start
        return next((c for c in self.snapshot.cycles if c.cycle_start == start), None)

    def previous_cycle(self) -> BudgetCycle | None:
        """Most recent cycle record strictly before the viewed cycle."""
        if self.view is None:
            return None
        start = self.view.window.start
        earlier = [c for c in self.snapshot.cycles if c.cycle_start < start]
        return max(earlier, key=lambda c: c.cycle_start, default=None)

    # --- Command execution ---

    async def execute(self, command: Command) -> None:
        """Carry out one history command as a data store write."""
        hid, params = self.household_id, command.params
        if command.kind == "put_progress":
            await self.store.put_progress(hid, BudgetProgressItem.model_validate(params))
        elif command.kind == "delete_progress":
            await self.store.delete_progress(hid, params["cycle_start"], params["item_key"])
        elif command.kind == "put_cycle":
            await self.store.put_cycle(hid, BudgetCycle.model_validate(params))
        elif command.kind == "delete_cycle":
            await self.store.delete_cycle(hid, params["cycle_start"])
        else:
            msg = f"Unknown command kind: {command.kind}"
            raise ValueError(msg)

    async def _after_failure(self) -> None:
        try:
            await self.refresh()
        except TransportError:
            logger.warning(f"Refetch after a failed write also failed for household {self.household_id}")

    async def _commit(self, entry: HistoryEntry | None) -> CycleState:
        if entry is None:
            return await self.refresh()
        try:
            await entry.redo_fn(self.execute)()
        except TransportError:
            logger.exception(f"Write failed: {entry.label}")
            await self._after_failure()
            raise
        self.history.record(entry)
        logger.info(f"{entry.label} (household {self.household_id})")
        return await self.refresh()

    # --- Guards ---

    async def _require_view(self) -> CycleView:
        if self.view is None:
            await self.refresh()
        if self.view is None:
            msg = "No primary income with a payment day; add an income before budgeting"
            raise ConfigurationMissingError(msg)
        return self.view

    async def _require_ledger(self, key: str) -> tuple[ProgressLedger, Occurrence]:
        view = await self._require_view()
        if self.current_cycle() is None:
            raise CycleNotInitializedError(view.window.key)
        occ = view.find(key)
        if occ is None:
            raise OccurrenceNotFoundError(key)
        return ProgressLedger(view.window.key, self.snapshot.progress), occ

    # --- Ledger operations ---

    async def toggle_paid(self, key: str) -> CycleState:
        """Flip an occurrence between pending and paid; paying records its current amount."""
        async with self._lock:
            ledger, occ = await self._require_ledger(key)
            return await self._commit(ledger.toggle_paid(key, occ.amount))

    async def set_actual_amount(self, key: str, amount: object, actual_date: date | None = None) -> CycleState:
        """Override the amount of an occurrence for this cycle only, optionally with the date it went out."""
        async with self._lock:
            ledger, _ = await self._require_ledger(key)
            return await self._commit(ledger.set_actual_amount(key, amount, actual_date))

    async def skip(self, key: str) -> CycleState:
        """Exclude an occurrence from this cycle."""
        async with self._lock:
            ledger, _ = await self._require_ledger(key)
            return await self._commit(ledger.skip(key))

    async def restore(self, key: str) -> CycleState:
        """Bring a skipped occurrence back as pending."""
        async with self._lock:
            ledger, _ = await self._require_ledger(key)
            return await self._commit(ledger.restore(key))

    # --- Cycle settings ---

    async def _save_cycle(self, actual_pay: object, current_balance: object, bank_account_id: object) -> CycleState:
        view = await self._require_view()
        updated = BudgetCycle(
            cycle_start=view.window.start,
            actual_pay=actual_pay,
            current_balance=current_balance,
            bank_account_id=bank_account_id,
        )
        return await self._commit(plan_cycle_save(self.current_cycle(), updated))

    async def save_cycle(
        self, actual_pay: object, current_balance: object, bank_account_id: object = None
    ) -> CycleState:
        """Upsert the declared pay, balance and account of the viewed cycle."""
        async with self._lock:
            return await self._save_cycle(actual_pay, current_balance, bank_account_id)

    async def setup_cycle(self, mode: str = "fresh") -> CycleState:
        """Create the viewed cycle's record from projected income ('fresh') or the previous cycle ('copy')."""
        if mode not in SETUP_MODES:
            msg = f"Unknown setup mode '{mode}'; expected one of {', '.join(SETUP_MODES)}"
            raise InvalidSetupModeError(msg)
        async with self._lock:
            view = await self._require_view()
            pay = balance = view.income.total
            account_id = None
            previous = self.previous_cycle() if mode == "copy" else None
            if previous is not None:
                pay = balance = previous.actual_pay
                account_id = previous.bank_account_id
            elif mode == "copy":
                logger.info(f"No earlier cycle to copy for household {self.household_id}; using projected income")
            return await self._save_cycle(pay, balance, account_id)

    async def reset_cycle(self) -> CycleState:
        """Remove the viewed cycle's record so it has to be set up again; progress records are kept."""
        async with self._lock:
            view = await self._require_view()
            cycle = self.current_cycle()
            if cycle is None:
                raise CycleNotInitializedError(view.window.key)
            return await self._commit(plan_cycle_reset(cycle))

    # --- Source records ---

    async def _create(self, cost: RecurringCost) -> CycleState:
        try:
            created = await self.store.create_recurring_cost(self.household_id, cost)
        except TransportError:
            logger.exception(f"Failed to create '{cost.name}' for household {self.household_id}")
            await self._after_failure()
            raise
        logger.info(f"Created {cost.frequency} cost '{created.name}' ({created.id}) for household {self.household_id}")
        return await self.refresh()

    async def add_recurring_cost(self, cost: RecurringCost) -> CycleState:
        """Create a recurring cost; metadata is reduced to its category's declared fields."""
        metadata = MetadataSchemaRegistry.clean_metadata(cost.category_id, cost.metadata)
        async with self._lock:
            return await self._create(cost.model_copy(update={"id": None, "metadata": metadata}))

    async def add_one_off(
        self,
        name: str,
        amount: object,
        due_date: date,
        *,
        income: bool = False,
        category_id: str = "other",
        bank_account_id: object = None,
        emoji: str | None = None,
    ) -> CycleState:
        """Create a one-off expense, or an ad-hoc income when `income` is set."""
        cost = RecurringCost(
            name=name,
            amount=amount,
            frequency="one_off",
            start_date=due_date,
            category_id="income" if income else category_id,
            bank_account_id=bank_account_id,
            emoji=emoji,
        )
        async with self._lock:
            return await self._create(cost)

    # --- History ---

    async def undo(self) -> CycleState:
        """Restore the state before the most recent recorded mutation."""
        async with self._lock:
            try:
                await self.history.undo()
            except TransportError:
                await self._after_failure()
                raise
            return await self.refresh()

    async def redo(self) -> CycleState:
        """Re-apply the most recently undone mutation."""
        async with self._lock:
            try:
                await self.history.redo()
            except TransportError:
                await self._after_failure()
                raise
            return await self.refresh()

"""Pydantic models for the Budget Cycle Engine.

This module defines the records read from and written to the household data service (income sources, recurring
costs, obligations, cycles and progress items) and the derived view models the engine produces (occurrences,
cycle windows, groups, drawdown forecasts). Wire fields keep the data service's snake_case names, and every
amount, day and flag is parsed defensively so malformed input degrades to zero or a default instead of raising.
"""

import json
from datetime import date
from enum import IntEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationInfo, computed_field, field_validator

from budget_cycle.core.utils import parse_amount, parse_flag, parse_int, parse_iso_date


def _optional_amount(val: object) -> float | None:
    return None if val is None or val == "" else parse_amount(val)


Amount = Annotated[float, BeforeValidator(parse_amount)]
OptionalAmount = Annotated[float | None, BeforeValidator(_optional_amount)]
Day = Annotated[int | None, BeforeValidator(parse_int)]
Flag = Annotated[bool, BeforeValidator(parse_flag)]
IsoDate = Annotated[date | None, BeforeValidator(parse_iso_date)]
RecordId = int | str | None

Frequency = Literal["monthly", "weekly", "quarterly", "yearly", "one_off"]
Direction = Literal["income", "expense"]


class PaidState(IntEnum):
    """Tri-state paid flag of a progress item."""

    SKIPPED = -1
    PENDING = 0
    PAID = 1


class WireModel(BaseModel):
    """Base for records exchanged with the data service; unknown fields are ignored."""

    model_config = ConfigDict(extra="ignore")


# --- Source records ---


class IncomeSource(WireModel):
    """A salary or other regular income paid on a day of the month."""

    id: RecordId = None
    employer: str = ""
    amount: Amount = 0.0
    payment_day: Day = None
    nearest_working_day: Flag = True
    bank_account_id: RecordId = None
    is_primary: Flag = False
    member_id: RecordId = None
    is_active: Flag = True


class RecurringCost(WireModel):
    """A user-declared recurring (or one-off) cost, or an ad-hoc income when category_id is 'income'."""

    id: RecordId = None
    name: str = ""
    amount: Amount = 0.0
    frequency: str = "monthly"
    day_of_month: Day = None
    day_of_week: Day = None
    start_date: IsoDate = None
    exact_date: IsoDate = None
    adjust_for_working_day: Flag = False
    category_id: str = "other"
    object_type: str = "household"
    object_id: RecordId = None
    is_active: Flag = True
    bank_account_id: RecordId = None
    emoji: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("frequency", mode="before")
    @classmethod
    def _normalize_frequency(cls, val: object) -> str:
        return str(val or "monthly").strip().lower()

    @field_validator("category_id", "object_type", mode="before")
    @classmethod
    def _default_blank(cls, val: object, info: ValidationInfo) -> str:
        if val is None or val == "":
            return "other" if info.field_name == "category_id" else "household"
        return str(val)

    @field_validator("metadata", mode="before")
    @classmethod
    def _parse_metadata(cls, val: object) -> dict[str, Any]:
        if isinstance(val, str):
            try:
                val = json.loads(val)
            except json.JSONDecodeError:
                return {}
        return val if isinstance(val, dict) else {}


class CreditCard(WireModel):
    """A credit card whose repayment falls once per cycle."""

    id: RecordId = None
    card_name: str = ""
    payment_day: Day = None


class Pension(WireModel):
    """A pension with a monthly contribution."""

    id: RecordId = None
    provider: str = ""
    monthly_contribution: Amount = 0.0
    payment_day: Day = None


class Investment(WireModel):
    """An investment with a monthly contribution."""

    id: RecordId = None
    name: str = ""
    monthly_contribution: Amount = 0.0
    payment_day: Day = None


class SavingsAccount(WireModel):
    """A savings account with a regular deposit."""

    id: RecordId = None
    institution: str = ""
    account_name: str = ""
    deposit_amount: Amount = 0.0
    deposit_day: Day = None


class SavingsPot(WireModel):
    """A pot inside a savings account; replaces the account's own deposit in the schedule."""

    id: RecordId = None
    savings_id: RecordId = None
    name: str = ""
    deposit_day: Day = None


class CurrentAccount(WireModel):
    """A current (checking) account; its overdraft limit feeds the drawdown forecast."""

    id: RecordId = None
    bank_name: str = ""
    account_name: str = ""
    overdraft_limit: Amount = 0.0


class Obligations(BaseModel):
    """Single-occurrence-per-cycle obligations scheduled next to the recurring costs."""

    credit_cards: list[CreditCard] = Field(default_factory=list)
    pensions: list[Pension] = Field(default_factory=list)
    investments: list[Investment] = Field(default_factory=list)
    savings: list[SavingsAccount] = Field(default_factory=list)
    savings_pots: list[SavingsPot] = Field(default_factory=list)


class BudgetCycle(WireModel):
    """Declared settings of one cycle, keyed by its start date."""

    cycle_start: date
    actual_pay: Amount = 0.0
    current_balance: Amount = 0.0
    bank_account_id: RecordId = None


class BudgetProgressItem(WireModel):
    """Paid/skipped state, amount override and actual date of one occurrence in one cycle."""

    cycle_start: date
    item_key: str
    is_paid: PaidState = PaidState.PENDING
    actual_amount: OptionalAmount = None
    actual_date: IsoDate = None

    @field_validator("is_paid", mode="before")
    @classmethod
    def _parse_paid(cls, val: object) -> PaidState:
        flag = parse_int(val, 0)
        return PaidState(flag) if flag in (-1, 0, 1) else PaidState.PENDING


# --- Derived view models ---


class CycleProgress(BaseModel):
    """How far "today" is through a cycle."""

    percent: float
    days_elapsed: int
    days_remaining: int


class CycleWindow(BaseModel):
    """A resolved pay cycle [start, end) anchored to the primary income's pay day."""

    model_config = ConfigDict(frozen=True)

    start: date
    end: date
    anchor: date
    pay_day: int
    label: str

    @computed_field
    @property
    def key(self) -> str:
        """Persistence key joining BudgetCycle and BudgetProgressItem records."""
        return self.start.isoformat()

    @computed_field
    @property
    def duration_days(self) -> int:
        """Number of days from start to end."""
        return (self.end - self.start).days

    def contains(self, d: date) -> bool:
        """Return True when d falls inside the half-open window."""
        return self.start <= d < self.end

    def progress(self, today: date) -> CycleProgress:
        """Return percent elapsed and days remaining as seen from `today`."""
        duration = max(self.duration_days, 1)
        elapsed = max((today - self.start).days, 0)
        percent = min(elapsed / duration * 100, 100.0)
        remaining = max((self.end - today).days, 0)
        return CycleProgress(percent=round(percent, 2), days_elapsed=elapsed, days_remaining=remaining)


class Occurrence(BaseModel):
    """One scheduled due date of an income or cost inside a cycle."""

    model_config = ConfigDict(frozen=True)

    key: str
    source_type: str
    source_id: RecordId = None
    label: str
    amount: float
    default_amount: float
    due_date: date
    category: str = "other"
    group: str = "bills"
    direction: Direction = "expense"
    frequency: str = "monthly"
    state: PaidState = PaidState.PENDING
    has_override: bool = False
    owner_type: str = "household"
    owner_id: RecordId = None
    bank_account_id: RecordId = None

    @computed_field
    @property
    def is_paid(self) -> bool:
        """True when the ledger marks this occurrence as paid."""
        return self.state == PaidState.PAID

    @computed_field
    @property
    def is_skipped(self) -> bool:
        """True when the ledger marks this occurrence as skipped."""
        return self.state == PaidState.SKIPPED

    @property
    def signed_amount(self) -> float:
        """Amount as a balance movement: incomes add, costs subtract."""
        return self.amount if self.direction == "income" else -self.amount


class ItemGroup(BaseModel):
    """A display/totals group of occurrences (income, bills, finance, wealth)."""

    id: str
    label: str
    order: int
    items: list[Occurrence] = Field(default_factory=list)
    total: float = 0.0
    paid: float = 0.0
    unpaid: float = 0.0


class CycleTotals(BaseModel):
    """Totals of the expense groups of a cycle."""

    total: float = 0.0
    paid: float = 0.0
    unpaid: float = 0.0


class CycleView(BaseModel):
    """Everything derived for one cycle from immutable snapshots of the household's data."""

    window: CycleWindow
    income: ItemGroup
    groups: list[ItemGroup] = Field(default_factory=list)
    skipped: list[Occurrence] = Field(default_factory=list)
    totals: CycleTotals = Field(default_factory=CycleTotals)

    @property
    def active_items(self) -> list[Occurrence]:
        """All non-skipped occurrences, incomes first."""
        return [*self.income.items, *(item for group in self.groups for item in group.items)]

    def find(self, key: str) -> Occurrence | None:
        """Look up an occurrence (active or skipped) by key."""
        for item in [*self.active_items, *self.skipped]:
            if item.key == key:
                return item
        return None


class DrawdownPoint(BaseModel):
    """Projected balance at the end of one day."""

    day: date
    balance: float


class OverdraftPeriod(BaseModel):
    """A run of consecutive days below zero (warning) or below the overdraft limit (danger)."""

    severity: Literal["warning", "danger"]
    start_date: date
    end_date: date


class OverdraftRemedy(BaseModel):
    """What it takes to stay out of the red for the rest of the cycle."""

    amount_to_clear: float
    amount_to_buffer: float
    deadline: date | None = None
    limit_deadline: date | None = None


class Drawdown(BaseModel):
    """Day-by-day balance forecast across a cycle."""

    opening_balance: float
    overdraft_limit: float = 0.0
    points: list[DrawdownPoint] = Field(default_factory=list)
    lowest: float = 0.0
    is_deficit: bool = False
    is_limit_breach: bool = False
    true_disposable: float = 0.0
    remedy: OverdraftRemedy | None = None
    periods: list[OverdraftPeriod] = Field(default_factory=list)
    risk: dict[str, Literal["warning", "danger"] | None] = Field(default_factory=dict)


class CycleState(BaseModel):
    """What one refresh of a household session produces."""

    status: Literal["ready", "setup_required"]
    reason: Literal["no_primary_income", "cycle_not_initialized"] | None = None
    reference_date: date
    view: CycleView | None = None
    cycle: BudgetCycle | None = None
    account: CurrentAccount | None = None
    drawdown: Drawdown | None = None
    progress: CycleProgress | None = None
    projected_income: float = 0.0
    can_undo: bool = False
    can_redo: bool = False


# --- API request bodies ---


class CycleSettingsRequest(BaseModel):
    """Declared pay, balance and account of the viewed cycle."""

    actual_pay: Amount = 0.0
    current_balance: Amount = 0.0
    bank_account_id: RecordId = None


class CycleSetupRequest(BaseModel):
    """How to initialize a cycle record: from projected income ('fresh') or the previous cycle ('copy')."""

    mode: str = "fresh"


class AmountRequest(BaseModel):
    """An amount override for one occurrence, optionally with the date it actually went out."""

    amount: Amount = 0.0
    actual_date: IsoDate = None


class OneOffRequest(BaseModel):
    """A one-off expense, or an ad-hoc income when kind is 'income'."""

    name: str
    amount: Amount = 0.0
    due_date: date
    kind: Direction = "expense"
    category_id: str = "other"
    bank_account_id: RecordId = None
    emoji: str | None = None

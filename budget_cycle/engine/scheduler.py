"""Scheduler: expands incomes, recurring costs and obligations into dated occurrences inside a cycle.

Every occurrence gets a deterministic key `{source_type}_{source_id}_{ddMM}` so the progress ledger can find it
again after a recomputation. When one source lands two occurrences on the same day-of-month inside a cycle
(a weekly cost spanning a short month, say), the repeats are told apart by an ordinal suffix: the first keeps
the plain key, later ones get `_2`, `_3` and so on in due-date order.
"""

from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import date, timedelta

from budget_cycle.core.models import (
    CycleWindow,
    IncomeSource,
    Obligations,
    Occurrence,
    RecordId,
    RecurringCost,
)
from budget_cycle.core.utils import add_months, get_logger
from budget_cycle.engine.workdays import WorkingDayCalendar

logger = get_logger("budget-cycle.scheduler")

FINANCE_CATEGORIES = frozenset({"mortgage", "loan", "credit_card", "vehicle_finance"})
INCOME_CATEGORY = "income"

# Period of each stepped frequency: (days, months)
STEPS: dict[str, tuple[int, int]] = {
    "weekly": (7, 0),
    "monthly": (0, 1),
    "quarterly": (0, 3),
    "yearly": (0, 12),
}

# Raw dates this far before the cycle start can still be moved into it by working-day adjustment
LOOKBACK = timedelta(days=7)


def occurrence_key(source_type: str, source_id: RecordId, due: date) -> str:
    """Build the ledger key of an occurrence; a source without id renders as 'fixed'."""
    ident = source_id if source_id not in (None, "") else "fixed"
    return f"{source_type}_{ident}_{due.strftime('%d%m')}"


def group_for(category: str) -> str:
    """Pick the standard group of an expense category."""
    return "finance" if category in FINANCE_CATEGORIES else "bills"


class Scheduler:
    """Expands source records into the occurrences of one cycle window."""

    def __init__(self, window: CycleWindow, calendar: WorkingDayCalendar) -> None:
        """Initialize the scheduler for a resolved window and its working-day calendar."""
        self.window = window
        self.calendar = calendar

    # --- Date rules ---

    def month_dates(self, day: int, not_before: date | None = None) -> list[date]:
        """Raw dates of a day-of-month source from the month before the cycle start to two months after it.

        Which of them belong to this cycle is only known after working-day adjustment (see `in_window`).
        """
        first = self.window.start.replace(day=1)
        dates = [add_months(first, offset, day=day) for offset in range(-1, 3)]
        return [d for d in dates if not_before is None or d >= not_before]

    def in_window(self, raw_dates: Iterable[date], to_working_day: bool) -> list[date]:
        """Adjust raw dates and keep the due dates inside [start, end).

        A due date belongs to exactly one cycle: a date pushed past the end by a cycle end pulled back to a
        working day, or by the adjustment itself, is left to the next cycle.
        """
        dues = (self.adjust(raw, to_working_day) for raw in raw_dates)
        return [due for due in dues if self.window.contains(due)]

    def adjust(self, raw: date, to_working_day: bool) -> date:
        """Move a raw date to the next working day when the source asks for it."""
        return self.calendar.next_working_day(raw) if to_working_day else raw

    def stepped_dates(self, anchor: date, frequency: str) -> list[date]:
        """Return every anchor + k * period from a week before the window to its end, k >= 0."""
        days, months = STEPS[frequency]
        since, until = self.window.start - LOOKBACK, self.window.end
        if days:
            k = max(0, -(-(since - anchor).days // days))
            current = anchor + timedelta(days=k * days)
            result = []
            while current < until:
                result.append(current)
                k += 1
                current = anchor + timedelta(days=k * days)
            return result

        # Month arithmetic is always taken from the anchor so month-end clamping never drifts
        gap = (since.year - anchor.year) * 12 + since.month - anchor.month
        k = max(0, gap // months - 1)
        current = add_months(anchor, k * months)
        while current < since:
            k += 1
            current = add_months(anchor, k * months)
        result = []
        while current < until:
            result.append(current)
            k += 1
            current = add_months(anchor, k * months)
        return result

    def weekday_dates(self, weekday: int) -> list[date]:
        """Return every date from a week before the window to its end falling on `weekday` (0=Mon..6=Sun)."""
        since = self.window.start - LOOKBACK
        current = since + timedelta(days=(weekday - since.weekday()) % 7)
        result = []
        while current < self.window.end:
            result.append(current)
            current += timedelta(days=7)
        return result

    def recurring_dates(self, cost: RecurringCost) -> list[date]:
        """Raw (unadjusted) candidate dates of a recurring cost around the window."""
        freq = cost.frequency
        if freq == "monthly" and cost.day_of_month:
            return self.month_dates(cost.day_of_month, not_before=cost.start_date)
        if freq in STEPS and cost.start_date:
            return self.stepped_dates(cost.start_date, freq)
        if freq == "weekly" and cost.day_of_week is not None:
            # Stored as 0=Sunday..6=Saturday
            return self.weekday_dates((cost.day_of_week - 1) % 7)
        if freq not in STEPS and freq != "one_off":
            logger.warning(f"Unknown frequency '{freq}' on recurring cost {cost.id}; not scheduled")
        return []

    def one_off_date(self, cost: RecurringCost) -> date | None:
        """Date of a one-off entry if it falls in the window; one-offs are never moved to a working day."""
        posted = cost.exact_date or cost.start_date
        if posted and self.window.contains(posted):
            return posted
        return None

    # --- Occurrence builders ---

    def _occurrence(
        self,
        source_type: str,
        source_id: RecordId,
        label: str,
        amount: float,
        due: date,
        category: str,
        group: str,
        **extra: object,
    ) -> Occurrence:
        return Occurrence(
            key=occurrence_key(source_type, source_id, due),
            source_type=source_type,
            source_id=source_id,
            label=label or "Unnamed Item",
            amount=amount,
            default_amount=amount,
            due_date=due,
            category=category or "other",
            group=group,
            direction="income" if group == "income" else "expense",
            **extra,
        )

    def schedule_incomes(self, incomes: Iterable[IncomeSource]) -> list[Occurrence]:
        """Occurrences of every active income on its pay days inside the window."""
        result = []
        for inc in incomes:
            if not inc.is_active or not inc.payment_day or inc.payment_day <= 0:
                continue
            result.extend(
                self._occurrence(
                    "income",
                    inc.id,
                    f"{inc.employer} Pay".strip(),
                    inc.amount,
                    due,
                    INCOME_CATEGORY,
                    "income",
                    owner_type="member" if inc.member_id is not None else "household",
                    owner_id=inc.member_id,
                    bank_account_id=inc.bank_account_id,
                )
                for due in self.in_window(self.month_dates(inc.payment_day), inc.nearest_working_day)
            )
        return result

    def schedule_costs(self, costs: Iterable[RecurringCost]) -> list[Occurrence]:
        """Occurrences of every active recurring cost; one-offs are posted directly on their date."""
        result = []
        for cost in costs:
            if not cost.is_active:
                continue
            if cost.frequency == "one_off":
                posted = self.one_off_date(cost)
                dues = [posted] if posted else []
            else:
                dues = self.in_window(self.recurring_dates(cost), cost.adjust_for_working_day)
            group = "income" if cost.category_id == INCOME_CATEGORY else group_for(cost.category_id)
            result.extend(
                self._occurrence(
                    "recurring",
                    cost.id,
                    cost.name,
                    cost.amount,
                    due,
                    cost.category_id,
                    group,
                    frequency=cost.frequency,
                    owner_type=cost.object_type,
                    owner_id=cost.object_id,
                    bank_account_id=cost.bank_account_id,
                )
                for due in dues
            )
        return result

    def schedule_obligations(self, obligations: Obligations) -> list[Occurrence]:
        """Occurrences of every card, pension, investment, savings deposit and pot inside the window."""
        result = []
        for card in obligations.credit_cards:
            result.extend(
                self._occurrence("credit_card", card.id, card.card_name, 0.0, due, "credit_card", "finance")
                for due in self.in_window(self.month_dates(card.payment_day or 1), True)
            )
        for pension in obligations.pensions:
            result.extend(
                self._occurrence(
                    "pension",
                    pension.id,
                    f"{pension.provider} Pension".strip(),
                    pension.monthly_contribution,
                    due,
                    "pension",
                    "wealth",
                )
                for due in self.in_window(self.month_dates(pension.payment_day or 1), True)
            )
        for inv in obligations.investments:
            result.extend(
                self._occurrence(
                    "investment",
                    inv.id,
                    f"{inv.name} Investment".strip(),
                    inv.monthly_contribution,
                    due,
                    "investment",
                    "wealth",
                )
                for due in self.in_window(self.month_dates(inv.payment_day or 1), True)
            )
        with_pots = {str(pot.savings_id) for pot in obligations.savings_pots}
        for acct in obligations.savings:
            if str(acct.id) in with_pots:
                continue
            result.extend(
                self._occurrence(
                    "savings_deposit",
                    acct.id,
                    f"{acct.institution} {acct.account_name}".strip(),
                    acct.deposit_amount,
                    due,
                    "savings",
                    "wealth",
                )
                for due in self.in_window(self.month_dates(acct.deposit_day or 1), False)
            )
        for pot in obligations.savings_pots:
            result.extend(
                self._occurrence("pot", pot.id, pot.name, 0.0, due, "savings", "wealth")
                for due in self.in_window(self.month_dates(pot.deposit_day or 1), False)
            )
        return result

    def schedule(
        self,
        incomes: Sequence[IncomeSource],
        costs: Sequence[RecurringCost],
        obligations: Obligations | None = None,
    ) -> list[Occurrence]:
        """Schedule everything for the window and make the keys unique."""
        occurrences = [
            *self.schedule_incomes(incomes),
            *self.schedule_costs(costs),
            *self.schedule_obligations(obligations or Obligations()),
        ]
        return disambiguate_keys(occurrences)


def disambiguate_keys(occurrences: Sequence[Occurrence]) -> list[Occurrence]:
    """Suffix repeated keys with their ordinal (`_2`, `_3`, ...) in due-date order."""
    ordered = sorted(enumerate(occurrences), key=lambda pair: (pair[1].key, pair[1].due_date, pair[0]))
    seen: Counter[str] = Counter()
    renamed: dict[int, Occurrence] = {}
    for idx, occ in ordered:
        seen[occ.key] += 1
        if seen[occ.key] > 1:
            renamed[idx] = occ.model_copy(update={"key": f"{occ.key}_{seen[occ.key]}"})
    return [renamed.get(idx, occ) for idx, occ in enumerate(occurrences)]

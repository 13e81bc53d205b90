"""Cycle view: the pure projection from household snapshots to the scheduled, ledger-annotated cycle."""

from collections.abc import Iterable, Sequence
from datetime import date

from budget_cycle.core.models import (
    BudgetProgressItem,
    CycleTotals,
    CycleView,
    IncomeSource,
    ItemGroup,
    Obligations,
    Occurrence,
    PaidState,
    RecurringCost,
)
from budget_cycle.engine.ledger import ProgressLedger
from budget_cycle.engine.resolver import resolve_cycle
from budget_cycle.engine.scheduler import Scheduler
from budget_cycle.engine.workdays import WorkingDayCalendar

# group id -> (label, display order)
GROUPS: dict[str, tuple[str, int]] = {
    "income": ("Incomes", -1),
    "bills": ("Household Bills", 0),
    "finance": ("Finance & Debts", 5),
    "wealth": ("Savings & Growth", 999),
}


def annotate(occ: Occurrence, record: BudgetProgressItem | None) -> Occurrence:
    """Apply a ledger record to a scheduled occurrence.

    A recorded actual date replaces the due date; the key keeps the scheduled date.
    """
    if record is None:
        return occ
    override = record.actual_amount is not None and record.is_paid != PaidState.SKIPPED
    return occ.model_copy(
        update={
            "state": record.is_paid,
            "amount": record.actual_amount if override else occ.default_amount,
            "has_override": override,
            "due_date": record.actual_date or occ.due_date,
        }
    )


def build_group(group_id: str, items: Iterable[Occurrence]) -> ItemGroup:
    """Sort a group's items by due date and total them."""
    label, order = GROUPS.get(group_id, (group_id.replace("_", " ").title(), 10))
    ordered = sorted(items, key=lambda o: (o.due_date, o.label, o.key))
    total = sum(o.amount for o in ordered)
    paid = sum(o.amount for o in ordered if o.is_paid)
    return ItemGroup(
        id=group_id,
        label=label,
        order=order,
        items=ordered,
        total=round(total, 2),
        paid=round(paid, 2),
        unpaid=round(total - paid, 2),
    )


def derive_cycle_view(
    incomes: Sequence[IncomeSource],
    costs: Sequence[RecurringCost],
    progress: Iterable[BudgetProgressItem],
    holidays: Iterable[str | date],
    reference_date: date,
    *,
    obligations: Obligations | None = None,
) -> CycleView:
    """Resolve the cycle around `reference_date`, schedule it and annotate it with the ledger.

    Raises ConfigurationMissingError when no income can anchor the cycle.
    """
    calendar = WorkingDayCalendar(holidays)
    window = resolve_cycle(incomes, reference_date, calendar)
    ledger = ProgressLedger(window.key, progress)
    scheduled = Scheduler(window, calendar).schedule(incomes, costs, obligations)

    skipped: list[Occurrence] = []
    by_group: dict[str, list[Occurrence]] = {gid: [] for gid in GROUPS}
    for occ in scheduled:
        item = annotate(occ, ledger.get(occ.key))
        if item.is_skipped:
            skipped.append(item)
        else:
            by_group.setdefault(item.group, []).append(item)

    income = build_group("income", by_group.pop("income"))
    groups = sorted(
        (build_group(gid, items) for gid, items in by_group.items() if items), key=lambda g: g.order
    )
    total = sum(g.total for g in groups)
    paid = sum(g.paid for g in groups)
    return CycleView(
        window=window,
        income=income,
        groups=groups,
        skipped=sorted(skipped, key=lambda o: (o.due_date, o.key)),
        totals=CycleTotals(total=round(total, 2), paid=round(paid, 2), unpaid=round(total - paid, 2)),
    )

"""Cycle resolver: derives the active pay cycle from the primary income and a viewed date."""

from collections.abc import Sequence
from datetime import date

from budget_cycle.core.errors import ConfigurationMissingError
from budget_cycle.core.models import CycleWindow, IncomeSource
from budget_cycle.core.utils import add_months, clamp_day
from budget_cycle.engine.workdays import WorkingDayCalendar

# Cycles anchored this late in a month are named after the month they mostly cover
LABEL_ROLLOVER_DAY = 20


def select_primary_income(incomes: Sequence[IncomeSource]) -> IncomeSource:
    """Return the income flagged primary, else the first one with a pay day.

    Raises ConfigurationMissingError when no income can anchor a cycle.
    """
    primary = next((inc for inc in incomes if inc.is_primary), None)
    if primary is None:
        primary = next((inc for inc in incomes if inc.payment_day and inc.payment_day > 0), None)
    if primary is None or not primary.payment_day or primary.payment_day <= 0:
        msg = "No primary income with a payment day is configured"
        raise ConfigurationMissingError(msg)
    return primary


def resolve_cycle(
    incomes: Sequence[IncomeSource], reference_date: date, calendar: WorkingDayCalendar
) -> CycleWindow:
    """Resolve the cycle containing `reference_date`.

    The raw anchor is this month's pay day once the reference date has reached it, otherwise last month's.
    Both boundaries are pulled back to the prior working day. Pay days past the end of a short month clamp
    to its last day.
    """
    pay_day = select_primary_income(incomes).payment_day
    if reference_date.day >= pay_day:
        anchor = clamp_day(reference_date.year, reference_date.month, pay_day)
    else:
        anchor = add_months(reference_date.replace(day=1), -1, day=pay_day)
    start = calendar.prior_working_day(anchor)
    end = calendar.prior_working_day(add_months(anchor, 1, day=pay_day))
    label_date = add_months(anchor, 1, day=1) if anchor.day >= LABEL_ROLLOVER_DAY else anchor
    return CycleWindow(
        start=start,
        end=end,
        anchor=anchor,
        pay_day=pay_day,
        label=f"{label_date.strftime('%B %Y')} Budget",
    )

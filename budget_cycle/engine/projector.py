"""Drawdown projector: simulates the day-by-day balance of the account across a cycle.

The declared current balance is taken as the balance on "today". Past days keep the opening balance
unchanged: unpaid occurrences dated before today are assumed to be already reflected in the declared balance,
so only unpaid occurrences due today or later move the projection. Skipped occurrences never do.
"""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import date, timedelta
from typing import Literal

from budget_cycle.core.models import (
    CycleWindow,
    Drawdown,
    DrawdownPoint,
    Occurrence,
    OverdraftPeriod,
    OverdraftRemedy,
)

Severity = Literal["warning", "danger"]


def balance_moves_on(day: date, today: date) -> bool:
    """Past days keep the opening balance; only today and later days take scheduled movements."""
    return day >= today


def severity_of(balance: float, overdraft_limit: float) -> Severity | None:
    """Danger below the overdraft limit, warning below zero, otherwise nothing."""
    if balance < -overdraft_limit:
        return "danger"
    if balance < 0:
        return "warning"
    return None


def unpaid_items(occurrences: Iterable[Occurrence]) -> list[Occurrence]:
    """Occurrences that still have to happen: neither paid nor skipped."""
    return [occ for occ in occurrences if not occ.is_paid and not occ.is_skipped]


def daily_balances(
    window: CycleWindow, occurrences: Iterable[Occurrence], opening_balance: float, today: date
) -> list[DrawdownPoint]:
    """Balance at the end of every day in [start, end], inclusive of the end day."""
    movements: dict[date, float] = defaultdict(float)
    for occ in unpaid_items(occurrences):
        movements[occ.due_date] += occ.signed_amount

    points = []
    balance = opening_balance
    day = window.start
    while day <= window.end:
        if balance_moves_on(day, today):
            balance += movements.get(day, 0.0)
        points.append(DrawdownPoint(day=day, balance=round(balance, 2)))
        day += timedelta(days=1)
    return points


def overdraft_periods(points: Sequence[DrawdownPoint], overdraft_limit: float) -> list[OverdraftPeriod]:
    """Collapse consecutive days of equal severity into periods."""
    periods: list[OverdraftPeriod] = []
    current: OverdraftPeriod | None = None
    for point in points:
        severity = severity_of(point.balance, overdraft_limit)
        if severity is None:
            if current:
                periods.append(current)
                current = None
        elif current and current.severity == severity:
            current = current.model_copy(update={"end_date": point.day})
        else:
            if current:
                periods.append(current)
            current = OverdraftPeriod(severity=severity, start_date=point.day, end_date=point.day)
    if current:
        periods.append(current)
    return periods


def item_risks(
    occurrences: Iterable[Occurrence], opening_balance: float, today: date, overdraft_limit: float
) -> dict[str, Severity | None]:
    """Risk status of every unpaid occurrence, walking them in due-date order.

    Items due before today are judged on the opening balance; later items on the balance right after they
    land.
    """
    risks: dict[str, Severity | None] = {}
    balance = opening_balance
    for occ in sorted(unpaid_items(occurrences), key=lambda o: o.due_date):
        if balance_moves_on(occ.due_date, today):
            balance += occ.signed_amount
        risks[occ.key] = severity_of(balance, overdraft_limit)
    return risks


def project_drawdown(
    window: CycleWindow,
    occurrences: Sequence[Occurrence],
    opening_balance: float,
    today: date,
    overdraft_limit: float = 0.0,
) -> Drawdown:
    """Forecast the balance across the cycle and flag a projected deficit."""
    points = daily_balances(window, occurrences, opening_balance, today)
    ahead = [p.balance for p in points if p.day >= today]
    lowest = min(ahead) if ahead else 0.0

    remedy = None
    if lowest < 0:
        first_dip = next((p.day for p in points if p.balance < 0), None)
        first_limit_dip = next((p.day for p in points if p.balance < -overdraft_limit), None)
        remedy = OverdraftRemedy(
            amount_to_clear=round(abs(lowest), 2),
            amount_to_buffer=round(abs(min(0.0, lowest + overdraft_limit)), 2),
            deadline=first_dip,
            limit_deadline=first_limit_dip,
        )

    pending = unpaid_items(occurrences)
    true_disposable = opening_balance + sum(occ.signed_amount for occ in pending)

    return Drawdown(
        opening_balance=opening_balance,
        overdraft_limit=overdraft_limit,
        points=points,
        lowest=lowest,
        is_deficit=lowest < 0,
        is_limit_breach=lowest < -overdraft_limit,
        true_disposable=round(true_disposable, 2),
        remedy=remedy,
        periods=overdraft_periods(points, overdraft_limit),
        risk=item_risks(occurrences, opening_balance, today, overdraft_limit),
    )

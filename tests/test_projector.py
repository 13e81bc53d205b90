"""Unit tests for the drawdown projector."""

from datetime import date

from budget_cycle.core.models import CycleWindow, Occurrence, PaidState
from budget_cycle.engine.projector import project_drawdown

WINDOW = CycleWindow(
    start=date(2026, 1, 1), end=date(2026, 1, 31), anchor=date(2026, 1, 1), pay_day=1, label="January 2026 Budget"
)
TODAY = date(2026, 1, 10)


def make_occurrence(key: str, amount: float, due: date, **extra: object) -> Occurrence:
    """Build an expense occurrence (or income, with direction='income')."""
    return Occurrence(
        key=key, source_type="recurring", label=key, amount=amount, default_amount=amount, due_date=due, **extra
    )


def test_expense_tomorrow_causes_deficit() -> None:
    """Balance 500 with 700 due tomorrow projects a lowest balance of -200."""
    drawdown = project_drawdown(WINDOW, [make_occurrence("rent", 700, date(2026, 1, 11))], 500, TODAY)
    if drawdown.lowest != -200 or not drawdown.is_deficit:
        msg = f"Expected lowest -200 and a deficit, got {drawdown.lowest} / {drawdown.is_deficit}"
        raise AssertionError(msg)
    if drawdown.remedy is None or drawdown.remedy.amount_to_clear != 200:
        msg = f"Expected a remedy clearing 200, got {drawdown.remedy}"
        raise AssertionError(msg)
    if drawdown.remedy.deadline != date(2026, 1, 11):
        msg = f"Deadline should be the first day in the red, got {drawdown.remedy.deadline}"
        raise AssertionError(msg)


def test_points_cover_the_whole_window() -> None:
    """One point per day from start to end inclusive."""
    drawdown = project_drawdown(WINDOW, [], 100, TODAY)
    days = [p.day for p in drawdown.points]
    if days[0] != WINDOW.start or days[-1] != WINDOW.end or len(days) != 31:
        msg = f"Unexpected point range: {days[0]}..{days[-1]} ({len(days)} points)"
        raise AssertionError(msg)
    if drawdown.is_deficit or drawdown.remedy is not None:
        msg = "An empty cycle with a positive balance is not a deficit"
        raise AssertionError(msg)


def test_past_days_keep_the_opening_balance() -> None:
    """Unpaid items dated before today do not move the projection but still count as disposable."""
    overdue = make_occurrence("gas", 100, date(2026, 1, 5))
    drawdown = project_drawdown(WINDOW, [overdue], 500, TODAY)
    if any(p.balance != 500 for p in drawdown.points):
        msg = "Past unpaid items should leave every point at the opening balance"
        raise AssertionError(msg)
    if drawdown.true_disposable != 400:
        msg = f"True disposable should subtract the overdue item, got {drawdown.true_disposable}"
        raise AssertionError(msg)


def test_paid_and_skipped_items_are_ignored() -> None:
    """Only pending items move the balance."""
    items = [
        make_occurrence("paid", 300, date(2026, 1, 12), state=PaidState.PAID),
        make_occurrence("skipped", 300, date(2026, 1, 12), state=PaidState.SKIPPED),
        make_occurrence("bonus", 50, date(2026, 1, 15), direction="income", group="income"),
    ]
    drawdown = project_drawdown(WINDOW, items, 100, TODAY)
    if drawdown.lowest != 100 or drawdown.points[-1].balance != 150:
        msg = f"Expected lowest 100 and closing 150, got {drawdown.lowest} / {drawdown.points[-1].balance}"
        raise AssertionError(msg)


def test_overdraft_limit_severity() -> None:
    """Below zero but within the overdraft is a warning; beyond it is danger."""
    items = [
        make_occurrence("car", 600, date(2026, 1, 12)),
        make_occurrence("tax", 400, date(2026, 1, 20)),
    ]
    drawdown = project_drawdown(WINDOW, items, 500, TODAY, overdraft_limit=300)
    severities = [(p.severity, p.start_date, p.end_date) for p in drawdown.periods]
    expected = [
        ("warning", date(2026, 1, 12), date(2026, 1, 19)),
        ("danger", date(2026, 1, 20), date(2026, 1, 31)),
    ]
    if severities != expected:
        msg = f"Expected {expected}, got {severities}"
        raise AssertionError(msg)
    if drawdown.risk != {"car": "warning", "tax": "danger"}:
        msg = f"Unexpected item risks: {drawdown.risk}"
        raise AssertionError(msg)
    if not drawdown.is_limit_breach or drawdown.remedy.amount_to_buffer != 200:
        msg = f"Expected a limit breach needing 200 of buffer, got {drawdown.remedy}"
        raise AssertionError(msg)

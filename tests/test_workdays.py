"""Unit tests for the working-day calendar."""

from datetime import date

from budget_cycle.engine.workdays import WorkingDayCalendar

CHRISTMAS = ["2025-12-25", "2025-12-26"]


def test_weekends_and_holidays_are_not_working_days() -> None:
    """Saturdays, Sundays and declared holidays are non-working; other weekdays work."""
    cal = WorkingDayCalendar(CHRISTMAS)
    cases = {
        date(2025, 12, 24): True,  # Wednesday
        date(2025, 12, 25): False,  # holiday
        date(2025, 12, 27): False,  # Saturday
        date(2025, 12, 28): False,  # Sunday
        date(2025, 12, 29): True,  # Monday
    }
    for day, expected in cases.items():
        if cal.is_working_day(day) is not expected:
            msg = f"is_working_day({day}) should be {expected}"
            raise AssertionError(msg)


def test_next_and_prior_working_day() -> None:
    """Adjustments skip over the Christmas holidays and the weekend."""
    cal = WorkingDayCalendar(CHRISTMAS)
    if cal.next_working_day(date(2025, 12, 25)) != date(2025, 12, 29):
        msg = "Next working day after Christmas should be Monday 29th"
        raise AssertionError(msg)
    if cal.prior_working_day(date(2025, 12, 28)) != date(2025, 12, 24):
        msg = "Prior working day before Sunday 28th should be Wednesday 24th"
        raise AssertionError(msg)
    if cal.next_working_day(date(2025, 12, 24)) != date(2025, 12, 24):
        msg = "A working day is its own next working day"
        raise AssertionError(msg)


def test_unparsable_holidays_are_ignored() -> None:
    """Garbage entries do not break the calendar; dates and ISO timestamps are accepted."""
    cal = WorkingDayCalendar(["not-a-date", "", date(2026, 1, 1), "2026-04-03T00:00:00Z"])
    if cal.holidays != frozenset({date(2026, 1, 1), date(2026, 4, 3)}):
        msg = f"Unexpected holidays: {sorted(cal.holidays)}"
        raise AssertionError(msg)

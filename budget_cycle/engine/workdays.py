"""Working-day calendar: weekends and declared bank holidays are non-working days."""

from collections.abc import Iterable
from datetime import date, timedelta

from budget_cycle.core.utils import parse_iso_date

SATURDAY = 5
ONE_DAY = timedelta(days=1)


class WorkingDayCalendar:
    """Classifies days as working or non-working given a set of holiday dates."""

    def __init__(self, holidays: Iterable[str | date] = ()) -> None:
        """Initialize with holiday dates given as ISO strings or dates; unparsable entries are ignored."""
        parsed = (parse_iso_date(h) for h in holidays)
        self.holidays: frozenset[date] = frozenset(d for d in parsed if d is not None)

    def is_working_day(self, d: date) -> bool:
        """Return True unless d is a Saturday, a Sunday or a holiday."""
        return d.weekday() < SATURDAY and d not in self.holidays

    def next_working_day(self, d: date) -> date:
        """Return d if it is a working day, else the first working day after it."""
        while not self.is_working_day(d):
            d += ONE_DAY
        return d

    def prior_working_day(self, d: date) -> date:
        """Return d if it is a working day, else the last working day before it."""
        while not self.is_working_day(d):
            d -= ONE_DAY
        return d

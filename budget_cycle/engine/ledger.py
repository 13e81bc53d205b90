"""Progress ledger: plans paid / skipped / override changes for the occurrences of one cycle.

The ledger never writes anything itself. Each operation looks at the stored record of an occurrence and
returns the `HistoryEntry` that would move it to the new state (or None when nothing would change); the
budget service executes the redo side and records the entry for undo. A pending occurrence without an
override has no record at all, so returning to pending always means deleting the row.
"""

from collections.abc import Iterable
from datetime import date

from budget_cycle.core.models import BudgetCycle, BudgetProgressItem, PaidState
from budget_cycle.core.utils import parse_amount
from budget_cycle.engine.history import Command, HistoryEntry


class ProgressLedger:
    """Paid/skipped/override state of the occurrences of one cycle."""

    def __init__(self, cycle_key: str, records: Iterable[BudgetProgressItem] = ()) -> None:
        """Initialize from the household's progress records; records of other cycles are ignored."""
        self.cycle_key = cycle_key
        self.records: dict[str, BudgetProgressItem] = {
            r.item_key: r for r in records if r.cycle_start.isoformat() == cycle_key
        }

    def get(self, key: str) -> BudgetProgressItem | None:
        """Stored record of an occurrence, or None when it is pending with no override."""
        return self.records.get(key)

    def state_of(self, key: str) -> PaidState:
        """Paid state of an occurrence; no record means pending."""
        record = self.records.get(key)
        return record.is_paid if record else PaidState.PENDING

    def set_actual_amount(self, key: str, amount: object, actual_date: date | None = None) -> HistoryEntry | None:
        """Store an amount override, and optionally the date it went out, keeping the current paid state.

        Returns None when the stored amount and date are unchanged.
        """
        value = parse_amount(amount)
        current = self.records.get(key)
        when = actual_date or (current.actual_date if current else None)
        if current is not None and current.actual_amount == value and current.actual_date == when:
            return None
        label = f"Set amount of {key} to {value:.2f}"
        if actual_date:
            label += f" on {actual_date.isoformat()}"
        return self._entry(label, key, self.state_of(key), value, when)

    def toggle_paid(self, key: str, amount: object = 0) -> HistoryEntry:
        """Flip pending and paid. Going back to pending deletes the record and any override with it."""
        if self.state_of(key) == PaidState.PAID:
            return self._entry(f"Mark {key} unpaid", key, None)
        return self._entry(f"Mark {key} paid", key, PaidState.PAID, parse_amount(amount))

    def skip(self, key: str) -> HistoryEntry | None:
        """Exclude an occurrence from this cycle's totals and forecast; None when already skipped."""
        current = self.records.get(key)
        if current is not None and current.is_paid == PaidState.SKIPPED and current.actual_amount == 0:
            return None
        return self._entry(f"Skip {key}", key, PaidState.SKIPPED, 0.0)

    def restore(self, key: str) -> HistoryEntry | None:
        """Bring a skipped occurrence back as pending at its scheduled amount; None when it is not skipped."""
        if self.state_of(key) != PaidState.SKIPPED:
            return None
        return self._entry(f"Restore {key}", key, None)

    def _entry(
        self,
        label: str,
        key: str,
        state: PaidState | None,
        amount: float | None = None,
        actual_date: date | None = None,
    ) -> HistoryEntry:
        before = self.records.get(key)
        if state is None:
            redo = Command.delete_progress(self.cycle_key, key)
        else:
            after = BudgetProgressItem(
                cycle_start=self.cycle_key,
                item_key=key,
                is_paid=state,
                actual_amount=amount,
                actual_date=actual_date or (before.actual_date if before else None),
            )
            redo = Command.put_progress(after)
        undo = Command.put_progress(before) if before else Command.delete_progress(self.cycle_key, key)
        return HistoryEntry(label=label, undo=undo, redo=redo)


def plan_cycle_save(current: BudgetCycle | None, updated: BudgetCycle) -> HistoryEntry | None:
    """Plan an upsert of cycle settings; undo restores the prior record or removes the new one."""
    if current is not None and current == updated:
        return None
    key = updated.cycle_start.isoformat()
    undo = Command.put_cycle(current) if current else Command.delete_cycle(key)
    label = f"Update cycle {key}" if current else f"Set up cycle {key}"
    return HistoryEntry(label=label, undo=undo, redo=Command.put_cycle(updated))


def plan_cycle_reset(current: BudgetCycle | None) -> HistoryEntry | None:
    """Plan removing a cycle's record so it has to be set up again; None when there is nothing to remove."""
    if current is None:
        return None
    key = current.cycle_start.isoformat()
    return HistoryEntry(label=f"Reset cycle {key}", undo=Command.put_cycle(current), redo=Command.delete_cycle(key))

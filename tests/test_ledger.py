"""Unit tests for the progress ledger, driven through the pure command reducer."""

from datetime import date

from budget_cycle.core.models import BudgetCycle, BudgetProgressItem, PaidState
from budget_cycle.engine.history import LedgerState, apply_command
from budget_cycle.engine.ledger import ProgressLedger, plan_cycle_reset, plan_cycle_save

CYCLE = "2025-12-26"
NETFLIX = "recurring_7_2001"


def ledger_of(state: LedgerState) -> ProgressLedger:
    """Ledger over the test cycle's records in `state`."""
    return ProgressLedger(CYCLE, state.progress_records())


def test_toggle_twice_leaves_no_record() -> None:
    """Paying then un-paying an occurrence returns it to pending with no stored row."""
    state = LedgerState()
    state = apply_command(state, ledger_of(state).toggle_paid(NETFLIX, 18).redo)
    record = state.progress_for(CYCLE).get(NETFLIX)
    if record is None or record.is_paid != PaidState.PAID or record.actual_amount != 18:
        msg = f"Expected a paid record at 18, got {record}"
        raise AssertionError(msg)
    state = apply_command(state, ledger_of(state).toggle_paid(NETFLIX, 18).redo)
    if state.progress_for(CYCLE):
        msg = f"Expected no record after toggling twice, got {state.progress_for(CYCLE)}"
        raise AssertionError(msg)


def test_set_amount_keeps_paid_state() -> None:
    """Overriding a paid item's amount keeps it paid."""
    state = LedgerState()
    state = apply_command(state, ledger_of(state).toggle_paid(NETFLIX, 18).redo)
    state = apply_command(state, ledger_of(state).set_actual_amount(NETFLIX, "20.50").redo)
    record = state.progress_for(CYCLE)[NETFLIX]
    if record.is_paid != PaidState.PAID or record.actual_amount != 20.5:
        msg = f"Expected paid at 20.50, got {record}"
        raise AssertionError(msg)
    if ledger_of(state).set_actual_amount(NETFLIX, 20.5) is not None:
        msg = "Setting the same amount again should be a no-op"
        raise AssertionError(msg)


def test_invalid_amount_is_coerced_to_zero() -> None:
    """Garbage amounts are stored as 0 rather than raising."""
    entry = ProgressLedger(CYCLE).set_actual_amount(NETFLIX, "lots")
    if entry is None or entry.redo.params["actual_amount"] != 0:
        msg = f"Expected an override of 0, got {entry}"
        raise AssertionError(msg)


def test_skip_then_restore_returns_to_default() -> None:
    """Skip discards any override; restore deletes the row so the default amount applies again."""
    state = LedgerState()
    state = apply_command(state, ledger_of(state).set_actual_amount(NETFLIX, 25).redo)
    state = apply_command(state, ledger_of(state).skip(NETFLIX).redo)
    record = state.progress_for(CYCLE)[NETFLIX]
    if record.is_paid != PaidState.SKIPPED or record.actual_amount != 0:
        msg = f"Expected a skipped record at 0, got {record}"
        raise AssertionError(msg)
    if ledger_of(state).skip(NETFLIX) is not None:
        msg = "Skipping twice should be a no-op"
        raise AssertionError(msg)
    state = apply_command(state, ledger_of(state).restore(NETFLIX).redo)
    if NETFLIX in state.progress_for(CYCLE):
        msg = "Restore should delete the record"
        raise AssertionError(msg)
    if ledger_of(state).restore(NETFLIX) is not None:
        msg = "Restoring a pending item should be a no-op"
        raise AssertionError(msg)


def test_undo_side_restores_prior_record() -> None:
    """Applying an entry's redo then undo returns the exact prior state."""
    state = LedgerState()
    state = apply_command(state, ledger_of(state).set_actual_amount(NETFLIX, 25).redo)
    before = state
    entry = ledger_of(state).toggle_paid(NETFLIX, 25)
    after = apply_command(state, entry.redo)
    if apply_command(after, entry.undo) != before:
        msg = "Undo should restore the pre-mutation state"
        raise AssertionError(msg)


def test_records_of_other_cycles_are_ignored() -> None:
    """A ledger only sees its own cycle's rows."""
    other = BudgetProgressItem(cycle_start="2025-11-26", item_key=NETFLIX, is_paid=1)
    if ProgressLedger(CYCLE, [other]).state_of(NETFLIX) != PaidState.PENDING:
        msg = "Records of another cycle should not leak into this one"
        raise AssertionError(msg)


def test_plan_cycle_save() -> None:
    """First save undoes by deletion; later saves undo to the prior record; identical saves are no-ops."""
    first = BudgetCycle(cycle_start=CYCLE, actual_pay=2500, current_balance=2500)
    created = plan_cycle_save(None, first)
    if created is None or created.undo.kind != "delete_cycle":
        msg = f"Expected a delete_cycle undo, got {created}"
        raise AssertionError(msg)
    updated = first.model_copy(update={"current_balance": 1800.0})
    change = plan_cycle_save(first, updated)
    if change is None or change.undo.params["current_balance"] != 2500:
        msg = f"Expected undo back to 2500, got {change}"
        raise AssertionError(msg)
    if plan_cycle_save(first, first) is not None:
        msg = "Saving identical settings should be a no-op"
        raise AssertionError(msg)


def test_actual_date_is_kept_when_paying() -> None:
    """A recorded actual date survives a later toggle; the same amount on a new date is a change."""
    state = LedgerState()
    state = apply_command(state, ledger_of(state).set_actual_amount(NETFLIX, 18, date(2026, 1, 8)).redo)
    state = apply_command(state, ledger_of(state).toggle_paid(NETFLIX, 18).redo)
    record = state.progress_for(CYCLE)[NETFLIX]
    if record.is_paid != PaidState.PAID or record.actual_date != date(2026, 1, 8):
        msg = f"Expected a paid record dated 2026-01-08, got {record}"
        raise AssertionError(msg)
    moved = ledger_of(state).set_actual_amount(NETFLIX, 18, date(2026, 1, 9))
    if moved is None or moved.redo.params["actual_date"] != "2026-01-09":
        msg = f"Moving the date should be recorded, got {moved}"
        raise AssertionError(msg)
    if ledger_of(state).set_actual_amount(NETFLIX, 18) is not None:
        msg = "Same amount without a new date should be a no-op"
        raise AssertionError(msg)


def test_plan_cycle_reset() -> None:
    """Reset deletes the record and undoes by putting it back; nothing to reset is a no-op."""
    cycle = BudgetCycle(cycle_start=CYCLE, actual_pay=2500, current_balance=1200, bank_account_id=5)
    entry = plan_cycle_reset(cycle)
    if entry is None or entry.redo.kind != "delete_cycle":
        msg = f"Expected a delete_cycle redo, got {entry}"
        raise AssertionError(msg)
    state = LedgerState.from_records(cycles=[cycle])
    after = apply_command(state, entry.redo)
    if after.cycles or apply_command(after, entry.undo) != state:
        msg = "Reset should remove the record and undo should restore it"
        raise AssertionError(msg)
    if plan_cycle_reset(None) is not None:
        msg = "Resetting a cycle that was never set up should be a no-op"
        raise AssertionError(msg)

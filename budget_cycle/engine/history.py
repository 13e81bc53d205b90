"""Undo/redo history built from serializable commands.

A mutation is recorded as a `HistoryEntry`: a pair of `Command` objects, one that replays the prior persisted
state (undo) and one that replays the new state (redo). Commands are plain data, so they can be logged, tested
or persisted independently of whoever issued them. Two interpreters exist for them: `apply_command`, a pure
reducer over an in-memory `LedgerState`, and the async executor the controller is given, which turns a command
into a data-store write. Binding an executor to either side of an entry yields the zero-argument coroutine
function that undo/redo runs.
"""

from collections import deque
from collections.abc import Awaitable, Callable, Iterable
from functools import partial
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from budget_cycle.core.errors import HistoryEmptyError
from budget_cycle.core.models import BudgetCycle, BudgetProgressItem
from budget_cycle.core.utils import get_logger

logger = get_logger("budget-cycle.history")

DEFAULT_HISTORY_LIMIT = 30

CommandKind = Literal["put_progress", "delete_progress", "put_cycle", "delete_cycle"]
Executor = Callable[["Command"], Awaitable[None]]


class Command(BaseModel):
    """A single persisted-state write, expressed as data."""

    model_config = ConfigDict(frozen=True)

    kind: CommandKind
    params: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def put_progress(cls, item: BudgetProgressItem) -> "Command":
        """Upsert a progress record."""
        return cls(kind="put_progress", params=item.model_dump(mode="json"))

    @classmethod
    def delete_progress(cls, cycle_start: str, item_key: str) -> "Command":
        """Delete a progress record, returning the occurrence to pending."""
        return cls(kind="delete_progress", params={"cycle_start": cycle_start, "item_key": item_key})

    @classmethod
    def put_cycle(cls, cycle: BudgetCycle) -> "Command":
        """Upsert a cycle record."""
        return cls(kind="put_cycle", params=cycle.model_dump(mode="json"))

    @classmethod
    def delete_cycle(cls, cycle_start: str) -> "Command":
        """Delete a cycle record."""
        return cls(kind="delete_cycle", params={"cycle_start": cycle_start})


class HistoryEntry(BaseModel):
    """An invertible mutation: what to replay on undo and on redo."""

    model_config = ConfigDict(frozen=True)

    label: str
    undo: Command
    redo: Command

    def undo_fn(self, executor: Executor) -> Callable[[], Awaitable[None]]:
        """Zero-argument coroutine function replaying the prior state."""
        return partial(executor, self.undo)

    def redo_fn(self, executor: Executor) -> Callable[[], Awaitable[None]]:
        """Zero-argument coroutine function replaying the new state."""
        return partial(executor, self.redo)


class LedgerState(BaseModel):
    """Immutable snapshot of the persisted cycle and progress records of one household."""

    model_config = ConfigDict(frozen=True)

    cycles: dict[str, BudgetCycle] = Field(default_factory=dict)
    progress: dict[str, dict[str, BudgetProgressItem]] = Field(default_factory=dict)

    @classmethod
    def from_records(
        cls, cycles: Iterable[BudgetCycle] = (), progress: Iterable[BudgetProgressItem] = ()
    ) -> "LedgerState":
        """Build a state from lists of records as the data service returns them."""
        by_cycle: dict[str, dict[str, BudgetProgressItem]] = {}
        for item in progress:
            by_cycle.setdefault(item.cycle_start.isoformat(), {})[item.item_key] = item
        return cls(cycles={c.cycle_start.isoformat(): c for c in cycles}, progress=by_cycle)

    def progress_for(self, cycle_key: str) -> dict[str, BudgetProgressItem]:
        """Progress records of one cycle, by occurrence key."""
        return dict(self.progress.get(cycle_key, {}))

    def progress_records(self) -> list[BudgetProgressItem]:
        """All progress records, flattened."""
        return [item for items in self.progress.values() for item in items.values()]


def apply_command(state: LedgerState, command: Command) -> LedgerState:
    """Return the state that results from applying `command`; `state` itself is left untouched."""
    params = command.params
    if command.kind == "put_progress":
        item = BudgetProgressItem.model_validate(params)
        key = item.cycle_start.isoformat()
        items = {**state.progress.get(key, {}), item.item_key: item}
        return state.model_copy(update={"progress": {**state.progress, key: items}})
    if command.kind == "delete_progress":
        key = params["cycle_start"]
        items = {k: v for k, v in state.progress.get(key, {}).items() if k != params["item_key"]}
        progress = {**state.progress, key: items} if items else {k: v for k, v in state.progress.items() if k != key}
        return state.model_copy(update={"progress": progress})
    if command.kind == "put_cycle":
        cycle = BudgetCycle.model_validate(params)
        return state.model_copy(update={"cycles": {**state.cycles, cycle.cycle_start.isoformat(): cycle}})
    if command.kind == "delete_cycle":
        cycles = {k: v for k, v in state.cycles.items() if k != params["cycle_start"]}
        return state.model_copy(update={"cycles": cycles})
    msg = f"Unknown command kind: {command.kind}"
    raise ValueError(msg)


class UndoRedoController:
    """Bounded linear undo/redo history over recorded entries.

    Both stacks keep at most `limit` entries and silently drop the oldest. Recording a new entry clears the
    redo stack. Entries recorded while an undo/redo replay is running are ignored.
    """

    def __init__(self, executor: Executor, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        """Initialize with the coroutine that carries out a command, and the stack size limit."""
        self._executor = executor
        self._undo: deque[HistoryEntry] = deque(maxlen=limit)
        self._redo: deque[HistoryEntry] = deque(maxlen=limit)
        self._replaying = False

    @property
    def can_undo(self) -> bool:
        """True when there is something to undo."""
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        """True when there is something to redo."""
        return bool(self._redo)

    @property
    def is_replaying(self) -> bool:
        """True while an undo or redo replay is executing."""
        return self._replaying

    def undo_entries(self) -> list[HistoryEntry]:
        """Undo stack, oldest first."""
        return list(self._undo)

    def redo_entries(self) -> list[HistoryEntry]:
        """Redo stack, oldest first."""
        return list(self._redo)

    def record(self, entry: HistoryEntry) -> bool:
        """Push a forward action; returns False when suppressed by a running replay."""
        if self._replaying:
            logger.debug(f"Ignoring history entry recorded during replay: {entry.label}")
            return False
        self._undo.append(entry)
        self._redo.clear()
        return True

    async def undo(self) -> HistoryEntry:
        """Replay the prior state of the most recent entry and move it to the redo stack."""
        if not self._undo:
            msg = "Nothing to undo"
            raise HistoryEmptyError(msg)
        entry = self._undo.pop()
        try:
            await self._replay(entry.undo_fn(self._executor))
        except Exception:
            logger.exception(f"Undo failed: {entry.label}")
            self._undo.append(entry)
            raise
        self._redo.append(entry)
        logger.info(f"Undid: {entry.label}")
        return entry

    async def redo(self) -> HistoryEntry:
        """Replay the new state of the most recently undone entry and move it back to the undo stack."""
        if not self._redo:
            msg = "Nothing to redo"
            raise HistoryEmptyError(msg)
        entry = self._redo.pop()
        try:
            await self._replay(entry.redo_fn(self._executor))
        except Exception:
            logger.exception(f"Redo failed: {entry.label}")
            self._redo.append(entry)
            raise
        self._undo.append(entry)
        logger.info(f"Redid: {entry.label}")
        return entry

    async def _replay(self, fn: Callable[[], Awaitable[None]]) -> None:
        self._replaying = True
        try:
            await fn()
        finally:
            self._replaying = False

"""Engine package: working-day calendar, cycle resolver, scheduler, ledger, drawdown projector and undo/redo."""

from .history import Command, HistoryEntry, LedgerState, UndoRedoController, apply_command  # noqa: F401
from .ledger import ProgressLedger, plan_cycle_reset, plan_cycle_save  # noqa: F401
from .projector import project_drawdown  # noqa: F401
from .registry import MetadataSchemaRegistry  # noqa: F401
from .resolver import resolve_cycle, select_primary_income  # noqa: F401
from .scheduler import Scheduler, occurrence_key  # noqa: F401
from .view import derive_cycle_view  # noqa: F401
from .workdays import WorkingDayCalendar  # noqa: F401

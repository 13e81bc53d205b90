"""Core package: provides models, errors, settings, and shared utilities."""

from .errors import BudgetEngineError, ConfigurationMissingError, TransportError  # noqa: F401
from .models import BudgetCycle, BudgetProgressItem, IncomeSource, RecurringCost  # noqa: F401
from .settings import Settings  # noqa: F401
from .utils import get_logger  # noqa: F401

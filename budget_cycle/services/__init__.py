"""Services package: data store adapters and the per-household budget session."""

from .budget_service import BudgetService  # noqa: F401
from .data_store import DataStore  # noqa: F401
from .http_store import HttpDataStore  # noqa: F401
from .memory_store import InMemoryDataStore  # noqa: F401

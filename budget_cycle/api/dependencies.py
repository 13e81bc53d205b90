"""FastAPI dependencies for DI (settings, data store, household sessions).

The data store is created once per process from settings: an `HttpDataStore` when a data service URL is
configured, otherwise an `InMemoryDataStore`. Budget sessions are kept per household so undo history survives
between requests; a session is replaced when the store behind it changes.
"""

from fastapi import Depends

from budget_cycle.core.settings import Settings, get_settings
from budget_cycle.core.utils import get_logger
from budget_cycle.services.budget_service import BudgetService
from budget_cycle.services.data_store import DataStore
from budget_cycle.services.http_store import HttpDataStore
from budget_cycle.services.memory_store import InMemoryDataStore

logger = get_logger("budget-cycle.api")

_store: HttpDataStore | InMemoryDataStore | None = None
_sessions: dict[str, BudgetService] = {}


def get_store() -> DataStore:
    """Provide the process-wide data store for dependency injection."""
    global _store  # noqa: PLW0603
    if _store is None:
        settings = get_settings()
        if settings.data_service_url:
            logger.info(f"Using data service at {settings.data_service_url}")
            _store = HttpDataStore(settings)
        else:
            logger.info("No data service configured; using the in-memory store")
            _store = InMemoryDataStore()
    return _store


async def close_store() -> None:
    """Release the data store and forget every session."""
    global _store  # noqa: PLW0603
    if _store is not None:
        await _store.aclose()
    _store = None
    _sessions.clear()


def get_session(
    household_id: str,
    store: DataStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> BudgetService:
    """Provide the budget session of a household."""
    session = _sessions.get(household_id)
    if session is None or session.store is not store:
        session = BudgetService(store, household_id, settings)
        _sessions[household_id] = session
    return session

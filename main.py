"""Main entrypoint and application factory for the Budget Cycle Engine API.

This module initializes the FastAPI application, configures logging, manages the data store lifecycle, and
exposes the Scalar API reference endpoint for interactive OpenAPI documentation. It also includes the main
entrypoint for running the app with Uvicorn.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import HTMLResponse
from scalar_fastapi import get_scalar_api_reference

from budget_cycle.api.dependencies import close_store, get_store
from budget_cycle.api.routes import router
from budget_cycle.core.settings import get_settings
from budget_cycle.core.utils import ensure_dir, get_logger


# --- Logging Setup ---
def setup_logging() -> None:
    """Configure logging to file and console, and ensure the log directory exists."""
    log_file = Path(get_settings().log_file)
    ensure_dir(log_file.parent)
    logger = get_logger("budget-cycle")
    logger.setLevel(logging.INFO)
    # Add file handler for persistent logs (not colorized)
    if not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        logger.addHandler(file_handler)
    logger.propagate = False


setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan event handler: open the data store on startup and close it on shutdown."""
    _ = app  # Silence unused argument warning
    get_store()
    try:
        yield
    finally:
        await close_store()


app = FastAPI(
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    title="Budget Cycle Engine API",
    description="""
    The Budget Cycle Engine API turns a household's incomes and recurring costs into a pay-cycle budget: the
    dated occurrences of the cycle, their paid/skipped state, and a day-by-day balance forecast.

    **Endpoints:**
    - `GET /households/{{household_id}}/budget`: Derive the cycle containing `date`.
    - `PUT /households/{{household_id}}/budget/cycle`: Save declared pay, balance and account.
    - `POST /households/{{household_id}}/budget/cycle/setup`: Set up the viewed cycle.
    - `POST /households/{{household_id}}/budget/items/{{item_key}}/toggle|skip|restore`: Ledger changes.
    - `PUT /households/{{household_id}}/budget/items/{{item_key}}/amount`: Amount override.
    - `POST /households/{{household_id}}/budget/undo|redo`: Undo/redo.
    - `POST /households/{{household_id}}/budget/recurring-costs|one-off`: Add costs.
    - `GET /categories`: Cost categories and their metadata fields.
    - `GET /health`: Health check endpoint.
    - `GET /scalar`: Interactive Scalar OpenAPI documentation.
    """,
    version="1.0.0",
)
app.include_router(router)


@app.get("/scalar", include_in_schema=False)
async def scalar_docs() -> HTMLResponse:
    """Return Scalar API reference."""
    return get_scalar_api_reference(openapi_url=app.openapi_url, title=app.title)


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("main:app", host=settings.server_host, port=settings.server_port, reload=True)

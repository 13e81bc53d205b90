"""FastAPI endpoints for the Budget Cycle Engine API.

This module defines the routes for viewing a household's budget cycle, marking occurrences paid, skipped or
overridden, managing cycle settings, adding costs, undo/redo, and health checks. Every budget endpoint returns
the freshly re-derived `CycleState`.
"""

from collections.abc import Awaitable
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from budget_cycle.api.dependencies import get_session
from budget_cycle.core.errors import (
    BudgetEngineError,
    ConfigurationMissingError,
    CycleNotInitializedError,
    HistoryEmptyError,
    InvalidSetupModeError,
    OccurrenceNotFoundError,
    TransportError,
)
from budget_cycle.core.models import (
    AmountRequest,
    CycleSettingsRequest,
    CycleSetupRequest,
    CycleState,
    OneOffRequest,
    RecurringCost,
)
from budget_cycle.core.utils import get_logger
from budget_cycle.engine.registry import MetadataSchemaRegistry, categories_for
from budget_cycle.services.budget_service import BudgetService

router = APIRouter()
logger = get_logger("budget-cycle.api")

HTTP_404_NOT_FOUND = 404
HTTP_409_CONFLICT = 409
HTTP_422_UNPROCESSABLE = 422
HTTP_502_BAD_GATEWAY = 502

CONFLICT_RESPONSES = {
    409: {
        "description": "Cycle not set up, no primary income, or nothing to undo/redo.",
        "content": {"application/json": {"example": {"detail": "Cycle 2025-12-26 has not been set up"}}},
    },
    502: {"description": "The household data service could not be reached."},
}


async def _respond(action: Awaitable[CycleState]) -> CycleState:
    """Await a session action and translate engine errors into HTTP errors."""
    try:
        return await action
    except OccurrenceNotFoundError as exc:
        raise HTTPException(HTTP_404_NOT_FOUND, str(exc)) from exc
    except (ConfigurationMissingError, CycleNotInitializedError, HistoryEmptyError) as exc:
        raise HTTPException(HTTP_409_CONFLICT, str(exc)) from exc
    except InvalidSetupModeError as exc:
        raise HTTPException(HTTP_422_UNPROCESSABLE, str(exc)) from exc
    except TransportError as exc:
        raise HTTPException(HTTP_502_BAD_GATEWAY, str(exc)) from exc
    except BudgetEngineError:
        logger.exception("Unhandled engine error")
        raise


@router.get(
    "/health",
    summary="Health check",
    description="Simple health check endpoint. Returns status ok.",
    response_description="Status ok.",
    responses={200: {"description": "API is healthy.", "content": {"application/json": {"example": {"status": "ok"}}}}},
)
async def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.get(
    "/categories",
    summary="List recurring-cost categories and their metadata fields",
    description=(
        "Return the categories offered for an owner type (`household`, `vehicle`, `adult`, `child`, `member`, "
        "`pet`) together with the extra metadata fields each category accepts."
    ),
)
async def list_categories(owner_type: str = "household") -> list[dict]:
    """List the categories of an owner type with their metadata schemas."""
    return [
        {
            "id": category,
            "label": label,
            "fields": [f.model_dump() for f in MetadataSchemaRegistry.get(category)],
        }
        for category, label in categories_for(owner_type)
    ]


@router.get(
    "/households/{household_id}/budget",
    response_model=CycleState,
    summary="Get the budget cycle of a household",
    description=(
        "Refetch the household's records and derive the pay cycle containing `date` (default: the cycle viewed "
        "last, or today's).\n\n"
        "**Response:**\n"
        "- `status: ready`: the cycle has been set up; includes the drawdown forecast.\n"
        "- `status: setup_required`: `reason` is `no_primary_income` or `cycle_not_initialized`.\n"
        "- 502 Bad Gateway: the data service could not be reached."
    ),
    responses={502: CONFLICT_RESPONSES[502]},
)
async def get_budget(
    reference_date: date | None = Query(None, alias="date"),
    session: BudgetService = Depends(get_session),
) -> CycleState:
    """Derive the cycle containing `date`."""
    return await _respond(session.refresh(reference_date))


@router.put(
    "/households/{household_id}/budget/cycle",
    response_model=CycleState,
    summary="Save the declared pay, balance and account of the viewed cycle",
    responses=CONFLICT_RESPONSES,
)
async def save_cycle(body: CycleSettingsRequest, session: BudgetService = Depends(get_session)) -> CycleState:
    """Upsert the viewed cycle's settings (undoable)."""
    return await _respond(session.save_cycle(body.actual_pay, body.current_balance, body.bank_account_id))


@router.post(
    "/households/{household_id}/budget/cycle/setup",
    response_model=CycleState,
    summary="Set up the viewed cycle",
    description=(
        "Create the viewed cycle's record.\n\n"
        "- `fresh`: declared pay and balance both start at the projected income of the cycle.\n"
        "- `copy`: both start at the previous cycle's declared pay, and its account is reused."
    ),
    responses={**CONFLICT_RESPONSES, 422: {"description": "Unknown setup mode."}},
)
async def setup_cycle(body: CycleSetupRequest, session: BudgetService = Depends(get_session)) -> CycleState:
    """Initialize the viewed cycle (undoable)."""
    return await _respond(session.setup_cycle(body.mode))


@router.delete(
    "/households/{household_id}/budget/cycle",
    response_model=CycleState,
    summary="Reset the viewed cycle",
    description=(
        "Remove the viewed cycle's record so it reports `setup_required` again. Progress records are kept "
        "and come back into effect once the cycle is set up again. Undo puts the record back."
    ),
    responses=CONFLICT_RESPONSES,
)
async def reset_cycle(session: BudgetService = Depends(get_session)) -> CycleState:
    """Remove the viewed cycle's record (undoable)."""
    return await _respond(session.reset_cycle())


@router.post(
    "/households/{household_id}/budget/items/{item_key}/toggle",
    response_model=CycleState,
    summary="Toggle an occurrence between pending and paid",
    responses={**CONFLICT_RESPONSES, 404: {"description": "No such occurrence in the viewed cycle."}},
)
async def toggle_item(item_key: str, session: BudgetService = Depends(get_session)) -> CycleState:
    """Mark an occurrence paid, or back to pending."""
    return await _respond(session.toggle_paid(item_key))


@router.put(
    "/households/{household_id}/budget/items/{item_key}/amount",
    response_model=CycleState,
    summary="Override the amount of an occurrence for this cycle",
    responses={**CONFLICT_RESPONSES, 404: {"description": "No such occurrence in the viewed cycle."}},
)
async def set_item_amount(
    item_key: str, body: AmountRequest, session: BudgetService = Depends(get_session)
) -> CycleState:
    """Store an amount override, and optionally the date it went out, keeping the paid state."""
    return await _respond(session.set_actual_amount(item_key, body.amount, body.actual_date))


@router.post(
    "/households/{household_id}/budget/items/{item_key}/skip",
    response_model=CycleState,
    summary="Skip an occurrence for this cycle",
    responses={**CONFLICT_RESPONSES, 404: {"description": "No such occurrence in the viewed cycle."}},
)
async def skip_item(item_key: str, session: BudgetService = Depends(get_session)) -> CycleState:
    """Exclude an occurrence from totals and the forecast."""
    return await _respond(session.skip(item_key))


@router.post(
    "/households/{household_id}/budget/items/{item_key}/restore",
    response_model=CycleState,
    summary="Restore a skipped occurrence",
    responses={**CONFLICT_RESPONSES, 404: {"description": "No such occurrence in the viewed cycle."}},
)
async def restore_item(item_key: str, session: BudgetService = Depends(get_session)) -> CycleState:
    """Bring a skipped occurrence back as pending."""
    return await _respond(session.restore(item_key))


@router.post(
    "/households/{household_id}/budget/undo",
    response_model=CycleState,
    summary="Undo the last budget change",
    responses=CONFLICT_RESPONSES,
)
async def undo(session: BudgetService = Depends(get_session)) -> CycleState:
    """Undo the most recent ledger or cycle change."""
    return await _respond(session.undo())


@router.post(
    "/households/{household_id}/budget/redo",
    response_model=CycleState,
    summary="Redo the last undone budget change",
    responses=CONFLICT_RESPONSES,
)
async def redo(session: BudgetService = Depends(get_session)) -> CycleState:
    """Redo the most recently undone change."""
    return await _respond(session.redo())


@router.post(
    "/households/{household_id}/budget/recurring-costs",
    response_model=CycleState,
    status_code=201,
    summary="Add a recurring cost",
    description="Metadata is reduced to the fields declared for the cost's category (see `GET /categories`).",
    responses={502: CONFLICT_RESPONSES[502]},
)
async def add_recurring_cost(body: RecurringCost, session: BudgetService = Depends(get_session)) -> CycleState:
    """Create a recurring cost and return the re-derived cycle."""
    return await _respond(session.add_recurring_cost(body))


@router.post(
    "/households/{household_id}/budget/one-off",
    response_model=CycleState,
    status_code=201,
    summary="Add a one-off expense or ad-hoc income",
    responses={502: CONFLICT_RESPONSES[502]},
)
async def add_one_off(body: OneOffRequest, session: BudgetService = Depends(get_session)) -> CycleState:
    """Create a one-off entry dated `due_date`."""
    return await _respond(
        session.add_one_off(
            body.name,
            body.amount,
            body.due_date,
            income=body.kind == "income",
            category_id=body.category_id,
            bank_account_id=body.bank_account_id,
            emoji=body.emoji,
        )
    )

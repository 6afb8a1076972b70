"""
Expenses router - owner-scoped CRUD over expense records.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status

from biztrackr.auth.dependencies import get_current_owner_id
from biztrackr.engine.aggregator import parse_date_param, resolve_date_range
from biztrackr.models import EXPENSE_CATEGORIES, ExpenseCreate, ExpenseUpdate
from biztrackr.services import BookkeepingService
from biztrackr.storage import StorageBackend, get_storage
from biztrackr.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


def get_service(storage: StorageBackend = Depends(get_storage)) -> BookkeepingService:
    return BookkeepingService(storage)


@router.get("/")
def list_expenses(
    owner_id: str = Depends(get_current_owner_id),
    service: BookkeepingService = Depends(get_service),
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
):
    """List expenses, newest first, optionally within a business-date range."""
    start = parse_date_param(start_date, "start_date")
    end = parse_date_param(end_date, "end_date")
    if start and end:
        resolve_date_range(start, end)

    expenses = service.list_expenses(owner_id, start=start, end=end)
    logger.info("expenses_list", owner_id=owner_id, count=len(expenses))

    return {
        "success": True,
        "data": [expense.model_dump(mode="json") for expense in expenses],
        "count": len(expenses),
    }


@router.get("/categories")
def list_expense_categories():
    """Suggested category labels. Any label up to 50 characters is accepted."""
    return {"success": True, "data": EXPENSE_CATEGORIES}


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_expense(
    payload: ExpenseCreate,
    owner_id: str = Depends(get_current_owner_id),
    service: BookkeepingService = Depends(get_service),
):
    expense = service.create_expense(owner_id, payload)
    return {"success": True, "data": expense.model_dump(mode="json")}


@router.get("/{expense_id}")
def get_expense(
    expense_id: str,
    owner_id: str = Depends(get_current_owner_id),
    service: BookkeepingService = Depends(get_service),
):
    expense = service.get_expense(owner_id, expense_id)
    return {"success": True, "data": expense.model_dump(mode="json")}


@router.patch("/{expense_id}")
def update_expense(
    expense_id: str,
    payload: ExpenseUpdate,
    owner_id: str = Depends(get_current_owner_id),
    service: BookkeepingService = Depends(get_service),
):
    expense = service.update_expense(owner_id, expense_id, payload)
    return {"success": True, "data": expense.model_dump(mode="json")}


@router.delete("/{expense_id}")
def delete_expense(
    expense_id: str,
    owner_id: str = Depends(get_current_owner_id),
    service: BookkeepingService = Depends(get_service),
):
    expense = service.delete_expense(owner_id, expense_id)
    return {"success": True, "data": {"id": expense.id}}

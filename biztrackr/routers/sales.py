"""
Sales router - owner-scoped CRUD over sales records.

Quantity changes and deletes move the stock of a matching inventory item.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status

from biztrackr.auth.dependencies import get_current_owner_id
from biztrackr.engine.aggregator import parse_date_param, resolve_date_range
from biztrackr.models import SaleCreate, SaleUpdate
from biztrackr.services import BookkeepingService
from biztrackr.storage import StorageBackend, get_storage
from biztrackr.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


def get_service(storage: StorageBackend = Depends(get_storage)) -> BookkeepingService:
    return BookkeepingService(storage)


@router.get("/")
def list_sales(
    owner_id: str = Depends(get_current_owner_id),
    service: BookkeepingService = Depends(get_service),
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
):
    """
    List sales, newest first.

    Args:
        start_date: Optional inclusive ISO start date
        end_date: Optional inclusive ISO end date
    """
    start = parse_date_param(start_date, "start_date")
    end = parse_date_param(end_date, "end_date")
    if start and end:
        resolve_date_range(start, end)

    sales = service.list_sales(owner_id, start=start, end=end)
    logger.info("sales_list", owner_id=owner_id, count=len(sales))

    return {
        "success": True,
        "data": [sale.model_dump(mode="json") for sale in sales],
        "count": len(sales),
    }


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_sale(
    payload: SaleCreate,
    owner_id: str = Depends(get_current_owner_id),
    service: BookkeepingService = Depends(get_service),
):
    sale = service.create_sale(owner_id, payload)
    return {"success": True, "data": sale.model_dump(mode="json")}


@router.get("/{sale_id}")
def get_sale(
    sale_id: str,
    owner_id: str = Depends(get_current_owner_id),
    service: BookkeepingService = Depends(get_service),
):
    return {"success": True, "data": service.get_sale(owner_id, sale_id).model_dump(mode="json")}


@router.patch("/{sale_id}")
def update_sale(
    sale_id: str,
    payload: SaleUpdate,
    owner_id: str = Depends(get_current_owner_id),
    service: BookkeepingService = Depends(get_service),
):
    """Partially update a sale; a quantity change adjusts matching stock."""
    sale = service.update_sale(owner_id, sale_id, payload)
    return {"success": True, "data": sale.model_dump(mode="json")}


@router.delete("/{sale_id}")
def delete_sale(
    sale_id: str,
    owner_id: str = Depends(get_current_owner_id),
    service: BookkeepingService = Depends(get_service),
):
    """Delete a sale and restore its quantity to matching stock."""
    sale = service.delete_sale(owner_id, sale_id)
    return {
        "success": True,
        "data": {"id": sale.id},
        "message": "Sale deleted successfully and inventory restored",
    }

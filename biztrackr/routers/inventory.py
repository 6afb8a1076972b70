"""
Inventory router - owner-scoped CRUD over stock positions.

Product names are unique per owner.
"""

from fastapi import APIRouter, Depends, status

from biztrackr.auth.dependencies import get_current_owner_id
from biztrackr.models import InventoryCreate, InventoryUpdate
from biztrackr.services import BookkeepingService
from biztrackr.storage import StorageBackend, get_storage
from biztrackr.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


def get_service(storage: StorageBackend = Depends(get_storage)) -> BookkeepingService:
    return BookkeepingService(storage)


@router.get("/")
def list_inventory(
    owner_id: str = Depends(get_current_owner_id),
    service: BookkeepingService = Depends(get_service),
    low_stock_only: bool = False,
):
    """
    List inventory items, newest first.

    Args:
        low_stock_only: Only return items at or below their reorder threshold
    """
    items = service.list_inventory(owner_id)
    if low_stock_only:
        items = [item for item in items if item.is_low_stock]

    logger.info("inventory_list", owner_id=owner_id, count=len(items))
    return {
        "success": True,
        "data": [item.model_dump(mode="json") for item in items],
        "count": len(items),
    }


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_inventory_item(
    payload: InventoryCreate,
    owner_id: str = Depends(get_current_owner_id),
    service: BookkeepingService = Depends(get_service),
):
    item = service.create_inventory_item(owner_id, payload)
    return {"success": True, "data": item.model_dump(mode="json")}


@router.get("/{item_id}")
def get_inventory_item(
    item_id: str,
    owner_id: str = Depends(get_current_owner_id),
    service: BookkeepingService = Depends(get_service),
):
    item = service.get_inventory_item(owner_id, item_id)
    return {"success": True, "data": item.model_dump(mode="json")}


@router.patch("/{item_id}")
def update_inventory_item(
    item_id: str,
    payload: InventoryUpdate,
    owner_id: str = Depends(get_current_owner_id),
    service: BookkeepingService = Depends(get_service),
):
    item = service.update_inventory_item(owner_id, item_id, payload)
    return {"success": True, "data": item.model_dump(mode="json")}


@router.delete("/{item_id}")
def delete_inventory_item(
    item_id: str,
    owner_id: str = Depends(get_current_owner_id),
    service: BookkeepingService = Depends(get_service),
):
    item = service.delete_inventory_item(owner_id, item_id)
    return {"success": True, "data": {"id": item.id}}

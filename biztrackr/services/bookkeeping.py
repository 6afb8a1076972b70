"""
Owner-scoped CRUD over the four bookkeeping collections.

Applies the domain rules that span collections: inventory product names
are unique per owner, and sales of a stocked product move that product's
stock when their quantity changes or the sale is deleted.
"""

from datetime import date
from typing import Optional

import structlog

from biztrackr.engine.errors import DuplicateRecord, InsufficientInventory, RecordNotFound
from biztrackr.models import (
    EmployeeCreate,
    EmployeeRecord,
    EmployeeUpdate,
    ExpenseCreate,
    ExpenseRecord,
    ExpenseUpdate,
    InventoryCreate,
    InventoryRecord,
    InventoryUpdate,
    SaleCreate,
    SaleRecord,
    SaleUpdate,
    utc_now,
)
from biztrackr.storage.base import StorageBackend

logger = structlog.get_logger()


def _changes(payload) -> dict:
    """Fields the client actually sent, stamped with a fresh updated_at."""
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    changes["updated_at"] = utc_now()
    return changes


class BookkeepingService:
    """CRUD operations for one storage backend, every call scoped by owner."""

    def __init__(self, storage: StorageBackend):
        self.storage = storage

    # =========================================================================
    # Sales
    # =========================================================================

    def list_sales(
        self, owner_id: str, start: Optional[date] = None, end: Optional[date] = None
    ) -> list[SaleRecord]:
        return self.storage.read_sales(owner_id, start=start, end=end)

    def create_sale(self, owner_id: str, payload: SaleCreate) -> SaleRecord:
        sale = SaleRecord(owner_id=owner_id, **payload.model_dump())
        self.storage.write_sale(sale)
        logger.info("sale_created", owner_id=owner_id, sale_id=sale.id, revenue=sale.revenue)
        return sale

    def get_sale(self, owner_id: str, sale_id: str) -> SaleRecord:
        sale = self.storage.read_sale(owner_id, sale_id)
        if sale is None:
            raise RecordNotFound("sale", sale_id)
        return sale

    def update_sale(self, owner_id: str, sale_id: str, payload: SaleUpdate) -> SaleRecord:
        """
        Apply a partial update.

        When the quantity changes and the sale's item is a stocked product,
        the difference is taken from (or returned to) that product's stock.

        Raises:
            RecordNotFound: If the sale does not exist for this owner
            InsufficientInventory: If the extra units are not in stock
        """
        current = self.get_sale(owner_id, sale_id)
        updated = current.model_copy(update=_changes(payload))

        quantity_diff = updated.quantity - current.quantity
        if quantity_diff:
            self._move_stock(owner_id, current.item_name, -quantity_diff)

        self.storage.update_sale(updated)
        logger.info("sale_updated", owner_id=owner_id, sale_id=sale_id, quantity_diff=quantity_diff)
        return updated

    def delete_sale(self, owner_id: str, sale_id: str) -> SaleRecord:
        """Delete a sale and return its units to stock."""
        sale = self.get_sale(owner_id, sale_id)
        self.storage.delete_sale(owner_id, sale_id)
        self._move_stock(owner_id, sale.item_name, sale.quantity)
        logger.info("sale_deleted", owner_id=owner_id, sale_id=sale_id)
        return sale

    def _move_stock(self, owner_id: str, product_name: str, delta: int) -> None:
        item = self.storage.find_inventory_by_name(owner_id, product_name)
        if item is None:
            return
        if item.stock_count + delta < 0:
            raise InsufficientInventory(
                f"Insufficient inventory for additional quantity. "
                f"Available: {item.stock_count}, additional needed: {-delta}",
                details={
                    "available": item.stock_count,
                    "additional_needed": -delta,
                    "item": product_name,
                },
            )
        self.storage.update_inventory_item(
            item.model_copy(
                update={"stock_count": item.stock_count + delta, "updated_at": utc_now()}
            )
        )
        logger.debug("inventory_stock_moved", product_name=product_name, delta=delta)

    # =========================================================================
    # Expenses
    # =========================================================================

    def list_expenses(
        self, owner_id: str, start: Optional[date] = None, end: Optional[date] = None
    ) -> list[ExpenseRecord]:
        return self.storage.read_expenses(owner_id, start=start, end=end)

    def create_expense(self, owner_id: str, payload: ExpenseCreate) -> ExpenseRecord:
        expense = ExpenseRecord(owner_id=owner_id, **payload.model_dump())
        self.storage.write_expense(expense)
        logger.info("expense_created", owner_id=owner_id, expense_id=expense.id)
        return expense

    def get_expense(self, owner_id: str, expense_id: str) -> ExpenseRecord:
        expense = self.storage.read_expense(owner_id, expense_id)
        if expense is None:
            raise RecordNotFound("expense", expense_id)
        return expense

    def update_expense(
        self, owner_id: str, expense_id: str, payload: ExpenseUpdate
    ) -> ExpenseRecord:
        updated = self.get_expense(owner_id, expense_id).model_copy(update=_changes(payload))
        self.storage.update_expense(updated)
        logger.info("expense_updated", owner_id=owner_id, expense_id=expense_id)
        return updated

    def delete_expense(self, owner_id: str, expense_id: str) -> ExpenseRecord:
        expense = self.get_expense(owner_id, expense_id)
        self.storage.delete_expense(owner_id, expense_id)
        logger.info("expense_deleted", owner_id=owner_id, expense_id=expense_id)
        return expense

    # =========================================================================
    # Employees
    # =========================================================================

    def list_employees(self, owner_id: str) -> list[EmployeeRecord]:
        return self.storage.read_employees(owner_id)

    def create_employee(self, owner_id: str, payload: EmployeeCreate) -> EmployeeRecord:
        employee = EmployeeRecord(owner_id=owner_id, **payload.model_dump())
        self.storage.write_employee(employee)
        logger.info("employee_created", owner_id=owner_id, employee_id=employee.id)
        return employee

    def get_employee(self, owner_id: str, employee_id: str) -> EmployeeRecord:
        employee = self.storage.read_employee(owner_id, employee_id)
        if employee is None:
            raise RecordNotFound("employee", employee_id)
        return employee

    def update_employee(
        self, owner_id: str, employee_id: str, payload: EmployeeUpdate
    ) -> EmployeeRecord:
        updated = self.get_employee(owner_id, employee_id).model_copy(update=_changes(payload))
        self.storage.update_employee(updated)
        logger.info("employee_updated", owner_id=owner_id, employee_id=employee_id)
        return updated

    def delete_employee(self, owner_id: str, employee_id: str) -> EmployeeRecord:
        employee = self.get_employee(owner_id, employee_id)
        self.storage.delete_employee(owner_id, employee_id)
        logger.info("employee_deleted", owner_id=owner_id, employee_id=employee_id)
        return employee

    # =========================================================================
    # Inventory
    # =========================================================================

    def list_inventory(self, owner_id: str) -> list[InventoryRecord]:
        return self.storage.read_inventory(owner_id)

    def create_inventory_item(self, owner_id: str, payload: InventoryCreate) -> InventoryRecord:
        """
        Raises:
            DuplicateRecord: If the owner already has a product with this name
        """
        self._ensure_unique_name(owner_id, payload.product_name)
        item = InventoryRecord(owner_id=owner_id, **payload.model_dump())
        self.storage.write_inventory_item(item)
        logger.info("inventory_item_created", owner_id=owner_id, item_id=item.id)
        return item

    def get_inventory_item(self, owner_id: str, item_id: str) -> InventoryRecord:
        item = self.storage.read_inventory_item(owner_id, item_id)
        if item is None:
            raise RecordNotFound("inventory", item_id)
        return item

    def update_inventory_item(
        self, owner_id: str, item_id: str, payload: InventoryUpdate
    ) -> InventoryRecord:
        current = self.get_inventory_item(owner_id, item_id)
        if payload.product_name is not None and payload.product_name != current.product_name:
            self._ensure_unique_name(owner_id, payload.product_name)
        updated = current.model_copy(update=_changes(payload))
        self.storage.update_inventory_item(updated)
        logger.info("inventory_item_updated", owner_id=owner_id, item_id=item_id)
        return updated

    def delete_inventory_item(self, owner_id: str, item_id: str) -> InventoryRecord:
        item = self.get_inventory_item(owner_id, item_id)
        self.storage.delete_inventory_item(owner_id, item_id)
        logger.info("inventory_item_deleted", owner_id=owner_id, item_id=item_id)
        return item

    def _ensure_unique_name(self, owner_id: str, product_name: str) -> None:
        if self.storage.find_inventory_by_name(owner_id, product_name) is not None:
            raise DuplicateRecord(
                "Product with this name already exists",
                details={"product_name": product_name},
            )

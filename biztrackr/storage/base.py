"""
Abstract storage interface for BizTrackr.

Every record belongs to exactly one owner (business account) and every
operation is scoped by ``owner_id``. Reads that touch another owner's
records behave exactly as if the record did not exist.

Collections:
- sales: dated revenue records
- expenses: dated cost records
- employees: standing monthly salary commitments
- inventory: stock positions, product names unique per owner
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from biztrackr.models import EmployeeRecord, ExpenseRecord, InventoryRecord, SaleRecord


class StorageError(Exception):
    """Base exception for all storage operation failures."""

    pass


class StorageBackend(ABC):
    """
    Abstract base class for all storage implementations.

    Implementations must provide owner-scoped CRUD over the four
    collections, date-range reads over the dated collections, and recent
    reads ordered by creation time.

    Storage implementations should ensure:
    - Thread safety for concurrent request handlers
    - Newest-first ordering (``created_at`` descending) for list reads
    - Every failure surfaces as ``StorageError``
    """

    # =========================================================================
    # Sales
    # =========================================================================

    @abstractmethod
    def write_sale(self, sale: SaleRecord) -> str:
        """
        Persist a new sale.

        Args:
            sale: Complete sale record including id and owner

        Returns:
            The sale id

        Raises:
            StorageError: If write operation fails
        """
        pass

    @abstractmethod
    def read_sales(
        self,
        owner_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[SaleRecord]:
        """
        Read an owner's sales, optionally restricted to a business-date range.

        Args:
            owner_id: Owning account
            start: Inclusive lower bound on ``date``
            end: Inclusive upper bound on ``date``

        Returns:
            Sales ordered by ``created_at`` descending

        Raises:
            StorageError: If read operation fails
        """
        pass

    @abstractmethod
    def read_recent_sales(self, owner_id: str, limit: int) -> list[SaleRecord]:
        """
        Read the ``limit`` most recently created sales.

        Raises:
            StorageError: If read operation fails
        """
        pass

    @abstractmethod
    def read_sale(self, owner_id: str, sale_id: str) -> Optional[SaleRecord]:
        """Read one sale, or None when it does not exist for this owner."""
        pass

    @abstractmethod
    def update_sale(self, sale: SaleRecord) -> None:
        """
        Replace a stored sale with the given snapshot.

        Raises:
            StorageError: If write operation fails
        """
        pass

    @abstractmethod
    def delete_sale(self, owner_id: str, sale_id: str) -> bool:
        """
        Delete one sale.

        Returns:
            True when a record was deleted
        """
        pass

    # =========================================================================
    # Expenses
    # =========================================================================

    @abstractmethod
    def write_expense(self, expense: ExpenseRecord) -> str:
        """Persist a new expense and return its id."""
        pass

    @abstractmethod
    def read_expenses(
        self,
        owner_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[ExpenseRecord]:
        """
        Read an owner's expenses, optionally restricted to a business-date range.

        Returns:
            Expenses ordered by ``created_at`` descending

        Raises:
            StorageError: If read operation fails
        """
        pass

    @abstractmethod
    def read_recent_expenses(self, owner_id: str, limit: int) -> list[ExpenseRecord]:
        """Read the ``limit`` most recently created expenses."""
        pass

    @abstractmethod
    def read_expense(self, owner_id: str, expense_id: str) -> Optional[ExpenseRecord]:
        pass

    @abstractmethod
    def update_expense(self, expense: ExpenseRecord) -> None:
        pass

    @abstractmethod
    def delete_expense(self, owner_id: str, expense_id: str) -> bool:
        pass

    # =========================================================================
    # Employees
    # =========================================================================

    @abstractmethod
    def write_employee(self, employee: EmployeeRecord) -> str:
        """Persist a new employee and return its id."""
        pass

    @abstractmethod
    def read_employees(self, owner_id: str) -> list[EmployeeRecord]:
        """
        Read all of an owner's employees.

        Employees are not dated transactions, so there is no range filter.

        Returns:
            Employees ordered by ``created_at`` descending
        """
        pass

    @abstractmethod
    def read_recent_employees(self, owner_id: str, limit: int) -> list[EmployeeRecord]:
        """Read the ``limit`` most recently created employees."""
        pass

    @abstractmethod
    def read_employee(self, owner_id: str, employee_id: str) -> Optional[EmployeeRecord]:
        pass

    @abstractmethod
    def update_employee(self, employee: EmployeeRecord) -> None:
        pass

    @abstractmethod
    def delete_employee(self, owner_id: str, employee_id: str) -> bool:
        pass

    # =========================================================================
    # Inventory
    # =========================================================================

    @abstractmethod
    def write_inventory_item(self, item: InventoryRecord) -> str:
        """Persist a new inventory item and return its id."""
        pass

    @abstractmethod
    def read_inventory(self, owner_id: str) -> list[InventoryRecord]:
        """
        Read all of an owner's inventory items.

        Returns:
            Items ordered by ``created_at`` descending
        """
        pass

    @abstractmethod
    def read_inventory_item(self, owner_id: str, item_id: str) -> Optional[InventoryRecord]:
        pass

    @abstractmethod
    def find_inventory_by_name(
        self, owner_id: str, product_name: str
    ) -> Optional[InventoryRecord]:
        """
        Look up an item by exact product name.

        Used to enforce name uniqueness and to track stock for sales whose
        ``item_name`` matches a product.
        """
        pass

    @abstractmethod
    def update_inventory_item(self, item: InventoryRecord) -> None:
        pass

    @abstractmethod
    def delete_inventory_item(self, owner_id: str, item_id: str) -> bool:
        pass

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Release any held resources. Default is a no-op."""
        return None

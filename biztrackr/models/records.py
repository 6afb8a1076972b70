"""
Source record models for the four owner-scoped collections.

Each collection has three shapes:
    - ``*Create``: validated write payload accepted from clients
    - ``*Update``: partial payload; only fields that were sent are applied
    - ``*Record``: persisted snapshot returned by storage, with id, owner and
      timestamps

Records are treated as immutable snapshots by the metrics engine.
"""

import datetime as dt
import re
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from .enums import EmployeeRole, InventoryCategory, InventoryUnit

_EMPLOYEE_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9\s\-'.]{2,}$")


def utc_now() -> datetime:
    """Naive UTC timestamp, matching the storage TIMESTAMP columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _clean_text(value: Optional[str], label: str, max_length: int) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        raise ValueError(f"{label} cannot be empty")
    if len(value) > max_length:
        raise ValueError(f"{label} cannot exceed {max_length} characters")
    return value


def _clean_employee_name(value: Optional[str]) -> Optional[str]:
    value = _clean_text(value, "Name", 100)
    if value is not None and not _EMPLOYEE_NAME_PATTERN.match(value):
        raise ValueError(
            "Name must contain at least 2 characters and only letters, numbers, "
            "spaces, hyphens, apostrophes, and dots"
        )
    return value


class StoredRecord(BaseModel):
    """
    Persistence envelope shared by every collection.

    Attributes:
        id: Unique record identifier
        owner_id: Business account that owns the record
        created_at: Creation timestamp (UTC)
        updated_at: Last modification timestamp (UTC)
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()), description="Record identifier")
    owner_id: str = Field(min_length=1, description="Owning business account")
    created_at: datetime = Field(default_factory=utc_now, description="Creation time (UTC)")
    updated_at: datetime = Field(default_factory=utc_now, description="Last update (UTC)")


# =============================================================================
# Sales
# =============================================================================


class SaleFields(BaseModel):
    """Validated business fields of a sale."""

    item_name: str = Field(description="Item or service sold")
    unit_amount: float = Field(ge=0, allow_inf_nan=False, description="Price per unit")
    quantity: int = Field(default=1, ge=1, description="Units sold")
    date: dt.date = Field(description="Business date of the sale")

    @field_validator("item_name")
    @classmethod
    def validate_item_name(cls, v: str) -> str:
        return _clean_text(v, "Item name", 100)


class SaleCreate(SaleFields):
    """Payload for recording a sale."""


class SaleUpdate(BaseModel):
    """Partial sale update."""

    item_name: Optional[str] = None
    unit_amount: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    quantity: Optional[int] = Field(default=None, ge=1)
    date: Optional[dt.date] = None

    @field_validator("item_name")
    @classmethod
    def validate_item_name(cls, v: Optional[str]) -> Optional[str]:
        return _clean_text(v, "Item name", 100)


class SaleRecord(StoredRecord, SaleFields):
    """A persisted sale."""

    @computed_field
    @property
    def revenue(self) -> float:
        """Revenue contribution: unit amount times quantity."""
        return self.unit_amount * self.quantity


# =============================================================================
# Expenses
# =============================================================================


class ExpenseFields(BaseModel):
    """Validated business fields of an expense."""

    category: str = Field(description="Expense category label")
    description: str = Field(description="What the money was spent on")
    amount: float = Field(ge=0, allow_inf_nan=False, description="Amount spent")
    date: dt.date = Field(description="Business date of the expense")

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        return _clean_text(v, "Category", 50)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        return _clean_text(v, "Description", 200)


class ExpenseCreate(ExpenseFields):
    """Payload for recording an expense."""


class ExpenseUpdate(BaseModel):
    """Partial expense update."""

    category: Optional[str] = None
    description: Optional[str] = None
    amount: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    date: Optional[dt.date] = None

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: Optional[str]) -> Optional[str]:
        return _clean_text(v, "Category", 50)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        return _clean_text(v, "Description", 200)


class ExpenseRecord(StoredRecord, ExpenseFields):
    """A persisted expense."""


# =============================================================================
# Employees
# =============================================================================


class EmployeeFields(BaseModel):
    """
    Validated business fields of an employee.

    Salaries are a standing monthly cost, not dated transactions.
    """

    name: str = Field(description="Employee full name")
    role: EmployeeRole = Field(description="Job role")
    monthly_salary: float = Field(ge=0, allow_inf_nan=False, description="Monthly salary")
    hire_date: Optional[dt.date] = Field(default=None, description="Hire date")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _clean_employee_name(v)


class EmployeeCreate(EmployeeFields):
    """Payload for adding an employee."""


class EmployeeUpdate(BaseModel):
    """Partial employee update."""

    name: Optional[str] = None
    role: Optional[EmployeeRole] = None
    monthly_salary: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    hire_date: Optional[dt.date] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        return _clean_employee_name(v)


class EmployeeRecord(StoredRecord, EmployeeFields):
    """A persisted employee."""


# =============================================================================
# Inventory
# =============================================================================


class InventoryFields(BaseModel):
    """Validated business fields of an inventory item."""

    product_name: str = Field(description="Product name, unique per owner")
    category: InventoryCategory = Field(description="Product category")
    stock_count: int = Field(ge=0, description="Units currently in stock")
    cost_price: float = Field(ge=0, allow_inf_nan=False, description="Purchase cost per unit")
    selling_price: float = Field(ge=0, allow_inf_nan=False, description="Selling price per unit")
    reorder_threshold: int = Field(ge=0, description="Stock level that triggers a restock")
    unit: InventoryUnit = Field(default=InventoryUnit.PIECE, description="Counting unit")
    description: Optional[str] = Field(default=None, max_length=500)

    @field_validator("product_name")
    @classmethod
    def validate_product_name(cls, v: str) -> str:
        return _clean_text(v, "Product name", 100)


class InventoryCreate(InventoryFields):
    """Payload for adding an inventory item."""


class InventoryUpdate(BaseModel):
    """Partial inventory update."""

    product_name: Optional[str] = None
    category: Optional[InventoryCategory] = None
    stock_count: Optional[int] = Field(default=None, ge=0)
    cost_price: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    selling_price: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    reorder_threshold: Optional[int] = Field(default=None, ge=0)
    unit: Optional[InventoryUnit] = None
    description: Optional[str] = Field(default=None, max_length=500)

    @field_validator("product_name")
    @classmethod
    def validate_product_name(cls, v: Optional[str]) -> Optional[str]:
        return _clean_text(v, "Product name", 100)


class InventoryRecord(StoredRecord, InventoryFields):
    """A persisted inventory item."""

    @computed_field
    @property
    def is_low_stock(self) -> bool:
        """Stock at or below the reorder threshold."""
        return self.stock_count <= self.reorder_threshold

    @computed_field
    @property
    def is_out_of_stock(self) -> bool:
        return self.stock_count == 0

    @computed_field
    @property
    def unit_margin_pct(self) -> float:
        """Markup over cost in percent; 0 when the item has no cost."""
        if self.cost_price == 0:
            return 0.0
        return (self.selling_price - self.cost_price) / self.cost_price * 100

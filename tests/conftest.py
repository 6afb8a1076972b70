"""
Pytest configuration and shared fixtures for the BizTrackr test suite.

Provides record factories, an in-memory storage backend, a scripted text
generator and an authenticated FastAPI test client.
"""

import os
import tempfile
import uuid as _uuid
from datetime import date, datetime, timedelta
from typing import Optional

import pytest
from fastapi.testclient import TestClient

# Set testing environment BEFORE importing app. DuckDB creates the file on
# first connect, so the path must not exist yet.
_test_db_path = os.path.join(tempfile.gettempdir(), f"biztrackr_test_{_uuid.uuid4().hex[:8]}.duckdb")
os.environ["TESTING"] = "true"
os.environ["DB_PATH"] = _test_db_path
os.environ["AI_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "console"


from biztrackr.connectors.text_generator import TextGenerator
from biztrackr.engine.errors import TextGenerationError
from biztrackr.models import (
    EmployeeRecord,
    EmployeeRole,
    ExpenseRecord,
    InventoryCategory,
    InventoryRecord,
    SaleRecord,
)
from biztrackr.storage.base import StorageBackend, StorageError

OWNER_ID = "owner_test_001"
TODAY = date(2024, 1, 31)


# ---------------------------------------------------------------------------
# Record factories
# ---------------------------------------------------------------------------


def make_sale(
    item_name: str = "Soap",
    unit_amount: float = 5.0,
    quantity: int = 1,
    sale_date: date = TODAY,
    owner_id: str = OWNER_ID,
    **overrides,
) -> SaleRecord:
    """Factory function for creating test SaleRecord objects."""
    defaults = dict(
        owner_id=owner_id,
        item_name=item_name,
        unit_amount=unit_amount,
        quantity=quantity,
        date=sale_date,
    )
    defaults.update(overrides)
    return SaleRecord(**defaults)


def make_expense(
    category: str = "Rent",
    amount: float = 100.0,
    expense_date: date = TODAY,
    description: str = "Monthly rent",
    owner_id: str = OWNER_ID,
    **overrides,
) -> ExpenseRecord:
    """Factory function for creating test ExpenseRecord objects."""
    defaults = dict(
        owner_id=owner_id,
        category=category,
        description=description,
        amount=amount,
        date=expense_date,
    )
    defaults.update(overrides)
    return ExpenseRecord(**defaults)


def make_employee(
    name: str = "Jane Doe",
    role: EmployeeRole = EmployeeRole.MANAGER,
    monthly_salary: float = 1000.0,
    hire_date: Optional[date] = date(2023, 6, 1),
    owner_id: str = OWNER_ID,
    **overrides,
) -> EmployeeRecord:
    """Factory function for creating test EmployeeRecord objects."""
    defaults = dict(
        owner_id=owner_id,
        name=name,
        role=role,
        monthly_salary=monthly_salary,
        hire_date=hire_date,
    )
    defaults.update(overrides)
    return EmployeeRecord(**defaults)


def make_inventory_item(
    product_name: str = "Soap",
    stock_count: int = 10,
    cost_price: float = 1.0,
    selling_price: float = 5.0,
    reorder_threshold: int = 2,
    category: InventoryCategory = InventoryCategory.HEALTH_BEAUTY,
    owner_id: str = OWNER_ID,
    **overrides,
) -> InventoryRecord:
    """Factory function for creating test InventoryRecord objects."""
    defaults = dict(
        owner_id=owner_id,
        product_name=product_name,
        category=category,
        stock_count=stock_count,
        cost_price=cost_price,
        selling_price=selling_price,
        reorder_threshold=reorder_threshold,
    )
    defaults.update(overrides)
    return InventoryRecord(**defaults)


def at(day: date, hour: int = 12) -> datetime:
    """Naive UTC timestamp on ``day``, for deterministic created_at values."""
    return datetime(day.year, day.month, day.day, hour)


# ---------------------------------------------------------------------------
# In-memory storage
# ---------------------------------------------------------------------------


class MockStorage(StorageBackend):
    """
    In-memory StorageBackend for unit and API tests.

    Set ``fail = True`` to make every read raise StorageError.
    """

    def __init__(self):
        self.sales: dict[str, SaleRecord] = {}
        self.expenses: dict[str, ExpenseRecord] = {}
        self.employees: dict[str, EmployeeRecord] = {}
        self.inventory: dict[str, InventoryRecord] = {}
        self.fail = False
        self.closed = False

    def _check(self):
        if self.fail:
            raise StorageError("storage unavailable")

    @staticmethod
    def _owned(records: dict, owner_id: str) -> list:
        rows = [r for r in records.values() if r.owner_id == owner_id]
        return sorted(rows, key=lambda r: r.created_at, reverse=True)

    @staticmethod
    def _dated(rows: list, start, end) -> list:
        if start is not None:
            rows = [r for r in rows if r.date >= start]
        if end is not None:
            rows = [r for r in rows if r.date <= end]
        return rows

    @staticmethod
    def _get(records: dict, owner_id: str, record_id: str):
        record = records.get(record_id)
        if record is None or record.owner_id != owner_id:
            return None
        return record

    @staticmethod
    def _remove(records: dict, owner_id: str, record_id: str) -> bool:
        record = records.get(record_id)
        if record is None or record.owner_id != owner_id:
            return False
        del records[record_id]
        return True

    # --- Sales ---
    def write_sale(self, sale):
        self._check()
        self.sales[sale.id] = sale
        return sale.id

    def read_sales(self, owner_id, start=None, end=None):
        self._check()
        return self._dated(self._owned(self.sales, owner_id), start, end)

    def read_recent_sales(self, owner_id, limit):
        self._check()
        return self._owned(self.sales, owner_id)[:limit]

    def read_sale(self, owner_id, sale_id):
        self._check()
        return self._get(self.sales, owner_id, sale_id)

    def update_sale(self, sale):
        self._check()
        self.sales[sale.id] = sale

    def delete_sale(self, owner_id, sale_id):
        self._check()
        return self._remove(self.sales, owner_id, sale_id)

    # --- Expenses ---
    def write_expense(self, expense):
        self._check()
        self.expenses[expense.id] = expense
        return expense.id

    def read_expenses(self, owner_id, start=None, end=None):
        self._check()
        return self._dated(self._owned(self.expenses, owner_id), start, end)

    def read_recent_expenses(self, owner_id, limit):
        self._check()
        return self._owned(self.expenses, owner_id)[:limit]

    def read_expense(self, owner_id, expense_id):
        self._check()
        return self._get(self.expenses, owner_id, expense_id)

    def update_expense(self, expense):
        self._check()
        self.expenses[expense.id] = expense

    def delete_expense(self, owner_id, expense_id):
        self._check()
        return self._remove(self.expenses, owner_id, expense_id)

    # --- Employees ---
    def write_employee(self, employee):
        self._check()
        self.employees[employee.id] = employee
        return employee.id

    def read_employees(self, owner_id):
        self._check()
        return self._owned(self.employees, owner_id)

    def read_recent_employees(self, owner_id, limit):
        self._check()
        return self._owned(self.employees, owner_id)[:limit]

    def read_employee(self, owner_id, employee_id):
        self._check()
        return self._get(self.employees, owner_id, employee_id)

    def update_employee(self, employee):
        self._check()
        self.employees[employee.id] = employee

    def delete_employee(self, owner_id, employee_id):
        self._check()
        return self._remove(self.employees, owner_id, employee_id)

    # --- Inventory ---
    def write_inventory_item(self, item):
        self._check()
        self.inventory[item.id] = item
        return item.id

    def read_inventory(self, owner_id):
        self._check()
        return self._owned(self.inventory, owner_id)

    def read_inventory_item(self, owner_id, item_id):
        self._check()
        return self._get(self.inventory, owner_id, item_id)

    def find_inventory_by_name(self, owner_id, product_name):
        self._check()
        for item in self._owned(self.inventory, owner_id):
            if item.product_name == product_name:
                return item
        return None

    def update_inventory_item(self, item):
        self._check()
        self.inventory[item.id] = item

    def delete_inventory_item(self, owner_id, item_id):
        self._check()
        return self._remove(self.inventory, owner_id, item_id)

    def close(self):
        self.closed = True


class FakeTextGenerator(TextGenerator):
    """
    Scripted TextGenerator recording every prompt it receives.

    Args:
        reply: Text returned by generate()
        error: If set, generate() raises TextGenerationError with this message
    """

    def __init__(self, reply: str = "Generated insight", error: Optional[str] = None):
        self.reply = reply
        self.error = error
        self.calls: list[dict] = []
        self.closed = False

    def generate(self, prompt, system=None, max_tokens=None):
        self.calls.append({"prompt": prompt, "system": system, "max_tokens": max_tokens})
        if self.error:
            raise TextGenerationError(self.error)
        return self.reply

    def close(self):
        self.closed = True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def owner_id():
    return OWNER_ID


@pytest.fixture
def mock_storage():
    """Fresh in-memory storage."""
    return MockStorage()


@pytest.fixture
def populated_storage(mock_storage):
    """
    Storage holding the worked example: 40 bars of soap at 5.00, rent of
    300, one employee on 700 a month and a small inventory.
    """
    mock_storage.write_sale(make_sale(quantity=40, sale_date=date(2024, 1, 15), created_at=at(date(2024, 1, 15))))
    mock_storage.write_expense(make_expense(amount=300.0, expense_date=date(2024, 1, 10), created_at=at(date(2024, 1, 10))))
    mock_storage.write_employee(make_employee(monthly_salary=700.0, hire_date=date(2024, 1, 5)))
    mock_storage.write_inventory_item(make_inventory_item(product_name="Soap", stock_count=10))
    mock_storage.write_inventory_item(
        make_inventory_item(product_name="Shampoo", stock_count=1, reorder_threshold=3)
    )
    return mock_storage


@pytest.fixture
def text_generator():
    return FakeTextGenerator()


@pytest.fixture
def app(mock_storage):
    """Application wired to in-memory storage and no text generator."""
    from biztrackr.main import create_app

    application = create_app(storage=mock_storage)
    application.state.text_generator = None
    return application


@pytest.fixture
def client(app):
    """FastAPI test client for integration tests."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def ai_client(mock_storage, text_generator):
    """Test client whose application has a scripted text generator."""
    from biztrackr.main import create_app

    with TestClient(create_app(storage=mock_storage, text_generator=text_generator)) as c:
        yield c


@pytest.fixture
def auth_headers():
    """Authenticated request headers for integration tests."""
    from biztrackr.auth.jwt import create_access_token

    token = create_access_token(OWNER_ID, expires_delta=timedelta(minutes=30))
    return {
        "Authorization": f"Bearer {token}",
        "X-Request-ID": str(_uuid.uuid4()),
    }

"""
DuckDB storage implementation for BizTrackr.

Provides the local storage backend using an embedded DuckDB file. Each
collection lives in its own table keyed by record id and indexed by owner.

Key features:
- Thread-safe access with per-thread connections
- Automatic, idempotent schema creation
- Enum fields stored as their VARCHAR values
- Every failure logged and re-raised as StorageError
"""

import threading
from contextlib import contextmanager
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Sequence, Type, TypeVar

import duckdb
import structlog

from biztrackr.models import (
    EmployeeRecord,
    ExpenseRecord,
    InventoryRecord,
    SaleRecord,
    StoredRecord,
)

from .base import StorageBackend, StorageError

logger = structlog.get_logger(__name__)

RecordT = TypeVar("RecordT", bound=StoredRecord)

SALE_COLUMNS = (
    "id", "owner_id", "item_name", "unit_amount", "quantity", "date",
    "created_at", "updated_at",
)
EXPENSE_COLUMNS = (
    "id", "owner_id", "category", "description", "amount", "date",
    "created_at", "updated_at",
)
EMPLOYEE_COLUMNS = (
    "id", "owner_id", "name", "role", "monthly_salary", "hire_date",
    "created_at", "updated_at",
)
INVENTORY_COLUMNS = (
    "id", "owner_id", "product_name", "category", "stock_count", "cost_price",
    "selling_price", "reorder_threshold", "unit", "description",
    "created_at", "updated_at",
)

# Columns never rewritten by an update
_IMMUTABLE_COLUMNS = {"id", "owner_id", "created_at"}


def _column_list(columns: Sequence[str]) -> str:
    # "date" doubles as a type name, so every identifier is quoted
    return ", ".join(f'"{c}"' for c in columns)


def _column_values(record: StoredRecord, columns: Sequence[str]) -> list[Any]:
    values = []
    for column in columns:
        value = getattr(record, column)
        values.append(value.value if isinstance(value, Enum) else value)
    return values


class DuckDBStorage(StorageBackend):
    """
    DuckDB implementation of the storage backend.

    Architecture:
    - One table per collection, all carrying ``owner_id`` and timestamps
    - Index on ``owner_id`` for every table
    - Thread-local connections to the same database file

    Attributes:
        db_path: Path to the DuckDB database file
        _local: Thread-local storage for per-thread connections
        _lock: Thread lock for schema operations
        _initialized: Flag tracking whether schema is initialized
    """

    def __init__(self, db_path: str = "./data/biztrackr.duckdb", threads: Optional[int] = None):
        """
        Initialize DuckDB storage backend.

        Args:
            db_path: Path to DuckDB database file
            threads: DuckDB worker threads per connection (DuckDB default when None)
        """
        self.db_path = Path(db_path)
        self.threads = threads
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._local = threading.local()
        self._lock = threading.Lock()
        self._initialized = False

        logger.info("duckdb_storage_initialized", db_path=str(self.db_path))

        self._initialize_schema()

    @contextmanager
    def _get_connection(self):
        """
        Get a thread-local DuckDB connection.

        Yields:
            DuckDB connection instance

        Raises:
            StorageError: If connection cannot be established
        """
        if not hasattr(self._local, "connection"):
            try:
                config = {"threads": self.threads} if self.threads else {}
                self._local.connection = duckdb.connect(str(self.db_path), config=config)
                logger.debug("duckdb_connection_created", thread_id=threading.get_ident())
            except Exception as e:
                logger.error("duckdb_connection_failed", error=str(e))
                raise StorageError(f"Failed to connect to DuckDB: {e}") from e

        yield self._local.connection

    def _initialize_schema(self):
        """
        Create all tables and indexes. Idempotent.

        Raises:
            StorageError: If schema creation fails
        """
        if self._initialized:
            return

        with self._lock:
            if self._initialized:
                return

            try:
                with self._get_connection() as conn:
                    conn.execute("""
                        CREATE TABLE IF NOT EXISTS sales (
                            id VARCHAR PRIMARY KEY,
                            owner_id VARCHAR NOT NULL,
                            item_name VARCHAR NOT NULL,
                            unit_amount DOUBLE NOT NULL,
                            quantity INTEGER NOT NULL,
                            "date" DATE NOT NULL,
                            created_at TIMESTAMP NOT NULL,
                            updated_at TIMESTAMP NOT NULL
                        )
                    """)

                    conn.execute("""
                        CREATE INDEX IF NOT EXISTS idx_sales_owner
                        ON sales(owner_id)
                    """)

                    conn.execute("""
                        CREATE TABLE IF NOT EXISTS expenses (
                            id VARCHAR PRIMARY KEY,
                            owner_id VARCHAR NOT NULL,
                            category VARCHAR NOT NULL,
                            description VARCHAR NOT NULL,
                            amount DOUBLE NOT NULL,
                            "date" DATE NOT NULL,
                            created_at TIMESTAMP NOT NULL,
                            updated_at TIMESTAMP NOT NULL
                        )
                    """)

                    conn.execute("""
                        CREATE INDEX IF NOT EXISTS idx_expenses_owner
                        ON expenses(owner_id)
                    """)

                    conn.execute("""
                        CREATE TABLE IF NOT EXISTS employees (
                            id VARCHAR PRIMARY KEY,
                            owner_id VARCHAR NOT NULL,
                            name VARCHAR NOT NULL,
                            role VARCHAR NOT NULL,
                            monthly_salary DOUBLE NOT NULL,
                            hire_date DATE,
                            created_at TIMESTAMP NOT NULL,
                            updated_at TIMESTAMP NOT NULL
                        )
                    """)

                    conn.execute("""
                        CREATE INDEX IF NOT EXISTS idx_employees_owner
                        ON employees(owner_id)
                    """)

                    conn.execute("""
                        CREATE TABLE IF NOT EXISTS inventory (
                            id VARCHAR PRIMARY KEY,
                            owner_id VARCHAR NOT NULL,
                            product_name VARCHAR NOT NULL,
                            category VARCHAR NOT NULL,
                            stock_count INTEGER NOT NULL,
                            cost_price DOUBLE NOT NULL,
                            selling_price DOUBLE NOT NULL,
                            reorder_threshold INTEGER NOT NULL,
                            unit VARCHAR NOT NULL,
                            description VARCHAR,
                            created_at TIMESTAMP NOT NULL,
                            updated_at TIMESTAMP NOT NULL
                        )
                    """)

                    conn.execute("""
                        CREATE INDEX IF NOT EXISTS idx_inventory_owner
                        ON inventory(owner_id)
                    """)

                    conn.commit()
                    logger.info("duckdb_schema_initialized", table_count=4)
                    self._initialized = True

            except Exception as e:
                logger.error("duckdb_schema_initialization_failed", error=str(e))
                raise StorageError(f"Failed to initialize schema: {e}") from e

    def close(self) -> None:
        """Close this thread's connection, if one was opened."""
        connection = getattr(self._local, "connection", None)
        if connection is not None:
            connection.close()
            del self._local.connection
            logger.debug("duckdb_connection_closed", thread_id=threading.get_ident())

    # =========================================================================
    # Generic table helpers
    # =========================================================================

    def _insert(self, table: str, columns: Sequence[str], record: StoredRecord) -> str:
        placeholders = ", ".join("?" for _ in columns)
        try:
            with self._get_connection() as conn:
                conn.execute(
                    f"INSERT INTO {table} ({_column_list(columns)}) VALUES ({placeholders})",
                    _column_values(record, columns),
                )
                conn.commit()
                logger.debug("record_written", table=table, record_id=record.id)
                return record.id

        except Exception as e:
            logger.error("write_record_failed", table=table, record_id=record.id, error=str(e))
            raise StorageError(f"Failed to write {table} record: {e}") from e

    def _select(
        self,
        table: str,
        columns: Sequence[str],
        model: Type[RecordT],
        owner_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        record_id: Optional[str] = None,
        product_name: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[RecordT]:
        try:
            with self._get_connection() as conn:
                query = f"SELECT {_column_list(columns)} FROM {table} WHERE owner_id = ?"
                params: list[Any] = [owner_id]

                if start is not None:
                    query += ' AND "date" >= ?'
                    params.append(start)

                if end is not None:
                    query += ' AND "date" <= ?'
                    params.append(end)

                if record_id:
                    query += " AND id = ?"
                    params.append(record_id)

                if product_name:
                    query += " AND product_name = ?"
                    params.append(product_name)

                query += " ORDER BY created_at DESC, id"

                if limit is not None:
                    query += " LIMIT ?"
                    params.append(limit)

                result = conn.execute(query, params).fetchall()
                records = [model(**dict(zip(columns, row))) for row in result]

                logger.debug("records_read", table=table, owner_id=owner_id, count=len(records))
                return records

        except Exception as e:
            logger.error("read_records_failed", table=table, owner_id=owner_id, error=str(e))
            raise StorageError(f"Failed to read {table}: {e}") from e

    def _update(self, table: str, columns: Sequence[str], record: StoredRecord) -> None:
        mutable = [c for c in columns if c not in _IMMUTABLE_COLUMNS]
        assignments = ", ".join(f'"{c}" = ?' for c in mutable)
        try:
            with self._get_connection() as conn:
                conn.execute(
                    f"UPDATE {table} SET {assignments} WHERE id = ? AND owner_id = ?",
                    _column_values(record, mutable) + [record.id, record.owner_id],
                )
                conn.commit()
                logger.debug("record_updated", table=table, record_id=record.id)

        except Exception as e:
            logger.error("update_record_failed", table=table, record_id=record.id, error=str(e))
            raise StorageError(f"Failed to update {table} record: {e}") from e

    def _delete(self, table: str, owner_id: str, record_id: str) -> bool:
        try:
            with self._get_connection() as conn:
                existing = conn.execute(
                    f"SELECT 1 FROM {table} WHERE id = ? AND owner_id = ? LIMIT 1",
                    [record_id, owner_id],
                ).fetchone()
                if not existing:
                    return False

                conn.execute(
                    f"DELETE FROM {table} WHERE id = ? AND owner_id = ?",
                    [record_id, owner_id],
                )
                conn.commit()
                logger.debug("record_deleted", table=table, record_id=record_id)
                return True

        except Exception as e:
            logger.error("delete_record_failed", table=table, record_id=record_id, error=str(e))
            raise StorageError(f"Failed to delete {table} record: {e}") from e

    @staticmethod
    def _first(records: list[RecordT]) -> Optional[RecordT]:
        return records[0] if records else None

    # =========================================================================
    # Sales
    # =========================================================================

    def write_sale(self, sale: SaleRecord) -> str:
        return self._insert("sales", SALE_COLUMNS, sale)

    def read_sales(
        self,
        owner_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[SaleRecord]:
        return self._select("sales", SALE_COLUMNS, SaleRecord, owner_id, start=start, end=end)

    def read_recent_sales(self, owner_id: str, limit: int) -> list[SaleRecord]:
        return self._select("sales", SALE_COLUMNS, SaleRecord, owner_id, limit=limit)

    def read_sale(self, owner_id: str, sale_id: str) -> Optional[SaleRecord]:
        return self._first(
            self._select("sales", SALE_COLUMNS, SaleRecord, owner_id, record_id=sale_id)
        )

    def update_sale(self, sale: SaleRecord) -> None:
        self._update("sales", SALE_COLUMNS, sale)

    def delete_sale(self, owner_id: str, sale_id: str) -> bool:
        return self._delete("sales", owner_id, sale_id)

    # =========================================================================
    # Expenses
    # =========================================================================

    def write_expense(self, expense: ExpenseRecord) -> str:
        return self._insert("expenses", EXPENSE_COLUMNS, expense)

    def read_expenses(
        self,
        owner_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[ExpenseRecord]:
        return self._select(
            "expenses", EXPENSE_COLUMNS, ExpenseRecord, owner_id, start=start, end=end
        )

    def read_recent_expenses(self, owner_id: str, limit: int) -> list[ExpenseRecord]:
        return self._select("expenses", EXPENSE_COLUMNS, ExpenseRecord, owner_id, limit=limit)

    def read_expense(self, owner_id: str, expense_id: str) -> Optional[ExpenseRecord]:
        return self._first(
            self._select(
                "expenses", EXPENSE_COLUMNS, ExpenseRecord, owner_id, record_id=expense_id
            )
        )

    def update_expense(self, expense: ExpenseRecord) -> None:
        self._update("expenses", EXPENSE_COLUMNS, expense)

    def delete_expense(self, owner_id: str, expense_id: str) -> bool:
        return self._delete("expenses", owner_id, expense_id)

    # =========================================================================
    # Employees
    # =========================================================================

    def write_employee(self, employee: EmployeeRecord) -> str:
        return self._insert("employees", EMPLOYEE_COLUMNS, employee)

    def read_employees(self, owner_id: str) -> list[EmployeeRecord]:
        return self._select("employees", EMPLOYEE_COLUMNS, EmployeeRecord, owner_id)

    def read_recent_employees(self, owner_id: str, limit: int) -> list[EmployeeRecord]:
        return self._select(
            "employees", EMPLOYEE_COLUMNS, EmployeeRecord, owner_id, limit=limit
        )

    def read_employee(self, owner_id: str, employee_id: str) -> Optional[EmployeeRecord]:
        return self._first(
            self._select(
                "employees", EMPLOYEE_COLUMNS, EmployeeRecord, owner_id, record_id=employee_id
            )
        )

    def update_employee(self, employee: EmployeeRecord) -> None:
        self._update("employees", EMPLOYEE_COLUMNS, employee)

    def delete_employee(self, owner_id: str, employee_id: str) -> bool:
        return self._delete("employees", owner_id, employee_id)

    # =========================================================================
    # Inventory
    # =========================================================================

    def write_inventory_item(self, item: InventoryRecord) -> str:
        return self._insert("inventory", INVENTORY_COLUMNS, item)

    def read_inventory(self, owner_id: str) -> list[InventoryRecord]:
        return self._select("inventory", INVENTORY_COLUMNS, InventoryRecord, owner_id)

    def read_inventory_item(self, owner_id: str, item_id: str) -> Optional[InventoryRecord]:
        return self._first(
            self._select(
                "inventory", INVENTORY_COLUMNS, InventoryRecord, owner_id, record_id=item_id
            )
        )

    def find_inventory_by_name(
        self, owner_id: str, product_name: str
    ) -> Optional[InventoryRecord]:
        return self._first(
            self._select(
                "inventory",
                INVENTORY_COLUMNS,
                InventoryRecord,
                owner_id,
                product_name=product_name,
                limit=1,
            )
        )

    def update_inventory_item(self, item: InventoryRecord) -> None:
        self._update("inventory", INVENTORY_COLUMNS, item)

    def delete_inventory_item(self, owner_id: str, item_id: str) -> bool:
        return self._delete("inventory", owner_id, item_id)

"""
Spreadsheet export of an owner's records.

Each collection becomes one pandas DataFrame closed by a TOTALS row. For
xlsx the frames are written as sheets through ``pd.ExcelWriter`` with the
openpyxl engine; a full export adds a Dashboard summary sheet. CSV holds a
single frame and is therefore limited to one collection.
"""

import io
from datetime import date
from typing import Optional, Sequence

import pandas as pd
import structlog
from pydantic import BaseModel

from biztrackr.models import (
    EmployeeRecord,
    ExpenseRecord,
    ExportFormat,
    ExportType,
    InventoryRecord,
    SaleRecord,
)
from biztrackr.storage.base import StorageBackend, StorageError

from .aggregator import profit_margin, utc_today
from .errors import ExportFailed, ValidationFailure

logger = structlog.get_logger()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CSV_MEDIA_TYPE = "text/csv"

TOTALS_LABEL = "TOTALS"

SALES_COLUMNS = ["Item", "Quantity", "Unit Amount", "Date", "Total Value"]
EXPENSE_COLUMNS = ["Category", "Description", "Amount", "Date", "Month"]
EMPLOYEE_COLUMNS = ["Name", "Role", "Monthly Salary", "Hire Date", "Years Employed"]
INVENTORY_COLUMNS = [
    "Product", "Category", "Stock", "Unit", "Cost Price", "Selling Price",
    "Margin %", "Status", "Total Value",
]

SHEET_NAMES = {
    ExportType.SALES: "Sales",
    ExportType.EXPENSES: "Expenses",
    ExportType.EMPLOYEES: "Employees",
    ExportType.INVENTORY: "Inventory",
}


class ExportFile(BaseModel):
    """Rendered export ready to stream back to the client."""

    filename: str
    media_type: str
    content: bytes


# ============================================================================
# Frames
# ============================================================================


def sales_frame(sales: Sequence[SaleRecord]) -> pd.DataFrame:
    rows = [
        {
            "Item": s.item_name,
            "Quantity": s.quantity,
            "Unit Amount": s.unit_amount,
            "Date": s.date.isoformat(),
            "Total Value": s.revenue,
        }
        for s in sorted(sales, key=lambda s: s.date, reverse=True)
    ]
    rows.append({
        "Item": TOTALS_LABEL,
        "Quantity": sum(s.quantity for s in sales),
        "Total Value": sum(s.revenue for s in sales),
    })
    return pd.DataFrame(rows, columns=SALES_COLUMNS)


def expenses_frame(expenses: Sequence[ExpenseRecord]) -> pd.DataFrame:
    rows = [
        {
            "Category": e.category,
            "Description": e.description,
            "Amount": e.amount,
            "Date": e.date.isoformat(),
            "Month": e.date.strftime("%B %Y"),
        }
        for e in sorted(expenses, key=lambda e: e.date, reverse=True)
    ]
    rows.append({"Category": TOTALS_LABEL, "Amount": sum(e.amount for e in expenses)})
    return pd.DataFrame(rows, columns=EXPENSE_COLUMNS)


def employees_frame(employees: Sequence[EmployeeRecord], today: date) -> pd.DataFrame:
    rows = []
    for e in sorted(employees, key=lambda e: e.name):
        years = None
        if e.hire_date:
            years = round((today - e.hire_date).days / 365.25, 1)
        rows.append({
            "Name": e.name,
            "Role": e.role.value,
            "Monthly Salary": e.monthly_salary,
            "Hire Date": e.hire_date.isoformat() if e.hire_date else "N/A",
            "Years Employed": years,
        })
    rows.append({
        "Name": TOTALS_LABEL,
        "Role": f"{len(employees)} employees",
        "Monthly Salary": sum(e.monthly_salary for e in employees),
    })
    return pd.DataFrame(rows, columns=EMPLOYEE_COLUMNS)


def inventory_frame(inventory: Sequence[InventoryRecord]) -> pd.DataFrame:
    rows = [
        {
            "Product": i.product_name,
            "Category": i.category.value,
            "Stock": i.stock_count,
            "Unit": i.unit.value,
            "Cost Price": i.cost_price,
            "Selling Price": i.selling_price,
            "Margin %": round(i.unit_margin_pct, 1) if i.cost_price > 0 else None,
            "Status": "OUT OF STOCK" if i.is_out_of_stock else "LOW STOCK" if i.is_low_stock else "OK",
            "Total Value": i.stock_count * i.cost_price,
        }
        for i in sorted(inventory, key=lambda i: i.product_name)
    ]
    rows.append({
        "Product": TOTALS_LABEL,
        "Stock": sum(i.stock_count for i in inventory),
        "Status": f"{sum(1 for i in inventory if i.is_low_stock)} low stock",
        "Total Value": sum(i.stock_count * i.cost_price for i in inventory),
    })
    return pd.DataFrame(rows, columns=INVENTORY_COLUMNS)


def dashboard_frame(
    sales: Sequence[SaleRecord],
    expenses: Sequence[ExpenseRecord],
    employees: Sequence[EmployeeRecord],
    inventory: Sequence[InventoryRecord],
) -> pd.DataFrame:
    """Key figures of the exported data as Metric/Value pairs."""
    total_sales = sum(s.revenue for s in sales)
    total_expenses = sum(e.amount for e in expenses)
    total_salaries = sum(e.monthly_salary for e in employees)
    net_profit = total_sales - total_expenses - total_salaries

    return pd.DataFrame(
        [
            ("Total Sales", total_sales),
            ("Total Expenses", total_expenses),
            ("Total Salary Cost", total_salaries),
            ("Net Profit", net_profit),
            ("Profit Margin %", profit_margin(net_profit, total_sales)),
            ("Total Employees", len(employees)),
            ("Total Products", len(inventory)),
            ("Low Stock Items", sum(1 for i in inventory if i.is_low_stock)),
            ("Total Inventory Value", sum(i.stock_count * i.cost_price for i in inventory)),
        ],
        columns=["Metric", "Value"],
    )


def _autosize(worksheet, frame: pd.DataFrame) -> None:
    for index, column in enumerate(frame.columns, start=1):
        values = [str(column)] + [str(v) for v in frame[column].tolist() if v is not None]
        width = min(max(len(v) for v in values) + 2, 50)
        worksheet.column_dimensions[worksheet.cell(row=1, column=index).column_letter].width = width


def write_xlsx(sheets: dict[str, pd.DataFrame]) -> bytes:
    """Write frames as sheets of one workbook, in insertion order."""
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for name, frame in sheets.items():
            frame.to_excel(writer, sheet_name=name, index=False)
            _autosize(writer.sheets[name], frame)
    return buffer.getvalue()


def write_csv(frame: pd.DataFrame) -> bytes:
    return frame.to_csv(index=False).encode("utf-8")


def export_filename(export_type: ExportType, fmt: ExportFormat, today: date) -> str:
    return f"business-export-{export_type.value}-{today.isoformat()}.{fmt.value}"


# ============================================================================
# Exporter
# ============================================================================


class WorkbookExporter:
    """
    Renders an owner's records into xlsx or csv.

    Sales and expenses honour the date range only when both bounds are given.
    """

    def __init__(self, storage: StorageBackend):
        self.storage = storage

    def export(
        self,
        owner_id: str,
        export_type: ExportType = ExportType.ALL,
        fmt: ExportFormat = ExportFormat.XLSX,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        today: Optional[date] = None,
    ) -> ExportFile:
        """
        Build the export file.

        Raises:
            ValidationFailure: If csv is requested for every collection
            ExportFailed: If records cannot be read
        """
        if fmt == ExportFormat.CSV and export_type == ExportType.ALL:
            raise ValidationFailure(
                "CSV export requires a single collection type",
                details={"type": export_type.value, "format": fmt.value},
            )

        today = today or utc_today()
        start, end = (start_date, end_date) if start_date and end_date else (None, None)
        wanted = list(SHEET_NAMES) if export_type == ExportType.ALL else [export_type]

        sales: list[SaleRecord] = []
        expenses: list[ExpenseRecord] = []
        employees: list[EmployeeRecord] = []
        inventory: list[InventoryRecord] = []
        try:
            if ExportType.SALES in wanted:
                sales = self.storage.read_sales(owner_id, start=start, end=end)
            if ExportType.EXPENSES in wanted:
                expenses = self.storage.read_expenses(owner_id, start=start, end=end)
            if ExportType.EMPLOYEES in wanted:
                employees = self.storage.read_employees(owner_id)
            if ExportType.INVENTORY in wanted:
                inventory = self.storage.read_inventory(owner_id)
        except StorageError as e:
            logger.error("export_fetch_failed", owner_id=owner_id, error=str(e))
            raise ExportFailed("Failed to generate export") from e

        builders = {
            ExportType.SALES: lambda: sales_frame(sales),
            ExportType.EXPENSES: lambda: expenses_frame(expenses),
            ExportType.EMPLOYEES: lambda: employees_frame(employees, today),
            ExportType.INVENTORY: lambda: inventory_frame(inventory),
        }
        sheets = {SHEET_NAMES[kind]: builders[kind]() for kind in wanted}

        if fmt == ExportFormat.CSV:
            content = write_csv(next(iter(sheets.values())))
            media_type = CSV_MEDIA_TYPE
        else:
            if export_type == ExportType.ALL:
                sheets["Dashboard"] = dashboard_frame(sales, expenses, employees, inventory)
            content = write_xlsx(sheets)
            media_type = XLSX_MEDIA_TYPE

        logger.info(
            "export_generated",
            owner_id=owner_id,
            export_type=export_type.value,
            format=fmt.value,
            sheets=list(sheets),
            bytes=len(content),
        )
        return ExportFile(
            filename=export_filename(export_type, fmt, today),
            media_type=media_type,
            content=content,
        )

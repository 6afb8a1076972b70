"""
Pydantic v2 data models for BizTrackr.

Model Organization:
    - enums: Enumeration types for consistent classification
    - records: Sales, expense, employee and inventory records and payloads
    - dashboard: Derived metrics, chart, activity and insight models

Usage:
    >>> from biztrackr.models import SaleRecord
    >>> sale = SaleRecord(owner_id="acme", item_name="Soap", unit_amount=5,
    ...                   quantity=40, date="2024-01-01")
    >>> sale.revenue
    200.0
"""

from .dashboard import (
    ActivityItem,
    ActivityQuery,
    CategoryBreakdown,
    ChartPoint,
    ChatReply,
    ChatRequest,
    DashboardMetrics,
    DateRange,
    HealthAssessment,
    InsightAlerts,
    InsightMetrics,
    InsightReport,
    SaleDraft,
    StockAlert,
    VoiceSaleRequest,
)
from .enums import (
    EXPENSE_CATEGORIES,
    ActivityKind,
    BucketPeriod,
    EmployeeRole,
    ExportFormat,
    ExportType,
    HealthStatus,
    InventoryCategory,
    InventoryUnit,
)
from .records import (
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
    StoredRecord,
    utc_now,
)

__all__ = [
    # Enumerations
    "EXPENSE_CATEGORIES",
    "ActivityKind",
    "BucketPeriod",
    "EmployeeRole",
    "ExportFormat",
    "ExportType",
    "HealthStatus",
    "InventoryCategory",
    "InventoryUnit",
    # Records
    "StoredRecord",
    "SaleCreate",
    "SaleRecord",
    "SaleUpdate",
    "ExpenseCreate",
    "ExpenseRecord",
    "ExpenseUpdate",
    "EmployeeCreate",
    "EmployeeRecord",
    "EmployeeUpdate",
    "InventoryCreate",
    "InventoryRecord",
    "InventoryUpdate",
    "utc_now",
    # Derived
    "ActivityItem",
    "ActivityQuery",
    "CategoryBreakdown",
    "ChartPoint",
    "ChatReply",
    "ChatRequest",
    "DashboardMetrics",
    "DateRange",
    "HealthAssessment",
    "InsightAlerts",
    "InsightMetrics",
    "InsightReport",
    "SaleDraft",
    "StockAlert",
    "VoiceSaleRequest",
]

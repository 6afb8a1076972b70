"""
Derived models produced by the metrics engine.

These are the output contracts of the dashboard, insights, chat and voice
endpoints. They are computed per request and never persisted.
"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field, computed_field

from .enums import ActivityKind, HealthStatus


class DateRange(BaseModel):
    """Inclusive business-date window."""

    start: dt.date
    end: dt.date

    @property
    def days(self) -> int:
        """Number of calendar days covered, both ends included."""
        return (self.end - self.start).days + 1

    def contains(self, day: dt.date) -> bool:
        return self.start <= day <= self.end


class ChartPoint(BaseModel):
    """
    One time bucket of the sales/expense chart.

    Attributes:
        label: Bucket label (ISO day, "Week 2024-3", or "Jan 2024")
        sales: Revenue in the bucket
        expenses: Expenses in the bucket
        profit: sales - expenses
    """

    label: str
    sales: float = 0.0
    expenses: float = 0.0
    profit: float = 0.0


class CategoryBreakdown(BaseModel):
    """Expense total for one category and its share of all expenses."""

    category: str
    amount: float
    percentage: float


class ActivityItem(BaseModel):
    """One entry of the recent-activity feed."""

    id: str
    kind: ActivityKind
    description: str
    amount: Optional[float] = None
    date: dt.date


class HealthAssessment(BaseModel):
    """
    Business health label plus the independent threshold flags.

    Attributes:
        status: First matching label in precedence order
        is_critical: Critical thresholds breached
        has_warnings: Warning thresholds breached
        is_healthy: All healthy thresholds met
    """

    status: HealthStatus
    is_critical: bool
    has_warnings: bool
    is_healthy: bool


class DashboardMetrics(BaseModel):
    """
    Composite dashboard payload for one owner and date range.

    Sales and expense totals cover the requested range; salaries and
    inventory figures reflect current standing state.
    """

    start_date: dt.date
    end_date: dt.date
    total_sales: float = Field(description="Sum of unit_amount x quantity in range")
    total_expenses: float = Field(description="Sum of regular expenses in range")
    total_salaries: float = Field(description="Sum of monthly salaries of all employees")
    total_expenses_with_salaries: float
    net_profit: float
    profit_margin: float = Field(description="Net profit over sales in percent, 2 dp")
    sales_growth: float = Field(description="Trailing 30 days vs the 30 days before, in percent")
    total_inventory_value: float = Field(description="Stock valued at cost price")
    low_stock_items: int
    out_of_stock_items: int
    total_products: int
    employee_count: int
    health: HealthAssessment
    chart_data: list[ChartPoint] = Field(default_factory=list)
    category_data: list[CategoryBreakdown] = Field(default_factory=list)
    recent_activity: list[ActivityItem] = Field(default_factory=list)


# =============================================================================
# Insights and chat
# =============================================================================


class StockAlert(BaseModel):
    """Inventory item needing attention."""

    name: str
    current: int
    minimum: int


class InsightMetrics(BaseModel):
    """Metric block returned alongside an insights report."""

    total_sales: float
    total_expenses: float
    total_salaries: float
    total_expenses_with_salaries: float
    net_profit: float
    profit_margin: float
    sales_growth: float
    low_stock_count: int
    out_of_stock_count: int
    employee_count: int
    total_inventory_value: float
    total_inventory_retail_value: float
    health_status: HealthStatus
    is_healthy: bool
    has_warnings: bool
    is_critical: bool


class InsightAlerts(BaseModel):
    low_stock: list[StockAlert] = Field(default_factory=list)
    out_of_stock: list[StockAlert] = Field(default_factory=list)


class InsightReport(BaseModel):
    """
    AI insights response.

    Attributes:
        insights: Report text (markdown)
        source: "llm" when generated by the model, "fallback" when produced locally
        metrics: Figures the report was built from
        alerts: Inventory alerts
    """

    insights: str
    source: str
    metrics: InsightMetrics
    alerts: InsightAlerts


class ChatRequest(BaseModel):
    message: str = Field(default="", max_length=2000)


class ChatReply(BaseModel):
    response: str


class ActivityQuery(BaseModel):
    """Body of the filtered recent-activity request."""

    kinds: Optional[list[str]] = None
    limit: int = 10
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None


class VoiceSaleRequest(BaseModel):
    transcript: str = Field(default="", max_length=2000)


class SaleDraft(BaseModel):
    """
    Sale fields read from a spoken transcript.

    Fields the speaker did not mention are None; ``date`` falls back to the
    day the transcript was parsed. A complete draft can be posted to the
    sales endpoint unchanged.
    """

    item_name: Optional[str] = None
    quantity: Optional[int] = Field(default=None, ge=1)
    unit_amount: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    date: dt.date

    @computed_field
    @property
    def complete(self) -> bool:
        return None not in (self.item_name, self.quantity, self.unit_amount)

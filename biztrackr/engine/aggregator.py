"""
Metrics aggregation for the owner dashboard.

Turns the four owner collections into one DashboardMetrics snapshot:
headline totals, the daily chart, the expense breakdown, the health label
and the recent-activity feed.

Sales and expenses are counted only inside the effective date range.
Salaries and inventory describe the business as it stands today and are
never range-filtered.
"""

import warnings
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional, Sequence

import structlog

from biztrackr.config import Settings, get_settings
from biztrackr.models import (
    ActivityItem,
    ActivityKind,
    BucketPeriod,
    ChartPoint,
    DashboardMetrics,
    DateRange,
    EmployeeRecord,
    ExpenseRecord,
    InventoryRecord,
    SaleRecord,
)
from biztrackr.storage.base import StorageBackend, StorageError

from .activity import merge_activity, source_fetch_limit
from .bucketing import build_chart, expense_amounts, sale_amounts
from .categories import attribute_categories
from .errors import AggregationFailure, InvalidDateRange
from .health import classify_health

logger = structlog.get_logger()

DEFAULT_RANGE_DAYS = 30
SALARY_PRORATION_DAYS = 30
GROWTH_WINDOW_DAYS = 30


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def resolve_date_range(
    start: Optional[date] = None,
    end: Optional[date] = None,
    today: Optional[date] = None,
    default_days: int = DEFAULT_RANGE_DAYS,
) -> DateRange:
    """
    Fill in missing range bounds.

    A missing end defaults to ``today``; a missing start defaults to
    ``default_days`` before the end.

    Raises:
        InvalidDateRange: If start is after end
    """
    end = end or today or utc_today()
    start = start or end - timedelta(days=default_days)
    if start > end:
        raise InvalidDateRange(
            "start_date must not be after end_date",
            details={"start_date": start.isoformat(), "end_date": end.isoformat()},
        )
    return DateRange(start=start, end=end)


def parse_date_param(value: Optional[str], field: str) -> Optional[date]:
    """
    Parse an ISO ``YYYY-MM-DD`` query parameter.

    Raises:
        InvalidDateRange: If the value is not a valid ISO date
    """
    if value is None or value == "":
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise InvalidDateRange(
            f"{field} must be an ISO date (YYYY-MM-DD)",
            details={field: value},
        ) from e


# ============================================================================
# Pure computations
# ============================================================================


def total_revenue(sales: Iterable[SaleRecord]) -> float:
    """Sum of unit amount times quantity."""
    return sum(sale.revenue for sale in sales)


def legacy_total_sales(sales: Iterable[SaleRecord]) -> float:
    """
    Sum of unit amounts, ignoring quantity.

    .. deprecated::
        Understates revenue for multi-unit sales. Use ``total_revenue``.
    """
    warnings.warn(
        "legacy_total_sales ignores quantity; use total_revenue",
        DeprecationWarning,
        stacklevel=2,
    )
    return sum(sale.unit_amount for sale in sales)


def profit_margin(net_profit: float, total_sales: float) -> float:
    """Net profit over sales in percent, rounded to 2 dp; 0 without sales."""
    if total_sales <= 0:
        return 0.0
    return round(net_profit / total_sales * 100, 2)


def growth_window(end: date, window_days: int = GROWTH_WINDOW_DAYS) -> DateRange:
    """Both comparison windows: from the start of the previous one to ``end``."""
    return DateRange(start=end - timedelta(days=2 * window_days - 1), end=end)


def sales_growth(
    sales: Iterable[SaleRecord],
    end: date,
    window_days: int = GROWTH_WINDOW_DAYS,
) -> float:
    """
    Revenue growth of the trailing window over the window before it.

    The current window is the ``window_days`` days ending on ``end``; the
    previous window is the ``window_days`` days before that.

    Returns:
        Growth in percent, rounded to 2 dp; 0 when the previous window is empty
    """
    current_start = end - timedelta(days=window_days - 1)
    previous = DateRange(
        start=current_start - timedelta(days=window_days),
        end=current_start - timedelta(days=1),
    )
    current = DateRange(start=current_start, end=end)

    current_total = 0.0
    previous_total = 0.0
    for sale in sales:
        if current.contains(sale.date):
            current_total += sale.revenue
        elif previous.contains(sale.date):
            previous_total += sale.revenue

    if previous_total <= 0:
        return 0.0
    return round((current_total - previous_total) / previous_total * 100, 2)


def aggregate_metrics(
    sales: Sequence[SaleRecord],
    expenses: Sequence[ExpenseRecord],
    employees: Sequence[EmployeeRecord],
    inventory: Sequence[InventoryRecord],
    date_range: DateRange,
    recent_activity: Optional[list[ActivityItem]] = None,
    salary_proration_days: int = SALARY_PRORATION_DAYS,
) -> DashboardMetrics:
    """
    Compute the dashboard snapshot from already-fetched records.

    ``sales`` and ``expenses`` may extend beyond ``date_range``: totals,
    chart and categories only count records inside it, while sales before
    it still feed the growth comparison.

    Args:
        sales: Sales covering at least the range and the growth windows
        expenses: Expenses covering at least the range
        employees: All employees
        inventory: All inventory items
        date_range: Effective inclusive range
        recent_activity: Pre-built activity feed
        salary_proration_days: Divisor turning monthly salaries into a daily cost

    Returns:
        DashboardMetrics
    """
    sales_in_range = [s for s in sales if date_range.contains(s.date)]
    expenses_in_range = [e for e in expenses if date_range.contains(e.date)]

    total_sales = total_revenue(sales_in_range)
    total_expenses = sum(e.amount for e in expenses_in_range)
    total_salaries = sum(e.monthly_salary for e in employees)
    total_expenses_with_salaries = total_expenses + total_salaries
    net_profit = total_sales - total_expenses_with_salaries
    margin = profit_margin(net_profit, total_sales)

    low_stock_items = sum(1 for item in inventory if item.is_low_stock)
    out_of_stock_items = sum(1 for item in inventory if item.is_out_of_stock)

    chart_data: list[ChartPoint] = build_chart(
        sale_amounts(sales_in_range),
        expense_amounts(expenses_in_range),
        date_range,
        period=BucketPeriod.DAILY,
        daily_overhead=total_salaries / salary_proration_days,
    )

    return DashboardMetrics(
        start_date=date_range.start,
        end_date=date_range.end,
        total_sales=total_sales,
        total_expenses=total_expenses,
        total_salaries=total_salaries,
        total_expenses_with_salaries=total_expenses_with_salaries,
        net_profit=net_profit,
        profit_margin=margin,
        sales_growth=sales_growth(sales, date_range.end),
        total_inventory_value=sum(item.stock_count * item.cost_price for item in inventory),
        low_stock_items=low_stock_items,
        out_of_stock_items=out_of_stock_items,
        total_products=len(inventory),
        employee_count=len(employees),
        health=classify_health(margin, low_stock_items, out_of_stock_items, net_profit),
        chart_data=chart_data,
        category_data=attribute_categories(expenses_in_range, total_salaries),
        recent_activity=recent_activity or [],
    )


# ============================================================================
# Storage-backed aggregator
# ============================================================================


class MetricsAggregator:
    """
    Fetches an owner's collections and builds the dashboard snapshot.

    Any storage failure while fetching is raised as AggregationFailure with
    the storage error chained. Empty collections aggregate to zeros.
    """

    def __init__(self, storage: StorageBackend, settings: Optional[Settings] = None):
        self.storage = storage
        self.settings = settings or get_settings()

    def compute(
        self,
        owner_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        today: Optional[date] = None,
    ) -> DashboardMetrics:
        """
        Build DashboardMetrics for one owner.

        Args:
            owner_id: Business account
            start_date: Optional inclusive start
            end_date: Optional inclusive end
            today: Reference date for defaults (current UTC date when None)

        Raises:
            InvalidDateRange: If start_date is after end_date
            AggregationFailure: If any collection cannot be read
        """
        date_range = resolve_date_range(
            start_date, end_date, today=today, default_days=self.settings.default_range_days
        )
        growth = growth_window(date_range.end)
        fetch_start = min(date_range.start, growth.start)

        try:
            sales = self.storage.read_sales(owner_id, start=fetch_start, end=date_range.end)
            expenses = self.storage.read_expenses(
                owner_id, start=date_range.start, end=date_range.end
            )
            employees = self.storage.read_employees(owner_id)
            inventory = self.storage.read_inventory(owner_id)
            activity_limit = self.settings.activity_default_limit
            recent_sales, recent_expenses, recent_employees = self._activity_sources(
                owner_id, activity_limit
            )
        except StorageError as e:
            logger.error("dashboard_metrics_fetch_failed", owner_id=owner_id, error=str(e))
            raise AggregationFailure("Failed to fetch dashboard metrics") from e

        recent_activity = merge_activity(
            recent_sales, recent_expenses, recent_employees, limit=activity_limit
        )

        metrics = aggregate_metrics(
            sales,
            expenses,
            employees,
            inventory,
            date_range,
            recent_activity=recent_activity,
            salary_proration_days=self.settings.salary_proration_days,
        )

        logger.info(
            "dashboard_metrics_computed",
            owner_id=owner_id,
            start_date=date_range.start.isoformat(),
            end_date=date_range.end.isoformat(),
            total_sales=metrics.total_sales,
            health_status=metrics.health.status.value,
        )
        return metrics

    def chart(
        self,
        owner_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        period: BucketPeriod = BucketPeriod.DAILY,
        today: Optional[date] = None,
    ) -> list[ChartPoint]:
        """
        Chart of raw sales and expenses, without salary overhead.

        Raises:
            InvalidDateRange: If start_date is after end_date
            AggregationFailure: If sales or expenses cannot be read
        """
        date_range = resolve_date_range(
            start_date, end_date, today=today, default_days=self.settings.default_range_days
        )
        try:
            sales = self.storage.read_sales(owner_id, start=date_range.start, end=date_range.end)
            expenses = self.storage.read_expenses(
                owner_id, start=date_range.start, end=date_range.end
            )
        except StorageError as e:
            logger.error("chart_data_fetch_failed", owner_id=owner_id, error=str(e))
            raise AggregationFailure(
                "Failed to fetch chart data", code="CHART_DATA_FETCH_ERROR"
            ) from e

        points = build_chart(sale_amounts(sales), expense_amounts(expenses), date_range, period)
        logger.debug("chart_data_computed", owner_id=owner_id, period=period.value, points=len(points))
        return points

    def recent_activity(
        self,
        owner_id: str,
        limit: int,
        kinds: Optional[set[ActivityKind]] = None,
        date_range: Optional[DateRange] = None,
    ) -> list[ActivityItem]:
        """
        Merged activity feed of at most ``limit`` entries.

        Raises:
            AggregationFailure: If any source collection cannot be read
        """
        try:
            sales, expenses, employees = self._activity_sources(
                owner_id, limit, kinds, date_range
            )
        except StorageError as e:
            logger.error("recent_activity_fetch_failed", owner_id=owner_id, error=str(e))
            raise AggregationFailure(
                "Failed to fetch recent activity", code="RECENT_ACTIVITY_FETCH_ERROR"
            ) from e

        return merge_activity(
            sales, expenses, employees, limit=limit, kinds=kinds, date_range=date_range
        )

    def _activity_sources(
        self,
        owner_id: str,
        limit: int,
        kinds: Optional[set[ActivityKind]] = None,
        date_range: Optional[DateRange] = None,
    ) -> tuple[list[SaleRecord], list[ExpenseRecord], list[EmployeeRecord]]:
        """
        Read the records the feed is merged from.

        Without a date range each collection contributes its newest records
        by creation time. With one, sales and expenses are read by business
        date inside the range and every employee is read, since an
        employee's business date is not stored as a column. Collections
        whose kind is filtered out are not read.

        Raises:
            StorageError: If a collection cannot be read
        """

        def wanted(kind: ActivityKind) -> bool:
            return kinds is None or kind in kinds

        sales: list[SaleRecord] = []
        expenses: list[ExpenseRecord] = []
        employees: list[EmployeeRecord] = []

        if date_range is None:
            fetch = source_fetch_limit(limit)
            if wanted(ActivityKind.SALE):
                sales = self.storage.read_recent_sales(owner_id, fetch)
            if wanted(ActivityKind.EXPENSE):
                expenses = self.storage.read_recent_expenses(owner_id, fetch)
            if wanted(ActivityKind.EMPLOYEE):
                employees = self.storage.read_recent_employees(owner_id, fetch)
        else:
            if wanted(ActivityKind.SALE):
                sales = self.storage.read_sales(
                    owner_id, start=date_range.start, end=date_range.end
                )
            if wanted(ActivityKind.EXPENSE):
                expenses = self.storage.read_expenses(
                    owner_id, start=date_range.start, end=date_range.end
                )
            if wanted(ActivityKind.EMPLOYEE):
                employees = self.storage.read_employees(owner_id)

        return sales, expenses, employees

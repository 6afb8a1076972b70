"""
Time bucketing for the sales/expense chart.

Daily bucketing covers every calendar day of the requested range, filling
days without records with zero. Weekly (ISO year/week) and monthly
(year/month) bucketing emit only buckets that contain at least one record.

All sums use plain float addition.
"""

from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable, Sequence

from biztrackr.models import BucketPeriod, ChartPoint, DateRange, ExpenseRecord, SaleRecord

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

DatedAmount = tuple[date, float]


def sale_amounts(sales: Iterable[SaleRecord]) -> list[DatedAmount]:
    """Revenue per sale, keyed by business date."""
    return [(sale.date, sale.revenue) for sale in sales]


def expense_amounts(expenses: Iterable[ExpenseRecord]) -> list[DatedAmount]:
    return [(expense.date, expense.amount) for expense in expenses]


def _point(label: str, sales: float, expenses: float) -> ChartPoint:
    return ChartPoint(label=label, sales=sales, expenses=expenses, profit=sales - expenses)


def _iso_week(day: date) -> tuple[int, int]:
    iso = day.isocalendar()
    return iso[0], iso[1]


def _month(day: date) -> tuple[int, int]:
    return day.year, day.month


def _sum_by(amounts: Iterable[DatedAmount], date_range: DateRange, key) -> dict:
    totals: dict = defaultdict(float)
    for day, amount in amounts:
        if date_range.contains(day):
            totals[key(day)] += amount
    return totals


def bucket_daily(
    sales: Sequence[DatedAmount],
    expenses: Sequence[DatedAmount],
    date_range: DateRange,
    daily_overhead: float = 0.0,
) -> list[ChartPoint]:
    """
    One point per calendar day from start to end inclusive.

    Args:
        sales: (date, revenue) pairs
        expenses: (date, amount) pairs
        date_range: Inclusive range; must satisfy start <= end
        daily_overhead: Fixed cost added to every day's expenses

    Returns:
        Chronologically ordered chart points, len == date_range.days
    """
    sales_by_day = _sum_by(sales, date_range, lambda d: d)
    expenses_by_day = _sum_by(expenses, date_range, lambda d: d)

    points = []
    day = date_range.start
    while day <= date_range.end:
        day_sales = sales_by_day.get(day, 0.0)
        day_expenses = expenses_by_day.get(day, 0.0) + daily_overhead
        points.append(_point(day.isoformat(), day_sales, day_expenses))
        day += timedelta(days=1)
    return points


def bucket_weekly(
    sales: Sequence[DatedAmount],
    expenses: Sequence[DatedAmount],
    date_range: DateRange,
) -> list[ChartPoint]:
    """
    One point per ISO week that has at least one record.

    Weeks are ordered by the earliest record date seen in each week.
    """
    sales_by_week = _sum_by(sales, date_range, _iso_week)
    expenses_by_week = _sum_by(expenses, date_range, _iso_week)

    earliest: dict = {}
    for day, _ in list(sales) + list(expenses):
        if date_range.contains(day):
            key = _iso_week(day)
            if key not in earliest or day < earliest[key]:
                earliest[key] = day

    points = []
    for key in sorted(earliest, key=lambda k: (earliest[k], k)):
        year, week = key
        points.append(
            _point(
                f"Week {year}-{week}",
                sales_by_week.get(key, 0.0),
                expenses_by_week.get(key, 0.0),
            )
        )
    return points


def bucket_monthly(
    sales: Sequence[DatedAmount],
    expenses: Sequence[DatedAmount],
    date_range: DateRange,
) -> list[ChartPoint]:
    """One point per calendar month that has at least one record, oldest first."""
    sales_by_month = _sum_by(sales, date_range, _month)
    expenses_by_month = _sum_by(expenses, date_range, _month)

    points = []
    for key in sorted(set(sales_by_month) | set(expenses_by_month)):
        year, month = key
        points.append(
            _point(
                f"{MONTH_ABBREVIATIONS[month - 1]} {year}",
                sales_by_month.get(key, 0.0),
                expenses_by_month.get(key, 0.0),
            )
        )
    return points


def build_chart(
    sales: Sequence[DatedAmount],
    expenses: Sequence[DatedAmount],
    date_range: DateRange,
    period: BucketPeriod = BucketPeriod.DAILY,
    daily_overhead: float = 0.0,
) -> list[ChartPoint]:
    """
    Bucket sales and expenses at the requested granularity.

    ``daily_overhead`` only applies to daily bucketing.
    """
    if period == BucketPeriod.WEEKLY:
        return bucket_weekly(sales, expenses, date_range)
    if period == BucketPeriod.MONTHLY:
        return bucket_monthly(sales, expenses, date_range)
    return bucket_daily(sales, expenses, date_range, daily_overhead=daily_overhead)

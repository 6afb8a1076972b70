"""
Recent-activity feed.

Merges the most recent sales, expenses and employees into one reverse
chronological list. Entries are ordered by business date (the sale or
expense date, an employee's hire date) so a back-dated record lands where
the owner expects it on the timeline rather than where it was typed in.
"""

from datetime import date, datetime
from typing import Iterable, Optional

from biztrackr.models import (
    ActivityItem,
    ActivityKind,
    DateRange,
    EmployeeRecord,
    ExpenseRecord,
    SaleRecord,
)

DEFAULT_ACTIVITY_LIMIT = 10
MIN_SOURCE_FETCH = 20

_KIND_ORDER = {ActivityKind.SALE: 0, ActivityKind.EXPENSE: 1, ActivityKind.EMPLOYEE: 2}


def source_fetch_limit(limit: int) -> int:
    """How many records to read from each collection for a feed of ``limit``."""
    return max(limit, MIN_SOURCE_FETCH)


def employee_activity_date(employee: EmployeeRecord) -> date:
    """Hire date, or the day the record was created when none is known."""
    return employee.hire_date or employee.created_at.date()


def _sale_item(sale: SaleRecord) -> ActivityItem:
    return ActivityItem(
        id=sale.id,
        kind=ActivityKind.SALE,
        description=f"Sale: {sale.item_name} ({sale.quantity}x)",
        amount=sale.revenue,
        date=sale.date,
    )


def _expense_item(expense: ExpenseRecord) -> ActivityItem:
    return ActivityItem(
        id=expense.id,
        kind=ActivityKind.EXPENSE,
        description=f"Expense: {expense.description}",
        amount=expense.amount,
        date=expense.date,
    )


def _employee_item(employee: EmployeeRecord) -> ActivityItem:
    return ActivityItem(
        id=employee.id,
        kind=ActivityKind.EMPLOYEE,
        description=f"Employee: {employee.name} ({employee.role.value})",
        amount=employee.monthly_salary,
        date=employee_activity_date(employee),
    )


def merge_activity(
    sales: Iterable[SaleRecord],
    expenses: Iterable[ExpenseRecord],
    employees: Iterable[EmployeeRecord],
    limit: int = DEFAULT_ACTIVITY_LIMIT,
    kinds: Optional[set[ActivityKind]] = None,
    date_range: Optional[DateRange] = None,
) -> list[ActivityItem]:
    """
    Build the activity feed.

    Args:
        sales: Recent sales
        expenses: Recent expenses
        employees: Recent employees
        limit: Maximum number of entries returned
        kinds: Restrict the feed to these kinds (all kinds when None)
        date_range: Keep only entries whose business date is in range

    Returns:
        At most ``limit`` items, newest business date first. Ties are broken
        by creation time (newest first), then sale/expense/employee, then id.
    """
    candidates: list[tuple[ActivityItem, datetime]] = []
    candidates.extend((_sale_item(s), s.created_at) for s in sales)
    candidates.extend((_expense_item(e), e.created_at) for e in expenses)
    candidates.extend((_employee_item(e), e.created_at) for e in employees)

    if kinds is not None:
        candidates = [c for c in candidates if c[0].kind in kinds]
    if date_range is not None:
        candidates = [c for c in candidates if date_range.contains(c[0].date)]

    # Two stable passes: ascending tie-breakers first, then descending times
    candidates.sort(key=lambda c: (_KIND_ORDER[c[0].kind], c[0].id))
    candidates.sort(key=lambda c: (c[0].date, c[1]), reverse=True)

    return [item for item, _ in candidates[: max(limit, 0)]]

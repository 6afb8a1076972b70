"""
Category attribution for the expense breakdown chart.

Expenses are grouped by their category label. Employee salaries are not
dated transactions, so they are injected as one synthetic category.
"""

from typing import Iterable

from biztrackr.models import CategoryBreakdown, ExpenseRecord

SALARIES_CATEGORY = "Employee Salaries"


def attribute_categories(
    expenses: Iterable[ExpenseRecord],
    total_salaries: float = 0.0,
) -> list[CategoryBreakdown]:
    """
    Sum expenses per category and compute each category's share.

    Args:
        expenses: Expense records (already filtered to the reporting range)
        total_salaries: Monthly salary total of all employees

    Returns:
        Breakdown sorted by amount descending. Ties keep first-seen order,
        with the salaries category placed after regular categories.

    Example:
        >>> attribute_categories([rent_300], total_salaries=700)
        [Employee Salaries 700.0 70.0%, Rent 300.0 30.0%]
    """
    totals: dict[str, float] = {}
    for expense in expenses:
        totals[expense.category] = totals.get(expense.category, 0.0) + expense.amount

    grouped = list(totals.items())
    if total_salaries > 0:
        grouped.append((SALARIES_CATEGORY, total_salaries))

    denominator = sum(amount for _, amount in grouped)

    breakdown = [
        CategoryBreakdown(
            category=category,
            amount=amount,
            percentage=(amount / denominator * 100) if denominator > 0 else 0.0,
        )
        for category, amount in grouped
    ]
    # sorted() is stable, so equal amounts keep grouping order
    return sorted(breakdown, key=lambda item: item.amount, reverse=True)

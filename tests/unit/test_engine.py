"""
Unit tests for the BizTrackr metrics engine.

Covers bucketing, category attribution, health classification, the
activity feed, date-range defaults and the storage-backed aggregator.
"""

import warnings
from datetime import date, datetime

import pytest

from biztrackr.engine.activity import employee_activity_date, merge_activity, source_fetch_limit
from biztrackr.engine.aggregator import (
    MetricsAggregator,
    aggregate_metrics,
    growth_window,
    legacy_total_sales,
    parse_date_param,
    profit_margin,
    resolve_date_range,
    sales_growth,
    total_revenue,
)
from biztrackr.engine.bucketing import build_chart, expense_amounts, sale_amounts
from biztrackr.engine.categories import SALARIES_CATEGORY, attribute_categories
from biztrackr.engine.errors import AggregationFailure, InvalidDateRange
from biztrackr.engine.health import classify_health
from biztrackr.models import ActivityKind, BucketPeriod, DateRange, HealthStatus
from biztrackr.storage.base import StorageError
from tests.conftest import (
    TODAY,
    at,
    make_employee,
    make_expense,
    make_inventory_item,
    make_sale,
)

JANUARY = DateRange(start=date(2024, 1, 1), end=date(2024, 1, 31))


# ============================================================================
# Time bucketing
# ============================================================================


class TestDailyBucketing:
    """Test daily chart generation."""

    def test_one_point_per_day_inclusive(self):
        points = build_chart([], [], JANUARY)
        assert len(points) == 31
        assert points[0].label == "2024-01-01"
        assert points[-1].label == "2024-01-31"

    def test_single_day_range(self):
        day = DateRange(start=date(2024, 1, 5), end=date(2024, 1, 5))
        assert [p.label for p in build_chart([], [], day)] == ["2024-01-05"]

    def test_missing_days_are_zero(self):
        points = build_chart([(date(2024, 1, 2), 50.0)], [], JANUARY)
        assert points[0].sales == 0.0
        assert points[0].expenses == 0.0
        assert points[1].sales == 50.0
        assert points[1].profit == 50.0

    def test_same_day_amounts_are_summed(self):
        sales = [(date(2024, 1, 3), 10.0), (date(2024, 1, 3), 15.0)]
        expenses = [(date(2024, 1, 3), 5.0)]
        point = build_chart(sales, expenses, JANUARY)[2]
        assert point.sales == 25.0
        assert point.expenses == 5.0
        assert point.profit == 20.0

    def test_out_of_range_records_ignored(self):
        points = build_chart([(date(2023, 12, 31), 99.0)], [(date(2024, 2, 1), 9.0)], JANUARY)
        assert sum(p.sales for p in points) == 0.0
        assert sum(p.expenses for p in points) == 0.0

    def test_daily_overhead_added_to_every_day(self):
        points = build_chart([], [(date(2024, 1, 1), 30.0)], JANUARY, daily_overhead=10.0)
        assert points[0].expenses == 40.0
        assert all(p.expenses == 10.0 for p in points[1:])
        assert points[5].profit == -10.0

    def test_sale_amounts_include_quantity(self):
        sale = make_sale(unit_amount=5.0, quantity=40, sale_date=date(2024, 1, 15))
        assert sale_amounts([sale]) == [(date(2024, 1, 15), 200.0)]

    def test_expense_amounts(self):
        expense = make_expense(amount=300.0, expense_date=date(2024, 1, 10))
        assert expense_amounts([expense]) == [(date(2024, 1, 10), 300.0)]


class TestWeeklyAndMonthlyBucketing:
    """Weekly and monthly buckets only exist where records exist."""

    def test_weekly_labels_use_iso_week(self):
        sales = [(date(2024, 1, 2), 10.0), (date(2024, 1, 10), 20.0)]
        expenses = [(date(2024, 1, 3), 4.0)]
        points = build_chart(sales, expenses, JANUARY, period=BucketPeriod.WEEKLY)
        assert [p.label for p in points] == ["Week 2024-1", "Week 2024-2"]
        assert points[0].sales == 10.0
        assert points[0].expenses == 4.0
        assert points[0].profit == 6.0

    def test_weekly_does_not_fill_gaps(self):
        sales = [(date(2024, 1, 2), 10.0), (date(2024, 1, 24), 20.0)]
        points = build_chart(sales, [], JANUARY, period=BucketPeriod.WEEKLY)
        assert [p.label for p in points] == ["Week 2024-1", "Week 2024-4"]

    def test_weekly_ignores_overhead(self):
        points = build_chart(
            [(date(2024, 1, 2), 10.0)], [], JANUARY, period=BucketPeriod.WEEKLY, daily_overhead=5.0
        )
        assert points[0].expenses == 0.0

    def test_monthly_labels_and_gaps(self):
        quarter = DateRange(start=date(2024, 1, 1), end=date(2024, 3, 31))
        sales = [(date(2024, 3, 3), 7.0), (date(2024, 1, 5), 3.0)]
        points = build_chart(sales, [], quarter, period=BucketPeriod.MONTHLY)
        assert [p.label for p in points] == ["Jan 2024", "Mar 2024"]
        assert [p.sales for p in points] == [3.0, 7.0]

    def test_empty_weekly_chart(self):
        assert build_chart([], [], JANUARY, period=BucketPeriod.WEEKLY) == []


# ============================================================================
# Category attribution
# ============================================================================


class TestCategoryAttribution:
    """Test expense breakdown with the synthetic salaries entry."""

    def test_salaries_appended_and_sorted(self):
        breakdown = attribute_categories([make_expense(category="Rent", amount=300.0)], 700.0)
        assert [b.category for b in breakdown] == [SALARIES_CATEGORY, "Rent"]
        assert breakdown[0].amount == 700.0
        assert breakdown[0].percentage == pytest.approx(70.0)
        assert breakdown[1].percentage == pytest.approx(30.0)

    def test_groups_same_category(self):
        expenses = [
            make_expense(category="Utilities", amount=40.0),
            make_expense(category="Rent", amount=100.0),
            make_expense(category="Utilities", amount=80.0),
        ]
        breakdown = attribute_categories(expenses)
        assert [(b.category, b.amount) for b in breakdown] == [("Utilities", 120.0), ("Rent", 100.0)]

    def test_no_salaries_entry_when_zero(self):
        breakdown = attribute_categories([make_expense(category="Rent")], 0.0)
        assert [b.category for b in breakdown] == ["Rent"]

    def test_ties_keep_first_seen_order(self):
        expenses = [make_expense(category="B", amount=50.0), make_expense(category="A", amount=50.0)]
        breakdown = attribute_categories(expenses, 50.0)
        assert [b.category for b in breakdown] == ["B", "A", SALARIES_CATEGORY]

    def test_zero_amounts_have_zero_percentage(self):
        breakdown = attribute_categories([make_expense(amount=0.0)])
        assert breakdown[0].percentage == 0.0

    def test_empty(self):
        assert attribute_categories([]) == []


# ============================================================================
# Health classification
# ============================================================================


class TestHealthClassification:
    """Test precedence order and independent flags."""

    def test_healthy(self):
        health = classify_health(25.0, 0, 0, 100.0)
        assert health.status == HealthStatus.HEALTHY
        assert (health.is_critical, health.has_warnings, health.is_healthy) == (False, False, True)

    def test_stable_between_thresholds(self):
        assert classify_health(15.0, 0, 0, 100.0).status == HealthStatus.STABLE

    def test_stable_when_low_stock_blocks_healthy(self):
        health = classify_health(25.0, 3, 0, 100.0)
        assert health.status == HealthStatus.STABLE
        assert health.is_healthy is False

    def test_negative_margin_is_critical(self):
        health = classify_health(-5.0, 0, 0, -50.0)
        assert health.status == HealthStatus.CRITICAL
        assert health.is_critical is True
        assert health.has_warnings is True

    def test_out_of_stock_is_critical(self):
        assert classify_health(30.0, 0, 4, 500.0).status == HealthStatus.CRITICAL

    def test_large_loss_is_critical(self):
        assert classify_health(50.0, 0, 0, -1500.0).status == HealthStatus.CRITICAL

    def test_low_margin_needs_attention(self):
        assert classify_health(5.0, 0, 0, 10.0).status == HealthStatus.NEEDS_ATTENTION

    def test_many_low_stock_needs_attention(self):
        health = classify_health(30.0, 6, 0, 500.0)
        assert health.status == HealthStatus.NEEDS_ATTENTION
        assert health.is_healthy is False

    def test_critical_takes_precedence_over_healthy_flags(self):
        health = classify_health(30.0, 0, 4, 500.0)
        assert health.is_healthy is True
        assert health.status == HealthStatus.CRITICAL


# ============================================================================
# Activity feed
# ============================================================================


class TestActivityFeed:
    """Test merging, ordering, templates and filters."""

    def test_templates(self):
        sale = make_sale(quantity=40)
        expense = make_expense(description="Monthly rent")
        employee = make_employee(name="Jane Doe")
        items = merge_activity([sale], [expense], [employee])
        by_kind = {item.kind: item for item in items}
        assert by_kind[ActivityKind.SALE].description == "Sale: Soap (40x)"
        assert by_kind[ActivityKind.SALE].amount == 200.0
        assert by_kind[ActivityKind.EXPENSE].description == "Expense: Monthly rent"
        assert by_kind[ActivityKind.EMPLOYEE].description == "Employee: Jane Doe (Manager)"
        assert by_kind[ActivityKind.EMPLOYEE].amount == 1000.0

    def test_newest_business_date_first(self):
        sale = make_sale(sale_date=date(2024, 1, 20), created_at=at(date(2024, 1, 20)))
        expense = make_expense(expense_date=date(2024, 1, 25), created_at=at(date(2024, 1, 21)))
        employee = make_employee(hire_date=date(2024, 1, 22), created_at=at(date(2024, 1, 1)))
        items = merge_activity([sale], [expense], [employee])
        assert [i.kind for i in items] == [
            ActivityKind.EXPENSE,
            ActivityKind.EMPLOYEE,
            ActivityKind.SALE,
        ]

    def test_back_dated_record_sorts_by_business_date(self):
        backdated = make_sale(sale_date=date(2024, 1, 10), created_at=at(date(2024, 1, 30)))
        expense = make_expense(expense_date=date(2024, 1, 15), created_at=at(date(2024, 1, 15)))
        items = merge_activity([backdated], [expense], [])
        assert [i.kind for i in items] == [ActivityKind.EXPENSE, ActivityKind.SALE]

    def test_same_date_newer_creation_first(self):
        older = make_sale(item_name="Older", created_at=datetime(2024, 1, 31, 8))
        newer = make_sale(item_name="Newer", created_at=datetime(2024, 1, 31, 9))
        items = merge_activity([older, newer], [], [])
        assert items[0].description.startswith("Sale: Newer")

    def test_full_tie_orders_by_kind(self):
        stamp = at(TODAY)
        sale = make_sale(created_at=stamp)
        expense = make_expense(created_at=stamp)
        employee = make_employee(hire_date=TODAY, created_at=stamp)
        items = merge_activity([sale], [expense], [employee])
        assert [i.kind for i in items] == [
            ActivityKind.SALE,
            ActivityKind.EXPENSE,
            ActivityKind.EMPLOYEE,
        ]

    def test_truncates_to_limit(self):
        sales = [make_sale(sale_date=date(2024, 1, d)) for d in range(1, 6)]
        items = merge_activity(sales, [], [], limit=3)
        assert [i.date.day for i in items] == [5, 4, 3]

    def test_kind_filter(self):
        items = merge_activity(
            [make_sale()], [make_expense()], [make_employee()], kinds={ActivityKind.EXPENSE}
        )
        assert [i.kind for i in items] == [ActivityKind.EXPENSE]

    def test_date_range_filter(self):
        sales = [make_sale(sale_date=date(2024, 1, 5)), make_sale(sale_date=date(2024, 2, 5))]
        items = merge_activity(sales, [], [], date_range=JANUARY)
        assert [i.date for i in items] == [date(2024, 1, 5)]

    def test_employee_without_hire_date_uses_creation_day(self):
        employee = make_employee(hire_date=None, created_at=datetime(2024, 1, 12, 15))
        assert employee_activity_date(employee) == date(2024, 1, 12)

    def test_source_fetch_limit_has_floor(self):
        assert source_fetch_limit(5) == 20
        assert source_fetch_limit(50) == 50

    def test_empty_sources(self):
        assert merge_activity([], [], []) == []


# ============================================================================
# Date ranges and pure aggregates
# ============================================================================


class TestDateRanges:
    """Test date-range defaults and validation."""

    def test_defaults_to_trailing_window(self):
        date_range = resolve_date_range(today=TODAY)
        assert date_range.start == date(2024, 1, 1)
        assert date_range.end == TODAY
        assert date_range.days == 31

    def test_missing_start_counts_back_from_end(self):
        date_range = resolve_date_range(end=date(2024, 3, 31), today=TODAY)
        assert date_range.start == date(2024, 3, 1)

    def test_missing_end_is_today(self):
        date_range = resolve_date_range(start=date(2024, 1, 20), today=TODAY)
        assert date_range.end == TODAY

    def test_start_after_end_rejected(self):
        with pytest.raises(InvalidDateRange) as exc_info:
            resolve_date_range(date(2024, 2, 1), date(2024, 1, 1))
        assert exc_info.value.code == "INVALID_DATE_RANGE"
        assert exc_info.value.status_code == 400

    def test_parse_date_param(self):
        assert parse_date_param("2024-01-15", "start_date") == date(2024, 1, 15)
        assert parse_date_param(None, "start_date") is None
        assert parse_date_param("", "start_date") is None

    def test_parse_date_param_rejects_garbage(self):
        with pytest.raises(InvalidDateRange) as exc_info:
            parse_date_param("2024-13-01", "end_date")
        assert exc_info.value.details == {"end_date": "2024-13-01"}


class TestPureAggregates:
    """Test revenue, margin and growth helpers."""

    def test_total_revenue_counts_quantity(self):
        sales = [make_sale(unit_amount=5.0, quantity=40), make_sale(unit_amount=2.5, quantity=2)]
        assert total_revenue(sales) == 205.0

    def test_legacy_total_sales_is_deprecated(self):
        with pytest.warns(DeprecationWarning):
            assert legacy_total_sales([make_sale(unit_amount=5.0, quantity=40)]) == 5.0

    def test_total_revenue_does_not_warn(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            total_revenue([make_sale()])

    def test_profit_margin_rounds_to_two_places(self):
        assert profit_margin(1.0, 3.0) == 33.33

    def test_profit_margin_zero_without_sales(self):
        assert profit_margin(-500.0, 0.0) == 0.0

    def test_sales_growth_windows(self):
        # Current window is Jan 2..Jan 31, previous is Dec 3..Jan 1
        sales = [
            make_sale(unit_amount=100.0, sale_date=date(2024, 1, 1)),
            make_sale(unit_amount=150.0, sale_date=date(2024, 1, 2)),
            make_sale(unit_amount=999.0, sale_date=date(2023, 12, 2)),
        ]
        assert sales_growth(sales, TODAY) == 50.0

    def test_sales_growth_zero_without_previous_sales(self):
        assert sales_growth([make_sale(sale_date=TODAY)], TODAY) == 0.0

    def test_growth_window_spans_both_periods(self):
        window = growth_window(TODAY)
        assert window.days == 60
        assert window.start == date(2023, 12, 3)


class TestAggregateMetrics:
    """Test the combined dashboard snapshot."""

    def _worked_example(self):
        return aggregate_metrics(
            sales=[make_sale(quantity=40, sale_date=date(2024, 1, 15))],
            expenses=[make_expense(amount=300.0, expense_date=date(2024, 1, 10))],
            employees=[make_employee(monthly_salary=700.0)],
            inventory=[make_inventory_item(stock_count=10, cost_price=1.0, reorder_threshold=10)],
            date_range=JANUARY,
        )

    def test_totals(self):
        metrics = self._worked_example()
        assert metrics.total_sales == 200.0
        assert metrics.total_expenses == 300.0
        assert metrics.total_salaries == 700.0
        assert metrics.total_expenses_with_salaries == 1000.0
        assert metrics.net_profit == -800.0
        assert metrics.profit_margin == -400.0
        assert metrics.health.status == HealthStatus.CRITICAL

    def test_inventory_figures(self):
        metrics = self._worked_example()
        assert metrics.total_inventory_value == 10.0
        assert metrics.low_stock_items == 1
        assert metrics.out_of_stock_items == 0
        assert metrics.total_products == 1
        assert metrics.employee_count == 1

    def test_chart_includes_salary_overhead(self):
        metrics = self._worked_example()
        assert len(metrics.chart_data) == 31
        assert metrics.chart_data[9].expenses == pytest.approx(300.0 + 700.0 / 30)
        assert metrics.chart_data[14].sales == 200.0

    def test_records_outside_range_excluded(self):
        metrics = aggregate_metrics(
            sales=[make_sale(unit_amount=10.0, sale_date=date(2023, 12, 20))],
            expenses=[],
            employees=[],
            inventory=[],
            date_range=JANUARY,
        )
        assert metrics.total_sales == 0.0

    def test_empty_collections_aggregate_to_zero(self):
        metrics = aggregate_metrics([], [], [], [], JANUARY)
        assert metrics.total_sales == 0.0
        assert metrics.net_profit == 0.0
        assert metrics.profit_margin == 0.0
        assert metrics.category_data == []
        assert metrics.health.status == HealthStatus.NEEDS_ATTENTION


# ============================================================================
# Storage-backed aggregator
# ============================================================================


class TestMetricsAggregator:
    """Test MetricsAggregator against in-memory storage."""

    def test_compute_worked_example(self, populated_storage, owner_id):
        metrics = MetricsAggregator(populated_storage).compute(owner_id, today=TODAY)
        assert metrics.start_date == date(2024, 1, 1)
        assert metrics.total_sales == 200.0
        assert metrics.net_profit == -800.0
        assert metrics.total_inventory_value == 11.0
        assert metrics.low_stock_items == 1
        assert [c.category for c in metrics.category_data] == [SALARIES_CATEGORY, "Rent"]

    def test_compute_includes_recent_activity(self, populated_storage, owner_id):
        metrics = MetricsAggregator(populated_storage).compute(owner_id, today=TODAY)
        assert [i.kind for i in metrics.recent_activity] == [
            ActivityKind.SALE,
            ActivityKind.EXPENSE,
            ActivityKind.EMPLOYEE,
        ]

    def test_other_owners_are_invisible(self, populated_storage):
        metrics = MetricsAggregator(populated_storage).compute("someone_else", today=TODAY)
        assert metrics.total_sales == 0.0
        assert metrics.employee_count == 0

    def test_compute_wraps_storage_errors(self, mock_storage, owner_id):
        mock_storage.fail = True
        with pytest.raises(AggregationFailure) as exc_info:
            MetricsAggregator(mock_storage).compute(owner_id, today=TODAY)
        assert exc_info.value.code == "METRICS_FETCH_ERROR"
        assert isinstance(exc_info.value.__cause__, StorageError)

    def test_compute_rejects_inverted_range(self, mock_storage, owner_id):
        with pytest.raises(InvalidDateRange):
            MetricsAggregator(mock_storage).compute(
                owner_id, start_date=date(2024, 2, 1), end_date=date(2024, 1, 1)
            )

    def test_chart_has_no_overhead(self, populated_storage, owner_id):
        points = MetricsAggregator(populated_storage).chart(owner_id, today=TODAY)
        assert len(points) == 31
        assert points[0].expenses == 0.0

    def test_chart_error_code(self, mock_storage, owner_id):
        mock_storage.fail = True
        with pytest.raises(AggregationFailure) as exc_info:
            MetricsAggregator(mock_storage).chart(owner_id, today=TODAY)
        assert exc_info.value.code == "CHART_DATA_FETCH_ERROR"

    def test_recent_activity_error_code(self, mock_storage, owner_id):
        mock_storage.fail = True
        with pytest.raises(AggregationFailure) as exc_info:
            MetricsAggregator(mock_storage).recent_activity(owner_id, 10)
        assert exc_info.value.code == "RECENT_ACTIVITY_FETCH_ERROR"

    def test_recent_activity_date_range_reaches_older_records(self, mock_storage, owner_id):
        mock_storage.write_sale(
            make_sale(item_name="Old", sale_date=date(2024, 1, 10), created_at=at(date(2024, 1, 10)))
        )
        for hour in range(25):
            mock_storage.write_sale(
                make_sale(sale_date=date(2024, 6, 1), created_at=at(date(2024, 6, 1), hour=hour % 24))
            )

        items = MetricsAggregator(mock_storage).recent_activity(owner_id, 10, date_range=JANUARY)

        assert len(items) == 1
        assert items[0].description == "Sale: Old (1x)"
        assert items[0].date == date(2024, 1, 10)

    def test_recent_activity_date_range_includes_employees(self, populated_storage, owner_id):
        items = MetricsAggregator(populated_storage).recent_activity(
            owner_id, 10, kinds={ActivityKind.EMPLOYEE}, date_range=JANUARY
        )
        assert [i.kind for i in items] == [ActivityKind.EMPLOYEE]

    def test_recent_activity_skips_unrequested_sources(self, populated_storage, owner_id):
        class SalesOnlyStorage(type(populated_storage)):
            def read_recent_expenses(self, owner_id, limit):
                raise StorageError("expenses unavailable")

            def read_recent_employees(self, owner_id, limit):
                raise StorageError("employees unavailable")

        storage = SalesOnlyStorage()
        storage.sales = populated_storage.sales

        items = MetricsAggregator(storage).recent_activity(owner_id, 10, kinds={ActivityKind.SALE})
        assert [i.kind for i in items] == [ActivityKind.SALE]

    def test_compute_activity_read_failure_is_metrics_error(self, populated_storage, owner_id):
        class RecentSalesDown(type(populated_storage)):
            def read_recent_sales(self, owner_id, limit):
                raise StorageError("recent sales unavailable")

        storage = RecentSalesDown()
        storage.sales = populated_storage.sales

        with pytest.raises(AggregationFailure) as exc_info:
            MetricsAggregator(storage).compute(owner_id, today=TODAY)
        assert exc_info.value.code == "METRICS_FETCH_ERROR"
        assert isinstance(exc_info.value.__cause__, StorageError)

"""
BizTrackr metrics engine.

Leaf first:

- Time bucketing: dated amounts into daily, weekly or monthly chart points
- Category attribution: expense breakdown with a synthetic salaries entry
- Health classification: four-level label from margin, profit and stock
- Activity merging: one reverse chronological feed across collections
- Aggregation: everything above combined into one DashboardMetrics

The bucketing, attribution, classification and merging steps are pure
functions; only the aggregator touches storage. Insights and export build
on the aggregator and live in ``engine.insights`` and ``engine.export``;
voice sale entry lives in ``engine.voice``.
"""

__all__ = [
    "MetricsAggregator",
    "aggregate_metrics",
    "attribute_categories",
    "build_chart",
    "classify_health",
    "merge_activity",
    "resolve_date_range",
]

from biztrackr.engine.activity import merge_activity
from biztrackr.engine.aggregator import MetricsAggregator, aggregate_metrics, resolve_date_range
from biztrackr.engine.bucketing import build_chart
from biztrackr.engine.categories import attribute_categories
from biztrackr.engine.health import classify_health

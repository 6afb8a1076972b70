"""
Dashboard router - metrics snapshot, chart data and the activity feed.

Wired to:
- MetricsAggregator for totals, chart and activity
- StorageBackend injected from application state
"""

from typing import Optional

from fastapi import APIRouter, Depends

from biztrackr.auth.dependencies import get_current_owner_id
from biztrackr.config import Settings, get_settings
from biztrackr.engine.aggregator import MetricsAggregator, parse_date_param, resolve_date_range
from biztrackr.engine.errors import ValidationFailure
from biztrackr.models import ActivityKind, ActivityQuery, BucketPeriod
from biztrackr.storage import StorageBackend, get_storage
from biztrackr.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


def get_aggregator(
    storage: StorageBackend = Depends(get_storage),
    settings: Settings = Depends(get_settings),
) -> MetricsAggregator:
    return MetricsAggregator(storage, settings)


def _clamp_limit(limit: int, settings: Settings) -> int:
    if limit < 1:
        raise ValidationFailure(
            "limit must be at least 1", details={"limit": limit}, code="INVALID_LIMIT"
        )
    return min(limit, settings.activity_max_limit)


@router.get("/metrics")
def get_dashboard_metrics(
    owner_id: str = Depends(get_current_owner_id),
    aggregator: MetricsAggregator = Depends(get_aggregator),
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
):
    """
    Composite dashboard snapshot.

    Defaults to the trailing 30 days ending today when no range is given.
    """
    metrics = aggregator.compute(
        owner_id,
        start_date=parse_date_param(start_date, "start_date"),
        end_date=parse_date_param(end_date, "end_date"),
    )
    return {"success": True, "data": metrics.model_dump(mode="json")}


@router.get("/chart-data")
def get_chart_data(
    owner_id: str = Depends(get_current_owner_id),
    aggregator: MetricsAggregator = Depends(get_aggregator),
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    period: str = "daily",
):
    """
    Sales and expenses bucketed by day, ISO week or month.

    Unknown ``period`` values fall back to daily.
    """
    try:
        bucket_period = BucketPeriod(period)
    except ValueError:
        bucket_period = BucketPeriod.DAILY

    points = aggregator.chart(
        owner_id,
        start_date=parse_date_param(start_date, "start_date"),
        end_date=parse_date_param(end_date, "end_date"),
        period=bucket_period,
    )
    logger.info("chart_data", owner_id=owner_id, period=bucket_period.value, points=len(points))
    return {"success": True, "data": [point.model_dump(mode="json") for point in points]}


@router.get("/recent-activity")
def get_recent_activity(
    owner_id: str = Depends(get_current_owner_id),
    aggregator: MetricsAggregator = Depends(get_aggregator),
    settings: Settings = Depends(get_settings),
    limit: Optional[int] = None,
):
    """Merged feed of recent sales, expenses and hires (max 50 entries)."""
    limit = _clamp_limit(settings.activity_default_limit if limit is None else limit, settings)
    items = aggregator.recent_activity(owner_id, limit)
    return {"success": True, "data": [item.model_dump(mode="json") for item in items]}


@router.post("/recent-activity")
def filter_recent_activity(
    query: ActivityQuery,
    owner_id: str = Depends(get_current_owner_id),
    aggregator: MetricsAggregator = Depends(get_aggregator),
    settings: Settings = Depends(get_settings),
):
    """
    Activity feed filtered by kind and business-date range.

    Raises 400 INVALID_TYPES for kinds other than sale, expense or employee.
    """
    kinds = None
    if query.kinds is not None:
        valid = {kind.value for kind in ActivityKind}
        invalid = [kind for kind in query.kinds if kind not in valid]
        if invalid:
            raise ValidationFailure(
                "Invalid activity types",
                details={"invalid": invalid, "allowed": sorted(valid)},
                code="INVALID_TYPES",
            )
        kinds = {ActivityKind(kind) for kind in query.kinds}

    date_range = None
    if query.start_date or query.end_date:
        date_range = resolve_date_range(
            query.start_date, query.end_date, default_days=settings.default_range_days
        )

    limit = _clamp_limit(query.limit, settings)
    items = aggregator.recent_activity(owner_id, limit, kinds=kinds, date_range=date_range)
    logger.info("recent_activity_filtered", owner_id=owner_id, count=len(items))
    return {"success": True, "data": [item.model_dump(mode="json") for item in items]}

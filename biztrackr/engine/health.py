"""
Business health classification.

Maps a handful of headline metrics onto a four-level label. Rules are
evaluated in precedence order and the first match wins:

    CRITICAL         margin < 0, or out of stock > 3, or net profit < -1000
    NEEDS ATTENTION  margin < 10, or low stock > 5, or net profit < 0
    HEALTHY          margin > 20, and low stock < 3, and net profit > 0
    STABLE           otherwise

The three boolean flags on the assessment are the raw rule conditions and
are evaluated independently of precedence.
"""

from biztrackr.models import HealthAssessment, HealthStatus

# ============================================================================
# Thresholds
# ============================================================================

CRITICAL_MARGIN_BELOW = 0.0
CRITICAL_OUT_OF_STOCK_ABOVE = 3
CRITICAL_NET_PROFIT_BELOW = -1000.0

WARNING_MARGIN_BELOW = 10.0
WARNING_LOW_STOCK_ABOVE = 5
WARNING_NET_PROFIT_BELOW = 0.0

HEALTHY_MARGIN_ABOVE = 20.0
HEALTHY_LOW_STOCK_BELOW = 3
HEALTHY_NET_PROFIT_ABOVE = 0.0


def classify_health(
    profit_margin: float,
    low_stock_count: int,
    out_of_stock_count: int,
    net_profit: float,
) -> HealthAssessment:
    """
    Classify business health from profit figures and stock alerts.

    Args:
        profit_margin: Net profit over sales, in percent
        low_stock_count: Items at or below their reorder threshold
        out_of_stock_count: Items with zero stock
        net_profit: Sales minus expenses and salaries

    Returns:
        HealthAssessment with the label and the independent rule flags
    """
    is_critical = (
        profit_margin < CRITICAL_MARGIN_BELOW
        or out_of_stock_count > CRITICAL_OUT_OF_STOCK_ABOVE
        or net_profit < CRITICAL_NET_PROFIT_BELOW
    )
    has_warnings = (
        profit_margin < WARNING_MARGIN_BELOW
        or low_stock_count > WARNING_LOW_STOCK_ABOVE
        or net_profit < WARNING_NET_PROFIT_BELOW
    )
    is_healthy = (
        profit_margin > HEALTHY_MARGIN_ABOVE
        and low_stock_count < HEALTHY_LOW_STOCK_BELOW
        and net_profit > HEALTHY_NET_PROFIT_ABOVE
    )

    if is_critical:
        status = HealthStatus.CRITICAL
    elif has_warnings:
        status = HealthStatus.NEEDS_ATTENTION
    elif is_healthy:
        status = HealthStatus.HEALTHY
    else:
        status = HealthStatus.STABLE

    return HealthAssessment(
        status=status,
        is_critical=is_critical,
        has_warnings=has_warnings,
        is_healthy=is_healthy,
    )

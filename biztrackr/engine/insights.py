"""
AI insights report and BizBot chat assistant.

Both features build a prompt from the dashboard snapshot and hand it to a
TextGenerator. The insights report never fails for lack of a model: when
no generator is configured, the call fails, or the model returns nothing,
a deterministic report is assembled locally from the same figures. Chat
has no local equivalent and surfaces generator problems to the caller.
"""

from datetime import date
from typing import Optional, Sequence

import structlog

from biztrackr.config import Settings, get_settings
from biztrackr.connectors.text_generator import TextGenerator
from biztrackr.models import (
    ChatReply,
    DashboardMetrics,
    EmployeeRecord,
    ExpenseRecord,
    InsightAlerts,
    InsightMetrics,
    InsightReport,
    InventoryRecord,
    SaleRecord,
    StockAlert,
)
from biztrackr.storage.base import StorageBackend, StorageError

from .aggregator import MetricsAggregator
from .errors import (
    AggregationFailure,
    TextGenerationError,
    TextGenerationUnavailable,
    ValidationFailure,
)

logger = structlog.get_logger()

SOURCE_LLM = "llm"
SOURCE_FALLBACK = "fallback"

RECENT_RECORDS_IN_PROMPT = 10

ANALYST_SYSTEM_PROMPT = (
    "You are BizBot, an AI business analyst for BizTrackr. You review small-business "
    "bookkeeping data and give concise, actionable advice in a professional but "
    "friendly tone."
)


def _money(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


# ============================================================================
# Metrics and alerts
# ============================================================================


def build_alerts(inventory: Sequence[InventoryRecord]) -> InsightAlerts:
    """
    Split stock problems into low-stock and out-of-stock lists.

    ``low_stock`` holds items at or below their threshold that still have
    units on hand; empty items are listed only under ``out_of_stock``.
    """
    low_stock = []
    out_of_stock = []
    for item in inventory:
        alert = StockAlert(
            name=item.product_name,
            current=item.stock_count,
            minimum=item.reorder_threshold,
        )
        if item.is_out_of_stock:
            out_of_stock.append(alert)
        elif item.is_low_stock:
            low_stock.append(alert)
    return InsightAlerts(low_stock=low_stock, out_of_stock=out_of_stock)


def build_insight_metrics(
    metrics: DashboardMetrics, inventory: Sequence[InventoryRecord]
) -> InsightMetrics:
    return InsightMetrics(
        total_sales=metrics.total_sales,
        total_expenses=metrics.total_expenses,
        total_salaries=metrics.total_salaries,
        total_expenses_with_salaries=metrics.total_expenses_with_salaries,
        net_profit=metrics.net_profit,
        profit_margin=metrics.profit_margin,
        sales_growth=metrics.sales_growth,
        low_stock_count=metrics.low_stock_items,
        out_of_stock_count=metrics.out_of_stock_items,
        employee_count=metrics.employee_count,
        total_inventory_value=metrics.total_inventory_value,
        total_inventory_retail_value=sum(
            item.stock_count * item.selling_price for item in inventory
        ),
        health_status=metrics.health.status,
        is_healthy=metrics.health.is_healthy,
        has_warnings=metrics.health.has_warnings,
        is_critical=metrics.health.is_critical,
    )


# ============================================================================
# Prompts
# ============================================================================


def build_insights_prompt(
    metrics: InsightMetrics,
    alerts: InsightAlerts,
    sales: Sequence[SaleRecord],
    expenses: Sequence[ExpenseRecord],
    employees: Sequence[EmployeeRecord],
) -> str:
    """Render the analyst prompt from the snapshot and recent records."""
    lines = [
        "Analyze this business data and provide actionable insights.",
        "",
        "FINANCIAL SUMMARY:",
        f"- Total Sales: {_money(metrics.total_sales)}",
        f"- Operating Expenses: {_money(metrics.total_expenses)}",
        f"- Monthly Salaries: {_money(metrics.total_salaries)}",
        f"- Total Expenses (incl. salaries): {_money(metrics.total_expenses_with_salaries)}",
        f"- Net Profit: {_money(metrics.net_profit)}",
        f"- Profit Margin: {metrics.profit_margin:.1f}%",
        f"- Sales Growth (30 days): {metrics.sales_growth:.1f}%",
        f"- Health Status: {metrics.health_status.value}",
        "",
        f"RECENT SALES ({len(sales)} transactions):",
    ]
    lines += [
        f"- {s.item_name}: {s.quantity} x {_money(s.unit_amount)} = {_money(s.revenue)} ({s.date.isoformat()})"
        for s in sales
    ]
    lines += ["", f"RECENT EXPENSES ({len(expenses)} entries):"]
    lines += [
        f"- {e.category}: {_money(e.amount)} ({e.description})" for e in expenses
    ]
    lines += [
        "",
        "INVENTORY STATUS:",
        f"- Stock value at cost: {_money(metrics.total_inventory_value)}",
        f"- Stock value at retail: {_money(metrics.total_inventory_retail_value)}",
        f"- Low stock: {metrics.low_stock_count} items, out of stock: {metrics.out_of_stock_count} items",
    ]
    lines += [
        f"- LOW: {a.name}: only {a.current} left (min {a.minimum})" for a in alerts.low_stock
    ]
    lines += [f"- OUT: {a.name} (min {a.minimum})" for a in alerts.out_of_stock]
    lines += ["", f"EMPLOYEES: {len(employees)} team members"]
    lines += [
        f"- {e.name}: {e.role.value} ({_money(e.monthly_salary)}/month)" for e in employees
    ]
    lines += [
        "",
        "Please provide:",
        "1. Business Health Summary (2-3 sentences)",
        "2. Key Insights & Trends (3-4 bullet points)",
        "3. Actionable Recommendations (3-4 specific suggestions)",
        "4. Priority Actions (what to do first)",
        "",
        "Keep it concise, actionable, and business-focused.",
    ]
    return "\n".join(lines)


def build_chat_system_prompt(metrics: DashboardMetrics, total_products: int) -> str:
    """BizBot persona plus a one-screen business snapshot."""
    top = metrics.category_data[0] if metrics.category_data else None
    top_line = f"{top.category} ({_money(top.amount)})" if top else "N/A"
    return "\n".join([
        "You are a friendly, helpful business assistant chatbot named BizBot.",
        "Answer the user's question naturally and conversationally based on their business data.",
        "",
        "BUSINESS DATA:",
        f"- Total Sales: {_money(metrics.total_sales)}",
        f"- Total Expenses: {_money(metrics.total_expenses_with_salaries)}",
        f"- Net Profit: {_money(metrics.net_profit)}",
        f"- Profit Margin: {metrics.profit_margin:.1f}%",
        f"- Total Products: {total_products}",
        f"- Low Stock Items: {metrics.low_stock_items}",
        f"- Top Expense Category: {top_line}",
        "",
        "INSTRUCTIONS:",
        "- Respond naturally like a friendly business advisor",
        "- Keep it brief (2-3 sentences)",
        "- Provide actionable advice if possible",
        "- If data is missing, say so politely",
    ])


# ============================================================================
# Local report
# ============================================================================


def fallback_report(metrics: InsightMetrics, alerts: InsightAlerts) -> str:
    """
    Deterministic markdown report built without a model.

    Sections: Business Health Summary, Key Insights, Recommendations and
    Priority Actions. Restock items are named when any are low or empty.
    """
    profitable = metrics.net_profit >= 0
    restock = [a.name for a in alerts.out_of_stock] + [a.name for a in alerts.low_stock]

    summary = (
        f"Your business is rated **{metrics.health_status.value}**. Sales of "
        f"{_money(metrics.total_sales)} against {_money(metrics.total_expenses_with_salaries)} "
        f"in expenses (including {_money(metrics.total_salaries)} in salaries) leave a net "
        f"{'profit' if profitable else 'loss'} of {_money(abs(metrics.net_profit))}."
    )

    insights = [
        f"- Profit Margin: {metrics.profit_margin:.1f}%",
        f"- Sales Growth (30 days): {metrics.sales_growth:.1f}%",
        f"- Inventory: {metrics.low_stock_count} items low, {metrics.out_of_stock_count} out of stock",
        f"- Team Size: {metrics.employee_count} employees",
    ]

    recommendations = []
    if restock:
        recommendations.append(f"- Restock low inventory items: {', '.join(restock)}")
    else:
        recommendations.append("- Inventory levels are healthy")
    if profitable:
        recommendations.append("- Continue current profitable strategies")
    else:
        recommendations.append("- Review expenses to improve profitability")
    if metrics.sales_growth < 0:
        recommendations.append("- Investigate the drop in sales against the previous 30 days")
    recommendations.append("- Monitor cash flow and keep records up to date")

    priorities = [
        "1. Immediate restocking of low inventory items"
        if restock
        else "1. Maintain current inventory levels",
        "2. Reinvest profits for growth" if profitable else "2. Reduce unnecessary expenses",
        "3. Regular business performance reviews",
    ]

    return "\n".join(
        [
            "**Business Health Summary:**",
            summary,
            "",
            "**Key Insights:**",
            *insights,
            "",
            "**Recommendations:**",
            *recommendations,
            "",
            "**Priority Actions:**",
            *priorities,
            "",
            "*Generated locally from your business data.*",
        ]
    )


# ============================================================================
# Service
# ============================================================================


class InsightsService:
    """
    Produces insight reports and chat answers for one owner.

    Attributes:
        storage: Storage backend
        generator: TextGenerator, or None when AI is not configured
        settings: Application settings
    """

    def __init__(
        self,
        storage: StorageBackend,
        generator: Optional[TextGenerator] = None,
        settings: Optional[Settings] = None,
    ):
        self.storage = storage
        self.generator = generator
        self.settings = settings or get_settings()
        self.aggregator = MetricsAggregator(storage, self.settings)

    def generate_report(self, owner_id: str, today: Optional[date] = None) -> InsightReport:
        """
        Build the insights report for the default dashboard range.

        Raises:
            AggregationFailure: If business data cannot be read
        """
        dashboard = self.aggregator.compute(owner_id, today=today)
        try:
            sales = self.storage.read_recent_sales(owner_id, RECENT_RECORDS_IN_PROMPT)
            expenses = self.storage.read_recent_expenses(owner_id, RECENT_RECORDS_IN_PROMPT)
            employees = self.storage.read_employees(owner_id)
            inventory = self.storage.read_inventory(owner_id)
        except StorageError as e:
            logger.error("insights_fetch_failed", owner_id=owner_id, error=str(e))
            raise AggregationFailure("Failed to fetch business data for insights") from e

        metrics = build_insight_metrics(dashboard, inventory)
        alerts = build_alerts(inventory)

        text = ""
        if self.generator is not None:
            prompt = build_insights_prompt(metrics, alerts, sales, expenses, employees)
            try:
                text = self.generator.generate(prompt, system=ANALYST_SYSTEM_PROMPT).strip()
            except TextGenerationError as e:
                logger.warning("insights_generation_failed", owner_id=owner_id, error=e.message)

        if text:
            source = SOURCE_LLM
        else:
            logger.info("insights_fallback_used", owner_id=owner_id)
            text = fallback_report(metrics, alerts)
            source = SOURCE_FALLBACK

        return InsightReport(insights=text, source=source, metrics=metrics, alerts=alerts)

    def chat(self, owner_id: str, message: str, today: Optional[date] = None) -> ChatReply:
        """
        Answer a free-form question about the business.

        Raises:
            ValidationFailure: If the message is blank
            TextGenerationUnavailable: If no generator is configured
            TextGenerationError: If the generator fails or returns nothing
            AggregationFailure: If business data cannot be read
        """
        message = (message or "").strip()
        if not message:
            raise ValidationFailure("Message is required", details={"field": "message"})
        if self.generator is None:
            raise TextGenerationUnavailable("AI assistant is not configured")

        dashboard = self.aggregator.compute(owner_id, today=today)
        system = build_chat_system_prompt(dashboard, dashboard.total_products)

        text = self.generator.generate(
            message, system=system, max_tokens=self.settings.ai_chat_max_tokens
        ).strip()
        if not text:
            raise TextGenerationError("No response from the AI assistant")

        logger.info("chat_answered", owner_id=owner_id, message_chars=len(message))
        return ChatReply(response=text)

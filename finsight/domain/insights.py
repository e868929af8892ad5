"""Insight composer - merges engine outputs into one ranked action list"""

from typing import List, Optional

from finsight.domain.models import ActionItem, BudgetAnalysis, CashFlowForecast, PortfolioAnalysis

PRIORITY_RANK = {"critical": 4, "high": 3, "medium": 2, "low": 1}
SOURCE_ORDER = {"cash_flow": 0, "budget_alert": 1, "budget": 2, "portfolio": 3}


def _cash_flow_items(forecast: CashFlowForecast) -> List[ActionItem]:
    return [
        ActionItem(source="cash_flow", priority=rec.priority, title=rec.title, description=rec.description)
        for rec in forecast.recommendations
    ]


def _budget_items(analysis: BudgetAnalysis) -> List[ActionItem]:
    items = [
        ActionItem(
            source="budget_alert",
            priority=alert.severity,
            title=alert.title,
            description=f"{alert.message} {alert.suggested_action}",
            reference=alert.category,
        )
        for alert in analysis.alerts
    ]
    # Budgets that already match spending carry no action
    for rec in analysis.recommended_allocations:
        if rec.recommended_budget == rec.current_budget:
            continue
        items.append(
            ActionItem(
                source="budget",
                priority=rec.priority,
                title=f"Adjust {rec.category} budget to ${rec.recommended_budget:,.0f}",
                description=rec.reasoning,
                reference=rec.category,
            )
        )
    return items


def _portfolio_items(analysis: PortfolioAnalysis) -> List[ActionItem]:
    return [
        ActionItem(
            source="portfolio",
            priority=rec.priority,
            title=rec.title,
            description=rec.description,
            reference=rec.asset_class,
        )
        for rec in analysis.recommendations
    ]


def compose_insights(
    forecast: Optional[CashFlowForecast] = None,
    budget_analysis: Optional[BudgetAnalysis] = None,
    portfolio_analysis: Optional[PortfolioAnalysis] = None,
    limit: Optional[int] = None,
) -> List[ActionItem]:
    """
    Merge recommendations and alerts from the three engines.

    Ordered by priority (critical first), then by source (cash flow, budget
    alerts, budget recommendations, portfolio), then title. Items with a
    title already seen are dropped, keeping the highest-ranked one.
    """
    items: List[ActionItem] = []
    if forecast is not None:
        items.extend(_cash_flow_items(forecast))
    if budget_analysis is not None:
        items.extend(_budget_items(budget_analysis))
    if portfolio_analysis is not None:
        items.extend(_portfolio_items(portfolio_analysis))

    items.sort(key=lambda item: (-PRIORITY_RANK[item.priority], SOURCE_ORDER[item.source], item.title))

    ranked: List[ActionItem] = []
    seen = set()
    for item in items:
        if item.title in seen:
            continue
        seen.add(item.title)
        ranked.append(item)

    if limit is not None:
        ranked = ranked[:limit]
    return ranked

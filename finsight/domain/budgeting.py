"""Budget analysis engine - utilization alerts and smoothed reallocation recommendations"""

import re
from datetime import date
from typing import Dict, List, Optional, Sequence

from finsight.domain.aggregation import bucket_category_spend, bucket_monthly, category_key
from finsight.domain.exceptions import InvalidInputError
from finsight.domain.models import (
    BudgetAlert,
    BudgetAnalysis,
    BudgetCategory,
    BudgetInsights,
    BudgetRecommendation,
    Transaction,
)
from finsight.domain.validation import validate_budgets, validate_transactions
from finsight.utils.date_utils import add_months, month_start
from finsight.utils.math_utils import clamp, is_finite_number, mean, safe_divide, sample_stdev

SMOOTHING_ALPHA = 0.5
DEFAULT_RECENT_MONTHS = 3

# Utilization thresholds (inclusive lower bounds)
CRITICAL_UTILIZATION = 1.0
HIGH_UTILIZATION = 0.9
MEDIUM_UTILIZATION = 0.75
RISING_TREND_THRESHOLD = 0.2

HIGH_SAVINGS_THRESHOLD = 50.0
MODERATE_SAVINGS_THRESHOLD = 20.0

RECOMMENDED_SAVINGS_RATE = 20.0
HIGH_VARIABILITY_SCORE = 30.0
LOW_EFFICIENCY_SCORE = 70.0
MAX_ACTION_ITEMS = 5

SEVERITY_RANK = {"critical": 4, "high": 3, "medium": 2, "low": 1}
PRIORITY_RANK = {"high": 3, "medium": 2, "low": 1}

SUGGESTED_ACTIONS = {
    "critical": "Reduce spending immediately or increase the budget.",
    "high": "Slow down spending in this category for the rest of the month.",
    "medium": "Monitor this category closely for the rest of the month.",
    "low": "Review recent transactions to find the cause of the increase.",
}

ALERT_TYPES = {
    "critical": "overspend",
    "high": "approaching_limit",
    "medium": "approaching_limit",
    "low": "unusual_spending",
}


def alert_severity(utilization: float, rising_trend: bool = False) -> Optional[str]:
    """
    Map utilization to an alert severity.

    >= 1.0 critical, [0.9, 1.0) high, [0.75, 0.9) medium. Below 0.75 there is
    no alert unless spending is trending up, which yields "low".
    """
    if utilization >= CRITICAL_UTILIZATION:
        return "critical"
    if utilization >= HIGH_UTILIZATION:
        return "high"
    if utilization >= MEDIUM_UTILIZATION:
        return "medium"
    if rising_trend:
        return "low"
    return None


def smoothed_budget(current_budget: float, recent_average_spend: float, alpha: float = SMOOTHING_ALPHA) -> float:
    """Blend the current budget with recent spend so one anomalous month cannot swing it"""
    return current_budget * (1 - alpha) + recent_average_spend * alpha


def recommendation_priority(potential_savings: float, severity: Optional[str]) -> str:
    if potential_savings > HIGH_SAVINGS_THRESHOLD or severity in ("critical", "high"):
        return "high"
    if potential_savings > MODERATE_SAVINGS_THRESHOLD or severity == "medium":
        return "medium"
    return "low"


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.casefold()).strip("-") or "category"


def _reasoning(name: str, current_budget: float, recommended: float, recent_average: float) -> str:
    change = recommended - current_budget
    if abs(change) < 0.01:
        return f"{name} spending matches its budget. Keep the current amount."
    if change > 0:
        return (
            f"Recent {name} spending averages ${recent_average:,.0f}; raising the budget by "
            f"${change:,.0f} keeps it realistic."
        )
    return (
        f"Recent {name} spending averages ${recent_average:,.0f}; lowering the budget by "
        f"${-change:,.0f} frees money for savings."
    )


def _build_alert(name: str, severity: str, utilization: float, spending: float, budget: float) -> BudgetAlert:
    alert_type = ALERT_TYPES[severity]
    if alert_type == "overspend":
        title = f"Budget exceeded: {name}"
    elif alert_type == "approaching_limit":
        title = f"Approaching budget limit: {name}"
    else:
        title = f"Rising spending: {name}"
    message = f"You've spent ${spending:,.0f} of your ${budget:,.0f} {name} budget ({utilization * 100:.0f}% used)."
    return BudgetAlert(
        id=f"budget-{_slug(name)}-{alert_type}",
        severity=severity,
        type=alert_type,
        category=name,
        title=title,
        message=message,
        suggested_action=SUGGESTED_ACTIONS[severity],
        utilization=round(utilization, 4),
    )


def budget_efficiency(utilizations: Sequence[float]) -> float:
    """100 minus the mean absolute distance of utilization from 100%, clamped to [0, 100]"""
    if not utilizations:
        return 0.0
    deviation = mean([abs(u - 1.0) * 100 for u in utilizations])
    return round(clamp(100 - deviation, 0.0, 100.0), 2)


def variability_score(category_history: Dict[str, List[float]]) -> float:
    """Mean coefficient of variation of monthly spend across categories, in percent"""
    ratios = [safe_divide(sample_stdev(series), mean(series)) for series in category_history.values() if any(series)]
    return round(mean(ratios) * 100, 2)


def generate_action_items(
    recommendations: Sequence[BudgetRecommendation],
    alerts: Sequence[BudgetAlert],
    insights: BudgetInsights,
    has_budgets: bool,
) -> List[str]:
    items: List[str] = []

    critical = [a for a in alerts if a.severity == "critical"]
    if critical:
        items.append(f"Address {len(critical)} critical budget overspend(s) immediately")

    for rec in [r for r in recommendations if r.priority == "high" and r.potential_savings > HIGH_SAVINGS_THRESHOLD][:3]:
        items.append(f"Review {rec.category} budget: {rec.reasoning}")

    if insights.total_income > 0 and insights.savings_rate < insights.recommended_savings_rate:
        shortfall = insights.recommended_savings_rate - insights.savings_rate
        items.append(
            f"Increase savings rate by {shortfall:.1f}% to reach the recommended {insights.recommended_savings_rate:.0f}%"
        )

    if insights.variability_score > HIGH_VARIABILITY_SCORE:
        items.append("Create more consistent spending patterns to improve budget predictability")

    if has_budgets and insights.budget_efficiency < LOW_EFFICIENCY_SCORE:
        items.append("Review and adjust budgets to better align with actual spending patterns")

    return items[:MAX_ACTION_ITEMS]


def compute_budget_analysis(
    transactions: Sequence[Transaction],
    budgets: Sequence[BudgetCategory],
    as_of: date | None = None,
    recent_months: int = DEFAULT_RECENT_MONTHS,
    monthly_income: float | None = None,
) -> BudgetAnalysis:
    """
    Main entry point: analyze category budgets against transaction history.

    Spending for a budget without `current_spending` is the category's
    expense total in the month of `as_of`. The recent average is taken over
    the `recent_months` complete months before that month.

    Raises:
        InvalidInputError: malformed transactions, budgets or income, or no
            `as_of` and no transactions to take it from
    """
    validate_transactions(transactions)
    validate_budgets(budgets)
    if isinstance(recent_months, bool) or not isinstance(recent_months, int) or recent_months < 1:
        raise InvalidInputError(f"recent_months must be a positive integer, got {recent_months!r}")
    if monthly_income is not None and (not is_finite_number(monthly_income) or monthly_income < 0):
        raise InvalidInputError(f"monthly_income must be a non-negative number, got {monthly_income!r}")

    if as_of is None:
        if not transactions:
            raise InvalidInputError("as_of is required when there are no transactions")
        as_of = max(t.date for t in transactions)

    current_month = month_start(as_of)
    previous_month = add_months(current_month, -1)
    current_spend = bucket_category_spend(transactions, 1, current_month)
    recent_spend = bucket_category_spend(transactions, recent_months, previous_month)

    recommendations: List[BudgetRecommendation] = []
    alerts: List[BudgetAlert] = []
    utilizations: List[float] = []
    spending_by_name: Dict[str, float] = {}

    for budget in budgets:
        key = category_key(budget.name)
        if budget.current_spending is not None:
            spending = float(budget.current_spending)
        else:
            spending = current_spend.get(key, [0.0])[0]

        history = recent_spend.get(key)
        if history and any(history):
            recent_average = mean(history)
            trend = safe_divide(spending - recent_average, recent_average)
        else:
            recent_average = spending
            trend = 0.0

        utilization = safe_divide(spending, budget.current_budget)
        rising = budget.current_budget > 0 and trend > RISING_TREND_THRESHOLD
        severity = alert_severity(utilization, rising)
        if severity is not None:
            alerts.append(_build_alert(budget.name, severity, utilization, spending, budget.current_budget))

        recommended = round(smoothed_budget(budget.current_budget, recent_average), 2)
        savings = round(max(0.0, budget.current_budget - recommended), 2)

        recommendations.append(
            BudgetRecommendation(
                category=budget.name,
                current_budget=float(budget.current_budget),
                current_spending=round(spending, 2),
                recommended_budget=recommended,
                potential_savings=savings,
                priority=recommendation_priority(savings, severity),
                reasoning=_reasoning(budget.name, budget.current_budget, recommended, recent_average),
                utilization=round(utilization, 4),
                recent_average_spend=round(recent_average, 2),
            )
        )
        if budget.current_budget > 0:
            utilizations.append(utilization)
        spending_by_name[budget.name] = spending

    if monthly_income is None:
        monthly_income = mean([b.total_income for b in bucket_monthly(transactions, recent_months, previous_month)])
    total_spending = sum(spending_by_name.values())
    budget_keys = {category_key(b.name) for b in budgets}

    highest = None
    if spending_by_name:
        highest = min(spending_by_name, key=lambda name: (-spending_by_name[name], name))

    insights = BudgetInsights(
        total_income=round(monthly_income, 2),
        total_spending=round(total_spending, 2),
        savings_rate=round(safe_divide(monthly_income - total_spending, monthly_income) * 100, 2),
        recommended_savings_rate=RECOMMENDED_SAVINGS_RATE,
        budget_efficiency=budget_efficiency(utilizations),
        highest_spending_category=highest,
        variability_score=variability_score({key: recent_spend[key] for key in sorted(budget_keys) if key in recent_spend}),
    )

    alerts.sort(key=lambda a: (-SEVERITY_RANK[a.severity], a.category))
    recommendations.sort(key=lambda r: (-PRIORITY_RANK[r.priority], -r.potential_savings, r.category))

    return BudgetAnalysis(
        insights=insights,
        recommended_allocations=recommendations,
        alerts=alerts,
        action_items=generate_action_items(recommendations, alerts, insights, bool(utilizations)),
    )

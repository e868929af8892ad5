"""Cash-flow forecasting engine - projects monthly income, expenses and balance"""

import logging
from datetime import date
from typing import List, Sequence, Tuple

from finsight.domain.aggregation import (
    bucket_monthly,
    detect_recurring_series,
    filter_window,
    history_months,
)
from finsight.domain.exceptions import InsufficientHistoryError, InvalidInputError
from finsight.domain.models import (
    INCOME,
    CashFlowForecast,
    CashFlowInsights,
    CashFlowPrediction,
    CashFlowRecommendation,
    MonthlyBucket,
    RecurringSeries,
    Transaction,
)
from finsight.domain.validation import validate_transactions
from finsight.utils.date_utils import add_months, month_start, months_between
from finsight.utils.math_utils import clamp, is_finite_number, mean, safe_divide, sample_stdev

DEFAULT_WINDOW_MONTHS = 6
MIN_HISTORY_MONTHS = 2

# Confidence policy
BASE_CONFIDENCE = 0.9
CONFIDENCE_DECAY_PER_MONTH = 0.05
CONFIDENCE_FLOOR = 0.1
VOLATILITY_PENALTY_SCALE = 0.5
MAX_VOLATILITY_PENALTY = 0.4
LOW_HISTORY_CONFIDENCE = 0.3

TREND_THRESHOLD = 0.1

# Recurring cadence
DAYS_PER_MONTH = 365.25 / 12
MONTHLY_CADENCE_DAYS = (26, 35)
STALE_AFTER_INTERVALS = 2

# Recommendation thresholds
HIGH_VOLATILITY_RATIO = 0.3
LOW_BALANCE_RATIO = 0.5
HIGH_VALUE_RECURRING_RATIO = 0.1
EMERGENCY_FUND_MONTHS = 3

# Expense multipliers by calendar month (holiday and summer peaks)
SEASONAL_EXPENSE_FACTORS = {
    1: 1.1,
    2: 1.0,
    3: 1.0,
    4: 1.0,
    5: 1.1,
    6: 1.1,
    7: 1.1,
    8: 1.1,
    9: 1.0,
    10: 1.0,
    11: 1.2,
    12: 1.3,
}


def forecast_confidence(
    month_index: int,
    volatility: float,
    avg_monthly_income: float,
    low_history: bool = False,
) -> float:
    """
    Confidence for the month_index-th forecast month (1-indexed).

    Decays linearly with the horizon and is reduced by the volatility of
    monthly net relative to income. Clamped to [CONFIDENCE_FLOOR,
    BASE_CONFIDENCE], and capped at LOW_HISTORY_CONFIDENCE when fewer than
    MIN_HISTORY_MONTHS months of data exist.
    """
    penalty = min(
        MAX_VOLATILITY_PENALTY,
        VOLATILITY_PENALTY_SCALE * volatility / max(avg_monthly_income, 1.0),
    )
    raw = BASE_CONFIDENCE - CONFIDENCE_DECAY_PER_MONTH * (month_index - 1) - penalty
    confidence = clamp(raw, CONFIDENCE_FLOOR, BASE_CONFIDENCE)
    if low_history:
        confidence = min(confidence, LOW_HISTORY_CONFIDENCE)
    return round(confidence, 4)


def expected_occurrences(series: RecurringSeries, forecast_month: date, as_of: date) -> float:
    """
    How many times a series is expected to land in the given forecast month.

    Sub-monthly series repeat their own observed per-month count since they
    were first seen.
    """
    if (as_of - series.last_seen_date).days > STALE_AFTER_INTERVALS * series.interval_days:
        return 0.0

    low, high = MONTHLY_CADENCE_DAYS
    if series.interval_days < low:
        if series.first_seen_date is None:
            return DAYS_PER_MONTH / series.interval_days
        months_active = months_between(series.first_seen_date, as_of) + 1
        return series.occurrence_count / months_active
    if series.interval_days <= high:
        return 1.0

    period_months = max(2, round(series.interval_days / DAYS_PER_MONTH))
    offset = months_between(series.last_seen_date, forecast_month)
    return 1.0 if offset > 0 and offset % period_months == 0 else 0.0


def recurring_adjustment(
    series_list: Sequence[RecurringSeries],
    forecast_month: date,
    as_of: date,
    window_months: int,
) -> Tuple[float, float]:
    """
    Income and expense adjustments on top of the flat averages.

    The averages already contain each series at its observed rate
    (occurrences in the window / window months); only the difference between
    the expected occurrences in the forecast month and that rate is added.
    """
    income_adj = 0.0
    expense_adj = 0.0
    for series in series_list:
        observed_rate = series.occurrence_count / window_months
        delta = series.amount * (expected_occurrences(series, forecast_month, as_of) - observed_rate)
        if series.kind == INCOME:
            income_adj += delta
        else:
            expense_adj += delta
    return income_adj, expense_adj


def classify_trend(predictions: Sequence[CashFlowPrediction]) -> str:
    """Compare last vs first predicted balance with a ±10% band around the first"""
    if not predictions:
        return "stable"
    first = predictions[0].predicted_balance
    last = predictions[-1].predicted_balance
    band = abs(first) * TREND_THRESHOLD
    if last > first + band:
        return "increasing"
    if last < first - band:
        return "decreasing"
    return "stable"


def _require_history(buckets: Sequence[MonthlyBucket]) -> None:
    available = history_months(buckets)
    if available < MIN_HISTORY_MONTHS:
        raise InsufficientHistoryError(available, MIN_HISTORY_MONTHS)


def _money(value: float) -> str:
    return f"${value:,.0f}"


def generate_cash_flow_recommendations(
    insights: CashFlowInsights,
    predictions: Sequence[CashFlowPrediction],
    recurring: Sequence[RecurringSeries],
    low_history: bool,
) -> List[CashFlowRecommendation]:
    """Deterministic rule list keyed off the forecast numbers"""
    recommendations: List[CashFlowRecommendation] = []
    avg_income = insights.avg_monthly_income
    avg_expenses = insights.avg_monthly_expenses

    negative_months = [p for p in predictions if p.predicted_balance < 0]
    if negative_months:
        recommendations.append(
            CashFlowRecommendation(
                title="Projected negative balance",
                description=(
                    f"Your balance may go negative in {len(negative_months)} month(s), first in "
                    f"{negative_months[0].date:%B %Y}. Reduce expenses or increase income before then."
                ),
                priority="critical",
            )
        )

    low_months = [p for p in predictions if 0 <= p.predicted_balance < avg_expenses * LOW_BALANCE_RATIO]
    if low_months:
        recommendations.append(
            CashFlowRecommendation(
                title="Low balance ahead",
                description="Your balance may drop below half a month's expenses. Keep a larger cash buffer.",
                priority="high",
            )
        )

    if insights.monthly_net_change < 0:
        recommendations.append(
            CashFlowRecommendation(
                title="Spending exceeds income",
                description=(
                    f"You spend {_money(-insights.monthly_net_change)} more than you earn per month on average. "
                    "Review your largest expense categories."
                ),
                priority="high",
            )
        )

    volatility_ratio = safe_divide(insights.volatility, avg_income)
    if volatility_ratio > HIGH_VOLATILITY_RATIO:
        recommendations.append(
            CashFlowRecommendation(
                title="Volatile cash flow",
                description=(
                    f"Your monthly net varies by {_money(insights.volatility)} "
                    f"({volatility_ratio * 100:.0f}% of income). Build a buffer for uneven months."
                ),
                priority="medium",
            )
        )

    emergency_target = avg_expenses * EMERGENCY_FUND_MONTHS
    if predictions and predictions[0].predicted_balance < emergency_target:
        recommendations.append(
            CashFlowRecommendation(
                title="Build an emergency fund",
                description=(
                    f"Aim for an emergency fund of {_money(emergency_target)} "
                    f"({EMERGENCY_FUND_MONTHS} months of expenses)."
                ),
                priority="medium",
            )
        )

    high_value = [
        s for s in recurring if s.kind != INCOME and avg_income > 0 and s.amount > avg_income * HIGH_VALUE_RECURRING_RATIO
    ]
    if high_value:
        recommendations.append(
            CashFlowRecommendation(
                title="Review large recurring expenses",
                description=(
                    f"You have {len(high_value)} recurring expense(s) above 10% of income: "
                    + ", ".join(sorted({s.category for s in high_value}))
                    + "."
                ),
                priority="low",
            )
        )

    if insights.monthly_net_change > 0:
        recommendations.append(
            CashFlowRecommendation(
                title="Put your surplus to work",
                description=(
                    f"You have a positive cash flow of {_money(insights.monthly_net_change)}/month on average. "
                    "Consider saving or investing it."
                ),
                priority="low",
            )
        )

    if low_history:
        recommendations.append(
            CashFlowRecommendation(
                title="Limited history",
                description=(
                    f"Only {insights.history_months} month(s) of transactions are available; "
                    "forecast confidence is reduced."
                ),
                priority="low",
            )
        )

    return recommendations


def compute_cash_flow_forecast(
    transactions: Sequence[Transaction],
    current_balance: float,
    horizon_months: int = 6,
    include_recurring: bool = True,
    as_of: date | None = None,
    window_months: int = DEFAULT_WINDOW_MONTHS,
    seasonal_adjustment: bool = False,
) -> CashFlowForecast:
    """
    Main entry point: project `horizon_months` months of cash flow.

    Averages come from the trailing `window_months` of bucketed history
    ending with the month of `as_of` (default: latest transaction date).
    Short history degrades confidence instead of failing.

    Raises:
        InvalidInputError: malformed transactions, balance, horizon or window,
            or no `as_of` and no transactions to take it from
    """
    validate_transactions(transactions)
    if not is_finite_number(current_balance):
        raise InvalidInputError(f"current_balance must be a finite number, got {current_balance!r}")
    if isinstance(horizon_months, bool) or not isinstance(horizon_months, int) or horizon_months < 1:
        raise InvalidInputError(f"horizon_months must be a positive integer, got {horizon_months!r}")
    if isinstance(window_months, bool) or not isinstance(window_months, int) or window_months < 1:
        raise InvalidInputError(f"window_months must be a positive integer, got {window_months!r}")

    if as_of is None:
        if not transactions:
            raise InvalidInputError("as_of is required when there are no transactions")
        as_of = max(t.date for t in transactions)

    recent = filter_window(transactions, window_months, as_of)
    buckets = bucket_monthly(recent, window_months, as_of)

    low_history = False
    try:
        _require_history(buckets)
    except InsufficientHistoryError as e:
        low_history = True
        logging.warning(
            f"Insufficient history, capping forecast confidence: {e}",
            extra={"months_available": e.months_available},
        )

    avg_income = mean([b.total_income for b in buckets])
    avg_expenses = mean([b.total_expenses for b in buckets])
    volatility = sample_stdev([b.net for b in buckets])
    recurring = detect_recurring_series(recent) if include_recurring else []

    predictions: List[CashFlowPrediction] = []
    running_balance = float(current_balance)
    anchor = month_start(as_of)

    for month_index in range(1, horizon_months + 1):
        forecast_month = add_months(anchor, month_index)
        income_adj, expense_adj = recurring_adjustment(recurring, forecast_month, as_of, window_months)

        predicted_income = max(0.0, avg_income + income_adj)
        predicted_expenses = max(0.0, avg_expenses + expense_adj)
        if seasonal_adjustment:
            predicted_expenses *= SEASONAL_EXPENSE_FACTORS[forecast_month.month]

        running_balance += predicted_income - predicted_expenses

        predictions.append(
            CashFlowPrediction(
                date=forecast_month,
                predicted_income=round(predicted_income, 2),
                predicted_expenses=round(predicted_expenses, 2),
                predicted_balance=round(running_balance, 2),
                confidence=forecast_confidence(month_index, volatility, avg_income, low_history),
            )
        )

    insights = CashFlowInsights(
        avg_monthly_income=round(avg_income, 2),
        avg_monthly_expenses=round(avg_expenses, 2),
        monthly_net_change=round(avg_income - avg_expenses, 2),
        volatility=round(volatility, 2),
        recurring_transactions_count=len(recurring),
        history_months=history_months(buckets),
    )

    return CashFlowForecast(
        current_balance=float(current_balance),
        predictions=predictions,
        insights=insights,
        recommendations=generate_cash_flow_recommendations(insights, predictions, recurring, low_history),
        trend=classify_trend(predictions),
        recurring_series=recurring,
    )

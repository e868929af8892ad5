"""Portfolio advisor - allocation variance, risk scoring and rebalancing advice"""

import math
import statistics
from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from finsight.domain.aggregation import category_key
from finsight.domain.models import (
    Account,
    AssetAllocationEntry,
    PerformanceSummary,
    PortfolioAnalysis,
    PortfolioRecommendation,
    RiskAssessment,
)
from finsight.domain.validation import validate_accounts, validate_returns, validate_target_allocation
from finsight.utils.math_utils import mean, safe_divide, sample_stdev

TOLERANCE_BAND = 5.0  # percentage points
REBALANCE_INTERVAL_DAYS = 30

PERIODS_PER_YEAR = 12  # historical returns are monthly
RISK_FREE_RATE = 0.02
MARKET_VOLATILITY = 0.15
RISK_SCORE_HALF_POINT = 0.15  # annualized volatility that scores 50

LOW_RISK_MAX = 33.0
MEDIUM_RISK_MAX = 66.0
LOW_DIVERSIFICATION = 50.0
CONCENTRATION_LIMIT = 0.5

CRITICAL_VARIANCE = 20.0
HIGH_VARIANCE = 10.0
LARGE_TRADE_AMOUNT = 25_000.0
TRADING_COST_RATE = 0.001

DEFAULT_BENCHMARK = "S&P 500"

PRIORITY_RANK = {"critical": 4, "high": 3, "medium": 2, "low": 1}


def allocation_action(variance: float, tolerance: float = TOLERANCE_BAND) -> str:
    if variance < -tolerance:
        return "buy"
    if variance > tolerance:
        return "sell"
    return "hold"


def diversification_score(weights: Sequence[float]) -> float:
    """100 x (1 - Herfindahl index) of the value weights"""
    if not weights:
        return 0.0
    return round(100 * (1 - sum(w * w for w in weights)), 2)


def risk_score_for_volatility(volatility: float) -> float:
    """Map annualized volatility onto 0-100; strictly increasing, 50 at RISK_SCORE_HALF_POINT"""
    if volatility <= 0:
        return 0.0
    return round(100 * volatility / (volatility + RISK_SCORE_HALF_POINT), 2)


def risk_level_for_score(score: float) -> str:
    if score < LOW_RISK_MAX:
        return "low"
    if score < MEDIUM_RISK_MAX:
        return "medium"
    return "high"


def rebalance_priority(abs_variance: float, amount: float) -> str:
    """Priority scaled by the size of the drift, bumped for large dollar trades"""
    if abs_variance >= CRITICAL_VARIANCE:
        return "critical"
    if abs_variance >= HIGH_VARIANCE or amount >= LARGE_TRADE_AMOUNT:
        return "high"
    return "medium"


def _annualized_volatility(returns: Sequence[float]) -> float:
    return sample_stdev(returns) * math.sqrt(PERIODS_PER_YEAR)


def _compound(returns: Sequence[float]) -> float:
    growth = 1.0
    for r in returns:
        growth *= 1 + r
    return growth - 1


def _annualized_return(returns: Sequence[float]) -> float:
    if not returns:
        return 0.0
    return (1 + _compound(returns)) ** (PERIODS_PER_YEAR / len(returns)) - 1


def _beta(returns: Sequence[float], benchmark: Sequence[float]) -> float:
    n = min(len(returns), len(benchmark))
    if n < 2:
        return 0.0
    x, y = list(returns[-n:]), list(benchmark[-n:])
    return safe_divide(statistics.covariance(x, y), statistics.variance(y))


def _neutral_analysis(
    classes: List[str],
    names: Dict[str, str],
    target_allocation: Dict[str, float],
    benchmark_name: str,
) -> PortfolioAnalysis:
    allocations = [
        AssetAllocationEntry(
            asset_class=names[c],
            current_value=0.0,
            current_percentage=0.0,
            target_percentage=float(target_allocation.get(c, 0.0)),
            variance=-float(target_allocation.get(c, 0.0)),
            recommendation="hold",
            amount=0.0,
        )
        for c in classes
    ]
    return PortfolioAnalysis(
        total_value=0.0,
        risk_assessment=RiskAssessment(
            risk_score=0.0,
            risk_level="low",
            volatility=0.0,
            beta=0.0,
            sharpe_ratio=0.0,
            diversification_score=0.0,
            factors=["Portfolio has no value to analyze"],
        ),
        performance=PerformanceSummary(
            monthly_return=0.0,
            yearly_return=0.0,
            total_return=0.0,
            annualized_return=0.0,
            benchmark=benchmark_name,
            benchmark_return=0.0,
            alpha=0.0,
        ),
        allocations=allocations,
        recommendations=[],
        rebalancing_needed=False,
        next_rebalance_date=None,
    )


def _rebalance_recommendation(entry: AssetAllocationEntry, class_volatility: float = 0.0) -> PortfolioRecommendation:
    c = entry.asset_class
    savings = None
    if entry.recommendation == "sell" and class_volatility > 0:
        # One-sigma yearly move on the excess being sold
        savings = round(entry.amount * class_volatility, 2)
    priority = rebalance_priority(abs(entry.variance), entry.amount)
    if entry.recommendation == "buy":
        title = f"Increase {c} allocation"
        steps = [
            "Check the cash available for investing",
            f"Buy about ${entry.amount:,.0f} of {c}",
            "Confirm the new allocation after the trades settle",
        ]
    else:
        title = f"Reduce {c} allocation"
        steps = [
            f"Review tax lots and holding periods for {c}",
            f"Sell about ${entry.amount:,.0f} of {c}",
            "Reinvest the proceeds in underweight asset classes",
        ]
    return PortfolioRecommendation(
        title=title,
        description=(
            f"{c} is {entry.current_percentage:.1f}% of your portfolio against a "
            f"{entry.target_percentage:.1f}% target ({entry.variance:+.1f} points)."
        ),
        priority=priority,
        expected_benefit=f"Brings {c} back to its {entry.target_percentage:.0f}% target",
        timeframe="Within 2 weeks" if priority in ("critical", "high") else "Within 30 days",
        steps=steps,
        asset_class=c,
        estimated_savings=savings,
        estimated_cost=round(entry.amount * TRADING_COST_RATE, 2),
    )


def generate_portfolio_recommendations(
    allocations: Sequence[AssetAllocationEntry],
    risk: RiskAssessment,
    class_volatility: Optional[Dict[str, float]] = None,
) -> List[PortfolioRecommendation]:
    """
    Rebalancing, diversification and risk advice, most urgent first.

    `class_volatility` maps an asset class to its annualized volatility; sell
    recommendations use it to estimate the yearly swing they remove.
    """
    class_volatility = class_volatility or {}
    ranked: List[Tuple[PortfolioRecommendation, float]] = []

    for entry in allocations:
        if entry.recommendation in ("buy", "sell"):
            rec = _rebalance_recommendation(entry, class_volatility.get(entry.asset_class, 0.0))
            ranked.append((rec, entry.amount))

    if risk.diversification_score < LOW_DIVERSIFICATION:
        ranked.append(
            (
                PortfolioRecommendation(
                    title="Improve diversification",
                    description=(
                        f"Your diversification score is {risk.diversification_score:.0f}/100; "
                        "most of your value sits in few asset classes."
                    ),
                    priority="high" if risk.diversification_score < LOW_DIVERSIFICATION / 2 else "medium",
                    expected_benefit="Lower exposure to a single asset class",
                    timeframe="Within 3 months",
                    steps=[
                        "Identify the asset classes you are missing",
                        "Direct new contributions to those classes",
                        "Revisit the target allocation at the next review",
                    ],
                ),
                0.0,
            )
        )

    if risk.risk_level == "high":
        ranked.append(
            (
                PortfolioRecommendation(
                    title="Reduce portfolio risk",
                    description=(
                        f"Annualized volatility is {risk.volatility:.1f}% (risk score {risk.risk_score:.0f}/100)."
                    ),
                    priority="high",
                    expected_benefit="Smaller drawdowns in volatile markets",
                    timeframe="Within 30 days",
                    steps=[
                        "Confirm your risk tolerance and time horizon",
                        "Shift part of the most volatile holdings into bonds or cash",
                        "Set a rebalancing reminder",
                    ],
                ),
                0.0,
            )
        )

    ranked.sort(key=lambda pair: (-PRIORITY_RANK[pair[0].priority], -pair[1], pair[0].title))
    return [rec for rec, _ in ranked]


def compute_portfolio_analysis(
    accounts: Sequence[Account],
    target_allocation: Dict[str, float],
    historical_returns: Dict[str, List[float]],
    as_of: date,
    benchmark_returns: Optional[List[float]] = None,
    benchmark_name: str = DEFAULT_BENCHMARK,
) -> PortfolioAnalysis:
    """
    Main entry point: compare holdings against the target allocation.

    `historical_returns` maps an asset class to its monthly returns as
    decimals (0.01 = 1%). Risk metrics weight each class's statistics by its
    share of current value. Asset classes match case-insensitively; the first
    spelling seen (targets before accounts) is the one reported. A zero-value
    portfolio yields a neutral result. `as_of` anchors the next rebalance date.

    Raises:
        InvalidInputError: negative balances, bad targets or non-finite returns
    """
    validate_accounts(accounts)
    validate_target_allocation(target_allocation)
    validate_returns(historical_returns)
    if benchmark_returns is not None:
        validate_returns({"benchmark": benchmark_returns}, name="benchmark_returns")

    names: Dict[str, str] = {}
    targets: Dict[str, float] = {}
    for asset_class, pct in target_allocation.items():
        key = category_key(asset_class)
        names.setdefault(key, asset_class.strip())
        targets[key] = float(pct)

    values: Dict[str, float] = defaultdict(float)
    for account in accounts:
        key = category_key(account.asset_class)
        names.setdefault(key, account.asset_class.strip())
        values[key] += account.balance

    classes = sorted(set(values) | set(targets))
    total_value = sum(values[c] for c in classes)

    if total_value == 0:
        return _neutral_analysis(classes, names, targets, benchmark_name)

    weights = {c: values[c] / total_value for c in classes}

    allocations: List[AssetAllocationEntry] = []
    for c in classes:
        current_pct = weights[c] * 100
        target_pct = targets.get(c, 0.0)
        variance = current_pct - target_pct
        action = allocation_action(variance)
        amount = abs(variance) / 100 * total_value if action != "hold" else 0.0
        allocations.append(
            AssetAllocationEntry(
                asset_class=names[c],
                current_value=round(values[c], 2),
                current_percentage=round(current_pct, 4),
                target_percentage=target_pct,
                variance=round(variance, 4),
                recommendation=action,
                amount=round(amount, 2),
            )
        )

    returns_by_key = {category_key(c): series for c, series in historical_returns.items()}
    returns = {c: returns_by_key.get(c, []) for c in classes}
    volatility = sum(weights[c] * _annualized_volatility(returns[c]) for c in classes)
    expected_return = sum(weights[c] * mean(returns[c]) * PERIODS_PER_YEAR for c in classes)

    if benchmark_returns and len(benchmark_returns) >= 2:
        beta = sum(weights[c] * _beta(returns[c], benchmark_returns) for c in classes)
    else:
        beta = safe_divide(volatility, MARKET_VOLATILITY)

    score = risk_score_for_volatility(volatility)
    level = risk_level_for_score(score)
    diversification = diversification_score([weights[c] for c in classes])
    rebalancing_needed = any(abs(a.variance) > TOLERANCE_BAND for a in allocations)

    factors: List[str] = []
    largest = max(classes, key=lambda c: (weights[c], c))
    if weights[largest] > CONCENTRATION_LIMIT:
        factors.append(f"{weights[largest] * 100:.0f}% of value is in {names[largest]}")
    if level == "high":
        factors.append("High allocation-weighted volatility")
    if diversification < LOW_DIVERSIFICATION:
        factors.append("Low diversification across asset classes")
    if rebalancing_needed:
        factors.append(f"Allocation drifted more than {TOLERANCE_BAND:.0f} points from target")

    risk = RiskAssessment(
        risk_score=score,
        risk_level=level,
        volatility=round(volatility * 100, 2),
        beta=round(beta, 2),
        sharpe_ratio=round(safe_divide(expected_return - RISK_FREE_RATE, volatility), 2),
        diversification_score=diversification,
        factors=factors,
    )

    yearly = sum(weights[c] * _compound(returns[c][-PERIODS_PER_YEAR:]) for c in classes)
    benchmark_return = _compound(benchmark_returns[-PERIODS_PER_YEAR:]) if benchmark_returns else 0.0
    performance = PerformanceSummary(
        monthly_return=round(sum(weights[c] * (returns[c][-1] if returns[c] else 0.0) for c in classes) * 100, 2),
        yearly_return=round(yearly * 100, 2),
        total_return=round(sum(weights[c] * _compound(returns[c]) for c in classes) * 100, 2),
        annualized_return=round(sum(weights[c] * _annualized_return(returns[c]) for c in classes) * 100, 2),
        benchmark=benchmark_name,
        benchmark_return=round(benchmark_return * 100, 2),
        alpha=round((yearly - benchmark_return) * 100, 2) if benchmark_returns else 0.0,
    )

    return PortfolioAnalysis(
        total_value=round(total_value, 2),
        risk_assessment=risk,
        performance=performance,
        allocations=allocations,
        recommendations=generate_portfolio_recommendations(
            allocations,
            risk,
            {names[c]: _annualized_volatility(returns[c]) for c in classes},
        ),
        rebalancing_needed=rebalancing_needed,
        next_rebalance_date=as_of + timedelta(days=REBALANCE_INTERVAL_DAYS) if rebalancing_needed else None,
    )

"""Unit tests for the insight composer"""

import pytest
from datetime import date
from finsight.domain.budgeting import compute_budget_analysis
from finsight.domain.forecasting import compute_cash_flow_forecast
from finsight.domain.insights import compose_insights
from finsight.domain.models import (
    BudgetCategory,
    CashFlowForecast,
    CashFlowInsights,
    CashFlowRecommendation,
    Transaction,
)
from finsight.domain.portfolio import compute_portfolio_analysis


@pytest.fixture
def forecast(steady_transactions):
    return compute_cash_flow_forecast(steady_transactions, 10_000.0, horizon_months=3)


@pytest.fixture
def budget_analysis():
    transactions = [Transaction(date(2024, m, 15), -1300.0, "Dining") for m in (3, 4, 5)]
    budgets = [BudgetCategory(name="Dining", current_budget=1200.0, current_spending=1100.0)]
    return compute_budget_analysis(transactions, budgets, as_of=date(2024, 6, 20))


@pytest.fixture
def portfolio_analysis(balanced_accounts):
    return compute_portfolio_analysis(
        balanced_accounts, {"Stocks": 50, "Bonds": 40, "Cash": 10}, {}, as_of=date(2024, 6, 30)
    )


def _forecast_with(*recommendations: CashFlowRecommendation) -> CashFlowForecast:
    return CashFlowForecast(
        current_balance=0.0,
        predictions=[],
        insights=CashFlowInsights(0.0, 0.0, 0.0, 0.0, 0, 0),
        recommendations=list(recommendations),
        trend="stable",
    )


def test_merges_all_sources_by_priority_then_source(forecast, budget_analysis, portfolio_analysis):
    items = compose_insights(forecast, budget_analysis, portfolio_analysis)

    assert [(i.source, i.title) for i in items] == [
        ("budget_alert", "Approaching budget limit: Dining"),
        ("budget", "Adjust Dining budget to $1,250"),
        ("portfolio", "Increase Bonds allocation"),
        ("portfolio", "Reduce Stocks allocation"),
        ("cash_flow", "Build an emergency fund"),
        ("cash_flow", "Put your surplus to work"),
        ("cash_flow", "Review large recurring expenses"),
    ]
    assert [i.priority for i in items] == ["high", "high", "high", "high", "medium", "low", "low"]


def test_references_point_back_to_category_or_asset_class(budget_analysis, portfolio_analysis):
    items = compose_insights(budget_analysis=budget_analysis, portfolio_analysis=portfolio_analysis)

    references = {i.title: i.reference for i in items}
    assert references["Approaching budget limit: Dining"] == "Dining"
    assert references["Increase Bonds allocation"] == "Bonds"


def test_limit_keeps_highest_ranked(forecast, budget_analysis, portfolio_analysis):
    items = compose_insights(forecast, budget_analysis, portfolio_analysis, limit=3)

    assert [i.title for i in items] == [
        "Approaching budget limit: Dining",
        "Adjust Dining budget to $1,250",
        "Increase Bonds allocation",
    ]


def test_duplicate_titles_keep_higher_priority(portfolio_analysis):
    forecast = _forecast_with(CashFlowRecommendation("Increase Bonds allocation", "Duplicate advice", "low"))

    items = compose_insights(forecast, portfolio_analysis=portfolio_analysis)
    matching = [i for i in items if i.title == "Increase Bonds allocation"]

    assert len(matching) == 1
    assert matching[0].source == "portfolio"
    assert matching[0].priority == "high"


def test_critical_cash_flow_item_leads():
    forecast = _forecast_with(
        CashFlowRecommendation("Put your surplus to work", "...", "low"),
        CashFlowRecommendation("Projected negative balance", "...", "critical"),
    )

    items = compose_insights(forecast)

    assert items[0].title == "Projected negative balance"


def test_budget_matching_spend_carries_no_adjustment():
    budgets = [BudgetCategory(name="Rent", current_budget=1500.0, current_spending=1500.0)]
    analysis = compute_budget_analysis([], budgets, as_of=date(2024, 6, 20))

    items = compose_insights(budget_analysis=analysis)

    assert [i.source for i in items] == ["budget_alert"]


def test_no_inputs_gives_empty_list():
    assert compose_insights() == []

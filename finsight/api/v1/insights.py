"""POST /v1/insights - merged, ranked action items across all engines"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, Request

from finsight.api.dependencies import get_request_id, get_settings
from finsight.api.v1.budget import build_budget_analysis, summarize_budget
from finsight.api.v1.execution import run_engine
from finsight.api.v1.forecast import build_forecast, record_forecast, summarize_forecast
from finsight.api.v1.portfolio import build_portfolio_analysis, record_portfolio, summarize_portfolio
from finsight.api.v1.schemas import InsightsRequest, InsightsResponse
from finsight.config import Settings
from finsight.domain.insights import compose_insights
from finsight.infrastructure.observability.metrics import record_budget_alerts

router = APIRouter()


@router.post("/insights", response_model=InsightsResponse)
def create_insights(
    request_body: InsightsRequest,
    request: Request,
    config: Settings = Depends(get_settings),
):
    """
    Run each engine whose section is present and merge their output.

    Flow:
    1. Forecast cash flow (optional)
    2. Analyze budgets (optional)
    3. Analyze portfolio (optional)
    4. Rank the combined recommendations and alerts
    """
    request_id = get_request_id(request)

    forecast = None
    if request_body.forecast is not None:
        forecast = run_engine(
            "cash_flow", request_id, lambda: build_forecast(request_body.forecast, config), summarize_forecast
        )
        record_forecast(forecast)

    budget = None
    if request_body.budget is not None:
        budget = run_engine(
            "budget", request_id, lambda: build_budget_analysis(request_body.budget, config), summarize_budget
        )
        record_budget_alerts(budget.alerts)

    portfolio = None
    if request_body.portfolio is not None:
        portfolio = run_engine(
            "portfolio",
            request_id,
            lambda: build_portfolio_analysis(request_body.portfolio, config),
            summarize_portfolio,
        )
        record_portfolio(portfolio)

    action_items = run_engine(
        "insights",
        request_id,
        lambda: compose_insights(forecast, budget, portfolio, limit=request_body.limit),
        lambda items: {"action_item_count": len(items)},
    )

    return {
        "action_items": [asdict(item) for item in action_items],
        "forecast": asdict(forecast) if forecast is not None else None,
        "budget": asdict(budget) if budget is not None else None,
        "portfolio": asdict(portfolio) if portfolio is not None else None,
    }

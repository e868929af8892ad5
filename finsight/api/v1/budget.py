"""POST /v1/budget/analysis - budget alerts and reallocation endpoint"""

from dataclasses import asdict
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from finsight.api.dependencies import get_request_id, get_settings, resolve_as_of
from finsight.api.v1.execution import run_engine
from finsight.api.v1.schemas import BudgetAnalysisRequest, BudgetAnalysisResponse
from finsight.config import Settings
from finsight.domain.budgeting import compute_budget_analysis
from finsight.domain.models import BudgetAnalysis
from finsight.infrastructure.observability.metrics import record_budget_alerts

router = APIRouter()


def build_budget_analysis(body: BudgetAnalysisRequest, config: Settings) -> BudgetAnalysis:
    return compute_budget_analysis(
        [t.to_domain() for t in body.transactions],
        [b.to_domain() for b in body.budgets],
        as_of=resolve_as_of(body.as_of, body.transactions),
        recent_months=config.budget_recent_months,
        monthly_income=body.monthly_income,
    )


def summarize_budget(analysis: BudgetAnalysis) -> Dict[str, Any]:
    return {
        "category_count": len(analysis.recommended_allocations),
        "alert_count": len(analysis.alerts),
        "savings_rate": analysis.insights.savings_rate,
    }


@router.post("/budget/analysis", response_model=BudgetAnalysisResponse)
def create_budget_analysis(
    request_body: BudgetAnalysisRequest,
    request: Request,
    config: Settings = Depends(get_settings),
):
    """
    Compute utilization alerts and smoothed budget recommendations.

    Accepting a recommendation is the caller's concern: it persists the new
    budget and calls this endpoint again.
    """
    request_id = get_request_id(request)
    analysis = run_engine(
        "budget",
        request_id,
        lambda: build_budget_analysis(request_body, config),
        summarize_budget,
    )
    record_budget_alerts(analysis.alerts)
    return asdict(analysis)

"""POST /v1/portfolio/analysis - allocation and rebalancing endpoint"""

from dataclasses import asdict
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from finsight.api.dependencies import get_request_id, get_settings, resolve_as_of
from finsight.api.v1.execution import run_engine
from finsight.api.v1.schemas import PortfolioAnalysisRequest, PortfolioAnalysisResponse
from finsight.config import Settings
from finsight.domain.models import PortfolioAnalysis
from finsight.domain.portfolio import compute_portfolio_analysis
from finsight.infrastructure.observability.metrics import rebalancing_needed_counter

router = APIRouter()


def build_portfolio_analysis(body: PortfolioAnalysisRequest, config: Settings) -> PortfolioAnalysis:
    return compute_portfolio_analysis(
        [a.to_domain() for a in body.accounts],
        body.target_allocation,
        body.historical_returns,
        as_of=resolve_as_of(body.as_of),
        benchmark_returns=body.benchmark_returns,
        benchmark_name=config.benchmark_name,
    )


def record_portfolio(analysis: PortfolioAnalysis) -> None:
    if analysis.rebalancing_needed:
        rebalancing_needed_counter.inc()


def summarize_portfolio(analysis: PortfolioAnalysis) -> Dict[str, Any]:
    return {
        "total_value": analysis.total_value,
        "risk_score": analysis.risk_assessment.risk_score,
        "recommendation_count": len(analysis.recommendations),
        "rebalancing_needed": analysis.rebalancing_needed,
    }


@router.post("/portfolio/analysis", response_model=PortfolioAnalysisResponse)
def create_portfolio_analysis(
    request_body: PortfolioAnalysisRequest,
    request: Request,
    config: Settings = Depends(get_settings),
):
    """Compare holdings with the target allocation and advise buy/sell/hold per asset class"""
    request_id = get_request_id(request)
    analysis = run_engine(
        "portfolio",
        request_id,
        lambda: build_portfolio_analysis(request_body, config),
        summarize_portfolio,
    )
    record_portfolio(analysis)
    return asdict(analysis)

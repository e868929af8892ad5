"""POST /v1/forecast - cash-flow forecast endpoint"""

from dataclasses import asdict
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from finsight.api.dependencies import get_request_id, get_settings, resolve_as_of
from finsight.api.v1.execution import run_engine
from finsight.api.v1.schemas import ForecastRequest, ForecastResponse
from finsight.config import Settings
from finsight.domain.forecasting import MIN_HISTORY_MONTHS, compute_cash_flow_forecast
from finsight.domain.models import CashFlowForecast
from finsight.infrastructure.observability.metrics import low_confidence_forecast_counter

router = APIRouter()


def build_forecast(body: ForecastRequest, config: Settings) -> CashFlowForecast:
    return compute_cash_flow_forecast(
        [t.to_domain() for t in body.transactions],
        body.current_balance,
        horizon_months=body.horizon_months,
        include_recurring=body.include_recurring,
        as_of=resolve_as_of(body.as_of, body.transactions),
        window_months=config.forecast_window_months,
        seasonal_adjustment=body.seasonal_adjustment,
    )


def record_forecast(forecast: CashFlowForecast) -> None:
    if forecast.insights.history_months < MIN_HISTORY_MONTHS:
        low_confidence_forecast_counter.inc()


def summarize_forecast(forecast: CashFlowForecast) -> Dict[str, Any]:
    return {
        "trend": forecast.trend,
        "horizon_months": len(forecast.predictions),
        "history_months": forecast.insights.history_months,
        "recommendation_count": len(forecast.recommendations),
    }


@router.post("/forecast", response_model=ForecastResponse)
def create_forecast(
    request_body: ForecastRequest,
    request: Request,
    config: Settings = Depends(get_settings),
):
    """
    Project monthly income, expenses and balance from a transaction snapshot.

    The caller supplies already-fetched transactions and the current balance;
    nothing is stored.
    """
    request_id = get_request_id(request)
    forecast = run_engine(
        "cash_flow",
        request_id,
        lambda: build_forecast(request_body, config),
        summarize_forecast,
    )
    record_forecast(forecast)
    return asdict(forecast)

"""Prometheus metrics for monitoring engine usage, alert volume and latency"""

from typing import Sequence

from prometheus_client import Counter, Histogram

from finsight.domain.models import BudgetAlert

# Engine metrics
engine_run_counter = Counter(
    "finsight_engine_runs_total",
    "Total engine invocations",
    ["engine", "outcome"],  # outcome: ok | invalid_input | error
)

engine_duration_histogram = Histogram(
    "finsight_engine_duration_seconds",
    "Engine computation time",
    ["engine"],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
)

budget_alert_counter = Counter(
    "finsight_budget_alerts_total",
    "Budget alerts emitted by severity",
    ["severity"],
)

rebalancing_needed_counter = Counter(
    "finsight_rebalancing_needed_total",
    "Portfolio analyses that flagged rebalancing",
)

low_confidence_forecast_counter = Counter(
    "finsight_low_history_forecasts_total",
    "Forecasts degraded because of short transaction history",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_engine_run(engine: str, outcome: str, duration_seconds: float | None = None) -> None:
    """Count an engine invocation and, when it completed, observe its latency"""
    engine_run_counter.labels(engine=engine, outcome=outcome).inc()
    if duration_seconds is not None:
        engine_duration_histogram.labels(engine=engine).observe(duration_seconds)


def record_budget_alerts(alerts: Sequence[BudgetAlert]) -> None:
    for alert in alerts:
        budget_alert_counter.labels(severity=alert.severity).inc()

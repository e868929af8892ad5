"""Integration tests for API endpoints"""

import pytest
from datetime import date, timedelta
from prometheus_client import REGISTRY
from fastapi.testclient import TestClient
from finsight.domain.portfolio import REBALANCE_INTERVAL_DAYS
from finsight.utils.date_utils import add_months, month_start

SEVERITIES = ("low", "medium", "high", "critical")


@pytest.fixture
def dining_budget_payload():
    """Three months of $1300 dining against a $1200 budget, $1100 spent so far"""
    return {
        "transactions": [
            {"date": f"2024-0{m}-15", "amount": -1300.0, "category": "Dining"} for m in (3, 4, 5)
        ],
        "budgets": [{"name": "Dining", "current_budget": 1200.0, "current_spending": 1100.0}],
        "as_of": "2024-06-20",
    }


@pytest.fixture
def drifted_portfolio_payload():
    return {
        "accounts": [
            {"name": "Brokerage", "asset_class": "Stocks", "balance": 60000.0},
            {"name": "Bond fund", "asset_class": "Bonds", "balance": 30000.0},
            {"name": "Savings", "asset_class": "Cash", "balance": 10000.0},
        ],
        "target_allocation": {"Stocks": 50, "Bonds": 40, "Cash": 10},
        "as_of": "2024-06-30",
    }


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "finsight_rebalancing_needed_total" in response.text


def test_request_id_is_propagated(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_request_id_is_generated_when_missing(client: TestClient):
    response = client.get("/health")
    assert response.headers["X-Request-ID"]


def test_forecast_endpoint(client: TestClient, steady_transactions_payload):
    """Test POST /v1/forecast with six steady months"""
    response = client.post(
        "/v1/forecast",
        json={
            "transactions": steady_transactions_payload,
            "current_balance": 10000.0,
            "horizon_months": 3,
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert [p["predicted_balance"] for p in data["predictions"]] == [11000.0, 12000.0, 13000.0]
    assert [p["date"] for p in data["predictions"]] == ["2024-07-01", "2024-08-01", "2024-09-01"]
    assert data["trend"] == "increasing"
    assert data["insights"]["recurring_transactions_count"] == 2
    assert len(data["recurring_series"]) == 2


def test_forecast_defaults_horizon(client: TestClient, steady_transactions_payload):
    response = client.post(
        "/v1/forecast",
        json={"transactions": steady_transactions_payload, "current_balance": 0.0},
    )

    assert response.status_code == 200
    assert len(response.json()["predictions"]) == 6


@pytest.mark.parametrize("horizon", [0, 25])
def test_forecast_rejects_out_of_range_horizon(client: TestClient, horizon):
    response = client.post(
        "/v1/forecast",
        json={"transactions": [], "current_balance": 0.0, "horizon_months": horizon},
    )
    assert response.status_code == 422


def test_forecast_rejects_unknown_transaction_type(client: TestClient):
    response = client.post(
        "/v1/forecast",
        json={
            "transactions": [{"date": "2024-01-01", "amount": 10.0, "category": "Misc", "type": "transfer"}],
            "current_balance": 0.0,
        },
    )
    assert response.status_code == 422


def test_budget_analysis_endpoint(client: TestClient, dining_budget_payload):
    """Test POST /v1/budget/analysis with a category near its limit"""
    response = client.post("/v1/budget/analysis", json=dining_budget_payload)

    assert response.status_code == 200
    data = response.json()
    assert len(data["alerts"]) == 1
    assert data["alerts"][0]["severity"] == "high"
    assert data["alerts"][0]["type"] == "approaching_limit"
    assert data["recommended_allocations"][0]["recommended_budget"] == 1250.0
    assert data["insights"]["recommended_savings_rate"] == 20.0


def test_budget_analysis_rejects_duplicate_categories(client: TestClient):
    response = client.post(
        "/v1/budget/analysis",
        json={
            "budgets": [
                {"name": "Dining", "current_budget": 100.0},
                {"name": "dining", "current_budget": 200.0},
            ]
        },
    )

    assert response.status_code == 422
    assert "duplicate" in response.json()["detail"]


def test_budget_analysis_rejects_negative_budget(client: TestClient):
    response = client.post(
        "/v1/budget/analysis",
        json={"budgets": [{"name": "Dining", "current_budget": -5.0}]},
    )
    assert response.status_code == 422


def test_portfolio_analysis_endpoint(client: TestClient, drifted_portfolio_payload):
    """Test POST /v1/portfolio/analysis with a 60/30/10 portfolio against 50/40/10"""
    response = client.post("/v1/portfolio/analysis", json=drifted_portfolio_payload)

    assert response.status_code == 200
    data = response.json()
    actions = {a["asset_class"]: a["recommendation"] for a in data["allocations"]}
    assert actions == {"Bonds": "buy", "Cash": "hold", "Stocks": "sell"}
    assert data["rebalancing_needed"] is True
    assert data["next_rebalance_date"] == "2024-07-30"
    assert data["performance"]["benchmark"] == "S&P 500"


def test_portfolio_analysis_rejects_bad_target_sum(client: TestClient, drifted_portfolio_payload):
    drifted_portfolio_payload["target_allocation"] = {"Stocks": 50, "Bonds": 40}

    response = client.post("/v1/portfolio/analysis", json=drifted_portfolio_payload)

    assert response.status_code == 422
    assert "sum to 100" in response.json()["detail"]


def test_insights_endpoint_merges_engines(
    client: TestClient, steady_transactions_payload, dining_budget_payload, drifted_portfolio_payload
):
    """Test POST /v1/insights with all three sections"""
    response = client.post(
        "/v1/insights",
        json={
            "forecast": {
                "transactions": steady_transactions_payload,
                "current_balance": 10000.0,
                "horizon_months": 3,
            },
            "budget": dining_budget_payload,
            "portfolio": drifted_portfolio_payload,
        },
    )

    assert response.status_code == 200
    data = response.json()
    titles = [item["title"] for item in data["action_items"]]
    assert titles[:4] == [
        "Approaching budget limit: Dining",
        "Adjust Dining budget to $1,250",
        "Increase Bonds allocation",
        "Reduce Stocks allocation",
    ]
    assert data["forecast"]["trend"] == "increasing"
    assert data["budget"]["alerts"][0]["category"] == "Dining"
    assert data["portfolio"]["rebalancing_needed"] is True


def test_insights_endpoint_respects_limit(client: TestClient, drifted_portfolio_payload):
    response = client.post("/v1/insights", json={"portfolio": drifted_portfolio_payload, "limit": 1})

    assert response.status_code == 200
    data = response.json()
    assert [item["title"] for item in data["action_items"]] == ["Increase Bonds allocation"]
    assert data["forecast"] is None
    assert data["budget"] is None


def test_insights_endpoint_with_no_sections(client: TestClient):
    response = client.post("/v1/insights", json={})

    assert response.status_code == 200
    assert response.json()["action_items"] == []


def test_insights_endpoint_surfaces_engine_validation_errors(client: TestClient, drifted_portfolio_payload):
    drifted_portfolio_payload["historical_returns"] = {"Stocks": [-2.0]}

    response = client.post("/v1/insights", json={"portfolio": drifted_portfolio_payload})

    assert response.status_code == 422


def test_forecast_without_history_starts_from_today(client: TestClient):
    response = client.post("/v1/forecast", json={"transactions": [], "current_balance": 500.0, "horizon_months": 2})

    assert response.status_code == 200
    predictions = response.json()["predictions"]
    assert predictions[0]["date"] == add_months(month_start(date.today()), 1).isoformat()
    assert [p["predicted_balance"] for p in predictions] == [500.0, 500.0]


def test_portfolio_analysis_without_as_of_uses_today(client: TestClient, drifted_portfolio_payload):
    del drifted_portfolio_payload["as_of"]

    response = client.post("/v1/portfolio/analysis", json=drifted_portfolio_payload)

    assert response.status_code == 200
    expected = date.today() + timedelta(days=REBALANCE_INTERVAL_DAYS)
    assert response.json()["next_rebalance_date"] == expected.isoformat()


def test_insights_endpoint_records_engine_metrics(
    client: TestClient, dining_budget_payload, drifted_portfolio_payload
):
    def sample(name, labels=None):
        return REGISTRY.get_sample_value(name, labels) or 0.0

    rebalancing_before = sample("finsight_rebalancing_needed_total")
    alerts_before = {s: sample("finsight_budget_alerts_total", {"severity": s}) for s in SEVERITIES}

    response = client.post(
        "/v1/insights", json={"budget": dining_budget_payload, "portfolio": drifted_portfolio_payload}
    )

    assert response.status_code == 200
    alerts = response.json()["budget"]["alerts"]
    assert alerts
    assert sample("finsight_rebalancing_needed_total") == rebalancing_before + 1
    for severity in SEVERITIES:
        emitted = sum(1 for a in alerts if a["severity"] == severity)
        assert sample("finsight_budget_alerts_total", {"severity": severity}) == alerts_before[severity] + emitted

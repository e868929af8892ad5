"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date
from typing import Dict, List, Literal, Optional

from finsight.config import settings
from finsight.domain.models import Account, BudgetCategory, Transaction

Priority = Literal["low", "medium", "high", "critical"]


# Requests


class TransactionSchema(BaseModel):
    """Single historical transaction; amount is signed (income positive)"""

    date: date
    amount: float
    category: str = Field(..., min_length=1)
    description: str = ""
    type: Optional[Literal["income", "expense"]] = None

    def to_domain(self) -> Transaction:
        return Transaction(
            date=self.date,
            amount=self.amount,
            category=self.category,
            description=self.description,
            type=self.type,
        )


class ForecastRequest(BaseModel):
    """Request body for POST /v1/forecast"""

    transactions: List[TransactionSchema] = Field(default_factory=list)
    current_balance: float
    horizon_months: int = Field(
        settings.default_horizon_months, ge=1, le=settings.max_horizon_months, description="Months to project"
    )
    include_recurring: bool = True
    seasonal_adjustment: bool = False
    as_of: Optional[date] = None


class BudgetCategorySchema(BaseModel):
    name: str = Field(..., min_length=1)
    current_budget: float = Field(..., ge=0)
    current_spending: Optional[float] = Field(None, ge=0)

    def to_domain(self) -> BudgetCategory:
        return BudgetCategory(
            name=self.name,
            current_budget=self.current_budget,
            current_spending=self.current_spending,
        )


class BudgetAnalysisRequest(BaseModel):
    """Request body for POST /v1/budget/analysis"""

    transactions: List[TransactionSchema] = Field(default_factory=list)
    budgets: List[BudgetCategorySchema]
    monthly_income: Optional[float] = Field(None, ge=0)
    as_of: Optional[date] = None


class AccountSchema(BaseModel):
    name: str = ""
    asset_class: str = Field(..., min_length=1)
    balance: float = Field(..., ge=0)

    def to_domain(self) -> Account:
        return Account(name=self.name, asset_class=self.asset_class, balance=self.balance)


class PortfolioAnalysisRequest(BaseModel):
    """Request body for POST /v1/portfolio/analysis; returns are monthly decimals"""

    accounts: List[AccountSchema]
    target_allocation: Dict[str, float] = Field(default_factory=dict)
    historical_returns: Dict[str, List[float]] = Field(default_factory=dict)
    benchmark_returns: Optional[List[float]] = None
    as_of: Optional[date] = None


class InsightsRequest(BaseModel):
    """Request body for POST /v1/insights; every section is optional"""

    forecast: Optional[ForecastRequest] = None
    budget: Optional[BudgetAnalysisRequest] = None
    portfolio: Optional[PortfolioAnalysisRequest] = None
    limit: Optional[int] = Field(None, ge=1)


# Responses


class RecurringSeriesSchema(BaseModel):
    category: str
    kind: str
    amount: float
    interval_days: int
    last_seen_date: date
    occurrence_count: int
    first_seen_date: Optional[date] = None


class CashFlowPredictionSchema(BaseModel):
    date: date
    predicted_income: float
    predicted_expenses: float
    predicted_balance: float
    confidence: float


class CashFlowInsightsSchema(BaseModel):
    avg_monthly_income: float
    avg_monthly_expenses: float
    monthly_net_change: float
    volatility: float
    recurring_transactions_count: int
    history_months: int


class CashFlowRecommendationSchema(BaseModel):
    title: str
    description: str
    priority: Priority


class ForecastResponse(BaseModel):
    """Response for POST /v1/forecast"""

    current_balance: float
    predictions: List[CashFlowPredictionSchema]
    insights: CashFlowInsightsSchema
    recommendations: List[CashFlowRecommendationSchema]
    trend: Literal["increasing", "decreasing", "stable"]
    recurring_series: List[RecurringSeriesSchema]


class BudgetAlertSchema(BaseModel):
    id: str
    severity: Priority
    type: str
    category: str
    title: str
    message: str
    suggested_action: str
    utilization: float


class BudgetRecommendationSchema(BaseModel):
    category: str
    current_budget: float
    current_spending: float
    recommended_budget: float
    potential_savings: float
    priority: Literal["low", "medium", "high"]
    reasoning: str
    utilization: float
    recent_average_spend: float


class BudgetInsightsSchema(BaseModel):
    total_income: float
    total_spending: float
    savings_rate: float
    recommended_savings_rate: float
    budget_efficiency: float
    highest_spending_category: Optional[str] = None
    variability_score: float


class BudgetAnalysisResponse(BaseModel):
    """Response for POST /v1/budget/analysis"""

    insights: BudgetInsightsSchema
    recommended_allocations: List[BudgetRecommendationSchema]
    alerts: List[BudgetAlertSchema]
    action_items: List[str]


class AssetAllocationSchema(BaseModel):
    asset_class: str
    current_value: float
    current_percentage: float
    target_percentage: float
    variance: float
    recommendation: Literal["buy", "sell", "hold"]
    amount: float


class RiskAssessmentSchema(BaseModel):
    risk_score: float
    risk_level: Literal["low", "medium", "high"]
    volatility: float
    beta: float
    sharpe_ratio: float
    diversification_score: float
    factors: List[str]


class PerformanceSchema(BaseModel):
    monthly_return: float
    yearly_return: float
    total_return: float
    annualized_return: float
    benchmark: str
    benchmark_return: float
    alpha: float


class PortfolioRecommendationSchema(BaseModel):
    title: str
    description: str
    priority: Priority
    expected_benefit: str
    timeframe: str
    steps: List[str]
    asset_class: Optional[str] = None
    estimated_savings: Optional[float] = None
    estimated_cost: Optional[float] = None


class PortfolioAnalysisResponse(BaseModel):
    """Response for POST /v1/portfolio/analysis"""

    total_value: float
    risk_assessment: RiskAssessmentSchema
    performance: PerformanceSchema
    allocations: List[AssetAllocationSchema]
    recommendations: List[PortfolioRecommendationSchema]
    rebalancing_needed: bool
    next_rebalance_date: Optional[date] = None


class ActionItemSchema(BaseModel):
    source: Literal["cash_flow", "budget_alert", "budget", "portfolio"]
    priority: Priority
    title: str
    description: str
    reference: Optional[str] = None


class InsightsResponse(BaseModel):
    """Response for POST /v1/insights"""

    action_items: List[ActionItemSchema]
    forecast: Optional[ForecastResponse] = None
    budget: Optional[BudgetAnalysisResponse] = None
    portfolio: Optional[PortfolioAnalysisResponse] = None

"""Domain models - pure Python dataclasses representing engine inputs and results"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional

INCOME = "income"
EXPENSE = "expense"


@dataclass(frozen=True)
class Transaction:
    """Historical bank transaction supplied by the caller"""

    date: date
    amount: float  # signed: income positive, expense negative
    category: str
    description: str = ""
    type: Optional[str] = None  # "income" or "expense"; overrides the sign when set

    @property
    def kind(self) -> str:
        if self.type is not None:
            return self.type
        return INCOME if self.amount > 0 else EXPENSE

    @property
    def magnitude(self) -> float:
        return abs(self.amount)


@dataclass
class MonthlyBucket:
    """Income and expense totals for one calendar month"""

    month_start: date
    total_income: float = 0.0
    total_expenses: float = 0.0
    transaction_count: int = 0

    @property
    def net(self) -> float:
        return self.total_income - self.total_expenses


@dataclass
class RecurringSeries:
    """Transactions of one category and near-equal amount repeating at a steady interval"""

    category: str
    kind: str
    amount: float
    interval_days: int
    last_seen_date: date
    occurrence_count: int
    first_seen_date: Optional[date] = None

    @property
    def next_due_date(self) -> date:
        return self.last_seen_date + timedelta(days=self.interval_days)


@dataclass
class CashFlowPrediction:
    """Projected totals for a single forecast month"""

    date: date
    predicted_income: float
    predicted_expenses: float
    predicted_balance: float
    confidence: float


@dataclass
class CashFlowInsights:
    avg_monthly_income: float
    avg_monthly_expenses: float
    monthly_net_change: float
    volatility: float
    recurring_transactions_count: int
    history_months: int


@dataclass
class CashFlowRecommendation:
    title: str
    description: str
    priority: str  # low | medium | high | critical


@dataclass
class CashFlowForecast:
    """Output of the cash-flow forecaster"""

    current_balance: float
    predictions: List[CashFlowPrediction]
    insights: CashFlowInsights
    recommendations: List[CashFlowRecommendation]
    trend: str  # increasing | decreasing | stable
    recurring_series: List[RecurringSeries] = field(default_factory=list)


@dataclass
class BudgetCategory:
    """Budgeted amount for one category; spending is derived when omitted"""

    name: str
    current_budget: float
    current_spending: Optional[float] = None


@dataclass
class BudgetAlert:
    id: str
    severity: str  # low | medium | high | critical
    type: str  # overspend | approaching_limit | unusual_spending
    category: str
    title: str
    message: str
    suggested_action: str
    utilization: float


@dataclass
class BudgetRecommendation:
    category: str
    current_budget: float
    current_spending: float
    recommended_budget: float
    potential_savings: float
    priority: str  # low | medium | high
    reasoning: str
    utilization: float
    recent_average_spend: float


@dataclass
class BudgetInsights:
    """Portfolio-wide budget metrics; rates are percentages"""

    total_income: float
    total_spending: float
    savings_rate: float
    recommended_savings_rate: float
    budget_efficiency: float
    highest_spending_category: Optional[str]
    variability_score: float


@dataclass
class BudgetAnalysis:
    """Output of the budget analyzer"""

    insights: BudgetInsights
    recommended_allocations: List[BudgetRecommendation]
    alerts: List[BudgetAlert]
    action_items: List[str]


@dataclass(frozen=True)
class Account:
    """Investment or cash account balance tagged with an asset class"""

    name: str
    asset_class: str
    balance: float


@dataclass
class AssetAllocationEntry:
    asset_class: str
    current_value: float
    current_percentage: float
    target_percentage: float
    variance: float
    recommendation: str  # buy | sell | hold
    amount: float


@dataclass
class RiskAssessment:
    risk_score: float
    risk_level: str  # low | medium | high
    volatility: float
    beta: float
    sharpe_ratio: float
    diversification_score: float
    factors: List[str] = field(default_factory=list)


@dataclass
class PerformanceSummary:
    """Allocation-weighted returns, in percent"""

    monthly_return: float
    yearly_return: float
    total_return: float
    annualized_return: float
    benchmark: str
    benchmark_return: float
    alpha: float


@dataclass
class PortfolioRecommendation:
    title: str
    description: str
    priority: str  # low | medium | high | critical
    expected_benefit: str
    timeframe: str
    steps: List[str]
    asset_class: Optional[str] = None
    estimated_savings: Optional[float] = None
    estimated_cost: Optional[float] = None


@dataclass
class PortfolioAnalysis:
    """Output of the portfolio advisor"""

    total_value: float
    risk_assessment: RiskAssessment
    performance: PerformanceSummary
    allocations: List[AssetAllocationEntry]
    recommendations: List[PortfolioRecommendation]
    rebalancing_needed: bool
    next_rebalance_date: Optional[date] = None


@dataclass
class ActionItem:
    """Single ranked entry in the merged insight list"""

    source: str  # cash_flow | budget_alert | budget | portfolio
    priority: str
    title: str
    description: str
    reference: Optional[str] = None

from typing import Literal, Optional, List, Dict, Any
from datetime import datetime

from pydantic import BaseModel


class DashboardData(BaseModel):
    monthly_recurring_revenue: float
    mrr_growth_rate: float
    active_subscribers: int
    new_subscribers: int
    transaction_volume: float
    transaction_count: int
    net_profit: float
    profit_margin: float
    total_revenue: float
    total_expenses: float
    cash_balance: float
    cash_runway_months: float
    monthly_burn_rate: float
    average_transaction_value: float


class RevenueBreakdown(BaseModel):
    subscription_revenue: float
    transaction_fee_revenue: float
    withdrawal_fee_revenue: float
    other_revenue: float


class ExpenseBreakdown(BaseModel):
    infrastructure_costs: float
    personnel_costs: float
    marketing_costs: float
    administrative_costs: float
    other_costs: float


class RecentTransaction(BaseModel):
    id: str
    transaction_type: str
    amount: float
    description: Optional[str] = None
    pharmacy_name: Optional[str] = None
    created_at: datetime
    status: str


class FinancialOverview(BaseModel):
    dashboard: DashboardData
    revenue: RevenueBreakdown
    expenses: ExpenseBreakdown
    recent_transactions: List[RecentTransaction]
    refresh_interval_seconds: int


AlertType = Literal["critical", "warning", "info", "success"]
AlertCategory = Literal[
    "cash_flow",
    "revenue_growth",
    "customer_retention",
    "profitability",
    "expenses",
    "subscriptions",
    "system",
]


class FinancialAlert(BaseModel):
    id: str
    type: AlertType
    category: AlertCategory
    title: str
    message: str
    action: Optional[str] = None
    severity: int
    is_read: bool = False
    is_dismissed: bool = False
    created_at: datetime
    expires_at: Optional[datetime] = None
    metadata: Dict[str, Any] = {}


class AlertSummary(BaseModel):
    critical_count: int
    warning_count: int
    info_count: int
    unread_count: int
    last_check: datetime
    refresh_interval_seconds: int


class AlertSettings(BaseModel):
    cash_runway_threshold: float
    churn_rate_threshold: float
    revenue_decline_threshold: float
    expense_budget_threshold: float

import uuid

from sqlalchemy import Column, String, DateTime, Integer, Numeric, Text, Float, ForeignKey, UniqueConstraint

from pharmasave.db.base import Base
from pharmasave.utils.timezone import now_utc


class FinancialMetrics(Base):
    __tablename__ = "financial_metrics"
    __table_args__ = (UniqueConstraint("year", "month", name="uq_financial_metrics_period"),)

    id = Column(Integer, primary_key=True, index=True)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    monthly_recurring_revenue = Column(Numeric(14, 2), default=0)
    mrr_growth_rate = Column(Float, default=0)
    active_subscribers = Column(Integer, default=0)
    new_subscribers = Column(Integer, default=0)
    churned_subscribers = Column(Integer, default=0)
    transaction_volume = Column(Numeric(14, 2), default=0)
    transaction_count = Column(Integer, default=0)
    average_transaction_value = Column(Numeric(14, 2), default=0)
    total_revenue = Column(Numeric(14, 2), default=0)
    total_expenses = Column(Numeric(14, 2), default=0)
    net_profit = Column(Numeric(14, 2), default=0)
    profit_margin = Column(Float, default=0)
    cash_balance = Column(Numeric(14, 2), default=0)
    cash_runway_months = Column(Float, default=0)
    monthly_burn_rate = Column(Numeric(14, 2), default=0)
    created_at = Column(DateTime, default=now_utc)


class RevenueBreakdown(Base):
    __tablename__ = "revenue_breakdown"
    __table_args__ = (UniqueConstraint("year", "month", name="uq_revenue_breakdown_period"),)

    id = Column(Integer, primary_key=True, index=True)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    subscription_revenue = Column(Numeric(14, 2), default=0)
    transaction_fee_revenue = Column(Numeric(14, 2), default=0)
    withdrawal_fee_revenue = Column(Numeric(14, 2), default=0)
    other_revenue = Column(Numeric(14, 2), default=0)


class ExpenseBreakdown(Base):
    __tablename__ = "expense_breakdown"
    __table_args__ = (UniqueConstraint("year", "month", name="uq_expense_breakdown_period"),)

    id = Column(Integer, primary_key=True, index=True)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    infrastructure_costs = Column(Numeric(14, 2), default=0)
    personnel_costs = Column(Numeric(14, 2), default=0)
    marketing_costs = Column(Numeric(14, 2), default=0)
    administrative_costs = Column(Numeric(14, 2), default=0)
    other_costs = Column(Numeric(14, 2), default=0)


class TransactionHistory(Base):
    """Platform-side revenue ledger: subscriptions, transaction fees, withdrawal fees."""

    __tablename__ = "transaction_history"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    pharmacy_id = Column(String(36), ForeignKey("pharmacies.id"), nullable=True, index=True)
    transaction_type = Column(String(32), nullable=False)
    category = Column(String(32), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(Text, nullable=True)
    reference_id = Column(String, nullable=True)
    status = Column(String(20), default="completed", nullable=False)
    created_at = Column(DateTime, default=now_utc, index=True)


class PlatformConfig(Base):
    __tablename__ = "platform_config"

    id = Column(Integer, primary_key=True, index=True)
    config_key = Column(String(64), unique=True, nullable=False, index=True)
    config_value = Column(Numeric(14, 4), nullable=False)
    description = Column(String, nullable=True)
    updated_by = Column(String(36), nullable=True)
    updated_at = Column(DateTime, default=now_utc, onupdate=now_utc)

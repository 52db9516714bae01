from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pharmasave import models
from pharmasave.api import deps
from pharmasave.schemas.financial import (
    AlertSettings,
    AlertSummary,
    DashboardData,
    ExpenseBreakdown,
    FinancialAlert,
    FinancialOverview,
    RecentTransaction,
    RevenueBreakdown,
)
from pharmasave.services import financial_service

router = APIRouter()


@router.get("/overview", response_model=FinancialOverview)
def financial_overview(
    *,
    db: Session = Depends(deps.get_db),
    _: models.AdminUser = Depends(deps.get_current_admin),
    year: Optional[int] = Query(None, ge=2000),
    month: Optional[int] = Query(None, ge=1, le=12),
    limit: int = Query(10, ge=1, le=100),
) -> Any:
    """
    Dashboard, revenue, expenses and recent transactions in one payload.
    Each section falls back to demo figures independently when data is missing.
    """
    return financial_service.get_overview(db, year=year, month=month, limit=limit)


@router.get("/dashboard", response_model=DashboardData)
def dashboard(
    *,
    db: Session = Depends(deps.get_db),
    _: models.AdminUser = Depends(deps.get_current_admin),
    year: Optional[int] = Query(None, ge=2000),
    month: Optional[int] = Query(None, ge=1, le=12),
) -> Any:
    return financial_service.get_dashboard_data(db, year=year, month=month)


@router.get("/revenue", response_model=RevenueBreakdown)
def revenue_breakdown(
    *,
    db: Session = Depends(deps.get_db),
    _: models.AdminUser = Depends(deps.get_current_admin),
    year: Optional[int] = Query(None, ge=2000),
    month: Optional[int] = Query(None, ge=1, le=12),
) -> Any:
    return financial_service.get_revenue_breakdown(db, year=year, month=month)


@router.get("/expenses", response_model=ExpenseBreakdown)
def expense_breakdown(
    *,
    db: Session = Depends(deps.get_db),
    _: models.AdminUser = Depends(deps.get_current_admin),
    year: Optional[int] = Query(None, ge=2000),
    month: Optional[int] = Query(None, ge=1, le=12),
) -> Any:
    return financial_service.get_expense_breakdown(db, year=year, month=month)


@router.get("/transactions", response_model=List[RecentTransaction])
def recent_transactions(
    *,
    db: Session = Depends(deps.get_db),
    _: models.AdminUser = Depends(deps.get_current_admin),
    limit: int = Query(10, ge=1, le=100),
) -> Any:
    return financial_service.get_recent_transactions(db, limit=limit)


@router.get("/alerts", response_model=List[FinancialAlert])
def financial_alerts(
    *,
    db: Session = Depends(deps.get_db),
    _: models.AdminUser = Depends(deps.get_current_admin),
    alert_type: str = Query("all", alias="type"),
    category: str = "all",
) -> Any:
    return financial_service.get_financial_alerts(db, alert_type=alert_type, category=category)


@router.get("/alerts/summary", response_model=AlertSummary)
def alert_summary(
    *,
    db: Session = Depends(deps.get_db),
    _: models.AdminUser = Depends(deps.get_current_admin),
) -> Any:
    return financial_service.get_alert_summary(db)


@router.get("/alerts/settings", response_model=AlertSettings)
def alert_settings(
    *,
    _: models.AdminUser = Depends(deps.get_current_admin),
) -> Any:
    return financial_service.get_alert_settings()

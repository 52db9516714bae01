import pytest

from pharmasave.models import FinancialMetrics
from pharmasave.services import financial_service
from pharmasave.services.platform_revenue import record_subscription_payment
from pharmasave.utils.formatting import format_percentage
from pharmasave.utils.timezone import now_utc


def _metrics(db, **values):
    now = now_utc()
    row = FinancialMetrics(year=now.year, month=now.month, **values)
    db.add(row)
    db.commit()
    return row


def test_dashboard_is_demo_data_without_tables(db, monkeypatch):
    monkeypatch.setattr(financial_service, "tables_exist", lambda db, names: [])

    dashboard = financial_service.get_dashboard_data(db)

    assert dashboard == financial_service.MOCK_DASHBOARD
    assert dashboard.monthly_recurring_revenue == 147 * 999


def test_dashboard_estimated_from_pharmacies(db, owner, other_owner):
    dashboard = financial_service.get_dashboard_data(db)

    assert dashboard.active_subscribers == 2
    assert dashboard.monthly_recurring_revenue == 2 * 999
    assert dashboard.transaction_count == 20
    assert dashboard.cash_balance == 50000


def test_dashboard_uses_monthly_metrics(db):
    _metrics(db, monthly_recurring_revenue=12000, active_subscribers=12, cash_runway_months=9)

    dashboard = financial_service.get_dashboard_data(db)

    assert dashboard.monthly_recurring_revenue == 12000
    assert dashboard.active_subscribers == 12
    assert dashboard.cash_runway_months == 9


def test_breakdowns_fall_back_to_demo_data(db):
    assert financial_service.get_revenue_breakdown(db) == financial_service.MOCK_REVENUE
    assert financial_service.get_expense_breakdown(db) == financial_service.MOCK_EXPENSES
    assert len(financial_service.get_recent_transactions(db)) == 4


def test_recent_transactions_come_from_revenue_ledger(db, owner):
    record_subscription_payment(db, pharmacy_id=owner.pharmacy_id, pharmacy_name="Nile Pharmacy")

    transactions = financial_service.get_recent_transactions(db)

    assert len(transactions) == 1
    assert transactions[0].transaction_type == "subscription_revenue"
    assert transactions[0].amount == 999
    assert transactions[0].pharmacy_name == "Nile Pharmacy"


def test_overview_bundles_every_section(db):
    overview = financial_service.get_overview(db)
    assert overview.refresh_interval_seconds == 300
    assert overview.revenue == financial_service.MOCK_REVENUE


def test_demo_alerts_sorted_by_severity(db):
    alerts = financial_service.get_financial_alerts(db)

    assert [a.severity for a in alerts] == [1, 2, 2, 3, 4]
    assert [a.id for a in financial_service.get_financial_alerts(db, alert_type="warning")] == ["2", "3"]
    assert [a.id for a in financial_service.get_financial_alerts(db, category="cash_flow")] == ["1"]


def test_alert_summary_counts(db):
    summary = financial_service.get_alert_summary(db)

    assert summary.critical_count == 1
    assert summary.warning_count == 2
    assert summary.info_count == 1
    assert summary.unread_count == 2
    assert summary.refresh_interval_seconds == 30


def test_alerts_evaluated_against_thresholds(db):
    _metrics(
        db,
        cash_runway_months=3,
        active_subscribers=100,
        churned_subscribers=10,
        mrr_growth_rate=-15,
        total_revenue=100000,
        total_expenses=95000,
    )

    alerts = financial_service.get_financial_alerts(db)

    assert {a.category for a in alerts} == {"cash_flow", "customer_retention", "revenue_growth", "expenses"}
    assert alerts[0].type == "critical"
    assert alerts[0].message == "Cash runway has dropped to 3 months. Immediate attention required."
    revenue = next(a for a in alerts if a.category == "revenue_growth")
    assert revenue.message == "Recurring revenue changed by -15.0% month-over-month."


def test_healthy_month_yields_success_alert(db):
    _metrics(
        db,
        cash_runway_months=18,
        active_subscribers=100,
        churned_subscribers=1,
        mrr_growth_rate=4,
        total_revenue=100000,
        total_expenses=60000,
    )

    alerts = financial_service.get_financial_alerts(db)

    assert [a.type for a in alerts] == ["success"]


@pytest.mark.parametrize("value, text", [(4, "+4.0%"), (-15, "-15.0%"), (0, "+0.0%"), (None, "+0.0%")])
def test_format_percentage_is_signed(value, text):
    assert format_percentage(value) == text

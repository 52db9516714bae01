from decimal import Decimal

import pytest

from pharmasave import crud
from pharmasave.core.exceptions import ConflictError, InsufficientFundsError, ValidationFailedError
from pharmasave.models import Notification, RequestStatus, TransactionHistory, WalletTransaction
from pharmasave.services import wallet_service


@pytest.mark.parametrize(
    "amount, message",
    [
        (None, "Please enter a valid amount"),
        ("abc", "Please enter a valid amount"),
        (50, "Minimum fund request amount is 100 EGP"),
        (20000, "Maximum fund request amount is 10,000 EGP per transaction"),
        (150.5, "Amount must be a whole number (no decimals)"),
        (2222, "Please avoid repetitive number patterns"),
        (500, None),
    ],
)
def test_fund_amount_validation(amount, message):
    assert wallet_service.validate_fund_amount(amount) == message


def test_withdrawal_validation_reports_every_field():
    errors = wallet_service.validate_withdrawal(50, "", "12ab", "J")

    assert errors == {
        "amount": "Minimum withdrawal amount is 100 EGP",
        "bank_name": "Bank name is required",
        "account_number": "Please enter a valid account number (minimum 10 digits)",
        "account_holder_name": "Account holder name must be at least 3 characters",
    }


def test_withdrawal_validation_checks_balance_and_characters():
    errors = wallet_service.validate_withdrawal(900, "Bank 1", "12345678901", "Sara Hassan", available_balance=500)

    assert errors["amount"] == "Insufficient balance. Available: 500.00 EGP"
    assert errors["bank_name"] == "Bank name can only contain letters, spaces, hyphens, and periods"
    assert "account_number" not in errors
    assert "account_holder_name" not in errors


def test_fund_request_reference_uses_display_id(db, owner):
    fund_request = wallet_service.create_fund_request(db, pharmacist=owner, amount=500)

    assert fund_request.status == RequestStatus.PENDING
    assert fund_request.reference.startswith(f"{owner.pharmacy.display_id}-FUND-")
    assert "Amount: 500 EGP" in fund_request.reason


def test_invalid_fund_request_is_rejected(db, owner):
    with pytest.raises(ValidationFailedError) as exc:
        wallet_service.create_fund_request(db, pharmacist=owner, amount=3333)
    assert exc.value.details == {"amount": "Please avoid repetitive number patterns"}


def test_approving_fund_request_credits_wallet(db, owner, admin):
    fund_request = wallet_service.create_fund_request(db, pharmacist=owner, amount=1000)

    processed = wallet_service.process_fund_request(
        db, request_id=fund_request.id, action="approve", admin_id=admin.id
    )

    assert processed.status == RequestStatus.APPROVED
    assert processed.processed_by == admin.id
    wallet = crud.wallet.get_by_pharmacy(db, pharmacy_id=owner.pharmacy_id)
    assert Decimal(wallet.available_balance) == Decimal("1000")
    movement = db.query(WalletTransaction).filter(WalletTransaction.pharmacy_id == owner.pharmacy_id).one()
    assert Decimal(movement.balance_before) == 0
    assert Decimal(movement.balance_after) == Decimal("1000")
    assert db.query(Notification).filter(Notification.pharmacy_id == owner.pharmacy_id).count() == 1


def test_rejecting_fund_request_leaves_wallet_alone(db, owner):
    fund_request = wallet_service.create_fund_request(db, pharmacist=owner, amount=1000)

    processed = wallet_service.process_fund_request(db, request_id=fund_request.id, action="reject")

    assert processed.status == RequestStatus.REJECTED
    assert processed.admin_notes == "Fund request rejected"
    wallet = crud.wallet.get_by_pharmacy(db, pharmacy_id=owner.pharmacy_id)
    assert Decimal(wallet.available_balance) == 0


def test_fund_request_cannot_be_processed_twice(db, owner):
    fund_request = wallet_service.create_fund_request(db, pharmacist=owner, amount=1000)
    wallet_service.process_fund_request(db, request_id=fund_request.id, action="approve")

    with pytest.raises(ConflictError):
        wallet_service.process_fund_request(db, request_id=fund_request.id, action="approve")


def _fund(db, pharmacist, amount=2000):
    fund_request = wallet_service.create_fund_request(db, pharmacist=pharmacist, amount=amount)
    wallet_service.process_fund_request(db, request_id=fund_request.id, action="approve")


def _withdraw(db, pharmacist, amount):
    return wallet_service.create_withdrawal_request(
        db,
        pharmacist=pharmacist,
        amount=amount,
        bank_name="National Bank",
        account_number="12345678901234",
        account_holder_name="Sara Hassan",
    )


def test_withdrawal_request_above_balance_fails(db, owner):
    with pytest.raises(ValidationFailedError) as exc:
        _withdraw(db, owner, 500)
    assert "amount" in exc.value.details


def test_approved_withdrawal_debits_wallet_and_books_fee(db, owner):
    _fund(db, owner)
    withdrawal = _withdraw(db, owner, 500)
    assert withdrawal.reference.startswith(f"WD-{owner.pharmacy.display_id}-")

    processed = wallet_service.process_withdrawal_request(db, request_id=withdrawal.id, action="approve")

    assert processed.status == RequestStatus.APPROVED
    wallet = crud.wallet.get_by_pharmacy(db, pharmacy_id=owner.pharmacy_id)
    assert Decimal(wallet.available_balance) == Decimal("1500")
    fee = db.query(TransactionHistory).filter(TransactionHistory.category == "withdrawal_fee").one()
    assert Decimal(fee.amount) == Decimal("5")


def test_withdrawal_approval_rechecks_balance(db, owner):
    _fund(db, owner, amount=1000)
    first = _withdraw(db, owner, 800)
    second = _withdraw(db, owner, 800)
    wallet_service.process_withdrawal_request(db, request_id=first.id, action="approve")

    with pytest.raises(InsufficientFundsError):
        wallet_service.process_withdrawal_request(db, request_id=second.id, action="approve")


def test_wallet_summary_counts_pending_requests(db, owner):
    _fund(db, owner)
    wallet_service.create_fund_request(db, pharmacist=owner, amount=300)
    _withdraw(db, owner, 400)

    summary = wallet_service.get_wallet_summary(db, pharmacy_id=owner.pharmacy_id)

    assert summary.wallet.available_balance == 2000
    assert summary.pending_fund_requests == 1
    assert summary.pending_withdrawal_requests == 1
    assert summary.pending_withdrawal_amount == 400
    assert len(summary.recent_transactions) == 1


def test_fund_management_stats(db, owner):
    _fund(db, owner)
    wallet_service.create_fund_request(db, pharmacist=owner, amount=300)

    stats = wallet_service.fund_management_stats(db)

    assert stats.pending_fund_requests == 1
    assert stats.pending_fund_amount == 300
    assert stats.processed_today == 1


def test_admin_list_filters_by_status_and_search(db, owner, other_owner):
    wallet_service.create_fund_request(db, pharmacist=owner, amount=300)
    wallet_service.create_fund_request(db, pharmacist=other_owner, amount=400)

    rows = wallet_service.list_fund_requests(db, status="pending", search="Delta")

    assert [row.pharmacy_name for row in rows] == ["Delta Pharmacy"]
    assert rows[0].kind == "fund"

"""
Pharmacy wallets, fund requests and withdrawal requests.

Pharmacies top up by bank transfer: they file a fund request, an admin confirms the
transfer and the amount is credited. Withdrawals run the other way and are debited
when an admin approves them.
"""

import logging
import re
from decimal import Decimal
from typing import Dict, List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pharmasave import crud
from pharmasave.core.config import settings
from pharmasave.core.database_utils import routine_exists, call_routine
from pharmasave.core.exceptions import (
    ConflictError,
    InsufficientFundsError,
    NotFoundError,
    ValidationFailedError,
)
from pharmasave.models import (
    FundRequest,
    NotificationType,
    Pharmacist,
    Pharmacy,
    RequestStatus,
    Wallet,
    WalletTransaction,
    WalletTransactionType,
    WithdrawalRequest,
)
from pharmasave.schemas.wallet import (
    AdminRequestRow,
    FundManagementStats,
    WalletSummary,
    Wallet as WalletSchema,
    WalletTransaction as WalletTransactionSchema,
)
from pharmasave.services import notification_service
from pharmasave.services.platform_revenue import record_withdrawal_fee
from pharmasave.utils.formatting import short_timestamp, to_money
from pharmasave.utils.timezone import now_utc

logger = logging.getLogger(__name__)

NAME_PATTERN = re.compile(r"^[a-zA-Z\s\-\.]+$")
REPETITIVE_AMOUNTS = {1111, 2222, 3333}

Amount = Union[int, float, str, Decimal, None]


def _parse_amount(amount: Amount) -> Optional[Decimal]:
    if amount is None or amount == "":
        return None
    try:
        value = Decimal(str(amount))
    except ArithmeticError:
        return None
    return value if value.is_finite() else None


def validate_fund_amount(amount: Amount) -> Optional[str]:
    """Return the first validation message for a fund request amount, or None."""
    value = _parse_amount(amount)
    if value is None:
        return "Please enter a valid amount"
    if value < settings.FUND_REQUEST_MIN:
        return f"Minimum fund request amount is {settings.FUND_REQUEST_MIN} EGP"
    if value > settings.FUND_REQUEST_MAX:
        return f"Maximum fund request amount is {settings.FUND_REQUEST_MAX:,} EGP per transaction"
    if value % 1 != 0:
        return "Amount must be a whole number (no decimals)"
    if int(value) in REPETITIVE_AMOUNTS:
        return "Please avoid repetitive number patterns"
    return None


def validate_withdrawal(
    amount: Amount,
    bank_name: str,
    account_number: str,
    account_holder_name: str,
    available_balance: Optional[Amount] = None,
) -> Dict[str, str]:
    """Field-keyed validation errors for a withdrawal request; empty when valid."""
    errors: Dict[str, str] = {}
    value = _parse_amount(amount)
    balance = _parse_amount(available_balance)

    if value is None:
        errors["amount"] = "Please enter a valid withdrawal amount"
    elif value < settings.WITHDRAWAL_MIN:
        errors["amount"] = f"Minimum withdrawal amount is {settings.WITHDRAWAL_MIN} EGP"
    elif balance is not None and value > balance:
        errors["amount"] = f"Insufficient balance. Available: {to_money(balance)} EGP"
    elif value % 1 != 0:
        errors["amount"] = "Amount must be a whole number (no decimals)"

    bank_name = bank_name or ""
    if not bank_name.strip():
        errors["bank_name"] = "Bank name is required"
    elif len(bank_name) < 3:
        errors["bank_name"] = "Bank name must be at least 3 characters"
    elif not NAME_PATTERN.match(bank_name):
        errors["bank_name"] = "Bank name can only contain letters, spaces, hyphens, and periods"

    account_number = account_number or ""
    if not account_number.strip():
        errors["account_number"] = "Account number is required"
    elif len(account_number) < 10:
        errors["account_number"] = "Please enter a valid account number (minimum 10 digits)"
    elif not account_number.isdigit():
        errors["account_number"] = "Account number must contain only numbers"
    elif len(account_number) > 20:
        errors["account_number"] = "Account number is too long (maximum 20 digits)"

    account_holder_name = account_holder_name or ""
    if not account_holder_name.strip():
        errors["account_holder_name"] = "Account holder name is required"
    elif len(account_holder_name) < 3:
        errors["account_holder_name"] = "Account holder name must be at least 3 characters"
    elif not NAME_PATTERN.match(account_holder_name):
        errors["account_holder_name"] = "Name can only contain letters, spaces, hyphens, and periods"
    elif len(account_holder_name) > 50:
        errors["account_holder_name"] = "Name is too long (maximum 50 characters)"

    return errors


def get_wallet_summary(db: Session, *, pharmacy_id: str) -> WalletSummary:
    if routine_exists(db, "get_wallet_summary"):
        try:
            rows = call_routine(db, "get_wallet_summary", {"p_pharmacy_id": pharmacy_id})
            if rows:
                return WalletSummary(**rows[0])
        except (SQLAlchemyError, ValueError) as e:
            db.rollback()
            logger.warning(f"get_wallet_summary failed, building summary locally: {e}")

    wallet = crud.wallet.get_by_pharmacy(db, pharmacy_id=pharmacy_id)
    pending_withdrawals = crud.withdrawal_request.get_pending(db, pharmacy_id=pharmacy_id)
    return WalletSummary(
        wallet=WalletSchema.model_validate(wallet) if wallet else None,
        recent_transactions=[
            WalletTransactionSchema.model_validate(t)
            for t in crud.wallet_transaction.get_recent(db, pharmacy_id=pharmacy_id)
        ],
        pending_fund_requests=crud.fund_request.count_pending(db, pharmacy_id=pharmacy_id),
        pending_withdrawal_requests=len(pending_withdrawals),
        pending_withdrawal_amount=float(sum((w.amount for w in pending_withdrawals), Decimal("0"))),
    )


def create_fund_request(db: Session, *, pharmacist: Pharmacist, amount: Amount) -> FundRequest:
    error = validate_fund_amount(amount)
    if error:
        raise ValidationFailedError(error, {"amount": error})

    value = _parse_amount(amount)
    pharmacy = pharmacist.pharmacy
    reference = f"{pharmacy.display_id}-FUND-{short_timestamp()}"
    fund_request = FundRequest(
        pharmacy_id=pharmacy.id,
        requested_by=pharmacist.id,
        amount=value,
        request_type="bank_transfer",
        reason=f"Fund request via InstaPay transfer - Amount: {int(value)} EGP - Reference: {reference}",
        reference=reference,
        status=RequestStatus.PENDING,
    )
    db.add(fund_request)
    db.commit()
    db.refresh(fund_request)
    logger.info(f"✅ Fund request {reference} created for {int(value)} EGP")
    return fund_request


def create_withdrawal_request(
    db: Session,
    *,
    pharmacist: Pharmacist,
    amount: Amount,
    bank_name: str,
    account_number: str,
    account_holder_name: str,
    notes: Optional[str] = None,
) -> WithdrawalRequest:
    pharmacy = pharmacist.pharmacy
    wallet = crud.wallet.get_by_pharmacy(db, pharmacy_id=pharmacy.id)
    if wallet is None:
        raise NotFoundError("Pharmacy or wallet information not found")

    errors = validate_withdrawal(amount, bank_name, account_number, account_holder_name, wallet.available_balance)
    if errors:
        raise ValidationFailedError("Please fix the validation errors", errors)

    reference = f"WD-{pharmacy.display_id}-{short_timestamp()}"
    withdrawal = WithdrawalRequest(
        pharmacy_id=pharmacy.id,
        requested_by=pharmacist.id,
        amount=_parse_amount(amount),
        bank_name=bank_name,
        account_number=account_number,
        account_holder_name=account_holder_name,
        reference=reference,
        admin_notes=notes,
        status=RequestStatus.PENDING,
    )
    db.add(withdrawal)
    db.commit()
    db.refresh(withdrawal)
    logger.info(f"✅ Withdrawal request {reference} created")
    return withdrawal


def _request_row(request: Union[FundRequest, WithdrawalRequest]) -> AdminRequestRow:
    is_withdrawal = isinstance(request, WithdrawalRequest)
    requester = request.requester
    return AdminRequestRow(
        id=request.id,
        kind="withdrawal" if is_withdrawal else "fund",
        pharmacy_id=request.pharmacy_id,
        pharmacy_name=request.pharmacy.name if request.pharmacy else None,
        pharmacy_display_id=request.pharmacy.display_id if request.pharmacy else None,
        requested_by_name=requester.full_name if requester else None,
        amount=float(request.amount),
        reference=request.reference,
        status=request.status,
        bank_name=request.bank_name if is_withdrawal else None,
        account_number=request.account_number if is_withdrawal else None,
        account_holder_name=request.account_holder_name if is_withdrawal else None,
        admin_notes=request.admin_notes,
        created_at=request.created_at,
        processed_at=request.processed_at,
    )


def list_fund_requests(db: Session, *, status: Optional[str] = None, search: Optional[str] = None) -> List[AdminRequestRow]:
    return [_request_row(r) for r in crud.fund_request.get_filtered(db, status=status, search=search)]


def list_withdrawal_requests(db: Session, *, status: Optional[str] = None, search: Optional[str] = None) -> List[AdminRequestRow]:
    return [_request_row(r) for r in crud.withdrawal_request.get_filtered(db, status=status, search=search)]


def fund_management_stats(db: Session) -> FundManagementStats:
    fund_requests = db.query(FundRequest).all()
    withdrawals = db.query(WithdrawalRequest).all()
    today = now_utc().date()

    pending_funds = [r for r in fund_requests if r.status == RequestStatus.PENDING]
    pending_withdrawals = [r for r in withdrawals if r.status == RequestStatus.PENDING]
    processed = [r for r in fund_requests + withdrawals if r.processed_at is not None]
    processed_today = [r for r in processed if r.processed_at.date() == today]

    if processed:
        total_hours = sum((r.processed_at - r.created_at).total_seconds() / 3600 for r in processed)
        average_hours = round(total_hours / len(processed), 1)
    else:
        average_hours = 0.0

    return FundManagementStats(
        pending_fund_requests=len(pending_funds),
        pending_fund_amount=float(sum((r.amount for r in pending_funds), Decimal("0"))),
        pending_withdrawals=len(pending_withdrawals),
        pending_withdrawal_amount=float(sum((r.amount for r in pending_withdrawals), Decimal("0"))),
        processed_today=len(processed_today),
        average_processing_hours=average_hours,
    )


def _record_wallet_movement(
    db: Session,
    *,
    wallet: Wallet,
    type: str,
    amount: Decimal,
    description: str,
    reference: Optional[str],
) -> WalletTransaction:
    balance_before = Decimal(wallet.available_balance or 0)
    if type == WalletTransactionType.DEPOSIT:
        balance_after = balance_before + amount
        wallet.total_earned = Decimal(wallet.total_earned or 0) + amount
    else:
        balance_after = balance_before - amount
        wallet.total_spent = Decimal(wallet.total_spent or 0) + amount
    wallet.available_balance = balance_after
    wallet.last_transaction_at = now_utc()

    movement = WalletTransaction(
        wallet_id=wallet.id,
        pharmacy_id=wallet.pharmacy_id,
        type=type,
        amount=amount,
        balance_before=balance_before,
        balance_after=balance_after,
        description=description,
        reference=reference,
        status=RequestStatus.COMPLETED,
    )
    db.add(wallet)
    db.add(movement)
    db.commit()
    db.refresh(movement)
    return movement


def process_fund_request(
    db: Session,
    *,
    request_id: str,
    action: str,
    admin_notes: Optional[str] = None,
    admin_id: Optional[str] = None,
) -> FundRequest:
    fund_request = crud.fund_request.get(db, request_id)
    if not fund_request:
        raise NotFoundError("Fund request not found")
    if fund_request.status != RequestStatus.PENDING:
        raise ConflictError(f"Fund request already {fund_request.status}")

    pharmacy: Pharmacy = fund_request.pharmacy
    amount = Decimal(fund_request.amount)

    if action == "approve":
        wallet = crud.wallet.get_or_create(db, pharmacy_id=pharmacy.id)
        _record_wallet_movement(
            db,
            wallet=wallet,
            type=WalletTransactionType.DEPOSIT,
            amount=amount,
            description=f"Fund request approved: {amount:.0f} EGP added to wallet",
            reference=f"FUND-{pharmacy.display_id}-{fund_request.id[-6:]}",
        )
        logger.info(f"💰 {amount} EGP added to {pharmacy.display_id} wallet, balance {wallet.available_balance}")

    approved = action == "approve"
    fund_request.status = RequestStatus.APPROVED if approved else RequestStatus.REJECTED
    fund_request.admin_notes = admin_notes or (
        "Fund request approved and added to wallet" if approved else "Fund request rejected"
    )
    fund_request.processed_at = now_utc()
    fund_request.processed_by = admin_id
    db.add(fund_request)
    db.commit()
    db.refresh(fund_request)

    notification_service.notify(
        db,
        pharmacy_id=pharmacy.id,
        type=NotificationType.FUND_REQUEST,
        title="Fund request approved" if approved else "Fund request rejected",
        message=(
            f"{amount:.0f} EGP has been added to your wallet."
            if approved
            else f"Your fund request {fund_request.reference} was rejected. {fund_request.admin_notes}"
        ),
        data={"fund_request_id": fund_request.id, "amount": float(amount)},
    )
    return fund_request


def process_withdrawal_request(
    db: Session,
    *,
    request_id: str,
    action: str,
    admin_notes: Optional[str] = None,
    admin_id: Optional[str] = None,
) -> WithdrawalRequest:
    withdrawal = crud.withdrawal_request.get(db, request_id)
    if not withdrawal:
        raise NotFoundError("Withdrawal request not found")
    if withdrawal.status != RequestStatus.PENDING:
        raise ConflictError(f"Withdrawal request already {withdrawal.status}")

    approved = action == "approve"
    notes = admin_notes or (
        "Withdrawal request approved and processed" if approved else "Withdrawal request rejected"
    )

    if routine_exists(db, "process_withdrawal_decision"):
        call_routine(
            db,
            "process_withdrawal_decision",
            {
                "p_withdrawal_id": withdrawal.id,
                "p_decision": "approved" if approved else "rejected",
                "p_admin_notes": notes,
                "p_admin_id": admin_id,
            },
        )
        db.refresh(withdrawal)
        return withdrawal

    pharmacy: Pharmacy = withdrawal.pharmacy
    amount = Decimal(withdrawal.amount)

    if approved:
        wallet = crud.wallet.get_by_pharmacy(db, pharmacy_id=pharmacy.id)
        if wallet is None:
            raise NotFoundError("Pharmacy wallet not found")
        current = Decimal(wallet.available_balance or 0)
        if current < amount:
            raise InsufficientFundsError(
                f"Insufficient wallet balance. Available: {current} EGP, Requested: {amount} EGP"
            )
        _record_wallet_movement(
            db,
            wallet=wallet,
            type=WalletTransactionType.WITHDRAWAL,
            amount=amount,
            description=f"Withdrawal approved: {amount:.0f} EGP withdrawn from wallet",
            reference=withdrawal.reference,
        )
        record_withdrawal_fee(db, pharmacy_id=pharmacy.id, pharmacy_name=pharmacy.name, withdrawal_amount=float(amount))

    withdrawal.status = RequestStatus.APPROVED if approved else RequestStatus.REJECTED
    withdrawal.admin_notes = notes
    withdrawal.processed_at = now_utc()
    withdrawal.processed_by = admin_id
    db.add(withdrawal)
    db.commit()
    db.refresh(withdrawal)

    notification_service.notify(
        db,
        pharmacy_id=pharmacy.id,
        type=NotificationType.WITHDRAWAL,
        title="Withdrawal approved" if approved else "Withdrawal rejected",
        message=(
            f"{amount:.0f} EGP will be transferred to your bank account."
            if approved
            else f"Your withdrawal {withdrawal.reference} was rejected. {notes}"
        ),
        data={"withdrawal_id": withdrawal.id, "amount": float(amount)},
    )
    return withdrawal

"""
Platform revenue bookkeeping.

Subscription payments, withdrawal fees and marketplace fees are written to
``transaction_history`` so the admin financial dashboard can show them. Each call
prefers the database function of the same purpose and falls back to a plain insert.
"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pharmasave.core.config import settings
from pharmasave.core.database_utils import routine_exists, call_routine
from pharmasave.models import TransactionHistory
from pharmasave.schemas.transaction import MarketplaceRecordResult
from pharmasave.utils.formatting import to_money

logger = logging.getLogger(__name__)

DEFAULT_WITHDRAWAL_FEE = 5


def _first_value(rows) -> Optional[object]:
    if not rows:
        return None
    return next(iter(rows[0].values()))


def _insert_history(
    db: Session,
    *,
    pharmacy_id: Optional[str],
    transaction_type: str,
    category: str,
    amount: Decimal,
    description: str,
    reference_id: Optional[str] = None,
) -> bool:
    try:
        db.add(
            TransactionHistory(
                pharmacy_id=pharmacy_id,
                transaction_type=transaction_type,
                category=category,
                amount=amount,
                description=description,
                reference_id=reference_id,
            )
        )
        db.commit()
        return True
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error recording {category} revenue: {e}")
        return False


def record_subscription_payment(
    db: Session,
    *,
    pharmacy_id: str,
    pharmacy_name: str,
    amount: float = settings.MONTHLY_SUBSCRIPTION_FEE,
) -> bool:
    if routine_exists(db, "record_subscription_revenue"):
        try:
            rows = call_routine(
                db,
                "record_subscription_revenue",
                {"pharmacy_id": pharmacy_id, "pharmacy_name": pharmacy_name, "subscription_amount": amount},
            )
            return _first_value(rows) is True
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Subscription recording failed: {e}")
            return False

    return _insert_history(
        db,
        pharmacy_id=pharmacy_id,
        transaction_type="revenue",
        category="subscription",
        amount=to_money(amount),
        description=f"Monthly subscription - {pharmacy_name}",
    )


def record_withdrawal_fee(
    db: Session,
    *,
    pharmacy_id: str,
    pharmacy_name: str,
    withdrawal_amount: float,
    fee_amount: float = DEFAULT_WITHDRAWAL_FEE,
) -> bool:
    if routine_exists(db, "record_withdrawal_fee"):
        try:
            rows = call_routine(
                db,
                "record_withdrawal_fee",
                {
                    "pharmacy_id": pharmacy_id,
                    "pharmacy_name": pharmacy_name,
                    "withdrawal_amount": withdrawal_amount,
                    "fee_amount": fee_amount,
                },
            )
            return _first_value(rows) is True
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Withdrawal fee recording failed: {e}")
            return False

    return _insert_history(
        db,
        pharmacy_id=pharmacy_id,
        transaction_type="revenue",
        category="withdrawal_fee",
        amount=to_money(fee_amount),
        description=f"Withdrawal fee - {pharmacy_name} ({to_money(withdrawal_amount)} EGP)",
    )


def record_marketplace_transaction(
    db: Session,
    *,
    transaction_amount: float,
    buyer_pharmacy_id: str,
    seller_pharmacy_id: str,
    marketplace_transaction_id: Optional[str] = None,
) -> MarketplaceRecordResult:
    """Book marketplace fees as platform revenue. The amount passes through untouched on failure."""

    def failed(error: str) -> MarketplaceRecordResult:
        return MarketplaceRecordResult(
            success=False,
            buyer_total=transaction_amount,
            seller_received=transaction_amount,
            platform_revenue=0,
            error=error,
        )

    if not routine_exists(db, "calculate_transaction_fees_with_financial_integration"):
        return failed("Fee integration function not available")

    try:
        rows = call_routine(
            db,
            "calculate_transaction_fees_with_financial_integration",
            {
                "transaction_amount": transaction_amount,
                "transaction_type": "purchase",
                "buyer_pharmacy_id": buyer_pharmacy_id,
                "seller_pharmacy_id": seller_pharmacy_id,
                "marketplace_transaction_id": marketplace_transaction_id,
            },
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error recording marketplace transaction: {e}")
        return failed(str(e))

    if not rows:
        return failed("No data returned from fee calculation")

    result = rows[0]
    return MarketplaceRecordResult(
        success=bool(result.get("financial_entries_created")),
        buyer_total=float(result.get("buyer_total_amount") or 0),
        seller_received=float(result.get("seller_received_amount") or 0),
        platform_revenue=float(result.get("platform_total_revenue") or 0),
    )


def record_transaction_fee(
    db: Session,
    *,
    pharmacy_id: str,
    pharmacy_name: str,
    fee_amount: float,
    reference: Optional[str] = None,
) -> bool:
    return _insert_history(
        db,
        pharmacy_id=pharmacy_id,
        transaction_type="revenue",
        category="transaction_fee",
        amount=to_money(fee_amount),
        description=f"Marketplace transaction fee - {pharmacy_name}",
        reference_id=reference,
    )

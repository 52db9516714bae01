"""
Demo marketplace: listings, purchase/trade requests and the seller's decision.

Transaction history reads fall back to a fixed set of demonstration rows when the
tables are missing or the pharmacy has no transactions yet.
"""

import logging
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pharmasave import crud
from pharmasave.core.database_utils import call_routine, routine_exists, tables_exist
from pharmasave.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)
from pharmasave.models import (
    Listing,
    MarketplaceTransaction,
    NotificationType,
    Pharmacist,
    TransactionStatus,
)
from pharmasave.schemas.transaction import (
    ListingCreate,
    MarketplaceTransactionCreate,
    StatusUpdateResult,
    TransactionList,
)
from pharmasave.services import notification_service
from pharmasave.services.fee_service import PlatformFeeService, platform_fee_service
from pharmasave.services.platform_revenue import record_marketplace_transaction, record_transaction_fee
from pharmasave.utils.formatting import format_currency, generate_transaction_reference, to_money
from pharmasave.utils.timezone import now_utc

logger = logging.getLogger(__name__)

MOCK_MESSAGE = "Using mock transaction data for demonstration"


def _require_marketplace_access(pharmacist: Pharmacist) -> None:
    pharmacy = pharmacist.pharmacy
    if not pharmacy.marketplace_access or pharmacy.is_archived:
        raise PermissionDeniedError("Your pharmacy must be verified to use the marketplace")


def create_listing(db: Session, *, pharmacist: Pharmacist, data: ListingCreate) -> Listing:
    _require_marketplace_access(pharmacist)
    listing = Listing(pharmacy_id=pharmacist.pharmacy_id, **data.model_dump())
    db.add(listing)
    db.commit()
    db.refresh(listing)
    logger.info(f"💊 Listing {listing.medicine_name} x{listing.quantity} created by {pharmacist.pharmacy_id}")
    return listing


def list_listings(db: Session, *, search: Optional[str] = None, exclude_pharmacy_id: Optional[str] = None) -> List[Listing]:
    return crud.listing.get_available(db, search=search, exclude_pharmacy_id=exclude_pharmacy_id)


def create_transaction(
    db: Session,
    *,
    pharmacist: Pharmacist,
    data: MarketplaceTransactionCreate,
    fee_service: PlatformFeeService = platform_fee_service,
) -> MarketplaceTransaction:
    _require_marketplace_access(pharmacist)
    listing = crud.listing.get(db, id=data.listing_id)
    if not listing or listing.status != "active":
        raise NotFoundError("Listing not found")
    if listing.pharmacy_id == pharmacist.pharmacy_id:
        raise ValidationFailedError("You cannot buy from your own pharmacy")
    if data.quantity > listing.quantity:
        raise ValidationFailedError(f"Only {listing.quantity} units available")
    if data.transaction_type == "trade" and not listing.is_trade_enabled:
        raise ValidationFailedError("This listing is not available for trade")

    if routine_exists(db, "create_transaction"):
        rows = call_routine(
            db,
            "create_transaction",
            {
                "p_buyer_pharmacy_id": pharmacist.pharmacy_id,
                "p_seller_pharmacy_id": listing.pharmacy_id,
                "p_buyer_pharmacist_id": pharmacist.id,
                "p_listing_id": listing.id,
                "p_quantity": data.quantity,
                "p_transaction_type": data.transaction_type,
            },
        )
        transaction_id = next(iter(rows[0].values())) if rows else None
        transaction = crud.marketplace_transaction.get(db, id=str(transaction_id)) if transaction_id else None
        if transaction is None:
            raise ConflictError("Failed to create transaction")
    else:
        amount = to_money(Decimal(listing.unit_price) * data.quantity)
        validation = fee_service.validate_transaction_amount(db, float(amount))
        if not validation.is_valid:
            raise ValidationFailedError(validation.error)
        fees = fee_service.calculate_transaction_fees(db, float(amount), data.transaction_type)

        transaction = MarketplaceTransaction(
            buyer_pharmacy_id=pharmacist.pharmacy_id,
            seller_pharmacy_id=listing.pharmacy_id,
            lstng_id=listing.id,
            quantity=data.quantity,
            amount=amount,
            buyer_fee=fees.buyer_fee,
            seller_fee=fees.seller_fee,
            status=TransactionStatus.REQUESTED,
            transaction_type=data.transaction_type,
            reference=generate_transaction_reference(data.transaction_type),
            notes=data.notes,
        )
        db.add(transaction)
        db.commit()
        db.refresh(transaction)

    notification_service.notify(
        db,
        pharmacy_id=listing.pharmacy_id,
        type=NotificationType.TRANSACTION,
        title=f"New {transaction.transaction_type} request",
        message=(
            f"{pharmacist.pharmacy.name} requested {transaction.quantity} x {listing.medicine_name} "
            f"({format_currency(transaction.amount)})"
        ),
        data={"transaction_id": transaction.id},
    )
    logger.info(f"🛒 Transaction {transaction.reference} requested for {format_currency(transaction.amount)}")
    return transaction


def _seller_transaction(db: Session, pharmacist: Pharmacist, transaction_id: str) -> MarketplaceTransaction:
    transaction = crud.marketplace_transaction.get(db, id=transaction_id)
    if not transaction or transaction.seller_pharmacy_id != pharmacist.pharmacy_id:
        raise NotFoundError("Transaction not found")
    if transaction.status != TransactionStatus.REQUESTED:
        raise ConflictError(f"Transaction already {transaction.status}")
    return transaction


def approve_transaction(db: Session, *, pharmacist: Pharmacist, transaction_id: str, notes: Optional[str] = None) -> MarketplaceTransaction:
    transaction = _seller_transaction(db, pharmacist, transaction_id)
    notes = notes or "Transaction approved"

    if routine_exists(db, "approve_transaction"):
        call_routine(
            db,
            "approve_transaction",
            {"p_transaction_id": transaction.id, "p_approving_pharmacist_id": pharmacist.id, "p_notes": notes},
        )
        db.refresh(transaction)
    else:
        listing = transaction.listing
        if listing is not None:
            if listing.quantity < transaction.quantity:
                raise ConflictError("Insufficient inventory for this transaction")
            listing.quantity -= transaction.quantity
            if listing.quantity == 0:
                listing.status = "sold"
            db.add(listing)
        transaction.status = TransactionStatus.APPROVED
        transaction.notes = notes
        db.add(transaction)
        db.commit()
        db.refresh(transaction)

    recorded = record_marketplace_transaction(
        db,
        transaction_amount=float(transaction.amount),
        buyer_pharmacy_id=transaction.buyer_pharmacy_id,
        seller_pharmacy_id=transaction.seller_pharmacy_id,
        marketplace_transaction_id=transaction.id,
    )
    if not recorded.success:
        record_transaction_fee(
            db,
            pharmacy_id=transaction.seller_pharmacy_id,
            pharmacy_name=pharmacist.pharmacy.name,
            fee_amount=float(Decimal(transaction.buyer_fee or 0) + Decimal(transaction.seller_fee or 0)),
            reference=transaction.reference,
        )

    notification_service.notify(
        db,
        pharmacy_id=transaction.buyer_pharmacy_id,
        type=NotificationType.TRANSACTION,
        title="Transaction approved",
        message=f"Your request {transaction.reference} was approved by {pharmacist.pharmacy.name}.",
        data={"transaction_id": transaction.id},
    )
    return transaction


def reject_transaction(db: Session, *, pharmacist: Pharmacist, transaction_id: str, reason: Optional[str] = None) -> MarketplaceTransaction:
    transaction = _seller_transaction(db, pharmacist, transaction_id)
    reason = reason or "Transaction rejected"

    if routine_exists(db, "reject_transaction"):
        call_routine(
            db,
            "reject_transaction",
            {"p_transaction_id": transaction.id, "p_rejecting_pharmacist_id": pharmacist.id, "p_reason": reason},
        )
        db.refresh(transaction)
    else:
        transaction.status = TransactionStatus.REJECTED
        transaction.notes = reason
        db.add(transaction)
        db.commit()
        db.refresh(transaction)

    notification_service.notify(
        db,
        pharmacy_id=transaction.buyer_pharmacy_id,
        type=NotificationType.TRANSACTION,
        title="Transaction rejected",
        message=f"Your request {transaction.reference} was rejected: {reason}",
        data={"transaction_id": transaction.id},
    )
    return transaction


def _pharmacy_summary(pharmacy) -> Optional[Dict[str, Any]]:
    if pharmacy is None:
        return None
    return {"name": pharmacy.name, "display_id": pharmacy.display_id, "phone": pharmacy.phone}


def serialize_transaction(transaction: MarketplaceTransaction) -> Dict[str, Any]:
    listing = transaction.listing
    return {
        "id": transaction.id,
        "buyer_pharmacy_id": transaction.buyer_pharmacy_id,
        "seller_pharmacy_id": transaction.seller_pharmacy_id,
        "lstng_id": transaction.lstng_id,
        "quantity": transaction.quantity,
        "amount": float(transaction.amount),
        "buyer_fee": float(transaction.buyer_fee or 0),
        "seller_fee": float(transaction.seller_fee or 0),
        "status": transaction.status,
        "transaction_type": transaction.transaction_type,
        "reference": transaction.reference,
        "created_at": transaction.created_at.isoformat() if transaction.created_at else None,
        "updated_at": transaction.updated_at.isoformat() if transaction.updated_at else None,
        "notes": transaction.notes,
        "buyer_pharmacy": _pharmacy_summary(transaction.buyer_pharmacy),
        "seller_pharmacy": _pharmacy_summary(transaction.seller_pharmacy),
        "listing": {
            "id": listing.id,
            "unit_price": float(listing.unit_price),
            "expiry_date": listing.expiry_date.isoformat() if listing.expiry_date else None,
            "medicine": {
                "name": listing.medicine_name,
                "form": listing.form,
                "strength": listing.strength,
                "manufacturer": listing.manufacturer,
            },
        }
        if listing
        else None,
    }


def _mock_row(
    pharmacy_id: str,
    number: int,
    *,
    buying: bool,
    counterparty: Dict[str, str],
    quantity: int,
    amount: float,
    status: str,
    transaction_type: str,
    created_ago: timedelta,
    updated_ago: timedelta,
    unit_price: float,
    expiry_date: str,
    medicine: Dict[str, str],
    notes: Optional[str] = None,
) -> Dict[str, Any]:
    now = now_utc()
    own = {"name": "Your Pharmacy", "display_id": "PH0001", "phone": "+201234567890"}
    suffix = f"{number:03d}"
    row = {
        "id": f"mock-txn-{suffix}",
        "buyer_pharmacy_id": pharmacy_id if buying else f"mock-buyer-{suffix}",
        "seller_pharmacy_id": f"mock-seller-{suffix}" if buying else pharmacy_id,
        "lstng_id": f"mock-listing-{suffix}",
        "quantity": quantity,
        "amount": amount,
        "status": status,
        "transaction_type": transaction_type,
        "created_at": (now - created_ago).isoformat(),
        "updated_at": (now - updated_ago).isoformat(),
        "buyer_pharmacy": own if buying else counterparty,
        "seller_pharmacy": counterparty if buying else own,
        "listing": {
            "id": f"mock-listing-{suffix}",
            "unit_price": unit_price,
            "expiry_date": expiry_date,
            "medicine": medicine,
        },
    }
    if notes:
        row["notes"] = notes
    return row


def mock_transactions(pharmacy_id: str) -> TransactionList:
    rows = [
        _mock_row(
            pharmacy_id, 1, buying=True,
            counterparty={"name": "Verified Pharmacy", "display_id": "PH0042", "phone": "+201987654321"},
            quantity=50, amount=750.00, status="completed", transaction_type="purchase",
            created_ago=timedelta(days=2), updated_ago=timedelta(days=2), unit_price=15.00, expiry_date="2025-08-15",
            medicine={"name": "Amoxicillin", "form": "Capsules", "strength": "500mg", "manufacturer": "GSK"},
            notes="Urgent medication needed for patient care",
        ),
        _mock_row(
            pharmacy_id, 2, buying=False,
            counterparty={"name": "Verified Pharmacy", "display_id": "PH0089", "phone": "+201555123456"},
            quantity=30, amount=450.00, status="completed", transaction_type="purchase",
            created_ago=timedelta(days=5), updated_ago=timedelta(days=5), unit_price=15.00, expiry_date="2025-07-22",
            medicine={"name": "Paracetamol", "form": "Tablets", "strength": "500mg", "manufacturer": "Pharco"},
        ),
        _mock_row(
            pharmacy_id, 3, buying=True,
            counterparty={"name": "Verified Pharmacy", "display_id": "PH0156", "phone": "+201777888999"},
            quantity=20, amount=1200.00, status="requested", transaction_type="trade",
            created_ago=timedelta(days=1), updated_ago=timedelta(days=1), unit_price=60.00, expiry_date="2025-09-10",
            medicine={"name": "Insulin Glargine", "form": "Injection", "strength": "100IU/ml", "manufacturer": "Sanofi"},
            notes="Trade request for insulin - urgent patient need",
        ),
        _mock_row(
            pharmacy_id, 4, buying=False,
            counterparty={"name": "Verified Pharmacy", "display_id": "PH0203", "phone": "+201666777888"},
            quantity=100, amount=320.00, status="approved", transaction_type="purchase",
            created_ago=timedelta(hours=3), updated_ago=timedelta(hours=2), unit_price=3.20, expiry_date="2025-06-30",
            medicine={"name": "Metformin", "form": "Tablets", "strength": "500mg", "manufacturer": "Novartis"},
        ),
        _mock_row(
            pharmacy_id, 5, buying=True,
            counterparty={"name": "Verified Pharmacy", "display_id": "PH0078", "phone": "+201444555666"},
            quantity=25, amount=625.00, status="rejected", transaction_type="purchase",
            created_ago=timedelta(days=7), updated_ago=timedelta(days=6), unit_price=25.00, expiry_date="2025-08-28",
            medicine={"name": "Atorvastatin", "form": "Tablets", "strength": "40mg", "manufacturer": "Pfizer"},
            notes="Rejected due to insufficient inventory",
        ),
    ]
    return TransactionList(success=True, data=rows, message=MOCK_MESSAGE, mock=True)


def get_pharmacy_transactions(
    db: Session,
    *,
    pharmacy_id: str,
    status: str = "all",
    limit: Optional[int] = None,
    max_results: int = 50,
) -> TransactionList:
    logger.info(f"🔍 Fetching transactions for pharmacy: {pharmacy_id}")
    try:
        if len(tables_exist(db, ("transactions", "pharmacies", "listings"))) >= 2:
            rows = crud.marketplace_transaction.get_for_pharmacy(
                db, pharmacy_id=pharmacy_id, status=status, limit=limit or max_results
            )
            if rows:
                logger.info(f"✅ Using real transaction data: {len(rows)} transactions")
                return TransactionList(success=True, data=[serialize_transaction(t) for t in rows])
        else:
            logger.info("🏗️ Transaction tables not found")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error fetching real transactions: {e}")

    logger.info("📊 Using mock transaction data (real data not available)")
    return mock_transactions(pharmacy_id)


def update_transaction_status(db: Session, *, transaction_id: str, status: str, pharmacy_id: str) -> StatusUpdateResult:
    logger.info(f"🔄 Updating transaction status: {transaction_id} {status}")
    try:
        updated = (
            db.query(MarketplaceTransaction)
            .filter(
                MarketplaceTransaction.id == transaction_id,
                or_(
                    MarketplaceTransaction.buyer_pharmacy_id == pharmacy_id,
                    MarketplaceTransaction.seller_pharmacy_id == pharmacy_id,
                ),
            )
            .update({"status": status, "updated_at": now_utc()}, synchronize_session="fetch")
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Real transaction update error: {e}")
        updated = 0

    if updated:
        transaction = crud.marketplace_transaction.get(db, id=transaction_id)
        db.refresh(transaction)
        return StatusUpdateResult(success=True, data=[serialize_transaction(transaction)])

    logger.info("📊 Mock transaction status update")
    return StatusUpdateResult(success=True, message=f"Transaction {transaction_id} status updated to {status} (mock)")

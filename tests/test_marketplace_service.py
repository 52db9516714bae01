import pytest

from pharmasave.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationFailedError
from pharmasave.models import Notification, TransactionHistory, TransactionStatus
from pharmasave.schemas.transaction import ListingCreate, MarketplaceTransactionCreate
from pharmasave.services import marketplace_service, verification_service

CHECKLIST = {key: True for key in verification_service.CHECKLIST_ITEMS}


@pytest.fixture
def seller(db, owner):
    verification_service.approve(db, pharmacy_id=owner.pharmacy_id, admin_notes="ok", checklist=CHECKLIST)
    return owner


@pytest.fixture
def buyer(db, other_owner):
    verification_service.approve(db, pharmacy_id=other_owner.pharmacy_id, admin_notes="ok", checklist=CHECKLIST)
    return other_owner


@pytest.fixture
def listing(db, seller):
    return marketplace_service.create_listing(
        db,
        pharmacist=seller,
        data=ListingCreate(medicine_name="Amoxicillin", strength="500mg", unit_price=25, quantity=10),
    )


def test_unverified_pharmacy_cannot_list(db, owner):
    with pytest.raises(PermissionDeniedError):
        marketplace_service.create_listing(
            db, pharmacist=owner, data=ListingCreate(medicine_name="Paracetamol", unit_price=5, quantity=10)
        )


def test_listings_exclude_own_pharmacy(db, listing, seller, buyer):
    assert marketplace_service.list_listings(db, exclude_pharmacy_id=seller.pharmacy_id) == []
    assert [item.id for item in marketplace_service.list_listings(db, search="amox")] == [listing.id]


def test_purchase_request_prices_fees(db, listing, buyer, seller, fee_service):
    transaction = marketplace_service.create_transaction(
        db,
        pharmacist=buyer,
        data=MarketplaceTransactionCreate(listing_id=listing.id, quantity=4),
        fee_service=fee_service,
    )

    assert transaction.status == TransactionStatus.REQUESTED
    assert float(transaction.amount) == 100
    assert float(transaction.buyer_fee) == 3
    assert float(transaction.seller_fee) == 3
    assert transaction.reference.startswith("MKT-PURCHASE-")
    assert db.query(Notification).filter(Notification.pharmacy_id == seller.pharmacy_id).count() == 2


@pytest.mark.parametrize(
    "data, error",
    [
        ({"quantity": 11}, "Only 10 units available"),
        ({"quantity": 1}, "Minimum transaction amount is EGP 50.00"),
        ({"quantity": 4, "transaction_type": "trade"}, "This listing is not available for trade"),
    ],
)
def test_purchase_request_validation(db, listing, buyer, fee_service, data, error):
    with pytest.raises(ValidationFailedError, match=error):
        marketplace_service.create_transaction(
            db,
            pharmacist=buyer,
            data=MarketplaceTransactionCreate(listing_id=listing.id, **data),
            fee_service=fee_service,
        )


def test_cannot_buy_own_listing(db, listing, seller, fee_service):
    with pytest.raises(ValidationFailedError):
        marketplace_service.create_transaction(
            db, pharmacist=seller, data=MarketplaceTransactionCreate(listing_id=listing.id, quantity=4), fee_service=fee_service
        )


def _request(db, listing, buyer, fee_service, quantity=4):
    return marketplace_service.create_transaction(
        db,
        pharmacist=buyer,
        data=MarketplaceTransactionCreate(listing_id=listing.id, quantity=quantity),
        fee_service=fee_service,
    )


def test_approval_reserves_stock_and_books_fee(db, listing, buyer, seller, fee_service):
    transaction = _request(db, listing, buyer, fee_service)

    approved = marketplace_service.approve_transaction(db, pharmacist=seller, transaction_id=transaction.id)

    assert approved.status == TransactionStatus.APPROVED
    db.refresh(listing)
    assert listing.quantity == 6
    fee = db.query(TransactionHistory).filter(TransactionHistory.category == "transaction_fee").one()
    assert float(fee.amount) == 6
    with pytest.raises(ConflictError):
        marketplace_service.approve_transaction(db, pharmacist=seller, transaction_id=transaction.id)


def test_only_seller_decides(db, listing, buyer, fee_service):
    transaction = _request(db, listing, buyer, fee_service)

    with pytest.raises(NotFoundError):
        marketplace_service.reject_transaction(db, pharmacist=buyer, transaction_id=transaction.id)


def test_rejection_notifies_buyer(db, listing, buyer, seller, fee_service):
    transaction = _request(db, listing, buyer, fee_service)

    rejected = marketplace_service.reject_transaction(
        db, pharmacist=seller, transaction_id=transaction.id, reason="Out of stock"
    )

    assert rejected.status == TransactionStatus.REJECTED
    assert rejected.notes == "Out of stock"
    titles = [n.title for n in db.query(Notification).filter(Notification.pharmacy_id == buyer.pharmacy_id)]
    assert "Transaction rejected" in titles


def test_history_without_transactions_is_demo_data(db, owner):
    result = marketplace_service.get_pharmacy_transactions(db, pharmacy_id=owner.pharmacy_id)

    assert result.mock is True
    assert len(result.data) == 5
    assert result.data[0]["buyer_pharmacy_id"] == owner.pharmacy_id


def test_history_uses_real_transactions(db, listing, buyer, seller, fee_service):
    transaction = _request(db, listing, buyer, fee_service)

    result = marketplace_service.get_pharmacy_transactions(db, pharmacy_id=seller.pharmacy_id, status="requested")

    assert result.mock is False
    assert [row["id"] for row in result.data] == [transaction.id]
    assert result.data[0]["listing"]["medicine"]["name"] == "Amoxicillin"
    assert result.data[0]["buyer_pharmacy"]["name"] == "Delta Pharmacy"


def test_status_update(db, listing, buyer, seller, fee_service):
    transaction = _request(db, listing, buyer, fee_service)

    result = marketplace_service.update_transaction_status(
        db, transaction_id=transaction.id, status="completed", pharmacy_id=buyer.pharmacy_id
    )
    assert result.data[0]["status"] == "completed"

    mock = marketplace_service.update_transaction_status(
        db, transaction_id="mock-txn-001", status="completed", pharmacy_id=buyer.pharmacy_id
    )
    assert mock.success is True
    assert mock.message.endswith("(mock)")

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from pharmasave import models
from pharmasave.api import deps
from pharmasave.api.errors import http_error
from pharmasave.core.exceptions import PharmaSaveError
from pharmasave.schemas.transaction import (
    Listing,
    ListingCreate,
    MarketplaceTransactionCreate,
    StatusUpdateResult,
    TransactionDecision,
    TransactionList,
    TransactionStatusUpdate,
)
from pharmasave.services import marketplace_service
from pharmasave.services.fee_service import PlatformFeeService

router = APIRouter()


@router.get("/listings", response_model=List[Listing])
def list_listings(
    *,
    db: Session = Depends(deps.get_db),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
    search: Optional[str] = None,
) -> Any:
    """
    Active listings from other pharmacies with marketplace access.
    """
    return marketplace_service.list_listings(db, search=search, exclude_pharmacy_id=pharmacist.pharmacy_id)


@router.post("/listings", response_model=Listing, status_code=status.HTTP_201_CREATED)
def create_listing(
    *,
    db: Session = Depends(deps.get_db),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
    data: ListingCreate,
) -> Any:
    try:
        return marketplace_service.create_listing(db, pharmacist=pharmacist, data=data)
    except PharmaSaveError as e:
        raise http_error(e)


@router.get("/transactions", response_model=TransactionList)
def list_transactions(
    *,
    db: Session = Depends(deps.get_db),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
    status_filter: str = Query("all", alias="status"),
    limit: Optional[int] = Query(None, ge=1, le=50),
) -> Any:
    return marketplace_service.get_pharmacy_transactions(
        db, pharmacy_id=pharmacist.pharmacy_id, status=status_filter, limit=limit
    )


@router.post("/transactions", status_code=status.HTTP_201_CREATED)
def create_transaction(
    *,
    db: Session = Depends(deps.get_db),
    fees: PlatformFeeService = Depends(deps.get_fee_service),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
    data: MarketplaceTransactionCreate,
) -> Dict[str, Any]:
    try:
        transaction = marketplace_service.create_transaction(db, pharmacist=pharmacist, data=data, fee_service=fees)
    except PharmaSaveError as e:
        raise http_error(e)
    return marketplace_service.serialize_transaction(transaction)


@router.post("/transactions/{transaction_id}/approve")
def approve_transaction(
    *,
    db: Session = Depends(deps.get_db),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
    transaction_id: str,
    data: Optional[TransactionDecision] = None,
) -> Dict[str, Any]:
    try:
        transaction = marketplace_service.approve_transaction(
            db, pharmacist=pharmacist, transaction_id=transaction_id, notes=data.notes if data else None
        )
    except PharmaSaveError as e:
        raise http_error(e)
    return marketplace_service.serialize_transaction(transaction)


@router.post("/transactions/{transaction_id}/reject")
def reject_transaction(
    *,
    db: Session = Depends(deps.get_db),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
    transaction_id: str,
    data: Optional[TransactionDecision] = None,
) -> Dict[str, Any]:
    try:
        transaction = marketplace_service.reject_transaction(
            db, pharmacist=pharmacist, transaction_id=transaction_id, reason=data.reason if data else None
        )
    except PharmaSaveError as e:
        raise http_error(e)
    return marketplace_service.serialize_transaction(transaction)


@router.put("/transactions/{transaction_id}/status", response_model=StatusUpdateResult)
def update_status(
    *,
    db: Session = Depends(deps.get_db),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
    transaction_id: str,
    data: TransactionStatusUpdate,
) -> Any:
    return marketplace_service.update_transaction_status(
        db, transaction_id=transaction_id, status=data.status, pharmacy_id=pharmacist.pharmacy_id
    )

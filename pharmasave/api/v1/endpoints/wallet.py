from typing import Any, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pharmasave import crud, models
from pharmasave.api import deps
from pharmasave.api.errors import http_error
from pharmasave.core.exceptions import PharmaSaveError
from pharmasave.schemas.wallet import (
    FundRequest,
    FundRequestCreate,
    WalletSummary,
    WithdrawalRequest,
    WithdrawalRequestCreate,
)
from pharmasave.services import wallet_service

router = APIRouter()


@router.get("/summary", response_model=WalletSummary)
def read_wallet_summary(
    *,
    db: Session = Depends(deps.get_db),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
) -> Any:
    return wallet_service.get_wallet_summary(db, pharmacy_id=pharmacist.pharmacy_id)


@router.get("/fund-requests", response_model=List[FundRequest])
def list_my_fund_requests(
    *,
    db: Session = Depends(deps.get_db),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
) -> Any:
    return crud.fund_request.get_by_pharmacy(db, pharmacy_id=pharmacist.pharmacy_id)


@router.post("/fund-requests", response_model=FundRequest, status_code=status.HTTP_201_CREATED)
def create_fund_request(
    *,
    db: Session = Depends(deps.get_db),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
    data: FundRequestCreate,
) -> Any:
    """
    Submit a top-up after an InstaPay transfer; an admin credits the wallet on approval.
    """
    try:
        return wallet_service.create_fund_request(db, pharmacist=pharmacist, amount=data.amount)
    except PharmaSaveError as e:
        raise http_error(e)


@router.get("/withdrawals", response_model=List[WithdrawalRequest])
def list_my_withdrawals(
    *,
    db: Session = Depends(deps.get_db),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
) -> Any:
    return crud.withdrawal_request.get_by_pharmacy(db, pharmacy_id=pharmacist.pharmacy_id)


@router.post("/withdrawals", response_model=WithdrawalRequest, status_code=status.HTTP_201_CREATED)
def create_withdrawal(
    *,
    db: Session = Depends(deps.get_db),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
    data: WithdrawalRequestCreate,
) -> Any:
    try:
        return wallet_service.create_withdrawal_request(
            db,
            pharmacist=pharmacist,
            amount=data.amount,
            bank_name=data.bank_name,
            account_number=data.account_number,
            account_holder_name=data.account_holder_name,
            notes=data.notes,
        )
    except PharmaSaveError as e:
        raise http_error(e)

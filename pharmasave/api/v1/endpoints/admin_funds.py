from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pharmasave import models
from pharmasave.api import deps
from pharmasave.api.errors import http_error
from pharmasave.core.exceptions import PharmaSaveError
from pharmasave.schemas.wallet import (
    AdminRequestRow,
    FundManagementStats,
    FundRequest,
    ProcessRequest,
    WithdrawalRequest,
)
from pharmasave.services import wallet_service

router = APIRouter()


@router.get("/stats", response_model=FundManagementStats)
def fund_stats(
    *,
    db: Session = Depends(deps.get_db),
    _: models.AdminUser = Depends(deps.get_current_admin),
) -> Any:
    return wallet_service.fund_management_stats(db)


@router.get("/fund-requests", response_model=List[AdminRequestRow])
def list_fund_requests(
    *,
    db: Session = Depends(deps.get_db),
    _: models.AdminUser = Depends(deps.get_current_admin),
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = None,
) -> Any:
    """
    Fund requests for the admin queue, searchable by pharmacy name, display id or reference.
    """
    return wallet_service.list_fund_requests(db, status=status_filter, search=search)


@router.post("/fund-requests/{request_id}/process", response_model=FundRequest)
def process_fund_request(
    *,
    db: Session = Depends(deps.get_db),
    admin: models.AdminUser = Depends(deps.get_current_admin),
    request_id: str,
    data: ProcessRequest,
) -> Any:
    try:
        return wallet_service.process_fund_request(
            db, request_id=request_id, action=data.action, admin_notes=data.admin_notes, admin_id=admin.id
        )
    except PharmaSaveError as e:
        raise http_error(e)


@router.get("/withdrawals", response_model=List[AdminRequestRow])
def list_withdrawals(
    *,
    db: Session = Depends(deps.get_db),
    _: models.AdminUser = Depends(deps.get_current_admin),
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = None,
) -> Any:
    return wallet_service.list_withdrawal_requests(db, status=status_filter, search=search)


@router.post("/withdrawals/{request_id}/process", response_model=WithdrawalRequest)
def process_withdrawal(
    *,
    db: Session = Depends(deps.get_db),
    admin: models.AdminUser = Depends(deps.get_current_admin),
    request_id: str,
    data: ProcessRequest,
) -> Any:
    try:
        return wallet_service.process_withdrawal_request(
            db, request_id=request_id, action=data.action, admin_notes=data.admin_notes, admin_id=admin.id
        )
    except PharmaSaveError as e:
        raise http_error(e)

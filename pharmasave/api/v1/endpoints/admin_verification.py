from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pharmasave import models, schemas
from pharmasave.api import deps
from pharmasave.api.errors import http_error
from pharmasave.core.exceptions import PharmaSaveError
from pharmasave.schemas.verification import (
    ApproveRequest,
    CancelRequest,
    NotesUpdate,
    PharmacyReview,
    QueueEntry,
    QueueItem,
    RejectRequest,
)
from pharmasave.services import verification_service

router = APIRouter()


@router.get("/queue", response_model=List[QueueItem])
def list_queue(
    *,
    db: Session = Depends(deps.get_db),
    _: models.AdminUser = Depends(deps.get_current_admin),
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = None,
) -> Any:
    return verification_service.list_queue(db, status=status_filter, search=search)


@router.get("/checklist")
def checklist_items(
    *,
    _: models.AdminUser = Depends(deps.get_current_admin),
) -> List[str]:
    return list(verification_service.CHECKLIST_ITEMS)


@router.get("/pharmacies/{pharmacy_id}", response_model=PharmacyReview)
def review_pharmacy(
    *,
    db: Session = Depends(deps.get_db),
    _: models.AdminUser = Depends(deps.get_current_admin),
    pharmacy_id: str,
) -> Any:
    try:
        return verification_service.get_review(db, pharmacy_id)
    except PharmaSaveError as e:
        raise http_error(e)


@router.put("/queue/{entry_id}/notes", response_model=QueueEntry)
def save_notes(
    *,
    db: Session = Depends(deps.get_db),
    _: models.AdminUser = Depends(deps.get_current_admin),
    entry_id: str,
    data: NotesUpdate,
) -> Any:
    try:
        return verification_service.save_notes(db, entry_id=entry_id, admin_notes=data.admin_notes)
    except PharmaSaveError as e:
        raise http_error(e)


@router.post("/pharmacies/{pharmacy_id}/approve", response_model=schemas.Pharmacy)
def approve(
    *,
    db: Session = Depends(deps.get_db),
    admin: models.AdminUser = Depends(deps.get_current_admin),
    pharmacy_id: str,
    data: ApproveRequest,
) -> Any:
    """
    Approve a pharmacy. Every checklist item must be ticked and review notes are required.
    Starts the marketplace trial.
    """
    try:
        return verification_service.approve(
            db, pharmacy_id=pharmacy_id, admin_notes=data.admin_notes, checklist=data.checklist, admin_id=admin.id
        )
    except PharmaSaveError as e:
        raise http_error(e)


@router.post("/pharmacies/{pharmacy_id}/reject", response_model=schemas.Pharmacy)
def reject(
    *,
    db: Session = Depends(deps.get_db),
    admin: models.AdminUser = Depends(deps.get_current_admin),
    pharmacy_id: str,
    data: RejectRequest,
) -> Any:
    try:
        return verification_service.reject(
            db, pharmacy_id=pharmacy_id, reason=data.reason, admin_notes=data.admin_notes, admin_id=admin.id
        )
    except PharmaSaveError as e:
        raise http_error(e)


@router.post("/pharmacies/{pharmacy_id}/cancel", response_model=schemas.Pharmacy)
def cancel(
    *,
    db: Session = Depends(deps.get_db),
    _: models.AdminUser = Depends(deps.get_current_admin),
    pharmacy_id: str,
    data: CancelRequest,
) -> Any:
    try:
        return verification_service.cancel(db, pharmacy_id=pharmacy_id, reason=data.reason)
    except PharmaSaveError as e:
        raise http_error(e)

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from pharmasave import models
from pharmasave.api import deps
from pharmasave.api.errors import http_error
from pharmasave.core.exceptions import PharmaSaveError
from pharmasave.schemas.notification import Notification, NotificationCount
from pharmasave.services import notification_service

router = APIRouter()

# Clients poll the count instead of holding a socket open
COUNT_POLL_SECONDS = 30


@router.get("/", response_model=List[Notification])
def list_notifications(
    *,
    db: Session = Depends(deps.get_db),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
    limit: int = Query(50, ge=1, le=200),
) -> Any:
    return notification_service.list_notifications(db, pharmacy_id=pharmacist.pharmacy_id, limit=limit)


@router.get("/count", response_model=NotificationCount)
def notification_count(
    *,
    db: Session = Depends(deps.get_db),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
) -> Any:
    return NotificationCount(
        unread_count=notification_service.get_unread_count(db, pharmacy_id=pharmacist.pharmacy_id),
        refresh_interval_seconds=COUNT_POLL_SECONDS,
    )


@router.post("/{notification_id}/read", response_model=Notification)
def mark_read(
    *,
    db: Session = Depends(deps.get_db),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
    notification_id: str,
) -> Any:
    try:
        return notification_service.mark_read(db, pharmacy_id=pharmacist.pharmacy_id, notification_id=notification_id)
    except PharmaSaveError as e:
        raise http_error(e)


@router.post("/read-all")
def mark_all_read(
    *,
    db: Session = Depends(deps.get_db),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
) -> Dict[str, int]:
    return {"updated": notification_service.mark_all_read(db, pharmacy_id=pharmacist.pharmacy_id)}


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    *,
    db: Session = Depends(deps.get_db),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
    notification_id: str,
) -> None:
    try:
        notification_service.delete_notification(db, pharmacy_id=pharmacist.pharmacy_id, notification_id=notification_id)
    except PharmaSaveError as e:
        raise http_error(e)


@router.delete("/")
def clear_all(
    *,
    db: Session = Depends(deps.get_db),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
) -> Dict[str, int]:
    return {"deleted": notification_service.clear_all(db, pharmacy_id=pharmacist.pharmacy_id)}

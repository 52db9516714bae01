import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pharmasave import crud
from pharmasave.core.config import settings
from pharmasave.core.database_utils import routine_exists, call_routine
from pharmasave.core.exceptions import NotFoundError
from pharmasave.models import Notification, NotificationType
from pharmasave.utils.timezone import now_utc

logger = logging.getLogger(__name__)


def create_notification(
    db: Session,
    *,
    pharmacy_id: str,
    title: str,
    message: str,
    type: str = NotificationType.SYSTEM,
    data: Optional[Dict[str, Any]] = None,
) -> Notification:
    notification = Notification(
        pharmacy_id=pharmacy_id,
        type=type,
        title=title,
        message=message,
        data=data or {},
        expires_at=now_utc() + timedelta(days=settings.NOTIFICATION_EXPIRE_DAYS),
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return notification


def notify(db: Session, **kwargs) -> Optional[Notification]:
    """Best-effort variant used by workflows where a notification is a side effect."""
    try:
        return create_notification(db, **kwargs)
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"⚠️ Failed to create notification for {kwargs.get('pharmacy_id')}: {e}")
        return None


def list_notifications(db: Session, *, pharmacy_id: str, limit: int = 50) -> List[Notification]:
    return crud.notification.get_recent(db, pharmacy_id=pharmacy_id, limit=limit)


def get_unread_count(db: Session, *, pharmacy_id: str) -> int:
    if routine_exists(db, "get_notification_count"):
        try:
            rows = call_routine(db, "get_notification_count", {"p_pharmacy_id": pharmacy_id})
            if rows:
                return int(next(iter(rows[0].values())) or 0)
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(f"get_notification_count failed, counting locally: {e}")
    return crud.notification.count_unread(db, pharmacy_id=pharmacy_id)


def mark_read(db: Session, *, pharmacy_id: str, notification_id: str) -> Notification:
    notification = crud.notification.get(db, id=notification_id, pharmacy_id=pharmacy_id)
    if not notification:
        raise NotFoundError("Notification not found")
    if not notification.is_read:
        notification.is_read = True
        notification.read_at = now_utc()
        db.add(notification)
        db.commit()
        db.refresh(notification)
    return notification


def mark_all_read(db: Session, *, pharmacy_id: str) -> int:
    now = now_utc()
    updated = (
        db.query(Notification)
        .filter(Notification.pharmacy_id == pharmacy_id, Notification.is_read.is_(False))
        .update({Notification.is_read: True, Notification.read_at: now}, synchronize_session="fetch")
    )
    db.commit()
    return updated


def delete_notification(db: Session, *, pharmacy_id: str, notification_id: str) -> None:
    notification = crud.notification.get(db, id=notification_id, pharmacy_id=pharmacy_id)
    if not notification:
        raise NotFoundError("Notification not found")
    db.delete(notification)
    db.commit()


def clear_all(db: Session, *, pharmacy_id: str) -> int:
    deleted = (
        db.query(Notification)
        .filter(Notification.pharmacy_id == pharmacy_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted

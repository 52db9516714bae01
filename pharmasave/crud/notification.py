from typing import List, Optional

from sqlalchemy import desc, or_
from sqlalchemy.orm import Session

from pharmasave.models import Notification
from pharmasave.utils.timezone import now_utc


class CRUDNotification:
    def get(self, db: Session, *, id: str, pharmacy_id: str) -> Optional[Notification]:
        return (
            db.query(Notification)
            .filter(Notification.id == id, Notification.pharmacy_id == pharmacy_id)
            .first()
        )

    def _live(self, db: Session, pharmacy_id: str):
        return db.query(Notification).filter(
            Notification.pharmacy_id == pharmacy_id,
            or_(Notification.expires_at.is_(None), Notification.expires_at > now_utc()),
        )

    def get_recent(self, db: Session, *, pharmacy_id: str, limit: int = 50) -> List[Notification]:
        return self._live(db, pharmacy_id).order_by(desc(Notification.created_at)).limit(limit).all()

    def count_unread(self, db: Session, *, pharmacy_id: str) -> int:
        return self._live(db, pharmacy_id).filter(Notification.is_read.is_(False)).count()


notification = CRUDNotification()

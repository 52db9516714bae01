from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from pharmasave.models import VerificationQueueEntry, ArchivedPharmacy


class CRUDVerificationQueue:
    def get(self, db: Session, id: str) -> Optional[VerificationQueueEntry]:
        return db.query(VerificationQueueEntry).filter(VerificationQueueEntry.id == id).first()

    def get_by_pharmacy(self, db: Session, *, pharmacy_id: str) -> List[VerificationQueueEntry]:
        return (
            db.query(VerificationQueueEntry)
            .filter(VerificationQueueEntry.pharmacy_id == pharmacy_id)
            .order_by(desc(VerificationQueueEntry.submitted_at))
            .all()
        )

    def get_latest(self, db: Session, *, pharmacy_id: str) -> Optional[VerificationQueueEntry]:
        entries = self.get_by_pharmacy(db, pharmacy_id=pharmacy_id)
        return entries[0] if entries else None


class CRUDArchivedPharmacy:
    def get_by_pharmacy(self, db: Session, *, pharmacy_id: str) -> List[ArchivedPharmacy]:
        return db.query(ArchivedPharmacy).filter(ArchivedPharmacy.original_pharmacy_id == pharmacy_id).all()


verification_queue = CRUDVerificationQueue()
archived_pharmacy = CRUDArchivedPharmacy()

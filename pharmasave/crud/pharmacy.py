from typing import Any, Dict, List, Optional
import re

from sqlalchemy import desc
from sqlalchemy.orm import Session

from pharmasave.models import Pharmacy, PharmacyDocument


def next_display_id(db: Session, model, prefix: str) -> str:
    """Next ``<prefix>NNNN`` identifier for ``model`` (PH0001, AD0001, ...)."""
    pattern = re.compile(rf"^{prefix}(\d+)$")
    highest = 0
    for (display_id,) in db.query(model.display_id).filter(model.display_id.like(f"{prefix}%")):
        match = pattern.match(display_id or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{prefix}{highest + 1:04d}"


class CRUDPharmacy:
    def get(self, db: Session, id: str) -> Optional[Pharmacy]:
        return db.query(Pharmacy).filter(Pharmacy.id == id).first()

    def create_named(self, db: Session, *, name: str) -> Pharmacy:
        obj = Pharmacy(name=name, display_id=next_display_id(db, Pharmacy, "PH"))
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj

    def update(self, db: Session, *, db_obj: Pharmacy, obj_in: Dict[str, Any]) -> Pharmacy:
        for field, value in obj_in.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def count(self, db: Session, *, include_archived: bool = False) -> int:
        query = db.query(Pharmacy)
        if not include_archived:
            query = query.filter(Pharmacy.archived_at.is_(None))
        return query.count()

    def get_archived(self, db: Session) -> List[Pharmacy]:
        return (
            db.query(Pharmacy)
            .filter(Pharmacy.archived_at.isnot(None))
            .order_by(desc(Pharmacy.archived_at))
            .all()
        )


class CRUDPharmacyDocument:
    def get_by_pharmacy(self, db: Session, *, pharmacy_id: str) -> List[PharmacyDocument]:
        return (
            db.query(PharmacyDocument)
            .filter(PharmacyDocument.pharmacy_id == pharmacy_id)
            .order_by(desc(PharmacyDocument.uploaded_at))
            .all()
        )


pharmacy = CRUDPharmacy()
pharmacy_document = CRUDPharmacyDocument()

"""
Admin verification queue.

Approving a pharmacy is three separate writes: the verification flags, then the
trial window with marketplace access, then the queue entry. Only the first is
required to succeed.
"""

import logging
from datetime import timedelta
from typing import Dict, List, Optional

from sqlalchemy import desc, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pharmasave import crud
from pharmasave.core.config import settings
from pharmasave.core.exceptions import NotFoundError, ValidationFailedError
from pharmasave.models import (
    NotificationType,
    Pharmacy,
    PharmacyDocument,
    QueueStatus,
    VerificationQueueEntry,
    VerificationStatus,
)
from pharmasave.schemas.pharmacy import (
    Pharmacy as PharmacySchema,
    Pharmacist as PharmacistSchema,
    PharmacyDocument as PharmacyDocumentSchema,
)
from pharmasave.schemas.verification import PharmacyReview, QueueEntry, QueueItem
from pharmasave.services import notification_service
from pharmasave.utils.timezone import now_utc

logger = logging.getLogger(__name__)

CHECKLIST_ITEMS = (
    "pharmacyLicense",
    "businessRegistration",
    "pharmacistLicense",
    "addressVerification",
    "contactVerification",
    "documentQuality",
)


def _get_pharmacy(db: Session, pharmacy_id: str) -> Pharmacy:
    pharmacy = crud.pharmacy.get(db, id=pharmacy_id)
    if not pharmacy:
        raise NotFoundError("Pharmacy not found")
    return pharmacy


def list_queue(db: Session, *, status: Optional[str] = None, search: Optional[str] = None) -> List[QueueItem]:
    documents = (
        db.query(PharmacyDocument.pharmacy_id, func.count(PharmacyDocument.id).label("documents_count"))
        .group_by(PharmacyDocument.pharmacy_id)
        .subquery()
    )
    query = (
        db.query(VerificationQueueEntry, Pharmacy, documents.c.documents_count)
        .join(Pharmacy, Pharmacy.id == VerificationQueueEntry.pharmacy_id)
        .outerjoin(documents, documents.c.pharmacy_id == Pharmacy.id)
        .filter(Pharmacy.archived_at.is_(None))
        .filter(VerificationQueueEntry.status != QueueStatus.ARCHIVED)
    )
    if status and status != "all":
        query = query.filter(VerificationQueueEntry.status == status)
    if search:
        like = f"%{search}%"
        query = query.filter(or_(Pharmacy.name.ilike(like), Pharmacy.display_id.ilike(like)))

    rows = query.order_by(desc(VerificationQueueEntry.submitted_at)).all()
    return [
        QueueItem(
            id=entry.id,
            pharmacy_id=pharmacy.id,
            pharmacy_name=pharmacy.name,
            display_id=pharmacy.display_id,
            ver_status=pharmacy.ver_status,
            status=entry.status,
            priority=entry.priority,
            documents_count=documents_count or 0,
            admin_notes=entry.admin_notes,
            submitted_at=entry.submitted_at,
            reviewed_at=entry.reviewed_at,
        )
        for entry, pharmacy, documents_count in rows
    ]


def get_review(db: Session, pharmacy_id: str) -> PharmacyReview:
    pharmacy = _get_pharmacy(db, pharmacy_id)
    entry = crud.verification_queue.get_latest(db, pharmacy_id=pharmacy.id)
    return PharmacyReview(
        pharmacy=PharmacySchema.model_validate(pharmacy),
        pharmacists=[PharmacistSchema.model_validate(p) for p in crud.pharmacist.get_by_pharmacy(db, pharmacy_id=pharmacy.id)],
        documents=[PharmacyDocumentSchema.model_validate(d) for d in crud.pharmacy_document.get_by_pharmacy(db, pharmacy_id=pharmacy.id)],
        queue_entry=QueueEntry.model_validate(entry) if entry else None,
    )


def save_notes(db: Session, *, entry_id: str, admin_notes: str) -> VerificationQueueEntry:
    entry = crud.verification_queue.get(db, id=entry_id)
    if not entry:
        raise NotFoundError("Verification entry not found")
    entry.admin_notes = admin_notes
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def _checklist_progress(checklist: Dict[str, bool]) -> tuple:
    items = {key: bool(checklist.get(key)) for key in CHECKLIST_ITEMS}
    # Extra keys sent by the client count as well
    items.update({key: bool(value) for key, value in checklist.items()})
    return sum(items.values()), len(items)


def approve(
    db: Session,
    *,
    pharmacy_id: str,
    admin_notes: str,
    checklist: Dict[str, bool],
    admin_id: Optional[str] = None,
) -> Pharmacy:
    completed, total = _checklist_progress(checklist)
    if completed < total:
        raise ValidationFailedError(
            f"Please complete all validation checklist items ({completed}/{total} completed)"
        )
    if not (admin_notes or "").strip():
        raise ValidationFailedError("Please add admin review notes before approving")

    pharmacy = _get_pharmacy(db, pharmacy_id)
    logger.info(f"🚀 Starting approval process for: {pharmacy.name}")
    now = now_utc()

    pharmacy.verified = True
    pharmacy.ver_status = VerificationStatus.APPROVED
    pharmacy.verified_at = now
    db.add(pharmacy)
    db.commit()

    try:
        pharmacy.trial_started_at = now
        pharmacy.trial_expires_at = now + timedelta(days=settings.TRIAL_PERIOD_DAYS)
        pharmacy.marketplace_access = True
        db.add(pharmacy)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"⚠️ Trial fields update failed for {pharmacy.id}: {e}")

    entry = crud.verification_queue.get_latest(db, pharmacy_id=pharmacy.id)
    if entry:
        try:
            entry.status = QueueStatus.COMPLETED
            entry.admin_notes = admin_notes
            entry.checklist = checklist
            entry.reviewed_at = now
            entry.reviewed_by = admin_id
            db.add(entry)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(f"⚠️ Verification queue update failed for {pharmacy.id}: {e}")

    notification_service.notify(
        db,
        pharmacy_id=pharmacy.id,
        type=NotificationType.VERIFICATION,
        title="Pharmacy verified",
        message=(
            f"{pharmacy.name} has been verified. Your {settings.TRIAL_PERIOD_DAYS}-day "
            "marketplace trial has started."
        ),
        data={"ver_status": pharmacy.ver_status},
    )
    db.refresh(pharmacy)
    logger.info(f"✅ {pharmacy.name} approved")
    return pharmacy


def reject(
    db: Session,
    *,
    pharmacy_id: str,
    reason: str,
    admin_notes: Optional[str] = None,
    admin_id: Optional[str] = None,
) -> Pharmacy:
    if not (reason or "").strip():
        raise ValidationFailedError("Please provide a rejection reason")

    pharmacy = _get_pharmacy(db, pharmacy_id)
    now = now_utc()
    pharmacy.ver_status = VerificationStatus.REJECTED
    pharmacy.verified = False
    db.add(pharmacy)
    db.commit()

    entry = crud.verification_queue.get_latest(db, pharmacy_id=pharmacy.id)
    if entry:
        entry.status = QueueStatus.REJECTED
        entry.admin_notes = admin_notes or None
        entry.rejection_reason = reason
        entry.reviewed_at = now
        entry.reviewed_by = admin_id
        db.add(entry)
        db.commit()

    notification_service.notify(
        db,
        pharmacy_id=pharmacy.id,
        type=NotificationType.VERIFICATION,
        title="Verification rejected",
        message=f"Your verification was rejected: {reason}",
        data={"ver_status": pharmacy.ver_status, "reason": reason},
    )
    db.refresh(pharmacy)
    logger.info(f"❌ {pharmacy.name} rejected: {reason}")
    return pharmacy


def cancel(db: Session, *, pharmacy_id: str, reason: str) -> Pharmacy:
    """Send an approved or rejected pharmacy back to pending so documents can be resubmitted."""
    if not (reason or "").strip():
        raise ValidationFailedError("Please provide a reason for cancelling the verification")

    pharmacy = _get_pharmacy(db, pharmacy_id)
    pharmacy.ver_status = VerificationStatus.PENDING
    pharmacy.verified = False
    pharmacy.verified_at = None
    pharmacy.trial_started_at = None
    pharmacy.trial_expires_at = None
    pharmacy.marketplace_access = False
    db.add(pharmacy)
    db.commit()

    entry = crud.verification_queue.get_latest(db, pharmacy_id=pharmacy.id)
    if entry:
        try:
            entry.status = QueueStatus.PENDING
            entry.admin_notes = reason
            entry.reviewed_at = None
            db.add(entry)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ Queue update error for {pharmacy.id}: {e}")

    db.refresh(pharmacy)
    logger.info(f"📋 Verification cancelled for {pharmacy.name}")
    return pharmacy

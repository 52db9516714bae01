import pytest

from pharmasave.core.exceptions import NotFoundError, ValidationFailedError
from pharmasave.models import Notification, QueueStatus, VerificationStatus
from pharmasave.services import verification_service

FULL_CHECKLIST = {key: True for key in verification_service.CHECKLIST_ITEMS}


def test_queue_lists_pending_pharmacies(db, owner, other_owner):
    queue = verification_service.list_queue(db)
    assert {item.pharmacy_name for item in queue} == {"Nile Pharmacy", "Delta Pharmacy"}
    assert all(item.documents_count == 0 for item in queue)

    filtered = verification_service.list_queue(db, status="pending", search="PH0002")
    assert [item.pharmacy_name for item in filtered] == ["Delta Pharmacy"]


def test_approval_requires_every_checklist_item(db, owner):
    partial = dict(FULL_CHECKLIST, documentQuality=False)

    with pytest.raises(ValidationFailedError, match=r"\(5/6 completed\)"):
        verification_service.approve(db, pharmacy_id=owner.pharmacy_id, admin_notes="ok", checklist=partial)


def test_missing_checklist_items_count_as_unchecked(db, owner):
    with pytest.raises(ValidationFailedError, match=r"\(1/6 completed\)"):
        verification_service.approve(
            db, pharmacy_id=owner.pharmacy_id, admin_notes="ok", checklist={"pharmacyLicense": True}
        )


def test_extra_checklist_items_are_counted(db, owner):
    checklist = dict(FULL_CHECKLIST, insuranceCertificate=False)

    with pytest.raises(ValidationFailedError, match=r"\(6/7 completed\)"):
        verification_service.approve(db, pharmacy_id=owner.pharmacy_id, admin_notes="ok", checklist=checklist)


def test_approval_requires_notes(db, owner):
    with pytest.raises(ValidationFailedError, match="admin review notes"):
        verification_service.approve(db, pharmacy_id=owner.pharmacy_id, admin_notes="  ", checklist=FULL_CHECKLIST)


def test_approval_starts_trial(db, owner, admin):
    pharmacy = verification_service.approve(
        db, pharmacy_id=owner.pharmacy_id, admin_notes="All documents valid", checklist=FULL_CHECKLIST, admin_id=admin.id
    )

    assert pharmacy.verified is True
    assert pharmacy.ver_status == VerificationStatus.APPROVED
    assert pharmacy.marketplace_access is True
    assert (pharmacy.trial_expires_at - pharmacy.trial_started_at).days == 30

    review = verification_service.get_review(db, owner.pharmacy_id)
    assert review.queue_entry.status == QueueStatus.COMPLETED
    assert review.queue_entry.reviewed_by == admin.id
    assert review.queue_entry.checklist == FULL_CHECKLIST
    assert db.query(Notification).filter(Notification.pharmacy_id == owner.pharmacy_id).count() == 1


def test_rejection_records_reason(db, owner):
    with pytest.raises(ValidationFailedError):
        verification_service.reject(db, pharmacy_id=owner.pharmacy_id, reason="")

    pharmacy = verification_service.reject(db, pharmacy_id=owner.pharmacy_id, reason="License expired")

    assert pharmacy.ver_status == VerificationStatus.REJECTED
    review = verification_service.get_review(db, owner.pharmacy_id)
    assert review.queue_entry.status == QueueStatus.REJECTED
    assert review.queue_entry.rejection_reason == "License expired"


def test_cancel_sends_pharmacy_back_to_pending(db, owner):
    verification_service.approve(db, pharmacy_id=owner.pharmacy_id, admin_notes="ok", checklist=FULL_CHECKLIST)

    pharmacy = verification_service.cancel(db, pharmacy_id=owner.pharmacy_id, reason="Documents need renewal")

    assert pharmacy.ver_status == VerificationStatus.PENDING
    assert pharmacy.verified is False
    assert pharmacy.marketplace_access is False
    assert pharmacy.trial_expires_at is None


def test_save_notes(db, owner):
    entry = verification_service.list_queue(db)[0]

    saved = verification_service.save_notes(db, entry_id=entry.id, admin_notes="Called the pharmacy")

    assert saved.admin_notes == "Called the pharmacy"
    with pytest.raises(NotFoundError):
        verification_service.save_notes(db, entry_id="missing", admin_notes="x")


def test_unknown_pharmacy(db):
    with pytest.raises(NotFoundError):
        verification_service.get_review(db, "missing")

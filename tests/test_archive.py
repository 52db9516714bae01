import os
from datetime import timedelta

from pharmasave import crud
from pharmasave.core.config import settings
from pharmasave.models import (
    ArchivedPharmacy,
    EmployeeStatus,
    Pharmacist,
    Pharmacy,
    QueueStatus,
    TransactionHistory,
    VerificationQueueEntry,
    VerificationStatus,
)
from pharmasave.services import archive_service, s3_service, verification_service
from pharmasave.services.file_storage import StorageService, upload_pharmacy_document
from pharmasave.services.platform_revenue import record_subscription_payment
from pharmasave.utils.timezone import now_utc


def _approve(db, pharmacist):
    checklist = {key: True for key in verification_service.CHECKLIST_ITEMS}
    verification_service.approve(db, pharmacy_id=pharmacist.pharmacy_id, admin_notes="ok", checklist=checklist)


def test_archive_snapshots_and_deactivates(db, owner, admin):
    _approve(db, owner)

    result = archive_service.archive_pharmacy(db, pharmacy_id=owner.pharmacy_id, reason="Closed", admin_id=admin.id)

    assert result.success is True
    assert result.message == "Successfully archived Nile Pharmacy (PH0001)"
    pharmacy = crud.pharmacy.get(db, id=owner.pharmacy_id)
    db.refresh(pharmacy)
    assert pharmacy.is_archived
    assert pharmacy.marketplace_access is False
    snapshot = db.query(ArchivedPharmacy).one()
    assert snapshot.original_verified is True
    assert snapshot.original_ver_status == VerificationStatus.APPROVED
    entry = db.query(VerificationQueueEntry).filter(VerificationQueueEntry.pharmacy_id == owner.pharmacy_id).one()
    db.refresh(entry)
    assert entry.status == QueueStatus.ARCHIVED
    db.refresh(owner)
    assert owner.status == EmployeeStatus.INACTIVE


def test_archived_pharmacies_leave_the_queue(db, owner, other_owner):
    archive_service.archive_pharmacy(db, pharmacy_id=owner.pharmacy_id)

    queue = verification_service.list_queue(db)

    assert [item.pharmacy_id for item in queue] == [other_owner.pharmacy_id]


def test_restore_returns_to_pending(db, owner):
    _approve(db, owner)
    archive_service.archive_pharmacy(db, pharmacy_id=owner.pharmacy_id)

    result = archive_service.restore_archived_pharmacy(db, pharmacy_id=owner.pharmacy_id)

    assert result.success is True
    pharmacy = db.get(Pharmacy, owner.pharmacy_id)
    db.refresh(pharmacy)
    assert pharmacy.archived_at is None
    assert pharmacy.ver_status == VerificationStatus.PENDING
    assert pharmacy.verified is False
    assert db.query(ArchivedPharmacy).count() == 0
    db.refresh(owner)
    assert owner.status == EmployeeStatus.ACTIVE


def test_archive_and_restore_keep_loaded_pharmacist_in_sync(db, owner):
    archive_service.archive_pharmacy(db, pharmacy_id=owner.pharmacy_id)
    assert owner.status == EmployeeStatus.INACTIVE

    archive_service.restore_archived_pharmacy(db, pharmacy_id=owner.pharmacy_id)

    assert owner.status == EmployeeStatus.ACTIVE
    stored = db.query(Pharmacist.status).filter(Pharmacist.id == owner.id).scalar()
    assert stored == EmployeeStatus.ACTIVE


def test_restore_requires_archived_pharmacy(db, owner):
    result = archive_service.restore_archived_pharmacy(db, pharmacy_id=owner.pharmacy_id)
    assert result.success is False
    assert result.message == "Pharmacy is not archived"

    assert archive_service.restore_archived_pharmacy(db, pharmacy_id="missing").success is False


def test_list_and_statistics(db, owner, other_owner):
    archive_service.archive_pharmacy(db, pharmacy_id=owner.pharmacy_id, reason="Closed")
    archive_service.archive_pharmacy(db, pharmacy_id=other_owner.pharmacy_id, reason="Closed")

    archived = archive_service.list_archived_pharmacies(db)
    stats = archive_service.get_archive_statistics(db)

    assert len(archived) == 2
    assert archived[0].days_archived == 0
    assert stats.total_archived == 2
    assert stats.archived_this_month == 2
    assert stats.archive_reasons == {"Closed": 2}


def test_permanent_delete_needs_confirmation_and_archive(db, storage, owner):
    result = archive_service.delete_archived_pharmacy(db, storage, pharmacy_id=owner.pharmacy_id, confirmation="yes")
    assert result.success is False
    assert result.message == "Deletion not confirmed"

    result = archive_service.delete_archived_pharmacy(
        db, storage, pharmacy_id=owner.pharmacy_id, confirmation=archive_service.DELETE_CONFIRMATION
    )
    assert result.success is False
    assert result.message == "Only archived pharmacies can be permanently deleted"


def test_permanent_delete_removes_rows_and_files(db, storage, owner, other_owner):
    pharmacy = owner.pharmacy
    upload_pharmacy_document(
        db, storage, pharmacy=pharmacy, document_type="license", filename="license.pdf", content=b"%PDF-1.4"
    )
    other = upload_pharmacy_document(
        db, storage, pharmacy=other_owner.pharmacy, document_type="license", filename="license.pdf", content=b"%PDF"
    )
    stray = storage.upload(settings.VERIFICATION_DOCS_BUCKET, f"{pharmacy.display_id}/verification/id.png", b"png")
    record_subscription_payment(db, pharmacy_id=pharmacy.id, pharmacy_name=pharmacy.name)
    archive_service.archive_pharmacy(db, pharmacy_id=pharmacy.id)
    pharmacy_id = pharmacy.id

    result = archive_service.delete_archived_pharmacy(
        db, storage, pharmacy_id=pharmacy_id, confirmation=archive_service.DELETE_CONFIRMATION
    )

    assert result.success is True
    assert result.message == "Successfully deleted Nile Pharmacy and all related data"
    assert result.details["deleted_pharmacists"] == 1
    assert result.details["deleted_documents"] == 1
    assert result.details["storage_files_deleted"] == 2
    assert db.get(Pharmacy, pharmacy_id) is None
    assert db.query(Pharmacist).filter(Pharmacist.pharmacy_id == pharmacy_id).count() == 0
    assert not os.path.exists(os.path.join(storage.local_root, stray))
    # Other pharmacies' files and the revenue ledger survive
    assert os.path.exists(os.path.join(storage.local_root, other.file_url))
    history = db.query(TransactionHistory).one()
    assert history.pharmacy_id is None


def test_permanent_delete_reports_unlistable_bucket(db, owner, monkeypatch):
    def denied(bucket, prefix):
        raise RuntimeError(f"Failed to list s3://{bucket}/{prefix}/: AccessDenied")

    monkeypatch.setattr(s3_service, "list_keys", denied)
    monkeypatch.setattr(s3_service, "delete_keys", lambda bucket, keys: (0, []))
    archive_service.archive_pharmacy(db, pharmacy_id=owner.pharmacy_id)

    result = archive_service.delete_archived_pharmacy(
        db, StorageService(use_s3=True), pharmacy_id=owner.pharmacy_id, confirmation=archive_service.DELETE_CONFIRMATION
    )

    assert result.success is True
    assert result.details["storage_files_deleted"] == 0
    assert len(result.details["storage_errors"]) == 4
    assert "AccessDenied" in result.details["storage_errors"][0]
    assert db.query(Pharmacy).count() == 0


def test_cleanup_only_touches_old_archives(db, storage, owner, other_owner):
    archive_service.archive_pharmacy(db, pharmacy_id=owner.pharmacy_id)
    archive_service.archive_pharmacy(db, pharmacy_id=other_owner.pharmacy_id)
    old = db.get(Pharmacy, owner.pharmacy_id)
    old.archived_at = now_utc() - timedelta(days=400)
    db.commit()
    recent_id = other_owner.pharmacy_id

    refused = archive_service.cleanup_old_archives(db, storage, confirmation="please")
    assert refused.success is False

    result = archive_service.cleanup_old_archives(
        db, storage, days_old=365, confirmation=archive_service.CLEANUP_CONFIRMATION
    )

    assert result.success is True
    assert result.details["deleted_count"] == 1
    assert db.get(Pharmacy, recent_id) is not None


def test_export_lists_archived_pharmacies(db, owner):
    archive_service.archive_pharmacy(db, pharmacy_id=owner.pharmacy_id, reason="Closed")

    export = archive_service.export_archive_data(db)

    assert export.total_count == 1
    assert export.archived_pharmacies[0]["name"] == "Nile Pharmacy"
    assert export.statistics.total_archived == 1

"""
Archive, restore and permanent deletion of pharmacies.

These are sequential scripts over several tables. Each step commits on its own and
nothing is rolled back; steps marked optional only log a warning when they fail.
Every operation reports an ``OperationResult`` instead of raising.
"""

import logging
from collections import Counter
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pharmasave import crud
from pharmasave.core.config import settings
from pharmasave.core.database_utils import routine_exists, call_routine
from pharmasave.models import (
    ArchivedPharmacy,
    EmployeeStatus,
    FundRequest,
    Listing,
    MarketplaceTransaction,
    Notification,
    Pharmacist,
    Pharmacy,
    PharmacyDocument,
    PharmacyInvitation,
    QueueStatus,
    TransactionHistory,
    VerificationQueueEntry,
    VerificationStatus,
    Wallet,
    WalletTransaction,
    WithdrawalRequest,
)
from pharmasave.schemas.pharmacy import PharmacyDocument as PharmacyDocumentSchema
from pharmasave.schemas.verification import (
    ArchiveExport,
    ArchiveStatistics,
    ArchivedPharmacy as ArchivedPharmacySchema,
    OperationResult,
    QueueEntry,
)
from pharmasave.services.file_storage import StorageService, cleanup_pharmacy_storage
from pharmasave.utils.timezone import days_since, now_utc

logger = logging.getLogger(__name__)

DELETE_CONFIRMATION = "CONFIRM_DELETE_PERMANENTLY"
CLEANUP_CONFIRMATION = "CONFIRM_BULK_CLEANUP"


def _routine_result(rows: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Functions return either a json object in a single column or a plain row."""
    if not rows:
        return None
    row = rows[0]
    if len(row) == 1:
        value = next(iter(row.values()))
        if value is None or isinstance(value, dict):
            return value
    return row


def _unexpected(action: str, error: Exception) -> OperationResult:
    logger.error(f"❌ Unexpected error during {action}: {error}")
    return OperationResult(
        success=False,
        message=f"An unexpected error occurred during {action}",
        error=str(error),
    )


def archive_pharmacy(
    db: Session,
    *,
    pharmacy_id: str,
    reason: str = "Manual archive",
    admin_id: Optional[str] = None,
) -> OperationResult:
    logger.info(f"📦 Archiving pharmacy {pharmacy_id}: {reason}")

    if routine_exists(db, "archive_pharmacy_minimal"):
        try:
            result = _routine_result(
                call_routine(db, "archive_pharmacy_minimal", {"p_pharmacy_id": pharmacy_id, "p_reason": reason})
            ) or {}
        except SQLAlchemyError as e:
            db.rollback()
            return OperationResult(success=False, message="Failed to archive pharmacy", error=str(e))
        if not result.get("success", True):
            return OperationResult(success=False, message=result.get("error") or "Archive failed", error=result.get("error"))
        return OperationResult(
            success=True,
            message=result.get("message") or f"Successfully archived {result.get('pharmacy_name', pharmacy_id)}",
            details=dict(result),
        )

    pharmacy = crud.pharmacy.get(db, id=pharmacy_id)
    if not pharmacy:
        return OperationResult(success=False, message="Pharmacy not found", error="Pharmacy not found")

    original = {
        "verified": pharmacy.verified,
        "ver_status": pharmacy.ver_status,
        "marketplace_access": pharmacy.marketplace_access,
    }
    now = now_utc()

    try:
        pharmacy.verified = False
        pharmacy.marketplace_access = False
        pharmacy.archived_at = now
        pharmacy.archive_reason = reason
        db.add(pharmacy)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        return OperationResult(success=False, message="Failed to update pharmacy archive status", error=str(e))
    logger.info("✅ Pharmacy archived successfully")

    try:
        db.query(VerificationQueueEntry).filter(VerificationQueueEntry.pharmacy_id == pharmacy.id).update(
            {"status": QueueStatus.ARCHIVED, "admin_notes": f"Archived: {reason}", "updated_at": now},
            synchronize_session="fetch",
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"⚠️ Verification queue archive warning: {e}")

    try:
        db.add(
            ArchivedPharmacy(
                original_pharmacy_id=pharmacy.id,
                name=pharmacy.name,
                display_id=pharmacy.display_id,
                original_verified=original["verified"],
                original_ver_status=original["ver_status"],
                original_marketplace_access=original["marketplace_access"],
                archive_reason=reason,
                archived_by=admin_id,
                archived_at=now,
            )
        )
        db.commit()
        logger.info("✅ Archive record created")
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"⚠️ Archive table insert failed: {e}")

    try:
        db.query(Pharmacist).filter(Pharmacist.pharmacy_id == pharmacy.id).update(
            {"status": EmployeeStatus.INACTIVE}, synchronize_session="fetch"
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"⚠️ Could not deactivate pharmacists of {pharmacy.id}: {e}")

    return OperationResult(
        success=True,
        message=f"Successfully archived {pharmacy.name} ({pharmacy.display_id})",
        details={"pharmacy_id": pharmacy.id, "archive_reason": reason, "archived_at": now.isoformat()},
    )


def restore_archived_pharmacy(db: Session, *, pharmacy_id: str) -> OperationResult:
    if routine_exists(db, "unarchive_pharmacy_minimal"):
        try:
            result = _routine_result(call_routine(db, "unarchive_pharmacy_minimal", {"p_pharmacy_id": pharmacy_id})) or {}
        except SQLAlchemyError as e:
            db.rollback()
            return OperationResult(success=False, message="Failed to restore pharmacy", error=str(e))
        if not result.get("success", True):
            return OperationResult(success=False, message=result.get("error") or "Restore failed", error=result.get("error"))
        return OperationResult(success=True, message="Pharmacy restored successfully", details=dict(result))

    pharmacy = crud.pharmacy.get(db, id=pharmacy_id)
    if not pharmacy:
        return OperationResult(success=False, message="Pharmacy not found", error="Pharmacy not found")
    if not pharmacy.is_archived:
        return OperationResult(success=False, message="Pharmacy is not archived", error="Pharmacy is not archived")

    now = now_utc()
    try:
        pharmacy.ver_status = VerificationStatus.PENDING
        pharmacy.verified = False
        pharmacy.marketplace_access = False
        pharmacy.archived_at = None
        pharmacy.archive_reason = None
        db.add(pharmacy)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        return OperationResult(success=False, message="Failed to restore pharmacy", error=str(e))

    try:
        db.query(VerificationQueueEntry).filter(VerificationQueueEntry.pharmacy_id == pharmacy.id).update(
            {
                "status": QueueStatus.PENDING,
                "reviewed_at": None,
                "admin_notes": "Restored from archive",
                "updated_at": now,
            },
            synchronize_session="fetch",
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"⚠️ Queue restore warning: {e}")

    try:
        db.query(ArchivedPharmacy).filter(ArchivedPharmacy.original_pharmacy_id == pharmacy.id).delete(
            synchronize_session=False
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"⚠️ Archive table cleanup warning: {e}")

    try:
        db.query(Pharmacist).filter(
            Pharmacist.pharmacy_id == pharmacy.id, Pharmacist.is_primary.is_(True)
        ).update({"status": EmployeeStatus.ACTIVE}, synchronize_session="fetch")
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"⚠️ Could not reactivate primary pharmacist of {pharmacy.id}: {e}")

    logger.info(f"✅ {pharmacy.name} restored to pending verification")
    return OperationResult(
        success=True,
        message=f"Successfully restored {pharmacy.name} to pending verification",
        details={"pharmacy_id": pharmacy.id},
    )


def list_archived_pharmacies(db: Session) -> List[ArchivedPharmacySchema]:
    now = now_utc()
    return [
        ArchivedPharmacySchema(
            id=p.id,
            name=p.name,
            display_id=p.display_id,
            email=p.email,
            phone=p.phone,
            archived_at=p.archived_at,
            archive_reason=p.archive_reason,
            ver_status=p.ver_status,
            days_archived=days_since(p.archived_at, now=now),
        )
        for p in crud.pharmacy.get_archived(db)
    ]


def get_archive_statistics(db: Session) -> ArchiveStatistics:
    if routine_exists(db, "get_archive_statistics"):
        try:
            result = _routine_result(call_routine(db, "get_archive_statistics", {}))
            if result:
                if "archives_by_reason" in result and "archive_reasons" not in result:
                    result = {**result, "archive_reasons": result["archives_by_reason"]}
                return ArchiveStatistics(**result)
        except (SQLAlchemyError, ValueError) as e:
            db.rollback()
            logger.error(f"Error fetching archive statistics: {e}")

    archived = crud.pharmacy.get_archived(db)
    now = now_utc()
    dates = [p.archived_at for p in archived]
    return ArchiveStatistics(
        total_archived=len(archived),
        archived_this_month=sum(1 for d in dates if d.year == now.year and d.month == now.month),
        archived_this_year=sum(1 for d in dates if d.year == now.year),
        oldest_archive=min(dates) if dates else None,
        newest_archive=max(dates) if dates else None,
        archive_reasons=dict(Counter(p.archive_reason or "Unspecified" for p in archived)),
    )


def _delete_rows(db: Session, label: str, query) -> int:
    count = query.delete(synchronize_session=False)
    db.commit()
    logger.info(f"✅ Deleted {count} {label}")
    return count


def _optional_delete(db: Session, label: str, query) -> int:
    try:
        return _delete_rows(db, label, query)
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"⚠️ Could not delete {label}: {e}")
        return 0


def delete_pharmacy_complete(db: Session, storage: StorageService, *, pharmacy_id: str) -> OperationResult:
    logger.info(f"🗑️ Starting complete deletion for pharmacy: {pharmacy_id}")
    try:
        return _delete_pharmacy(db, storage, pharmacy_id)
    except SQLAlchemyError as e:
        db.rollback()
        return _unexpected("deletion", e)


def _delete_pharmacy(db: Session, storage: StorageService, pharmacy_id: str) -> OperationResult:
    if routine_exists(db, "delete_verification_entry"):
        pharmacy = crud.pharmacy.get(db, id=pharmacy_id)
        storage_result = cleanup_pharmacy_storage(db, storage, pharmacy) if pharmacy else {"files_deleted": 0, "errors": []}
        result = _routine_result(call_routine(db, "delete_verification_entry", {"p_pharmacy_id": pharmacy_id}))
        if result is None:
            return OperationResult(
                success=True,
                message="Pharmacy deleted",
                details={
                    "storage_files_deleted": storage_result["files_deleted"],
                    "storage_errors": storage_result["errors"],
                },
            )
        if result.get("success") is False:
            return OperationResult(
                success=False,
                message=result.get("error") or "Deletion failed",
                error=result.get("error"),
            )
        return OperationResult(
            success=True,
            message=f"Successfully deleted {result.get('pharmacy_name', pharmacy_id)}",
            details={
                "pharmacy_name": result.get("pharmacy_name"),
                "deleted_pharmacists": result.get("deleted_pharmacists", 0),
                "deleted_documents": result.get("deleted_documents", 0),
                "storage_files_deleted": storage_result["files_deleted"],
                "storage_errors": storage_result["errors"],
            },
        )

    pharmacy = crud.pharmacy.get(db, id=pharmacy_id)
    if not pharmacy:
        return OperationResult(success=False, message="Pharmacy not found", error="Pharmacy not found")
    name, display_id = pharmacy.name, pharmacy.display_id

    storage_result = cleanup_pharmacy_storage(db, storage, pharmacy)
    for error in storage_result["errors"]:
        logger.warning(f"⚠️ Storage: {error}")

    logger.info("🗃️ Starting database deletion...")
    _optional_delete(db, "verification queue entries", db.query(VerificationQueueEntry).filter(VerificationQueueEntry.pharmacy_id == pharmacy.id))
    deleted_documents = _optional_delete(db, "documents", db.query(PharmacyDocument).filter(PharmacyDocument.pharmacy_id == pharmacy.id))
    _optional_delete(db, "invitations", db.query(PharmacyInvitation).filter(PharmacyInvitation.pharmacy_id == pharmacy.id))
    _optional_delete(db, "fund requests", db.query(FundRequest).filter(FundRequest.pharmacy_id == pharmacy.id))
    _optional_delete(db, "withdrawal requests", db.query(WithdrawalRequest).filter(WithdrawalRequest.pharmacy_id == pharmacy.id))
    _optional_delete(db, "wallet transactions", db.query(WalletTransaction).filter(WalletTransaction.pharmacy_id == pharmacy.id))
    _optional_delete(db, "wallets", db.query(Wallet).filter(Wallet.pharmacy_id == pharmacy.id))
    _optional_delete(db, "notifications", db.query(Notification).filter(Notification.pharmacy_id == pharmacy.id))
    _optional_delete(db, "archive snapshots", db.query(ArchivedPharmacy).filter(ArchivedPharmacy.original_pharmacy_id == pharmacy.id))
    _optional_delete(
        db,
        "marketplace transactions",
        db.query(MarketplaceTransaction).filter(
            (MarketplaceTransaction.buyer_pharmacy_id == pharmacy.id)
            | (MarketplaceTransaction.seller_pharmacy_id == pharmacy.id)
        ),
    )
    _optional_delete(db, "listings", db.query(Listing).filter(Listing.pharmacy_id == pharmacy.id))

    # Platform revenue history is kept, detached from the pharmacy
    try:
        db.query(TransactionHistory).filter(TransactionHistory.pharmacy_id == pharmacy.id).update(
            {"pharmacy_id": None}, synchronize_session="fetch"
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"⚠️ Could not detach revenue history: {e}")

    try:
        deleted_pharmacists = _delete_rows(db, "pharmacist accounts", db.query(Pharmacist).filter(Pharmacist.pharmacy_id == pharmacy.id))
    except SQLAlchemyError as e:
        db.rollback()
        return OperationResult(success=False, message="Failed to delete pharmacist accounts", error=str(e))

    try:
        db.query(Pharmacy).filter(Pharmacy.id == pharmacy.id).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        return OperationResult(success=False, message="Failed to delete pharmacy record", error=str(e))
    db.expunge_all()
    logger.info("✅ Deleted pharmacy record")

    return OperationResult(
        success=True,
        message=f"Successfully deleted {name} ({display_id})",
        details={
            "pharmacy_name": name,
            "deleted_pharmacists": deleted_pharmacists,
            "deleted_documents": deleted_documents,
            "storage_files_deleted": storage_result["files_deleted"],
            "storage_errors": storage_result["errors"],
        },
    )


def delete_archived_pharmacy(
    db: Session,
    storage: StorageService,
    *,
    pharmacy_id: str,
    confirmation: str,
) -> OperationResult:
    if confirmation != DELETE_CONFIRMATION:
        return OperationResult(
            success=False,
            message="Deletion not confirmed",
            error=f"Confirmation must be {DELETE_CONFIRMATION}",
        )
    pharmacy = crud.pharmacy.get(db, id=pharmacy_id)
    if not pharmacy:
        return OperationResult(success=False, message="Pharmacy not found", error="Pharmacy not found")
    if not pharmacy.is_archived:
        return OperationResult(
            success=False,
            message="Only archived pharmacies can be permanently deleted",
            error="Pharmacy is not archived",
        )

    name = pharmacy.name
    result = delete_pharmacy_complete(db, storage, pharmacy_id=pharmacy_id)
    if result.success:
        result.message = f"Successfully deleted {name} and all related data"
    return result


def cleanup_old_archives(
    db: Session,
    storage: StorageService,
    *,
    days_old: int = settings.ARCHIVE_CLEANUP_DAYS,
    confirmation: str,
) -> OperationResult:
    if confirmation != CLEANUP_CONFIRMATION:
        return OperationResult(
            success=False,
            message="Cleanup not confirmed",
            error=f"Confirmation must be {CLEANUP_CONFIRMATION}",
        )

    logger.info(f"🧹 Cleaning up archives older than {days_old} days")
    cutoff = now_utc() - timedelta(days=days_old)
    try:
        old_archives = (
            db.query(Pharmacy)
            .filter(Pharmacy.archived_at.isnot(None), Pharmacy.archived_at < cutoff)
            .all()
        )
    except SQLAlchemyError as e:
        db.rollback()
        return OperationResult(success=False, message="Failed to identify old archives", error=str(e))

    deleted_count = 0
    storage_files_deleted = 0
    failures: List[str] = []
    for pharmacy in old_archives:
        pharmacy_id, name = pharmacy.id, pharmacy.name
        result = delete_pharmacy_complete(db, storage, pharmacy_id=pharmacy_id)
        if result.success:
            deleted_count += 1
            storage_files_deleted += result.details.get("storage_files_deleted", 0)
        else:
            failures.append(f"{name}: {result.error or result.message}")

    return OperationResult(
        success=not failures,
        message=f"Successfully cleaned up {deleted_count} old archives",
        error="; ".join(failures) or None,
        details={
            "deleted_count": deleted_count,
            "storage_files_deleted": storage_files_deleted,
            "days_old": days_old,
        },
    )


def export_archive_data(db: Session) -> ArchiveExport:
    archived = crud.pharmacy.get_archived(db)
    rows: List[Dict[str, Any]] = []
    for pharmacy in archived:
        entries = (
            db.query(VerificationQueueEntry)
            .filter(VerificationQueueEntry.pharmacy_id == pharmacy.id)
            .order_by(desc(VerificationQueueEntry.submitted_at))
            .all()
        )
        rows.append(
            {
                "id": pharmacy.id,
                "display_id": pharmacy.display_id,
                "name": pharmacy.name,
                "email": pharmacy.email,
                "ver_status": pharmacy.ver_status,
                "archived_at": pharmacy.archived_at.isoformat(),
                "archive_reason": pharmacy.archive_reason,
                "pharmacy_documents": [
                    PharmacyDocumentSchema.model_validate(d).model_dump(mode="json") for d in pharmacy.documents
                ],
                "verification_queue": [QueueEntry.model_validate(e).model_dump(mode="json") for e in entries],
            }
        )

    return ArchiveExport(
        export_date=now_utc(),
        statistics=get_archive_statistics(db),
        archived_pharmacies=rows,
        total_count=len(rows),
    )

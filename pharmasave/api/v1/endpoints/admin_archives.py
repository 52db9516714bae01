from typing import Any, List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pharmasave import models
from pharmasave.api import deps
from pharmasave.schemas.verification import (
    ArchiveExport,
    ArchiveRequest,
    ArchiveStatistics,
    ArchivedPharmacy,
    CleanupRequest,
    ConfirmedDelete,
    OperationResult,
)
from pharmasave.services import archive_service
from pharmasave.services.file_storage import StorageService

router = APIRouter()

# Archive operations report failures in the OperationResult body rather than as HTTP errors


@router.get("/", response_model=List[ArchivedPharmacy])
def list_archived(
    *,
    db: Session = Depends(deps.get_db),
    _: models.AdminUser = Depends(deps.get_current_admin),
) -> Any:
    return archive_service.list_archived_pharmacies(db)


@router.get("/statistics", response_model=ArchiveStatistics)
def archive_statistics(
    *,
    db: Session = Depends(deps.get_db),
    _: models.AdminUser = Depends(deps.get_current_admin),
) -> Any:
    return archive_service.get_archive_statistics(db)


@router.get("/export", response_model=ArchiveExport)
def export_archives(
    *,
    db: Session = Depends(deps.get_db),
    _: models.AdminUser = Depends(deps.get_current_admin),
) -> Any:
    return archive_service.export_archive_data(db)


@router.post("/pharmacies/{pharmacy_id}", response_model=OperationResult)
def archive_pharmacy(
    *,
    db: Session = Depends(deps.get_db),
    admin: models.AdminUser = Depends(deps.get_current_admin),
    pharmacy_id: str,
    data: ArchiveRequest,
) -> Any:
    return archive_service.archive_pharmacy(db, pharmacy_id=pharmacy_id, reason=data.reason, admin_id=admin.id)


@router.post("/pharmacies/{pharmacy_id}/restore", response_model=OperationResult)
def restore_pharmacy(
    *,
    db: Session = Depends(deps.get_db),
    _: models.AdminUser = Depends(deps.get_current_admin),
    pharmacy_id: str,
) -> Any:
    return archive_service.restore_archived_pharmacy(db, pharmacy_id=pharmacy_id)


@router.post("/pharmacies/{pharmacy_id}/delete", response_model=OperationResult)
def delete_archived_pharmacy(
    *,
    db: Session = Depends(deps.get_db),
    storage: StorageService = Depends(deps.get_storage),
    _: models.AdminUser = Depends(deps.get_current_super_admin),
    pharmacy_id: str,
    data: ConfirmedDelete,
) -> Any:
    """
    Permanently delete an archived pharmacy with its files and related rows.
    Requires the confirmation phrase ``CONFIRM_DELETE_PERMANENTLY``.
    """
    return archive_service.delete_archived_pharmacy(
        db, storage, pharmacy_id=pharmacy_id, confirmation=data.confirmation
    )


@router.post("/cleanup", response_model=OperationResult)
def cleanup_old_archives(
    *,
    db: Session = Depends(deps.get_db),
    storage: StorageService = Depends(deps.get_storage),
    _: models.AdminUser = Depends(deps.get_current_super_admin),
    data: CleanupRequest,
) -> Any:
    """
    Delete every pharmacy archived more than ``days_old`` days ago.
    Requires the confirmation phrase ``CONFIRM_BULK_CLEANUP``.
    """
    return archive_service.cleanup_old_archives(
        db, storage, days_old=data.days_old, confirmation=data.confirmation
    )


@router.delete("/verification/{pharmacy_id}", response_model=OperationResult)
def delete_verification_entry(
    *,
    db: Session = Depends(deps.get_db),
    storage: StorageService = Depends(deps.get_storage),
    _: models.AdminUser = Depends(deps.get_current_super_admin),
    pharmacy_id: str,
) -> Any:
    """
    Remove a pharmacy straight from the verification queue, archived or not.
    """
    return archive_service.delete_pharmacy_complete(db, storage, pharmacy_id=pharmacy_id)

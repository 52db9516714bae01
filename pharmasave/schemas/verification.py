from typing import Optional, List, Dict, Any
from datetime import datetime

from pydantic import BaseModel, Field

from pharmasave.core.config import settings
from pharmasave.schemas.pharmacy import Pharmacy, Pharmacist, PharmacyDocument


class QueueItem(BaseModel):
    id: str
    pharmacy_id: str
    pharmacy_name: str
    display_id: Optional[str] = None
    ver_status: str
    status: str
    priority: str
    documents_count: int = 0
    admin_notes: Optional[str] = None
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None


class QueueEntry(BaseModel):
    id: str
    pharmacy_id: str
    status: str
    priority: str
    admin_notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    checklist: Optional[Dict[str, bool]] = None
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None

    class Config:
        from_attributes = True


class PharmacyReview(BaseModel):
    pharmacy: Pharmacy
    pharmacists: List[Pharmacist] = []
    documents: List[PharmacyDocument] = []
    queue_entry: Optional[QueueEntry] = None


class ApproveRequest(BaseModel):
    admin_notes: str
    checklist: Dict[str, bool] = {}


class RejectRequest(BaseModel):
    reason: str
    admin_notes: Optional[str] = None


class CancelRequest(BaseModel):
    reason: str


class NotesUpdate(BaseModel):
    admin_notes: str


class ArchiveRequest(BaseModel):
    reason: str = "Manual archive"


class ConfirmedDelete(BaseModel):
    confirmation: str


class CleanupRequest(BaseModel):
    days_old: int = Field(default=settings.ARCHIVE_CLEANUP_DAYS, ge=1)
    confirmation: str


class OperationResult(BaseModel):
    success: bool
    message: str
    error: Optional[str] = None
    details: Dict[str, Any] = {}


class ArchivedPharmacy(BaseModel):
    id: str
    name: str
    display_id: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    archived_at: datetime
    archive_reason: Optional[str] = None
    ver_status: str
    days_archived: int


class ArchiveStatistics(BaseModel):
    total_archived: int
    archived_this_month: int
    archived_this_year: int
    oldest_archive: Optional[datetime] = None
    newest_archive: Optional[datetime] = None
    archive_reasons: Dict[str, int] = {}


class ArchiveExport(BaseModel):
    export_date: datetime
    statistics: ArchiveStatistics
    archived_pharmacies: List[Dict[str, Any]]
    total_count: int

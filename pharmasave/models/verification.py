import uuid

from sqlalchemy import Column, String, DateTime, Boolean, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship

from pharmasave.db.base import Base
from pharmasave.utils.timezone import now_utc


class QueueStatus:
    PENDING = "pending"
    IN_REVIEW = "in_review"
    COMPLETED = "completed"
    REJECTED = "rejected"
    ARCHIVED = "archived"


class VerificationQueueEntry(Base):
    __tablename__ = "verification_queue"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    pharmacy_id = Column(String(36), ForeignKey("pharmacies.id"), nullable=False, index=True)
    status = Column(String(20), default=QueueStatus.PENDING, nullable=False, index=True)
    priority = Column(String(10), default="normal", nullable=False)
    admin_notes = Column(Text, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    checklist = Column(JSON, nullable=True)
    assigned_to = Column(String(36), nullable=True)
    submitted_at = Column(DateTime, default=now_utc)
    reviewed_at = Column(DateTime, nullable=True)
    reviewed_by = Column(String(36), nullable=True)
    updated_at = Column(DateTime, default=now_utc, onupdate=now_utc)

    pharmacy = relationship("Pharmacy")


class ArchivedPharmacy(Base):
    """Snapshot of a pharmacy's verification state at archive time."""

    __tablename__ = "archived_pharmacies"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    original_pharmacy_id = Column(String(36), ForeignKey("pharmacies.id"), nullable=False, index=True)
    name = Column(String, nullable=True)
    display_id = Column(String(16), nullable=True)
    original_verified = Column(Boolean, nullable=True)
    original_ver_status = Column(String(20), nullable=True)
    original_marketplace_access = Column(Boolean, nullable=True)
    archive_reason = Column(String, nullable=True)
    archived_by = Column(String(36), nullable=True)
    archived_at = Column(DateTime, default=now_utc)

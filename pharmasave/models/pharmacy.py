import uuid

from sqlalchemy import Column, String, DateTime, Boolean, Date, Integer, Text, ForeignKey
from sqlalchemy.orm import relationship

from pharmasave.db.base import Base
from pharmasave.utils.timezone import now_utc


class VerificationStatus:
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class Pharmacy(Base):
    __tablename__ = "pharmacies"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    display_id = Column(String(16), unique=True, index=True, nullable=True)
    name = Column(String, nullable=False)

    # Contact
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    addr = Column(String, nullable=True)
    city = Column(String, nullable=True)

    # Business details
    license_num = Column(String, nullable=True)
    registration_number = Column(String, nullable=True)
    license_expiry = Column(Date, nullable=True)
    specializations = Column(Text, nullable=True)
    services_offered = Column(Text, nullable=True)
    operating_hours = Column(Text, nullable=True)
    business_description = Column(Text, nullable=True)

    # Verification
    verified = Column(Boolean, default=False, nullable=False)
    ver_status = Column(String(20), default=VerificationStatus.PENDING, nullable=False, index=True)
    verified_at = Column(DateTime, nullable=True)
    marketplace_access = Column(Boolean, default=False, nullable=False)
    trial_started_at = Column(DateTime, nullable=True)
    trial_expires_at = Column(DateTime, nullable=True)

    # Archive
    archived_at = Column(DateTime, nullable=True, index=True)
    archive_reason = Column(String, nullable=True)

    created_at = Column(DateTime, default=now_utc)
    updated_at = Column(DateTime, default=now_utc, onupdate=now_utc)

    pharmacists = relationship("Pharmacist", back_populates="pharmacy")
    documents = relationship("PharmacyDocument", back_populates="pharmacy")
    wallet = relationship("Wallet", back_populates="pharmacy", uselist=False)

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None


class PharmacyDocument(Base):
    __tablename__ = "pharmacy_documents"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    pharmacy_id = Column(String(36), ForeignKey("pharmacies.id"), nullable=False, index=True)
    document_type = Column(String(50), nullable=False)
    file_name = Column(String, nullable=False)
    file_url = Column(String, nullable=False)
    file_size = Column(Integer, nullable=True)
    mime_type = Column(String, nullable=True)
    status = Column(String(20), default="uploaded", nullable=False)
    uploaded_at = Column(DateTime, default=now_utc)

    pharmacy = relationship("Pharmacy", back_populates="documents")

import uuid

from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship

from pharmasave.db.base import Base
from pharmasave.utils.timezone import now_utc


class EmployeeRole:
    PRIMARY_ADMIN = "primary_admin"
    CO_ADMIN = "co_admin"
    STAFF_PHARMACIST = "staff_pharmacist"

    ALL = (PRIMARY_ADMIN, CO_ADMIN, STAFF_PHARMACIST)


class EmployeeStatus:
    ACTIVE = "active"
    INACTIVE = "inactive"
    TERMINATED = "terminated"

    ALL = (ACTIVE, INACTIVE, TERMINATED)


class InvitationStatus:
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"


class Pharmacist(Base):
    __tablename__ = "pharmacists"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    auth_id = Column(String(36), ForeignKey("auth_accounts.id"), unique=True, nullable=True, index=True)
    pharmacy_id = Column(String(36), ForeignKey("pharmacies.id"), nullable=False, index=True)
    fname = Column(String, nullable=False)
    lname = Column(String, nullable=True)
    email = Column(String, nullable=False, index=True)
    phone = Column(String, nullable=True)
    pharmacist_id_num = Column(String, nullable=True)

    role = Column(String(32), default=EmployeeRole.PRIMARY_ADMIN, nullable=False)
    is_primary = Column(Boolean, default=False, nullable=False)
    status = Column(String(20), default=EmployeeStatus.ACTIVE, nullable=False)
    can_manage_employees = Column(Boolean, default=False, nullable=False)
    can_access_financials = Column(Boolean, default=False, nullable=False)
    invited_by = Column(String(36), ForeignKey("pharmacists.id"), nullable=True)
    joined_at = Column(DateTime, default=now_utc)
    created_at = Column(DateTime, default=now_utc)
    updated_at = Column(DateTime, default=now_utc, onupdate=now_utc)

    pharmacy = relationship("Pharmacy", back_populates="pharmacists")
    account = relationship("AuthAccount", back_populates="pharmacist")

    @property
    def full_name(self) -> str:
        return " ".join(p for p in [self.fname, self.lname] if p)

    @property
    def is_active(self) -> bool:
        return self.status == EmployeeStatus.ACTIVE


class PharmacyInvitation(Base):
    __tablename__ = "pharmacy_invitations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    pharmacy_id = Column(String(36), ForeignKey("pharmacies.id"), nullable=False, index=True)
    email = Column(String, nullable=False, index=True)
    role = Column(String(32), nullable=False)
    invitation_token = Column(String, unique=True, nullable=False, index=True)
    status = Column(String(20), default=InvitationStatus.PENDING, nullable=False)
    invited_by = Column(String(36), ForeignKey("pharmacists.id"), nullable=True)
    expires_at = Column(DateTime, nullable=False)
    accepted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=now_utc)

    pharmacy = relationship("Pharmacy")

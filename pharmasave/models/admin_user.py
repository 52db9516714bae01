import uuid

from sqlalchemy import Column, String, DateTime, Boolean, JSON, ForeignKey
from sqlalchemy.orm import relationship

from pharmasave.db.base import Base
from pharmasave.utils.timezone import now_utc


class AdminRole:
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"


class AdminUser(Base):
    __tablename__ = "admin_users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    auth_id = Column(String(36), ForeignKey("auth_accounts.id"), unique=True, nullable=False)
    display_id = Column(String(16), unique=True, index=True, nullable=True)
    email = Column(String, unique=True, nullable=False)
    fname = Column(String, nullable=True)
    lname = Column(String, nullable=True)
    role = Column(String(20), default=AdminRole.ADMIN, nullable=False)
    department = Column(String, nullable=True)
    permissions = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=now_utc)
    updated_at = Column(DateTime, default=now_utc, onupdate=now_utc)

    account = relationship("AuthAccount", back_populates="admin_user")

    @property
    def full_name(self) -> str:
        parts = [p for p in [self.fname, self.lname] if p]
        return " ".join(parts) if parts else self.email

    @property
    def is_super_admin(self) -> bool:
        return self.role == AdminRole.SUPER_ADMIN

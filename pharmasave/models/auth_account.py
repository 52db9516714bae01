import uuid

from sqlalchemy import Column, String, DateTime, Boolean, JSON
from sqlalchemy.orm import relationship

from pharmasave.db.base import Base
from pharmasave.utils.timezone import now_utc


class AuthAccount(Base):
    """Login identity. Pharmacy staff link to it through ``Pharmacist.auth_id``."""

    __tablename__ = "auth_accounts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    user_metadata = Column(JSON, nullable=False, default=dict)
    confirmation_token = Column(String, nullable=True, index=True)
    email_confirmed_at = Column(DateTime, nullable=True)
    last_sign_in_at = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=now_utc)
    updated_at = Column(DateTime, default=now_utc, onupdate=now_utc)

    pharmacist = relationship("Pharmacist", back_populates="account", uselist=False)
    admin_user = relationship("AdminUser", back_populates="account", uselist=False)

    @property
    def is_confirmed(self) -> bool:
        return self.email_confirmed_at is not None

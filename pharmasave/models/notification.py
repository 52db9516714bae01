import uuid

from sqlalchemy import Column, String, DateTime, Boolean, Text, JSON, ForeignKey

from pharmasave.db.base import Base
from pharmasave.utils.timezone import now_utc


class NotificationType:
    FUND_REQUEST = "fund_request"
    WITHDRAWAL = "withdrawal"
    VERIFICATION = "verification"
    TRANSACTION = "transaction"
    EMPLOYEE = "employee"
    SYSTEM = "system"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    pharmacy_id = Column(String(36), ForeignKey("pharmacies.id"), nullable=False, index=True)
    type = Column(String(32), default=NotificationType.SYSTEM, nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    data = Column(JSON, nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)
    read_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=now_utc, index=True)

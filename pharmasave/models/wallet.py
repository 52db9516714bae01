import uuid

from sqlalchemy import Column, String, DateTime, Numeric, Text, ForeignKey
from sqlalchemy.orm import relationship

from pharmasave.db.base import Base
from pharmasave.utils.timezone import now_utc


class RequestStatus:
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class WalletTransactionType:
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    PURCHASE = "purchase"
    SALE = "sale"
    FEE = "fee"


class Wallet(Base):
    __tablename__ = "pharmacy_wallets"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    pharmacy_id = Column(String(36), ForeignKey("pharmacies.id"), unique=True, nullable=False, index=True)
    available_balance = Column(Numeric(12, 2), default=0, nullable=False)
    pending_withdrawals = Column(Numeric(12, 2), default=0, nullable=False)
    total_earned = Column(Numeric(12, 2), default=0, nullable=False)
    total_spent = Column(Numeric(12, 2), default=0, nullable=False)
    currency = Column(String(3), default="EGP", nullable=False)
    last_transaction_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=now_utc)
    updated_at = Column(DateTime, default=now_utc, onupdate=now_utc)

    pharmacy = relationship("Pharmacy", back_populates="wallet")


class WalletTransaction(Base):
    __tablename__ = "wallet_transactions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    wallet_id = Column(String(36), ForeignKey("pharmacy_wallets.id"), nullable=False, index=True)
    pharmacy_id = Column(String(36), ForeignKey("pharmacies.id"), nullable=False, index=True)
    type = Column(String(20), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    balance_before = Column(Numeric(12, 2), nullable=False)
    balance_after = Column(Numeric(12, 2), nullable=False)
    description = Column(String, nullable=True)
    reference = Column(String, nullable=True, index=True)
    status = Column(String(20), default=RequestStatus.COMPLETED, nullable=False)
    created_at = Column(DateTime, default=now_utc, index=True)


class FundRequest(Base):
    __tablename__ = "fund_requests"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    pharmacy_id = Column(String(36), ForeignKey("pharmacies.id"), nullable=False, index=True)
    requested_by = Column(String(36), ForeignKey("pharmacists.id"), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    request_type = Column(String(32), default="bank_transfer", nullable=False)
    reason = Column(Text, nullable=True)
    reference = Column(String, nullable=True, index=True)
    status = Column(String(20), default=RequestStatus.PENDING, nullable=False, index=True)
    admin_notes = Column(Text, nullable=True)
    processed_by = Column(String(36), nullable=True)
    processed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=now_utc, index=True)

    pharmacy = relationship("Pharmacy")
    requester = relationship("Pharmacist")


class WithdrawalRequest(Base):
    __tablename__ = "withdrawal_requests"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    pharmacy_id = Column(String(36), ForeignKey("pharmacies.id"), nullable=False, index=True)
    requested_by = Column(String(36), ForeignKey("pharmacists.id"), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    bank_name = Column(String, nullable=False)
    account_number = Column(String, nullable=False)
    account_holder_name = Column(String, nullable=False)
    reference = Column(String, nullable=True, index=True)
    status = Column(String(20), default=RequestStatus.PENDING, nullable=False, index=True)
    admin_notes = Column(Text, nullable=True)
    processed_by = Column(String(36), nullable=True)
    processed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=now_utc, index=True)

    pharmacy = relationship("Pharmacy")
    requester = relationship("Pharmacist")

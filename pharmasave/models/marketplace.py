import uuid

from sqlalchemy import Column, String, DateTime, Date, Integer, Numeric, Text, Boolean, ForeignKey
from sqlalchemy.orm import relationship

from pharmasave.db.base import Base
from pharmasave.utils.timezone import now_utc


class TransactionStatus:
    REQUESTED = "requested"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"

    ALL = (REQUESTED, APPROVED, REJECTED, COMPLETED)


class Listing(Base):
    __tablename__ = "listings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    pharmacy_id = Column(String(36), ForeignKey("pharmacies.id"), nullable=False, index=True)
    medicine_name = Column(String, nullable=False)
    form = Column(String, nullable=True)
    strength = Column(String, nullable=True)
    manufacturer = Column(String, nullable=True)
    unit_price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    expiry_date = Column(Date, nullable=True)
    batch_number = Column(String, nullable=True)
    image_url = Column(String, nullable=True)
    is_trade_enabled = Column(Boolean, default=False, nullable=False)
    status = Column(String(20), default="active", nullable=False)
    created_at = Column(DateTime, default=now_utc, index=True)
    updated_at = Column(DateTime, default=now_utc, onupdate=now_utc)

    pharmacy = relationship("Pharmacy")


class MarketplaceTransaction(Base):
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    buyer_pharmacy_id = Column(String(36), ForeignKey("pharmacies.id"), nullable=False, index=True)
    seller_pharmacy_id = Column(String(36), ForeignKey("pharmacies.id"), nullable=False, index=True)
    lstng_id = Column(String(36), ForeignKey("listings.id"), nullable=True)
    quantity = Column(Integer, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    buyer_fee = Column(Numeric(12, 2), default=0, nullable=False)
    seller_fee = Column(Numeric(12, 2), default=0, nullable=False)
    status = Column(String(20), default=TransactionStatus.REQUESTED, nullable=False, index=True)
    transaction_type = Column(String(20), default="purchase", nullable=False)
    reference = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=now_utc, index=True)
    updated_at = Column(DateTime, default=now_utc, onupdate=now_utc)

    buyer_pharmacy = relationship("Pharmacy", foreign_keys=[buyer_pharmacy_id])
    seller_pharmacy = relationship("Pharmacy", foreign_keys=[seller_pharmacy_id])
    listing = relationship("Listing")

from typing import Literal, Optional, List, Dict, Any
from datetime import date, datetime

from pydantic import BaseModel, Field

TransactionType = Literal["purchase", "trade"]


class UnifiedTransactionRequest(BaseModel):
    transaction_type: TransactionType
    amount_or_value_a: float = Field(gt=0)
    party_a_id: str
    party_b_id: str
    value_b: Optional[float] = Field(default=None, gt=0)
    marketplace_ref: Optional[str] = None


class UnifiedTransactionResponse(BaseModel):
    success: bool
    transaction_type: str
    transaction_subtype: str
    party_a_pays: float
    party_b_pays: float
    party_a_receives: float
    party_b_receives: float
    value_difference: float
    total_platform_fees: float
    party_a_final_balance: float
    party_b_final_balance: float
    marketplace_reference: str
    summary_description: str
    error_message: Optional[str] = None


class TradeTestRequest(BaseModel):
    value_a: float = Field(gt=0)
    value_b: float = Field(gt=0)
    trader_a_id: str
    trader_b_id: str
    reference: Optional[str] = None


class PurchaseTestRequest(BaseModel):
    amount: float = Field(gt=0)
    buyer_id: str
    seller_id: str
    reference: Optional[str] = None


class WalletBalance(BaseModel):
    pharmacy_id: str
    balance: float
    last_updated: datetime


class MarketplaceStats(BaseModel):
    total_transactions: int
    total_volume: float
    total_platform_fees: float
    active_pharmacies: int
    success_rate: float


class FeeCalculation(BaseModel):
    transaction_amount: float
    platform_fee_rate: float
    platform_fee: float
    buyer_fee: float
    seller_fee: float
    total_fees: float
    net_amount: float
    buyer_total: Optional[float] = None
    currency: str = "EGP"


class AmountValidation(BaseModel):
    is_valid: bool
    error: Optional[str] = None
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None


class PlatformConfigUpdate(BaseModel):
    config_key: str
    config_value: float


class ListingCreate(BaseModel):
    medicine_name: str
    form: Optional[str] = None
    strength: Optional[str] = None
    manufacturer: Optional[str] = None
    unit_price: float = Field(gt=0)
    quantity: int = Field(gt=0)
    expiry_date: Optional[date] = None
    batch_number: Optional[str] = None
    is_trade_enabled: bool = False


class Listing(BaseModel):
    id: str
    pharmacy_id: str
    medicine_name: str
    form: Optional[str] = None
    strength: Optional[str] = None
    manufacturer: Optional[str] = None
    unit_price: float
    quantity: int
    expiry_date: Optional[date] = None
    is_trade_enabled: bool
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class MarketplaceTransactionCreate(BaseModel):
    listing_id: str
    quantity: int = Field(gt=0)
    transaction_type: TransactionType = "purchase"
    notes: Optional[str] = None


class TransactionDecision(BaseModel):
    notes: Optional[str] = None
    reason: Optional[str] = None


class TransactionStatusUpdate(BaseModel):
    status: Literal["approved", "rejected", "completed"]


class TransactionList(BaseModel):
    success: bool
    data: List[Dict[str, Any]] = []
    error: Optional[str] = None
    message: Optional[str] = None
    mock: bool = False


class StatusUpdateResult(BaseModel):
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    data: Optional[List[Dict[str, Any]]] = None


class MarketplaceRecordResult(BaseModel):
    success: bool
    buyer_total: float
    seller_received: float
    platform_revenue: float
    error: Optional[str] = None

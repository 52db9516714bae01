from typing import Literal, Optional, List
from datetime import datetime

from pydantic import BaseModel, field_validator

from pharmasave.utils.formatting import mask_account_number


class Wallet(BaseModel):
    id: str
    pharmacy_id: str
    available_balance: float
    pending_withdrawals: float
    total_earned: float
    total_spent: float
    currency: str
    last_transaction_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class WalletTransaction(BaseModel):
    id: str
    type: str
    amount: float
    balance_before: float
    balance_after: float
    description: Optional[str] = None
    reference: Optional[str] = None
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class WalletSummary(BaseModel):
    wallet: Optional[Wallet] = None
    recent_transactions: List[WalletTransaction] = []
    pending_fund_requests: int = 0
    pending_withdrawal_requests: int = 0
    pending_withdrawal_amount: float = 0


class FundRequestCreate(BaseModel):
    # Validated by the wallet service so the messages match the UI copy
    amount: float


class FundRequest(BaseModel):
    id: str
    pharmacy_id: str
    amount: float
    request_type: str
    reason: Optional[str] = None
    reference: Optional[str] = None
    status: str
    admin_notes: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class WithdrawalRequestCreate(BaseModel):
    amount: float
    bank_name: str
    account_number: str
    account_holder_name: str
    notes: Optional[str] = None


class WithdrawalRequest(BaseModel):
    id: str
    pharmacy_id: str
    amount: float
    bank_name: str
    account_number: str
    account_holder_name: str
    reference: Optional[str] = None
    status: str
    admin_notes: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: datetime

    @field_validator("account_number")
    @classmethod
    def mask_account(cls, v: str) -> str:
        return mask_account_number(v)

    class Config:
        from_attributes = True


class AdminRequestRow(BaseModel):
    """Fund or withdrawal request joined with the requesting pharmacy for the admin queue."""
    id: str
    kind: Literal["fund", "withdrawal"]
    pharmacy_id: str
    pharmacy_name: Optional[str] = None
    pharmacy_display_id: Optional[str] = None
    requested_by_name: Optional[str] = None
    amount: float
    reference: Optional[str] = None
    status: str
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    account_holder_name: Optional[str] = None
    admin_notes: Optional[str] = None
    created_at: datetime
    processed_at: Optional[datetime] = None


class ProcessRequest(BaseModel):
    action: Literal["approve", "reject"]
    admin_notes: Optional[str] = None


class FundManagementStats(BaseModel):
    pending_fund_requests: int
    pending_fund_amount: float
    pending_withdrawals: int
    pending_withdrawal_amount: float
    processed_today: int
    average_processing_hours: float

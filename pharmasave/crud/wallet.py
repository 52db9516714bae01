from typing import List, Optional
from decimal import Decimal

from sqlalchemy import desc, or_
from sqlalchemy.orm import Session

from pharmasave.models import (
    Wallet,
    WalletTransaction,
    FundRequest,
    WithdrawalRequest,
    Pharmacy,
    RequestStatus,
)


class CRUDWallet:
    def get(self, db: Session, id: str) -> Optional[Wallet]:
        return db.query(Wallet).filter(Wallet.id == id).first()

    def get_by_pharmacy(self, db: Session, *, pharmacy_id: str) -> Optional[Wallet]:
        return db.query(Wallet).filter(Wallet.pharmacy_id == pharmacy_id).first()

    def create_for_pharmacy(self, db: Session, *, pharmacy_id: str) -> Wallet:
        obj = Wallet(
            pharmacy_id=pharmacy_id,
            available_balance=Decimal("0"),
            pending_withdrawals=Decimal("0"),
            total_earned=Decimal("0"),
            total_spent=Decimal("0"),
        )
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj

    def get_or_create(self, db: Session, *, pharmacy_id: str) -> Wallet:
        existing = self.get_by_pharmacy(db, pharmacy_id=pharmacy_id)
        if existing:
            return existing
        return self.create_for_pharmacy(db, pharmacy_id=pharmacy_id)

    def total_balance(self, db: Session) -> Decimal:
        total = Decimal("0")
        for (balance,) in db.query(Wallet.available_balance):
            total += Decimal(balance or 0)
        return total

    def count(self, db: Session) -> int:
        return db.query(Wallet).count()


class CRUDWalletTransaction:
    def get_recent(self, db: Session, *, pharmacy_id: str, limit: int = 10) -> List[WalletTransaction]:
        return (
            db.query(WalletTransaction)
            .filter(WalletTransaction.pharmacy_id == pharmacy_id)
            .order_by(desc(WalletTransaction.created_at))
            .limit(limit)
            .all()
        )


def _apply_request_filters(query, model, status: Optional[str], search: Optional[str]):
    if status and status != "all":
        query = query.filter(model.status == status)
    if search:
        like = f"%{search}%"
        query = query.filter(
            or_(Pharmacy.name.ilike(like), Pharmacy.display_id.ilike(like), model.reference.ilike(like))
        )
    return query


class CRUDFundRequest:
    def get(self, db: Session, id: str) -> Optional[FundRequest]:
        return db.query(FundRequest).filter(FundRequest.id == id).first()

    def get_by_pharmacy(self, db: Session, *, pharmacy_id: str, limit: int = 50) -> List[FundRequest]:
        return (
            db.query(FundRequest)
            .filter(FundRequest.pharmacy_id == pharmacy_id)
            .order_by(desc(FundRequest.created_at))
            .limit(limit)
            .all()
        )

    def get_filtered(self, db: Session, *, status: Optional[str] = None, search: Optional[str] = None) -> List[FundRequest]:
        query = db.query(FundRequest).join(Pharmacy, Pharmacy.id == FundRequest.pharmacy_id)
        query = _apply_request_filters(query, FundRequest, status, search)
        return query.order_by(desc(FundRequest.created_at)).all()

    def count_pending(self, db: Session, *, pharmacy_id: Optional[str] = None) -> int:
        query = db.query(FundRequest).filter(FundRequest.status == RequestStatus.PENDING)
        if pharmacy_id:
            query = query.filter(FundRequest.pharmacy_id == pharmacy_id)
        return query.count()


class CRUDWithdrawalRequest:
    def get(self, db: Session, id: str) -> Optional[WithdrawalRequest]:
        return db.query(WithdrawalRequest).filter(WithdrawalRequest.id == id).first()

    def get_by_pharmacy(self, db: Session, *, pharmacy_id: str, limit: int = 50) -> List[WithdrawalRequest]:
        return (
            db.query(WithdrawalRequest)
            .filter(WithdrawalRequest.pharmacy_id == pharmacy_id)
            .order_by(desc(WithdrawalRequest.created_at))
            .limit(limit)
            .all()
        )

    def get_filtered(self, db: Session, *, status: Optional[str] = None, search: Optional[str] = None) -> List[WithdrawalRequest]:
        query = db.query(WithdrawalRequest).join(Pharmacy, Pharmacy.id == WithdrawalRequest.pharmacy_id)
        query = _apply_request_filters(query, WithdrawalRequest, status, search)
        return query.order_by(desc(WithdrawalRequest.created_at)).all()

    def get_pending(self, db: Session, *, pharmacy_id: str) -> List[WithdrawalRequest]:
        return (
            db.query(WithdrawalRequest)
            .filter(WithdrawalRequest.pharmacy_id == pharmacy_id, WithdrawalRequest.status == RequestStatus.PENDING)
            .all()
        )


wallet = CRUDWallet()
wallet_transaction = CRUDWalletTransaction()
fund_request = CRUDFundRequest()
withdrawal_request = CRUDWithdrawalRequest()

from typing import List, Optional

from sqlalchemy import desc, or_
from sqlalchemy.orm import Session

from pharmasave.models import Listing, MarketplaceTransaction, Pharmacy


class CRUDListing:
    def get(self, db: Session, id: str) -> Optional[Listing]:
        return db.query(Listing).filter(Listing.id == id).first()

    def get_available(
        self,
        db: Session,
        *,
        search: Optional[str] = None,
        exclude_pharmacy_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[Listing]:
        query = (
            db.query(Listing)
            .join(Pharmacy, Pharmacy.id == Listing.pharmacy_id)
            .filter(
                Listing.status == "active",
                Listing.quantity > 0,
                Pharmacy.marketplace_access.is_(True),
                Pharmacy.archived_at.is_(None),
            )
        )
        if exclude_pharmacy_id:
            query = query.filter(Listing.pharmacy_id != exclude_pharmacy_id)
        if search:
            like = f"%{search}%"
            query = query.filter(or_(Listing.medicine_name.ilike(like), Listing.manufacturer.ilike(like)))
        return query.order_by(desc(Listing.created_at)).limit(limit).all()

    def get_by_pharmacy(self, db: Session, *, pharmacy_id: str) -> List[Listing]:
        return (
            db.query(Listing)
            .filter(Listing.pharmacy_id == pharmacy_id)
            .order_by(desc(Listing.created_at))
            .all()
        )


class CRUDMarketplaceTransaction:
    def get(self, db: Session, id: str) -> Optional[MarketplaceTransaction]:
        return db.query(MarketplaceTransaction).filter(MarketplaceTransaction.id == id).first()

    def get_for_pharmacy(
        self,
        db: Session,
        *,
        pharmacy_id: str,
        status: str = "all",
        limit: int = 50,
    ) -> List[MarketplaceTransaction]:
        query = db.query(MarketplaceTransaction).filter(
            or_(
                MarketplaceTransaction.buyer_pharmacy_id == pharmacy_id,
                MarketplaceTransaction.seller_pharmacy_id == pharmacy_id,
            )
        )
        if status != "all":
            query = query.filter(MarketplaceTransaction.status == status)
        return query.order_by(desc(MarketplaceTransaction.created_at)).limit(limit).all()


listing = CRUDListing()
marketplace_transaction = CRUDMarketplaceTransaction()

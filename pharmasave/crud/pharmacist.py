from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from pharmasave.models import Pharmacist, PharmacyInvitation, InvitationStatus, EmployeeRole


class CRUDPharmacist:
    def get(self, db: Session, id: str) -> Optional[Pharmacist]:
        return db.query(Pharmacist).filter(Pharmacist.id == id).first()

    def get_by_auth_id(self, db: Session, auth_id: str) -> Optional[Pharmacist]:
        return db.query(Pharmacist).filter(Pharmacist.auth_id == auth_id).first()

    def get_by_email(self, db: Session, email: str) -> Optional[Pharmacist]:
        return db.query(Pharmacist).filter(Pharmacist.email == email.lower()).first()

    def get_by_pharmacy(self, db: Session, *, pharmacy_id: str) -> List[Pharmacist]:
        return (
            db.query(Pharmacist)
            .filter(Pharmacist.pharmacy_id == pharmacy_id)
            .order_by(desc(Pharmacist.is_primary), Pharmacist.created_at)
            .all()
        )

    def create(
        self,
        db: Session,
        *,
        pharmacy_id: str,
        email: str,
        fname: str,
        lname: Optional[str] = None,
        auth_id: Optional[str] = None,
        role: str = EmployeeRole.PRIMARY_ADMIN,
        is_primary: bool = False,
        can_manage_employees: bool = False,
        can_access_financials: bool = False,
        invited_by: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> Pharmacist:
        obj = Pharmacist(
            pharmacy_id=pharmacy_id,
            auth_id=auth_id,
            email=email.lower(),
            fname=fname,
            lname=lname,
            phone=phone,
            role=role,
            is_primary=is_primary,
            can_manage_employees=can_manage_employees,
            can_access_financials=can_access_financials,
            invited_by=invited_by,
        )
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj


class CRUDInvitation:
    def get(self, db: Session, id: str) -> Optional[PharmacyInvitation]:
        return db.query(PharmacyInvitation).filter(PharmacyInvitation.id == id).first()

    def get_by_token(self, db: Session, token: str) -> Optional[PharmacyInvitation]:
        return db.query(PharmacyInvitation).filter(PharmacyInvitation.invitation_token == token).first()

    def get_open(self, db: Session, *, pharmacy_id: str) -> List[PharmacyInvitation]:
        return (
            db.query(PharmacyInvitation)
            .filter(
                PharmacyInvitation.pharmacy_id == pharmacy_id,
                PharmacyInvitation.status.in_([InvitationStatus.PENDING, InvitationStatus.EXPIRED]),
            )
            .order_by(desc(PharmacyInvitation.created_at))
            .all()
        )

    def get_pending_for_email(self, db: Session, *, pharmacy_id: str, email: str) -> Optional[PharmacyInvitation]:
        return (
            db.query(PharmacyInvitation)
            .filter(
                PharmacyInvitation.pharmacy_id == pharmacy_id,
                PharmacyInvitation.email == email.lower(),
                PharmacyInvitation.status == InvitationStatus.PENDING,
            )
            .first()
        )


pharmacist = CRUDPharmacist()
invitation = CRUDInvitation()

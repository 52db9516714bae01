from typing import List, Optional
from sqlalchemy.orm import Session

from pharmasave.crud.pharmacy import next_display_id
from pharmasave.models import AdminUser, AdminRole


class CRUDAdmin:
    def get(self, db: Session, admin_id: str) -> Optional[AdminUser]:
        return db.query(AdminUser).filter(AdminUser.id == admin_id).first()

    def get_by_auth_id(self, db: Session, auth_id: str) -> Optional[AdminUser]:
        return db.query(AdminUser).filter(AdminUser.auth_id == auth_id).first()

    def get_by_email(self, db: Session, email: str) -> Optional[AdminUser]:
        return db.query(AdminUser).filter(AdminUser.email == email.lower()).first()

    def get_all(self, db: Session) -> List[AdminUser]:
        return db.query(AdminUser).order_by(AdminUser.created_at).all()

    def create(
        self,
        db: Session,
        *,
        auth_id: str,
        email: str,
        fname: Optional[str],
        lname: Optional[str],
        role: str = AdminRole.ADMIN,
        department: Optional[str] = None,
        permissions: Optional[List[str]] = None,
    ) -> AdminUser:
        obj = AdminUser(
            auth_id=auth_id,
            email=email.lower(),
            fname=fname,
            lname=lname,
            role=role,
            department=department,
            permissions=permissions or [],
            display_id=next_display_id(db, AdminUser, "AD"),
        )
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj

    def is_active(self, admin: AdminUser) -> bool:
        return bool(admin.is_active)

    def is_super_admin(self, admin: AdminUser) -> bool:
        return admin.role == AdminRole.SUPER_ADMIN


admin = CRUDAdmin()

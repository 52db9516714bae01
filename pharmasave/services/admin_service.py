import logging
from typing import List

from sqlalchemy.orm import Session

from pharmasave import crud
from pharmasave.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from pharmasave.models import AdminUser
from pharmasave.schemas.admin import AdminCreate

logger = logging.getLogger(__name__)


def _require_super_admin(actor: AdminUser, detail: str) -> None:
    if not crud.admin.is_super_admin(actor):
        raise PermissionDeniedError(detail)


def list_admins(db: Session, *, actor: AdminUser) -> List[AdminUser]:
    _require_super_admin(actor, "Only super admin can access admin management")
    return crud.admin.get_all(db)


def create_admin(db: Session, *, actor: AdminUser, data: AdminCreate) -> AdminUser:
    """
    Create a back-office account and its admin profile.

    The login identity is created already confirmed since a super admin vouches for it.
    """
    _require_super_admin(actor, "Only super admin can create new admins")
    if crud.admin.get_by_email(db, email=data.email) or crud.auth_account.get_by_email(db, email=data.email):
        raise ConflictError("An admin with this email already exists")

    account = crud.auth_account.create(
        db,
        email=data.email,
        password=data.password,
        user_metadata={"full_name": " ".join(p for p in [data.fname, data.lname] if p), "admin": True},
        confirmed=True,
    )
    admin = crud.admin.create(
        db,
        auth_id=account.id,
        email=data.email,
        fname=data.fname,
        lname=data.lname,
        role=data.role,
        department=data.department,
        permissions=data.permissions,
    )
    logger.info(f"👤 Admin {admin.display_id} ({admin.email}) created by {actor.display_id}")
    return admin


def deactivate_admin(db: Session, *, actor: AdminUser, admin_id: str) -> AdminUser:
    _require_super_admin(actor, "Only super admin can deactivate admins")
    admin = crud.admin.get(db, admin_id=admin_id)
    if not admin:
        raise NotFoundError("Admin not found")
    if admin.id == actor.id:
        raise PermissionDeniedError("You cannot deactivate your own account")
    if crud.admin.is_super_admin(admin):
        raise PermissionDeniedError("Super admin accounts cannot be deactivated")

    admin.is_active = False
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info(f"Admin {admin.display_id} deactivated")
    return admin

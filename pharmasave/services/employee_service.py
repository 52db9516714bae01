import logging
import secrets
from datetime import timedelta
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pharmasave import crud
from pharmasave.core.config import settings
from pharmasave.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)
from pharmasave.models import (
    EmployeeRole,
    EmployeeStatus,
    InvitationStatus,
    Pharmacist,
    PharmacyInvitation,
)
from pharmasave.schemas.employee import InvitationAccept, InvitationDetails, InvitationSent, Invitation
from pharmasave.utils.timezone import now_utc

logger = logging.getLogger(__name__)

REGISTRATION_PATH = "/register/employee"


def can_manage(pharmacist: Pharmacist) -> bool:
    return pharmacist.is_primary or pharmacist.can_manage_employees


def _require_manager(actor: Pharmacist) -> None:
    if not can_manage(actor):
        raise PermissionDeniedError("You do not have permission to manage employees")


def list_employees(db: Session, *, pharmacy_id: str) -> List[Pharmacist]:
    return crud.pharmacist.get_by_pharmacy(db, pharmacy_id=pharmacy_id)


def list_open_invitations(db: Session, *, pharmacy_id: str) -> List[PharmacyInvitation]:
    return crud.invitation.get_open(db, pharmacy_id=pharmacy_id)


def send_invitation(db: Session, *, inviter: Pharmacist, email: str, role: str) -> InvitationSent:
    _require_manager(inviter)
    email = email.strip().lower()
    if role not in (EmployeeRole.CO_ADMIN, EmployeeRole.STAFF_PHARMACIST):
        raise ValidationFailedError(f"Invalid role: {role}")
    if crud.pharmacist.get_by_email(db, email=email):
        raise ConflictError("A pharmacist with this email is already registered")
    if crud.invitation.get_pending_for_email(db, pharmacy_id=inviter.pharmacy_id, email=email):
        raise ConflictError("An invitation is already pending for this email")

    token = secrets.token_urlsafe(32)
    invitation = PharmacyInvitation(
        pharmacy_id=inviter.pharmacy_id,
        email=email,
        role=role,
        invitation_token=token,
        status=InvitationStatus.PENDING,
        invited_by=inviter.id,
        expires_at=now_utc() + timedelta(days=settings.INVITATION_EXPIRE_DAYS),
    )
    db.add(invitation)
    db.commit()
    db.refresh(invitation)
    logger.info(f"✉️ Invitation sent to {email} as {role} for pharmacy {inviter.pharmacy_id}")
    return InvitationSent(
        invitation=Invitation.model_validate(invitation),
        invitation_token=token,
        registration_link=f"{REGISTRATION_PATH}/{token}",
    )


def validate_invitation(db: Session, token: str) -> PharmacyInvitation:
    invitation = crud.invitation.get_by_token(db, token=token)
    if not invitation:
        raise NotFoundError("Invalid invitation link")

    if invitation.status == InvitationStatus.PENDING and invitation.expires_at < now_utc():
        invitation.status = InvitationStatus.EXPIRED
        db.add(invitation)
        db.commit()

    if invitation.status == InvitationStatus.EXPIRED:
        raise ValidationFailedError("This invitation has expired")
    if invitation.status != InvitationStatus.PENDING:
        raise ValidationFailedError(f"This invitation has already been {invitation.status}")
    if crud.auth_account.get_by_email(db, email=invitation.email):
        raise ConflictError("An account with this email already exists")
    return invitation


def invitation_details(db: Session, token: str) -> InvitationDetails:
    invitation = validate_invitation(db, token)
    return InvitationDetails(
        email=invitation.email,
        role=invitation.role,
        pharmacy_name=invitation.pharmacy.name,
        expires_at=invitation.expires_at,
    )


def _validate_acceptance(data: InvitationAccept) -> None:
    errors = {}
    if not data.first_name.strip():
        errors["first_name"] = "First name is required"
    if not data.last_name.strip():
        errors["last_name"] = "Last name is required"
    if len(data.password) < 6:
        errors["password"] = "Password must be at least 6 characters"
    elif data.password != data.confirm_password:
        errors["confirm_password"] = "Passwords do not match"
    if errors:
        raise ValidationFailedError("Please fix the validation errors", errors)


def accept_invitation(db: Session, *, token: str, data: InvitationAccept) -> Pharmacist:
    invitation = validate_invitation(db, token)
    _validate_acceptance(data)

    full_name = f"{data.first_name.strip()} {data.last_name.strip()}"
    account = crud.auth_account.create(
        db,
        email=invitation.email,
        password=data.password,
        user_metadata={"full_name": full_name, "invited": True},
        confirmed=True,
    )

    pharmacist = crud.pharmacist.create(
        db,
        pharmacy_id=invitation.pharmacy_id,
        auth_id=account.id,
        email=invitation.email,
        fname=data.first_name.strip(),
        lname=data.last_name.strip(),
        phone=data.phone,
        role=invitation.role,
        is_primary=False,
        can_manage_employees=invitation.role == EmployeeRole.CO_ADMIN,
        can_access_financials=invitation.role != EmployeeRole.STAFF_PHARMACIST,
        invited_by=invitation.invited_by,
    )

    try:
        invitation.status = InvitationStatus.ACCEPTED
        invitation.accepted_at = now_utc()
        db.add(invitation)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"⚠️ Employee {pharmacist.email} created but invitation not marked accepted: {e}")

    logger.info(f"✅ {pharmacist.email} joined pharmacy {pharmacist.pharmacy_id} as {pharmacist.role}")
    return pharmacist


def _get_colleague(db: Session, actor: Pharmacist, employee_id: str) -> Pharmacist:
    employee = crud.pharmacist.get(db, id=employee_id)
    if not employee or employee.pharmacy_id != actor.pharmacy_id:
        raise NotFoundError("Employee not found")
    return employee


def update_employee_role(db: Session, *, actor: Pharmacist, employee_id: str, role: str) -> Pharmacist:
    _require_manager(actor)
    employee = _get_colleague(db, actor, employee_id)
    if employee.is_primary:
        raise PermissionDeniedError("The primary pharmacist's role cannot be changed")
    if role == EmployeeRole.PRIMARY_ADMIN:
        raise ValidationFailedError("A pharmacy can only have one primary admin")

    employee.role = role
    employee.can_manage_employees = role == EmployeeRole.CO_ADMIN
    employee.can_access_financials = role != EmployeeRole.STAFF_PHARMACIST
    db.add(employee)
    db.commit()
    db.refresh(employee)
    logger.info(f"Employee {employee.id} role set to {role}")
    return employee


def deactivate_employee(db: Session, *, actor: Pharmacist, employee_id: str) -> Pharmacist:
    _require_manager(actor)
    employee = _get_colleague(db, actor, employee_id)
    if employee.id == actor.id:
        raise PermissionDeniedError("You cannot deactivate your own account")
    if employee.is_primary:
        raise PermissionDeniedError("The primary pharmacist cannot be deactivated")

    employee.status = EmployeeStatus.INACTIVE
    db.add(employee)
    db.commit()
    db.refresh(employee)
    return employee


def delete_invitation(db: Session, *, actor: Pharmacist, invitation_id: str) -> None:
    _require_manager(actor)
    invitation: Optional[PharmacyInvitation] = crud.invitation.get(db, id=invitation_id)
    if not invitation or invitation.pharmacy_id != actor.pharmacy_id:
        raise NotFoundError("Invitation not found")
    db.delete(invitation)
    db.commit()

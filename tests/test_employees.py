from datetime import timedelta

import pytest

from pharmasave import crud
from pharmasave.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)
from pharmasave.models import EmployeeRole, EmployeeStatus, InvitationStatus
from pharmasave.schemas.employee import InvitationAccept
from pharmasave.services import employee_service
from pharmasave.utils.timezone import now_utc

ACCEPT = InvitationAccept(first_name="Hany", last_name="Saad", password="secret1", confirm_password="secret1")


def test_invitation_carries_registration_link(db, owner):
    sent = employee_service.send_invitation(db, inviter=owner, email="  Hany@Nile.example.com ", role="co_admin")

    assert sent.invitation.email == "hany@nile.example.com"
    assert sent.invitation.status == InvitationStatus.PENDING
    assert sent.registration_link == f"/register/employee/{sent.invitation_token}"
    assert len(employee_service.list_open_invitations(db, pharmacy_id=owner.pharmacy_id)) == 1


def test_duplicate_invitations_are_refused(db, owner):
    employee_service.send_invitation(db, inviter=owner, email="hany@nile.example.com", role="staff_pharmacist")

    with pytest.raises(ConflictError):
        employee_service.send_invitation(db, inviter=owner, email="hany@nile.example.com", role="staff_pharmacist")
    with pytest.raises(ConflictError):
        employee_service.send_invitation(db, inviter=owner, email=owner.email, role="staff_pharmacist")


def test_primary_admin_role_cannot_be_invited(db, owner):
    with pytest.raises(ValidationFailedError):
        employee_service.send_invitation(db, inviter=owner, email="x@nile.example.com", role="primary_admin")


def test_accepting_invitation_creates_confirmed_employee(db, owner):
    sent = employee_service.send_invitation(db, inviter=owner, email="hany@nile.example.com", role="co_admin")

    employee = employee_service.accept_invitation(db, token=sent.invitation_token, data=ACCEPT)

    assert employee.pharmacy_id == owner.pharmacy_id
    assert employee.role == EmployeeRole.CO_ADMIN
    assert employee.can_manage_employees is True
    assert employee.invited_by == owner.id
    assert crud.auth_account.get_by_email(db, email="hany@nile.example.com").is_confirmed
    invitation = crud.invitation.get_by_token(db, token=sent.invitation_token)
    assert invitation.status == InvitationStatus.ACCEPTED

    with pytest.raises(ValidationFailedError):
        employee_service.validate_invitation(db, sent.invitation_token)


def test_acceptance_form_validation(db, owner):
    sent = employee_service.send_invitation(db, inviter=owner, email="hany@nile.example.com", role="staff_pharmacist")
    data = InvitationAccept(first_name=" ", last_name="Saad", password="secret1", confirm_password="secret2")

    with pytest.raises(ValidationFailedError) as exc:
        employee_service.accept_invitation(db, token=sent.invitation_token, data=data)

    assert exc.value.details == {
        "first_name": "First name is required",
        "confirm_password": "Passwords do not match",
    }


def test_expired_invitation_is_marked_expired(db, owner):
    sent = employee_service.send_invitation(db, inviter=owner, email="late@nile.example.com", role="staff_pharmacist")
    invitation = crud.invitation.get_by_token(db, token=sent.invitation_token)
    invitation.expires_at = now_utc() - timedelta(minutes=1)
    db.commit()

    with pytest.raises(ValidationFailedError, match="expired"):
        employee_service.invitation_details(db, sent.invitation_token)
    db.refresh(invitation)
    assert invitation.status == InvitationStatus.EXPIRED


def test_unknown_invitation_token(db):
    with pytest.raises(NotFoundError):
        employee_service.validate_invitation(db, "nope")


def _staff(db, owner, email="staff@nile.example.com"):
    sent = employee_service.send_invitation(db, inviter=owner, email=email, role="staff_pharmacist")
    return employee_service.accept_invitation(db, token=sent.invitation_token, data=ACCEPT)


def test_staff_cannot_manage_employees(db, owner):
    staff = _staff(db, owner)

    with pytest.raises(PermissionDeniedError):
        employee_service.send_invitation(db, inviter=staff, email="z@nile.example.com", role="staff_pharmacist")


def test_role_change_updates_permissions(db, owner):
    staff = _staff(db, owner)

    updated = employee_service.update_employee_role(db, actor=owner, employee_id=staff.id, role="co_admin")

    assert updated.can_manage_employees is True
    assert updated.can_access_financials is True
    with pytest.raises(PermissionDeniedError):
        employee_service.update_employee_role(db, actor=updated, employee_id=owner.id, role="staff_pharmacist")


def test_deactivation_rules(db, owner, other_owner):
    staff = _staff(db, owner)

    with pytest.raises(PermissionDeniedError):
        employee_service.deactivate_employee(db, actor=owner, employee_id=owner.id)
    with pytest.raises(NotFoundError):
        employee_service.deactivate_employee(db, actor=other_owner, employee_id=staff.id)

    deactivated = employee_service.deactivate_employee(db, actor=owner, employee_id=staff.id)
    assert deactivated.status == EmployeeStatus.INACTIVE


def test_delete_invitation(db, owner, other_owner):
    sent = employee_service.send_invitation(db, inviter=owner, email="gone@nile.example.com", role="staff_pharmacist")

    with pytest.raises(NotFoundError):
        employee_service.delete_invitation(db, actor=other_owner, invitation_id=sent.invitation.id)

    employee_service.delete_invitation(db, actor=owner, invitation_id=sent.invitation.id)
    assert employee_service.list_open_invitations(db, pharmacy_id=owner.pharmacy_id) == []

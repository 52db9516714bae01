from typing import Any, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pharmasave import models, schemas
from pharmasave.api import deps
from pharmasave.api.errors import http_error
from pharmasave.core.exceptions import PharmaSaveError
from pharmasave.schemas.employee import (
    EmployeeRoleUpdate,
    Invitation,
    InvitationAccept,
    InvitationCreate,
    InvitationDetails,
    InvitationSent,
)
from pharmasave.services import employee_service

router = APIRouter()


@router.get("/", response_model=List[schemas.Pharmacist])
def list_employees(
    *,
    db: Session = Depends(deps.get_db),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
) -> Any:
    return employee_service.list_employees(db, pharmacy_id=pharmacist.pharmacy_id)


@router.get("/invitations", response_model=List[Invitation])
def list_invitations(
    *,
    db: Session = Depends(deps.get_db),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
) -> Any:
    return employee_service.list_open_invitations(db, pharmacy_id=pharmacist.pharmacy_id)


@router.post("/invitations", response_model=InvitationSent, status_code=status.HTTP_201_CREATED)
def send_invitation(
    *,
    db: Session = Depends(deps.get_db),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
    data: InvitationCreate,
) -> Any:
    """
    Invite a colleague. The registration link is returned to the caller to share.
    """
    try:
        return employee_service.send_invitation(db, inviter=pharmacist, email=data.email, role=data.role)
    except PharmaSaveError as e:
        raise http_error(e)


@router.delete("/invitations/{invitation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invitation(
    *,
    db: Session = Depends(deps.get_db),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
    invitation_id: str,
) -> None:
    try:
        employee_service.delete_invitation(db, actor=pharmacist, invitation_id=invitation_id)
    except PharmaSaveError as e:
        raise http_error(e)


@router.get("/invitations/token/{token}", response_model=InvitationDetails)
def read_invitation(
    *,
    db: Session = Depends(deps.get_db),
    token: str,
) -> Any:
    """
    Public: validate an invitation link before showing the registration form.
    """
    try:
        return employee_service.invitation_details(db, token)
    except PharmaSaveError as e:
        raise http_error(e)


@router.post("/invitations/token/{token}/accept", response_model=schemas.Pharmacist, status_code=status.HTTP_201_CREATED)
def accept_invitation(
    *,
    db: Session = Depends(deps.get_db),
    token: str,
    data: InvitationAccept,
) -> Any:
    try:
        return employee_service.accept_invitation(db, token=token, data=data)
    except PharmaSaveError as e:
        raise http_error(e)


@router.put("/{employee_id}/role", response_model=schemas.Pharmacist)
def update_role(
    *,
    db: Session = Depends(deps.get_db),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
    employee_id: str,
    data: EmployeeRoleUpdate,
) -> Any:
    try:
        return employee_service.update_employee_role(db, actor=pharmacist, employee_id=employee_id, role=data.role)
    except PharmaSaveError as e:
        raise http_error(e)


@router.post("/{employee_id}/deactivate", response_model=schemas.Pharmacist)
def deactivate(
    *,
    db: Session = Depends(deps.get_db),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
    employee_id: str,
) -> Any:
    try:
        return employee_service.deactivate_employee(db, actor=pharmacist, employee_id=employee_id)
    except PharmaSaveError as e:
        raise http_error(e)

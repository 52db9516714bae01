from typing import Any, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pharmasave import models
from pharmasave.api import deps
from pharmasave.api.errors import http_error
from pharmasave.core.exceptions import PharmaSaveError
from pharmasave.schemas.admin import AdminCreate, AdminUser, IdDisplay
from pharmasave.services import admin_service
from pharmasave.utils.identity import format_id_display

router = APIRouter()


@router.get("/me", response_model=AdminUser)
def read_me(
    current_admin: models.AdminUser = Depends(deps.get_current_admin),
) -> Any:
    return current_admin


@router.get("/admins", response_model=List[AdminUser])
def list_admins(
    *,
    db: Session = Depends(deps.get_db),
    current_admin: models.AdminUser = Depends(deps.get_current_admin),
) -> Any:
    """
    List all admin users.

    Requires: Super admin authentication
    """
    try:
        return admin_service.list_admins(db, actor=current_admin)
    except PharmaSaveError as e:
        raise http_error(e)


@router.post("/admins", response_model=AdminUser, status_code=status.HTTP_201_CREATED)
def create_admin(
    *,
    db: Session = Depends(deps.get_db),
    current_admin: models.AdminUser = Depends(deps.get_current_admin),
    admin_data: AdminCreate,
) -> Any:
    """
    Create a new admin user.

    Requires: Super admin authentication
    """
    try:
        return admin_service.create_admin(db, actor=current_admin, data=admin_data)
    except PharmaSaveError as e:
        raise http_error(e)


@router.post("/admins/{admin_id}/deactivate", response_model=AdminUser)
def deactivate_admin(
    *,
    db: Session = Depends(deps.get_db),
    current_admin: models.AdminUser = Depends(deps.get_current_admin),
    admin_id: str,
) -> Any:
    try:
        return admin_service.deactivate_admin(db, actor=current_admin, admin_id=admin_id)
    except PharmaSaveError as e:
        raise http_error(e)


@router.get("/ids/{display_id}", response_model=IdDisplay)
def describe_id(
    display_id: str,
    _: models.AdminUser = Depends(deps.get_current_admin),
) -> Any:
    return format_id_display(display_id)

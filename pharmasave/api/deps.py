from typing import Generator, Optional

from fastapi import Depends, HTTPException, status, Header
from fastapi.security import OAuth2PasswordBearer
from jose import jwt
from pydantic import ValidationError
from sqlalchemy.orm import Session

from pharmasave import crud, models, schemas
from pharmasave.core import security
from pharmasave.core.config import settings
from pharmasave.db.session import SessionLocal
from pharmasave.services.fee_service import PlatformFeeService, platform_fee_service
from pharmasave.services.file_storage import StorageService, get_storage as _default_storage

reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/auth/sign-in"
)


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_storage() -> StorageService:
    return _default_storage()


def get_fee_service() -> PlatformFeeService:
    return platform_fee_service


def _decode_token(token: str) -> schemas.TokenPayload:
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[security.ALGORITHM]
        )
        token_data = schemas.TokenPayload(**payload)
    except (jwt.JWTError, ValidationError):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Could not validate credentials",
        )
    if token_data.type != "access" or not token_data.sub:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Could not validate credentials",
        )
    return token_data


def get_current_account(
    db: Session = Depends(get_db), token: str = Depends(reusable_oauth2)
) -> models.AuthAccount:
    token_data = _decode_token(token)
    account = crud.auth_account.get(db, id=token_data.sub)
    if not account:
        raise HTTPException(status_code=404, detail="Account not found")
    if not account.is_active:
        raise HTTPException(status_code=400, detail="Inactive account")
    return account


def require_confirmed_account(
    account: models.AuthAccount = Depends(get_current_account),
) -> models.AuthAccount:
    if not account.is_confirmed:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Email address not confirmed",
        )
    return account


def get_current_pharmacist(
    db: Session = Depends(get_db),
    account: models.AuthAccount = Depends(require_confirmed_account),
) -> models.Pharmacist:
    """
    Resolve the pharmacist profile behind the session.

    Accounts that signed up but never completed onboarding, and deactivated
    employees, are refused.
    """
    pharmacist = crud.pharmacist.get_by_auth_id(db, auth_id=account.id)
    if not pharmacist or pharmacist.status != models.EmployeeStatus.ACTIVE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Profile not completed",
        )
    return pharmacist


def get_current_admin(
    db: Session = Depends(get_db),
    account: models.AuthAccount = Depends(get_current_account),
) -> models.AdminUser:
    admin = crud.admin.get_by_auth_id(db, auth_id=account.id)
    if not admin or not crud.admin.is_active(admin):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return admin


def get_current_super_admin(
    admin: models.AdminUser = Depends(get_current_admin),
) -> models.AdminUser:
    if not crud.admin.is_super_admin(admin):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only super admin can access admin management",
        )
    return admin


def verify_api_key_dependency(
    x_api_key: Optional[str] = Header(None),
) -> bool:
    """
    Dependency to verify API key for specific endpoints
    """
    if not settings.REQUIRE_API_KEY:
        return True

    if not x_api_key or not security.verify_api_key(x_api_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
        )

    return True

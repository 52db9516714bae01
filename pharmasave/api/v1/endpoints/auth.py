import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from jose import jwt
from pydantic import ValidationError
from sqlalchemy.orm import Session

from pharmasave import crud, models, schemas
from pharmasave.api import deps
from pharmasave.core import security
from pharmasave.core.config import settings
from pharmasave.schemas.auth import EmailConfirmation, RefreshRequest

logger = logging.getLogger(__name__)

router = APIRouter()


def _issue_tokens(account: models.AuthAccount, is_admin: bool = False) -> schemas.Token:
    return schemas.Token(
        access_token=security.create_access_token(account.id, is_admin=is_admin),
        refresh_token=security.create_refresh_token(account.id, is_admin=is_admin),
    )


@router.post("/sign-up", response_model=schemas.SignUpResponse, status_code=status.HTTP_201_CREATED)
def sign_up(
    *,
    db: Session = Depends(deps.get_db),
    data: schemas.SignUpRequest,
    _: bool = Depends(deps.verify_api_key_dependency),
) -> Any:
    """
    Register a pharmacy owner account.

    The account stays unconfirmed until the confirmation token is redeemed, and
    the pharmacy itself is only created by ``/onboarding/complete-profile``.
    """
    if crud.auth_account.get_by_email(db, email=data.email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists",
        )
    metadata = {"full_name": data.full_name or "", "pharmacy_name": data.pharmacy_name or ""}
    account = crud.auth_account.create(db, email=data.email, password=data.password, user_metadata=metadata)
    logger.info(f"📝 New sign-up: {account.email}")
    return schemas.SignUpResponse(
        account_id=account.id,
        email=account.email,
        confirmation_required=True,
        confirmation_token=account.confirmation_token,
    )


@router.post("/confirm", response_model=schemas.Account)
def confirm_email(
    *,
    db: Session = Depends(deps.get_db),
    data: EmailConfirmation,
) -> Any:
    account = crud.auth_account.get_by_confirmation_token(db, token=data.token)
    if not account:
        raise HTTPException(status_code=400, detail="Invalid or expired confirmation link")
    return crud.auth_account.confirm(db, account)


@router.post("/sign-in", response_model=schemas.Token)
def sign_in(
    db: Session = Depends(deps.get_db),
    form_data: OAuth2PasswordRequestForm = Depends(),
    _: bool = Depends(deps.verify_api_key_dependency),
) -> Any:
    """
    OAuth2 compatible token login. The username field carries the email address.
    """
    account = crud.auth_account.authenticate(db, email=form_data.username, password=form_data.password)
    if not account:
        raise HTTPException(status_code=400, detail="Incorrect email or password")
    if not account.is_active:
        raise HTTPException(status_code=400, detail="Inactive account")

    crud.auth_account.record_sign_in(db, account)
    is_admin = crud.admin.get_by_auth_id(db, auth_id=account.id) is not None
    return _issue_tokens(account, is_admin=is_admin)


@router.post("/refresh", response_model=schemas.Token)
def refresh_token(
    *,
    db: Session = Depends(deps.get_db),
    data: RefreshRequest,
) -> Any:
    try:
        payload = jwt.decode(data.refresh_token, settings.SECRET_KEY, algorithms=[security.ALGORITHM])
        token_data = schemas.TokenPayload(**payload)
    except (jwt.JWTError, ValidationError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Could not validate credentials")
    if token_data.type != "refresh":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token type")

    account = crud.auth_account.get(db, id=token_data.sub)
    if not account or not account.is_active:
        raise HTTPException(status_code=404, detail="Account not found")
    return _issue_tokens(account, is_admin=bool(token_data.is_admin))


@router.get("/me", response_model=schemas.Account)
def read_me(account: models.AuthAccount = Depends(deps.get_current_account)) -> Any:
    return account

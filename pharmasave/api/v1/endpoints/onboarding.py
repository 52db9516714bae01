from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pharmasave import models, schemas
from pharmasave.api import deps
from pharmasave.api.errors import http_error
from pharmasave.core.exceptions import PharmaSaveError
from pharmasave.services import onboarding_service

router = APIRouter()


@router.post("/complete-profile", response_model=schemas.ProfileResponse)
def complete_profile(
    *,
    db: Session = Depends(deps.get_db),
    account: models.AuthAccount = Depends(deps.require_confirmed_account),
) -> Any:
    """
    Create the pharmacy, primary pharmacist, wallet and verification queue entry
    for a confirmed account. Calling it again returns the existing profile.
    """
    try:
        return onboarding_service.complete_profile(db, account)
    except PharmaSaveError as e:
        raise http_error(e)


@router.get("/profile", response_model=schemas.ProfileResponse)
def read_profile(
    *,
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
) -> Any:
    return onboarding_service.profile_response(pharmacist.pharmacy, pharmacist, already_exists=True)


@router.put("/profile/pharmacy", response_model=schemas.Pharmacy)
def update_pharmacy(
    *,
    db: Session = Depends(deps.get_db),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
    update: schemas.PharmacyUpdate,
) -> Any:
    try:
        return onboarding_service.update_pharmacy_profile(db, pharmacist=pharmacist, update=update)
    except PharmaSaveError as e:
        raise http_error(e)


@router.put("/profile/pharmacist", response_model=schemas.Pharmacist)
def update_pharmacist(
    *,
    db: Session = Depends(deps.get_db),
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
    update: schemas.PharmacistUpdate,
) -> Any:
    return onboarding_service.update_pharmacist_profile(db, pharmacist=pharmacist, update=update)


@router.get("/profile/completion")
def read_completion(
    *,
    pharmacist: models.Pharmacist = Depends(deps.get_current_pharmacist),
) -> Dict[str, int]:
    return {"profile_completion_percent": onboarding_service.profile_completion(pharmacist.pharmacy)}

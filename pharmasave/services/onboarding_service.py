"""
Profile completion for newly confirmed accounts.

The pharmacy, its primary pharmacist, the wallet and the verification queue entry
are written one after another, each in its own commit. A failure part way leaves
the earlier rows in place; the wallet is optional and can be created later.
"""

import logging
from typing import Any, Dict, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pharmasave import crud
from pharmasave.core.exceptions import PermissionDeniedError
from pharmasave.models import (
    AuthAccount,
    EmployeeRole,
    Pharmacist,
    Pharmacy,
    QueueStatus,
    VerificationQueueEntry,
)
from pharmasave.schemas.pharmacy import (
    PharmacyUpdate,
    PharmacistUpdate,
    ProfileResponse,
    Pharmacy as PharmacySchema,
    Pharmacist as PharmacistSchema,
)

logger = logging.getLogger(__name__)

DEFAULT_PHARMACY_NAME = "My Pharmacy"

# Fields counted towards the profile completion percentage
PROFILE_FIELDS = (
    "name",
    "email",
    "phone",
    "addr",
    "city",
    "license_num",
    "registration_number",
    "license_expiry",
    "specializations",
    "services_offered",
    "operating_hours",
    "business_description",
)


def split_full_name(full_name: str, email: str) -> Tuple[str, str]:
    parts = (full_name or "").split()
    if not parts:
        return email.split("@")[0], ""
    return parts[0], " ".join(parts[1:])


def profile_completion(pharmacy: Pharmacy) -> int:
    filled = sum(1 for field in PROFILE_FIELDS if getattr(pharmacy, field, None) not in (None, ""))
    return round(filled * 100 / len(PROFILE_FIELDS))


def profile_response(pharmacy: Pharmacy, pharmacist: Pharmacist, **kwargs) -> ProfileResponse:
    return ProfileResponse(
        pharmacy=PharmacySchema.model_validate(pharmacy),
        pharmacist=PharmacistSchema.model_validate(pharmacist),
        profile_completion_percent=profile_completion(pharmacy),
        **kwargs,
    )


def complete_profile(db: Session, account: AuthAccount) -> ProfileResponse:
    if not account.is_confirmed:
        raise PermissionDeniedError("Please confirm your email before completing your profile")

    existing = crud.pharmacist.get_by_auth_id(db, auth_id=account.id)
    if existing:
        logger.info(f"Profile already exists for {account.email}")
        return profile_response(existing.pharmacy, existing, already_exists=True)

    metadata: Dict[str, Any] = account.user_metadata or {}
    pharmacy_name = (metadata.get("pharmacy_name") or "").strip() or DEFAULT_PHARMACY_NAME

    logger.info(f"🏥 Creating pharmacy '{pharmacy_name}' for {account.email}")
    pharmacy = crud.pharmacy.create_named(db, name=pharmacy_name)
    pharmacy.email = account.email
    db.add(pharmacy)
    db.commit()

    fname, lname = split_full_name(metadata.get("full_name"), account.email)
    logger.info(f"👤 Creating primary pharmacist for {pharmacy.display_id}")
    pharmacist = crud.pharmacist.create(
        db,
        pharmacy_id=pharmacy.id,
        auth_id=account.id,
        email=account.email,
        fname=fname,
        lname=lname or None,
        role=EmployeeRole.PRIMARY_ADMIN,
        is_primary=True,
        can_manage_employees=True,
        can_access_financials=True,
    )

    wallet_created = True
    try:
        crud.wallet.create_for_pharmacy(db, pharmacy_id=pharmacy.id)
    except SQLAlchemyError as e:
        db.rollback()
        wallet_created = False
        logger.warning(f"⚠️ Wallet creation failed for {pharmacy.display_id}, continuing: {e}")

    db.add(VerificationQueueEntry(pharmacy_id=pharmacy.id, status=QueueStatus.PENDING))
    db.commit()

    logger.info(f"✅ Profile completed for {account.email} ({pharmacy.display_id})")
    return profile_response(pharmacy, pharmacist, wallet_created=wallet_created)


def update_pharmacy_profile(db: Session, *, pharmacist: Pharmacist, update: PharmacyUpdate) -> Pharmacy:
    if not pharmacist.is_primary and not pharmacist.can_manage_employees:
        raise PermissionDeniedError("Only pharmacy administrators can update the pharmacy profile")
    pharmacy = pharmacist.pharmacy
    return crud.pharmacy.update(db, db_obj=pharmacy, obj_in=update.model_dump(exclude_unset=True))


def update_pharmacist_profile(db: Session, *, pharmacist: Pharmacist, update: PharmacistUpdate) -> Pharmacist:
    for field, value in update.model_dump(exclude_unset=True).items():
        setattr(pharmacist, field, value)
    db.add(pharmacist)
    db.commit()
    db.refresh(pharmacist)
    return pharmacist

import pytest

from pharmasave import crud
from pharmasave.core.exceptions import PermissionDeniedError
from pharmasave.models import EmployeeRole, QueueStatus, VerificationQueueEntry
from pharmasave.schemas.pharmacy import PharmacyUpdate, PharmacistUpdate
from pharmasave.services import onboarding_service

from tests.conftest import PASSWORD


def _account(db, email="new@pharmacy.example.com", confirmed=True, **metadata):
    return crud.auth_account.create(db, email=email, password=PASSWORD, user_metadata=metadata, confirmed=confirmed)


def test_complete_profile_creates_everything(db):
    account = _account(db, full_name="Mona Adel Salem", pharmacy_name="Zamalek Pharmacy")

    profile = onboarding_service.complete_profile(db, account)

    assert profile.pharmacy.name == "Zamalek Pharmacy"
    assert profile.pharmacy.display_id == "PH0001"
    assert profile.pharmacist.fname == "Mona"
    assert profile.pharmacist.lname == "Adel Salem"
    assert profile.pharmacist.role == EmployeeRole.PRIMARY_ADMIN
    assert profile.pharmacist.is_primary is True
    assert profile.wallet_created is True
    assert crud.wallet.get_by_pharmacy(db, pharmacy_id=profile.pharmacy.id) is not None
    entry = db.query(VerificationQueueEntry).filter(VerificationQueueEntry.pharmacy_id == profile.pharmacy.id).one()
    assert entry.status == QueueStatus.PENDING


def test_complete_profile_defaults(db):
    account = _account(db, email="lina@example.com")

    profile = onboarding_service.complete_profile(db, account)

    assert profile.pharmacy.name == "My Pharmacy"
    assert profile.pharmacist.fname == "lina"


def test_complete_profile_is_idempotent(db):
    account = _account(db, pharmacy_name="Once Pharmacy")
    first = onboarding_service.complete_profile(db, account)

    second = onboarding_service.complete_profile(db, account)

    assert second.already_exists is True
    assert second.pharmacy.id == first.pharmacy.id
    assert crud.pharmacy.count(db) == 1


def test_unconfirmed_account_cannot_complete_profile(db):
    account = _account(db, confirmed=False)

    with pytest.raises(PermissionDeniedError):
        onboarding_service.complete_profile(db, account)


def test_display_ids_are_sequential(db, owner, other_owner):
    assert owner.pharmacy.display_id == "PH0001"
    assert other_owner.pharmacy.display_id == "PH0002"


def test_profile_completion_percentage(db, owner):
    # name and email are filled by onboarding
    assert onboarding_service.profile_completion(owner.pharmacy) == 17

    onboarding_service.update_pharmacy_profile(
        db, pharmacist=owner, update=PharmacyUpdate(phone="0223456789", city="Cairo", addr="1 Nile St")
    )
    assert onboarding_service.profile_completion(owner.pharmacy) == 42


def test_staff_cannot_update_pharmacy_profile(db, owner):
    staff = crud.pharmacist.create(
        db,
        pharmacy_id=owner.pharmacy_id,
        email="staff@nile.example.com",
        fname="Hany",
        role=EmployeeRole.STAFF_PHARMACIST,
    )

    with pytest.raises(PermissionDeniedError):
        onboarding_service.update_pharmacy_profile(db, pharmacist=staff, update=PharmacyUpdate(city="Giza"))


def test_update_pharmacist_profile(db, owner):
    updated = onboarding_service.update_pharmacist_profile(
        db, pharmacist=owner, update=PharmacistUpdate(phone="01000000000")
    )
    assert updated.phone == "01000000000"
    assert updated.fname == "Sara"

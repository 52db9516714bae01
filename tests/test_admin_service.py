import pytest

from pharmasave import crud
from pharmasave.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from pharmasave.schemas.admin import AdminCreate
from pharmasave.services import admin_service
from pharmasave.utils.identity import format_id_display, is_admin_id, is_pharmacy_id

NEW_ADMIN = AdminCreate(email="ops@pharmasave.example.com", password="long-password", fname="Nour", department="Ops")


@pytest.mark.parametrize(
    "value, text, kind",
    [
        ("AD0001", "Admin AD0001", "admin"),
        ("ph0042", "Pharmacy ph0042", "pharmacy"),
        ("XY9", "XY9", "unknown"),
        (None, "N/A", "unknown"),
    ],
)
def test_format_id_display(value, text, kind):
    display = format_id_display(value)
    assert display.text == text
    assert display.type == kind


def test_id_prefix_checks():
    assert is_admin_id("ad0003")
    assert not is_admin_id("PH0001")
    assert is_pharmacy_id("PH0001")
    assert not is_pharmacy_id("")


def test_super_admin_creates_confirmed_admin(db, super_admin):
    admin = admin_service.create_admin(db, actor=super_admin, data=NEW_ADMIN)

    assert admin.display_id == "AD0002"
    assert admin.role == "admin"
    assert admin.department == "Ops"
    account = crud.auth_account.get(db, id=admin.auth_id)
    assert account.is_confirmed
    assert account.user_metadata == {"full_name": "Nour", "admin": True}


def test_duplicate_admin_email(db, super_admin, admin):
    with pytest.raises(ConflictError):
        admin_service.create_admin(
            db, actor=super_admin, data=AdminCreate(email=admin.email, password="long-password", fname="Dup")
        )


def test_regular_admin_cannot_manage_admins(db, admin):
    with pytest.raises(PermissionDeniedError, match="Only super admin can access admin management"):
        admin_service.list_admins(db, actor=admin)
    with pytest.raises(PermissionDeniedError, match="Only super admin can create new admins"):
        admin_service.create_admin(db, actor=admin, data=NEW_ADMIN)


def test_deactivation_rules(db, super_admin, admin):
    with pytest.raises(PermissionDeniedError, match="own account"):
        admin_service.deactivate_admin(db, actor=super_admin, admin_id=super_admin.id)
    with pytest.raises(NotFoundError):
        admin_service.deactivate_admin(db, actor=super_admin, admin_id="missing")

    deactivated = admin_service.deactivate_admin(db, actor=super_admin, admin_id=admin.id)

    assert deactivated.is_active is False
    assert len(admin_service.list_admins(db, actor=super_admin)) == 2


def test_super_admins_cannot_be_deactivated(db, super_admin):
    other = admin_service.create_admin(
        db,
        actor=super_admin,
        data=AdminCreate(email="root2@pharmasave.example.com", password="long-password", fname="Root", role="super_admin"),
    )

    with pytest.raises(PermissionDeniedError, match="Super admin accounts"):
        admin_service.deactivate_admin(db, actor=super_admin, admin_id=other.id)

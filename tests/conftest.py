"""
Shared pytest fixtures.

Tests run against an in-memory SQLite database, a dict-backed Redis stand-in and
a temporary local storage root. Nothing needs a running server.
"""

import os
from typing import Dict, Generator, Optional

os.environ["SQLALCHEMY_DATABASE_URI"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("USE_S3_UPLOADS", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from pharmasave import crud
from pharmasave.api import deps
from pharmasave.core import security
from pharmasave.core.redis import set_redis_client
from pharmasave.db.base import Base
from pharmasave.db.session import SessionLocal, engine
from pharmasave.main import app
from pharmasave.models import AdminRole, AdminUser, Pharmacist
from pharmasave.services import onboarding_service
from pharmasave.services.fee_service import PlatformFeeService
from pharmasave.services.file_storage import StorageService
import pharmasave.models  # noqa: F401

PASSWORD = "secret-password"


class FakeRedis:
    """The handful of Redis commands the platform config cache uses."""

    def __init__(self):
        self.store: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.store.get(key)

    def setex(self, key: str, ttl: int, value: str) -> bool:
        self.store[key] = value
        return True

    def delete(self, *keys: str) -> int:
        return sum(1 for key in keys if self.store.pop(key, None) is not None)

    def ping(self) -> bool:
        return True


@pytest.fixture
def fake_redis() -> Generator[FakeRedis, None, None]:
    client = FakeRedis()
    set_redis_client(client)
    yield client
    set_redis_client(None)


@pytest.fixture
def db(fake_redis) -> Generator[Session, None, None]:
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def storage(tmp_path) -> StorageService:
    return StorageService(use_s3=False, local_root=str(tmp_path / "storage"))


@pytest.fixture
def fee_service(fake_redis) -> PlatformFeeService:
    return PlatformFeeService(redis_client=fake_redis)


@pytest.fixture
def client(db, storage, fee_service) -> Generator[TestClient, None, None]:
    def override_get_db():
        yield db

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[deps.get_storage] = lambda: storage
    app.dependency_overrides[deps.get_fee_service] = lambda: fee_service
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(account_id: str, is_admin: bool = False) -> Dict[str, str]:
    token = security.create_access_token(account_id, is_admin=is_admin)
    return {"Authorization": f"Bearer {token}"}


def create_owner(db: Session, email: str, pharmacy_name: str = "Nile Pharmacy", full_name: str = "Sara Hassan") -> Pharmacist:
    """A confirmed account that has completed its profile, i.e. a primary pharmacist."""
    account = crud.auth_account.create(
        db,
        email=email,
        password=PASSWORD,
        user_metadata={"full_name": full_name, "pharmacy_name": pharmacy_name},
        confirmed=True,
    )
    onboarding_service.complete_profile(db, account)
    return crud.pharmacist.get_by_auth_id(db, auth_id=account.id)


def create_admin(db: Session, email: str, role: str = AdminRole.ADMIN) -> AdminUser:
    account = crud.auth_account.create(
        db, email=email, password=PASSWORD, user_metadata={"admin": True}, confirmed=True
    )
    return crud.admin.create(db, auth_id=account.id, email=email, fname="Omar", lname="Fathy", role=role)


@pytest.fixture
def owner(db) -> Pharmacist:
    return create_owner(db, "owner@nile.example.com")


@pytest.fixture
def other_owner(db) -> Pharmacist:
    return create_owner(db, "owner@delta.example.com", pharmacy_name="Delta Pharmacy", full_name="Ali Mostafa")


@pytest.fixture
def admin(db) -> AdminUser:
    return create_admin(db, "admin@pharmasave.example.com")


@pytest.fixture
def super_admin(db) -> AdminUser:
    return create_admin(db, "root@pharmasave.example.com", role=AdminRole.SUPER_ADMIN)


@pytest.fixture
def owner_headers(owner) -> Dict[str, str]:
    return auth_headers(owner.auth_id)


@pytest.fixture
def admin_headers(admin) -> Dict[str, str]:
    return auth_headers(admin.auth_id, is_admin=True)


@pytest.fixture
def super_admin_headers(super_admin) -> Dict[str, str]:
    return auth_headers(super_admin.auth_id, is_admin=True)

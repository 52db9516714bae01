from typing import Any, Dict, Optional
from sqlalchemy.orm import Session

from pharmasave.core.security import get_password_hash, verify_password, generate_token
from pharmasave.models import AuthAccount
from pharmasave.utils.timezone import now_utc


class CRUDAuthAccount:
    def get(self, db: Session, id: str) -> Optional[AuthAccount]:
        return db.query(AuthAccount).filter(AuthAccount.id == id).first()

    def get_by_email(self, db: Session, email: str) -> Optional[AuthAccount]:
        return db.query(AuthAccount).filter(AuthAccount.email == email.lower()).first()

    def get_by_confirmation_token(self, db: Session, token: str) -> Optional[AuthAccount]:
        return db.query(AuthAccount).filter(AuthAccount.confirmation_token == token).first()

    def create(
        self,
        db: Session,
        *,
        email: str,
        password: str,
        user_metadata: Optional[Dict[str, Any]] = None,
        confirmed: bool = False,
    ) -> AuthAccount:
        obj = AuthAccount(
            email=email.lower(),
            hashed_password=get_password_hash(password),
            user_metadata=user_metadata or {},
            confirmation_token=None if confirmed else generate_token(),
            email_confirmed_at=now_utc() if confirmed else None,
        )
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj

    def confirm(self, db: Session, account: AuthAccount) -> AuthAccount:
        account.email_confirmed_at = now_utc()
        account.confirmation_token = None
        db.add(account)
        db.commit()
        db.refresh(account)
        return account

    def authenticate(self, db: Session, *, email: str, password: str) -> Optional[AuthAccount]:
        account = self.get_by_email(db, email=email)
        if not account:
            return None
        if not verify_password(password, account.hashed_password):
            return None
        return account

    def record_sign_in(self, db: Session, account: AuthAccount) -> None:
        account.last_sign_in_at = now_utc()
        db.add(account)
        db.commit()


auth_account = CRUDAuthAccount()

"""Login account provisioning backed by the users table."""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.core.exceptions import LoginIdentifierInUseError, PasswordPolicyError, ProvisioningError
from backend.app.core.security import get_password_hash, verify_password
from backend.app.core.settings import get_settings
from backend.app.core.time import utc_now
from backend.app.models.user import ROLE_PARENT, User

logger = logging.getLogger(__name__)


class IdentityProvider:
    """
    Creates and authenticates login accounts.

    ``create_account`` commits on its own: each account is an independent side
    effect and stays in place even if a later step of the caller fails.
    """

    def __init__(self, db: Session):
        self.db = db

    def create_account(
        self,
        login_identifier: str,
        password: str,
        *,
        role: str = ROLE_PARENT,
        full_name: str | None = None,
        phone: str | None = None,
        registration_number: str | None = None,
        must_change_password: bool = False,
    ) -> str:
        settings = get_settings()
        if len(password) < settings.password_min_length:
            raise ProvisioningError(f"Password must be at least {settings.password_min_length} characters long.")

        existing = self.db.query(User).filter(User.email == login_identifier).first()
        if existing:
            raise LoginIdentifierInUseError(login_identifier)

        user = User(
            email=login_identifier,
            hashed_password=get_password_hash(password),
            role=role,
            full_name=full_name,
            phone=phone,
            registration_number=registration_number,
            is_active=True,
            must_change_password=must_change_password,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise LoginIdentifierInUseError(login_identifier) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Account creation failed for %s", login_identifier)
            raise ProvisioningError(f"Failed to create account {login_identifier}.") from exc
        self.db.refresh(user)
        logger.info("Created %s account %s (id=%s)", role, login_identifier, user.id)
        return str(user.id)

    def authenticate(self, login_identifier: str, password: str) -> Optional[User]:
        user = self.db.query(User).filter(User.email == login_identifier).first()
        if not user or not user.hashed_password or not user.is_active:
            return None
        if not verify_password(password, user.hashed_password):
            return None
        user.last_login = utc_now()
        self.db.commit()
        return user

    def change_password(self, user: User, new_password: str) -> None:
        settings = get_settings()
        if len(new_password) < settings.password_min_length:
            raise PasswordPolicyError(f"Password must be at least {settings.password_min_length} characters long.")
        user.hashed_password = get_password_hash(new_password)
        user.must_change_password = False
        self.db.commit()

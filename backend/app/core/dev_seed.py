import logging
import os

from sqlalchemy.orm import Session

from backend.app.core.security import get_password_hash
from backend.app.core.settings import get_settings
from backend.app.models.user import ROLE_ADMIN, User

logger = logging.getLogger(__name__)


def ensure_default_admin(db: Session) -> None:
    """
    Create the default admin account if it does not exist.
    Skips execution when running under pytest to avoid altering test expectations.
    """
    if os.getenv("PYTEST_CURRENT_TEST"):
        return

    settings = get_settings()
    existing = db.query(User).filter(User.email == settings.default_admin_email).first()
    if existing:
        return

    db.add(
        User(
            email=settings.default_admin_email,
            hashed_password=get_password_hash(settings.default_admin_password),
            role=ROLE_ADMIN,
            full_name="Administrator",
            is_active=True,
        )
    )
    db.commit()
    logger.info("Created default admin account %s", settings.default_admin_email)

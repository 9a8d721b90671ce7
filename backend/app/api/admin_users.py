"""Admin user management endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.core.exceptions import LoginIdentifierInUseError, ProvisioningError
from backend.app.core.settings import get_settings
from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_admin
from backend.app.dependencies.services import get_identity_provider
from backend.app.models.user import User
from backend.app.schemas.user import AdminUserCreate, AdminUserStatusUpdate, UserRead
from backend.app.services.identity_provider import IdentityProvider

router = APIRouter(prefix="/admin/users", tags=["admin"])


def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/", response_model=list[UserRead])
def list_users(db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    return db.query(User).order_by(User.id.asc()).all()


@router.post("/", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: AdminUserCreate,
    db: Session = Depends(get_db),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    current_admin: User = Depends(get_current_admin),
):
    registration_number = payload.registration_number.strip()
    if not registration_number:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Registration number is required")
    login_identifier = f"{registration_number}@{get_settings().login_email_domain}"
    try:
        account_id = identity_provider.create_account(
            login_identifier,
            payload.password,
            role=payload.role,
            full_name=payload.full_name,
            registration_number=registration_number,
        )
    except LoginIdentifierInUseError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="This registration number is already taken.")
    except ProvisioningError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
    return _get_user(db, int(account_id))


@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: int, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    return _get_user(db, user_id)


@router.patch("/{user_id}/status", response_model=UserRead)
def update_user_status(
    user_id: int,
    update: AdminUserStatusUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    user = _get_user(db, user_id)
    if user_id == current_admin.id and update.is_active is False:
        raise HTTPException(status_code=400, detail="Cannot deactivate your own account")

    if update.is_active is not None:
        user.is_active = update.is_active
    db.commit()
    db.refresh(user)
    return user

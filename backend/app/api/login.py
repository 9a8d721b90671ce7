"""Login, profile and password endpoints for admins and guardians."""

from fastapi import APIRouter, Depends, HTTPException, status

from backend.app.core.exceptions import PasswordPolicyError
from backend.app.core.security import create_access_token
from backend.app.dependencies.auth import get_current_user
from backend.app.dependencies.services import get_identity_provider
from backend.app.models.user import User
from backend.app.schemas.login import LoginRequest, TokenResponse
from backend.app.schemas.user import PasswordChange, UserRead
from backend.app.services.identity_provider import IdentityProvider

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(credentials: LoginRequest, identity_provider: IdentityProvider = Depends(get_identity_provider)):
    user = identity_provider.authenticate(credentials.email, credentials.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid credentials")

    token = create_access_token(user_id=user.id, role=user.role)
    return TokenResponse(access_token=token, role=user.role, must_change_password=user.must_change_password)


@router.get("/me", response_model=UserRead)
def read_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/change-password", response_model=UserRead)
def change_password(
    payload: PasswordChange,
    current_user: User = Depends(get_current_user),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
):
    if payload.new_password != payload.confirm_password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Passwords do not match.")
    try:
        identity_provider.change_password(current_user, payload.new_password)
    except PasswordPolicyError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
    return current_user

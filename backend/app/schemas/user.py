"""User schemas for account creation, password changes and responses."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr


class UserRead(BaseModel):
    id: int
    email: EmailStr
    role: str
    full_name: Optional[str] = None
    is_active: bool = True
    must_change_password: bool = False
    last_login: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AdminUserCreate(BaseModel):
    registration_number: str
    password: str
    role: Literal["admin", "parent", "user"] = "user"
    full_name: Optional[str] = None


class PasswordChange(BaseModel):
    new_password: str
    confirm_password: str


class AdminUserStatusUpdate(BaseModel):
    is_active: Optional[bool] = None

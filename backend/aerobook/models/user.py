"""
User and session models.

SessionContext replaces a process-wide "current user" with an explicit
value handed to each operation that needs to know who is calling.
"""

from datetime import date
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict

from .enums import UserRole


class UserModel(BaseModel):
    """Registered passenger account."""
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    first_name: str = Field(..., max_length=50)
    last_name: str = Field(..., max_length=50)
    email: str = Field(..., max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    password_hash: Optional[str] = Field(None, repr=False)
    date_of_birth: Optional[date] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class AdminModel(BaseModel):
    """Administrator account, logged in by username."""
    model_config = ConfigDict(from_attributes=True)

    admin_id: int
    username: str = Field(..., min_length=1, max_length=50)
    password_hash: Optional[str] = Field(None, repr=False)


class SessionContext(BaseModel):
    """Who is calling: a user, an airline owner or an administrator."""
    model_config = ConfigDict(frozen=True)

    principal_id: int
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

"""
Pydantic schemas for User endpoints.

These schemas control what user data flows in and out of the API.
The password is accepted on create/register requests only and is NEVER
part of a response schema — this is the security boundary between the
internal record (with hash) and the public view.
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.models.role import RoleName
from app.models.user import UserType


class UserCreateRequest(BaseModel):
    """
    Request body for POST /api/usuarios and POST /api/usuarios/registro.

    On self-registration the roles field is accepted but ignored: the
    default role is always assigned instead.
    """
    full_name: str = Field(min_length=1, max_length=255)
    username: str = Field(min_length=1, max_length=100)
    email: EmailStr                                 # Validates email format
    password: str = Field(min_length=8, max_length=128)
    roles: set[RoleName] = Field(default_factory=set)
    department: str | None = Field(None, max_length=255)
    specialty: str | None = Field(None, max_length=255)


class UserUpdateRequest(BaseModel):
    """
    Request body for PUT /api/usuarios/{id} (full replace).

    A password sent here is ignored; updates never touch the credential.
    When roles is omitted the current role set is kept; when present it
    replaces the role set entirely.
    """
    full_name: str = Field(min_length=1, max_length=255)
    username: str = Field(min_length=1, max_length=100)
    email: EmailStr
    roles: set[RoleName] | None = None


class UserResponse(BaseModel):
    """Public representation of a User (never includes the password hash)."""
    id: int
    full_name: str
    username: str
    email: str
    roles: list[RoleName]
    user_type: UserType
    department: str | None
    specialty: str | None
    enabled: bool
    created_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("roles", mode="before")
    @classmethod
    def role_names(cls, value):
        # ORM Role objects arrive here; expose only their names, sorted
        return sorted(getattr(role, "name", role) for role in value)

"""
Role model — a named permission bucket assigned to users.

Roles drive authorization: each role a user holds becomes one authority
token (the role's name, verbatim) that the request gatekeeper checks
against endpoint requirements.

The set of role kinds is closed (RoleName). A Role row is the persisted
instance of one kind, and there is at most one row per kind: the name
column carries a UNIQUE constraint as the storage-level backstop for the
existence check done in role_service.
"""

import enum

from sqlalchemy import Enum
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class RoleName(str, enum.Enum):
    """
    The closed set of role kinds.

    Inherits from str so the value serializes naturally to JSON and is
    stored as a plain string in the database.
    """
    ADMIN = "ADMIN"             # User management, every role-gated endpoint
    INSTRUCTOR = "INSTRUCTOR"   # Reads user records, teaches classes
    STUDENT = "STUDENT"         # Basic learner — the self-registration default


# Forced onto every self-registered user
DEFAULT_ROLE = RoleName.STUDENT


class Role(Base):
    __tablename__ = "roles"
    # Deleted ids are never handed out again
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    name: Mapped[RoleName] = mapped_column(
        Enum(RoleName, native_enum=False, length=32),
        unique=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"Role(id={self.id!r}, name={self.name.value if self.name else None!r})"

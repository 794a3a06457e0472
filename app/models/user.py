"""
User model — the identity record.

Each User is one flat row: profile attributes (full name, username, email),
the credential hash, four account-status flags, and a set of roles. There
is no class hierarchy for administrators or instructors. They are ordinary
users told apart by the roles they hold, plus an optional department
(administrators) or specialty (instructors) and a user_type tag recording
how the record was provisioned.

Username and email are each unique. The service layer checks this before
writing; the UNIQUE constraints below are the backstop for two requests
racing past that check.

The password is stored as an Argon2id hash — never in plaintext — and the
hash never leaves the write path and the authentication lookup. Public
responses are built from schemas.user.UserResponse, which has no password
field.
"""

import enum
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.role import Role, RoleName


# Many-to-many association between users and roles. The composite primary
# key makes a duplicate (user, role) pair impossible.
user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
)


class UserType(str, enum.Enum):
    """How the record was provisioned. Authorization never reads this tag."""
    USER = "user"
    ADMINISTRATOR = "administrator"
    INSTRUCTOR = "instructor"


class User(Base):
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    full_name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Login identifier — unique and indexed for the authentication lookup
    username: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
        index=True,
    )

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )

    # Argon2id hash of the password (never store plaintext!)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)

    user_type: Mapped[UserType] = mapped_column(
        Enum(UserType, native_enum=False, length=32),
        default=UserType.USER,
        nullable=False,
    )

    # Administrator / instructor attributes
    department: Mapped[str | None] = mapped_column(String(255), nullable=True)
    specialty: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Account-status flags. Any one of them False blocks authentication.
    account_non_expired: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    account_non_locked: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    credentials_non_expired: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # --- Relationships ---
    # selectin: roles are needed on every authentication, and lazy loading
    # is not available under AsyncSession
    roles: Mapped[set[Role]] = relationship(
        secondary=user_roles,
        collection_class=set,
        lazy="selectin",
    )

    def has_role(self, name: RoleName) -> bool:
        return any(role.name == name for role in self.roles)

    def add_role(self, role: Role) -> None:
        self.roles.add(role)

    def remove_role(self, role: Role) -> None:
        self.roles.discard(role)

    @property
    def is_usable(self) -> bool:
        """True when every account-status flag allows authentication."""
        return (
            self.enabled
            and self.account_non_locked
            and self.account_non_expired
            and self.credentials_non_expired
        )

    def __repr__(self) -> str:
        # No hash in the repr: it ends up in logs and tracebacks
        return (
            f"User(id={self.id!r}, username={self.username!r}, "
            f"email={self.email!r}, roles={sorted(r.name.value for r in self.roles)!r})"
        )

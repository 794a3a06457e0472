"""
User service — business logic for the identity store.

This module handles:
  - Administrative creation (caller chooses the role set)
  - Self-registration (the default role is forced, requested roles ignored)
  - Lookup by id, by username, and the authentication lookup
  - Paginated listing with optional name / role filters
  - Full-replace update and delete

Uniqueness:
  Email and username are each unique. Before every write the service runs
  two independent existence checks (email first, then username), each
  raising a DuplicateError that names its field. On update the checks
  exclude the record being updated, so a user may keep its own email.
  A concurrent writer that slips past the checks is caught by the UNIQUE
  constraints and reported as the same DuplicateError.

Role resolution:
  Role names in a request are resolved against the role registry. An
  unprovisioned name fails with RoleNotFoundError naming it; nothing is
  written in that case.

The functions return ORM User objects. Routers convert them to
UserResponse, which drops the password hash. Only authentication_lookup
is meant for code that needs the hash.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    AuthenticationLookupError,
    DuplicateError,
    InvalidSortError,
    UserNotFoundError,
)
from app.models.role import DEFAULT_ROLE, Role, RoleName
from app.models.user import User, UserType
from app.schemas.common import PageRequest
from app.schemas.user import UserCreateRequest, UserUpdateRequest
from app.security import hash_password
from app.services import role_service
from app.services.persistence import flush_or_conflict

logger = logging.getLogger(__name__)


# Columns a client may sort the user list by
SORTABLE_FIELDS = {
    "id": User.id,
    "full_name": User.full_name,
    "username": User.username,
    "email": User.email,
    "created_at": User.created_at,
}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

async def _exists(db: AsyncSession, *criteria) -> bool:
    result = await db.execute(select(User.id).where(*criteria).limit(1))
    return result.first() is not None


async def _check_unique(
    db: AsyncSession,
    email: str,
    username: str,
    exclude_id: int | None = None,
) -> None:
    """
    Raise DuplicateError if the email or username belongs to another user.

    Email is checked first, so a request colliding on both reports email.
    """
    excluding = [User.id != exclude_id] if exclude_id is not None else []

    if await _exists(db, User.email == email, *excluding):
        raise DuplicateError("email", email, other_record=exclude_id is not None)
    if await _exists(db, User.username == username, *excluding):
        raise DuplicateError("username", username, other_record=exclude_id is not None)


async def _insert_user(
    db: AsyncSession,
    data: UserCreateRequest,
    roles: set[Role],
    user_type: UserType,
) -> User:
    user = User(
        full_name=data.full_name,
        username=data.username,
        email=data.email,
        hashed_password=hash_password(data.password),
        user_type=user_type,
        department=data.department,
        specialty=data.specialty,
        roles=roles,
    )
    db.add(user)
    await flush_or_conflict(db, {"email": data.email, "username": data.username})
    return user


def _order_by(sort: str | None) -> list:
    """Parse "field[,asc|desc]" into ORDER BY clauses, with id as tiebreaker."""
    if not sort:
        return [User.id]

    field, _, direction = sort.partition(",")
    column = SORTABLE_FIELDS.get(field.strip())
    direction = direction.strip().lower() or "asc"
    if column is None or direction not in ("asc", "desc"):
        raise InvalidSortError(sort)

    ordered = column.desc() if direction == "desc" else column.asc()
    return [ordered, User.id]


# ---------------------------------------------------------------------------
# Create / register
# ---------------------------------------------------------------------------

async def create_user(
    db: AsyncSession,
    data: UserCreateRequest,
    user_type: UserType = UserType.USER,
) -> User:
    """
    Create a user with the requested role set.

    Raises:
        DuplicateError: If the email or username is already in use.
        RoleNotFoundError: If a requested role has not been provisioned.
    """
    await _check_unique(db, data.email, data.username)
    roles = await role_service.resolve_roles(db, data.roles)

    user = await _insert_user(db, data, roles, user_type)
    logger.info(
        "Created user %s (id=%s) with roles %s",
        user.username, user.id, sorted(role.name.value for role in roles),
    )
    return user


async def register_user(db: AsyncSession, data: UserCreateRequest) -> User:
    """
    Self-register a user. Whatever roles were requested, the user gets
    exactly the default role.

    Raises:
        DuplicateError: If the email or username is already in use.
        RoleNotFoundError: If the default role has not been provisioned.
    """
    await _check_unique(db, data.email, data.username)
    default_role = await role_service.get_role_by_name(db, DEFAULT_ROLE)

    if data.roles and data.roles != {DEFAULT_ROLE}:
        logger.info(
            "Registration for %s requested roles %s; assigning %s instead",
            data.username, sorted(role.value for role in data.roles), DEFAULT_ROLE.value,
        )

    # Staff attributes are only set through administrative provisioning
    data = data.model_copy(update={"department": None, "specialty": None})
    user = await _insert_user(db, data, {default_role}, UserType.USER)
    logger.info("Registered user %s (id=%s)", user.username, user.id)
    return user


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------

async def get_user(db: AsyncSession, user_id: int) -> User:
    """
    Raises:
        UserNotFoundError: If no user has this id.
    """
    user = await db.get(User, user_id)
    if user is None:
        raise UserNotFoundError(user_id=user_id)
    return user


async def _find_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def get_user_by_username(db: AsyncSession, username: str) -> User:
    """
    Raises:
        UserNotFoundError: If no user has this username.
    """
    user = await _find_by_username(db, username)
    if user is None:
        raise UserNotFoundError(username=username)
    return user


async def authentication_lookup(db: AsyncSession, username: str) -> User:
    """
    Load the full record, credential hash included, for authentication.

    Only the request gatekeeper calls this. The failure is a distinct
    NotFound variant so the gatekeeper can turn it into a generic
    authentication failure instead of a 404.

    Raises:
        AuthenticationLookupError: If no user has this username.
    """
    user = await _find_by_username(db, username)
    if user is None:
        raise AuthenticationLookupError(username)
    return user


async def list_users(
    db: AsyncSession,
    page_request: PageRequest,
    name: str | None = None,
    role: RoleName | None = None,
) -> tuple[list[User], int]:
    """
    Return one page of users and the total number of matching users.

    Args:
        page_request: Page index, size, and sort, applied to the query as-is.
        name: Optional case-insensitive substring of the full name.
        role: Optional role the users must hold.

    Raises:
        InvalidSortError: If the sort field or direction is not recognised.
    """
    filters = []
    if name:
        filters.append(User.full_name.ilike(f"%{name}%"))
    if role is not None:
        filters.append(User.roles.any(Role.name == role))

    order_by = _order_by(page_request.sort)

    total = await db.scalar(select(func.count(User.id)).where(*filters))

    result = await db.execute(
        select(User)
        .where(*filters)
        .order_by(*order_by)
        .limit(page_request.size)
        .offset(page_request.offset)
    )
    return list(result.scalars().all()), total or 0


# ---------------------------------------------------------------------------
# Update / delete
# ---------------------------------------------------------------------------

async def update_user(db: AsyncSession, user_id: int, data: UserUpdateRequest) -> User:
    """
    Replace a user's name, username, email, and (when given) role set.

    The password is never changed here.

    Raises:
        UserNotFoundError: If no user has this id.
        DuplicateError: If the email or username belongs to a different user.
        RoleNotFoundError: If a requested role has not been provisioned.
    """
    user = await get_user(db, user_id)
    await _check_unique(db, data.email, data.username, exclude_id=user.id)

    # Resolve before touching the record so a bad role name changes nothing
    roles = None
    if data.roles is not None:
        roles = await role_service.resolve_roles(db, data.roles)

    user.full_name = data.full_name
    user.username = data.username
    user.email = data.email
    if roles is not None:
        user.roles = roles

    await flush_or_conflict(db, {"email": data.email, "username": data.username})
    logger.info("Updated user id=%s", user.id)
    return user


async def delete_user(db: AsyncSession, user_id: int) -> None:
    """
    Raises:
        UserNotFoundError: If no user has this id.
    """
    user = await get_user(db, user_id)
    await db.delete(user)
    await db.flush()
    logger.info("Deleted user %s (id=%s)", user.username, user_id)

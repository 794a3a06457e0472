"""
Role service — the role registry.

This module handles:
  - Explicit role CRUD behind /api/papeis
  - Implicit creation on first reference (get_or_create_role), used by
    startup seeding and by the administrator / instructor builders
  - Resolving role names to Role rows for the user service

Invariant: at most one Role row per RoleName. create_role and update_role
check for an existing row with the same name before writing, and the
UNIQUE constraint on roles.name catches anything that races past.

Deleting a role strips it from every user that holds it before the row is
removed, so no user is left pointing at a role that no longer exists.
"""

import logging
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DuplicateError, RoleNotFoundError
from app.models.role import Role, RoleName
from app.models.user import User
from app.services.persistence import flush_or_conflict

logger = logging.getLogger(__name__)


async def _find_by_name(db: AsyncSession, name: RoleName) -> Role | None:
    result = await db.execute(select(Role).where(Role.name == name))
    return result.scalar_one_or_none()


async def create_role(db: AsyncSession, name: RoleName) -> Role:
    """
    Create a role.

    Raises:
        DuplicateError: If a role with this name already exists.
    """
    if await _find_by_name(db, name) is not None:
        raise DuplicateError("name", name.value)

    role = Role(name=name)
    db.add(role)
    await flush_or_conflict(db, {"name": name.value})

    logger.info("Created role %s (id=%s)", name.value, role.id)
    return role


async def get_role(db: AsyncSession, role_id: int) -> Role:
    """
    Raises:
        RoleNotFoundError: If no role has this id.
    """
    role = await db.get(Role, role_id)
    if role is None:
        raise RoleNotFoundError(role_id=role_id)
    return role


async def get_role_by_name(db: AsyncSession, name: RoleName) -> Role:
    """
    Raises:
        RoleNotFoundError: Naming the role, if it has not been provisioned.
    """
    role = await _find_by_name(db, name)
    if role is None:
        raise RoleNotFoundError(name=name.value)
    return role


async def list_roles(db: AsyncSession) -> list[Role]:
    """All roles, ordered by id."""
    result = await db.execute(select(Role).order_by(Role.id))
    return list(result.scalars().all())


async def update_role(db: AsyncSession, role_id: int, name: RoleName) -> Role:
    """
    Rename a role.

    Renaming a role to its current name is a no-op. Renaming it to a name
    another role already has is rejected.

    Raises:
        RoleNotFoundError: If no role has this id.
        DuplicateError: If another role already has the new name.
    """
    role = await get_role(db, role_id)
    if role.name == name:
        return role

    other = await _find_by_name(db, name)
    if other is not None and other.id != role.id:
        raise DuplicateError("name", name.value, other_record=True)

    previous = role.name
    role.name = name
    await flush_or_conflict(db, {"name": name.value})

    logger.info("Renamed role id=%s from %s to %s", role.id, previous.value, name.value)
    return role


async def delete_role(db: AsyncSession, role_id: int) -> None:
    """
    Delete a role, removing it from every user that holds it.

    Raises:
        RoleNotFoundError: If no role has this id.
    """
    role = await get_role(db, role_id)

    result = await db.execute(select(User).where(User.roles.any(Role.id == role.id)))
    holders = result.scalars().all()
    for user in holders:
        user.remove_role(role)
    if holders:
        logger.warning(
            "Deleting role %s stripped it from %d user(s)", role.name.value, len(holders)
        )

    await db.delete(role)
    await db.flush()
    logger.info("Deleted role %s (id=%s)", role.name.value, role_id)


async def get_or_create_role(db: AsyncSession, name: RoleName) -> Role:
    """Return the role with this name, creating it on first reference."""
    role = await _find_by_name(db, name)
    if role is None:
        role = await create_role(db, name)
    return role


async def ensure_roles(db: AsyncSession, names: Iterable[RoleName] = tuple(RoleName)) -> list[Role]:
    """Provision every given role. Safe to run on every startup."""
    return [await get_or_create_role(db, name) for name in names]


async def resolve_roles(db: AsyncSession, names: Iterable[RoleName]) -> set[Role]:
    """
    Look up each role name in the registry.

    Raises:
        RoleNotFoundError: For the first name that has no Role row.
    """
    return {await get_role_by_name(db, name) for name in names}

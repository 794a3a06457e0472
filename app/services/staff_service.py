"""
Staff service — administrators, instructors, and role-gated actions.

Administrators and instructors are ordinary User records. What makes
someone an administrator is holding the ADMIN role (plus, by convention,
INSTRUCTOR); what makes someone an instructor is holding INSTRUCTOR. The
builders here attach those roles, creating them on first reference, and
record the department / specialty attribute.

Domain actions check role membership when they are called, not the
record's user_type: an administrator can teach a class because they hold
INSTRUCTOR, and would stop being able to the moment that role is removed.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import RoleRequiredError
from app.models.role import RoleName
from app.models.user import User, UserType
from app.schemas.user import UserCreateRequest
from app.services import role_service, user_service

logger = logging.getLogger(__name__)


ADMINISTRATOR_ROLES = (RoleName.ADMIN, RoleName.INSTRUCTOR)
INSTRUCTOR_ROLES = (RoleName.INSTRUCTOR,)


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

async def create_administrator(db: AsyncSession, data: UserCreateRequest) -> User:
    """
    Create a user holding ADMIN and INSTRUCTOR, with data.department.

    Any roles or specialty in data are replaced.

    Raises:
        DuplicateError: If the email or username is already in use.
    """
    await role_service.ensure_roles(db, ADMINISTRATOR_ROLES)
    data = data.model_copy(update={"roles": set(ADMINISTRATOR_ROLES), "specialty": None})
    return await user_service.create_user(db, data, user_type=UserType.ADMINISTRATOR)


async def create_instructor(db: AsyncSession, data: UserCreateRequest) -> User:
    """
    Create a user holding INSTRUCTOR, with data.specialty.

    Any roles or department in data are replaced.

    Raises:
        DuplicateError: If the email or username is already in use.
    """
    await role_service.ensure_roles(db, INSTRUCTOR_ROLES)
    data = data.model_copy(update={"roles": set(INSTRUCTOR_ROLES), "department": None})
    return await user_service.create_user(db, data, user_type=UserType.INSTRUCTOR)


# ---------------------------------------------------------------------------
# Role-gated actions
# ---------------------------------------------------------------------------

def require_role(user: User, role: RoleName, action: str) -> None:
    """Raise RoleRequiredError unless the user currently holds the role."""
    if not user.has_role(role):
        raise RoleRequiredError(user.username, role.value, action)


def teach_class(user: User, subject: str) -> None:
    require_role(user, RoleName.INSTRUCTOR, "teach a class")
    logger.info("%s is teaching a class on %s", user.username, subject)


def manage_finances(user: User) -> None:
    require_role(user, RoleName.ADMIN, "manage finances")
    logger.info("%s is managing finances for %s", user.username, user.department or "all departments")


def manage_pedagogy(user: User) -> None:
    require_role(user, RoleName.ADMIN, "manage pedagogy")
    logger.info("%s is managing pedagogical matters", user.username)

"""
Authorization mapper — from a user's roles to granted authorities.

An authority is the string token the request gatekeeper compares against
an endpoint's role requirement. Each assigned role yields exactly one
authority: the role's canonical name, verbatim ("ADMIN", "INSTRUCTOR",
"STUDENT"). Nothing is cached; the set is recomputed on every request so
role changes take effect immediately.

Authentication and authorization are independent: a user with no roles
still authenticates, but has an empty authority set, so every role-gated
endpoint denies them.
"""

from collections.abc import Iterable

from app.models.role import RoleName
from app.models.user import User


def granted_authorities(user: User) -> frozenset[str]:
    """Project the user's role set onto role names."""
    return frozenset(role.name.value for role in user.roles)


def has_any_authority(authorities: Iterable[str], *roles: RoleName) -> bool:
    """True if at least one of the required roles appears among the authorities."""
    held = set(authorities)
    return any(role.value in held for role in roles)

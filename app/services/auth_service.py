"""
Authentication service — credential verification.

This module contains the login logic, separated from HTTP concerns. Both
the form-login endpoint and HTTP Basic authentication go through
authenticate():

  1. Look up the full user record by username (authentication lookup)
  2. Verify the password against the stored Argon2 hash
  3. Check the four account-status flags

Security notes:
  - Every failure raises the same InvalidCredentialsError, so a client
    cannot tell "no such user" from "wrong password" or "account locked".
    The log line does record which one it was.
  - For unknown usernames a dummy hash verification still runs, keeping
    response time independent of whether the username exists.
  - Passwords are never logged.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import AuthenticationLookupError, InvalidCredentialsError
from app.models.user import User
from app.schemas.auth import Principal
from app.security import dummy_verify, verify_password
from app.services import user_service
from app.services.authorization import granted_authorities

logger = logging.getLogger(__name__)


def _status_reason(user: User) -> str:
    if not user.enabled:
        return "disabled"
    if not user.account_non_locked:
        return "locked"
    if not user.account_non_expired:
        return "expired"
    return "credentials expired"


async def authenticate(db: AsyncSession, username: str, password: str) -> User:
    """
    Verify a username/password pair.

    Returns:
        The authenticated User.

    Raises:
        InvalidCredentialsError: If the username is unknown, the password is
            wrong, or the account is disabled, locked, or expired.
    """
    try:
        user = await user_service.authentication_lookup(db, username)
    except AuthenticationLookupError:
        dummy_verify()
        logger.warning("Authentication failed for %r: unknown username", username)
        raise InvalidCredentialsError() from None

    if not verify_password(password, user.hashed_password):
        logger.warning("Authentication failed for %r: bad password", username)
        raise InvalidCredentialsError()

    if not user.is_usable:
        logger.warning("Authentication refused for %r: account %s", username, _status_reason(user))
        raise InvalidCredentialsError()

    return user


def to_principal(user: User) -> Principal:
    """Build the request principal, computing authorities from current roles."""
    return Principal(
        id=user.id,
        username=user.username,
        authorities=granted_authorities(user),
    )

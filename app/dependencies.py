"""
FastAPI dependencies for authentication and authorization.

Dependencies are reusable functions that FastAPI injects into route
handlers. They form the request gatekeeper:

  get_current_principal (session cookie or HTTP Basic -> Principal)
      ├── require_roles(*roles)          [any of the listed roles]
      └── require_roles_or_self(*roles)  [listed role, or the path user_id]

Authentication:
  - Form login (POST /api/login) stores the user id in the signed session
    cookie; later requests are authenticated from the cookie.
  - HTTP Basic credentials are verified on every request that sends them.
  In both cases the user record is reloaded, so disabling an account or
  removing a role takes effect on the next request.

Authorization:
  The principal's authorities are its role names. A role-gated endpoint
  rejects with 403 unless one of its roles is among them. A principal with
  no roles is authenticated but passes no role gate.
"""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.exceptions import UserNotFoundError
from app.models.role import RoleName
from app.schemas.auth import Principal
from app.services import auth_service, user_service
from app.services.authorization import has_any_authority


# auto_error=False: a missing Authorization header is not an error by
# itself, because the session cookie may authenticate the request instead
http_basic = HTTPBasic(auto_error=False)

# Session key holding the authenticated user id. The id survives a rename;
# the username does not.
SESSION_USER_KEY = "user_id"


def _not_authenticated() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Basic"},
    )


def _forbidden() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Access denied",
    )


async def get_current_principal(
    request: Request,
    credentials: HTTPBasicCredentials | None = Depends(http_basic),
    db: AsyncSession = Depends(get_db),
) -> Principal:
    """
    Authenticate the request and return its principal.

    HTTP Basic credentials take precedence when present; otherwise the
    session cookie set by form login is used.

    Raises:
        InvalidCredentialsError (401): If Basic credentials are wrong.
        HTTPException 401: If neither credentials nor a valid session exist.
    """
    if credentials is not None:
        user = await auth_service.authenticate(db, credentials.username, credentials.password)
        return auth_service.to_principal(user)

    user_id = request.session.get(SESSION_USER_KEY)
    if user_id is None:
        raise _not_authenticated()

    try:
        user = await user_service.get_user(db, user_id)
    except UserNotFoundError:
        # The account was deleted since login
        request.session.clear()
        raise _not_authenticated() from None

    if not user.is_usable:
        request.session.clear()
        raise _not_authenticated()

    return auth_service.to_principal(user)


def require_roles(*roles: RoleName):
    """
    Dependency factory: require the principal to hold one of the roles.

    Usage:
        @router.get("/", dependencies=[Depends(require_roles(RoleName.ADMIN))])
    """

    async def role_checker(
        principal: Principal = Depends(get_current_principal),
    ) -> Principal:
        if not has_any_authority(principal.authorities, *roles):
            raise _forbidden()
        return principal

    return role_checker


def require_roles_or_self(*roles: RoleName):
    """
    Dependency factory: require one of the roles, or that the path
    parameter user_id is the principal's own id.
    """

    async def role_or_self_checker(
        user_id: int,
        principal: Principal = Depends(get_current_principal),
    ) -> Principal:
        if principal.id == user_id or has_any_authority(principal.authorities, *roles):
            return principal
        raise _forbidden()

    return role_or_self_checker

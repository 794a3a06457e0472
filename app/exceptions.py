"""
Custom exception classes and FastAPI exception handlers.

The service layer raises domain-specific errors (like DuplicateError)
without importing HTTP concepts. The handler layer then translates
these into HTTP responses, so service code is testable without HTTP and
error bodies are consistent across endpoints.

Exception hierarchy:
    IdentityAPIError (base)
    ├── NotFoundError                 — 404
    │   ├── RoleNotFoundError
    │   ├── UserNotFoundError
    │   └── AuthenticationLookupError — only raised on the login path
    ├── ValidationError               — 400
    │   ├── DuplicateError            — email / username / role name collision
    │   └── InvalidSortError
    ├── DatabaseError                 — 400, generic storage failure
    ├── InvalidCredentialsError       — 401
    └── RoleRequiredError             — actor lacks a role for a domain action

Two error body shapes are produced:
  - StandardError {timestamp, status, error, path, message} from the
    application-wide handlers registered here.
  - ErrorResponse {status, message} from CompactErrorRoute, which the user
    endpoints use to report validation and not-found errors themselves.
"""

import logging
from datetime import datetime, timezone
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from sqlalchemy.exc import SQLAlchemyError

from app.schemas.common import ErrorResponse, StandardError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class IdentityAPIError(Exception):
    """Base exception for all Identity API domain errors."""

    status_code: int = 400
    error: str = "Request error"

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------

class NotFoundError(IdentityAPIError):
    """Raised when a requested role or user does not exist."""

    status_code = 404
    error = "Resource not found"


class RoleNotFoundError(NotFoundError):
    """Raised when a role id or role name cannot be resolved in the registry."""

    def __init__(self, role_id: int | None = None, name: str | None = None):
        self.role_id = role_id
        self.name = name
        if name is not None:
            super().__init__(f"Role not found: {name}")
        else:
            super().__init__(f"Role not found with id: {role_id}")


class UserNotFoundError(NotFoundError):
    """Raised when a user lookup by id or by username finds nothing."""

    def __init__(self, user_id: int | None = None, username: str | None = None):
        self.user_id = user_id
        self.username = username
        if username is not None:
            super().__init__(f"User not found: {username}")
        else:
            super().__init__(f"User not found with id: {user_id}")


class AuthenticationLookupError(NotFoundError):
    """
    Raised when the authentication path finds no principal for a username.

    The gatekeeper converts this into InvalidCredentialsError, so the HTTP
    response never reveals whether the username exists.
    """

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"No principal found for username: {username}")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class ValidationError(IdentityAPIError):
    """Raised when a request is well-formed but violates a business rule."""

    status_code = 400
    error = "Validation error"


class DuplicateError(ValidationError):
    """
    Raised when an email, username, or role name is already in use.

    Attributes:
        field: The conflicting field ("email", "username", or "name").
        value: The value that collided.
    """

    _MESSAGES = {
        "email": "Email is already in use",
        "username": "Username is already in use",
        "name": "Role already exists",
    }

    def __init__(self, field: str, value: str, other_record: bool = False):
        self.field = field
        self.value = value
        message = self._MESSAGES.get(field, f"{field} is already in use")
        if other_record:
            message += " by another record"
        super().__init__(f"{message}: {field}={value}")


class InvalidSortError(ValidationError):
    """Raised when a list request asks to sort by an unknown field or direction."""

    def __init__(self, sort: str):
        self.sort = sort
        super().__init__(f"Invalid sort parameter: {sort}")


# ---------------------------------------------------------------------------
# Storage, authentication, capability
# ---------------------------------------------------------------------------

class DatabaseError(IdentityAPIError):
    """Raised when the storage layer fails for a reason other than a known conflict."""

    status_code = 400
    error = "Database exception"

    def __init__(self, detail: str = "A database error occurred"):
        super().__init__(detail)


class InvalidCredentialsError(IdentityAPIError):
    """Raised when login credentials are incorrect or the account is unusable."""

    status_code = 401
    error = "Unauthorized"

    def __init__(self):
        super().__init__("Invalid username or password")


class RoleRequiredError(IdentityAPIError):
    """
    Raised when an actor attempts a role-gated domain action without holding
    the role. Membership is checked at call time, not by record type.
    """

    status_code = 403
    error = "Forbidden"

    def __init__(self, username: str, role: str, action: str):
        self.username = username
        self.role = role
        self.action = action
        super().__init__(f"User {username} lacks role {role} required to {action}")


# ---------------------------------------------------------------------------
# Response helpers
# ---------------------------------------------------------------------------

def _standard_error(request: Request, status_code: int, error: str, message: str) -> JSONResponse:
    body = StandardError(
        timestamp=datetime.now(timezone.utc),
        status=status_code,
        error=error,
        path=request.url.path,
        message=message,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def _describe_schema_errors(exc: RequestValidationError) -> str:
    """One "field: problem" clause per failed field, e.g. "email: value is not a valid email address"."""
    parts = []
    for error in exc.errors():
        # Drop the leading "body" / "query" / "path" segment
        field = ".".join(str(part) for part in error["loc"][1:]) or str(error["loc"][0])
        parts.append(f"{field}: {error['msg']}")
    return "; ".join(parts)


class CompactErrorRoute(APIRoute):
    """
    Route class that answers validation and not-found errors with a compact
    {status, message} body instead of the application-wide StandardError.

    Request schema violations count as validation errors here, so they are
    400 rather than FastAPI's 422.

    Used by routers that handle their own request errors:
        router = APIRouter(route_class=CompactErrorRoute)
    """

    def get_route_handler(self) -> Callable:
        original_route_handler = super().get_route_handler()

        async def compact_error_route_handler(request: Request) -> Response:
            try:
                return await original_route_handler(request)
            except (ValidationError, NotFoundError) as exc:
                body = ErrorResponse(status=exc.status_code, message=exc.detail)
                return JSONResponse(status_code=exc.status_code, content=body.model_dump())
            except RequestValidationError as exc:
                body = ErrorResponse(status=400, message=_describe_schema_errors(exc))
                return JSONResponse(status_code=400, content=body.model_dump())

        return compact_error_route_handler


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register custom exception handlers with the FastAPI application.

    Every domain error maps to its class-level status code and a
    StandardError body. This is called once during app startup in main.py.
    """

    @app.exception_handler(InvalidCredentialsError)
    async def invalid_credentials_handler(
        request: Request, exc: InvalidCredentialsError
    ) -> JSONResponse:
        response = _standard_error(request, exc.status_code, exc.error, exc.detail)
        response.headers["WWW-Authenticate"] = "Basic"
        return response

    @app.exception_handler(IdentityAPIError)
    async def identity_error_handler(
        request: Request, exc: IdentityAPIError
    ) -> JSONResponse:
        return _standard_error(request, exc.status_code, exc.error, exc.detail)

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(
        request: Request, exc: SQLAlchemyError
    ) -> JSONResponse:
        # The driver message may echo row values, so it stays in the log only
        logger.error("Unhandled database error on %s: %s", request.url.path, exc)
        error = DatabaseError()
        return _standard_error(request, error.status_code, error.error, error.detail)

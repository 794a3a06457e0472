"""
Authentication router — form login and logout.

Endpoints:
  POST /api/login   — Verify form credentials and start a session
  POST /api/logout  — End the session

Clients that prefer not to keep a session can send HTTP Basic credentials
on every request instead; see app.dependencies.

Security audit notes:
  - Plaintext passwords exist only in memory during request processing;
    they are compared against the Argon2 hash and never logged.
  - The session cookie holds only the user id and is signed with
    SECRET_KEY, so a client cannot forge or alter it.
  - Login failures return one generic 401 regardless of the cause.
"""

from fastapi import APIRouter, Depends, Form, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import SESSION_USER_KEY
from app.schemas.user import UserResponse
from app.services import auth_service

router = APIRouter()


@router.post(
    "/login",
    response_model=UserResponse,
    summary="Log in with a username and password",
)
async def login(
    request: Request,
    username: str = Form(...),
    password: str = Form(...),
    db: AsyncSession = Depends(get_db),
):
    """
    Authenticate with form fields `username` and `password`.

    On success the response sets the session cookie, which authenticates
    all subsequent requests until logout or expiry.
    """
    user = await auth_service.authenticate(db, username, password)

    # Drop anything left from a previous session before binding the new one
    request.session.clear()
    request.session[SESSION_USER_KEY] = user.id
    return user


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Log out",
)
async def logout(request: Request):
    """End the current session. Succeeds even without an active session."""
    request.session.clear()
    return Response(status_code=status.HTTP_204_NO_CONTENT)

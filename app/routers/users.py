"""
Users router — user management and self-registration.

Endpoints:
  POST   /api/usuarios           — Create a user               [ADMIN]
  POST   /api/usuarios/registro  — Self-register               [public]
  GET    /api/usuarios/me        — The caller's own record     [authenticated]
  GET    /api/usuarios           — Paginated list              [ADMIN, INSTRUCTOR]
  GET    /api/usuarios/{id}      — One user                    [ADMIN, INSTRUCTOR, self]
  PUT    /api/usuarios/{id}      — Full update                 [ADMIN, self]
  DELETE /api/usuarios/{id}      — Delete                      [ADMIN]

Validation and not-found errors from these endpoints use the compact
{status, message} body (CompactErrorRoute).

/me and /registro are declared before /{user_id} so they are matched
first.
"""

import math

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.dependencies import (
    get_current_principal,
    require_roles,
    require_roles_or_self,
)
from app.exceptions import CompactErrorRoute
from app.models.role import RoleName
from app.schemas.auth import Principal
from app.schemas.common import Page, PageRequest
from app.schemas.user import UserCreateRequest, UserResponse, UserUpdateRequest
from app.services import user_service
from app.services.authorization import has_any_authority

router = APIRouter(route_class=CompactErrorRoute)


def _set_location(request: Request, response: Response, user_id: int) -> None:
    response.headers["Location"] = str(request.url_for("get_user", user_id=user_id))


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
)
async def create_user(
    body: UserCreateRequest,
    request: Request,
    response: Response,
    admin: Principal = Depends(require_roles(RoleName.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a user with any role set. Admin only.

    - **email** / **username**: must not be in use (400 naming the field)
    - **roles**: every role must exist in the registry (404 naming the role)
    """
    user = await user_service.create_user(db, body)
    _set_location(request, response, user.id)
    return user


@router.post(
    "/registro",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Self-register",
)
async def register_user(
    body: UserCreateRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """
    Register a new account. Public.

    Any roles in the body are ignored: the account always receives the
    default STUDENT role.
    """
    user = await user_service.register_user(db, body)
    _set_location(request, response, user.id)
    return user


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get the caller's own record",
)
async def get_me(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.get_user_by_username(db, principal.username)


@router.get(
    "",
    response_model=Page[UserResponse],
    summary="List users",
)
async def list_users(
    page: int = Query(0, ge=0, description="0-based page index"),
    size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    sort: str | None = Query(None, description="field[,asc|desc]"),
    name: str | None = Query(None, description="Substring of the full name"),
    role: RoleName | None = Query(None, description="Only users holding this role"),
    principal: Principal = Depends(require_roles(RoleName.ADMIN, RoleName.INSTRUCTOR)),
    db: AsyncSession = Depends(get_db),
):
    page_request = PageRequest(page=page, size=size, sort=sort)
    users, total = await user_service.list_users(db, page_request, name=name, role=role)
    return Page[UserResponse](
        content=[UserResponse.model_validate(user) for user in users],
        page=page,
        size=size,
        total_elements=total,
        total_pages=math.ceil(total / size),
    )


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    summary="Get a user",
)
async def get_user(
    user_id: int,
    principal: Principal = Depends(
        require_roles_or_self(RoleName.ADMIN, RoleName.INSTRUCTOR)
    ),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.get_user(db, user_id)


@router.put(
    "/{user_id}",
    response_model=UserResponse,
    summary="Update a user",
)
async def update_user(
    user_id: int,
    body: UserUpdateRequest,
    principal: Principal = Depends(require_roles_or_self(RoleName.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """
    Replace name, username, email and (if sent) roles. The password is
    never changed here.

    A user who is not an admin may update their own record but not their
    own role set.
    """
    if body.roles is not None and not has_any_authority(principal.authorities, RoleName.ADMIN):
        current = await user_service.get_user(db, user_id)
        if {role.name for role in current.roles} != body.roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only administrators can change roles",
            )
    return await user_service.update_user(db, user_id, body)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a user",
)
async def delete_user(
    user_id: int,
    admin: Principal = Depends(require_roles(RoleName.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    await user_service.delete_user(db, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

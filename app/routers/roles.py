"""
Roles router — role registry CRUD.

Any authenticated principal may call these endpoints.

Endpoints:
  POST   /api/papeis       — Create a role
  GET    /api/papeis       — List all roles
  GET    /api/papeis/{id}  — Get one role
  PUT    /api/papeis/{id}  — Rename a role
  DELETE /api/papeis/{id}  — Delete a role (stripping it from its holders)

Errors use the application-wide StandardError body.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_principal
from app.schemas.role import RoleRequest, RoleResponse
from app.services import role_service

router = APIRouter(dependencies=[Depends(get_current_principal)])


@router.post(
    "",
    response_model=RoleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a role",
)
async def create_role(
    body: RoleRequest,
    db: AsyncSession = Depends(get_db),
):
    """Create a role. Fails with 400 if a role with this name already exists."""
    return await role_service.create_role(db, body.name)


@router.get(
    "",
    response_model=list[RoleResponse],
    summary="List all roles",
)
async def list_roles(db: AsyncSession = Depends(get_db)):
    return await role_service.list_roles(db)


@router.get(
    "/{role_id}",
    response_model=RoleResponse,
    summary="Get a role",
)
async def get_role(
    role_id: int,
    db: AsyncSession = Depends(get_db),
):
    return await role_service.get_role(db, role_id)


@router.put(
    "/{role_id}",
    response_model=RoleResponse,
    summary="Rename a role",
)
async def update_role(
    role_id: int,
    body: RoleRequest,
    db: AsyncSession = Depends(get_db),
):
    """Rename a role. Fails with 400 if another role already has the name."""
    return await role_service.update_role(db, role_id, body.name)


@router.delete(
    "/{role_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a role",
)
async def delete_role(
    role_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Delete a role. Users holding it lose the role."""
    await role_service.delete_role(db, role_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

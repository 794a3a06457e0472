"""
Pydantic schemas for Role endpoints.
"""

from pydantic import BaseModel

from app.models.role import RoleName


class RoleRequest(BaseModel):
    """Request body for POST /api/papeis and PUT /api/papeis/{id}."""
    name: RoleName


class RoleResponse(BaseModel):
    id: int
    name: RoleName

    model_config = {"from_attributes": True}

"""Roles router."""
from fastapi import APIRouter, Depends, status
from typing import List

from ats.database import Database, get_db
from ats.models.enums import Permission
from ats.schemas.role import (
    CreateRoleRequest,
    RoleResponse,
    UpdatePermissionsRequest,
    UpdatePermissionsResponse,
)
from ats.services import roles
from ats.utils.dependencies import get_current_active_user, require_permission
from ats.utils.serialization import serialize, to_object_id


router = APIRouter(prefix="/api/v1/roles", tags=["Roles"])


@router.post("/", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
async def create_role(
    request: CreateRoleRequest,
    current_user: dict = Depends(require_permission(Permission.MANAGE_TEAMS)),
    db: Database = Depends(get_db)
):
    role = await roles.create_role(db, request.name, request.description)
    return RoleResponse(**serialize(role))


@router.get("/", response_model=List[RoleResponse])
async def list_roles(
    current_user: dict = Depends(get_current_active_user),
    db: Database = Depends(get_db)
):
    return [RoleResponse(**serialize(r)) for r in await roles.list_roles(db)]


@router.patch("/{role_id}/permissions", response_model=UpdatePermissionsResponse)
async def update_permissions(
    role_id: str,
    request: UpdatePermissionsRequest,
    current_user: dict = Depends(require_permission(Permission.MANAGE_TEAMS)),
    db: Database = Depends(get_db)
):
    """Grant and revoke permissions on a role."""
    result = await roles.update_role_permissions(
        db, to_object_id(role_id, "role_id"), request.add, request.remove
    )
    return UpdatePermissionsResponse(**serialize(result))

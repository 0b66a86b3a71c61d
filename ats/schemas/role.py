"""Role schemas."""
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

from ats.models.enums import Permission, RoleName


class CreateRoleRequest(BaseModel):
    name: RoleName
    description: Optional[str] = None


class RoleResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    permissions: List[str] = []
    created_at: datetime


class UpdatePermissionsRequest(BaseModel):
    """Permissions to grant and revoke in one call."""
    add: List[Permission] = []
    remove: List[Permission] = []


class UpdatePermissionsResponse(BaseModel):
    role_id: str
    added: List[str]
    removed: List[str]

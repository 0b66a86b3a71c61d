"""Departments router."""
from fastapi import APIRouter, Depends, HTTPException, status
from typing import List, Optional

from ats.database import Database, get_db
from ats.models.enums import Permission
from ats.schemas.job import CreateDepartmentRequest, DepartmentResponse, UpdateDepartmentRequest
from ats.services import departments
from ats.utils.dependencies import get_current_active_user, require_permission
from ats.utils.serialization import serialize, to_object_id


router = APIRouter(prefix="/api/v1/departments", tags=["Departments"])


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_department(
    request: CreateDepartmentRequest,
    current_user: dict = Depends(require_permission(Permission.EDIT_JOBS)),
    db: Database = Depends(get_db)
):
    """Create a department together with its jobs."""
    department = await departments.create_department(db, request, actor_id=current_user["_id"])
    return serialize(department)


@router.get("/", response_model=List[DepartmentResponse])
async def list_departments(
    hiring_manager_id: Optional[str] = None,
    current_user: dict = Depends(get_current_active_user),
    db: Database = Depends(get_db)
):
    manager = to_object_id(hiring_manager_id, "hiring_manager_id") if hiring_manager_id else None
    return [DepartmentResponse(**serialize(d)) for d in await departments.list_departments(db, manager)]


@router.get("/{department_id}")
async def get_department(
    department_id: str,
    current_user: dict = Depends(get_current_active_user),
    db: Database = Depends(get_db)
):
    department = await departments.get_department_view(db, to_object_id(department_id, "department_id"))
    if not department:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Department not found"
        )
    return serialize(department)


@router.patch("/{department_id}")
async def update_department(
    department_id: str,
    request: UpdateDepartmentRequest,
    current_user: dict = Depends(require_permission(Permission.EDIT_JOBS)),
    db: Database = Depends(get_db)
):
    department = await departments.update_department(
        db, to_object_id(department_id, "department_id"), request, actor_id=current_user["_id"]
    )
    return serialize(department)


@router.delete("/{department_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_department(
    department_id: str,
    current_user: dict = Depends(require_permission(Permission.EDIT_JOBS)),
    db: Database = Depends(get_db)
):
    """Delete a department and everything under its jobs."""
    await departments.delete_department(db, to_object_id(department_id, "department_id"), actor_id=current_user["_id"])

"""Pipeline router."""
from fastapi import APIRouter, Depends, HTTPException, status
from typing import List, Literal, Optional

from ats.database import Database, get_db
from ats.models.enums import Permission, PipelineStatus
from ats.schemas.pipeline import (
    CreatePipelineRequest,
    PipelineResponse,
    StageRequest,
    StageResponse,
    UpdatePipelineRequest,
    UpdateStageRequest,
)
from ats.services import pipelines
from ats.utils.dependencies import get_current_active_user, require_permission
from ats.utils.serialization import serialize, to_object_id


router = APIRouter(prefix="/api/v1/pipelines", tags=["Pipelines"])


@router.post("/", response_model=PipelineResponse, status_code=status.HTTP_201_CREATED)
async def create_pipeline(
    request: CreatePipelineRequest,
    current_user: dict = Depends(require_permission(Permission.EDIT_JOBS)),
    db: Database = Depends(get_db)
):
    """Create a new recruitment pipeline."""
    pipeline = await pipelines.create_pipeline(
        db, request, created_by_id=current_user["_id"], actor_id=current_user["_id"]
    )
    return PipelineResponse(**serialize(pipeline))


@router.get("/", response_model=List[PipelineResponse])
async def list_pipelines(
    status: Optional[PipelineStatus] = None,
    sort_by: Literal["name", "created_at", "status"] = "created_at",
    sort_order: Literal["asc", "desc"] = "asc",
    current_user: dict = Depends(get_current_active_user),
    db: Database = Depends(get_db)
):
    """List all pipelines with their stages."""
    result = await pipelines.list_pipelines(
        db, status=status.value if status else None, sort_by=sort_by, sort_order=sort_order
    )
    return [PipelineResponse(**serialize(p)) for p in result]


@router.get("/{pipeline_id}")
async def get_pipeline(
    pipeline_id: str,
    current_user: dict = Depends(get_current_active_user),
    db: Database = Depends(get_db)
):
    """Get a specific pipeline."""
    pipeline = await pipelines.get_pipeline_view(db, to_object_id(pipeline_id, "pipeline_id"))
    if not pipeline:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Pipeline not found"
        )
    return serialize(pipeline)


@router.put("/{pipeline_id}", response_model=PipelineResponse)
async def update_pipeline(
    pipeline_id: str,
    request: UpdatePipelineRequest,
    current_user: dict = Depends(require_permission(Permission.EDIT_JOBS)),
    db: Database = Depends(get_db)
):
    """Update a pipeline and, when given, sync its stages."""
    pipeline = await pipelines.update_pipeline(
        db, to_object_id(pipeline_id, "pipeline_id"), request, actor_id=current_user["_id"]
    )
    return PipelineResponse(**serialize(pipeline))


@router.delete("/{pipeline_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_pipeline(
    pipeline_id: str,
    current_user: dict = Depends(require_permission(Permission.EDIT_JOBS)),
    db: Database = Depends(get_db)
):
    """Delete a pipeline and its stages."""
    await pipelines.delete_pipeline(db, to_object_id(pipeline_id, "pipeline_id"), actor_id=current_user["_id"])


@router.post("/{pipeline_id}/stages", response_model=StageResponse, status_code=status.HTTP_201_CREATED)
async def add_stage(
    pipeline_id: str,
    request: StageRequest,
    current_user: dict = Depends(require_permission(Permission.EDIT_JOBS)),
    db: Database = Depends(get_db)
):
    stage = await pipelines.add_stage(
        db, to_object_id(pipeline_id, "pipeline_id"), request, actor_id=current_user["_id"]
    )
    return StageResponse(**serialize(stage))


@router.patch("/stages/{stage_id}", response_model=StageResponse)
async def update_stage(
    stage_id: str,
    request: UpdateStageRequest,
    current_user: dict = Depends(require_permission(Permission.EDIT_JOBS)),
    db: Database = Depends(get_db)
):
    stage = await pipelines.update_stage(db, to_object_id(stage_id, "stage_id"), request, actor_id=current_user["_id"])
    return StageResponse(**serialize(stage))


@router.delete("/stages/{stage_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_stage(
    stage_id: str,
    current_user: dict = Depends(require_permission(Permission.EDIT_JOBS)),
    db: Database = Depends(get_db)
):
    await pipelines.delete_stage(db, to_object_id(stage_id, "stage_id"), actor_id=current_user["_id"])

"""Pipeline schemas."""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from ats.models.enums import PipelineStatus, StageStatus
from ats.schemas.common import FutureDatetime


class StageRequest(BaseModel):
    """Request schema for a hiring stage; ``id`` marks an existing stage."""
    id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    order: Optional[int] = None
    mandatory: bool = False
    schedule: Optional[FutureDatetime] = None
    status: StageStatus = StageStatus.UPCOMING
    max_candidates_allowed: Optional[int] = Field(default=None, gt=0)
    assigned_to_id: Optional[str] = None


class CreatePipelineRequest(BaseModel):
    """Request to create a pipeline."""
    name: str = Field(..., min_length=1, max_length=200)
    description: str
    status: PipelineStatus = PipelineStatus.UPCOMING
    stages: Optional[List[StageRequest]] = None


class UpdatePipelineRequest(BaseModel):
    """``stages`` given means: keep exactly these stages."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    status: Optional[PipelineStatus] = None
    stages: Optional[List[StageRequest]] = None


class UpdateStageRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    order: Optional[int] = None
    mandatory: Optional[bool] = None
    schedule: Optional[FutureDatetime] = None
    status: Optional[StageStatus] = None
    max_candidates_allowed: Optional[int] = Field(default=None, gt=0)
    assigned_to_id: Optional[str] = None


class StageResponse(BaseModel):
    id: str
    pipeline_id: str
    name: str
    description: Optional[str] = None
    order: int
    mandatory: bool
    schedule: Optional[datetime] = None
    status: str
    max_candidates_allowed: Optional[int] = None
    assigned_to_id: Optional[str] = None


class PipelineResponse(BaseModel):
    """Response schema for pipeline."""
    id: str
    name: str
    description: str
    status: str
    created_by_id: str
    stages: List[StageResponse] = []
    stage_count: int = 0
    created_at: datetime
    updated_at: datetime

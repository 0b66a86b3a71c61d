"""Hiring pipeline database models."""
from pydantic import Field
from typing import Optional
from datetime import datetime

from ats.models.common import DocumentModel, PyObjectId
from ats.models.enums import PipelineStatus, StageStatus


class HiringPipelineModel(DocumentModel):
    """Recruitment pipeline model."""

    name: str                        # "Software Engineer Hiring"
    description: str
    status: PipelineStatus = PipelineStatus.UPCOMING
    created_by_id: PyObjectId


class HiringStageModel(DocumentModel):
    """One step of a pipeline; stored in its own collection."""

    pipeline_id: PyObjectId
    name: str                        # "Application", "Screening", "Tech Interview"
    description: Optional[str] = None
    order: int = 0
    mandatory: bool = False
    schedule: Optional[datetime] = None
    status: StageStatus = StageStatus.UPCOMING
    max_candidates_allowed: Optional[int] = Field(default=None, gt=0)
    assigned_to_id: Optional[PyObjectId] = None

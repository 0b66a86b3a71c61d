"""Interview database models."""
from pydantic import Field
from typing import List
from datetime import datetime

from ats.models.common import DocumentModel, PyObjectId
from ats.models.enums import InterviewStatus


class InterviewModel(DocumentModel):
    """A scheduled interview for a candidate in a given stage."""

    candidate_id: PyObjectId = Field(..., description="The candidate being interviewed")
    stage_id: PyObjectId = Field(..., description="The hiring stage it belongs to")
    scheduled_at: datetime
    status: InterviewStatus = InterviewStatus.SCHEDULED


class InterviewParticipantModel(DocumentModel):
    interview_id: PyObjectId
    interviewer_id: PyObjectId


class ChecklistModel(DocumentModel):
    interview_id: PyObjectId
    updated_by_id: PyObjectId
    checklist: List[str] = Field(default_factory=list)

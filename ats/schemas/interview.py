"""Interview schemas."""
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

from ats.models.enums import InterviewStatus
from ats.schemas.common import FutureDatetime


class ScheduleInterviewRequest(BaseModel):
    """Request to schedule an interview."""
    candidate_id: str
    stage_id: str
    scheduled_at: FutureDatetime
    interviewer_ids: List[str] = []


class UpdateInterviewRequest(BaseModel):
    status: Optional[InterviewStatus] = None
    scheduled_at: Optional[FutureDatetime] = None


class AddParticipantRequest(BaseModel):
    interviewer_id: str


class ChecklistRequest(BaseModel):
    checklist: List[str]


class InterviewResponse(BaseModel):
    id: str
    candidate_id: str
    stage_id: str
    scheduled_at: datetime
    status: str
    interviewer_ids: List[str] = []
    created_at: datetime


class ChecklistResponse(BaseModel):
    id: str
    interview_id: str
    updated_by_id: str
    checklist: List[str]
    updated_at: datetime

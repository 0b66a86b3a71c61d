"""Candidate schemas."""
from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional
from datetime import datetime

from ats.models.candidate import PHONE_PATTERN
from ats.models.enums import CandidateStatus, NoteType


class StageParticipationRequest(BaseModel):
    """Candidate's result in one stage."""
    stage_id: str
    appeared: bool = False
    qualified: bool = False
    score: Optional[float] = Field(default=None, ge=0, le=100)
    feedback: Optional[str] = Field(default=None, max_length=1000)


class CreateCandidateRequest(BaseModel):
    """Request to create a candidate."""
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    age: Optional[int] = Field(default=None, gt=0)
    resume_url: Optional[str] = None
    referral_token_id: Optional[str] = None
    highest_qualification: Optional[str] = Field(default=None, max_length=100)
    status: Optional[CandidateStatus] = None
    skills: List[str] = []
    stage_participation: List[StageParticipationRequest] = []


class UpdateCandidateRequest(BaseModel):
    """Request to update a candidate; ``skills`` replaces the whole set."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    age: Optional[int] = Field(default=None, gt=0)
    resume_url: Optional[str] = None
    highest_qualification: Optional[str] = Field(default=None, max_length=100)
    status: Optional[CandidateStatus] = None
    skills: Optional[List[str]] = None
    stage_participation: Optional[List[StageParticipationRequest]] = None


class StatusChangeRequest(BaseModel):
    status: CandidateStatus


class CandidateResponse(BaseModel):
    """Response schema for candidate."""
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    age: Optional[int] = None
    resume_url: Optional[str] = None
    referral_token_id: Optional[str] = None
    highest_qualification: Optional[str] = None
    status: str
    created_at: datetime
    updated_at: datetime


class StageParticipantResponse(BaseModel):
    id: str
    candidate_id: str
    stage_id: str
    appeared: bool
    qualified: bool
    score: Optional[float] = None
    feedback: Optional[str] = None


class UpdateStageParticipationRequest(BaseModel):
    appeared: Optional[bool] = None
    qualified: Optional[bool] = None
    score: Optional[float] = Field(default=None, ge=0, le=100)
    feedback: Optional[str] = Field(default=None, max_length=1000)


class CreateNoteRequest(BaseModel):
    note_type: NoteType = NoteType.GENERAL
    note: str = Field(..., min_length=1)


class NoteResponse(BaseModel):
    id: str
    candidate_id: str
    created_by_id: str
    note_type: str
    note: str
    created_at: datetime


class CreateAttachmentRequest(BaseModel):
    """File already uploaded to storage; only its URL is recorded."""
    file_name: str = Field(..., min_length=1)
    file_url: str = Field(..., min_length=1)


class AttachmentResponse(BaseModel):
    id: str
    candidate_id: str
    file_name: str
    file_url: str
    uploaded_by_id: str
    uploaded_at: datetime

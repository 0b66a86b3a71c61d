"""Candidate database models."""
from pydantic import EmailStr, Field
from typing import Optional
from datetime import datetime

from ats.models.common import DocumentModel, PyObjectId
from ats.models.enums import CandidateStatus, NoteType


PHONE_PATTERN = r"^\+?[1-9]\d{1,14}$"


class CandidateModel(DocumentModel):
    """Candidate model."""

    name: str
    email: EmailStr
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    age: Optional[int] = Field(default=None, gt=0)
    resume_url: Optional[str] = None
    referral_token_id: Optional[PyObjectId] = None
    highest_qualification: Optional[str] = None
    status: CandidateStatus = CandidateStatus.APPLIED


class CandidateSkillModel(DocumentModel):
    candidate_id: PyObjectId
    skill: str


class StageParticipantModel(DocumentModel):
    """Candidate's result in one hiring stage; the pair is unique."""

    candidate_id: PyObjectId
    stage_id: PyObjectId
    appeared: bool = False
    qualified: bool = False
    score: Optional[float] = Field(default=None, ge=0, le=100)
    feedback: Optional[str] = None


class NoteModel(DocumentModel):
    created_by_id: PyObjectId
    candidate_id: PyObjectId
    note_type: NoteType = NoteType.GENERAL
    note: str


class AttachmentModel(DocumentModel):
    """Reference to a file already stored elsewhere."""

    candidate_id: PyObjectId
    file_name: str
    file_url: str
    uploaded_by_id: PyObjectId
    uploaded_at: datetime = Field(default_factory=datetime.utcnow)

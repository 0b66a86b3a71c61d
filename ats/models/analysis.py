"""Resume analysis database models."""
from pydantic import Field
from typing import List, Optional

from ats.models.common import DocumentModel, PyObjectId


class ResumeAnalysisModel(DocumentModel):
    """LLM match of one resume against one job description."""

    candidate_name: str
    email: str
    score: Optional[float] = Field(default=None, ge=0, le=100)
    good_points: List[str] = Field(default_factory=list)
    bad_points: List[str] = Field(default_factory=list)
    job_description: str
    resume_text: str
    file_name: Optional[str] = None
    job_id: Optional[PyObjectId] = None

"""Resume analysis schemas."""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class ResumeMatch(BaseModel):
    """What the matcher returns for one resume."""
    candidate_name: str
    email: str
    score: float = Field(..., ge=1, le=100)
    good_points: List[str] = []
    bad_points: List[str] = []


class AnalysisResponse(BaseModel):
    id: str
    candidate_name: str
    email: str
    score: Optional[float] = None
    good_points: List[str] = []
    bad_points: List[str] = []
    file_name: Optional[str] = None
    job_id: Optional[str] = None
    created_at: datetime


class FailedAnalysis(BaseModel):
    file_name: str
    candidate_name: Optional[str] = None
    reason: str


class AnalyseResumesResponse(BaseModel):
    success: bool
    saved: List[AnalysisResponse]
    failed: List[FailedAnalysis]

"""Job application and referral schemas."""
from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from ats.models.enums import ApplicationSource


class CreateApplicationRequest(BaseModel):
    candidate_id: str
    job_id: str
    source: ApplicationSource = ApplicationSource.DIRECT


class ApplicationResponse(BaseModel):
    id: str
    candidate_id: str
    job_id: str
    source: str
    applied_at: datetime


class CreateReferralRequest(BaseModel):
    job_id: str


class ReferralResponse(BaseModel):
    id: str
    token: str
    referred_by_id: str
    job_id: str
    expires_at: datetime
    created_at: Optional[datetime] = None

"""Department, job, application and referral database models."""
from pydantic import Field, model_validator
from typing import Optional
from datetime import datetime

from ats.models.common import DocumentModel, PyObjectId
from ats.models.enums import ApplicationSource, ContractType, JobStatus, WorkType


class DepartmentModel(DocumentModel):
    """Department owning many jobs."""

    name: str
    description: str
    hiring_manager_id: PyObjectId


class JobModel(DocumentModel):
    """Job opening attached to a department and a hiring pipeline."""

    title: str
    department_id: PyObjectId
    hiring_manager_id: PyObjectId
    hiring_pipeline_id: PyObjectId
    work_type: WorkType = WorkType.ONSITE
    work_location: str
    contract: ContractType = ContractType.FULL_TIME
    head_count: int = Field(..., gt=0)
    minimum_salary: float = Field(..., ge=0)
    maximum_salary: float = Field(..., ge=0)
    status: JobStatus = JobStatus.DRAFT
    job_description: str

    @model_validator(mode="after")
    def check_salary_range(self):
        if self.maximum_salary < self.minimum_salary:
            raise ValueError("maximum_salary must be greater than or equal to minimum_salary")
        return self


class JobSkillModel(DocumentModel):
    job_id: PyObjectId
    skill: str


class JobApplicationModel(DocumentModel):
    """One candidate applying to one job; the pair is unique."""

    candidate_id: PyObjectId
    job_id: PyObjectId
    applied_at: datetime = Field(default_factory=datetime.utcnow)
    source: ApplicationSource = ApplicationSource.DIRECT


class ReferralTokenModel(DocumentModel):
    """Referral link; removed by the TTL index once ``expires_at`` passes."""

    token: str
    referred_by_id: PyObjectId
    job_id: PyObjectId
    expires_at: datetime

"""Job and department schemas."""
from pydantic import BaseModel, Field, model_validator
from typing import List, Optional
from datetime import datetime

from ats.models.enums import ContractType, JobStatus, WorkType


def _check_salary(minimum: Optional[float], maximum: Optional[float]):
    if minimum is not None and maximum is not None and maximum < minimum:
        raise ValueError("maximum_salary must be greater than or equal to minimum_salary")


class JobFields(BaseModel):
    """Fields shared by standalone and department-nested job input."""
    title: str = Field(..., min_length=1, max_length=200)
    hiring_manager_id: str
    hiring_pipeline_id: str
    work_type: WorkType = WorkType.ONSITE
    work_location: str
    contract: ContractType = ContractType.FULL_TIME
    head_count: int = Field(..., gt=0)
    minimum_salary: float = Field(..., ge=0)
    maximum_salary: float = Field(..., ge=0)
    status: JobStatus = JobStatus.DRAFT
    job_description: str = Field(..., min_length=1)
    skills: List[str] = []

    @model_validator(mode="after")
    def check_salary_range(self):
        _check_salary(self.minimum_salary, self.maximum_salary)
        return self


class CreateJobRequest(JobFields):
    """Request to create a job."""
    department_id: str


class DepartmentJobRequest(JobFields):
    """Job inside a department payload; ``id`` marks an existing job."""
    id: Optional[str] = None


class UpdateJobRequest(BaseModel):
    """Request to update a job."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    department_id: Optional[str] = None
    hiring_manager_id: Optional[str] = None
    hiring_pipeline_id: Optional[str] = None
    work_type: Optional[WorkType] = None
    work_location: Optional[str] = None
    contract: Optional[ContractType] = None
    head_count: Optional[int] = Field(default=None, gt=0)
    minimum_salary: Optional[float] = Field(default=None, ge=0)
    maximum_salary: Optional[float] = Field(default=None, ge=0)
    status: Optional[JobStatus] = None
    job_description: Optional[str] = None

    @model_validator(mode="after")
    def check_salary_range(self):
        _check_salary(self.minimum_salary, self.maximum_salary)
        return self


class JobSkillsRequest(BaseModel):
    skills: List[str]


class JobResponse(BaseModel):
    """Response schema for job."""
    id: str
    title: str
    department_id: str
    hiring_manager_id: str
    hiring_pipeline_id: str
    work_type: str
    work_location: str
    contract: str
    head_count: int
    minimum_salary: float
    maximum_salary: float
    status: str
    job_description: str
    skills: List[str] = []
    created_at: datetime
    updated_at: datetime


class CreateDepartmentRequest(BaseModel):
    """Request to create a department, optionally with its jobs."""
    name: str = Field(..., min_length=1, max_length=100)
    description: str
    hiring_manager_id: str
    jobs: List[DepartmentJobRequest] = []


class UpdateDepartmentRequest(BaseModel):
    """``jobs`` given means: keep exactly these jobs."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    hiring_manager_id: Optional[str] = None
    jobs: Optional[List[DepartmentJobRequest]] = None


class DepartmentResponse(BaseModel):
    id: str
    name: str
    description: str
    hiring_manager_id: str
    job_count: int = 0
    created_at: datetime
    updated_at: datetime

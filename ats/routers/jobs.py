"""Jobs router."""
from fastapi import APIRouter, Depends, HTTPException, status
from typing import List, Optional

from ats.database import Database, get_db
from ats.models.enums import JobStatus, Permission
from ats.schemas.job import CreateJobRequest, JobResponse, JobSkillsRequest, UpdateJobRequest
from ats.services import jobs
from ats.utils.dependencies import get_current_active_user, require_permission
from ats.utils.serialization import serialize, to_object_id


router = APIRouter(prefix="/api/v1/jobs", tags=["Jobs"])


@router.post("/", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
async def create_job(
    request: CreateJobRequest,
    current_user: dict = Depends(require_permission(Permission.EDIT_JOBS)),
    db: Database = Depends(get_db)
):
    job = await jobs.create_job(db, request.department_id, request, actor_id=current_user["_id"])
    return JobResponse(**serialize(job))


@router.get("/", response_model=List[JobResponse])
async def list_jobs(
    department_id: Optional[str] = None,
    status: Optional[JobStatus] = None,
    hiring_manager_id: Optional[str] = None,
    current_user: dict = Depends(get_current_active_user),
    db: Database = Depends(get_db)
):
    """List jobs, optionally filtered."""
    result = await jobs.list_jobs(
        db,
        department_id=to_object_id(department_id, "department_id") if department_id else None,
        status=status.value if status else None,
        hiring_manager_id=to_object_id(hiring_manager_id, "hiring_manager_id") if hiring_manager_id else None,
    )
    return [JobResponse(**serialize(j)) for j in result]


@router.get("/{job_id}")
async def get_job(
    job_id: str,
    current_user: dict = Depends(get_current_active_user),
    db: Database = Depends(get_db)
):
    job = await jobs.get_job_view(db, to_object_id(job_id, "job_id"))
    if not job:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Job not found"
        )
    return serialize(job)


@router.patch("/{job_id}", response_model=JobResponse)
async def update_job(
    job_id: str,
    request: UpdateJobRequest,
    current_user: dict = Depends(require_permission(Permission.EDIT_JOBS)),
    db: Database = Depends(get_db)
):
    job_oid = to_object_id(job_id, "job_id")
    await jobs.update_job(db, job_oid, request, actor_id=current_user["_id"])
    return JobResponse(**serialize(await jobs.get_job_view(db, job_oid)))


@router.put("/{job_id}/skills", response_model=List[str])
async def set_skills(
    job_id: str,
    request: JobSkillsRequest,
    current_user: dict = Depends(require_permission(Permission.EDIT_JOBS)),
    db: Database = Depends(get_db)
):
    job_oid = to_object_id(job_id, "job_id")
    if not await db.jobs.find_one({"_id": job_oid}, {"_id": 1}):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return await jobs.set_job_skills(db, job_oid, request.skills)


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_job(
    job_id: str,
    current_user: dict = Depends(require_permission(Permission.EDIT_JOBS)),
    db: Database = Depends(get_db)
):
    await jobs.delete_job(db, to_object_id(job_id, "job_id"), actor_id=current_user["_id"])

"""Resume analysis router."""
from fastapi import APIRouter, Depends, File, Form, UploadFile
from typing import List, Optional

from ats.database import Database, get_db
from ats.models.enums import Permission
from ats.schemas.analysis import AnalyseResumesResponse, AnalysisResponse
from ats.services.analysis import analyse_resumes, list_analyses
from ats.services.resume_matcher import ResumeMatcher
from ats.utils.dependencies import get_current_active_user, require_permission
from ats.utils.serialization import serialize, to_object_id


router = APIRouter(prefix="/api/v1/analyses", tags=["Resume Analysis"])


def get_resume_matcher() -> ResumeMatcher:
    return ResumeMatcher()


@router.post("/", response_model=AnalyseResumesResponse)
async def analyse(
    resumes: List[UploadFile] = File(...),
    job_description: Optional[str] = Form(None),
    job_id: Optional[str] = Form(None),
    current_user: dict = Depends(get_current_active_user),
    matcher: ResumeMatcher = Depends(get_resume_matcher),
    db: Database = Depends(get_db)
):
    """Score uploaded resumes against a job description and store the results."""
    files = [(upload.filename or "resume", await upload.read()) for upload in resumes]
    result = await analyse_resumes(
        db,
        files,
        job_description=job_description,
        job_id=to_object_id(job_id, "job_id") if job_id else None,
        matcher=matcher,
    )
    return AnalyseResumesResponse(
        success=result["success"],
        saved=[AnalysisResponse(**serialize(doc)) for doc in result["saved"]],
        failed=result["failed"],
    )


@router.get("/", response_model=List[AnalysisResponse])
async def list_all(
    job_id: Optional[str] = None,
    current_user: dict = Depends(require_permission(Permission.VIEW_CANDIDATES)),
    db: Database = Depends(get_db)
):
    result = await list_analyses(db, to_object_id(job_id, "job_id") if job_id else None)
    return [AnalysisResponse(**serialize(doc)) for doc in result]

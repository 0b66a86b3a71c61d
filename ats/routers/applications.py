"""Job application and referral router."""
from fastapi import APIRouter, Depends, HTTPException, status
from typing import List, Optional

from ats.database import Database, get_db
from ats.schemas.application import (
    ApplicationResponse,
    CreateApplicationRequest,
    CreateReferralRequest,
    ReferralResponse,
)
from ats.services import applications
from ats.utils.dependencies import get_current_active_user
from ats.utils.serialization import serialize, to_object_id


router = APIRouter(prefix="/api/v1", tags=["Applications"])


@router.post("/applications", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
async def create_application(
    request: CreateApplicationRequest,
    current_user: dict = Depends(get_current_active_user),
    db: Database = Depends(get_db)
):
    application = await applications.create_job_application(
        db,
        to_object_id(request.candidate_id, "candidate_id"),
        to_object_id(request.job_id, "job_id"),
        request.source,
    )
    return ApplicationResponse(**serialize(application))


@router.get("/applications", response_model=List[ApplicationResponse])
async def list_applications(
    job_id: Optional[str] = None,
    candidate_id: Optional[str] = None,
    current_user: dict = Depends(get_current_active_user),
    db: Database = Depends(get_db)
):
    result = await applications.list_applications(
        db,
        job_id=to_object_id(job_id, "job_id") if job_id else None,
        candidate_id=to_object_id(candidate_id, "candidate_id") if candidate_id else None,
    )
    return [ApplicationResponse(**serialize(a)) for a in result]


@router.delete("/applications/{application_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_application(
    application_id: str,
    current_user: dict = Depends(get_current_active_user),
    db: Database = Depends(get_db)
):
    await applications.delete_job_application(db, to_object_id(application_id, "application_id"))


@router.post("/referrals", response_model=ReferralResponse, status_code=status.HTTP_201_CREATED)
async def create_referral(
    request: CreateReferralRequest,
    current_user: dict = Depends(get_current_active_user),
    db: Database = Depends(get_db)
):
    """Issue a referral link for a job on behalf of the current user."""
    referral = await applications.create_referral_token(
        db, current_user["_id"], to_object_id(request.job_id, "job_id")
    )
    return ReferralResponse(**serialize(referral))


@router.get("/referrals/{token}", response_model=ReferralResponse)
async def resolve_referral(
    token: str,
    db: Database = Depends(get_db)
):
    referral = await applications.resolve_referral_token(db, token)
    if not referral:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Referral link is invalid or has expired"
        )
    return ReferralResponse(**serialize(referral))

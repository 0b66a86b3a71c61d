"""Interview router."""
from fastapi import APIRouter, Depends, HTTPException, status
from typing import List, Optional

from ats.database import Database, get_db
from ats.models.enums import Permission
from ats.schemas.interview import (
    AddParticipantRequest,
    ChecklistRequest,
    ChecklistResponse,
    InterviewResponse,
    ScheduleInterviewRequest,
    UpdateInterviewRequest,
)
from ats.services import interviews
from ats.utils.dependencies import get_current_active_user, require_permission
from ats.utils.serialization import serialize, to_object_id


router = APIRouter(prefix="/api/v1/interviews", tags=["Interviews"])


@router.post("/", response_model=InterviewResponse, status_code=status.HTTP_201_CREATED)
async def schedule_interview(
    request: ScheduleInterviewRequest,
    current_user: dict = Depends(require_permission(Permission.ASSIGN_INTERVIEWS)),
    db: Database = Depends(get_db)
):
    """Schedule an interview and assign its panel."""
    interview = await interviews.schedule_interview(
        db,
        to_object_id(request.candidate_id, "candidate_id"),
        to_object_id(request.stage_id, "stage_id"),
        request.scheduled_at,
        [to_object_id(i, "interviewer_ids") for i in request.interviewer_ids],
        actor_id=current_user["_id"],
    )
    return InterviewResponse(**serialize(interview))


@router.get("/", response_model=List[InterviewResponse])
async def list_interviews(
    candidate_id: Optional[str] = None,
    stage_id: Optional[str] = None,
    current_user: dict = Depends(get_current_active_user),
    db: Database = Depends(get_db)
):
    result = await interviews.list_interviews(
        db,
        candidate_id=to_object_id(candidate_id, "candidate_id") if candidate_id else None,
        stage_id=to_object_id(stage_id, "stage_id") if stage_id else None,
    )
    return [InterviewResponse(**serialize(i)) for i in result]


@router.get("/{interview_id}")
async def get_interview(
    interview_id: str,
    current_user: dict = Depends(get_current_active_user),
    db: Database = Depends(get_db)
):
    interview = await interviews.get_interview(db, to_object_id(interview_id, "interview_id"))
    if not interview:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Interview not found"
        )
    return serialize(interview)


@router.patch("/{interview_id}", response_model=InterviewResponse)
async def update_interview(
    interview_id: str,
    request: UpdateInterviewRequest,
    current_user: dict = Depends(get_current_active_user),
    db: Database = Depends(get_db)
):
    interview = await interviews.update_interview(
        db, to_object_id(interview_id, "interview_id"), request.model_dump()
    )
    return InterviewResponse(**serialize(interview))


@router.post("/{interview_id}/participants", status_code=status.HTTP_201_CREATED)
async def add_participant(
    interview_id: str,
    request: AddParticipantRequest,
    current_user: dict = Depends(require_permission(Permission.ASSIGN_INTERVIEWS)),
    db: Database = Depends(get_db)
):
    row = await interviews.add_interview_participant(
        db, to_object_id(interview_id, "interview_id"), to_object_id(request.interviewer_id, "interviewer_id")
    )
    return serialize(row)


@router.delete("/{interview_id}/participants/{interviewer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_participant(
    interview_id: str,
    interviewer_id: str,
    current_user: dict = Depends(require_permission(Permission.ASSIGN_INTERVIEWS)),
    db: Database = Depends(get_db)
):
    await interviews.remove_interview_participant(
        db, to_object_id(interview_id, "interview_id"), to_object_id(interviewer_id, "interviewer_id")
    )


@router.put("/{interview_id}/checklist", response_model=ChecklistResponse)
async def save_checklist(
    interview_id: str,
    request: ChecklistRequest,
    current_user: dict = Depends(get_current_active_user),
    db: Database = Depends(get_db)
):
    checklist = await interviews.save_checklist(
        db, to_object_id(interview_id, "interview_id"), current_user["_id"], request.checklist
    )
    return ChecklistResponse(**serialize(checklist))


@router.delete("/{interview_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_interview(
    interview_id: str,
    current_user: dict = Depends(require_permission(Permission.ASSIGN_INTERVIEWS)),
    db: Database = Depends(get_db)
):
    await interviews.delete_interview(db, to_object_id(interview_id, "interview_id"), actor_id=current_user["_id"])

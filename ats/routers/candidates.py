"""Candidate router."""
from fastapi import APIRouter, Depends, HTTPException, status
from typing import List, Optional

from ats.database import Database, get_db
from ats.models.enums import CandidateStatus, NoteType, Permission
from ats.schemas.candidate import (
    AttachmentResponse,
    CandidateResponse,
    CreateAttachmentRequest,
    CreateCandidateRequest,
    CreateNoteRequest,
    NoteResponse,
    StageParticipantResponse,
    StageParticipationRequest,
    StatusChangeRequest,
    UpdateCandidateRequest,
    UpdateStageParticipationRequest,
)
from ats.services import candidates, notes
from ats.utils.dependencies import get_current_active_user, require_permission
from ats.utils.serialization import serialize, to_object_id


router = APIRouter(prefix="/api/v1/candidates", tags=["Candidates"])


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_candidate(
    request: CreateCandidateRequest,
    current_user: dict = Depends(get_current_active_user),
    db: Database = Depends(get_db)
):
    """Create a candidate with skills and stage results."""
    candidate = await candidates.create_candidate(db, request, actor_id=current_user["_id"])
    return serialize(candidate)


@router.get("/", response_model=List[CandidateResponse])
async def list_candidates(
    status: Optional[CandidateStatus] = None,
    search: Optional[str] = None,
    current_user: dict = Depends(require_permission(Permission.VIEW_CANDIDATES)),
    db: Database = Depends(get_db)
):
    """List candidates, newest first."""
    result = await candidates.list_candidates(db, status=status.value if status else None, search=search)
    return [CandidateResponse(**serialize(c)) for c in result]


@router.get("/{candidate_id}")
async def get_candidate(
    candidate_id: str,
    current_user: dict = Depends(require_permission(Permission.VIEW_CANDIDATES)),
    db: Database = Depends(get_db)
):
    candidate = await candidates.get_candidate_view(db, to_object_id(candidate_id, "candidate_id"))
    if not candidate:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Candidate not found"
        )
    return serialize(candidate)


@router.patch("/{candidate_id}")
async def update_candidate(
    candidate_id: str,
    request: UpdateCandidateRequest,
    current_user: dict = Depends(get_current_active_user),
    db: Database = Depends(get_db)
):
    candidate = await candidates.update_candidate(
        db, to_object_id(candidate_id, "candidate_id"), request, actor_id=current_user["_id"]
    )
    return serialize(candidate)


@router.post("/{candidate_id}/status", response_model=CandidateResponse)
async def change_status(
    candidate_id: str,
    request: StatusChangeRequest,
    current_user: dict = Depends(get_current_active_user),
    db: Database = Depends(get_db)
):
    """Move the candidate to the next status."""
    candidate = await candidates.change_candidate_status(
        db, to_object_id(candidate_id, "candidate_id"), request.status, actor_id=current_user["_id"]
    )
    return CandidateResponse(**serialize(candidate))


@router.delete("/{candidate_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_candidate(
    candidate_id: str,
    current_user: dict = Depends(get_current_active_user),
    db: Database = Depends(get_db)
):
    await candidates.delete_candidate(db, to_object_id(candidate_id, "candidate_id"), actor_id=current_user["_id"])


@router.post("/{candidate_id}/stages", response_model=StageParticipantResponse, status_code=status.HTTP_201_CREATED)
async def add_stage_participation(
    candidate_id: str,
    request: StageParticipationRequest,
    current_user: dict = Depends(get_current_active_user),
    db: Database = Depends(get_db)
):
    row = await candidates.record_stage_participation(db, to_object_id(candidate_id, "candidate_id"), request)
    return StageParticipantResponse(**serialize(row))


@router.patch("/stages/{participant_id}", response_model=StageParticipantResponse)
async def update_stage_participation(
    participant_id: str,
    request: UpdateStageParticipationRequest,
    current_user: dict = Depends(get_current_active_user),
    db: Database = Depends(get_db)
):
    row = await candidates.update_stage_participation(db, to_object_id(participant_id, "participant_id"), request)
    return StageParticipantResponse(**serialize(row))


@router.post("/{candidate_id}/notes", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
async def add_note(
    candidate_id: str,
    request: CreateNoteRequest,
    current_user: dict = Depends(get_current_active_user),
    db: Database = Depends(get_db)
):
    note = await notes.add_note(
        db, to_object_id(candidate_id, "candidate_id"), current_user["_id"], request.note, request.note_type
    )
    return NoteResponse(**serialize(note))


@router.get("/{candidate_id}/notes", response_model=List[NoteResponse])
async def list_notes(
    candidate_id: str,
    note_type: Optional[NoteType] = None,
    current_user: dict = Depends(require_permission(Permission.VIEW_CANDIDATES)),
    db: Database = Depends(get_db)
):
    result = await notes.list_notes(
        db, to_object_id(candidate_id, "candidate_id"), note_type.value if note_type else None
    )
    return [NoteResponse(**serialize(n)) for n in result]


@router.delete("/notes/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    note_id: str,
    current_user: dict = Depends(get_current_active_user),
    db: Database = Depends(get_db)
):
    await notes.delete_note(db, to_object_id(note_id, "note_id"))


@router.post("/{candidate_id}/attachments", response_model=AttachmentResponse, status_code=status.HTTP_201_CREATED)
async def add_attachment(
    candidate_id: str,
    request: CreateAttachmentRequest,
    current_user: dict = Depends(get_current_active_user),
    db: Database = Depends(get_db)
):
    attachment = await notes.add_attachment(
        db, to_object_id(candidate_id, "candidate_id"), current_user["_id"], request.file_name, request.file_url
    )
    return AttachmentResponse(**serialize(attachment))


@router.get("/{candidate_id}/attachments", response_model=List[AttachmentResponse])
async def list_attachments(
    candidate_id: str,
    current_user: dict = Depends(require_permission(Permission.VIEW_CANDIDATES)),
    db: Database = Depends(get_db)
):
    result = await notes.list_attachments(db, to_object_id(candidate_id, "candidate_id"))
    return [AttachmentResponse(**serialize(a)) for a in result]


@router.delete("/attachments/{attachment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_attachment(
    attachment_id: str,
    current_user: dict = Depends(get_current_active_user),
    db: Database = Depends(get_db)
):
    await notes.delete_attachment(db, to_object_id(attachment_id, "attachment_id"))

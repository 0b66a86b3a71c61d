"""Candidates, their skills and stage participation."""
import logging
import re
from datetime import datetime
from typing import Dict, List, Optional

from bson import ObjectId
from pymongo import ReturnDocument

from ats.database import Database
from ats.errors import ConflictError, NotFoundError, conflict_on_duplicate
from ats.models.candidate import CandidateModel, CandidateSkillModel, StageParticipantModel
from ats.models.enums import Action, CandidateStatus
from ats.schemas.candidate import (
    CreateCandidateRequest,
    StageParticipationRequest,
    UpdateCandidateRequest,
    UpdateStageParticipationRequest,
)
from ats.services.activity import make_target, record_activity
from ats.services.cascade import delete_with_cascade
from ats.services.integrity import (
    validate_before_create,
    validate_before_update,
    validate_nested,
)
from ats.services.status import ensure_transition
from ats.utils.serialization import to_object_id

logger = logging.getLogger(__name__)


async def _ensure_email_free(db: Database, email: str, exclude_id: Optional[ObjectId] = None, session=None):
    query = {"email": email}
    if exclude_id is not None:
        query["_id"] = {"$ne": exclude_id}
    if await db.candidates.find_one(query, {"_id": 1}, session=session):
        raise ConflictError("Email already in use")


async def _replace_skills(db: Database, candidate_id: ObjectId, skills: List[str], session=None) -> List[str]:
    unique = []
    for skill in (s.strip() for s in skills):
        if skill and skill not in unique:
            unique.append(skill)

    await db.candidate_skills.delete_many({"candidate_id": candidate_id}, session=session)
    if unique:
        await db.candidate_skills.insert_many(
            [CandidateSkillModel(candidate_id=candidate_id, skill=s).to_document() for s in unique],
            session=session,
        )
    return unique


async def _check_stage_capacity(db: Database, stage_id: ObjectId, session=None):
    stage = await db.hiring_stages.find_one({"_id": stage_id}, session=session)
    limit = stage.get("max_candidates_allowed") if stage else None
    if limit is None:
        return
    taken = await db.stage_participants.count_documents({"stage_id": stage_id}, session=session)
    if taken >= limit:
        raise ConflictError(f"Stage {stage['name']} is full ({limit} candidates allowed)")


async def _prepare_participation(
    db: Database, candidate_id: ObjectId, item: StageParticipationRequest, new_candidate: bool = False, session=None
) -> dict:
    """Build and check a participation row; nothing is written."""
    document = StageParticipantModel(
        candidate_id=candidate_id,
        stage_id=to_object_id(item.stage_id, "stage_id"),
        appeared=item.appeared,
        qualified=item.qualified,
        score=item.score,
        feedback=item.feedback,
    ).to_document()

    if new_candidate:
        await validate_nested(db, "stage_participants", document, "candidate_id", session=session)
    else:
        await validate_before_create(db, "stage_participants", document, session=session)
        if await db.stage_participants.find_one(
            {"candidate_id": candidate_id, "stage_id": document["stage_id"]}, {"_id": 1}, session=session
        ):
            raise ConflictError("Candidate already participates in this stage")
    await _check_stage_capacity(db, document["stage_id"], session=session)
    return document


async def _write_participation(db: Database, document: dict, session=None) -> dict:
    with conflict_on_duplicate("Candidate already participates in this stage"):
        result = await db.stage_participants.insert_one(document, session=session)
    document["_id"] = result.inserted_id
    return document


def _ensure_distinct_stages(items: List[StageParticipationRequest]):
    seen = set()
    for item in items:
        stage_id = to_object_id(item.stage_id, "stage_id")
        if stage_id in seen:
            raise ConflictError("Candidate already participates in this stage")
        seen.add(stage_id)


async def create_candidate(
    db: Database, request: CreateCandidateRequest, actor_id: Optional[ObjectId] = None
) -> dict:
    """Create a candidate with skills and stage participation.

    Every check, nested rows included, runs before the candidate is inserted.
    """
    candidate_id = ObjectId()
    document = CandidateModel(
        name=request.name,
        email=request.email,
        phone=request.phone or None,
        age=request.age,
        resume_url=request.resume_url or None,
        referral_token_id=(
            to_object_id(request.referral_token_id, "referral_token_id") if request.referral_token_id else None
        ),
        highest_qualification=request.highest_qualification or None,
        status=request.status or CandidateStatus.APPLIED,
    ).to_document()

    async with db.transaction() as session:
        await _ensure_email_free(db, document["email"], session=session)
        await validate_before_create(db, "candidates", document, session=session)
        _ensure_distinct_stages(request.stage_participation)
        participation = [
            await _prepare_participation(db, candidate_id, item, new_candidate=True, session=session)
            for item in request.stage_participation
        ]

        document["_id"] = candidate_id
        with conflict_on_duplicate("Email already in use"):
            await db.candidates.insert_one(document, session=session)

        await _replace_skills(db, candidate_id, request.skills, session=session)
        for row in participation:
            await _write_participation(db, row, session=session)

        if actor_id is not None:
            await record_activity(
                db, actor_id, Action.CREATE, make_target("candidate", candidate_id),
                details=f"Created candidate: {request.name}", session=session,
            )

    logger.info("Created candidate %s", candidate_id)
    return await get_candidate_view(db, candidate_id)


async def get_candidate_view(db: Database, candidate_id: ObjectId) -> Optional[dict]:
    """Candidate with skills, stage results, applications, notes and attachments."""
    candidate = await db.candidates.find_one({"_id": candidate_id})
    if not candidate:
        return None

    skills = await db.candidate_skills.find({"candidate_id": candidate_id}).to_list(None)
    candidate["skills"] = [s["skill"] for s in skills]

    participation = await db.stage_participants.find({"candidate_id": candidate_id}).to_list(None)
    stages = {
        s["_id"]: s
        for s in await db.hiring_stages.find(
            {"_id": {"$in": [p["stage_id"] for p in participation]}}, {"name": 1, "order": 1, "pipeline_id": 1}
        ).to_list(None)
    }
    for row in participation:
        row["stage"] = stages.get(row["stage_id"])
    candidate["stage_participation"] = participation

    applications = await db.job_applications.find({"candidate_id": candidate_id}).to_list(None)
    jobs = {
        j["_id"]: j
        for j in await db.jobs.find(
            {"_id": {"$in": [a["job_id"] for a in applications]}}, {"title": 1, "status": 1}
        ).to_list(None)
    }
    for application in applications:
        application["job"] = jobs.get(application["job_id"])
    candidate["applications"] = applications

    candidate["notes"] = await db.notes.find({"candidate_id": candidate_id}).sort("created_at", -1).to_list(None)
    candidate["attachments"] = await db.attachments.find({"candidate_id": candidate_id}).sort("uploaded_at", -1).to_list(None)
    return candidate


async def list_candidates(
    db: Database,
    status: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = 100,
) -> List[dict]:
    """Candidates, newest first; ``search`` matches name or email."""
    query: Dict = {}
    if status:
        query["status"] = status
    if search:
        pattern = re.escape(search.strip())
        query["$or"] = [
            {"name": {"$regex": pattern, "$options": "i"}},
            {"email": {"$regex": pattern, "$options": "i"}},
        ]
    return await db.candidates.find(query).sort("created_at", -1).to_list(length=limit)


async def update_candidate(
    db: Database,
    candidate_id: ObjectId,
    request: UpdateCandidateRequest,
    actor_id: Optional[ObjectId] = None,
) -> Optional[dict]:
    """Update fields, replace skills and upsert stage participation.

    A status change must follow the transition table; resending the current
    status is a no-op.
    """
    changes = request.model_dump(exclude_none=True, exclude={"skills", "stage_participation"})
    if "status" in changes:
        changes["status"] = CandidateStatus(changes["status"]).value

    async with db.transaction() as session:
        current = await db.candidates.find_one({"_id": candidate_id}, session=session)
        if not current:
            raise NotFoundError("Candidate not found")

        if "email" in changes and changes["email"] != current["email"]:
            await _ensure_email_free(db, changes["email"], exclude_id=candidate_id, session=session)
        if "status" in changes:
            if changes["status"] == current["status"]:
                del changes["status"]
            else:
                ensure_transition(current["status"], changes["status"])

        await validate_before_update(db, "candidates", current, changes, session=session)

        # (existing row id, fields to set) or (None, new row)
        upserts = []
        _ensure_distinct_stages(request.stage_participation or [])
        for item in request.stage_participation or []:
            existing = await db.stage_participants.find_one(
                {"candidate_id": candidate_id, "stage_id": to_object_id(item.stage_id, "stage_id")},
                {"_id": 1},
                session=session,
            )
            if existing:
                upserts.append((existing["_id"], item.model_dump(exclude={"stage_id"}, exclude_unset=True)))
            else:
                upserts.append((None, await _prepare_participation(db, candidate_id, item, session=session)))

        changes["updated_at"] = datetime.utcnow()
        with conflict_on_duplicate("Email already in use"):
            await db.candidates.update_one({"_id": candidate_id}, {"$set": changes}, session=session)

        if request.skills is not None:
            await _replace_skills(db, candidate_id, request.skills, session=session)

        for row_id, fields in upserts:
            if row_id is None:
                await _write_participation(db, fields, session=session)
                continue
            await db.stage_participants.update_one(
                {"_id": row_id},
                {"$set": {**fields, "updated_at": datetime.utcnow()}},
                session=session,
            )

        if actor_id is not None:
            await record_activity(
                db, actor_id, Action.UPDATE, make_target("candidate", candidate_id), session=session
            )

    return await get_candidate_view(db, candidate_id)


async def change_candidate_status(
    db: Database,
    candidate_id: ObjectId,
    new_status: CandidateStatus,
    actor_id: Optional[ObjectId] = None,
) -> dict:
    """Move a candidate along the status table; anything else is refused."""
    async with db.transaction() as session:
        candidate = await db.candidates.find_one({"_id": candidate_id}, session=session)
        if not candidate:
            raise NotFoundError("Candidate not found")

        ensure_transition(candidate["status"], new_status)
        new_value = CandidateStatus(new_status).value
        result = await db.candidates.update_one(
            {"_id": candidate_id, "status": candidate["status"]},
            {"$set": {"status": new_value, "updated_at": datetime.utcnow()}},
            session=session,
        )
        if result.modified_count == 0:
            raise ConflictError(f"Candidate status is no longer {candidate['status']}")
        if actor_id is not None:
            await record_activity(
                db, actor_id, Action.UPDATE, make_target("candidate", candidate_id),
                details=f"Status changed from {candidate['status']} to {new_value}", session=session,
            )

    candidate["status"] = new_value
    logger.info("Candidate %s moved to %s", candidate_id, new_value)
    return candidate


async def delete_candidate(db: Database, candidate_id: ObjectId, actor_id: Optional[ObjectId] = None) -> Dict[str, int]:
    async with db.transaction() as session:
        candidate = await db.candidates.find_one({"_id": candidate_id}, {"name": 1}, session=session)
        if not candidate:
            raise NotFoundError("Candidate not found")
        if actor_id is not None:
            await record_activity(
                db, actor_id, Action.DELETE, make_target("candidate", candidate_id),
                details=f"Deleted candidate: {candidate['name']}", session=session,
            )
        return await delete_with_cascade(db, "candidates", candidate_id, session=session)


async def record_stage_participation(
    db: Database, candidate_id: ObjectId, item: StageParticipationRequest
) -> dict:
    """Put a candidate into a stage, respecting the stage's capacity."""
    async with db.transaction() as session:
        document = await _prepare_participation(db, candidate_id, item, session=session)
        return await _write_participation(db, document, session=session)


async def update_stage_participation(
    db: Database, participant_id: ObjectId, request: UpdateStageParticipationRequest
) -> dict:
    changes = request.model_dump(exclude_none=True)
    changes["updated_at"] = datetime.utcnow()
    result = await db.stage_participants.find_one_and_update(
        {"_id": participant_id},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )
    if not result:
        raise NotFoundError("Stage participation not found")
    return result


async def list_stage_participants(db: Database, stage_id: ObjectId) -> List[dict]:
    return await db.stage_participants.find({"stage_id": stage_id}).to_list(None)

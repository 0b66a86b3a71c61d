"""Interviews, interview panels and checklists."""
import logging
from datetime import datetime
from typing import Dict, List, Optional

from bson import ObjectId
from pymongo import ReturnDocument

from ats.database import Database
from ats.errors import ConflictError, NotFoundError, conflict_on_duplicate
from ats.models.enums import Action
from ats.models.interview import ChecklistModel, InterviewModel, InterviewParticipantModel
from ats.services.activity import make_target, record_activity
from ats.services.cascade import delete_with_cascade
from ats.services.integrity import validate_before_create, validate_nested
from ats.utils.serialization import enum_values

logger = logging.getLogger(__name__)


async def _insert_participant(db: Database, interview_id: ObjectId, interviewer_id: ObjectId, session=None) -> dict:
    document = InterviewParticipantModel(interview_id=interview_id, interviewer_id=interviewer_id).to_document()
    await validate_before_create(db, "interview_participants", document, session=session)
    if await db.interview_participants.find_one(
        {"interview_id": interview_id, "interviewer_id": interviewer_id}, {"_id": 1}, session=session
    ):
        raise ConflictError("Interviewer already assigned to this interview")
    with conflict_on_duplicate("Interviewer already assigned to this interview"):
        result = await db.interview_participants.insert_one(document, session=session)
    document["_id"] = result.inserted_id
    return document


async def schedule_interview(
    db: Database,
    candidate_id: ObjectId,
    stage_id: ObjectId,
    scheduled_at: datetime,
    interviewer_ids: Optional[List[ObjectId]] = None,
    actor_id: Optional[ObjectId] = None,
) -> dict:
    """Schedule an interview and assign its panel.

    Panel members are checked before the interview is inserted.
    """
    interview_id = ObjectId()
    document = InterviewModel(candidate_id=candidate_id, stage_id=stage_id, scheduled_at=scheduled_at).to_document()
    panel = [
        InterviewParticipantModel(interview_id=interview_id, interviewer_id=i).to_document()
        for i in dict.fromkeys(interviewer_ids or [])
    ]

    async with db.transaction() as session:
        await validate_before_create(db, "interviews", document, session=session)
        for participant in panel:
            await validate_nested(db, "interview_participants", participant, "interview_id", session=session)

        document["_id"] = interview_id
        await db.interviews.insert_one(document, session=session)
        if panel:
            await db.interview_participants.insert_many(panel, session=session)
        document["interviewer_ids"] = [p["interviewer_id"] for p in panel]

        if actor_id is not None:
            await record_activity(
                db, actor_id, Action.ASSIGN, make_target("interview", document["_id"]), session=session
            )
    return document


async def get_interview(db: Database, interview_id: ObjectId) -> Optional[dict]:
    interview = await db.interviews.find_one({"_id": interview_id})
    if not interview:
        return None
    panel = await db.interview_participants.find({"interview_id": interview_id}).to_list(None)
    interview["interviewer_ids"] = [p["interviewer_id"] for p in panel]
    interview["checklists"] = await db.checklists.find({"interview_id": interview_id}).to_list(None)
    return interview


async def list_interviews(
    db: Database, candidate_id: Optional[ObjectId] = None, stage_id: Optional[ObjectId] = None
) -> List[dict]:
    query = {}
    if candidate_id is not None:
        query["candidate_id"] = candidate_id
    if stage_id is not None:
        query["stage_id"] = stage_id
    interviews = await db.interviews.find(query).sort("scheduled_at", 1).to_list(None)

    panel = await db.interview_participants.find(
        {"interview_id": {"$in": [i["_id"] for i in interviews]}}
    ).to_list(None)
    by_interview: Dict[ObjectId, List[ObjectId]] = {}
    for row in panel:
        by_interview.setdefault(row["interview_id"], []).append(row["interviewer_id"])
    for interview in interviews:
        interview["interviewer_ids"] = by_interview.get(interview["_id"], [])
    return interviews


async def update_interview(db: Database, interview_id: ObjectId, changes: dict) -> dict:
    """Update status and/or reschedule."""
    changes = enum_values({k: v for k, v in changes.items() if v is not None})
    changes["updated_at"] = datetime.utcnow()
    result = await db.interviews.find_one_and_update(
        {"_id": interview_id}, {"$set": changes}, return_document=ReturnDocument.AFTER
    )
    if not result:
        raise NotFoundError("Interview not found")
    return result


async def add_interview_participant(db: Database, interview_id: ObjectId, interviewer_id: ObjectId) -> dict:
    return await _insert_participant(db, interview_id, interviewer_id)


async def remove_interview_participant(db: Database, interview_id: ObjectId, interviewer_id: ObjectId):
    result = await db.interview_participants.delete_one(
        {"interview_id": interview_id, "interviewer_id": interviewer_id}
    )
    if result.deleted_count == 0:
        raise NotFoundError("Interviewer is not assigned to this interview")


async def save_checklist(
    db: Database, interview_id: ObjectId, updated_by_id: ObjectId, checklist: List[str]
) -> dict:
    """Create or replace the interview's checklist."""
    document = ChecklistModel(interview_id=interview_id, updated_by_id=updated_by_id, checklist=checklist).to_document()
    await validate_before_create(db, "checklists", document)

    existing = await db.checklists.find_one({"interview_id": interview_id})
    if existing:
        changes = {"checklist": checklist, "updated_by_id": updated_by_id, "updated_at": datetime.utcnow()}
        await db.checklists.update_one({"_id": existing["_id"]}, {"$set": changes})
        return {**existing, **changes}

    result = await db.checklists.insert_one(document)
    document["_id"] = result.inserted_id
    return document


async def delete_interview(db: Database, interview_id: ObjectId, actor_id: Optional[ObjectId] = None) -> Dict[str, int]:
    async with db.transaction() as session:
        if not await db.interviews.find_one({"_id": interview_id}, {"_id": 1}, session=session):
            raise NotFoundError("Interview not found")
        if actor_id is not None:
            await record_activity(
                db, actor_id, Action.DELETE, make_target("interview", interview_id), session=session
            )
        return await delete_with_cascade(db, "interviews", interview_id, session=session)

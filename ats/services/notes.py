"""Candidate notes and attachments."""
import logging
from typing import List, Optional

from bson import ObjectId

from ats.database import Database
from ats.errors import NotFoundError
from ats.models.candidate import AttachmentModel, NoteModel
from ats.models.enums import Action, NoteType
from ats.services.activity import make_target, record_activity
from ats.services.integrity import validate_before_create

logger = logging.getLogger(__name__)


async def add_note(
    db: Database,
    candidate_id: ObjectId,
    created_by_id: ObjectId,
    note: str,
    note_type: NoteType = NoteType.GENERAL,
) -> dict:
    document = NoteModel(
        candidate_id=candidate_id, created_by_id=created_by_id, note=note, note_type=note_type
    ).to_document()

    async with db.transaction() as session:
        await validate_before_create(db, "notes", document, session=session)
        result = await db.notes.insert_one(document, session=session)
        document["_id"] = result.inserted_id
        await record_activity(db, created_by_id, Action.CREATE, make_target("note", document["_id"]), session=session)
    return document


async def list_notes(db: Database, candidate_id: ObjectId, note_type: Optional[str] = None) -> List[dict]:
    query = {"candidate_id": candidate_id}
    if note_type:
        query["note_type"] = note_type
    return await db.notes.find(query).sort("created_at", -1).to_list(None)


async def delete_note(db: Database, note_id: ObjectId):
    result = await db.notes.delete_one({"_id": note_id})
    if result.deleted_count == 0:
        raise NotFoundError("Note not found")


async def add_attachment(
    db: Database, candidate_id: ObjectId, uploaded_by_id: ObjectId, file_name: str, file_url: str
) -> dict:
    """Record a file that was uploaded to storage elsewhere."""
    document = AttachmentModel(
        candidate_id=candidate_id, uploaded_by_id=uploaded_by_id, file_name=file_name, file_url=file_url
    ).to_document()

    async with db.transaction() as session:
        await validate_before_create(db, "attachments", document, session=session)
        result = await db.attachments.insert_one(document, session=session)
        document["_id"] = result.inserted_id
        await record_activity(
            db, uploaded_by_id, Action.CREATE, make_target("attachment", document["_id"]),
            details=f"Attached {file_name}", session=session,
        )
    return document


async def list_attachments(db: Database, candidate_id: ObjectId) -> List[dict]:
    return await db.attachments.find({"candidate_id": candidate_id}).sort("uploaded_at", -1).to_list(None)


async def delete_attachment(db: Database, attachment_id: ObjectId):
    result = await db.attachments.delete_one({"_id": attachment_id})
    if result.deleted_count == 0:
        raise NotFoundError("Attachment not found")

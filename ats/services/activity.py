"""Activity log service."""
import logging
from typing import List, Optional

from bson import ObjectId
from pydantic import TypeAdapter

from ats.database import Database
from ats.errors import InvalidReference
from ats.models.activity import ActivityLogModel, ActivityTarget
from ats.models.enums import Action

logger = logging.getLogger(__name__)

_target_adapter = TypeAdapter(ActivityTarget)


def make_target(kind: str, target_id) -> ActivityTarget:
    """Build the target variant for ``kind`` (``"candidate"``, ``"job"`` ...)."""
    return _target_adapter.validate_python({"kind": kind, "id": target_id})


async def record_activity(
    db: Database,
    actor_id: ObjectId,
    action: Action,
    target: ActivityTarget,
    details: Optional[str] = None,
    session=None,
) -> dict:
    """Append an audit entry; actor and target must both exist."""
    actor = await db.users.find_one({"_id": actor_id}, {"_id": 1}, session=session)
    if not actor:
        raise InvalidReference("actor_id")

    found = await db[target.collection].find_one({"_id": target.id}, {"_id": 1}, session=session)
    if not found:
        raise InvalidReference("target_id")

    entry = ActivityLogModel(
        actor_id=actor_id,
        action=action,
        target_type=target.kind,
        target_id=target.id,
        details=details,
    )
    document = entry.to_document()
    result = await db.activity_logs.insert_one(document, session=session)
    document["_id"] = result.inserted_id
    return document


async def list_activity(
    db: Database,
    actor_id: Optional[ObjectId] = None,
    target_type: Optional[str] = None,
    target_id: Optional[ObjectId] = None,
    limit: int = 100,
) -> List[dict]:
    """Most recent entries first, filtered by actor and/or target."""
    query = {}
    if actor_id is not None:
        query["actor_id"] = actor_id
    if target_type is not None:
        query["target_type"] = target_type
    if target_id is not None:
        query["target_id"] = target_id

    return await db.activity_logs.find(query).sort("timestamp", -1).to_list(length=limit)

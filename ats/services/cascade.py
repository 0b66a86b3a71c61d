"""Cascade deletion of dependent documents."""
import logging
from collections import defaultdict
from typing import Dict, List, Tuple

from bson import ObjectId

from ats.database import Database
from ats.errors import NotFoundError

logger = logging.getLogger(__name__)


# parent collection -> [(child collection, field holding the parent id)]
CASCADES: Dict[str, List[Tuple[str, str]]] = {
    "teams": [("team_members", "team_id")],
    "departments": [("jobs", "department_id")],
    "jobs": [
        ("job_skills", "job_id"),
        ("job_applications", "job_id"),
        ("referral_tokens", "job_id"),
    ],
    "hiring_pipelines": [("hiring_stages", "pipeline_id")],
    "hiring_stages": [
        ("stage_participants", "stage_id"),
        ("interviews", "stage_id"),
    ],
    "interviews": [
        ("interview_participants", "interview_id"),
        ("checklists", "interview_id"),
    ],
    "candidates": [
        ("job_applications", "candidate_id"),
        ("candidate_skills", "candidate_id"),
        ("stage_participants", "candidate_id"),
        ("interviews", "candidate_id"),
        ("notes", "candidate_id"),
        ("attachments", "candidate_id"),
    ],
}


async def cascade_before_delete(
    db: Database, collection: str, ids: List[ObjectId], session=None
) -> Dict[str, int]:
    """Delete everything that depends on ``ids`` in ``collection``.

    Children that have dependents of their own are resolved to ids first so
    the cascade continues down the tree. Returns deleted counts per
    collection; the parents themselves are left for the caller.
    """
    counts: Dict[str, int] = defaultdict(int)
    if not ids:
        return counts

    for child, field in CASCADES.get(collection, []):
        if child in CASCADES:
            docs = await db[child].find({field: {"$in": ids}}, {"_id": 1}, session=session).to_list(None)
            child_ids = [d["_id"] for d in docs]
            if not child_ids:
                continue
            nested = await cascade_before_delete(db, child, child_ids, session=session)
            for name, count in nested.items():
                counts[name] += count
            result = await db[child].delete_many({"_id": {"$in": child_ids}}, session=session)
        else:
            result = await db[child].delete_many({field: {"$in": ids}}, session=session)
        counts[child] += result.deleted_count

    return counts


async def delete_with_cascade(db: Database, collection: str, doc_id: ObjectId, session=None) -> Dict[str, int]:
    """Delete one document and its dependents.

    Callers wrap this in ``Database.transaction()`` so the whole tree goes
    or nothing does.
    """
    existing = await db[collection].find_one({"_id": doc_id}, {"_id": 1}, session=session)
    if not existing:
        raise NotFoundError(f"{collection} {doc_id} not found")

    counts = await cascade_before_delete(db, collection, [doc_id], session=session)
    await db[collection].delete_one({"_id": doc_id}, session=session)
    counts[collection] += 1

    logger.info("Deleted %s %s with dependents: %s", collection, doc_id, dict(counts))
    return dict(counts)

"""Referential-integrity checks run explicitly on the write path.

Every foreign-key-like field is resolved with a point lookup before the
owning document is written. The first reference that does not resolve
fails the write with ``Invalid <field>``; nothing has been written yet at
that point, so there is no partial state to undo.
"""
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from bson import ObjectId

from ats.config import settings
from ats.database import Database
from ats.errors import ConflictError, InvalidReference, ValidationFailed
from ats.models.enums import StageStatus

logger = logging.getLogger(__name__)


# collection -> [(field, referenced collection)], checked in order
REFERENCES: Dict[str, List[Tuple[str, str]]] = {
    "role_permissions": [("role_id", "roles")],
    "users": [("role_id", "roles")],
    "credentials": [("user_id", "users")],
    "teams": [("leader_id", "users")],
    "team_members": [("user_id", "users"), ("team_id", "teams"), ("team_role_id", "team_roles")],
    "departments": [("hiring_manager_id", "users")],
    "jobs": [
        ("department_id", "departments"),
        ("hiring_manager_id", "users"),
        ("hiring_pipeline_id", "hiring_pipelines"),
    ],
    "job_skills": [("job_id", "jobs")],
    "hiring_pipelines": [("created_by_id", "users")],
    "hiring_stages": [("pipeline_id", "hiring_pipelines"), ("assigned_to_id", "users")],
    "candidate_skills": [("candidate_id", "candidates")],
    "job_applications": [("candidate_id", "candidates"), ("job_id", "jobs")],
    "referral_tokens": [("referred_by_id", "users"), ("job_id", "jobs")],
    "stage_participants": [("candidate_id", "candidates"), ("stage_id", "hiring_stages")],
    "interviews": [("candidate_id", "candidates"), ("stage_id", "hiring_stages")],
    "interview_participants": [("interview_id", "interviews"), ("interviewer_id", "users")],
    "checklists": [("interview_id", "interviews"), ("updated_by_id", "users")],
    "notes": [("created_by_id", "users"), ("candidate_id", "candidates")],
    "attachments": [("candidate_id", "candidates"), ("uploaded_by_id", "users")],
    "resume_analyses": [("job_id", "jobs")],
}


async def ensure_exists(db: Database, collection: str, doc_id: Optional[ObjectId], field: str, session=None):
    """Point lookup for a single reference; ``None`` means unset and passes."""
    if doc_id is None:
        return None
    found = await db[collection].find_one({"_id": doc_id}, {"_id": 1}, session=session)
    if not found:
        raise InvalidReference(field)
    return found


async def validate_references(
    db: Database,
    collection: str,
    document: dict,
    fields: Optional[Iterable[str]] = None,
    session=None,
):
    """Resolve the references of ``document`` declared for ``collection``.

    ``fields`` limits the check to the given field names (used on update,
    where only changed references need re-resolving).
    """
    only = set(fields) if fields is not None else None
    for field, target in REFERENCES.get(collection, []):
        if only is not None and field not in only:
            continue
        await ensure_exists(db, target, document.get(field), field, session=session)


def check_stage_rules(stage: dict):
    """A mandatory stage can never be skipped."""
    if stage.get("mandatory") and stage.get("status") == StageStatus.SKIPPED.value:
        raise ValidationFailed(
            "Mandatory stages cannot be skipped",
            {"status": ["Mandatory stages cannot be skipped"]},
        )


def is_mandatory_stage_name(name: str) -> bool:
    """Match against the configured mandatory set, ignoring case."""
    mandatory = {n.lower() for n in settings.mandatory_stage_names_list}
    return name.strip().lower() in mandatory


async def check_referral_token(db: Database, token_id: Optional[ObjectId], session=None):
    if token_id is None:
        return
    referral = await db.referral_tokens.find_one(
        {"_id": token_id, "expires_at": {"$gte": datetime.utcnow()}},
        session=session,
    )
    if not referral:
        raise InvalidReference("referral_token_id", "Invalid or expired referral token")


async def check_duplicate_application(db: Database, candidate_id: ObjectId, job_id: ObjectId, session=None):
    existing = await db.job_applications.find_one(
        {"candidate_id": candidate_id, "job_id": job_id}, {"_id": 1}, session=session
    )
    if existing:
        raise ConflictError("Candidate has already applied to this job")


async def validate_before_create(db: Database, collection: str, document: dict, session=None):
    """All pre-write checks for a new document of ``collection``."""
    await validate_references(db, collection, document, session=session)

    if collection == "hiring_stages":
        check_stage_rules(document)
    elif collection == "candidates":
        await check_referral_token(db, document.get("referral_token_id"), session=session)
    elif collection == "job_applications":
        await check_duplicate_application(db, document["candidate_id"], document["job_id"], session=session)


async def validate_nested(db: Database, collection: str, document: dict, parent_field: str, session=None):
    """Checks for a child document whose parent is written in the same request.

    The parent reference is skipped; the parent itself is validated by the caller.
    """
    fields = [f for f, _ in REFERENCES.get(collection, []) if f != parent_field]
    await validate_references(db, collection, document, fields=fields, session=session)

    if collection == "hiring_stages":
        check_stage_rules(document)


async def validate_before_update(db: Database, collection: str, current: dict, changes: dict, session=None):
    """Pre-write checks for ``changes`` applied on top of ``current``."""
    merged = {**current, **changes}
    await validate_references(db, collection, merged, fields=changes.keys(), session=session)

    if collection == "hiring_stages":
        check_stage_rules(merged)
    elif collection == "candidates" and "referral_token_id" in changes:
        await check_referral_token(db, changes.get("referral_token_id"), session=session)
    return merged

"""Job applications and referral tokens."""
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from bson import ObjectId

from ats.config import settings
from ats.database import Database
from ats.errors import NotFoundError, conflict_on_duplicate
from ats.models.enums import ApplicationSource
from ats.models.job import JobApplicationModel, ReferralTokenModel
from ats.services.integrity import validate_before_create
from ats.utils.security import generate_code

logger = logging.getLogger(__name__)


async def create_job_application(
    db: Database,
    candidate_id: ObjectId,
    job_id: ObjectId,
    source: ApplicationSource = ApplicationSource.DIRECT,
) -> dict:
    """Apply a candidate to a job; each pair may apply once."""
    document = JobApplicationModel(candidate_id=candidate_id, job_id=job_id, source=source).to_document()
    await validate_before_create(db, "job_applications", document)

    with conflict_on_duplicate("Candidate has already applied to this job"):
        result = await db.job_applications.insert_one(document)
    document["_id"] = result.inserted_id
    logger.info("Candidate %s applied to job %s", candidate_id, job_id)
    return document


async def list_applications(
    db: Database,
    job_id: Optional[ObjectId] = None,
    candidate_id: Optional[ObjectId] = None,
) -> List[dict]:
    query = {}
    if job_id is not None:
        query["job_id"] = job_id
    if candidate_id is not None:
        query["candidate_id"] = candidate_id
    return await db.job_applications.find(query).sort("applied_at", -1).to_list(None)


async def delete_job_application(db: Database, application_id: ObjectId):
    result = await db.job_applications.delete_one({"_id": application_id})
    if result.deleted_count == 0:
        raise NotFoundError("Job application not found")


async def create_referral_token(db: Database, referred_by_id: ObjectId, job_id: ObjectId) -> dict:
    """Issue a referral link for a job, valid for the configured number of days."""
    document = ReferralTokenModel(
        token=generate_code(),
        referred_by_id=referred_by_id,
        job_id=job_id,
        expires_at=datetime.utcnow() + timedelta(days=settings.referral_token_ttl_days),
    ).to_document()
    await validate_before_create(db, "referral_tokens", document)

    with conflict_on_duplicate("Referral token collision"):
        result = await db.referral_tokens.insert_one(document)
    document["_id"] = result.inserted_id
    return document


async def resolve_referral_token(db: Database, token: str) -> Optional[dict]:
    """The referral behind ``token`` if it has not expired yet."""
    return await db.referral_tokens.find_one({"token": token, "expires_at": {"$gt": datetime.utcnow()}})

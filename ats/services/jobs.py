"""Job openings and their skills."""
import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from bson import ObjectId

from ats.database import Database
from ats.errors import NotFoundError, ValidationFailed
from ats.models.enums import Action
from ats.models.job import JobModel, JobSkillModel
from ats.schemas.job import JobFields, UpdateJobRequest
from ats.services.activity import make_target, record_activity
from ats.services.cascade import delete_with_cascade
from ats.services.integrity import validate_before_create, validate_before_update
from ats.utils.serialization import enum_values, to_object_id

logger = logging.getLogger(__name__)

REFERENCE_FIELDS = ("department_id", "hiring_manager_id", "hiring_pipeline_id")


def _unique(items: List[str]) -> List[str]:
    seen = []
    for item in (i.strip() for i in items):
        if item and item not in seen:
            seen.append(item)
    return seen


def job_document(department_id: ObjectId, fields: JobFields) -> dict:
    data = fields.model_dump(exclude={"skills", "id", "department_id"})
    data["hiring_manager_id"] = to_object_id(fields.hiring_manager_id, "hiring_manager_id")
    data["hiring_pipeline_id"] = to_object_id(fields.hiring_pipeline_id, "hiring_pipeline_id")
    return JobModel(department_id=department_id, **data).to_document()


async def write_job(db: Database, document: dict, skills: List[str], session=None) -> dict:
    """Insert an already validated job with its skills."""
    result = await db.jobs.insert_one(document, session=session)
    document["_id"] = result.inserted_id
    document["skills"] = await set_job_skills(db, document["_id"], skills, session=session)
    return document


async def insert_job(db: Database, department_id: ObjectId, fields: JobFields, session=None) -> dict:
    """Validate and insert one job with its skills."""
    document = job_document(department_id, fields)
    await validate_before_create(db, "jobs", document, session=session)
    return await write_job(db, document, fields.skills, session=session)


async def create_job(
    db: Database,
    department_id: str,
    fields: JobFields,
    actor_id: Optional[ObjectId] = None,
) -> dict:
    department_oid = to_object_id(department_id, "department_id")
    async with db.transaction() as session:
        job = await insert_job(db, department_oid, fields, session=session)
        if actor_id is not None:
            await record_activity(
                db, actor_id, Action.CREATE, make_target("job", job["_id"]),
                details=f"Created job: {job['title']}", session=session,
            )
    logger.info("Created job %s in department %s", job["_id"], department_oid)
    return job


async def set_job_skills(db: Database, job_id: ObjectId, skills: List[str], session=None) -> List[str]:
    """Replace the job's skill set."""
    unique = _unique(skills)
    await db.job_skills.delete_many({"job_id": job_id}, session=session)
    if unique:
        await db.job_skills.insert_many(
            [JobSkillModel(job_id=job_id, skill=s).to_document() for s in unique],
            session=session,
        )
    return unique


async def _skills_by_job(db: Database, job_ids: List[ObjectId]) -> Dict[ObjectId, List[str]]:
    rows = await db.job_skills.find({"job_id": {"$in": job_ids}}).to_list(None)
    skills: Dict[ObjectId, List[str]] = {}
    for row in rows:
        skills.setdefault(row["job_id"], []).append(row["skill"])
    return skills


async def list_jobs(
    db: Database,
    department_id: Optional[ObjectId] = None,
    status: Optional[str] = None,
    hiring_manager_id: Optional[ObjectId] = None,
) -> List[dict]:
    query = {}
    if department_id is not None:
        query["department_id"] = department_id
    if status:
        query["status"] = status
    if hiring_manager_id is not None:
        query["hiring_manager_id"] = hiring_manager_id

    jobs = await db.jobs.find(query).sort("_id", -1).to_list(None)
    skills = await _skills_by_job(db, [j["_id"] for j in jobs])
    for job in jobs:
        job["skills"] = skills.get(job["_id"], [])
    return jobs


async def get_job_view(db: Database, job_id: ObjectId) -> Optional[dict]:
    """Job joined with department, hiring manager, pipeline stages and skills."""
    job = await db.jobs.find_one({"_id": job_id})
    if not job:
        return None

    job["department"] = await db.departments.find_one(
        {"_id": job["department_id"]}, {"name": 1, "description": 1}
    )
    job["hiring_manager"] = await db.users.find_one(
        {"_id": job["hiring_manager_id"]}, {"name": 1, "email": 1}
    )
    pipeline = await db.hiring_pipelines.find_one({"_id": job["hiring_pipeline_id"]})
    if pipeline:
        pipeline["stages"] = await db.hiring_stages.find(
            {"pipeline_id": pipeline["_id"]}
        ).sort("order", 1).to_list(None)
    job["hiring_pipeline"] = pipeline
    job["skills"] = [s["skill"] for s in await db.job_skills.find({"job_id": job_id}).to_list(None)]
    job["application_count"] = await db.job_applications.count_documents({"job_id": job_id})
    return job


async def prepare_job_update(
    db: Database, job_id: ObjectId, request: UpdateJobRequest, session=None
) -> Tuple[dict, dict]:
    """Current job and checked changes; references and salary range are re-checked."""
    current = await db.jobs.find_one({"_id": job_id}, session=session)
    if not current:
        raise NotFoundError("Job not found")

    changes = enum_values(request.model_dump(exclude_none=True, exclude={"skills", "id"}))
    for field in REFERENCE_FIELDS:
        if field in changes:
            changes[field] = to_object_id(changes[field], field)

    merged = await validate_before_update(db, "jobs", current, changes, session=session)
    if merged["maximum_salary"] < merged["minimum_salary"]:
        raise ValidationFailed(
            "maximum_salary must be greater than or equal to minimum_salary",
            {"maximum_salary": ["must be greater than or equal to minimum_salary"]},
        )
    return current, changes


async def write_job_update(db: Database, current: dict, changes: dict, session=None) -> dict:
    changes["updated_at"] = datetime.utcnow()
    await db.jobs.update_one({"_id": current["_id"]}, {"$set": changes}, session=session)
    return {**current, **changes}


async def apply_job_update(
    db: Database, job_id: ObjectId, request: UpdateJobRequest, session=None
) -> dict:
    """Update a job in place."""
    current, changes = await prepare_job_update(db, job_id, request, session=session)
    return await write_job_update(db, current, changes, session=session)


async def update_job(
    db: Database, job_id: ObjectId, request: UpdateJobRequest, actor_id: Optional[ObjectId] = None
) -> dict:
    async with db.transaction() as session:
        job = await apply_job_update(db, job_id, request, session=session)
        if actor_id is not None:
            await record_activity(db, actor_id, Action.UPDATE, make_target("job", job_id), session=session)
    return job


async def delete_job(db: Database, job_id: ObjectId, actor_id: Optional[ObjectId] = None) -> Dict[str, int]:
    async with db.transaction() as session:
        if not await db.jobs.find_one({"_id": job_id}, {"_id": 1}, session=session):
            raise NotFoundError("Job not found")
        if actor_id is not None:
            await record_activity(db, actor_id, Action.DELETE, make_target("job", job_id), session=session)
        return await delete_with_cascade(db, "jobs", job_id, session=session)

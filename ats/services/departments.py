"""Departments and their jobs."""
import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from bson import ObjectId

from ats.database import Database
from ats.errors import ConflictError, NotFoundError, ValidationFailed, conflict_on_duplicate
from ats.models.enums import Action
from ats.models.job import DepartmentModel
from ats.schemas.job import (
    CreateDepartmentRequest,
    DepartmentJobRequest,
    UpdateDepartmentRequest,
    UpdateJobRequest,
)
from ats.services.activity import make_target, record_activity
from ats.services.cascade import delete_with_cascade
from ats.services.integrity import (
    validate_before_create,
    validate_before_update,
    validate_nested,
)
from ats.services.jobs import (
    job_document,
    prepare_job_update,
    set_job_skills,
    write_job,
    write_job_update,
)
from ats.utils.serialization import to_object_id

logger = logging.getLogger(__name__)


async def create_department(
    db: Database, request: CreateDepartmentRequest, actor_id: Optional[ObjectId] = None
) -> dict:
    """Create a department and any nested jobs.

    Nested jobs are checked before the department is inserted.
    """
    department_id = ObjectId()
    document = DepartmentModel(
        name=request.name,
        description=request.description,
        hiring_manager_id=to_object_id(request.hiring_manager_id, "hiring_manager_id"),
    ).to_document()
    jobs = [job_document(department_id, job) for job in request.jobs]

    async with db.transaction() as session:
        await validate_before_create(db, "departments", document, session=session)
        if await db.departments.find_one({"name": request.name}, {"_id": 1}, session=session):
            raise ConflictError(f"Department {request.name} already exists")
        for job in jobs:
            await validate_nested(db, "jobs", job, "department_id", session=session)

        document["_id"] = department_id
        with conflict_on_duplicate(f"Department {request.name} already exists"):
            await db.departments.insert_one(document, session=session)

        document["jobs"] = [
            await write_job(db, job, fields.skills, session=session) for job, fields in zip(jobs, request.jobs)
        ]

        if actor_id is not None:
            await record_activity(
                db, actor_id, Action.CREATE, make_target("department", document["_id"]),
                details=f"Created department: {request.name}", session=session,
            )

    logger.info("Created department %s with %d jobs", document["_id"], len(document["jobs"]))
    return document


async def list_departments(db: Database, hiring_manager_id: Optional[ObjectId] = None) -> List[dict]:
    """Departments with their job counts."""
    query = {}
    if hiring_manager_id is not None:
        query["hiring_manager_id"] = hiring_manager_id

    departments = await db.departments.find(query).sort("name", 1).to_list(None)
    ids = [d["_id"] for d in departments]
    jobs = await db.jobs.find({"department_id": {"$in": ids}}, {"department_id": 1}).to_list(None)

    counts: Dict[ObjectId, int] = {}
    for job in jobs:
        counts[job["department_id"]] = counts.get(job["department_id"], 0) + 1
    for department in departments:
        department["job_count"] = counts.get(department["_id"], 0)
    return departments


async def get_department_view(db: Database, department_id: ObjectId) -> Optional[dict]:
    """Department with its hiring manager and jobs (each with skills)."""
    department = await db.departments.find_one({"_id": department_id})
    if not department:
        return None

    department["hiring_manager"] = await db.users.find_one(
        {"_id": department["hiring_manager_id"]}, {"name": 1, "email": 1}
    )
    jobs = await db.jobs.find({"department_id": department_id}).sort("_id", 1).to_list(None)
    skills = await db.job_skills.find({"job_id": {"$in": [j["_id"] for j in jobs]}}).to_list(None)
    for job in jobs:
        job["skills"] = [s["skill"] for s in skills if s["job_id"] == job["_id"]]
    department["jobs"] = jobs
    department["job_count"] = len(jobs)
    return department


async def _plan_job_sync(
    db: Database, department_id: ObjectId, jobs: List[DepartmentJobRequest], session=None
) -> Tuple[list, list, list]:
    """Check a full job list for the department without writing anything.

    Listed ids become updates, entries without an id become new jobs and
    existing jobs missing from the list are deleted with their dependents.
    """
    existing = {
        j["_id"]
        for j in await db.jobs.find({"department_id": department_id}, {"_id": 1}, session=session).to_list(None)
    }
    creates, updates = [], []
    keep = set()
    for job in jobs:
        if job.id is None:
            document = job_document(department_id, job)
            await validate_before_create(db, "jobs", document, session=session)
            creates.append((document, job.skills))
            continue

        job_id = to_object_id(job.id, "jobs.id")
        if job_id not in existing:
            raise ValidationFailed(
                "Job does not belong to this department",
                {"jobs": [f"Job {job.id} does not belong to this department"]},
            )
        keep.add(job_id)
        update = UpdateJobRequest(**job.model_dump(exclude={"id", "skills"}))
        current, changes = await prepare_job_update(db, job_id, update, session=session)
        updates.append((current, changes, job.skills))

    return creates, updates, sorted(existing - keep)


async def _apply_job_sync(db: Database, plan: Tuple[list, list, list], session=None):
    creates, updates, deletes = plan
    for current, changes, skills in updates:
        await write_job_update(db, current, changes, session=session)
        await set_job_skills(db, current["_id"], skills, session=session)
    for document, skills in creates:
        await write_job(db, document, skills, session=session)
    for job_id in deletes:
        await delete_with_cascade(db, "jobs", job_id, session=session)


async def update_department(
    db: Database,
    department_id: ObjectId,
    request: UpdateDepartmentRequest,
    actor_id: Optional[ObjectId] = None,
) -> Optional[dict]:
    changes = request.model_dump(exclude_none=True, exclude={"jobs"})
    if "hiring_manager_id" in changes:
        changes["hiring_manager_id"] = to_object_id(changes["hiring_manager_id"], "hiring_manager_id")

    async with db.transaction() as session:
        current = await db.departments.find_one({"_id": department_id}, session=session)
        if not current:
            raise NotFoundError("Department not found")

        await validate_before_update(db, "departments", current, changes, session=session)
        if "name" in changes and changes["name"] != current["name"]:
            if await db.departments.find_one({"name": changes["name"]}, {"_id": 1}, session=session):
                raise ConflictError(f"Department {changes['name']} already exists")
        plan = None
        if request.jobs is not None:
            plan = await _plan_job_sync(db, department_id, request.jobs, session=session)

        changes["updated_at"] = datetime.utcnow()
        with conflict_on_duplicate("Department name already exists"):
            await db.departments.update_one({"_id": department_id}, {"$set": changes}, session=session)

        if plan is not None:
            await _apply_job_sync(db, plan, session=session)

        if actor_id is not None:
            await record_activity(
                db, actor_id, Action.UPDATE, make_target("department", department_id), session=session
            )

    return await get_department_view(db, department_id)


async def delete_department(
    db: Database, department_id: ObjectId, actor_id: Optional[ObjectId] = None
) -> Dict[str, int]:
    async with db.transaction() as session:
        if not await db.departments.find_one({"_id": department_id}, {"_id": 1}, session=session):
            raise NotFoundError("Department not found")
        if actor_id is not None:
            await record_activity(
                db, actor_id, Action.DELETE, make_target("department", department_id), session=session
            )
        return await delete_with_cascade(db, "departments", department_id, session=session)

"""Hiring pipelines and their stages."""
import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from bson import ObjectId

from ats.config import settings
from ats.database import Database
from ats.errors import ConflictError, NotFoundError, ValidationFailed
from ats.models.enums import Action
from ats.models.pipeline import HiringPipelineModel, HiringStageModel
from ats.schemas.pipeline import (
    CreatePipelineRequest,
    StageRequest,
    UpdatePipelineRequest,
    UpdateStageRequest,
)
from ats.services.activity import make_target, record_activity
from ats.services.cascade import delete_with_cascade
from ats.services.integrity import (
    is_mandatory_stage_name,
    validate_before_create,
    validate_before_update,
    validate_nested,
)
from ats.utils.serialization import enum_values, to_object_id

logger = logging.getLogger(__name__)

SORT_FIELDS = {"name": "name", "created_at": "created_at", "status": "status"}


def check_required_stages(stages: List[StageRequest]):
    """A supplied stage list must contain every mandatory stage name."""
    names = {s.name.strip().lower() for s in stages}
    missing = [n for n in settings.mandatory_stage_names_list if n.lower() not in names]
    if missing:
        message = f"Pipeline must include {' and '.join(settings.mandatory_stage_names_list)} stages"
        raise ValidationFailed(message, {"stages": [message]})


def _stage_document(pipeline_id: ObjectId, stage: StageRequest, position: int) -> dict:
    return HiringStageModel(
        pipeline_id=pipeline_id,
        name=stage.name,
        description=stage.description,
        order=stage.order if stage.order is not None else position,
        mandatory=stage.mandatory or is_mandatory_stage_name(stage.name),
        schedule=stage.schedule,
        status=stage.status,
        max_candidates_allowed=stage.max_candidates_allowed,
        assigned_to_id=to_object_id(stage.assigned_to_id, "assigned_to_id") if stage.assigned_to_id else None,
    ).to_document()


async def _write_stage(db: Database, document: dict, session=None) -> dict:
    result = await db.hiring_stages.insert_one(document, session=session)
    document["_id"] = result.inserted_id
    return document


async def _insert_stage(db: Database, pipeline_id: ObjectId, stage: StageRequest, position: int, session=None) -> dict:
    document = _stage_document(pipeline_id, stage, position)
    await validate_before_create(db, "hiring_stages", document, session=session)
    return await _write_stage(db, document, session=session)


async def create_pipeline(
    db: Database,
    request: CreatePipelineRequest,
    created_by_id: ObjectId,
    actor_id: Optional[ObjectId] = None,
) -> dict:
    """Create a pipeline, optionally with its stages.

    Every stage is checked before the pipeline is inserted.
    """
    if request.stages is not None:
        check_required_stages(request.stages)

    pipeline_id = ObjectId()
    document = HiringPipelineModel(
        name=request.name,
        description=request.description,
        status=request.status,
        created_by_id=created_by_id,
    ).to_document()
    stages = [_stage_document(pipeline_id, stage, i) for i, stage in enumerate(request.stages or [])]

    async with db.transaction() as session:
        await validate_before_create(db, "hiring_pipelines", document, session=session)
        for stage in stages:
            await validate_nested(db, "hiring_stages", stage, "pipeline_id", session=session)

        document["_id"] = pipeline_id
        await db.hiring_pipelines.insert_one(document, session=session)
        document["stages"] = [await _write_stage(db, stage, session=session) for stage in stages]

        if actor_id is not None:
            await record_activity(
                db, actor_id, Action.CREATE, make_target("pipeline", pipeline_id),
                details=f"Created hiring pipeline: {request.name}", session=session,
            )

    document["stage_count"] = len(document["stages"])
    logger.info("Created pipeline %s with %d stages", pipeline_id, document["stage_count"])
    return document


async def list_pipelines(
    db: Database,
    status: Optional[str] = None,
    sort_by: str = "created_at",
    sort_order: str = "asc",
) -> List[dict]:
    """Pipelines with their ordered stages."""
    if sort_by not in SORT_FIELDS:
        raise ValidationFailed("Invalid sort field", {"sort_by": [f"Must be one of: {', '.join(SORT_FIELDS)}"]})
    if sort_order not in ("asc", "desc"):
        raise ValidationFailed("Invalid sort order", {"sort_order": ["Must be asc or desc"]})

    query = {"status": status} if status else {}
    pipelines = await db.hiring_pipelines.find(query).sort(
        SORT_FIELDS[sort_by], 1 if sort_order == "asc" else -1
    ).to_list(None)

    stages = await db.hiring_stages.find(
        {"pipeline_id": {"$in": [p["_id"] for p in pipelines]}}
    ).sort("order", 1).to_list(None)
    by_pipeline: Dict[ObjectId, List[dict]] = {}
    for stage in stages:
        by_pipeline.setdefault(stage["pipeline_id"], []).append(stage)

    for pipeline in pipelines:
        pipeline["stages"] = by_pipeline.get(pipeline["_id"], [])
        pipeline["stage_count"] = len(pipeline["stages"])
    return pipelines


async def get_pipeline_view(db: Database, pipeline_id: ObjectId) -> Optional[dict]:
    """Pipeline with creator, ordered stages and the jobs using it."""
    pipeline = await db.hiring_pipelines.find_one({"_id": pipeline_id})
    if not pipeline:
        return None

    pipeline["created_by"] = await db.users.find_one({"_id": pipeline["created_by_id"]}, {"name": 1, "email": 1})
    pipeline["stages"] = await db.hiring_stages.find({"pipeline_id": pipeline_id}).sort("order", 1).to_list(None)
    pipeline["stage_count"] = len(pipeline["stages"])
    pipeline["jobs"] = await db.jobs.find({"hiring_pipeline_id": pipeline_id}, {"title": 1, "status": 1}).to_list(None)
    return pipeline


def _guard_stage_deletion(stage: dict):
    if is_mandatory_stage_name(stage["name"]):
        raise ConflictError(f"Cannot delete required stage: {stage['name']}")


async def _plan_stage_sync(
    db: Database, pipeline_id: ObjectId, stages: List[StageRequest], session=None
) -> Tuple[list, list, list]:
    """Check a full stage list for the pipeline without writing anything.

    Listed ids become updates; only the fields sent for them change.
    """
    existing = {
        s["_id"]: s
        for s in await db.hiring_stages.find({"pipeline_id": pipeline_id}, session=session).to_list(None)
    }
    listed = {to_object_id(s.id, "stages.id") for s in stages if s.id}

    deletes = []
    for stage_id, stage in existing.items():
        if stage_id not in listed:
            _guard_stage_deletion(stage)
            deletes.append(stage_id)

    creates, updates = [], []
    for position, stage in enumerate(stages):
        if not stage.id:
            document = _stage_document(pipeline_id, stage, position)
            await validate_before_create(db, "hiring_stages", document, session=session)
            creates.append(document)
            continue
        stage_id = to_object_id(stage.id, "stages.id")
        if stage_id not in existing:
            raise ValidationFailed(
                "Stage does not belong to this pipeline",
                {"stages": [f"Stage {stage.id} does not belong to this pipeline"]},
            )
        changes = stage.model_dump(exclude={"id"}, exclude_unset=True, exclude_none=True)
        if stage.order is None:
            changes["order"] = position
        current = existing[stage_id]
        updates.append((current, await _prepare_stage_update(db, current, changes, session=session)))

    return creates, updates, deletes


async def _apply_stage_sync(db: Database, plan: Tuple[list, list, list], session=None):
    creates, updates, deletes = plan
    for stage_id in deletes:
        await delete_with_cascade(db, "hiring_stages", stage_id, session=session)
    for document in creates:
        await _write_stage(db, document, session=session)
    for current, changes in updates:
        await _write_stage_update(db, current, changes, session=session)


async def update_pipeline(
    db: Database,
    pipeline_id: ObjectId,
    request: UpdatePipelineRequest,
    actor_id: Optional[ObjectId] = None,
) -> Optional[dict]:
    if request.stages is not None:
        check_required_stages(request.stages)
    changes = enum_values(request.model_dump(exclude_none=True, exclude={"stages"}))

    async with db.transaction() as session:
        current = await db.hiring_pipelines.find_one({"_id": pipeline_id}, session=session)
        if not current:
            raise NotFoundError("Pipeline not found")

        plan = None
        if request.stages is not None:
            plan = await _plan_stage_sync(db, pipeline_id, request.stages, session=session)

        changes["updated_at"] = datetime.utcnow()
        await db.hiring_pipelines.update_one({"_id": pipeline_id}, {"$set": changes}, session=session)
        if plan is not None:
            await _apply_stage_sync(db, plan, session=session)

        if actor_id is not None:
            await record_activity(
                db, actor_id, Action.UPDATE, make_target("pipeline", pipeline_id), session=session
            )

    return await get_pipeline_view(db, pipeline_id)


async def add_stage(
    db: Database, pipeline_id: ObjectId, stage: StageRequest, actor_id: Optional[ObjectId] = None
) -> dict:
    async with db.transaction() as session:
        position = await db.hiring_stages.count_documents({"pipeline_id": pipeline_id}, session=session)
        document = await _insert_stage(db, pipeline_id, stage, position, session=session)
        if actor_id is not None:
            await record_activity(
                db, actor_id, Action.CREATE, make_target("stage", document["_id"]),
                details=f"Added hiring stage: {stage.name}", session=session,
            )
    return document


async def _prepare_stage_update(db: Database, current: dict, changes: dict, session=None) -> dict:
    changes = enum_values(changes)
    if "assigned_to_id" in changes:
        changes["assigned_to_id"] = to_object_id(changes["assigned_to_id"], "assigned_to_id")
    if is_mandatory_stage_name(changes.get("name", current["name"])):
        changes["mandatory"] = True

    await validate_before_update(db, "hiring_stages", current, changes, session=session)
    return changes


async def _write_stage_update(db: Database, current: dict, changes: dict, session=None) -> dict:
    changes["updated_at"] = datetime.utcnow()
    await db.hiring_stages.update_one({"_id": current["_id"]}, {"$set": changes}, session=session)
    return {**current, **changes}


async def update_stage(
    db: Database, stage_id: ObjectId, request: UpdateStageRequest, actor_id: Optional[ObjectId] = None
) -> dict:
    """Update one stage; a mandatory stage can never end up skipped."""
    async with db.transaction() as session:
        current = await db.hiring_stages.find_one({"_id": stage_id}, session=session)
        if not current:
            raise NotFoundError("Stage not found")
        changes = await _prepare_stage_update(db, current, request.model_dump(exclude_none=True), session=session)
        stage = await _write_stage_update(db, current, changes, session=session)
        if actor_id is not None:
            await record_activity(db, actor_id, Action.UPDATE, make_target("stage", stage_id), session=session)
    return stage


async def delete_stage(db: Database, stage_id: ObjectId, actor_id: Optional[ObjectId] = None) -> Dict[str, int]:
    async with db.transaction() as session:
        stage = await db.hiring_stages.find_one({"_id": stage_id}, session=session)
        if not stage:
            raise NotFoundError("Stage not found")
        _guard_stage_deletion(stage)
        if actor_id is not None:
            await record_activity(
                db, actor_id, Action.DELETE, make_target("stage", stage_id),
                details=f"Deleted hiring stage: {stage['name']}", session=session,
            )
        return await delete_with_cascade(db, "hiring_stages", stage_id, session=session)


async def delete_pipeline(db: Database, pipeline_id: ObjectId, actor_id: Optional[ObjectId] = None) -> Dict[str, int]:
    """Delete a pipeline and all its stages."""
    async with db.transaction() as session:
        pipeline = await db.hiring_pipelines.find_one({"_id": pipeline_id}, session=session)
        if not pipeline:
            raise NotFoundError("Pipeline not found")
        if actor_id is not None:
            await record_activity(
                db, actor_id, Action.DELETE, make_target("pipeline", pipeline_id),
                details=f"Deleted hiring pipeline: {pipeline['name']}", session=session,
            )
        return await delete_with_cascade(db, "hiring_pipelines", pipeline_id, session=session)

from datetime import datetime, timedelta

import pytest
from bson import ObjectId

from ats.errors import ConflictError, InvalidReference
from ats.schemas.candidate import CreateCandidateRequest, StageParticipationRequest, UpdateCandidateRequest
from ats.schemas.job import CreateDepartmentRequest, DepartmentJobRequest, UpdateDepartmentRequest
from ats.schemas.pipeline import CreatePipelineRequest, StageRequest, UpdatePipelineRequest
from ats.services.candidates import create_candidate, record_stage_participation, update_candidate
from ats.services.departments import create_department, update_department
from ats.services.interviews import schedule_interview
from ats.services.pipelines import create_pipeline, update_pipeline

from conftest import job_payload


def _stage(pipeline, name):
    return next(s for s in pipeline["stages"] if s["name"] == name)


@pytest.mark.asyncio
async def test_candidate_with_unknown_stage_leaves_nothing(db):
    request = CreateCandidateRequest(
        name="Robin",
        email="robin@example.com",
        skills=["go"],
        stage_participation=[StageParticipationRequest(stage_id=str(ObjectId()))],
    )

    with pytest.raises(InvalidReference) as exc:
        await create_candidate(db, request)

    assert exc.value.field == "stage_id"
    assert await db.candidates.count_documents({}) == 0
    assert await db.candidate_skills.count_documents({}) == 0

    retried = await create_candidate(db, CreateCandidateRequest(name="Robin", email="robin@example.com"))
    assert retried["email"] == "robin@example.com"


@pytest.mark.asyncio
async def test_candidate_into_full_stage_leaves_nothing(db, candidate, pipeline):
    tech = _stage(pipeline, "Tech Interview")
    await record_stage_participation(db, candidate["_id"], StageParticipationRequest(stage_id=str(tech["_id"])))

    request = CreateCandidateRequest(
        name="Robin",
        email="robin@example.com",
        stage_participation=[
            StageParticipationRequest(stage_id=str(_stage(pipeline, "Screening")["_id"])),
            StageParticipationRequest(stage_id=str(tech["_id"])),
        ],
    )
    with pytest.raises(ConflictError) as exc:
        await create_candidate(db, request)

    assert exc.value.message == "Stage Tech Interview is full (1 candidates allowed)"
    assert await db.candidates.count_documents({"email": "robin@example.com"}) == 0
    assert await db.stage_participants.count_documents({}) == 1


@pytest.mark.asyncio
async def test_candidate_listing_a_stage_twice(db, pipeline):
    screening = str(_stage(pipeline, "Screening")["_id"])
    request = CreateCandidateRequest(
        name="Robin",
        email="robin@example.com",
        stage_participation=[StageParticipationRequest(stage_id=screening), StageParticipationRequest(stage_id=screening)],
    )

    with pytest.raises(ConflictError):
        await create_candidate(db, request)
    assert await db.candidates.count_documents({}) == 0


@pytest.mark.asyncio
async def test_candidate_update_with_unknown_stage_changes_nothing(db, candidate):
    request = UpdateCandidateRequest(
        name="Casey Renamed",
        skills=["rust"],
        stage_participation=[StageParticipationRequest(stage_id=str(ObjectId()))],
    )

    with pytest.raises(InvalidReference):
        await update_candidate(db, candidate["_id"], request)

    stored = await db.candidates.find_one({"_id": candidate["_id"]})
    assert stored["name"] == "Casey Candidate"
    skills = await db.candidate_skills.find({"candidate_id": candidate["_id"]}).to_list(None)
    assert [s["skill"] for s in skills] == ["python"]


@pytest.mark.asyncio
async def test_pipeline_with_unknown_assignee_leaves_nothing(db, manager):
    request = CreatePipelineRequest(
        name="Design Hiring",
        description="Portfolio first",
        stages=[
            StageRequest(name="Application"),
            StageRequest(name="Screening"),
            StageRequest(name="Portfolio Review", assigned_to_id=str(ObjectId())),
        ],
    )

    with pytest.raises(InvalidReference) as exc:
        await create_pipeline(db, request, created_by_id=manager["_id"])

    assert exc.value.field == "assigned_to_id"
    assert await db.hiring_pipelines.count_documents({}) == 0
    assert await db.hiring_stages.count_documents({}) == 0


@pytest.mark.asyncio
async def test_pipeline_update_with_unknown_assignee_changes_nothing(db, pipeline):
    stages = [StageRequest(id=str(s["_id"]), name=s["name"]) for s in pipeline["stages"]]
    stages.append(StageRequest(name="Offer", assigned_to_id=str(ObjectId())))

    with pytest.raises(InvalidReference):
        await update_pipeline(db, pipeline["_id"], UpdatePipelineRequest(name="Renamed", stages=stages))

    stored = await db.hiring_pipelines.find_one({"_id": pipeline["_id"]})
    assert stored["name"] == "Engineering Hiring"
    names = [s["name"] for s in await db.hiring_stages.find({"pipeline_id": pipeline["_id"]}).to_list(None)]
    assert sorted(names) == ["Application", "Screening", "Tech Interview"]


@pytest.mark.asyncio
async def test_pipeline_update_dropping_required_stage_changes_nothing(db, pipeline):
    stages = [
        StageRequest(id=str(_stage(pipeline, "Screening")["_id"]), name="Screening"),
        StageRequest(name="Application"),
    ]

    with pytest.raises(ConflictError):
        await update_pipeline(db, pipeline["_id"], UpdatePipelineRequest(name="Renamed", stages=stages))

    assert (await db.hiring_pipelines.find_one({"_id": pipeline["_id"]}))["name"] == "Engineering Hiring"
    assert await db.hiring_stages.count_documents({"pipeline_id": pipeline["_id"]}) == 3


@pytest.mark.asyncio
async def test_department_with_bad_second_job_leaves_nothing(db, manager, pipeline):
    request = CreateDepartmentRequest(
        name="Data",
        description="Analytics",
        hiring_manager_id=str(manager["_id"]),
        jobs=[
            DepartmentJobRequest(**job_payload(manager["_id"], pipeline["_id"], title="Analyst")),
            DepartmentJobRequest(**job_payload(manager["_id"], ObjectId(), title="Data Engineer")),
        ],
    )

    with pytest.raises(InvalidReference) as exc:
        await create_department(db, request)

    assert exc.value.field == "hiring_pipeline_id"
    assert await db.departments.count_documents({}) == 0
    assert await db.jobs.count_documents({}) == 0
    assert await db.job_skills.count_documents({}) == 0


@pytest.mark.asyncio
async def test_department_update_with_bad_new_job_changes_nothing(db, department, job, manager, pipeline):
    request = UpdateDepartmentRequest(
        name="Platform",
        jobs=[
            DepartmentJobRequest(id=str(job["_id"]), **job_payload(manager["_id"], pipeline["_id"], title="Staff Engineer")),
            DepartmentJobRequest(**job_payload(ObjectId(), pipeline["_id"], title="SRE")),
        ],
    )

    with pytest.raises(InvalidReference) as exc:
        await update_department(db, department["_id"], request)

    assert exc.value.field == "hiring_manager_id"
    assert (await db.departments.find_one({"_id": department["_id"]}))["name"] == "Engineering"
    jobs = await db.jobs.find({"department_id": department["_id"]}).to_list(None)
    assert [j["title"] for j in jobs] == ["Backend Engineer"]


@pytest.mark.asyncio
async def test_interview_with_unknown_panel_member_leaves_nothing(db, candidate, pipeline, interviewer):
    with pytest.raises(InvalidReference) as exc:
        await schedule_interview(
            db,
            candidate["_id"],
            _stage(pipeline, "Screening")["_id"],
            datetime.utcnow() + timedelta(days=2),
            [interviewer["_id"], ObjectId()],
        )

    assert exc.value.field == "interviewer_id"
    assert await db.interviews.count_documents({}) == 0
    assert await db.interview_participants.count_documents({}) == 0

from datetime import datetime, timedelta

import pytest
from bson import ObjectId
from pydantic import ValidationError

from ats.errors import ConflictError, InvalidReference, ValidationFailed
from ats.models.enums import RoleName
from ats.models.job import ReferralTokenModel
from ats.schemas.candidate import CreateCandidateRequest, UpdateCandidateRequest
from ats.schemas.job import CreateJobRequest, UpdateJobRequest
from ats.schemas.pipeline import StageRequest, UpdateStageRequest
from ats.services.candidates import create_candidate, update_candidate
from ats.services.integrity import validate_before_create, validate_references
from ats.services.jobs import create_job, update_job
from ats.services.pipelines import add_stage, update_stage
from ats.services.roles import create_role

from conftest import job_payload


@pytest.mark.asyncio
async def test_unknown_department_fails_before_any_write(db, manager, pipeline):
    fields = CreateJobRequest(department_id=str(ObjectId()), **job_payload(manager["_id"], pipeline["_id"]))

    with pytest.raises(InvalidReference) as exc:
        await create_job(db, fields.department_id, fields)

    assert exc.value.message == "Invalid department_id"
    assert await db.jobs.count_documents({}) == 0
    assert await db.job_skills.count_documents({}) == 0


@pytest.mark.asyncio
async def test_first_failing_reference_is_reported(db, department):
    fields = CreateJobRequest(
        department_id=str(department["_id"]),
        **job_payload(ObjectId(), ObjectId()),
    )
    with pytest.raises(InvalidReference) as exc:
        await create_job(db, fields.department_id, fields)
    assert exc.value.field == "hiring_manager_id"


@pytest.mark.asyncio
async def test_unset_optional_reference_passes(db, pipeline):
    document = {"pipeline_id": pipeline["_id"], "assigned_to_id": None, "name": "Offer"}
    await validate_references(db, "hiring_stages", document)


@pytest.mark.asyncio
async def test_application_references_are_checked(db, candidate):
    document = {"candidate_id": candidate["_id"], "job_id": ObjectId()}
    with pytest.raises(InvalidReference) as exc:
        await validate_before_create(db, "job_applications", document)
    assert exc.value.field == "job_id"


def test_salary_range_rejected_on_input():
    with pytest.raises(ValidationError):
        CreateJobRequest(
            department_id=str(ObjectId()),
            **job_payload(ObjectId(), ObjectId(), minimum_salary=80, maximum_salary=60),
        )


def test_equal_salary_bounds_are_allowed():
    fields = CreateJobRequest(
        department_id=str(ObjectId()),
        **job_payload(ObjectId(), ObjectId(), minimum_salary=70, maximum_salary=70),
    )
    assert fields.maximum_salary == 70


@pytest.mark.asyncio
async def test_salary_checked_against_stored_values(db, job):
    with pytest.raises(ValidationFailed):
        await update_job(db, job["_id"], UpdateJobRequest(maximum_salary=50))

    updated = await update_job(db, job["_id"], UpdateJobRequest(maximum_salary=90))
    assert updated["maximum_salary"] == 90


@pytest.mark.asyncio
async def test_valid_salary_range_is_stored(db, department, manager, pipeline):
    fields = CreateJobRequest(
        department_id=str(department["_id"]),
        **job_payload(manager["_id"], pipeline["_id"], title="Data Engineer"),
    )
    job = await create_job(db, fields.department_id, fields)

    stored = await db.jobs.find_one({"_id": job["_id"]})
    assert (stored["minimum_salary"], stored["maximum_salary"]) == (60, 80)
    assert job["skills"] == ["python", "mongodb"]


@pytest.mark.asyncio
async def test_duplicate_candidate_email(db, candidate):
    with pytest.raises(ConflictError) as exc:
        await create_candidate(db, CreateCandidateRequest(name="Other", email="casey@example.com"))
    assert exc.value.message == "Email already in use"
    assert await db.candidates.count_documents({}) == 1


@pytest.mark.asyncio
async def test_candidate_cannot_take_another_candidates_email(db, candidate):
    other = await create_candidate(db, CreateCandidateRequest(name="Robin", email="robin@example.com"))
    with pytest.raises(ConflictError):
        await update_candidate(db, other["_id"], UpdateCandidateRequest(email="casey@example.com"))


@pytest.mark.asyncio
async def test_expired_referral_token_is_rejected(db, manager, job):
    document = ReferralTokenModel(
        token="expired-token",
        referred_by_id=manager["_id"],
        job_id=job["_id"],
        expires_at=datetime.utcnow() - timedelta(minutes=1),
    ).to_document()
    token_id = (await db.referral_tokens.insert_one(document)).inserted_id

    request = CreateCandidateRequest(name="Late", email="late@example.com", referral_token_id=str(token_id))
    with pytest.raises(InvalidReference) as exc:
        await create_candidate(db, request)
    assert exc.value.message == "Invalid or expired referral token"
    assert await db.candidates.count_documents({"email": "late@example.com"}) == 0


@pytest.mark.asyncio
async def test_mandatory_stage_cannot_be_created_skipped(db, pipeline):
    with pytest.raises(ValidationFailed):
        await add_stage(db, pipeline["_id"], StageRequest(name="Offer", mandatory=True, status="skipped"))


@pytest.mark.asyncio
async def test_mandatory_stage_cannot_be_skipped_later(db, pipeline):
    screening = next(s for s in pipeline["stages"] if s["name"] == "Screening")
    assert screening["mandatory"] is True

    with pytest.raises(ValidationFailed):
        await update_stage(db, screening["_id"], UpdateStageRequest(status="skipped"))

    stored = await db.hiring_stages.find_one({"_id": screening["_id"]})
    assert stored["status"] == "upcoming"


@pytest.mark.asyncio
async def test_optional_stage_can_be_skipped(db, pipeline):
    tech = next(s for s in pipeline["stages"] if s["name"] == "Tech Interview")
    stage = await update_stage(db, tech["_id"], UpdateStageRequest(status="skipped"))
    assert stage["status"] == "skipped"


@pytest.mark.asyncio
async def test_duplicate_role_name(db):
    with pytest.raises(ConflictError):
        await create_role(db, RoleName.ADMIN)

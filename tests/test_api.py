from datetime import datetime, timedelta

import pytest
from bson import ObjectId

from conftest import job_payload


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_create_department_with_jobs(client, manager, pipeline):
    response = await client.post("/api/v1/departments/", json={
        "name": "Data",
        "description": "Analytics and ML",
        "hiring_manager_id": str(manager["_id"]),
        "jobs": [job_payload(manager["_id"], pipeline["_id"], title="Data Scientist")],
    })

    assert response.status_code == 201
    body = response.json()
    assert body["name"] == "Data"
    assert [j["title"] for j in body["jobs"]] == ["Data Scientist"]
    assert body["jobs"][0]["skills"] == ["python", "mongodb"]

    listing = await client.get("/api/v1/departments/")
    assert [(d["name"], d["job_count"]) for d in listing.json()] == [("Data", 1)]


@pytest.mark.asyncio
async def test_inverted_salary_range_is_unprocessable(client, department, manager, pipeline):
    payload = job_payload(manager["_id"], pipeline["_id"], minimum_salary=80, maximum_salary=60)
    payload["department_id"] = str(department["_id"])

    response = await client.post("/api/v1/jobs/", json=payload)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_unknown_reference_is_bad_request(client, manager, pipeline):
    payload = job_payload(manager["_id"], pipeline["_id"])
    payload["department_id"] = str(ObjectId())

    response = await client.post("/api/v1/jobs/", json=payload)

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": {
            "code": "INVALID_REFERENCE",
            "message": "Invalid department_id",
            "details": {"department_id": ["Invalid department_id"]},
        },
    }


@pytest.mark.asyncio
async def test_duplicate_candidate_email_conflicts(client, candidate):
    response = await client.post("/api/v1/candidates/", json={"name": "Copy", "email": "casey@example.com"})

    assert response.status_code == 409
    error = response.json()["error"]
    assert error["code"] == "CONFLICT"
    assert error["message"] == "Email already in use"


@pytest.mark.asyncio
async def test_status_endpoint_enforces_transitions(client, candidate):
    url = f"/api/v1/candidates/{candidate['_id']}/status"

    response = await client.post(url, json={"status": "shortlisted"})
    assert response.status_code == 200
    assert response.json()["status"] == "shortlisted"

    response = await client.post(url, json={"status": "offered"})
    assert response.status_code == 409
    assert response.json()["error"]["message"] == "Invalid status transition from shortlisted to offered"


@pytest.mark.asyncio
async def test_candidate_view(client, candidate, job):
    await client.post("/api/v1/applications", json={
        "candidate_id": str(candidate["_id"]), "job_id": str(job["_id"]),
    })

    response = await client.get(f"/api/v1/candidates/{candidate['_id']}")

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == str(candidate["_id"])
    assert body["skills"] == ["python"]
    assert body["applications"][0]["job"]["title"] == "Backend Engineer"


@pytest.mark.asyncio
async def test_missing_and_malformed_ids(client):
    response = await client.get(f"/api/v1/candidates/{ObjectId()}")
    assert response.status_code == 404

    response = await client.get("/api/v1/candidates/not-an-id")
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_REFERENCE"


@pytest.mark.asyncio
async def test_duplicate_application_over_http(client, candidate, job):
    payload = {"candidate_id": str(candidate["_id"]), "job_id": str(job["_id"])}

    assert (await client.post("/api/v1/applications", json=payload)).status_code == 201
    response = await client.post("/api/v1/applications", json=payload)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_interview_must_be_in_future(client, candidate, pipeline):
    screening = next(s for s in pipeline["stages"] if s["name"] == "Screening")
    payload = {
        "candidate_id": str(candidate["_id"]),
        "stage_id": str(screening["_id"]),
        "scheduled_at": (datetime.utcnow() - timedelta(hours=1)).isoformat(),
    }

    assert (await client.post("/api/v1/interviews/", json=payload)).status_code == 422

    payload["scheduled_at"] = (datetime.utcnow() + timedelta(days=1)).isoformat()
    response = await client.post("/api/v1/interviews/", json=payload)
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_deleting_required_stage_over_http(client, pipeline):
    application = next(s for s in pipeline["stages"] if s["name"] == "Application")

    response = await client.delete(f"/api/v1/pipelines/stages/{application['_id']}")

    assert response.status_code == 409
    assert response.json()["error"]["message"] == "Cannot delete required stage: Application"


@pytest.mark.asyncio
async def test_delete_department(client, department):
    response = await client.delete(f"/api/v1/departments/{department['_id']}")
    assert response.status_code == 204

    response = await client.get(f"/api/v1/departments/{department['_id']}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_team_management_needs_permission(client):
    response = await client.post("/api/v1/teams/", json={"name": "Recruiting"})
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_activity_feed(client, candidate, manager):
    await client.post(f"/api/v1/candidates/{candidate['_id']}/notes", json={"note": "Good call"})

    response = await client.get("/api/v1/activity/", params={"target_type": "note"})

    assert response.status_code == 200
    entries = response.json()
    assert len(entries) == 1
    assert entries[0]["actor_id"] == str(manager["_id"])


@pytest.mark.asyncio
async def test_register_verify_login_over_http(client, db):
    response = await client.post("/api/v1/auth/register", json={
        "name": "Avery", "email": "avery@example.com", "password": "long-enough",
    })
    assert response.status_code == 201
    assert response.json()["user"]["status"] == "unverified"

    credential = await db.credentials.find_one({})
    response = await client.get("/api/v1/auth/verify", params={"code": credential["verify_code"]})
    assert response.json()["status"] == "verified"

    response = await client.post("/api/v1/auth/login", json={"email": "avery@example.com", "password": "long-enough"})
    assert response.status_code == 200
    assert response.json()["token_type"] == "bearer"

    response = await client.post("/api/v1/auth/login", json={"email": "avery@example.com", "password": "wrong-one"})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"

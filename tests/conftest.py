import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from ats.database import Database
from ats.models.enums import RoleName, UserStatus
from ats.models.user import UserModel
from ats.schemas.candidate import CreateCandidateRequest
from ats.schemas.job import CreateDepartmentRequest, DepartmentJobRequest
from ats.schemas.pipeline import CreatePipelineRequest, StageRequest
from ats.services.candidates import create_candidate
from ats.services.departments import create_department
from ats.services.pipelines import create_pipeline
from ats.services.roles import ensure_default_roles
from ats.services.teams import ensure_team_roles


class RecordingMailer:
    """Keeps outgoing codes instead of posting them."""

    def __init__(self):
        self.verifications = []
        self.resets = []

    async def send_verification(self, to, name, code):
        self.verifications.append((to, code))
        return True

    async def send_password_reset(self, to, code):
        self.resets.append((to, code))
        return True


async def insert_user(db, role_name=RoleName.HIRING_MANAGER, email="manager@example.com",
                      status=UserStatus.VERIFIED, name="Morgan Manager"):
    role = await db.roles.find_one({"name": role_name.value})
    document = UserModel(name=name, email=email, role_id=role["_id"], status=status).to_document()
    result = await db.users.insert_one(document)
    document["_id"] = result.inserted_id
    return document


def job_payload(manager_id, pipeline_id, **overrides):
    data = {
        "title": "Backend Engineer",
        "hiring_manager_id": str(manager_id),
        "hiring_pipeline_id": str(pipeline_id),
        "work_location": "Berlin",
        "head_count": 2,
        "minimum_salary": 60,
        "maximum_salary": 80,
        "job_description": "Build and run Python services.",
        "skills": ["python", "mongodb"],
    }
    data.update(overrides)
    return data


@pytest_asyncio.fixture()
async def db():
    database = Database(AsyncMongoMockClient(), "ats_test")
    await database.ensure_indexes()
    await ensure_default_roles(database)
    await ensure_team_roles(database)
    return database


@pytest.fixture()
def mailer():
    return RecordingMailer()


@pytest_asyncio.fixture()
async def manager(db):
    return await insert_user(db)


@pytest_asyncio.fixture()
async def interviewer(db):
    return await insert_user(db, RoleName.INTERVIEWER, email="interviewer@example.com", name="Ira Interviewer")


@pytest_asyncio.fixture()
async def pipeline(db, manager):
    request = CreatePipelineRequest(
        name="Engineering Hiring",
        description="Default engineering process",
        stages=[
            StageRequest(name="Application"),
            StageRequest(name="Screening"),
            StageRequest(name="Tech Interview", max_candidates_allowed=1),
        ],
    )
    return await create_pipeline(db, request, created_by_id=manager["_id"])


@pytest_asyncio.fixture()
async def department(db, manager, pipeline):
    request = CreateDepartmentRequest(
        name="Engineering",
        description="Builds the product",
        hiring_manager_id=str(manager["_id"]),
        jobs=[DepartmentJobRequest(**job_payload(manager["_id"], pipeline["_id"]))],
    )
    return await create_department(db, request)


@pytest.fixture()
def job(department):
    return department["jobs"][0]


@pytest_asyncio.fixture()
async def candidate(db):
    request = CreateCandidateRequest(name="Casey Candidate", email="casey@example.com", skills=["python"])
    return await create_candidate(db, request)


@pytest_asyncio.fixture()
async def client(db, manager):
    from ats.main import app
    from ats.utils.dependencies import get_current_active_user

    app.state.database = db
    app.dependency_overrides[get_current_active_user] = lambda: manager
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()

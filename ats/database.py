"""Database connection and utilities."""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from motor.motor_asyncio import AsyncIOMotorClientSession
from pymongo import ASCENDING

from ats.config import Settings

logger = logging.getLogger(__name__)


class Database:
    """MongoDB handle passed explicitly to every service call.

    Wraps the Motor client together with the selected database so that the
    write path can open multi-document transactions on the same client it
    reads from.
    """

    def __init__(self, client: AsyncIOMotorClient, name: str, transactions: bool = False):
        self.client = client
        self.db: AsyncIOMotorDatabase = client[name]
        self.transactions = transactions

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Connect to MongoDB using application settings."""
        client = AsyncIOMotorClient(settings.mongodb_url)
        logger.info("Connected to MongoDB: %s", settings.mongodb_db_name)
        return cls(client, settings.mongodb_db_name, transactions=settings.mongodb_transactions)

    def close(self):
        """Disconnect from MongoDB."""
        self.client.close()
        logger.info("Disconnected from MongoDB")

    def __getattr__(self, collection: str):
        # db.candidates style access, same as on the Motor database
        if collection.startswith("_") or "db" not in self.__dict__:
            raise AttributeError(collection)
        return self.__dict__["db"][collection]

    def __getitem__(self, collection: str):
        return self.db[collection]

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Optional[AsyncIOMotorClientSession]]:
        """Run a block inside a multi-document transaction when available.

        Yields ``None`` on deployments without transaction support, in which
        case the block runs as a plain sequence of writes.
        """
        if not self.transactions:
            yield None
            return

        async with await self.client.start_session() as session:
            async with session.start_transaction():
                try:
                    yield session
                except Exception:
                    logger.warning("Transaction aborted", exc_info=True)
                    raise

    async def ensure_indexes(self, activity_retention_seconds: int = 31536000):
        """Create unique, TTL and lookup indexes."""
        db = self.db

        await db.roles.create_index("name", unique=True)
        await db.role_permissions.create_index([("role_id", ASCENDING), ("permission", ASCENDING)], unique=True)
        await db.users.create_index("email", unique=True)
        await db.credentials.create_index("user_id", unique=True)
        await db.credentials.create_index("verify_code")

        await db.teams.create_index("name", unique=True)
        await db.team_roles.create_index("name", unique=True)
        await db.team_members.create_index([("user_id", ASCENDING), ("team_id", ASCENDING)], unique=True)

        await db.departments.create_index("name", unique=True)
        await db.departments.create_index("hiring_manager_id")

        await db.jobs.create_index("department_id")
        await db.jobs.create_index("hiring_manager_id")
        await db.jobs.create_index("hiring_pipeline_id")
        await db.job_skills.create_index([("job_id", ASCENDING), ("skill", ASCENDING)], unique=True)

        await db.hiring_pipelines.create_index("created_by_id")
        await db.hiring_stages.create_index("pipeline_id")
        await db.hiring_stages.create_index("assigned_to_id")

        await db.candidates.create_index("email", unique=True)
        await db.candidates.create_index("referral_token_id")
        await db.candidate_skills.create_index([("candidate_id", ASCENDING), ("skill", ASCENDING)], unique=True)
        await db.job_applications.create_index([("candidate_id", ASCENDING), ("job_id", ASCENDING)], unique=True)

        await db.referral_tokens.create_index("token", unique=True)
        await db.referral_tokens.create_index("referred_by_id")
        await db.referral_tokens.create_index("job_id")
        await db.referral_tokens.create_index("expires_at", expireAfterSeconds=0)

        await db.stage_participants.create_index([("candidate_id", ASCENDING), ("stage_id", ASCENDING)], unique=True)
        await db.interviews.create_index([("candidate_id", ASCENDING), ("stage_id", ASCENDING)])
        await db.interview_participants.create_index(
            [("interview_id", ASCENDING), ("interviewer_id", ASCENDING)], unique=True
        )
        await db.checklists.create_index("interview_id")
        await db.notes.create_index([("candidate_id", ASCENDING), ("created_at", ASCENDING)])
        await db.attachments.create_index([("candidate_id", ASCENDING), ("uploaded_at", ASCENDING)])

        await db.activity_logs.create_index(
            [("actor_id", ASCENDING), ("target_type", ASCENDING), ("timestamp", ASCENDING)]
        )
        await db.activity_logs.create_index([("target_type", ASCENDING), ("target_id", ASCENDING)])
        await db.activity_logs.create_index("timestamp", expireAfterSeconds=activity_retention_seconds)

        await db.resume_analyses.create_index("job_id")
        logger.info("MongoDB indexes ensured")


# Dependency for FastAPI routes
async def get_db(request: Request) -> Database:
    """Get the database handle created in the application lifespan."""
    database = getattr(request.app.state, "database", None)
    if database is None:
        raise RuntimeError("Database not connected. Start the application lifespan first.")
    return database

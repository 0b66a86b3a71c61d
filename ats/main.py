"""FastAPI application entry point."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from ats.config import settings
from ats.database import Database
from ats.errors import register_exception_handlers
from ats.routers import (
    activity,
    analyses,
    applications,
    auth,
    candidates,
    departments,
    interviews,
    jobs,
    pipelines,
    roles,
    teams,
)
from ats.services.roles import ensure_default_roles
from ats.services.teams import ensure_team_roles

logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, settings.log_level.upper(), logging.INFO)
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    database = Database.from_settings(settings)
    await database.ensure_indexes(settings.activity_log_retention_seconds)
    await ensure_default_roles(database)
    await ensure_team_roles(database)
    app.state.database = database
    yield
    # Shutdown
    database.close()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(auth.router)
app.include_router(roles.router)
app.include_router(teams.router)
app.include_router(departments.router)
app.include_router(jobs.router)
app.include_router(pipelines.router)
app.include_router(candidates.router)
app.include_router(applications.router)
app.include_router(interviews.router)
app.include_router(activity.router)
app.include_router(analyses.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Hiring Manager API",
        "version": settings.app_version,
        "docs": "/docs"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}

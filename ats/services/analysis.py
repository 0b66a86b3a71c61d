"""Batch resume analysis with a single retry pass."""
import logging
from typing import Callable, Dict, List, Optional, Tuple

from bson import ObjectId
from fastapi.concurrency import run_in_threadpool
from pymongo.errors import PyMongoError

from ats.database import Database
from ats.errors import ATSError, InvalidReference, ValidationFailed
from ats.models.analysis import ResumeAnalysisModel
from ats.services.resume_matcher import ResumeMatcher
from ats.services.resume_parser import parse_resume

logger = logging.getLogger(__name__)


async def resolve_job_description(
    db: Database, job_description: Optional[str], job_id: Optional[ObjectId]
) -> str:
    """Explicit text wins; otherwise the job's own description."""
    if job_description and job_description.strip():
        return job_description

    if job_id is not None:
        job = await db.jobs.find_one({"_id": job_id}, {"job_description": 1})
        if not job:
            raise InvalidReference("job_id")
        if (job.get("job_description") or "").strip():
            return job["job_description"].strip()

    raise ValidationFailed("Job description is required.", {"job_description": ["Job description is required."]})


class ResumeAnalyser:
    """Parses, scores and stores resumes one by one.

    Each file gets two attempts; parsed text is kept between attempts so a
    retry only repeats the step that failed. Files are tracked by their
    position in the batch, since uploads may share a name.
    """

    def __init__(
        self,
        db: Database,
        matcher: Optional[ResumeMatcher] = None,
        parser: Callable[[str, bytes], str] = parse_resume,
    ):
        self.db = db
        self.matcher = matcher or ResumeMatcher()
        self.parser = parser
        self._texts: Dict[int, str] = {}
        self._names: Dict[int, str] = {}

    async def _analyse_one(
        self, index: int, file_name: str, content: bytes, job_description: str, job_id: Optional[ObjectId]
    ) -> dict:
        if index not in self._texts:
            self._texts[index] = await run_in_threadpool(self.parser, file_name, content)
        text = self._texts[index]

        result = await self.matcher.match(text, job_description)
        self._names[index] = result.candidate_name

        document = ResumeAnalysisModel(
            candidate_name=result.candidate_name,
            email=result.email,
            score=result.score,
            good_points=result.good_points,
            bad_points=result.bad_points,
            job_description=job_description,
            resume_text=text,
            file_name=file_name,
            job_id=job_id,
        ).to_document()
        inserted = await self.db.resume_analyses.insert_one(document)
        document["_id"] = inserted.inserted_id
        return document

    async def run(
        self,
        files: List[Tuple[str, bytes]],
        job_description: str,
        job_id: Optional[ObjectId] = None,
    ) -> dict:
        saved: List[dict] = []
        failed: List[Tuple[int, str, bytes]] = []

        for index, (file_name, content) in enumerate(files):
            try:
                saved.append(await self._analyse_one(index, file_name, content, job_description, job_id))
            except (ATSError, PyMongoError) as e:
                logger.warning("Analysis of %s failed, will retry: %s", file_name, e)
                failed.append((index, file_name, content))

        still_failed = []
        for index, file_name, content in failed:
            try:
                saved.append(await self._analyse_one(index, file_name, content, job_description, job_id))
                logger.info("Retry succeeded for %s", file_name)
            except (ATSError, PyMongoError) as e:
                logger.error("Analysis of %s failed after retry: %s", file_name, e)
                still_failed.append({
                    "file_name": file_name,
                    "candidate_name": self._names.get(index),
                    "reason": str(e),
                })

        return {"success": not still_failed, "saved": saved, "failed": still_failed}


async def analyse_resumes(
    db: Database,
    files: List[Tuple[str, bytes]],
    job_description: Optional[str] = None,
    job_id: Optional[ObjectId] = None,
    matcher: Optional[ResumeMatcher] = None,
    parser: Callable[[str, bytes], str] = parse_resume,
) -> dict:
    """Analyse uploaded resumes against a job description."""
    if not files:
        raise ValidationFailed("At least one resume file is required.", {"resumes": ["At least one resume file is required."]})

    description = await resolve_job_description(db, job_description, job_id)
    analyser = ResumeAnalyser(db, matcher=matcher, parser=parser)
    return await analyser.run(files, description, job_id)


async def list_analyses(db: Database, job_id: Optional[ObjectId] = None, limit: int = 100) -> List[dict]:
    """Stored analyses, best score first."""
    query = {"job_id": job_id} if job_id is not None else {}
    return await db.resume_analyses.find(query).sort("score", -1).to_list(length=limit)

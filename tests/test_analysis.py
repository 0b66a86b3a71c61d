import pytest
from bson import ObjectId

from ats.errors import IntegrationError, InvalidReference, ValidationFailed
from ats.schemas.analysis import ResumeMatch
from ats.services.analysis import analyse_resumes, list_analyses, resolve_job_description
from ats.services.resume_parser import ResumeParseError, parse_resume


class FlakyMatcher:
    """Fails the first ``failures[name]`` calls for resumes mentioning ``name``."""

    def __init__(self, failures=None):
        self.failures = dict(failures or {})
        self.calls = []

    async def match(self, resume, job_description):
        self.calls.append(resume)
        name = resume.split(":", 1)[0]
        if self.failures.get(name, 0) > 0:
            self.failures[name] -= 1
            raise IntegrationError("Resume matching service failed")
        return ResumeMatch(
            candidate_name=name,
            email=f"{name.lower()}@example.com",
            score=90 if name == "Alex" else 40,
            good_points=["python"],
            bad_points=[],
        )


class CountingParser:
    def __init__(self):
        self.calls = []

    def __call__(self, file_name, content):
        self.calls.append(file_name)
        return content.decode()


FILES = [("alex.pdf", b"Alex: ten years of Python"), ("blair.docx", b"Blair: two years of Go")]


@pytest.mark.asyncio
async def test_all_resumes_scored_and_stored(db, job):
    result = await analyse_resumes(
        db, FILES, job_id=job["_id"], matcher=FlakyMatcher(), parser=CountingParser()
    )

    assert result["success"] is True
    assert result["failed"] == []
    stored = await list_analyses(db, job_id=job["_id"])
    assert [a["candidate_name"] for a in stored] == ["Alex", "Blair"]
    assert stored[0]["job_description"] == "Build and run Python services."


@pytest.mark.asyncio
async def test_transient_failure_is_retried_without_reparsing(db):
    matcher = FlakyMatcher({"Blair": 1})
    parser = CountingParser()

    result = await analyse_resumes(db, FILES, job_description="Go developer", matcher=matcher, parser=parser)

    assert result["success"] is True
    assert len(result["saved"]) == 2
    assert len(matcher.calls) == 3
    assert parser.calls == ["alex.pdf", "blair.docx"]


@pytest.mark.asyncio
async def test_second_failure_is_reported(db):
    matcher = FlakyMatcher({"Blair": 2})

    result = await analyse_resumes(db, FILES, job_description="Go developer", matcher=matcher, parser=CountingParser())

    assert result["success"] is False
    assert [a["candidate_name"] for a in result["saved"]] == ["Alex"]
    assert result["failed"] == [{
        "file_name": "blair.docx",
        "candidate_name": None,
        "reason": "Resume matching service failed",
    }]
    assert await db.resume_analyses.count_documents({}) == 1


@pytest.mark.asyncio
async def test_same_file_name_twice_keeps_each_resume(db):
    files = [("resume.pdf", b"Alex: python"), ("resume.pdf", b"Blair: go")]
    matcher = FlakyMatcher({"Blair": 1})
    parser = CountingParser()

    result = await analyse_resumes(db, files, job_description="Any developer", matcher=matcher, parser=parser)

    assert sorted(a["candidate_name"] for a in result["saved"]) == ["Alex", "Blair"]
    assert matcher.calls == ["Alex: python", "Blair: go", "Blair: go"]
    assert parser.calls == ["resume.pdf", "resume.pdf"]
    stored = {a["candidate_name"]: a["resume_text"] for a in await list_analyses(db)}
    assert stored == {"Alex": "Alex: python", "Blair": "Blair: go"}


@pytest.mark.asyncio
async def test_unsupported_file_fails_both_passes(db):
    result = await analyse_resumes(
        db, [("notes.txt", b"plain text")], job_description="Anything", matcher=FlakyMatcher()
    )
    assert result["failed"][0]["reason"] == "Unsupported file type: notes.txt"


@pytest.mark.asyncio
async def test_explicit_description_wins(db, job):
    assert await resolve_job_description(db, "Custom text", job["_id"]) == "Custom text"


@pytest.mark.asyncio
async def test_description_required(db):
    with pytest.raises(ValidationFailed) as exc:
        await resolve_job_description(db, "  ", None)
    assert exc.value.message == "Job description is required."


@pytest.mark.asyncio
async def test_unknown_job(db):
    with pytest.raises(InvalidReference):
        await resolve_job_description(db, None, ObjectId())


@pytest.mark.asyncio
async def test_no_files(db):
    with pytest.raises(ValidationFailed):
        await analyse_resumes(db, [], job_description="Anything", matcher=FlakyMatcher())


def test_parser_rejects_other_formats():
    with pytest.raises(ResumeParseError):
        parse_resume("resume", b"")
    with pytest.raises(ResumeParseError):
        parse_resume("resume.pdf", b"not a pdf")


def test_score_bounds():
    with pytest.raises(ValueError):
        ResumeMatch(candidate_name="X", email="x@example.com", score=101, good_points=[], bad_points=[])

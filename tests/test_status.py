import itertools

import pytest
from bson import ObjectId

from ats.errors import ConflictError, NotFoundError
from ats.models.enums import CandidateStatus
from ats.schemas.candidate import UpdateCandidateRequest
from ats.services.candidates import change_candidate_status, update_candidate
from ats.services.status import TRANSITIONS, can_transition, ensure_transition


ALLOWED = {
    ("applied", "shortlisted"),
    ("applied", "rejected"),
    ("shortlisted", "interviewed"),
    ("shortlisted", "rejected"),
    ("interviewed", "offered"),
    ("interviewed", "rejected"),
    ("offered", "rejected"),
}


def test_transition_table_matches_allowed_pairs():
    for current, new in itertools.product(CandidateStatus, CandidateStatus):
        assert can_transition(current, new) == ((current.value, new.value) in ALLOWED)


def test_staying_on_a_status_is_not_a_transition():
    for value in CandidateStatus:
        assert not can_transition(value, value)


def test_rejected_is_terminal():
    assert TRANSITIONS[CandidateStatus.REJECTED] == frozenset()


def test_ensure_transition_names_both_statuses():
    with pytest.raises(ConflictError) as exc:
        ensure_transition("applied", "offered")
    assert exc.value.message == "Invalid status transition from applied to offered"


@pytest.mark.asyncio
async def test_shortlist_then_offer_needs_interview(db, candidate):
    candidate_id = candidate["_id"]

    result = await change_candidate_status(db, candidate_id, CandidateStatus.SHORTLISTED)
    assert result["status"] == "shortlisted"

    with pytest.raises(ConflictError):
        await change_candidate_status(db, candidate_id, CandidateStatus.OFFERED)
    stored = await db.candidates.find_one({"_id": candidate_id})
    assert stored["status"] == "shortlisted"

    await change_candidate_status(db, candidate_id, CandidateStatus.INTERVIEWED)
    result = await change_candidate_status(db, candidate_id, CandidateStatus.OFFERED)
    assert result["status"] == "offered"

    await change_candidate_status(db, candidate_id, CandidateStatus.REJECTED)
    stored = await db.candidates.find_one({"_id": candidate_id})
    assert stored["status"] == "rejected"


@pytest.mark.asyncio
async def test_illegal_change_leaves_status_untouched(db, candidate):
    for target in (CandidateStatus.INTERVIEWED, CandidateStatus.OFFERED, CandidateStatus.APPLIED):
        with pytest.raises(ConflictError):
            await change_candidate_status(db, candidate["_id"], target)
        stored = await db.candidates.find_one({"_id": candidate["_id"]})
        assert stored["status"] == "applied"


@pytest.mark.asyncio
async def test_status_change_records_activity(db, candidate, manager):
    await change_candidate_status(db, candidate["_id"], CandidateStatus.SHORTLISTED, actor_id=manager["_id"])

    entry = await db.activity_logs.find_one({"target_id": candidate["_id"]})
    assert entry["actor_id"] == manager["_id"]
    assert entry["target_type"] == "candidate"
    assert entry["details"] == "Status changed from applied to shortlisted"


@pytest.mark.asyncio
async def test_change_status_of_missing_candidate(db):
    with pytest.raises(NotFoundError):
        await change_candidate_status(db, ObjectId(), CandidateStatus.SHORTLISTED)


@pytest.mark.asyncio
async def test_update_resending_current_status_is_a_noop(db, candidate):
    view = await update_candidate(db, candidate["_id"], UpdateCandidateRequest(status="applied", age=30))
    assert view["status"] == "applied"
    assert view["age"] == 30


@pytest.mark.asyncio
async def test_update_checks_status_table(db, candidate):
    with pytest.raises(ConflictError):
        await update_candidate(db, candidate["_id"], UpdateCandidateRequest(status="offered", age=41))

    stored = await db.candidates.find_one({"_id": candidate["_id"]})
    assert stored["status"] == "applied"
    assert stored.get("age") is None


class StaleCandidates:
    """Candidates collection whose reads return an earlier snapshot."""

    def __init__(self, collection, snapshot):
        self.collection = collection
        self.snapshot = snapshot

    async def find_one(self, *args, **kwargs):
        return dict(self.snapshot)

    def __getattr__(self, name):
        return getattr(self.collection, name)


@pytest.mark.asyncio
async def test_status_moved_by_someone_else(db, candidate, manager, monkeypatch):
    snapshot = await db.candidates.find_one({"_id": candidate["_id"]})
    await change_candidate_status(db, candidate["_id"], CandidateStatus.REJECTED)
    monkeypatch.setattr(db, "candidates", StaleCandidates(db.candidates, snapshot), raising=False)

    with pytest.raises(ConflictError) as exc:
        await change_candidate_status(db, candidate["_id"], CandidateStatus.SHORTLISTED, actor_id=manager["_id"])

    assert exc.value.message == "Candidate status is no longer applied"
    monkeypatch.undo()
    assert (await db.candidates.find_one({"_id": candidate["_id"]}))["status"] == "rejected"
    assert await db.activity_logs.count_documents({"actor_id": manager["_id"]}) == 0

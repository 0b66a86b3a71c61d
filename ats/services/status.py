"""Candidate status state machine."""
from typing import Dict, FrozenSet, Union

from ats.errors import ConflictError
from ats.models.enums import CandidateStatus


TRANSITIONS: Dict[CandidateStatus, FrozenSet[CandidateStatus]] = {
    CandidateStatus.APPLIED: frozenset({CandidateStatus.SHORTLISTED, CandidateStatus.REJECTED}),
    CandidateStatus.SHORTLISTED: frozenset({CandidateStatus.INTERVIEWED, CandidateStatus.REJECTED}),
    CandidateStatus.INTERVIEWED: frozenset({CandidateStatus.OFFERED, CandidateStatus.REJECTED}),
    CandidateStatus.OFFERED: frozenset({CandidateStatus.REJECTED}),
    CandidateStatus.REJECTED: frozenset(),
}


def can_transition(current: Union[CandidateStatus, str], new: Union[CandidateStatus, str]) -> bool:
    """Whether ``current -> new`` is in the transition table.

    Staying on the same status is not a transition and returns False.
    """
    return CandidateStatus(new) in TRANSITIONS[CandidateStatus(current)]


def ensure_transition(current: Union[CandidateStatus, str], new: Union[CandidateStatus, str]):
    if not can_transition(current, new):
        raise ConflictError(
            f"Invalid status transition from {CandidateStatus(current).value} to {CandidateStatus(new).value}"
        )

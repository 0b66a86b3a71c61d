"""Activity log models.

The log target is a closed tagged union: every variant pins its ``kind``
and the collection its id lives in, so resolving a target never goes through
a runtime name-to-collection lookup.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Annotated, ClassVar, Literal, Optional, Union
from datetime import datetime

from ats.models.common import DocumentModel, PyObjectId
from ats.models.enums import Action, TargetType


class _Target(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    collection: ClassVar[str]
    id: PyObjectId


class UserTarget(_Target):
    kind: Literal["user"] = "user"
    collection: ClassVar[str] = "users"


class CandidateTarget(_Target):
    kind: Literal["candidate"] = "candidate"
    collection: ClassVar[str] = "candidates"


class JobTarget(_Target):
    kind: Literal["job"] = "job"
    collection: ClassVar[str] = "jobs"


class StageTarget(_Target):
    kind: Literal["stage"] = "stage"
    collection: ClassVar[str] = "hiring_stages"


class PipelineTarget(_Target):
    kind: Literal["pipeline"] = "pipeline"
    collection: ClassVar[str] = "hiring_pipelines"


class InterviewTarget(_Target):
    kind: Literal["interview"] = "interview"
    collection: ClassVar[str] = "interviews"


class ChecklistTarget(_Target):
    kind: Literal["checklist"] = "checklist"
    collection: ClassVar[str] = "checklists"


class NoteTarget(_Target):
    kind: Literal["note"] = "note"
    collection: ClassVar[str] = "notes"


class AttachmentTarget(_Target):
    kind: Literal["attachment"] = "attachment"
    collection: ClassVar[str] = "attachments"


class TeamTarget(_Target):
    kind: Literal["team"] = "team"
    collection: ClassVar[str] = "teams"


class DepartmentTarget(_Target):
    kind: Literal["department"] = "department"
    collection: ClassVar[str] = "departments"


ActivityTarget = Annotated[
    Union[
        UserTarget,
        CandidateTarget,
        JobTarget,
        StageTarget,
        PipelineTarget,
        InterviewTarget,
        ChecklistTarget,
        NoteTarget,
        AttachmentTarget,
        TeamTarget,
        DepartmentTarget,
    ],
    Field(discriminator="kind"),
]


class ActivityLogModel(DocumentModel):
    """Audit entry; expired by the TTL index on ``timestamp`` after a year."""

    actor_id: PyObjectId
    action: Action
    target_type: TargetType
    target_id: PyObjectId
    details: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)

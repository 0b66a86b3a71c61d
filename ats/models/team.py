"""Team database models."""
from pydantic import Field
from typing import Optional
from datetime import datetime

from ats.models.common import DocumentModel, PyObjectId
from ats.models.enums import TeamRoleName, TeamStatus


class TeamModel(DocumentModel):
    name: str
    leader_id: Optional[PyObjectId] = None
    status: TeamStatus = TeamStatus.ACTIVE


class TeamRoleModel(DocumentModel):
    name: TeamRoleName
    description: str


class TeamMemberModel(DocumentModel):
    user_id: PyObjectId
    team_id: PyObjectId
    team_role_id: PyObjectId
    joined_at: datetime = Field(default_factory=datetime.utcnow)

"""Team schemas."""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class CreateTeamRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    leader_id: Optional[str] = None


class TeamResponse(BaseModel):
    id: str
    name: str
    leader_id: Optional[str] = None
    status: str
    created_at: datetime


class AddMemberRequest(BaseModel):
    user_id: str
    team_role_id: str


class TeamMemberResponse(BaseModel):
    id: str
    team_id: str
    user_id: str
    team_role_id: str
    joined_at: datetime


class SetLeaderRequest(BaseModel):
    leader_id: str

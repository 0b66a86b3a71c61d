"""Teams router."""
from fastapi import APIRouter, Depends, status
from typing import List

from ats.database import Database, get_db
from ats.models.enums import Permission
from ats.schemas.team import (
    AddMemberRequest,
    CreateTeamRequest,
    SetLeaderRequest,
    TeamMemberResponse,
    TeamResponse,
)
from ats.services import teams
from ats.utils.dependencies import get_current_active_user, require_permission
from ats.utils.serialization import serialize, to_object_id


router = APIRouter(prefix="/api/v1/teams", tags=["Teams"])


@router.post("/", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
async def create_team(
    request: CreateTeamRequest,
    current_user: dict = Depends(require_permission(Permission.MANAGE_TEAMS)),
    db: Database = Depends(get_db)
):
    leader_id = to_object_id(request.leader_id, "leader_id") if request.leader_id else None
    team = await teams.create_team(db, request.name, leader_id, actor_id=current_user["_id"])
    return TeamResponse(**serialize(team))


@router.get("/{team_id}/members", response_model=List[TeamMemberResponse])
async def list_members(
    team_id: str,
    current_user: dict = Depends(get_current_active_user),
    db: Database = Depends(get_db)
):
    members = await teams.list_team_members(db, to_object_id(team_id, "team_id"))
    return [TeamMemberResponse(**serialize(m)) for m in members]


@router.post("/{team_id}/members", response_model=TeamMemberResponse, status_code=status.HTTP_201_CREATED)
async def add_member(
    team_id: str,
    request: AddMemberRequest,
    current_user: dict = Depends(require_permission(Permission.MANAGE_TEAMS)),
    db: Database = Depends(get_db)
):
    member = await teams.add_team_member(
        db,
        to_object_id(team_id, "team_id"),
        to_object_id(request.user_id, "user_id"),
        to_object_id(request.team_role_id, "team_role_id"),
    )
    return TeamMemberResponse(**serialize(member))


@router.delete("/{team_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    team_id: str,
    user_id: str,
    current_user: dict = Depends(require_permission(Permission.MANAGE_TEAMS)),
    db: Database = Depends(get_db)
):
    await teams.remove_team_member(db, to_object_id(team_id, "team_id"), to_object_id(user_id, "user_id"))


@router.put("/{team_id}/leader", response_model=TeamResponse)
async def set_leader(
    team_id: str,
    request: SetLeaderRequest,
    current_user: dict = Depends(require_permission(Permission.MANAGE_TEAMS)),
    db: Database = Depends(get_db)
):
    team = await teams.set_team_leader(db, to_object_id(team_id, "team_id"), to_object_id(request.leader_id, "leader_id"))
    return TeamResponse(**serialize(team))


@router.delete("/{team_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_team(
    team_id: str,
    current_user: dict = Depends(require_permission(Permission.MANAGE_TEAMS)),
    db: Database = Depends(get_db)
):
    """Delete a team and its memberships."""
    await teams.delete_team(db, to_object_id(team_id, "team_id"), actor_id=current_user["_id"])

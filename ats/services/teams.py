"""Teams and team membership."""
import logging
from datetime import datetime
from typing import List, Optional

from bson import ObjectId
from pymongo import ReturnDocument

from ats.database import Database
from ats.errors import ConflictError, NotFoundError, ValidationFailed, conflict_on_duplicate
from ats.models.enums import Action, TeamRoleName
from ats.models.team import TeamMemberModel, TeamModel, TeamRoleModel
from ats.services.activity import make_target, record_activity
from ats.services.cascade import delete_with_cascade
from ats.services.integrity import ensure_exists, validate_before_create

logger = logging.getLogger(__name__)


TEAM_ROLE_DESCRIPTIONS = {
    TeamRoleName.LEAD: "Leads the team",
    TeamRoleName.MEMBER: "Regular team member",
    TeamRoleName.CONTRIBUTOR: "Contributes to specific tasks",
}


async def ensure_team_roles(db: Database) -> List[dict]:
    """Seed the lead/member/contributor team roles if missing."""
    for name, description in TEAM_ROLE_DESCRIPTIONS.items():
        await db.team_roles.update_one(
            {"name": name.value},
            {"$setOnInsert": TeamRoleModel(name=name, description=description).to_document()},
            upsert=True,
        )
    return await db.team_roles.find().to_list(None)


async def create_team(db: Database, name: str, leader_id: Optional[ObjectId] = None, actor_id: Optional[ObjectId] = None) -> dict:
    """Create a team; a given leader becomes its first ``lead`` member."""
    team = TeamModel(name=name, leader_id=leader_id)
    document = team.to_document()

    async with db.transaction() as session:
        await validate_before_create(db, "teams", document, session=session)
        if await db.teams.find_one({"name": name}, {"_id": 1}, session=session):
            raise ConflictError(f"Team {name} already exists")
        lead = None
        if leader_id is not None:
            lead = await db.team_roles.find_one({"name": TeamRoleName.LEAD.value}, session=session)
            if not lead:
                raise NotFoundError("Team role lead not found")

        with conflict_on_duplicate(f"Team {name} already exists"):
            result = await db.teams.insert_one(document, session=session)
        document["_id"] = result.inserted_id

        if lead is not None:
            member = TeamMemberModel(user_id=leader_id, team_id=document["_id"], team_role_id=lead["_id"])
            await db.team_members.insert_one(member.to_document(), session=session)

        if actor_id is not None:
            await record_activity(db, actor_id, Action.CREATE, make_target("team", document["_id"]), session=session)

    return document


async def add_team_member(db: Database, team_id: ObjectId, user_id: ObjectId, team_role_id: ObjectId) -> dict:
    member = TeamMemberModel(user_id=user_id, team_id=team_id, team_role_id=team_role_id)
    document = member.to_document()
    await validate_before_create(db, "team_members", document)

    if await db.team_members.find_one({"team_id": team_id, "user_id": user_id}, {"_id": 1}):
        raise ConflictError("User is already a member of this team")
    with conflict_on_duplicate("User is already a member of this team"):
        result = await db.team_members.insert_one(document)
    document["_id"] = result.inserted_id
    return document


async def list_team_members(db: Database, team_id: ObjectId) -> List[dict]:
    return await db.team_members.find({"team_id": team_id}).to_list(None)


async def set_team_leader(db: Database, team_id: ObjectId, leader_id: ObjectId) -> dict:
    """Point the team at a new leader; they must already be a ``lead`` member."""
    await ensure_exists(db, "teams", team_id, "team_id")
    await ensure_exists(db, "users", leader_id, "leader_id")

    lead = await db.team_roles.find_one({"name": TeamRoleName.LEAD.value})
    membership = await db.team_members.find_one({"team_id": team_id, "user_id": leader_id})
    if not membership or not lead or membership["team_role_id"] != lead["_id"]:
        raise ValidationFailed(
            "Leader must be a member of the team with the lead role",
            {"leader_id": ["Leader must be a member of the team with the lead role"]},
        )

    return await db.teams.find_one_and_update(
        {"_id": team_id},
        {"$set": {"leader_id": leader_id, "updated_at": datetime.utcnow()}},
        return_document=ReturnDocument.AFTER,
    )


async def remove_team_member(db: Database, team_id: ObjectId, user_id: ObjectId):
    async with db.transaction() as session:
        result = await db.team_members.delete_one({"team_id": team_id, "user_id": user_id}, session=session)
        if result.deleted_count == 0:
            raise NotFoundError("Team member not found")
        await db.teams.update_one(
            {"_id": team_id, "leader_id": user_id},
            {"$set": {"leader_id": None, "updated_at": datetime.utcnow()}},
            session=session,
        )


async def delete_team(db: Database, team_id: ObjectId, actor_id: Optional[ObjectId] = None) -> dict:
    async with db.transaction() as session:
        if not await db.teams.find_one({"_id": team_id}, {"_id": 1}, session=session):
            raise NotFoundError("Team not found")
        if actor_id is not None:
            await record_activity(db, actor_id, Action.DELETE, make_target("team", team_id), session=session)
        return await delete_with_cascade(db, "teams", team_id, session=session)

import pytest

from ats.errors import ConflictError, NotFoundError, ValidationFailed
from ats.services.teams import (
    add_team_member,
    create_team,
    delete_team,
    list_team_members,
    remove_team_member,
    set_team_leader,
)


async def _team_role(db, name):
    return (await db.team_roles.find_one({"name": name}))["_id"]


@pytest.mark.asyncio
async def test_leader_joins_as_lead(db, manager):
    team = await create_team(db, "Recruiting", leader_id=manager["_id"], actor_id=manager["_id"])

    members = await list_team_members(db, team["_id"])
    assert [(m["user_id"], m["team_role_id"]) for m in members] == [(manager["_id"], await _team_role(db, "lead"))]


@pytest.mark.asyncio
async def test_team_names_are_unique(db):
    await create_team(db, "Recruiting")
    with pytest.raises(ConflictError):
        await create_team(db, "Recruiting")


@pytest.mark.asyncio
async def test_new_leader_must_hold_lead_role(db, manager, interviewer):
    team = await create_team(db, "Recruiting", leader_id=manager["_id"])
    await add_team_member(db, team["_id"], interviewer["_id"], await _team_role(db, "member"))

    with pytest.raises(ValidationFailed):
        await set_team_leader(db, team["_id"], interviewer["_id"])

    with pytest.raises(ConflictError):
        await add_team_member(db, team["_id"], interviewer["_id"], await _team_role(db, "lead"))


@pytest.mark.asyncio
async def test_removing_leader_clears_it(db, manager):
    team = await create_team(db, "Recruiting", leader_id=manager["_id"])
    await remove_team_member(db, team["_id"], manager["_id"])

    stored = await db.teams.find_one({"_id": team["_id"]})
    assert stored["leader_id"] is None
    with pytest.raises(NotFoundError):
        await remove_team_member(db, team["_id"], manager["_id"])


@pytest.mark.asyncio
async def test_delete_team_removes_members(db, manager, interviewer):
    team = await create_team(db, "Recruiting", leader_id=manager["_id"])
    await add_team_member(db, team["_id"], interviewer["_id"], await _team_role(db, "contributor"))

    counts = await delete_team(db, team["_id"], actor_id=manager["_id"])

    assert counts == {"team_members": 2, "teams": 1}
    assert await db.team_members.count_documents({"team_id": team["_id"]}) == 0

"""Roles and role permissions."""
import logging
from typing import Dict, List, Optional

from bson import ObjectId

from ats.database import Database
from ats.errors import ConflictError, NotFoundError, ValidationFailed, conflict_on_duplicate
from ats.models.enums import Permission, RoleName
from ats.models.user import RoleModel, RolePermissionModel

logger = logging.getLogger(__name__)


async def create_role(db: Database, name: RoleName, description: Optional[str] = None, session=None) -> dict:
    """Create a role; names are unique."""
    name = RoleName(name)
    if await db.roles.find_one({"name": name.value}, {"_id": 1}, session=session):
        raise ConflictError(f"Role {name.value} already exists")

    role = RoleModel(name=name, description=description)
    document = role.to_document()
    with conflict_on_duplicate(f"Role {name.value} already exists"):
        result = await db.roles.insert_one(document, session=session)
    document["_id"] = result.inserted_id
    return document


async def list_roles(db: Database) -> List[dict]:
    """All roles, each with its permission names."""
    roles = await db.roles.find().sort("name", 1).to_list(None)
    rows = await db.role_permissions.find().to_list(None)

    by_role: Dict[ObjectId, List[str]] = {}
    for row in rows:
        by_role.setdefault(row["role_id"], []).append(row["permission"])
    for role in roles:
        role["permissions"] = sorted(by_role.get(role["_id"], []))
    return roles


async def get_role_by_name(db: Database, name: str, session=None) -> Optional[dict]:
    return await db.roles.find_one({"name": name}, session=session)


async def update_role_permissions(
    db: Database,
    role_id: ObjectId,
    add: List[Permission],
    remove: List[Permission],
) -> dict:
    """Grant and revoke permissions on a role in one step.

    A permission may not appear in both lists. Returns what actually changed.
    """
    add_set = {Permission(p).value for p in add}
    remove_set = {Permission(p).value for p in remove}
    overlap = add_set & remove_set
    if overlap:
        raise ValidationFailed(
            "Permissions cannot be both added and removed",
            {"permissions": sorted(overlap)},
        )

    async with db.transaction() as session:
        role = await db.roles.find_one({"_id": role_id}, session=session)
        if not role:
            raise NotFoundError("Role not found")

        existing = {
            row["permission"]
            for row in await db.role_permissions.find({"role_id": role_id}, session=session).to_list(None)
        }
        added = sorted(add_set - existing)
        removed = sorted(remove_set & existing)

        if added:
            await db.role_permissions.insert_many(
                [RolePermissionModel(role_id=role_id, permission=p).to_document() for p in added],
                session=session,
            )
        if removed:
            await db.role_permissions.delete_many(
                {"role_id": role_id, "permission": {"$in": removed}}, session=session
            )

    logger.info("Role %s permissions updated: +%s -%s", role["name"], added, removed)
    return {"role_id": role_id, "added": added, "removed": removed}


async def has_permission(db: Database, user: dict, permission: Permission) -> bool:
    """Whether the user's role carries ``permission``."""
    role_id = user.get("role_id")
    if role_id is None:
        return False
    row = await db.role_permissions.find_one(
        {"role_id": role_id, "permission": Permission(permission).value}, {"_id": 1}
    )
    return row is not None


DEFAULT_PERMISSIONS = {
    RoleName.ADMIN: list(Permission),
    RoleName.HIRING_MANAGER: [
        Permission.VIEW_CANDIDATES,
        Permission.EDIT_JOBS,
        Permission.ASSIGN_INTERVIEWS,
        Permission.VIEW_REPORTS,
    ],
    RoleName.INTERVIEWER: [Permission.VIEW_CANDIDATES],
}


async def ensure_default_roles(db: Database):
    """Seed the built-in roles and their permissions if missing."""
    for name, permissions in DEFAULT_PERMISSIONS.items():
        role = await db.roles.find_one({"name": name.value})
        if role:
            continue
        role = await create_role(db, name)
        await db.role_permissions.insert_many(
            [RolePermissionModel(role_id=role["_id"], permission=p).to_document() for p in permissions]
        )
        logger.info("Seeded role %s", name.value)

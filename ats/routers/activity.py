"""Activity log router."""
from fastapi import APIRouter, Depends
from typing import List, Optional

from ats.database import Database, get_db
from ats.models.enums import Permission, TargetType
from ats.schemas.activity import ActivityResponse
from ats.services import activity
from ats.utils.dependencies import require_permission
from ats.utils.serialization import serialize, to_object_id


router = APIRouter(prefix="/api/v1/activity", tags=["Activity"])


@router.get("/", response_model=List[ActivityResponse])
async def list_activity(
    actor_id: Optional[str] = None,
    target_type: Optional[TargetType] = None,
    target_id: Optional[str] = None,
    limit: int = 100,
    current_user: dict = Depends(require_permission(Permission.VIEW_REPORTS)),
    db: Database = Depends(get_db)
):
    """Recent activity, filtered by actor or target."""
    entries = await activity.list_activity(
        db,
        actor_id=to_object_id(actor_id, "actor_id") if actor_id else None,
        target_type=target_type.value if target_type else None,
        target_id=to_object_id(target_id, "target_id") if target_id else None,
        limit=min(limit, 500),
    )
    return [ActivityResponse(**serialize(e)) for e in entries]

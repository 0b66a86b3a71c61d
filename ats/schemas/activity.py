"""Activity log schemas."""
from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class ActivityResponse(BaseModel):
    id: str
    actor_id: str
    action: str
    target_type: str
    target_id: str
    details: Optional[str] = None
    timestamp: datetime

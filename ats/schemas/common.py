"""Validators shared by request schemas."""
from datetime import datetime, timezone
from typing import Annotated, Optional

from pydantic import AfterValidator


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored datetimes are naive UTC."""
    if value is not None and value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def ensure_future(value: Optional[datetime]) -> Optional[datetime]:
    value = as_naive_utc(value)
    if value is not None and value <= datetime.utcnow():
        raise ValueError("must be a future date")
    return value


FutureDatetime = Annotated[datetime, AfterValidator(ensure_future)]

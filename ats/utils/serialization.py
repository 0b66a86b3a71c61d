"""Turn stored documents into JSON-ready dicts."""
from enum import Enum
from typing import Any

from bson import ObjectId

from ats.errors import InvalidReference


def serialize(value: Any) -> Any:
    """Recursively stringify ObjectIds and rename ``_id`` to ``id``."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, list):
        return [serialize(v) for v in value]
    if isinstance(value, dict):
        return {("id" if k == "_id" else k): serialize(v) for k, v in value.items()}
    return value


def to_object_id(value: str, field: str = "id") -> ObjectId:
    """Parse a path or body id; malformed ids are treated as missing references."""
    if isinstance(value, ObjectId):
        return value
    if not value or not ObjectId.is_valid(value):
        raise InvalidReference(field)
    return ObjectId(value)


def enum_values(data: dict) -> dict:
    """Replace enum members with their values before a ``$set``."""
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in data.items()}

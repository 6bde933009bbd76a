from typing import Any, Dict, Optional
from bson import ObjectId

from errors import FieldValidationError, InvalidIdError

SHARING_LEVELS = (1, 2, 3)
MAX_TAG_LENGTH = 10
UPDATABLE_FIELDS = ("name", "sharingLevel", "tags")


def is_valid_id(value: Any) -> bool:
    # ObjectId.is_valid also accepts any 12-byte string; only the hex form is an id here
    return isinstance(value, str) and len(value) == 24 and ObjectId.is_valid(value)


def parse_id(value: Any, what: str) -> ObjectId:
    if not is_valid_id(value):
        raise InvalidIdError(f"invalid {what} id.")
    return ObjectId(value)


def check_name(name: Any) -> str:
    if not isinstance(name, str) or len(name) <= 0:
        raise FieldValidationError("name must be a string.")
    return name


def check_sharing_level(level: Any) -> int:
    # bool is an int subclass and 1.0 == 1, so compare the exact type
    if type(level) is not int or level not in SHARING_LEVELS:
        raise FieldValidationError("sharingLevel must be a 1-3 integer.")
    return level


def check_tags(tags: Any) -> list:
    if not isinstance(tags, (list, tuple)):
        raise FieldValidationError("tags must be an array.")
    if not all(isinstance(tag, str) and len(tag) <= MAX_TAG_LENGTH for tag in tags):
        raise FieldValidationError(f"each tag must be a string within {MAX_TAG_LENGTH} chars.")
    return list(tags)


_CHECKS = {
    "name": check_name,
    "sharingLevel": check_sharing_level,
    "tags": check_tags,
}


def validate_fields(payload: Optional[Dict[str, Any]], require_any: bool = False) -> Dict[str, Any]:
    """
    Validate the updatable folder fields present in payload.

    Fields are checked independently and only when present (a None value
    counts as absent). Unknown keys are ignored. Returns the accepted fields.
    Raises FieldValidationError on the first violation, or when require_any
    is set and no updatable field was given.
    """
    payload = payload or {}
    present = [f for f in UPDATABLE_FIELDS if payload.get(f) is not None]
    if require_any and not present:
        raise FieldValidationError("at least one of information must be required.")
    return {f: _CHECKS[f](payload[f]) for f in present}

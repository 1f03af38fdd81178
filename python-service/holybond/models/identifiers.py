"""Common identifier types shared across models."""

from __future__ import annotations

import secrets
from typing import Annotated, Any, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pydantic.functional_serializers import PlainSerializer
from pydantic.functional_validators import BeforeValidator

PROFILE_ID_PREFIX = "HB-"


def _validate_object_id(value: Any) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("ObjectId string must not be empty")
        try:
            return ObjectId(text)
        except InvalidId as exc:
            raise ValueError("Invalid ObjectId hex string") from exc
    raise TypeError("ObjectId value must be str or ObjectId instance")


PyObjectId = Annotated[
    ObjectId,
    BeforeValidator(_validate_object_id),
    PlainSerializer(lambda value: str(value), return_type=str),
]


def parse_object_id(value: Any) -> Optional[ObjectId]:
    """Best-effort conversion used for path parameters; returns None when malformed."""
    try:
        return _validate_object_id(value)
    except (TypeError, ValueError):
        return None


def generate_profile_id() -> str:
    """Member-facing profile id such as ``HB-482913``."""
    return f"{PROFILE_ID_PREFIX}{100000 + secrets.randbelow(900000)}"


def pair_key(first: str, second: str) -> str:
    """Order-independent key for a pair of profile ids."""
    low, high = sorted((first, second))
    return f"{low}|{high}"


def outstanding_interest_key(from_profile_id: str, to_profile_id: str) -> str:
    return f"{from_profile_id}|{to_profile_id}"


__all__ = [
    "PROFILE_ID_PREFIX",
    "PyObjectId",
    "generate_profile_id",
    "outstanding_interest_key",
    "pair_key",
    "parse_object_id",
]

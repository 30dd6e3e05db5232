"""
Deterministic task identity derivation.

Task names derived here are used for duplicate suppression at the transport,
not as a security boundary, so MD5 is sufficient.
"""

import hashlib
import json
from typing import Any

from pydantic_core import PydanticSerializationError, to_jsonable_python

from typed_tasks.exceptions import PayloadSerializationError


def to_json_value(payload: Any) -> Any:
    """
    Convert a payload into plain JSON-compatible Python values.

    Pydantic models, dataclasses, datetimes, UUIDs and the like are converted
    the same way pydantic serializes them in JSON mode.

    Raises:
        PayloadSerializationError: If the payload has no JSON representation.
    """
    try:
        return to_jsonable_python(payload)
    except PydanticSerializationError as e:
        raise PayloadSerializationError(f"Payload is not serializable: {e}") from e


def canonicalize(payload: Any) -> str:
    """
    Canonical JSON serialization of a payload.

    Keys are sorted and separators are compact so that logically equal
    payloads always produce the same string.
    """
    value = to_json_value(payload)
    try:
        return json.dumps(
            value,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError) as e:
        raise PayloadSerializationError(f"Payload cannot be canonically serialized: {e}") from e


def derive_task_name(payload: Any) -> str:
    """
    Derive a deterministic task name from payload content.

    A plain string is hashed as-is; anything else is hashed over its
    canonical serialization.

    Args:
        payload: The task payload.

    Returns:
        The MD5 hex digest of the payload.
    """
    data = payload if isinstance(payload, str) else canonicalize(payload)
    return hashlib.md5(data.encode("utf-8")).hexdigest()

"""
Payload Codec

Serializes session records to JSON text and back. Output uses compact
separators and keeps non-ASCII characters, matching what JavaScript's
JSON.stringify produces, so sessions written by Node.js stores sharing the
same keyspace remain readable.
"""

import json
from collections.abc import Mapping
from typing import Any, Optional

from kvsession.core.exceptions import SerializationError

SessionRecord = dict[str, Any]


def encode(record: Mapping[str, Any], session_id: Optional[str] = None) -> str:
    """
    Serialize a session record to JSON text.

    Args:
        record: The session record.
        session_id: Only used to annotate errors.

    Returns:
        Compact JSON text.

    Raises:
        SerializationError: If the record holds values JSON cannot represent
            or strings that are not valid Unicode (lone surrogates).
    """
    try:
        text = json.dumps(
            record, separators=(",", ":"), ensure_ascii=False, allow_nan=False
        )
        # stored as UTF-8; lone surrogates have no encoding
        text.encode("utf-8")
    except (TypeError, ValueError) as e:
        raise SerializationError(
            f"Failed to serialize session: {e}", session_id=session_id
        ) from e

    return text


def decode(text: str, session_id: Optional[str] = None) -> SessionRecord:
    """
    Deserialize JSON text to a session record.

    Raises:
        SerializationError: If the text is not well-formed JSON or does not
            hold a JSON object.
    """
    try:
        record = json.loads(text)
    except (TypeError, ValueError) as e:
        raise SerializationError(
            f"Malformed session data: {e}", session_id=session_id
        ) from e

    if not isinstance(record, dict):
        raise SerializationError(
            f"Session data must be a JSON object, got {type(record).__name__}",
            session_id=session_id,
        )

    return record

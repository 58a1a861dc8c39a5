"""Producer payload normalization.

Learn: Producers don't share a schema. Depending on how the webhook node is
configured, the body is a bare JSON string, an object with a `message`,
`content` or `body` field, or something else entirely. That union is
resolved here, at the boundary, into plain text, so nothing downstream
ever has to look at the raw payload again.

Rules:
- string payload → used as-is
- object payload → first non-empty of message / content / body
- field value that isn't a string → canonical JSON text
- nothing recognizable → placeholder text (never a rejection)
"""

import json
import time
from typing import Any, Callable, Optional

from pydantic import ValidationError

from msgrelay.config import MESSAGE_TYPES, settings
from msgrelay.schemas.message import Message

CONTENT_FIELDS = ("message", "content", "body")


class PayloadError(ValueError):
    """Request body is not valid JSON."""


def now_ms() -> int:
    """Wall clock in integer milliseconds since epoch."""
    return time.time_ns() // 1_000_000


def parse_body(raw: bytes) -> Any:
    """Decode a raw request body. An empty body is an empty object."""
    if not raw or not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise PayloadError(f"Malformed JSON body: {e}") from e


def canonical_text(value: Any) -> str:
    """Render a payload value as text. Strings pass through untouched."""
    if isinstance(value, str):
        return value
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def _present(value: Any) -> bool:
    return value is not None and value != ""


def extract_content(payload: Any, placeholder: Optional[str] = None) -> str:
    """Pull the message text out of whatever the producer sent."""
    placeholder = settings.placeholder_content if placeholder is None else placeholder

    if isinstance(payload, dict):
        for field in CONTENT_FIELDS:
            if _present(payload.get(field)):
                return canonical_text(payload[field])
        return placeholder

    if not _present(payload):
        return placeholder
    return canonical_text(payload)


def extract_type(payload: Any, default: Optional[str] = None) -> str:
    """Producer-provided tag if it is a known one, otherwise the default."""
    default = default or settings.default_message_type
    if isinstance(payload, dict) and payload.get("type") in MESSAGE_TYPES:
        return payload["type"]
    return default


def message_from_event(
    data: Any,
    clock: Callable[[], int] = now_ms,
) -> Message:
    """Turn the data of a pushed event into a Message.

    The relay broadcasts fully-formed messages, but a push source may also
    forward raw producer payloads. Anything that doesn't validate as a
    Message is normalized and stamped with the local clock.
    """
    if isinstance(data, dict) and isinstance(data.get("content"), str) and "timestamp" in data:
        try:
            return Message.model_validate(
                {**data, "id": data.get("id", data["timestamp"])}
            )
        except ValidationError:
            pass

    ts = clock()
    return Message(
        id=ts,
        timestamp=ts,
        content=extract_content(data),
        type=extract_type(data),
    )

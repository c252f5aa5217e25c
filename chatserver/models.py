"""Core chat data types and the JSON wire format for messages."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Any


class MessageType(IntEnum):
    """Kind of a chat message; the integer value is used on the wire and in storage."""

    PRIVATE = 0
    GROUP = 1
    SYSTEM = 2


@dataclass
class Message:
    """A chat message. ``to`` is a user id for private messages and a room id for group ones."""

    type: MessageType
    sender: int
    to: int
    content: str
    timestamp: int = 0


@dataclass
class User:
    """A registered user."""

    id: int
    username: str
    nickname: str


class MessageFormatError(ValueError):
    """Raised when a message payload cannot be decoded."""


def serialize_message(msg: Message) -> str:
    """Encode a message as compact JSON with keys type, from, to and content."""
    return json.dumps(
        {
            "type": int(msg.type),
            "from": msg.sender,
            "to": msg.to,
            "content": msg.content,
        },
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def _int_field(obj: dict[str, Any], key: str) -> int:
    value = obj.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MessageFormatError(f"field {key!r} must be a number")
    if isinstance(value, float) and not math.isfinite(value):
        raise MessageFormatError(f"field {key!r} must be finite")
    return int(value)


def parse_message(raw: str | bytes) -> Message:
    """Decode a JSON message payload; raises MessageFormatError on bad input."""
    try:
        obj = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MessageFormatError(f"invalid JSON: {exc}") from exc
    if not isinstance(obj, dict):
        raise MessageFormatError("message must be a JSON object")

    type_value = _int_field(obj, "type")
    try:
        msg_type = MessageType(type_value)
    except ValueError as exc:
        raise MessageFormatError(f"unknown message type {type_value}") from exc

    content = obj.get("content")
    if not isinstance(content, str):
        raise MessageFormatError("field 'content' must be a string")

    return Message(
        type=msg_type,
        sender=_int_field(obj, "from"),
        to=_int_field(obj, "to"),
        content=content,
    )
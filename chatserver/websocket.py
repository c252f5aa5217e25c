"""WebSocket handshake and framing."""

from __future__ import annotations

import asyncio
import base64
import hashlib
import struct
from dataclasses import dataclass

GUID = "258EAFA5-E914-47DA-95CA-C5AB0DC85B11"

OP_CONTINUATION = 0x0
OP_TEXT = 0x1
OP_BINARY = 0x2
OP_CLOSE = 0x8
OP_PING = 0x9
OP_PONG = 0xA


class IncompleteFrameError(ValueError):
    """Raised when the data does not yet hold a whole frame."""


@dataclass(frozen=True)
class Frame:
    """A decoded WebSocket frame; the payload is already unmasked."""

    opcode: int
    payload: bytes
    fin: bool = True


def is_websocket_upgrade(raw: str) -> bool:
    """Tell whether a request is a GET asking to upgrade to WebSocket."""
    return raw.startswith("GET ") and "Upgrade: websocket" in raw


def extract_header(raw: str, name: str) -> str:
    """Return the value of a header, or an empty string if it is absent."""
    marker = f"{name}: "
    pos = raw.find(marker)
    if pos == -1:
        return ""
    start = pos + len(marker)
    end = raw.find("\r\n", pos)
    return raw[start:] if end == -1 else raw[start:end]


def compute_accept(key: str) -> str:
    """Compute the Sec-WebSocket-Accept value for a client key."""
    digest = hashlib.sha1((key + GUID).encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")


def handshake_response(raw: str) -> bytes:
    """Build the 101 Switching Protocols response to an upgrade request."""
    accept = compute_accept(extract_header(raw, "Sec-WebSocket-Key"))
    return (
        "HTTP/1.1 101 Switching Protocols\r\n"
        "Upgrade: websocket\r\n"
        "Connection: Upgrade\r\n"
        f"Sec-WebSocket-Accept: {accept}\r\n\r\n"
    ).encode("ascii")


def encode_frame(payload: str | bytes, opcode: int = OP_TEXT) -> bytes:
    """Encode a single unmasked final frame."""
    data = payload.encode("utf-8") if isinstance(payload, str) else bytes(payload)
    length = len(data)
    header = bytearray([0x80 | (opcode & 0x0F)])
    if length <= 125:
        header.append(length)
    elif length <= 0xFFFF:
        header.append(126)
        header += struct.pack("!H", length)
    else:
        header.append(127)
        header += struct.pack("!Q", length)
    return bytes(header) + data


def _extended_length_size(second_byte: int) -> int:
    marker = second_byte & 0x7F
    if marker == 126:
        return 2
    if marker == 127:
        return 8
    return 0


def _payload_length(second_byte: int, extended: bytes) -> int:
    if len(extended) == 2:
        return struct.unpack("!H", extended)[0]
    if len(extended) == 8:
        return struct.unpack("!Q", extended)[0]
    return second_byte & 0x7F


def _unmask(payload: bytes, mask: bytes) -> bytes:
    return bytes(byte ^ mask[i % 4] for i, byte in enumerate(payload))


def decode_frame(data: bytes) -> tuple[Frame, int]:
    """Decode one frame from the start of ``data``; return it and the bytes consumed."""
    if len(data) < 2:
        raise IncompleteFrameError("frame header is incomplete")
    first, second = data[0], data[1]
    pos = 2
    ext_size = _extended_length_size(second)
    if len(data) < pos + ext_size:
        raise IncompleteFrameError("extended length is incomplete")
    length = _payload_length(second, data[pos : pos + ext_size])
    pos += ext_size

    masked = bool(second & 0x80)
    mask = b""
    if masked:
        if len(data) < pos + 4:
            raise IncompleteFrameError("mask is incomplete")
        mask = data[pos : pos + 4]
        pos += 4

    end = pos + length
    if len(data) < end:
        raise IncompleteFrameError("payload is incomplete")
    payload = bytes(data[pos:end])
    if masked:
        payload = _unmask(payload, mask)
    return Frame(opcode=first & 0x0F, payload=payload, fin=bool(first & 0x80)), end


async def read_frame(reader: asyncio.StreamReader) -> Frame | None:
    """Read one frame from a stream; return None if the stream ends first."""
    try:
        header = await reader.readexactly(2)
        extended = await reader.readexactly(_extended_length_size(header[1]))
        mask = await reader.readexactly(4 if header[1] & 0x80 else 0)
        payload = await reader.readexactly(_payload_length(header[1], extended))
    except asyncio.IncompleteReadError:
        return None
    frame, _ = decode_frame(header + extended + mask + payload)
    return frame
"""
Keystore channel framing.

Every message on the keystore socket is a little-endian header followed by
a body:

    u32 total_length   (header included)
    u32 wire_type
    u64 message_id
    body

Sign requests start their body with the 32-byte public key of the signing
agent. Error responses carry a u64 length-prefixed UTF-8 reason. Nothing
else in a body is interpreted.
"""

from __future__ import annotations

import asyncio
import struct
from dataclasses import dataclass

from faultline.errors import KeystoreFrameError

from .agent_identity import SIGNING_KEY_LENGTH, AgentIdentity

HEADER = struct.Struct("<IIQ")
LENGTH_PREFIX = struct.Struct("<Q")


@dataclass(slots=True, frozen=True)
class KeystoreFrame:
    wire_type: int
    msg_id: int
    body: bytes
    raw: bytes

    @classmethod
    def build(cls, wire_type: int, msg_id: int, body: bytes = b"") -> KeystoreFrame:
        header = HEADER.pack(HEADER.size + len(body), wire_type, msg_id)
        return cls(
            wire_type=wire_type,
            msg_id=msg_id,
            body=bytes(body),
            raw=header + body,
        )

    @classmethod
    def parse(cls, raw: bytes) -> KeystoreFrame:
        if len(raw) < HEADER.size:
            raise KeystoreFrameError(
                f"Err. - frame of {len(raw)} bytes is shorter than the {HEADER.size} byte header"
            )

        length, wire_type, msg_id = HEADER.unpack_from(raw)
        if length != len(raw):
            raise KeystoreFrameError(
                f"Err. - frame header declares {length} bytes but {len(raw)} were given"
            )

        return cls(
            wire_type=wire_type,
            msg_id=msg_id,
            body=bytes(raw[HEADER.size:]),
            raw=bytes(raw),
        )

    def agent(self) -> AgentIdentity:
        if len(self.body) < SIGNING_KEY_LENGTH:
            raise KeystoreFrameError(
                f"Err. - sign request {self.msg_id} body is too short to hold a public key"
            )

        return AgentIdentity.from_signing_key(self.body[:SIGNING_KEY_LENGTH])

    @property
    def payload(self) -> bytes:
        return self.body[SIGNING_KEY_LENGTH:]


def encode_error_body(reason: str) -> bytes:
    encoded = reason.encode()
    return LENGTH_PREFIX.pack(len(encoded)) + encoded


def decode_error_body(body: bytes) -> str:
    if len(body) < LENGTH_PREFIX.size:
        return body.decode(errors="replace")

    (length,) = LENGTH_PREFIX.unpack_from(body)
    return body[LENGTH_PREFIX.size:LENGTH_PREFIX.size + length].decode(errors="replace")


async def read_frame(
    reader: asyncio.StreamReader,
    max_frame_size: int,
) -> KeystoreFrame | None:
    """Read one frame, or None when the peer closed cleanly between frames."""
    try:
        header = await reader.readexactly(HEADER.size)

    except asyncio.IncompleteReadError as err:
        if len(err.partial) == 0:
            return None

        raise KeystoreFrameError(
            f"Err. - connection closed inside a frame header after {len(err.partial)} bytes"
        ) from err

    length, _, _ = HEADER.unpack(header)
    if length < HEADER.size or length > max_frame_size:
        raise KeystoreFrameError(
            f"Err. - frame length {length} outside allowed range {HEADER.size}..{max_frame_size}"
        )

    try:
        body = await reader.readexactly(length - HEADER.size)

    except asyncio.IncompleteReadError as err:
        raise KeystoreFrameError(
            f"Err. - connection closed inside a frame body after {len(err.partial)} of {length - HEADER.size} bytes"
        ) from err

    return KeystoreFrame.parse(header + body)

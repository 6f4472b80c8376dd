"""Packets of the handshake and status states.

Only the client side of a status query is implemented: the Handshake
(next state = status), the Status Request and the Status Response.

Reference: https://minecraft.wiki/w/Java_Edition_protocol/Server_List_Ping
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .errors import ProtocolError, UnexpectedPacketId
from .mc_protocol import (
    Envelope,
    decode_string,
    decode_unsigned_short,
    encode_string,
    encode_unsigned_short,
    parse_envelope,
    serialize_envelope,
)
from .varint import VARINT

log = logging.getLogger(__name__)

DEFAULT_PORT = 25565
# Minecraft 1.21.2 / 1.21.3.  Servers answer status queries for any version.
DEFAULT_PROTOCOL_VERSION = 768

NEXT_STATE_STATUS = 1
NEXT_STATE_LOGIN = 2

HANDSHAKE_ID = 0x00
STATUS_REQUEST_ID = 0x00
STATUS_RESPONSE_ID = 0x00

# length=1, packet id=0x00, no payload
STATUS_REQUEST = b"\x01\x00"


@dataclass
class Handshake:
    """Client → Server handshake (packet 0x00 in the handshake state)."""

    server_address: str
    server_port: int
    protocol_version: int = DEFAULT_PROTOCOL_VERSION
    next_state: int = NEXT_STATE_STATUS  # 1 = Status, 2 = Login

    def payload(self) -> bytes:
        return (
            VARINT.encode(self.protocol_version)
            + encode_string(self.server_address)
            + encode_unsigned_short(self.server_port)
            + VARINT.encode(self.next_state)
        )

    def to_bytes(self) -> bytes:
        """Serialize the handshake, envelope included, ready to send."""
        return serialize_envelope(HANDSHAKE_ID, self.payload())

    @classmethod
    def parse(cls, payload: bytes) -> Handshake:
        """Parse a handshake payload (the envelope already stripped)."""
        protocol_version, pos = VARINT.decode(payload)
        server_address, used = decode_string(payload, pos)
        pos += used
        server_port = decode_unsigned_short(payload, pos)
        pos += 2
        next_state, used = VARINT.decode(payload, pos)
        pos += used
        if pos != len(payload):
            raise ProtocolError(f"{len(payload) - pos} unexpected trailing bytes in handshake")
        return cls(server_address, server_port, protocol_version, next_state)


def build_status_request() -> bytes:
    """Build a Status Request packet (0x00 in the status state)."""
    return STATUS_REQUEST


@dataclass
class StatusResponse:
    """Server → Client status response (packet 0x00 in the status state).

    Holds the raw JSON document; turning it into a :class:`ServerStatus` is
    the job of :func:`mc_status_ping.status.parse_status`.
    """

    json: str

    @classmethod
    def parse(cls, envelope: Envelope, strict: bool = True) -> StatusResponse:
        """Extract the JSON document from a received envelope.

        With ``strict=False`` an unexpected packet id is logged and the payload
        is still read as a status document.
        """
        if envelope.packet_id != STATUS_RESPONSE_ID:
            if strict:
                raise UnexpectedPacketId(STATUS_RESPONSE_ID, envelope.packet_id)
            log.debug(
                "Expected status response (0x00), got %#04x; parsing anyway",
                envelope.packet_id,
            )
        text, _ = decode_string(envelope.payload)
        return cls(text)


def parse_status_response(data: bytes, strict: bool = True) -> str:
    """Return the JSON document carried by a complete in-memory response packet."""
    return StatusResponse.parse(parse_envelope(data), strict=strict).json

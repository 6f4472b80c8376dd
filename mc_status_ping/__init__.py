"""Minecraft Java Edition status-query (Server List Ping) client and codec."""

from __future__ import annotations

__version__ = "0.1.0"

from .client import async_ping, ping, query_status, query_status_async
from .errors import (
    IncompletePacket,
    InvalidPacketLength,
    JsonDeserializationFailed,
    MalformedVarInt,
    ProtocolError,
    QueryTimeout,
    StatusPingError,
    TruncatedString,
    UnexpectedPacketId,
)
from .status import ServerStatus, parse_status

__all__ = [
    "__version__",
    "IncompletePacket",
    "InvalidPacketLength",
    "JsonDeserializationFailed",
    "MalformedVarInt",
    "ProtocolError",
    "QueryTimeout",
    "ServerStatus",
    "StatusPingError",
    "TruncatedString",
    "UnexpectedPacketId",
    "async_ping",
    "parse_status",
    "ping",
    "query_status",
    "query_status_async",
]

"""Exception hierarchy for status queries.

Codec failures derive from :class:`ProtocolError`; everything raised by this
package derives from :class:`StatusPingError`.
"""

from __future__ import annotations


class StatusPingError(Exception):
    """Base class for every error raised while querying a server."""


class ProtocolError(StatusPingError):
    """The server sent bytes that do not form a valid status exchange."""


class MalformedVarInt(ProtocolError):
    """A VarInt/VarLong never terminated within its maximum length."""


class TruncatedString(ProtocolError):
    """A length-prefixed string declared more bytes than are available."""

    def __init__(self, declared: int, available: int):
        self.declared = declared
        self.available = available
        super().__init__(
            f"String declares {declared} bytes but only {available} are available"
        )


class IncompletePacket(ProtocolError):
    """The stream ended before the declared packet length was received."""

    def __init__(self, expected: int, received: int):
        self.expected = expected
        self.received = received
        super().__init__(
            f"Connection closed after {received} of {expected} packet bytes"
        )


class InvalidPacketLength(ProtocolError):
    """The declared packet length is not positive or exceeds the ceiling."""

    def __init__(self, length: int, limit: int):
        self.length = length
        self.limit = limit
        super().__init__(f"Invalid packet length {length} (limit {limit})")


class UnexpectedPacketId(ProtocolError):
    """The response carried a packet id other than the expected one."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected packet {expected:#04x}, got {actual:#04x}")


class JsonDeserializationFailed(StatusPingError):
    """The status JSON could not be turned into a status document."""


class QueryTimeout(StatusPingError, TimeoutError):
    """Connecting, sending or receiving took longer than allowed."""

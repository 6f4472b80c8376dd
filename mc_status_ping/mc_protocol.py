"""Minecraft Java Edition wire primitives and packet framing.

Every packet on the wire is ``[VarInt length][VarInt packet id][payload]``
where *length* counts the packet id and payload but not itself.

Reference: https://minecraft.wiki/w/Java_Edition_protocol/Packets#Packet_format
"""

from __future__ import annotations

import enum
import logging
import struct
from dataclasses import dataclass

from .errors import IncompletePacket, InvalidPacketLength, ProtocolError, TruncatedString
from .transport import AsyncTransport, SyncTransport
from .varint import VARINT

log = logging.getLogger(__name__)

# 2 MiB sanity cap; a status document with a large favicon and mod list is
# well below this.
MAX_PACKET_LENGTH = 2 * 1024 * 1024

# =====================================================================
# Strings and fixed-width fields
# =====================================================================


def encode_string(value: str) -> bytes:
    """Encode a string as a VarInt byte-length prefix plus UTF-8 bytes."""
    encoded = value.encode("utf-8")
    return VARINT.encode(len(encoded)) + encoded


def decode_string(data: bytes, offset: int = 0) -> tuple[str, int]:
    """Decode a length-prefixed UTF-8 string from *data* at *offset*.

    Returns ``(text, bytes_consumed)``.  Invalid UTF-8 sequences are replaced
    rather than rejected.
    """
    length, prefix = VARINT.decode(data, offset)
    start = offset + prefix
    available = len(data) - start
    if length < 0 or length > available:
        raise TruncatedString(length, available)
    text = data[start : start + length].decode("utf-8", errors="replace")
    return text, prefix + length


def encode_unsigned_short(value: int) -> bytes:
    """Encode a big-endian unsigned short."""
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"The value {value} is out of range for an unsigned short")
    return struct.pack(">H", value)


def decode_unsigned_short(data: bytes, offset: int = 0) -> int:
    """Decode a big-endian unsigned short."""
    if len(data) - offset < 2:
        raise ProtocolError("Unexpected end of data while reading unsigned short")
    return struct.unpack_from(">H", data, offset)[0]


# =====================================================================
# Envelope
# =====================================================================


@dataclass(frozen=True)
class Envelope:
    """A packet with its outer length stripped."""

    packet_id: int
    payload: bytes


def serialize_envelope(packet_id: int, payload: bytes) -> bytes:
    """Frame a packet: length-prefix(packet_id + payload)."""
    length = VARINT.size(packet_id) + len(payload)
    return VARINT.encode(length) + VARINT.encode(packet_id) + payload


def unpack_frame(frame: bytes) -> Envelope:
    """Split a fully received frame (without its length) into id and payload."""
    packet_id, consumed = VARINT.decode(frame)
    return Envelope(packet_id, bytes(frame[consumed:]))


class FrameState(enum.Enum):
    AWAITING_LENGTH = "awaiting_length"
    AWAITING_BODY = "awaiting_body"
    DONE = "done"


class EnvelopeAssembler:
    """Accumulates one packet from arbitrarily fragmented input.

    The assembler does no I/O.  Callers ask for :attr:`wanted` bytes from
    their transport and :meth:`feed` whatever arrives; a transport may return
    fewer bytes than asked for, in which case the assembler simply stays in
    its current state.  While the length prefix is incomplete only one byte
    is requested at a time so nothing beyond the frame is ever consumed.
    """

    def __init__(self, max_length: int = MAX_PACKET_LENGTH):
        self.max_length = max_length
        self.state = FrameState.AWAITING_LENGTH
        self.length: int | None = None
        self._length_decoder = VARINT.decoder()
        self._body = bytearray()

    @property
    def done(self) -> bool:
        return self.state is FrameState.DONE

    @property
    def wanted(self) -> int:
        """How many bytes to request next (0 once the frame is complete)."""
        if self.state is FrameState.AWAITING_LENGTH:
            return 1
        if self.state is FrameState.AWAITING_BODY:
            return self.length - len(self._body)
        return 0

    @property
    def received(self) -> int:
        """Body bytes buffered so far."""
        return len(self._body)

    def feed(self, data: bytes) -> int:
        """Consume as much of *data* as belongs to this frame.

        Returns the number of bytes consumed; the rest belongs to whatever
        follows on the stream.
        """
        pos = 0
        while pos < len(data) and self.state is FrameState.AWAITING_LENGTH:
            byte = data[pos]
            pos += 1
            if self._length_decoder.push(byte):
                self._set_length(self._length_decoder.value)

        if self.state is FrameState.AWAITING_BODY and pos < len(data):
            chunk = data[pos : pos + self.wanted]
            self._body += chunk
            pos += len(chunk)
            if len(self._body) == self.length:
                self.state = FrameState.DONE
        return pos

    def _set_length(self, length: int) -> None:
        if length <= 0 or length > self.max_length:
            raise InvalidPacketLength(length, self.max_length)
        self.length = length
        self.state = FrameState.AWAITING_BODY

    def incomplete(self) -> IncompletePacket:
        """The error to raise when the stream ends before the frame does."""
        expected = self.length if self.length is not None else self.received + 1
        return IncompletePacket(expected, self.received)

    def envelope(self) -> Envelope:
        if not self.done:
            raise self.incomplete()
        return unpack_frame(bytes(self._body))


def parse_envelope(data: bytes, max_length: int = MAX_PACKET_LENGTH) -> Envelope:
    """Parse one packet from an in-memory buffer.

    Trailing bytes after the frame are ignored.
    """
    assembler = EnvelopeAssembler(max_length)
    assembler.feed(data)
    return assembler.envelope()


def read_envelope(
    transport: SyncTransport,
    max_length: int = MAX_PACKET_LENGTH,
    assembler: EnvelopeAssembler | None = None,
) -> Envelope:
    """Read one packet from a blocking transport, looping until it is complete.

    Pass *assembler* to observe the frame's progress from outside;
    *max_length* is then taken from the assembler.
    """
    if assembler is None:
        assembler = EnvelopeAssembler(max_length)
    reads = 0
    while not assembler.done:
        chunk = transport.read(assembler.wanted)
        if not chunk:
            raise assembler.incomplete()
        assembler.feed(chunk)
        reads += 1
    log.debug("Received packet of %d bytes in %d reads", assembler.length, reads)
    return assembler.envelope()


async def read_envelope_async(
    transport: AsyncTransport,
    max_length: int = MAX_PACKET_LENGTH,
    assembler: EnvelopeAssembler | None = None,
) -> Envelope:
    """asyncio counterpart of :func:`read_envelope`."""
    if assembler is None:
        assembler = EnvelopeAssembler(max_length)
    reads = 0
    while not assembler.done:
        chunk = await transport.read(assembler.wanted)
        if not chunk:
            raise assembler.incomplete()
        assembler.feed(chunk)
        reads += 1
    log.debug("Received packet of %d bytes in %d reads", assembler.length, reads)
    return assembler.envelope()

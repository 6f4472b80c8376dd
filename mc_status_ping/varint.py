"""VarInt and VarLong codec.

Both types store a signed integer in groups of 7 bits, least significant
group first, with the high bit of every byte except the last set as a
continuation flag.  VarInt covers 32-bit values (at most 5 bytes), VarLong
64-bit values (at most 10 bytes).

Reference: https://minecraft.wiki/w/Java_Edition_protocol/Data_types#VarInt_and_VarLong
"""

from __future__ import annotations

from typing import BinaryIO

from .errors import MalformedVarInt

SEGMENT_BITS = 0x7F
CONTINUE_BIT = 0x80


class VarNumDecoder:
    """Incremental decoder fed one byte at a time.

    Used directly by transport read loops, which cannot know in advance how
    many bytes the number occupies.
    """

    def __init__(self, codec: VarNum):
        self._codec = codec
        self._result = 0
        self.consumed = 0
        self.done = False

    def push(self, byte: int) -> bool:
        """Add one byte.  Returns True once the terminating byte is seen."""
        if self.done:
            raise RuntimeError(f"{self._codec.name} already complete")
        self._result |= (byte & SEGMENT_BITS) << (7 * self.consumed)
        self.consumed += 1
        if not byte & CONTINUE_BIT:
            self.done = True
        elif self.consumed >= self._codec.max_bytes:
            # Fail before the caller pulls another byte from the source.
            raise MalformedVarInt(
                f"{self._codec.name} is too long (more than {self._codec.max_bytes} bytes)"
            )
        return self.done

    @property
    def value(self) -> int:
        if not self.done:
            raise RuntimeError(f"{self._codec.name} is not complete yet")
        return self._codec.to_signed(self._result)


class VarNum:
    """A variable-length integer type of a fixed bit width.

    Parameters
    ----------
    name:
        Protocol name of the type, used in error messages.
    bits:
        Width of the signed integer the type carries (32 or 64).
    """

    def __init__(self, name: str, bits: int):
        self.name = name
        self.bits = bits
        self.max_bytes = (bits + 6) // 7
        self.mask = (1 << bits) - 1
        self.min_value = -(1 << (bits - 1))
        self.max_value = (1 << (bits - 1)) - 1

    def __repr__(self) -> str:
        return f"VarNum({self.name!r}, {self.bits})"

    # -- conversions ----------------------------------------------------------

    def to_unsigned(self, value: int) -> int:
        """Reinterpret *value* as an unsigned integer of this width."""
        if not self.min_value <= value <= self.max_value:
            raise ValueError(
                f"{value} is out of range for a {self.name} "
                f"({self.min_value} to {self.max_value})"
            )
        return value & self.mask

    def to_signed(self, raw: int) -> int:
        """Truncate *raw* to this width and reinterpret as two's complement."""
        raw &= self.mask
        if raw & (1 << (self.bits - 1)):
            raw -= 1 << self.bits
        return raw

    # -- encoding -------------------------------------------------------------

    def encode(self, value: int) -> bytes:
        """Encode *value* using the minimal number of groups."""
        remaining = self.to_unsigned(value)
        out = bytearray()
        while True:
            byte = remaining & SEGMENT_BITS
            # Logical shift: remaining is already unsigned.
            remaining >>= 7
            if remaining:
                byte |= CONTINUE_BIT
            out.append(byte)
            if not remaining:
                return bytes(out)

    def size(self, value: int) -> int:
        """Number of bytes :meth:`encode` produces for *value*."""
        return max(1, -(-self.to_unsigned(value).bit_length() // 7))

    # -- decoding -------------------------------------------------------------

    def decoder(self) -> VarNumDecoder:
        return VarNumDecoder(self)

    def decode(self, data: bytes, offset: int = 0) -> tuple[int, int]:
        """Decode from *data* starting at *offset*.

        Returns ``(value, bytes_consumed)``.  Running off the end of *data*
        is an error, never a short read.
        """
        dec = self.decoder()
        pos = offset
        while True:
            if pos >= len(data):
                raise MalformedVarInt(
                    f"{self.name} runs past the end of the buffer after {dec.consumed} bytes"
                )
            if dec.push(data[pos]):
                return dec.value, dec.consumed
            pos += 1

    def read(self, stream: BinaryIO) -> int:
        """Read a value from a file-like object one byte at a time."""
        dec = self.decoder()
        while True:
            byte = stream.read(1)
            if not byte:
                raise MalformedVarInt(
                    f"Unexpected end of stream after {dec.consumed} bytes of {self.name}"
                )
            if dec.push(byte[0]):
                return dec.value


VARINT = VarNum("VarInt", 32)
VARLONG = VarNum("VarLong", 64)


def read_varint(stream: BinaryIO) -> int:
    """Read a Minecraft VarInt from a byte stream."""
    return VARINT.read(stream)


def write_varint(value: int) -> bytes:
    """Encode an integer as a Minecraft VarInt."""
    return VARINT.encode(value)


def read_varlong(stream: BinaryIO) -> int:
    """Read a Minecraft VarLong from a byte stream."""
    return VARLONG.read(stream)


def write_varlong(value: int) -> bytes:
    """Encode an integer as a Minecraft VarLong."""
    return VARLONG.encode(value)

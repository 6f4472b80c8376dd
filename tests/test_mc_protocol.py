import asyncio

import pytest
from conftest import FakeAsyncTransport, FakeTransport

from mc_status_ping.errors import (
    IncompletePacket,
    InvalidPacketLength,
    MalformedVarInt,
    ProtocolError,
    TruncatedString,
)
from mc_status_ping.mc_protocol import (
    Envelope,
    EnvelopeAssembler,
    FrameState,
    decode_string,
    decode_unsigned_short,
    encode_string,
    encode_unsigned_short,
    parse_envelope,
    read_envelope,
    read_envelope_async,
    serialize_envelope,
)
from mc_status_ping.varint import VARINT

# -- strings ------------------------------------------------------------------


def test_string_prefix_counts_bytes_not_characters():
    encoded = encode_string("héllo ✓")
    assert encoded[0] == len("héllo ✓".encode("utf-8")) == 10
    assert decode_string(encoded) == ("héllo ✓", 11)


def test_empty_string():
    assert encode_string("") == b"\x00"
    assert decode_string(b"\x00") == ("", 1)


def test_long_string_uses_multi_byte_prefix():
    text = "x" * 300
    encoded = encode_string(text)
    assert encoded[:2] == b"\xac\x02"
    assert decode_string(encoded) == (text, 302)


def test_truncated_string():
    data = VARINT.encode(500) + b"a" * 300
    with pytest.raises(TruncatedString) as excinfo:
        decode_string(data)
    assert excinfo.value.declared == 500
    assert excinfo.value.available == 300


def test_negative_string_length_is_truncated_string():
    with pytest.raises(TruncatedString):
        decode_string(VARINT.encode(-1) + b"abc")


def test_invalid_utf8_is_replaced():
    text, consumed = decode_string(b"\x03a\xffb")
    assert text == "a\ufffdb"
    assert consumed == 4


def test_unsigned_short():
    assert encode_unsigned_short(25565) == b"\x63\xdd"
    assert decode_unsigned_short(b"\x00\x63\xdd", 1) == 25565
    with pytest.raises(ValueError):
        encode_unsigned_short(70000)
    with pytest.raises(ProtocolError):
        decode_unsigned_short(b"\x01")


# -- envelope -----------------------------------------------------------------


def test_serialize_envelope_layout():
    assert serialize_envelope(0, b"") == b"\x01\x00"
    assert serialize_envelope(0x01, b"\xab\xcd") == b"\x03\x01\xab\xcd"
    # Multi-byte packet id counts towards the length.
    assert serialize_envelope(300, b"\x00") == b"\x03\xac\x02\x00"


@pytest.mark.parametrize(
    "packet_id, payload",
    [
        (0, b""),
        (0, b"\x00"),
        (0x7F, bytes(range(256))),
        (-1, b"payload"),
        (2**31 - 1, b"\xff" * 5000),
    ],
)
def test_envelope_round_trip(packet_id, payload):
    assert parse_envelope(serialize_envelope(packet_id, payload)) == Envelope(packet_id, payload)


def test_parse_envelope_ignores_trailing_bytes():
    data = serialize_envelope(1, b"abc") + b"\x05garbage"
    assert parse_envelope(data) == Envelope(1, b"abc")


def test_parse_envelope_short_buffer():
    data = serialize_envelope(0, b"x" * 10)
    with pytest.raises(IncompletePacket) as excinfo:
        parse_envelope(data[:-1])
    assert excinfo.value.expected == 11
    assert excinfo.value.received == 10


@pytest.mark.parametrize("length", [0, -5, 3 * 1024 * 1024])
def test_invalid_lengths(length):
    with pytest.raises(InvalidPacketLength):
        parse_envelope(VARINT.encode(length) + b"\x00")


def test_custom_length_ceiling():
    data = serialize_envelope(0, b"x" * 100)
    with pytest.raises(InvalidPacketLength):
        parse_envelope(data, max_length=50)


def test_malformed_length_prefix():
    with pytest.raises(MalformedVarInt):
        parse_envelope(b"\x80\x80\x80\x80\x80\x01")


def test_packet_id_running_off_frame():
    # Frame of one byte whose packet id claims a continuation.
    with pytest.raises(MalformedVarInt):
        parse_envelope(b"\x01\x80\x01")


def test_assembler_states():
    assembler = EnvelopeAssembler()
    data = serialize_envelope(0, b"x" * 200)
    assert assembler.state is FrameState.AWAITING_LENGTH
    assert assembler.wanted == 1
    assert assembler.feed(data[:1]) == 1
    assert assembler.state is FrameState.AWAITING_LENGTH
    assert assembler.feed(data[1:2]) == 1
    assert assembler.state is FrameState.AWAITING_BODY
    assert assembler.wanted == 201
    assembler.feed(data[2:100])
    assert assembler.state is FrameState.AWAITING_BODY
    assert assembler.wanted == 103
    assert assembler.feed(data[100:] + b"next") == 103
    assert assembler.done
    assert assembler.wanted == 0
    assert assembler.envelope() == Envelope(0, b"x" * 200)


def test_fragmented_reads_match_single_read():
    data = serialize_envelope(0, encode_string("{}" * 3000))
    whole = read_envelope(FakeTransport(data))
    byte_by_byte = FakeTransport(data, chunk=1)
    assert read_envelope(byte_by_byte) == whole
    assert byte_by_byte.reads == len(data)


def test_large_payload_is_not_truncated():
    payload = encode_string("a" * 50_000)
    transport = FakeTransport(serialize_envelope(0, payload), chunk=4096)
    assert read_envelope(transport).payload == payload


def test_read_envelope_leaves_following_bytes():
    transport = FakeTransport(serialize_envelope(0, b"one") + serialize_envelope(1, b"two"))
    assert read_envelope(transport) == Envelope(0, b"one")
    assert read_envelope(transport) == Envelope(1, b"two")
    assert transport.remaining == b""


def test_read_envelope_eof_mid_body():
    data = serialize_envelope(0, b"y" * 20)
    with pytest.raises(IncompletePacket) as excinfo:
        read_envelope(FakeTransport(data[:-1], chunk=3))
    assert excinfo.value.expected == 21
    assert excinfo.value.received == 20


def test_read_envelope_eof_before_anything():
    with pytest.raises(IncompletePacket):
        read_envelope(FakeTransport(b""))


def test_read_envelope_async_fragmented():
    data = serialize_envelope(0, encode_string("status"))
    envelope = asyncio.run(read_envelope_async(FakeAsyncTransport(data, chunk=1)))
    assert envelope == Envelope(0, encode_string("status"))


def test_read_envelope_async_eof():
    data = serialize_envelope(0, b"z" * 5)
    with pytest.raises(IncompletePacket):
        asyncio.run(read_envelope_async(FakeAsyncTransport(data[:4])))

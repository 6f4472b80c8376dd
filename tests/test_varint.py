import io

import pytest

from mc_status_ping.errors import MalformedVarInt
from mc_status_ping.varint import (
    VARINT,
    VARLONG,
    read_varint,
    read_varlong,
    write_varint,
    write_varlong,
)

INT32_MIN, INT32_MAX = -(2**31), 2**31 - 1
INT64_MIN, INT64_MAX = -(2**63), 2**63 - 1


# Known encodings from https://minecraft.wiki/w/Java_Edition_protocol/Data_types
@pytest.mark.parametrize(
    "value, encoded",
    [
        (0, b"\x00"),
        (1, b"\x01"),
        (2, b"\x02"),
        (127, b"\x7f"),
        (128, b"\x80\x01"),
        (255, b"\xff\x01"),
        (768, b"\x80\x06"),
        (25565, b"\xdd\xc7\x01"),
        (2097151, b"\xff\xff\x7f"),
        (INT32_MAX, b"\xff\xff\xff\xff\x07"),
        (-1, b"\xff\xff\xff\xff\x0f"),
        (INT32_MIN, b"\x80\x80\x80\x80\x08"),
    ],
)
def test_varint_known_values(value, encoded):
    assert VARINT.encode(value) == encoded
    assert VARINT.decode(encoded) == (value, len(encoded))
    assert VARINT.size(value) == len(encoded)


@pytest.mark.parametrize(
    "value, encoded",
    [
        (0, b"\x00"),
        (2147483647, b"\xff\xff\xff\xff\x07"),
        (INT64_MAX, b"\xff\xff\xff\xff\xff\xff\xff\xff\x7f"),
        (-1, b"\xff\xff\xff\xff\xff\xff\xff\xff\xff\x01"),
        (-2147483648, b"\x80\x80\x80\x80\xf8\xff\xff\xff\xff\x01"),
        (INT64_MIN, b"\x80\x80\x80\x80\x80\x80\x80\x80\x80\x01"),
    ],
)
def test_varlong_known_values(value, encoded):
    assert VARLONG.encode(value) == encoded
    assert VARLONG.decode(encoded) == (value, len(encoded))
    assert VARLONG.size(value) == len(encoded)


def test_zero_is_a_single_zero_byte():
    assert VARINT.encode(0) == b"\x00"
    assert VARLONG.encode(0) == b"\x00"


@pytest.mark.parametrize("codec, limit", [(VARINT, 5), (VARLONG, 10)])
def test_size_never_exceeds_limit(codec, limit):
    for value in (codec.min_value, -1, 0, 1, 1 << 20, codec.max_value):
        encoded = codec.encode(value)
        assert len(encoded) == codec.size(value) <= limit
        assert codec.decode(encoded)[0] == value


@pytest.mark.parametrize("codec", [VARINT, VARLONG])
def test_round_trip_powers_of_two(codec):
    for shift in range(codec.bits - 1):
        for value in (1 << shift, -(1 << shift), (1 << shift) - 1):
            assert codec.decode(codec.encode(value))[0] == value


@pytest.mark.parametrize("codec", [VARINT, VARLONG])
def test_out_of_range_rejected(codec):
    with pytest.raises(ValueError):
        codec.encode(codec.max_value + 1)
    with pytest.raises(ValueError):
        codec.encode(codec.min_value - 1)


@pytest.mark.parametrize("codec, limit", [(VARINT, 5), (VARLONG, 10)])
def test_unterminated_is_malformed(codec, limit):
    with pytest.raises(MalformedVarInt):
        codec.decode(b"\x80" * limit)
    with pytest.raises(MalformedVarInt):
        codec.decode(b"\xff" * limit + b"\x01")


def test_decoder_fails_without_reading_past_limit():
    dec = VARINT.decoder()
    for _ in range(4):
        assert dec.push(0x80) is False
    with pytest.raises(MalformedVarInt):
        dec.push(0x80)


def test_decode_past_end_of_buffer():
    with pytest.raises(MalformedVarInt):
        VARINT.decode(b"\x80\x80")
    with pytest.raises(MalformedVarInt):
        VARINT.decode(b"")


def test_decode_at_offset():
    data = b"\xaa" + VARINT.encode(300) + b"\xbb"
    assert VARINT.decode(data, 1) == (300, 2)


def test_stream_helpers():
    stream = io.BytesIO(write_varint(-5) + write_varint(7))
    assert read_varint(stream) == -5
    assert read_varint(stream) == 7
    with pytest.raises(MalformedVarInt):
        read_varint(stream)


def test_oversized_final_group_is_truncated_to_width():
    # Fifth byte carries bits above 32; they are dropped like a fixed-width int.
    assert VARINT.decode(b"\xff\xff\xff\xff\x7f")[0] == -1


def test_varlong_stream_helpers():
    stream = io.BytesIO(write_varlong(INT64_MIN) + write_varlong(2**40))
    assert read_varlong(stream) == INT64_MIN
    assert read_varlong(stream) == 2**40
    with pytest.raises(MalformedVarInt):
        read_varlong(stream)
    with pytest.raises(MalformedVarInt):
        read_varlong(io.BytesIO(b"\x80" * 10))

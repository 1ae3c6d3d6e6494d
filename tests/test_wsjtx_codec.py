"""Tests for WSJT-X datagram encoding."""

import struct
from datetime import datetime

import pytest
from rbn_uploader.config import StationIdentity
from rbn_uploader.decode_record import DecodeRecord, parse_decode_line
from rbn_uploader.wsjtx_codec import (
    BandState,
    MSG_DECODE,
    MSG_STATUS,
    encode_decode,
    encode_record,
    encode_status,
    message_header,
    pack_bool,
    pack_double,
    pack_int32,
    pack_utf8,
)


STATUS_PREFIX = bytes.fromhex("ADBCCBDA 00000002 00000001")
DECODE_PREFIX = bytes.fromhex("ADBCCBDA 00000002 00000002")


class FieldReader:
    """Walks a datagram field by field."""

    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0

    def _take(self, fmt: str):
        value = struct.unpack_from(fmt, self.data, self.pos)[0]
        self.pos += struct.calcsize(fmt)
        return value

    def uint32(self) -> int:
        return self._take('!I')

    def int32(self) -> int:
        return self._take('!i')

    def uint8(self) -> int:
        return self._take('!B')

    def double(self) -> float:
        return self._take('!d')

    def utf8(self) -> str:
        length = self.uint32()
        text = self.data[self.pos:self.pos + length].decode('utf-8')
        self.pos += length
        return text

    @property
    def at_end(self) -> bool:
        return self.pos == len(self.data)


def make_record(**kwargs) -> DecodeRecord:
    fields = dict(
        timestamp=datetime(2023, 1, 1, 12, 0, 0),
        sync=1.0,
        snr=-10,
        dt=0.3,
        frequency_hz=14074123,
        callsign="AB1CDE",
        grid="FN42",
    )
    fields.update(kwargs)
    return DecodeRecord(**fields)


class TestPrimitives:
    """Tests for field encoders."""

    def test_utf8(self):
        assert pack_utf8("FT8") == b'\x00\x00\x00\x03FT8'

    def test_utf8_empty(self):
        assert pack_utf8("") == b'\x00\x00\x00\x00'

    def test_bool(self):
        assert pack_bool(True) == b'\x01'
        assert pack_bool(False) == b'\x00'

    def test_int32_negative(self):
        assert pack_int32(-10) == b'\xff\xff\xff\xf6'
        assert pack_int32(14074000) == bytes.fromhex("00D6C090")

    @pytest.mark.parametrize("value", [0.1, -0.1, 1.0, -3.25, 0.3, -1.2, 2.5, 1e-3])
    def test_double_matches_ieee754(self, value):
        assert pack_double(value) == struct.pack('>d', value)

    def test_double_known_bytes(self):
        assert pack_double(1.0) == bytes.fromhex("3FF0000000000000")
        assert pack_double(-3.25) == bytes.fromhex("C00A000000000000")

    def test_double_zero(self):
        assert pack_double(0.0) == bytes(8)
        assert pack_double(-0.0) == bytes(8)

    def test_header(self):
        assert message_header(MSG_STATUS) == STATUS_PREFIX
        assert message_header(MSG_DECODE) == DECODE_PREFIX


class TestStatusDatagram:
    """Tests for the status datagram layout."""

    def test_fields(self):
        identity = StationIdentity()
        data = encode_status(14074000, "AB1CDE", -10, identity)
        assert data.startswith(STATUS_PREFIX)

        r = FieldReader(data)
        r.pos = len(STATUS_PREFIX)
        assert r.utf8() == "QMTECH FT8 RX 1.0"
        assert r.uint32() == 0
        assert r.uint32() == 14074000
        assert r.utf8() == "FT8"
        assert r.utf8() == "AB1CDE"
        assert r.utf8() == "-10"
        assert r.utf8() == "FT8"
        assert [r.uint8(), r.uint8(), r.uint8()] == [0, 0, 0]
        assert r.int32() == 0
        assert r.int32() == 0
        assert r.utf8() == "AB1CDE"
        assert r.utf8() == "AB12"
        assert r.utf8() == "AB12"
        assert r.uint8() == 0
        assert r.utf8() == ""
        assert r.uint8() == 0
        assert r.uint8() == 0
        assert r.at_end

    def test_custom_identity(self):
        identity = StationIdentity(software_id="RX", operator_call="N0CALL")
        data = encode_status(7074000, "", 0, identity)
        r = FieldReader(data)
        r.pos = len(STATUS_PREFIX)
        assert r.utf8() == "RX"


class TestDecodeDatagram:
    """Tests for the decode datagram layout."""

    def test_fields(self):
        data = encode_decode(-10, 0.3, 123, "CQ AB1CDE FN42", StationIdentity())
        assert data.startswith(DECODE_PREFIX)

        r = FieldReader(data)
        r.pos = len(DECODE_PREFIX)
        assert r.utf8() == "QMTECH FT8 RX 1.0"
        assert r.uint8() == 1
        assert r.uint32() == 0
        assert r.int32() == -10
        assert r.double() == 0.3
        assert r.int32() == 123
        assert r.utf8() == "FT8"
        assert r.utf8() == "CQ AB1CDE FN42"
        assert r.uint8() == 0
        assert r.uint8() == 0
        assert r.at_end


class TestEncodeRecord:
    """Tests for per-record encoding and band state."""

    def test_first_record_emits_status(self):
        record = parse_decode_line("230101 120000 1.0 -10 0.3 14074123 AB1CDE FN42")
        encoded = encode_record(record, BandState(), StationIdentity())

        assert encoded.band_hz == 14074000
        assert encoded.delta_hz == 123
        assert encoded.state == BandState(current_band_hz=14074000)
        assert encoded.status is not None
        assert encoded.status.startswith(STATUS_PREFIX)
        assert encoded.decode.startswith(DECODE_PREFIX)
        assert b"CQ AB1CDE FN42" in encoded.decode

    def test_same_band_no_status(self):
        state = BandState(current_band_hz=14074000)
        encoded = encode_record(make_record(frequency_hz=14076500), state, StationIdentity())
        assert encoded.status is None
        assert encoded.state is state
        assert encoded.delta_hz == 2500

    def test_band_change_emits_status(self):
        state = BandState(current_band_hz=14074000)
        encoded = encode_record(make_record(frequency_hz=7074800), state, StationIdentity())
        assert encoded.status is not None
        assert encoded.state.current_band_hz == 7074000

    def test_off_table_delta(self):
        encoded = encode_record(make_record(frequency_hz=14100150), BandState(), StationIdentity())
        assert encoded.band_hz == 14099000
        assert encoded.delta_hz == 1150

    def test_encoding_is_pure(self):
        record = make_record()
        state = BandState()
        first = encode_record(record, state, StationIdentity())
        second = encode_record(record, state, StationIdentity())
        assert first == second
        assert state.current_band_hz == 0

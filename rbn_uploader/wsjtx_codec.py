"""
WSJT-X UDP datagram encoding for rbn-uploader.

Builds the two message types RBN Aggregator listens for:
- Status (type 1): announces the dial frequency being monitored
- Decode (type 2): announces a single decode

Only a pruned subset of the WSJT-X schema 2 fields carries real data.
The rest are filled with fixed values but must still be framed so the
datagrams parse as regular WSJT-X traffic. All fields are big-endian.
"""

import logging
import struct
from dataclasses import dataclass
from typing import NamedTuple, Optional

from .bands import classify
from .config import StationIdentity
from .decode_record import DecodeRecord

logger = logging.getLogger(__name__)


MAGIC = 0xADBCCBDA
SCHEMA_VERSION = 2

MSG_STATUS = 1
MSG_DECODE = 2

HEADER = struct.pack('!II', MAGIC, SCHEMA_VERSION)

_ZERO_DOUBLE = bytes(8)


def pack_utf8(text: str) -> bytes:
    """Length-prefixed string: 4-byte length followed by the raw bytes."""
    data = text.encode('utf-8')
    return struct.pack('!I', len(data)) + data


def pack_bool(value: bool) -> bytes:
    return struct.pack('!B', 1 if value else 0)


def pack_uint8(value: int) -> bytes:
    return struct.pack('!B', value)


def pack_int32(value: int) -> bytes:
    return struct.pack('!i', value)


def pack_double(value: float) -> bytes:
    """
    Encode a float as an 8-byte big-endian IEEE-754 double.

    Zero (of either sign) is sent as all-zero bytes.
    """
    if value == 0.0:
        return _ZERO_DOUBLE
    return struct.pack('!d', value)


def message_header(message_type: int) -> bytes:
    """Magic, schema version and message type."""
    return HEADER + struct.pack('!I', message_type)


def encode_status(
    band_hz: int,
    callsign: str,
    snr: int,
    identity: StationIdentity,
) -> bytes:
    """
    Build a status datagram.

    Args:
        band_hz: Canonical band frequency announced as dial frequency
        callsign: DX call (ignored by RBN Aggregator)
        snr: Report, sent as text (ignored by RBN Aggregator)
        identity: Software id, mode and placeholder station fields

    Returns:
        Complete datagram bytes
    """
    parts = [
        message_header(MSG_STATUS),
        pack_utf8(identity.software_id),
        # Dial frequency is a 64-bit integer sent as two 32-bit halves
        pack_int32(0),
        pack_int32(band_hz),
        pack_utf8(identity.mode),
        pack_utf8(callsign),
        pack_utf8(str(snr)),
        pack_utf8(identity.mode),       # tx mode
        pack_bool(False),               # tx enabled
        pack_bool(False),               # transmitting
        pack_bool(False),               # decoding
        pack_int32(0),                  # rx df
        pack_int32(0),                  # tx df
        pack_utf8(identity.operator_call),
        pack_utf8(identity.operator_grid),
        pack_utf8(identity.dx_grid),
        pack_bool(False),               # tx watchdog
        pack_utf8(""),                  # submode
        pack_bool(False),               # fast mode
        pack_uint8(0),                  # special operation mode
    ]
    return b''.join(parts)


def encode_decode(
    snr: int,
    dt: float,
    delta_hz: int,
    message: str,
    identity: StationIdentity,
) -> bytes:
    """
    Build a decode datagram.

    Args:
        snr: Report in dB
        dt: Timing offset in seconds
        delta_hz: Audio offset from the dial frequency in Hz
        message: Decoded message text
        identity: Software id and mode

    Returns:
        Complete datagram bytes
    """
    parts = [
        message_header(MSG_DECODE),
        pack_utf8(identity.software_id),
        pack_bool(True),                # new decode
        pack_int32(0),                  # time (ms since midnight), unused
        pack_int32(snr),
        pack_double(dt),
        pack_int32(delta_hz),
        pack_utf8(identity.mode),
        pack_utf8(message),
        pack_bool(False),               # low confidence
        pack_bool(False),               # off air
    ]
    return b''.join(parts)


@dataclass(frozen=True)
class BandState:
    """Dial frequency of the last status datagram (0 before the first)."""
    current_band_hz: int = 0


class EncodedRecord(NamedTuple):
    """Datagrams produced for one decode record."""
    status: Optional[bytes]  # None when the band is unchanged
    decode: bytes
    band_hz: int
    delta_hz: int
    state: BandState


def encode_record(
    record: DecodeRecord,
    state: BandState,
    identity: StationIdentity,
) -> EncodedRecord:
    """
    Encode one decode record.

    A status datagram is produced only when the record's canonical band
    differs from the one last announced; a decode datagram always is.

    Args:
        record: Parsed decode record
        state: Band announced so far
        identity: Station identity used in both datagrams

    Returns:
        EncodedRecord carrying the datagrams and the updated BandState
    """
    band_hz = classify(record.frequency_hz)
    delta_hz = record.frequency_hz - band_hz

    status = None
    if band_hz != state.current_band_hz:
        status = encode_status(band_hz, record.callsign, record.snr, identity)
        state = BandState(current_band_hz=band_hz)

    decode = encode_decode(record.snr, record.dt, delta_hz, record.message, identity)

    return EncodedRecord(
        status=status,
        decode=decode,
        band_hz=band_hz,
        delta_hz=delta_hz,
        state=state,
    )

"""
Decode record parsing for rbn-uploader.

Parses one line of receiver decode output:

    YYMMDD HHMMSS <sync> <snr> <dt> <freq> <call> [<grid>]

e.g. "230101 120000 1.0 -10 0.3 14074123 AB1CDE FN42". Each field is read
from the front of the remaining text, skipping leading whitespace and taking
the longest numeric prefix, so "-10" and "+3" are both valid reports.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


MAX_CALLSIGN_LEN = 13
MAX_GRID_LEN = 4

# SNR and frequency are sent as 32-bit signed integers
INT32_MIN = -2**31
INT32_MAX = 2**31 - 1

TIMESTAMP_FORMAT = "%y%m%d %H%M%S"

_TIMESTAMP_RE = re.compile(r'\s*(\d{6})\s*(\d{6})')
_FLOAT_RE = re.compile(r'\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)')
_INT_RE = re.compile(r'\s*([+-]?\d+)')


@dataclass
class DecodeRecord:
    """A single FT8 decode as reported by the receiver."""
    timestamp: datetime
    sync: float
    snr: int
    dt: float  # timing offset in seconds
    frequency_hz: int
    callsign: str = ""
    grid: str = ""

    @property
    def message(self) -> str:
        """Synthesized CQ message text for the decode datagram."""
        return f"CQ {self.callsign} {self.grid}"


def _read_timestamp(text: str, pos: int) -> Tuple[Optional[datetime], int]:
    match = _TIMESTAMP_RE.match(text, pos)
    if not match:
        return None, pos
    try:
        value = datetime.strptime(f"{match.group(1)} {match.group(2)}", TIMESTAMP_FORMAT)
    except ValueError:
        return None, pos
    return value, match.end()


def _read_float(text: str, pos: int) -> Tuple[Optional[float], int]:
    match = _FLOAT_RE.match(text, pos)
    if not match:
        return None, pos
    return float(match.group(1)), match.end()


def _read_int(text: str, pos: int) -> Tuple[Optional[int], int]:
    match = _INT_RE.match(text, pos)
    if not match:
        return None, pos
    value = int(match.group(1))
    if not (INT32_MIN <= value <= INT32_MAX):
        return None, pos
    return value, match.end()


def _checked_token(tokens, index: int, limit: int, name: str) -> str:
    """Return token at index if present and within limit, else empty."""
    if index >= len(tokens):
        return ""
    token = tokens[index]
    if len(token) > limit:
        logger.debug(f"Ignoring {name} {token!r}: longer than {limit} characters")
        return ""
    return token


def parse_decode_line(line: str) -> Optional[DecodeRecord]:
    """
    Parse one decode line.

    Args:
        line: Raw text line (trailing newline allowed)

    Returns:
        DecodeRecord if the timestamp and all numeric fields parsed,
        None otherwise
    """
    pos = 0

    timestamp, pos = _read_timestamp(line, pos)
    if timestamp is None:
        return None

    sync, pos = _read_float(line, pos)
    if sync is None:
        return None

    snr, pos = _read_int(line, pos)
    if snr is None:
        return None

    dt, pos = _read_float(line, pos)
    if dt is None:
        return None

    frequency_hz, pos = _read_int(line, pos)
    if frequency_hz is None or frequency_hz < 0:
        return None

    # Callsign and grid are optional and never fail the record
    tokens = line[pos:].split()
    callsign = _checked_token(tokens, 0, MAX_CALLSIGN_LEN, "callsign")
    grid = _checked_token(tokens, 1, MAX_GRID_LEN, "grid")

    return DecodeRecord(
        timestamp=timestamp,
        sync=sync,
        snr=snr,
        dt=dt,
        frequency_hz=frequency_hz,
        callsign=callsign,
        grid=grid,
    )

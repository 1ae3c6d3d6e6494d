"""
Decode upload loop for rbn-uploader.

Reads decode lines in order and, for each line that parses:
- sends a status datagram if the band changed, then pauses briefly
- sends a decode datagram
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from .bands import band_name, is_ft8_band
from .config import StationIdentity
from .decode_record import parse_decode_line
from .udp_sender import BroadcastSender
from .wsjtx_codec import BandState, encode_record

logger = logging.getLogger(__name__)


# Pause after each status datagram, before the next send
STATUS_PACING_S = 0.001

# Warn when a run sends more than this many bytes
SIZE_WARNING_BYTES = 65535


@dataclass
class UploadStats:
    """Statistics for one upload run."""
    lines_read: int = 0
    lines_skipped: int = 0
    status_sent: int = 0
    decodes_sent: int = 0
    total_bytes: int = 0

    def to_dict(self) -> dict:
        return {
            "lines_read": self.lines_read,
            "lines_skipped": self.lines_skipped,
            "status_sent": self.status_sent,
            "decodes_sent": self.decodes_sent,
            "total_bytes": self.total_bytes,
        }


class DecodeUploader:
    """
    Turns decode lines into WSJT-X datagrams and sends them.

    The sender only needs send(bytes) and pause(seconds).
    """

    def __init__(
        self,
        sender: BroadcastSender,
        identity: Optional[StationIdentity] = None,
        pacing_s: float = STATUS_PACING_S,
        size_warning_bytes: int = SIZE_WARNING_BYTES,
    ):
        self.sender = sender
        self.identity = identity or StationIdentity()
        self.pacing_s = pacing_s
        self.size_warning_bytes = size_warning_bytes
        self.state = BandState()
        self.stats = UploadStats()

    def process_line(self, line: str) -> bool:
        """
        Parse, encode and send one line.

        Returns:
            True if the line produced datagrams, False if it was skipped

        Raises:
            UploadError: On a fatal send failure
        """
        self.stats.lines_read += 1

        record = parse_decode_line(line)
        if record is None:
            self.stats.lines_skipped += 1
            logger.debug(f"Skipping unparsable line: {line.rstrip()!r}")
            return False

        encoded = encode_record(record, self.state, self.identity)

        if encoded.status is not None:
            if is_ft8_band(encoded.band_hz):
                logger.info(
                    f"Band change: {encoded.band_hz} Hz ({band_name(encoded.band_hz)})"
                )
            else:
                logger.info(
                    f"Band change: {encoded.band_hz} Hz (not an FT8 dial frequency)"
                )
            self.stats.total_bytes += len(encoded.status)
            self.sender.send(encoded.status)
            self.stats.status_sent += 1
            self.sender.pause(self.pacing_s)

        self.state = encoded.state

        self.stats.total_bytes += len(encoded.decode)
        self.sender.send(encoded.decode)
        self.stats.decodes_sent += 1
        return True

    def run(self, lines: Iterable[str]) -> UploadStats:
        """
        Process lines until the input is exhausted.

        Args:
            lines: Decode lines, e.g. an open text file

        Returns:
            Statistics for the run
        """
        for line in lines:
            self.process_line(line)

        logger.info(
            f"Sent {self.stats.decodes_sent} decodes, {self.stats.status_sent} status, "
            f"skipped {self.stats.lines_skipped} of {self.stats.lines_read} lines"
        )

        if self.stats.total_bytes > self.size_warning_bytes:
            logger.warning(
                f"Total upload is {self.stats.total_bytes} bytes, risk for lost decodes"
            )

        return self.stats

    def write_status(self, path: Path, sender_stats: Optional[dict] = None) -> None:
        """
        Write run statistics to a JSON file.

        Args:
            path: Output file
            sender_stats: Transport counters to include, if any
        """
        status = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "current_band_hz": self.state.current_band_hz,
            "upload": self.stats.to_dict(),
        }

        if sender_stats is not None:
            status["sender"] = sender_stats

        try:
            with open(path, 'w') as f:
                json.dump(status, f, indent=2)
        except OSError as e:
            logger.error(f"Failed to write status: {e}")

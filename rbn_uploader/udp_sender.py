"""
UDP broadcast transport for rbn-uploader.

Fire-and-forget: one sendto() per datagram, no acknowledgement, no retry.
"""

import socket
import logging
import time
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


class UploadError(Exception):
    """Fatal error while uploading decodes."""


class TransportError(UploadError):
    """UDP socket could not be set up."""


class ShortWriteError(UploadError):
    """sendto() transmitted a different number of bytes than requested."""
    def __init__(self, expected: int, sent: int):
        self.expected = expected
        self.sent = sent
        super().__init__(
            f"sendto() sent {sent} bytes, expected {expected}"
        )


@dataclass
class SenderStats:
    """Statistics for the UDP sender."""
    datagrams_sent: int = 0
    bytes_sent: int = 0

    def to_dict(self) -> dict:
        return {
            "datagrams_sent": self.datagrams_sent,
            "bytes_sent": self.bytes_sent,
        }


class BroadcastSender:
    """
    Sends datagrams to an IPv4 broadcast address.

    Usage:
        with BroadcastSender("192.168.1.255", 2237) as sender:
            sender.send(datagram)
    """

    def __init__(self, address: str, port: int):
        """
        Initialize sender.

        Args:
            address: Destination IPv4 (broadcast) address
            port: Destination UDP port
        """
        self.address = address
        self.port = port
        self.stats = SenderStats()
        self._socket: Optional[socket.socket] = None

    @property
    def destination(self):
        return (self.address, self.port)

    def open(self) -> None:
        """
        Create a broadcast-enabled UDP socket.

        Raises:
            TransportError: If the socket or broadcast permission fails
        """
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
        except OSError as e:
            raise TransportError(f"Cannot open socket: {e}") from e

        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        except OSError as e:
            sock.close()
            raise TransportError(f"Enabling broadcast failed: {e}") from e

        self._socket = sock
        logger.info(f"Broadcasting to {self.address}:{self.port}")

    def send(self, datagram: bytes) -> int:
        """
        Send one datagram.

        Args:
            datagram: Complete datagram bytes

        Returns:
            Number of bytes sent

        Raises:
            ShortWriteError: If fewer/more bytes than len(datagram) were sent
        """
        if self._socket is None:
            raise TransportError("Sender is not open")

        sent = self._socket.sendto(datagram, self.destination)
        if sent != len(datagram):
            raise ShortWriteError(len(datagram), sent)

        self.stats.datagrams_sent += 1
        self.stats.bytes_sent += sent
        return sent

    def pause(self, seconds: float) -> None:
        """Block before the next send."""
        if seconds > 0:
            time.sleep(seconds)

    def close(self) -> None:
        if self._socket:
            self._socket.close()
            self._socket = None

    def __enter__(self) -> "BroadcastSender":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

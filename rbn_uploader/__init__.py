"""
rbn-uploader: FT8 decode file to RBN Aggregator bridge

Reads decodes written by a multi-band FT8 SDR receiver and broadcasts
them as WSJT-X UDP datagrams for RBN Aggregator to upload to the
Reverse Beacon Network.
"""

__version__ = "0.1.0"

from .bands import classify, band_name
from .config import Config, StationIdentity, load_config
from .decode_record import DecodeRecord, parse_decode_line
from .wsjtx_codec import BandState, EncodedRecord, encode_record
from .udp_sender import BroadcastSender, UploadError, TransportError, ShortWriteError
from .uploader import DecodeUploader, UploadStats

__all__ = [
    "classify",
    "band_name",
    "Config",
    "StationIdentity",
    "load_config",
    "DecodeRecord",
    "parse_decode_line",
    "BandState",
    "EncodedRecord",
    "encode_record",
    "BroadcastSender",
    "UploadError",
    "TransportError",
    "ShortWriteError",
    "DecodeUploader",
    "UploadStats",
]

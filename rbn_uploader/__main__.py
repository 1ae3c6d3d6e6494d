#!/usr/bin/env python3
"""
rbn-uploader main entry point.

Broadcasts FT8 decodes from a receiver decode file to RBN Aggregator.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .config import Config, BroadcastConfig, load_config, is_ipv4_address
from .udp_sender import BroadcastSender, UploadError
from .uploader import DecodeUploader

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO

    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rbn-uploader",
        description="Broadcast FT8 decodes to RBN Aggregator as WSJT-X UDP datagrams",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  rbn-uploader 192.168.1.255 2237 decodes.txt
  rbn-uploader 192.168.1.255 2237 decodes.txt -c config.toml -v
        """,
    )

    parser.add_argument("address", help="Broadcast IP address")
    parser.add_argument("port", type=int, help="Broadcast port")
    parser.add_argument("decode_file", help="File with one decode per line")
    parser.add_argument(
        "-c", "--config",
        help="Path to config.toml",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--log-file",
        help="Log to file in addition to stdout",
    )
    parser.add_argument(
        "--status-file",
        help="Write run statistics as JSON to this file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"rbn-uploader {__version__}",
    )
    return parser


def main(argv=None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    setup_logging(verbose=args.verbose, log_file=args.log_file)

    # Load configuration
    if args.config:
        try:
            config = load_config(args.config)
        except FileNotFoundError as e:
            logger.error(f"Config file not found: {e}")
            return 1
        except ValueError as e:
            logger.error(f"Invalid configuration: {e}")
            return 1
    else:
        config = Config()

    config.broadcast = BroadcastConfig(address=args.address, port=args.port)
    if args.status_file:
        config.upload.status_file = args.status_file

    errors = config.validate()
    if errors:
        logger.error(f"Invalid arguments: {'; '.join(errors)}")
        return 1

    try:
        # Undecodable bytes become U+FFFD
        decode_file = open(args.decode_file, "r", encoding="utf-8", errors="replace")
    except OSError as e:
        logger.error(f"Cannot open input file: {e}")
        return 1

    try:
        with decode_file, BroadcastSender(config.broadcast.address, config.broadcast.port) as sender:
            uploader = DecodeUploader(
                sender,
                identity=config.station,
                pacing_s=config.pacing_seconds,
                size_warning_bytes=config.upload.size_warning_bytes,
            )
            uploader.run(decode_file)
    except UploadError as e:
        logger.error(f"Upload failed: {e}")
        return 1
    except OSError as e:
        logger.error(f"Send failed: {e}")
        return 1

    if config.upload.status_file:
        uploader.write_status(Path(config.upload.status_file), sender.stats.to_dict())

    return 0


if __name__ == "__main__":
    sys.exit(main())

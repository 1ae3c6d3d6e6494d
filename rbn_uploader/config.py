"""
Configuration parsing and validation for rbn-uploader.

Reads an optional config.toml and provides validated configuration objects.
The broadcast destination comes from the command line only.
"""

import sys
import re
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

logger = logging.getLogger(__name__)


DEFAULT_SOFTWARE_ID = "QMTECH FT8 RX 1.0"

_IPV4_RE = re.compile(r'^(\d{1,3})\.(\d{1,3})\.(\d{1,3})\.(\d{1,3})$')


def is_ipv4_address(address: str) -> bool:
    """Check for a dotted-quad IPv4 address."""
    match = _IPV4_RE.match(address)
    if not match:
        return False
    return all(0 <= int(octet) <= 255 for octet in match.groups())


@dataclass
class StationIdentity:
    """
    Identity fields carried in every datagram.

    Only software_id and mode are looked at by RBN Aggregator; the
    operator and grid fields are placeholders the protocol requires.
    """
    software_id: str = DEFAULT_SOFTWARE_ID
    mode: str = "FT8"
    operator_call: str = "AB1CDE"
    operator_grid: str = "AB12"
    dx_grid: str = "AB12"


@dataclass
class BroadcastConfig:
    """UDP destination, filled from the command line."""
    address: str = "255.255.255.255"
    port: int = 2237


@dataclass
class UploadConfig:
    """Upload loop settings."""
    pacing_ms: float = 1.0  # pause after each status datagram
    size_warning_bytes: int = 65535
    status_file: Optional[str] = None


@dataclass
class Config:
    """Complete rbn-uploader configuration."""
    broadcast: BroadcastConfig = field(default_factory=BroadcastConfig)
    station: StationIdentity = field(default_factory=StationIdentity)
    upload: UploadConfig = field(default_factory=UploadConfig)

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not is_ipv4_address(self.broadcast.address):
            errors.append(f"Broadcast address must be IPv4: {self.broadcast.address}")

        if not (1 <= self.broadcast.port <= 65535):
            errors.append(f"Port out of range: {self.broadcast.port}")

        if not self.station.software_id:
            errors.append("software_id must not be empty")

        if not self.station.mode:
            errors.append("mode must not be empty")

        if len(self.station.operator_call) > 13:
            errors.append(f"operator_call too long: {self.station.operator_call}")

        for name in ("operator_grid", "dx_grid"):
            value = getattr(self.station, name)
            if len(value) > 4:
                errors.append(f"{name} too long: {value}")

        if not (0 <= self.upload.pacing_ms <= 1000):
            errors.append(f"pacing_ms out of range: {self.upload.pacing_ms}")

        if self.upload.size_warning_bytes <= 0:
            errors.append(f"size_warning_bytes must be positive: {self.upload.size_warning_bytes}")

        return errors

    @property
    def pacing_seconds(self) -> float:
        return self.upload.pacing_ms / 1000.0


def load_config(config_path: str) -> Config:
    """
    Load configuration from TOML file.

    Args:
        config_path: Path to config.toml

    Returns:
        Validated Config object

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If configuration is invalid
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {config_path}: {e}")

    config = Config()

    if "broadcast" in data:
        logger.warning("Ignoring [broadcast] section: destination is set on the command line")

    # Parse station section
    if "station" in data:
        st = data["station"]
        config.station = StationIdentity(
            software_id=st.get("software_id", config.station.software_id),
            mode=st.get("mode", config.station.mode),
            operator_call=st.get("operator_call", config.station.operator_call),
            operator_grid=st.get("operator_grid", config.station.operator_grid),
            dx_grid=st.get("dx_grid", config.station.dx_grid),
        )

    # Parse upload section
    if "upload" in data:
        up = data["upload"]
        config.upload = UploadConfig(
            pacing_ms=up.get("pacing_ms", config.upload.pacing_ms),
            size_warning_bytes=up.get("size_warning_bytes", config.upload.size_warning_bytes),
            status_file=up.get("status_file", config.upload.status_file),
        )

    # Validate
    errors = config.validate()
    if errors:
        raise ValueError(f"Configuration errors: {'; '.join(errors)}")

    logger.info(f"Loaded config from {config_path}")
    return config

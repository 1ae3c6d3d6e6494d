"""
Band classification for rbn-uploader.

Snaps a raw receive frequency to the FT8 "home" frequency of its band.
RBN Aggregator keys spots on these dial frequencies, so the table must
not drift.
"""

import logging
from typing import Dict

logger = logging.getLogger(__name__)


# FT8 dial frequencies (Hz) -> amateur band name
FT8_BANDS: Dict[int, str] = {
    1840000: "160m",
    3573000: "80m",
    5357000: "60m",
    7056000: "40m",
    7074000: "40m",
    10131000: "30m",
    10136000: "30m",
    14074000: "20m",
    18095000: "17m",
    18100000: "17m",
    21074000: "15m",
    24911000: "12m",
    24915000: "12m",
    28074000: "10m",
    50313000: "6m",
    50323000: "6m",
}

# Each dial frequency owns this many consecutive kHz buckets
BAND_WIDTH_KHZ = 4

# Guard subtracted before rounding down an off-table frequency
FALLBACK_GUARD_HZ = 200

_KHZ_TO_BAND: Dict[int, int] = {
    base // 1000 + offset: base
    for base in FT8_BANDS
    for offset in range(BAND_WIDTH_KHZ)
}


def classify(frequency_hz: int) -> int:
    """
    Map a receive frequency to its canonical band frequency.

    A frequency whose kHz bucket falls within the four buckets starting at
    one of the FT8 dial frequencies maps to that dial frequency. Anything
    else is rounded down to a kHz boundary after subtracting a 200 Hz guard.

    Args:
        frequency_hz: Absolute receive frequency in Hz

    Returns:
        Canonical band frequency in Hz
    """
    band_hz = _KHZ_TO_BAND.get(frequency_hz // 1000)
    if band_hz is not None:
        return band_hz
    return 1000 * ((frequency_hz - FALLBACK_GUARD_HZ) // 1000)


def is_ft8_band(band_hz: int) -> bool:
    """Check whether a frequency is one of the FT8 dial frequencies."""
    return band_hz in FT8_BANDS


def band_name(band_hz: int) -> str:
    """
    Get a display name for a canonical band frequency.

    Args:
        band_hz: Canonical band frequency in Hz

    Returns:
        Band name (e.g., "20m") or kHz string if off-table
    """
    return FT8_BANDS.get(band_hz, f"{band_hz // 1000}kHz")

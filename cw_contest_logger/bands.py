"""Amateur band plan lookups.

BANDS is an ordered table; when a frequency sits on the shared edge of two
ranges the first one declared wins.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

# name -> (min MHz, max MHz), inclusive on both ends
BANDS: Dict[str, Tuple[float, float]] = {
    "160m": (1.8, 2.0),
    "80m": (3.5, 4.0),
    "40m": (7.0, 7.3),
    "30m": (10.1, 10.15),
    "20m": (14.0, 14.35),
    "17m": (18.068, 18.168),
    "15m": (21.0, 21.45),
    "12m": (24.89, 24.99),
    "10m": (28.0, 29.7),
    "6m": (50.0, 54.0),
    "2m": (144.0, 148.0),
}

# CW portions of the HF bands
CW_SEGMENTS: List[Tuple[float, float]] = [
    (1.8, 1.84),
    (3.5, 3.6),
    (7.0, 7.04),
    (10.1, 10.15),
    (14.0, 14.07),
    (18.068, 18.095),
    (21.0, 21.07),
    (24.89, 24.915),
    (28.0, 28.07),
]


def band_for_frequency(freq_mhz: Optional[float]) -> str:
    """Return the band name for a frequency in MHz, or "" when out of band."""
    if freq_mhz is None:
        return ""
    for name, (lo, hi) in BANDS.items():
        if lo <= freq_mhz <= hi:
            return name
    return ""


def mode_for_frequency(freq_mhz: float) -> str:
    """Guess "CW" or "SSB" from where the frequency sits in the band."""
    for lo, hi in CW_SEGMENTS:
        if lo <= freq_mhz <= hi:
            return "CW"
    return "SSB"


def format_frequency(freq_mhz: float) -> str:
    return f"{freq_mhz:.3f}"

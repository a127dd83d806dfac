"""DX-cluster and Reverse Beacon Network line parsers.

Lines come from a telnet feed handled elsewhere; each parser looks at a single
line and returns a spot or None. Noise, banners and prompts simply fail to
match.

    DX de W3LPL:     7003.0  JA1ABC       CW up 2                        0430Z
    DX de DL8LAS-#:  14040.0  DF2RG        CW    24 dB  28 WPM  CQ      1150Z
"""

from __future__ import annotations

import logging
import re
from typing import Optional, TypeVar, Union

from .bands import band_for_frequency
from .geodesy import InvalidLocator, bearing_degrees, distance_km, grid_to_latlon
from .models import DXSpot, RBNSpot

logger = logging.getLogger(__name__)

_DX_RE = re.compile(
    r"DX de ([A-Z0-9/\-]+):\s+(\d+\.\d+)\s+([A-Z0-9/\-]+)\s+(.*?)\s+(\d{4}Z)",
    re.IGNORECASE,
)
_RBN_RE = re.compile(
    r"DX de ([A-Z0-9/\-#]+):\s+(\d+\.\d+)\s+([A-Z0-9/\-]+)\s+CW\s+(\d+)\s+dB\s+(\d+)\s+WPM",
    re.IGNORECASE,
)
_ZULU_RE = re.compile(r"\b(\d{4}Z)\b", re.IGNORECASE)

Spot = Union[DXSpot, RBNSpot]
SpotT = TypeVar("SpotT", DXSpot, RBNSpot)


def parse_dx_line(line: str) -> Optional[DXSpot]:
    """Parse a "DX de" cluster line; frequency on the wire is in kHz."""
    m = _DX_RE.search(line)
    if not m:
        logger.debug("No DX spot in line: %r", line)
        return None
    spotter, freq_khz, call, comment, zulu = m.groups()
    freq_mhz = float(freq_khz) / 1000
    return DXSpot(
        spotter=spotter,
        freq_mhz=freq_mhz,
        call=call,
        comment=comment.strip(),
        time=zulu,
        band=band_for_frequency(freq_mhz),
    )


def parse_rbn_line(line: str) -> Optional[RBNSpot]:
    """Parse an RBN skimmer line with SNR (dB) and speed (WPM)."""
    m = _RBN_RE.search(line)
    if not m:
        logger.debug("No RBN spot in line: %r", line)
        return None
    spotter, freq_khz, call, snr, wpm = m.groups()
    freq_mhz = float(freq_khz) / 1000
    zulu = _ZULU_RE.search(line, m.end())
    return RBNSpot(
        spotter=spotter,
        freq_mhz=freq_mhz,
        call=call,
        snr=int(snr),
        speed=int(wpm),
        time=zulu.group(1) if zulu else "",
        band=band_for_frequency(freq_mhz),
    )


def parse_spot_line(line: str) -> Optional[Spot]:
    """Parse a line from a mixed feed: RBN format first, then plain cluster."""
    return parse_rbn_line(line) or parse_dx_line(line)


def locate_spot(
    spot: SpotT,
    my_grid: Optional[str],
    spot_grid: Optional[str],
) -> SpotT:
    """Return a copy of spot with position, distance and bearing filled in.

    Unknown or malformed locators leave the corresponding fields unset.
    """
    if not spot_grid:
        return spot
    try:
        lat, lon = grid_to_latlon(spot_grid)
    except InvalidLocator:
        logger.debug("Cannot locate %s: bad grid %r", spot.call, spot_grid)
        return spot

    update = {"latitude": lat, "longitude": lon}
    if my_grid:
        try:
            update["distance"] = distance_km(my_grid, spot_grid)
            update["bearing"] = bearing_degrees(my_grid, spot_grid)
        except InvalidLocator:
            logger.debug("Own grid %r is not a valid locator", my_grid)
    return spot.model_copy(update=update)

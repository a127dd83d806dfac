"""ADIF import/export for contest logs.

The writer emits a fixed header and one <EOR>-terminated record per QSO. The
reader is tolerant: it splits on <EOR>, looks for <TAG:len>value pairs and
drops any record that lacks a call, date or time instead of failing the file.

Large files are decoded on a thread pool; record order is preserved.
"""

from __future__ import annotations

import concurrent.futures
import logging
import multiprocessing
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from pydantic import ValidationError

from .bands import band_for_frequency
from .models import QSO

logger = logging.getLogger(__name__)

# ADIF spec: https://www.adif.org/

PROGRAM_ID = "CW Contest Logger"
PROGRAM_VERSION = "1.0"
HEADER = (
    f"ADIF Export from {PROGRAM_ID}\n"
    f"<PROGRAMID:{len(PROGRAM_ID)}>{PROGRAM_ID}\n"
    f"<PROGRAMVERSION:{len(PROGRAM_VERSION)}>{PROGRAM_VERSION}\n"
    "<EOH>\n\n"
)

# The logger is CW only; exported records always carry MODE=CW.
EXPORT_MODE = "CW"

FIELD_MAP_IN = {
    "call": "call",
    "qso_date": "date",
    "time_on": "time",
    "band": "band",
    "freq": "freq_mhz",
    "mode": "mode",
    "rst_sent": "rst_sent",
    "rst_rcvd": "rst_rcvd",
    "stx": "serial_sent",
    "srx": "serial_rcvd",
    "my_gridsquare": "my_grid_square",
    "gridsquare": "grid_square",
    "comment": "comment",
}

# Optional fields written after the fixed ones, in this order
OPTIONAL_FIELDS_OUT = [
    ("serial_sent", "STX"),
    ("serial_rcvd", "SRX"),
    ("my_grid_square", "MY_GRIDSQUARE"),
    ("grid_square", "GRIDSQUARE"),
    ("comment", "COMMENT"),
]

_TAG_RE = re.compile(r"<(\w+):(\d+)(?::\w+)?>([^<]*)", re.IGNORECASE)
_EOR_RE = re.compile(r"<EOR>", re.IGNORECASE)
_EOH_RE = re.compile(r"<EOH>", re.IGNORECASE)

PARALLEL_THRESHOLD = 500


def _parse_adif_record(text: str) -> Dict[str, str]:
    """Extract a dict of lowercased ADIF tag -> value from a single record chunk.

    The value runs up to the next "<" and is cut to the declared length when
    that is shorter, which drops the whitespace between tags but keeps
    leading and trailing spaces inside a value. A length that overstates the
    text is not trusted; only trailing line breaks are removed then.
    """
    rec: Dict[str, str] = {}
    for name, length, value in _TAG_RE.findall(text):
        n = int(length)
        rec[name.lower()] = value[:n] if n < len(value) else value.rstrip("\r\n")
    return rec


def _adif_date(value: str) -> Optional[str]:
    if len(value) != 8 or not value.isdigit():
        return None
    return f"{value[0:4]}-{value[4:6]}-{value[6:8]}"


def _adif_time(value: str) -> Optional[str]:
    if len(value) not in (4, 6) or not value.isdigit():
        return None
    return f"{value[0:2]}:{value[2:4]}"


def _process_adif_chunk(chunk: str) -> QSO | None:
    """Turn one record chunk into a QSO, or None if it cannot be used.

    Safe to call from several threads at once.
    """
    rec = _parse_adif_record(chunk)
    if not rec:
        return None

    fields: Dict[str, object] = {}
    for tag, value in rec.items():
        attr = FIELD_MAP_IN.get(tag)
        if attr is None or value == "":
            continue
        if attr == "date":
            date = _adif_date(value)
            if date:
                fields["date"] = date
        elif attr == "time":
            time = _adif_time(value)
            if time:
                fields["time"] = time
        elif attr == "freq_mhz":
            try:
                fields["freq_mhz"] = float(value)
            except ValueError:
                logger.debug("Ignoring unparseable FREQ %r", value)
        else:
            fields[attr] = value

    if not (fields.get("call") and fields.get("date") and fields.get("time")):
        logger.debug("Dropping ADIF record without call/date/time: %r", chunk[:80])
        return None

    if "band" not in fields and "freq_mhz" in fields:
        fields["band"] = band_for_frequency(fields["freq_mhz"])  # type: ignore[arg-type]

    try:
        return QSO(points=1, multiplier=False, **fields)
    except ValidationError as e:
        logger.debug("Dropping invalid ADIF record: %s", e)
        return None


def _split_records(text: str) -> List[str]:
    """Split ADIF text into record chunks, dropping the header and blank chunks.

    The header shares its chunk with the first record, so everything up to
    <EOH> is cut off before splitting.
    """
    eoh = _EOH_RE.search(text)
    if eoh:
        text = text[eoh.end():]
    return [
        chunk
        for chunk in _EOR_RE.split(text)
        if chunk.strip() and not _EOH_RE.search(chunk)
    ]


def load_adif_parallel(text: str, max_workers: int | None = None) -> List[QSO]:
    """Parse ADIF text on a thread pool, keeping records in file order.

    Args:
        text: ADIF text content
        max_workers: Maximum number of worker threads (defaults to CPU count, capped at 4)

    Returns:
        List of parsed QSO objects
    """
    chunks = _split_records(text)

    if max_workers is None:
        try:
            max_workers = min(4, max(1, (multiprocessing.cpu_count() or 1)))
        except NotImplementedError:
            max_workers = 2

    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        results = list(executor.map(_process_adif_chunk, chunks))

    return [qso for qso in results if qso is not None]


def load_adif(text: str) -> List[QSO]:
    """Parse ADIF text into a list of QSO objects (best effort).

    Header content is ignored. Records without CALL, a valid QSO_DATE or a
    valid TIME_ON are skipped. Every returned QSO gets a new id, points=1 and
    multiplier=False.
    """
    chunks = _split_records(text)

    if len(chunks) > PARALLEL_THRESHOLD:
        return load_adif_parallel(text)

    records: List[QSO] = [
        qso for chunk in chunks if (qso := _process_adif_chunk(chunk)) is not None
    ]
    logger.debug("Decoded %d of %d ADIF records", len(records), len(chunks))
    return records


def _field(tag: str, value: str) -> str:
    return f"<{tag}:{len(value)}>{value}"


def dump_adif(qsos: Iterable[QSO]) -> str:
    """Serialize QSOs to ADIF text with the fixed header and <EOR>-terminated records."""
    parts: List[str] = [HEADER]
    for q in qsos:
        rec: List[str] = [
            _field("CALL", q.call),
            _field("QSO_DATE", q.date.replace("-", "")),
            _field("TIME_ON", q.time.replace(":", "")[:4]),
            _field("BAND", q.band),
            _field("MODE", EXPORT_MODE),
            _field("RST_SENT", q.rst_sent),
            _field("RST_RCVD", q.rst_rcvd),
        ]
        for attr, tag in OPTIONAL_FIELDS_OUT:
            value = getattr(q, attr)
            if value:
                rec.append(_field(tag, value))
        rec.append("<EOR>\n\n")
        parts.append("".join(rec))
    return "".join(parts)


def read_adif_file(path: Path | str) -> List[QSO]:
    """Load QSOs from an .adi/.adif file."""
    text = Path(path).read_text(encoding="utf-8", errors="replace")
    return load_adif(text)


def write_adif_file(path: Path | str, qsos: Iterable[QSO]) -> Path:
    """Write QSOs to an ADIF file and return its path."""
    p = Path(path)
    p.write_text(dump_adif(qsos), encoding="utf-8")
    return p

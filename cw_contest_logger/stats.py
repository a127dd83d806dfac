"""Log statistics for the contest dashboard.

- `band_counts` tallies QSOs per band.
- `qso_rate` gives the hourly rate over a trailing window.
- `compute_summary` bundles the numbers shown next to the score.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Set, Tuple, TypedDict

from .models import QSO, now_utc


class LogSummary(TypedDict):
    """Type definition for the log summary dictionary."""
    total_qsos: int
    unique_calls: int
    total_points: int
    duplicates: int
    bands: Dict[str, int]
    rate_last_10: int
    rate_last_60: int


def band_counts(qsos: Iterable[QSO]) -> Dict[str, int]:
    """Return QSO counts keyed by band, in first-worked order."""
    return dict(Counter(q.band for q in qsos))


def _qso_datetime(q: QSO) -> Optional[datetime]:
    try:
        return datetime.strptime(f"{q.date} {q.time}", "%Y-%m-%d %H:%M")
    except ValueError:
        return None


def qso_rate(qsos: Iterable[QSO], minutes: int, now: Optional[datetime] = None) -> int:
    """QSOs per hour over the last `minutes` minutes (UTC).

    QSOs logged after `now` are counted too; the window only has a lower edge.
    """
    if minutes <= 0:
        raise ValueError("minutes must be positive")
    now = now or now_utc()
    cutoff = now - timedelta(minutes=minutes)
    count = 0
    for q in qsos:
        when = _qso_datetime(q)
        if when is not None and when >= cutoff:
            count += 1
    return round(count / minutes * 60)


def count_duplicates(qsos: Iterable[QSO]) -> int:
    """Number of QSOs repeating an earlier call/band/mode."""
    seen: Set[Tuple[str, str, str]] = set()
    dupes = 0
    for q in qsos:
        key = (q.call, q.band, q.mode)
        if key in seen:
            dupes += 1
        else:
            seen.add(key)
    return dupes


def compute_summary(qsos: Iterable[QSO], now: Optional[datetime] = None) -> LogSummary:
    """Compute the totals, per-band counts and rates for a log."""
    qsos_list: List[QSO] = list(qsos)
    now = now or now_utc()
    return {
        "total_qsos": len(qsos_list),
        "unique_calls": len({q.call for q in qsos_list}),
        "total_points": sum(q.points for q in qsos_list),
        "duplicates": count_duplicates(qsos_list),
        "bands": band_counts(qsos_list),
        "rate_last_10": qso_rate(qsos_list, 10, now),
        "rate_last_60": qso_rate(qsos_list, 60, now),
    }

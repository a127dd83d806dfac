"""Contest session engine: serial numbers, score and duplicate checking.

A ContestSessionEngine is created by whoever owns the log (the UI, the CLI, a
test) and passed around explicitly. It has two states, inactive and active.
While active, every recorded QSO gets the next serial number and adds to the
score. The final serial and score stay readable after the contest ends, until
the next start.

Multipliers are counted by a pluggable policy. The default leaves the count to
the operator (set_multipliers); PrefixMultipliers counts unique WPX prefixes.
CONTEST_PRESETS holds the default exchange and length of common contests.
"""

from __future__ import annotations

import logging
import re
import threading
from typing import Dict, Iterable, List, NamedTuple, Optional, Protocol, Set, Tuple

from .models import QSO, ContestScore, ContestSession, now_utc

logger = logging.getLogger(__name__)

_PREFIX_RE = re.compile(r"^([A-Z0-9]+[0-9])")
_CALLSIGN_RE = re.compile(r"[A-Z0-9]{1,3}[0-9][A-Z0-9]{0,3}[A-Z]")


class ContestStateError(RuntimeError):
    """Base class for contest state machine misuse."""


class AlreadyActive(ContestStateError):
    """start() was called while a contest is running."""


class NotActive(ContestStateError):
    """end() was called with no contest running."""


class ContestPreset(NamedTuple):
    name: str
    exchange: str
    duration_hours: int


CONTEST_PRESETS: Dict[str, ContestPreset] = {
    p.name: p
    for p in (
        ContestPreset("CQ WW", "599 + CQ Zone", 48),
        ContestPreset("CQ WPX", "599 + Serial", 48),
        ContestPreset("ARRL DX", "599 + State/Power", 48),
        ContestPreset("IARU HF", "599 + ITU Zone", 24),
        ContestPreset("WAE", "599 + Serial/QTC", 48),
        ContestPreset("Field Day", "Class + Section", 24),
        ContestPreset("Sprint", "Call + Name + QTH", 4),
        ContestPreset("Custom", "Custom", 24),
    )
}


def contest_preset(name: str) -> Optional[ContestPreset]:
    """Look up a preset by name, ignoring case and surrounding spaces."""
    key = name.strip().casefold()
    for preset in CONTEST_PRESETS.values():
        if preset.name.casefold() == key:
            return preset
    return None


def is_valid_callsign(call: str) -> bool:
    """Loose format check: up to 3 prefix characters, a digit, a letter at the end.

    Portable suffixes such as /P are not accepted.
    """
    return _CALLSIGN_RE.fullmatch(call.strip().upper()) is not None


def extract_prefix(call: str) -> str:
    """Return the WPX-style prefix of a call (everything up to its last digit).

    Calls with no digit are returned unchanged.
    """
    call = call.strip().upper()
    m = _PREFIX_RE.match(call)
    return m.group(1) if m else call


def is_duplicate(candidate: QSO, existing_log: Iterable[QSO]) -> bool:
    """True if the log already holds the same call on the same band and mode."""
    return any(
        q.call == candidate.call and q.band == candidate.band and q.mode == candidate.mode
        for q in existing_log
    )


def _check_band(qso: QSO) -> None:
    if not qso.band:
        raise ValueError(f"QSO with {qso.call} has no band")


class MultiplierPolicy(Protocol):
    def reset(self) -> None: ...

    def is_new_multiplier(self, qso: QSO) -> bool: ...


class ManualMultipliers:
    """Never flags a QSO; the multiplier count is entered by the operator."""

    def reset(self) -> None:
        pass

    def is_new_multiplier(self, qso: QSO) -> bool:
        return False


class PrefixMultipliers:
    """Each prefix worked for the first time in the session is a multiplier."""

    def __init__(self) -> None:
        self._seen: Set[str] = set()

    def reset(self) -> None:
        self._seen.clear()

    def is_new_multiplier(self, qso: QSO) -> bool:
        prefix = extract_prefix(qso.call)
        if prefix in self._seen:
            return False
        self._seen.add(prefix)
        return True


class ContestSessionEngine:
    """Owns the in-memory log and the contest session state.

    All mutating methods take one lock, so concurrent record_qso calls are
    applied one QSO at a time.
    """

    def __init__(
        self,
        multiplier_policy: Optional[MultiplierPolicy] = None,
        log: Iterable[QSO] = (),
    ) -> None:
        self._lock = threading.Lock()
        self._policy: MultiplierPolicy = multiplier_policy or ManualMultipliers()
        self._session = ContestSession()
        self._log: List[QSO] = []
        self.load_log(log)

    # Read-only state

    @property
    def session(self) -> ContestSession:
        """Snapshot of the session; changing it does not affect the engine."""
        with self._lock:
            return self._session.model_copy(deep=True)

    @property
    def is_active(self) -> bool:
        return self._session.is_active

    @property
    def serial_number(self) -> int:
        return self._session.serial_number

    @property
    def score(self) -> ContestScore:
        with self._lock:
            return self._session.score.model_copy()

    @property
    def log(self) -> Tuple[QSO, ...]:
        with self._lock:
            return tuple(self._log)

    # State transitions

    def start(self, name: str, exchange: Optional[str] = None) -> ContestSession:
        """Start a contest. Raises AlreadyActive if one is running.

        Without an explicit exchange, the exchange of the matching preset is
        used (or "" for contests without one).
        """
        if exchange is None:
            preset = contest_preset(name)
            exchange = preset.exchange if preset else ""
        with self._lock:
            if self._session.is_active:
                raise AlreadyActive(
                    f"Contest {self._session.contest_name!r} is already active; end it first"
                )
            self._session = ContestSession(
                is_active=True,
                contest_name=name,
                exchange=exchange,
                start_time=now_utc(),
                end_time=None,
                serial_number=1,
                score=ContestScore(),
            )
            self._policy.reset()
            logger.info("Contest %r started", name)
            return self._session.model_copy(deep=True)

    def end(self) -> ContestSession:
        """End the running contest. Raises NotActive if none is running."""
        with self._lock:
            if not self._session.is_active:
                raise NotActive("No contest is active")
            self._session.is_active = False
            self._session.end_time = now_utc()
            logger.info(
                "Contest %r ended: %d QSOs, score %d",
                self._session.contest_name,
                self._session.score.qsos,
                self._session.score.total,
            )
            return self._session.model_copy(deep=True)

    # Logging

    def record_qso(self, qso: QSO) -> QSO:
        """Append a QSO to the log, assigning serial and score if a contest is on.

        The QSO is updated in place (serial_sent, multiplier) and returned.
        The multiplier flag is only ever set, never cleared; a flag set by the
        caller is kept but only policy hits count toward score.multipliers.
        Raises ValueError if the QSO has no band or a QSO with the same id is
        already in the log.
        """
        _check_band(qso)
        if not is_valid_callsign(qso.call):
            logger.warning("Logging %s, which does not look like a callsign", qso.call)
        with self._lock:
            if any(q.id == qso.id for q in self._log):
                raise ValueError(f"QSO id {qso.id!r} is already in the log")
            if self._session.is_active:
                s = self._session
                qso.serial_sent = str(s.serial_number)
                s.serial_number += 1
                s.score.qsos += 1
                s.score.points += qso.points
                if self._policy.is_new_multiplier(qso):
                    qso.multiplier = True
                    s.score.multipliers += 1
                self._update_total()
            self._log.append(qso)
            return qso

    def set_exchange(self, exchange: str) -> ContestSession:
        """Change the exchange description; allowed at any time."""
        with self._lock:
            self._session.exchange = exchange
            return self._session.model_copy(deep=True)

    def set_multipliers(self, count: int) -> ContestScore:
        """Set the multiplier count entered by the operator and recompute total."""
        if count < 0:
            raise ValueError("multiplier count cannot be negative")
        with self._lock:
            self._session.score.multipliers = count
            self._update_total()
            return self._session.score.model_copy()

    def is_duplicate(self, candidate: QSO, existing_log: Optional[Iterable[QSO]] = None) -> bool:
        """Check candidate against existing_log, or against this engine's log."""
        if existing_log is None:
            existing_log = self.log
        return is_duplicate(candidate, existing_log)

    # Log maintenance

    def load_log(self, qsos: Iterable[QSO]) -> None:
        """Replace the log (e.g. after an ADIF import); score and serial are untouched."""
        items = list(qsos)
        for q in items:
            _check_band(q)
        ids = {q.id for q in items}
        if len(ids) != len(items):
            raise ValueError("QSO ids must be unique within a log")
        with self._lock:
            self._log = items

    def delete_qso(self, qso_id: str) -> bool:
        """Remove a QSO by id, returning True if it was present."""
        with self._lock:
            for i, q in enumerate(self._log):
                if q.id == qso_id:
                    del self._log[i]
                    return True
            return False

    def clear_log(self) -> None:
        with self._lock:
            self._log = []

    def _update_total(self) -> None:
        score = self._session.score
        score.total = score.points * score.multipliers

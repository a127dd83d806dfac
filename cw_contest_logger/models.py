"""Data models used by CW Contest Logger.

QSO is the logged contact; ContestScore and ContestSession describe the running
contest; DXSpot and RBNSpot are produced by the spot parsers. They are plain
SQLModel classes (no table) so values are validated when a record is built and
collaborators can store them however they like.
"""

from __future__ import annotations

import re
import uuid
from datetime import UTC, datetime
from typing import Optional

from pydantic import field_validator
from sqlmodel import Field, SQLModel

_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
_TIME_RE = re.compile(r"\d{2}:\d{2}")


def new_id() -> str:
    """Return a fresh opaque QSO id."""
    return uuid.uuid4().hex


class QSO(SQLModel):
    """A single QSO (contact) entry.

    Attributes
    - id: Opaque unique string, generated when not supplied.
    - call: Worked station's callsign, uppercased.
    - date/time: UTC date (YYYY-MM-DD) and time (HH:MM).
    - band/mode/freq_mhz: Radio details; band is a name like "20m".
    - rst_sent/rst_rcvd: Signal reports.
    - serial_sent/serial_rcvd: Contest exchange serials, kept as text.
    - my_grid_square/grid_square: Own and remote Maidenhead locators.
    - points/multiplier: Computed when the QSO is logged in a contest.
    """

    id: str = Field(default_factory=new_id)
    call: str = Field(min_length=1, description="Station callsign")
    date: str = Field(description="QSO date (UTC), YYYY-MM-DD")
    time: str = Field(description="QSO time (UTC), HH:MM")

    # Radio details
    band: str = ""
    freq_mhz: Optional[float] = Field(default=None, description="Frequency in MHz")
    mode: str = "CW"

    # Reports and exchange
    rst_sent: str = "599"
    rst_rcvd: str = "599"
    serial_sent: Optional[str] = None
    serial_rcvd: Optional[str] = None

    # Locations
    my_grid_square: Optional[str] = None
    grid_square: Optional[str] = None

    # Misc
    comment: Optional[str] = None

    # Scoring
    points: int = Field(default=1, ge=0)
    multiplier: bool = False

    @field_validator("call")
    @classmethod
    def _upper_call(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("call must not be empty")
        return v

    @field_validator("date")
    @classmethod
    def _check_date(cls, v: str) -> str:
        if not _DATE_RE.fullmatch(v):
            raise ValueError(f"date must be YYYY-MM-DD, got {v!r}")
        return v

    @field_validator("time")
    @classmethod
    def _check_time(cls, v: str) -> str:
        if not _TIME_RE.fullmatch(v):
            raise ValueError(f"time must be HH:MM, got {v!r}")
        return v


class ContestScore(SQLModel):
    """Running score; total is always points x multipliers."""

    qsos: int = Field(default=0, ge=0)
    points: int = Field(default=0, ge=0)
    multipliers: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)


class ContestSession(SQLModel):
    """Snapshot of the contest session state, as shown by the UI."""

    is_active: bool = False
    contest_name: str = ""
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    exchange: str = ""
    serial_number: int = Field(default=1, ge=1)
    score: ContestScore = Field(default_factory=ContestScore)


class DXSpot(SQLModel):
    """A DX-cluster spot, optionally located relative to our own station."""

    spotter: str
    freq_mhz: float
    call: str
    comment: str = ""
    time: str = ""
    band: str = ""

    latitude: Optional[float] = None
    longitude: Optional[float] = None
    distance: Optional[int] = Field(default=None, description="Distance in km")
    bearing: Optional[int] = Field(default=None, description="Bearing in degrees")


class RBNSpot(SQLModel):
    """A Reverse Beacon Network skimmer spot."""

    spotter: str
    freq_mhz: float
    call: str
    snr: int = Field(description="Signal to noise ratio in dB")
    speed: int = Field(description="CW speed in WPM")
    time: str = ""
    band: str = ""

    latitude: Optional[float] = None
    longitude: Optional[float] = None
    distance: Optional[int] = None
    bearing: Optional[int] = None


def now_utc() -> datetime:
    """Return the current time as a naive UTC datetime without microseconds.

    Session timestamps are naive UTC to keep comparisons and display simple.
    """
    return datetime.now(UTC).replace(tzinfo=None, microsecond=0)

"""Command-line interface for CW Contest Logger.

Commands cover grid lookups, band lookups, parsing cluster/RBN spot lines,
adding QSOs to and inspecting ADIF logs, and replaying a log through the
contest scorer.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

# Allow running this file directly by ensuring the project root is on sys.path
if __package__ is None or __package__ == "":
    sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from cw_contest_logger.adif import read_adif_file, write_adif_file
from cw_contest_logger.bands import band_for_frequency, format_frequency, mode_for_frequency
from cw_contest_logger.config import APP_NAME, config_path, get_settings, is_valid_setting, save_settings
from cw_contest_logger.contest import (
    CONTEST_PRESETS,
    ContestSessionEngine,
    ContestStateError,
    PrefixMultipliers,
    is_duplicate,
    is_valid_callsign,
)
from cw_contest_logger.geodesy import (
    InvalidLocator,
    bearing_degrees,
    distance_km,
    grid_to_latlon,
)
from cw_contest_logger.models import QSO, DXSpot, now_utc
from cw_contest_logger.spots import locate_spot, parse_spot_line
from cw_contest_logger.stats import compute_summary

app = typer.Typer(add_completion=False, help=f"{APP_NAME} - CW contest log tools")
console = Console()


def _fail(message: str) -> None:
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


@app.callback()
def main_options(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Configure logging before any command runs."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )


@app.command()
def grid(
    locator: str = typer.Argument(..., help="Maidenhead locator, e.g. FN20"),
    to: Optional[str] = typer.Option(None, help="Second locator for distance and bearing"),
) -> None:
    """Show the centre of a grid square, and optionally the path to another."""
    try:
        lat, lon = grid_to_latlon(locator)
        table = Table(title=f"Grid {locator.upper()}")
        table.add_column("Metric")
        table.add_column("Value", justify="right")
        table.add_row("Latitude", f"{lat:.1f}")
        table.add_row("Longitude", f"{lon:.1f}")
        if to:
            table.add_row(f"Distance to {to.upper()}", f"{distance_km(locator, to)} km")
            table.add_row(f"Bearing to {to.upper()}", f"{bearing_degrees(locator, to)}°")
    except InvalidLocator as e:
        _fail(str(e))
    console.print(table)


@app.command()
def band(freq: float = typer.Argument(..., help="Frequency in MHz")) -> None:
    """Show which band (and CW or phone segment) a frequency falls in."""
    name = band_for_frequency(freq)
    if not name:
        _fail(f"{format_frequency(freq)} MHz is outside the amateur bands")
    console.print(f"{format_frequency(freq)} MHz: [bold]{name}[/bold] ({mode_for_frequency(freq)})")


@app.command()
def spot(
    line: str = typer.Argument(..., help="A 'DX de' line from a cluster or RBN feed"),
    my_grid: Optional[str] = typer.Option(None, help="Own locator (defaults to MY_GRID setting)"),
    grid: Optional[str] = typer.Option(None, "--grid", help="Locator of the spotted station"),
) -> None:
    """Parse one DX-cluster or RBN spot line."""
    parsed = parse_spot_line(line)
    if parsed is None:
        _fail("Line is not a DX-cluster or RBN spot")
    my_grid = my_grid or get_settings().get("MY_GRID") or None
    parsed = locate_spot(parsed, my_grid, grid)

    table = Table(title="DX spot" if isinstance(parsed, DXSpot) else "RBN spot")
    table.add_column("Field")
    table.add_column("Value")
    for key, value in parsed.model_dump().items():
        if value is None:
            continue
        table.add_row(key, str(value))
    console.print(table)


@app.command()
def add(
    dest: Path = typer.Argument(..., dir_okay=False, help="ADIF log to append to (created if missing)"),
    call: str = typer.Argument(..., help="Worked station's callsign"),
    band: Optional[str] = typer.Option(None, help="Band, e.g. 20m (derived from --freq if omitted)"),
    freq: Optional[float] = typer.Option(None, help="Frequency in MHz"),
    mode: Optional[str] = typer.Option(None, help="Mode (defaults to DEFAULT_MODE setting)"),
    rst_sent: Optional[str] = typer.Option(None, help="RST sent (defaults to DEFAULT_RST setting)"),
    rst_rcvd: Optional[str] = typer.Option(None, help="RST received (defaults to DEFAULT_RST setting)"),
    srx: Optional[str] = typer.Option(None, help="Serial received"),
    grid: Optional[str] = typer.Option(None, help="Worked station's locator"),
    comment: Optional[str] = typer.Option(None, help="Free text comment"),
    date: Optional[str] = typer.Option(None, help="UTC date YYYY-MM-DD (default: now)"),
    time: Optional[str] = typer.Option(None, help="UTC time HH:MM (default: now)"),
) -> None:
    """Append one QSO to an ADIF log, filling entry defaults from the settings."""
    settings = get_settings()
    band = band or band_for_frequency(freq)
    if not band:
        _fail("A band is required: give --band or an in-band --freq")
    if not is_valid_callsign(call):
        console.print(f"[yellow]{call.upper()} does not look like a callsign[/yellow]")

    now = now_utc()
    default_rst = settings.get("DEFAULT_RST", "599")
    try:
        qso = QSO(
            call=call,
            date=date or now.strftime("%Y-%m-%d"),
            time=time or now.strftime("%H:%M"),
            band=band,
            freq_mhz=freq,
            mode=mode or settings.get("DEFAULT_MODE", "CW"),
            rst_sent=rst_sent or default_rst,
            rst_rcvd=rst_rcvd or default_rst,
            serial_rcvd=srx,
            my_grid_square=settings.get("MY_GRID") or None,
            grid_square=grid,
            comment=comment,
        )
    except ValidationError as e:
        _fail(f"Invalid QSO: {e.errors()[0]['msg']}")

    qsos = read_adif_file(dest) if dest.exists() else []
    if is_duplicate(qso, qsos):
        message = f"Duplicate: {qso.call} already worked on {qso.band} {qso.mode}"
        if settings.get("DUPLICATE_CHECK", True):
            _fail(message)
        console.print(f"[yellow]{message}[/yellow]")
    qsos.append(qso)
    try:
        write_adif_file(dest, qsos)
    except OSError as e:
        _fail(f"Error writing ADIF: {e}")
    console.print(f"Logged {qso.call} on {qso.band} ({len(qsos)} QSOs in {dest.name})")


@app.command()
def presets() -> None:
    """List the built-in contest presets."""
    table = Table(title="Contest presets")
    table.add_column("Contest")
    table.add_column("Exchange")
    table.add_column("Hours", justify="right")
    for p in CONTEST_PRESETS.values():
        table.add_row(p.name, p.exchange, str(p.duration_hours))
    console.print(table)


@app.command()
def show(
    src: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="ADIF file to read",
    ),
    limit: int = typer.Option(50, min=1, help="Max QSOs to list"),
    json_out: bool = typer.Option(False, help="Output the summary as JSON"),
) -> None:
    """List the QSOs in an ADIF file with a summary; duplicates are marked."""
    qsos = read_adif_file(src)
    summary = compute_summary(qsos)
    if json_out:
        console.print_json(data=summary)
        return
    if not qsos:
        console.print("No QSOs found.")
        return

    table = Table(title=f"{src.name}: {len(qsos)} QSOs")
    table.add_column("UTC")
    table.add_column("Call")
    table.add_column("Band")
    table.add_column("Mode")
    table.add_column("Snt", justify="right")
    table.add_column("Rcv", justify="right")
    table.add_column("Grid")
    table.add_column("Dupe")
    for i, q in enumerate(qsos[:limit]):
        dupe = is_duplicate(q, qsos[:i])
        table.add_row(
            f"{q.date} {q.time}",
            q.call,
            q.band,
            q.mode,
            q.serial_sent or "",
            q.serial_rcvd or "",
            q.grid_square or "",
            "[yellow]DUPE[/yellow]" if dupe else "",
        )
    console.print(table)

    totals = Table(title="Summary")
    totals.add_column("Metric")
    totals.add_column("Value", justify="right")
    totals.add_row("Total QSOs", str(summary["total_qsos"]))
    totals.add_row("Unique calls", str(summary["unique_calls"]))
    totals.add_row("Duplicates", str(summary["duplicates"]))
    for b, c in summary["bands"].items():
        totals.add_row(f"QSOs on {b or 'unknown'}", str(c))
    console.print(totals)


@app.command()
def score(
    src: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="ADIF file to score",
    ),
    contest: str = typer.Option(..., help="Contest name"),
    exchange: Optional[str] = typer.Option(
        None, help="Exchange description (defaults to the contest preset)"
    ),
    prefix_mults: bool = typer.Option(False, help="Count unique WPX prefixes as multipliers"),
    mults: int = typer.Option(1, min=0, help="Fixed multiplier count (ignored with --prefix-mults)"),
    out: Optional[Path] = typer.Option(None, dir_okay=False, help="Write the re-serialled log here"),
) -> None:
    """Replay an ADIF log through the contest scorer and print the final score.

    Serial numbers are reassigned in log order. With DUPLICATE_CHECK on,
    duplicates are logged for zero points.
    """
    settings = get_settings()
    qsos = read_adif_file(src)
    engine = ContestSessionEngine(PrefixMultipliers() if prefix_mults else None)
    dupes = 0
    try:
        engine.start(contest, exchange)
        for q in qsos:
            q.points = settings.get("POINTS_PER_QSO", 1)
            if settings.get("DUPLICATE_CHECK", True) and engine.is_duplicate(q):
                q.points = 0
                dupes += 1
            engine.record_qso(q)
        if not prefix_mults:
            engine.set_multipliers(mults)
        session = engine.end()
    except (ContestStateError, ValueError) as e:
        _fail(f"Error scoring log: {e}")

    table = Table(title=f"{session.contest_name} score")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("QSOs", str(session.score.qsos))
    table.add_row("Duplicates", str(dupes))
    table.add_row("Points", str(session.score.points))
    table.add_row("Multipliers", str(session.score.multipliers))
    table.add_row("Total", f"[bold]{session.score.total}[/bold]")
    console.print(table)

    if out:
        try:
            write_adif_file(out, engine.log)
        except OSError as e:
            _fail(f"Error writing ADIF: {e}")
        console.print(f"Wrote {len(engine.log)} QSOs to {out}")


@app.command("config")
def config_cmd(
    set_: Optional[List[str]] = typer.Option(
        None, "--set", help="Store KEY=VALUE before showing (repeatable)"
    ),
) -> None:
    """Show the active settings and where they are read from."""
    if set_:
        updates = dict(get_settings())
        for item in set_:
            key, sep, raw = item.partition("=")
            key = key.strip().upper()
            if not sep or not key:
                _fail(f"Expected KEY=VALUE, got {item!r}")
            try:
                value = json.loads(raw)
            except json.JSONDecodeError:
                value = raw
            if not is_valid_setting(key, value):
                _fail(f"Invalid value for {key}: {raw!r}")
            updates[key] = value
        try:
            save_settings(updates)
        except OSError as e:
            _fail(f"Error writing settings: {e}")
    console.print(f"Settings file: [bold]{config_path()}[/bold]")
    console.print_json(data=dict(get_settings()))


def main() -> None:  # pragma: no cover - exercised via CLI
    app()


if __name__ == "__main__":  # pragma: no cover
    main()

"""Click CLI — the main entry point for adsb-store.

Commands:
  adsb-store decode FILE      Feed a capture file through the store, print aircraft table
  adsb-store track [FILE|-]   Stream frames (stdin by default), refresh table periodically
  adsb-store export FILE      Export the resulting snapshot (--format csv|json|geojson)
  adsb-store config           Show or update ~/.adsb-store/config.yaml
"""

from __future__ import annotations

import logging
import threading

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import exporters
from .capture import FrameReader
from .config import LOG_LEVELS, load_config, save_config
from .decoder import decode as decode_message
from .tracker import DEFAULT_TIMEOUT, AircraftStore, now_ms

console = Console()

logger = logging.getLogger(__name__)


class _FeedStats:
    """Frame counters for the summary."""

    def __init__(self):
        self.frames = 0
        self.decoded = 0


def _setup_logging(verbose: bool, level: str) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _resolve_timeout(timeout: int | None) -> int:
    if timeout is not None:
        return timeout
    store_cfg = load_config().get("store")
    configured = store_cfg.get("timeout") if isinstance(store_cfg, dict) else None
    if configured is None:
        return DEFAULT_TIMEOUT
    if isinstance(configured, bool) or not isinstance(configured, int) or configured <= 0:
        logger.warning(
            "Invalid store.timeout %r in config, using %d ms", configured, DEFAULT_TIMEOUT
        )
        return DEFAULT_TIMEOUT
    return configured


def _feed(store: AircraftStore, reader: FrameReader, stats: _FeedStats) -> None:
    """Decode every frame from reader into store."""
    for raw_frame in reader:
        stats.frames += 1
        msg = decode_message(raw_frame.hex_str)
        if msg is None:
            logger.debug("Undecodable frame %s", raw_frame.hex_str)
            continue
        stats.decoded += 1
        store.add_message(msg, raw_frame.timestamp)


@click.group()
@click.version_option(version="0.1.0", prog_name="adsb-store")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """Live aircraft table from ADS-B / Mode S frames with CPR position decode."""
    cfg = load_config()
    level = str(cfg["logging"].get("level") or "WARNING").upper()
    if level not in LOG_LEVELS:
        level = "WARNING"
    _setup_logging(verbose, level)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--timeout", type=int, default=None, help="Forget aircraft unseen for this many ms")
@click.option("--now", type=int, default=None, help="Reference time in ms for eviction (default: now)")
def decode(file: str, timeout: int | None, now: int | None):
    """Decode a capture file and print aircraft table."""
    store = AircraftStore(timeout=_resolve_timeout(timeout))
    stats = _FeedStats()
    _feed(store, FrameReader(file), stats)

    aircraft = store.get_aircrafts(now)
    _print_aircraft_table(aircraft, now if now is not None else now_ms())
    _print_summary(store, stats, aircraft)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, allow_dash=True), default="-")
@click.option("--timeout", type=int, default=None, help="Forget aircraft unseen for this many ms")
@click.option("--interval", type=float, default=5.0, show_default=True, help="Seconds between table refreshes")
def track(file: str, timeout: int | None, interval: float):
    """Track aircraft from a stream of hex frames.

    \b
    Examples:
      rtl_adsb | adsb-store track                # From stdin
      adsb-store track data/capture.txt          # From file
    """
    if interval <= 0:
        raise click.BadParameter("must be positive", param_hint="--interval")

    store = AircraftStore(timeout=_resolve_timeout(timeout))
    stats = _FeedStats()
    reader = FrameReader(file, timestamps="live")

    thread = threading.Thread(target=_feed, args=(store, reader, stats), daemon=True)
    thread.start()
    console.print("[bold green]Tracking started[/] — Ctrl+C to stop\n")

    try:
        while thread.is_alive():
            thread.join(interval)
            now = now_ms()
            _print_aircraft_table(store.get_aircrafts(now), now)
            console.print(
                f"  [dim]{stats.frames} frames, {stats.decoded} decoded, "
                f"{len(store)} active aircraft[/]"
            )
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopping...[/]")

    _print_summary(store, stats, store.get_aircrafts())


@cli.command("export")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--format", "fmt", type=click.Choice(["csv", "json", "geojson"]), default="json")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Output file path")
@click.option("--timeout", type=int, default=None, help="Forget aircraft unseen for this many ms")
@click.option("--now", type=int, default=None, help="Reference time in ms for eviction (default: now)")
def export_cmd(file: str, fmt: str, output: str | None, timeout: int | None, now: int | None):
    """Decode a capture file and export the aircraft snapshot."""
    store = AircraftStore(timeout=_resolve_timeout(timeout))
    _feed(store, FrameReader(file), _FeedStats())
    aircraft = store.get_aircrafts(now)

    if fmt == "json":
        text = exporters.export_json(aircraft, path=output, now=now)
    elif fmt == "csv":
        text = exporters.export_csv(aircraft, path=output)
    else:
        text = exporters.export_geojson(aircraft, path=output)

    if output:
        console.print(f"Exported {len(aircraft)} aircraft as {fmt.upper()} to {output}")
    else:
        click.echo(text)


@cli.command("config")
@click.option("--timeout", type=click.IntRange(min=1), default=None, help="Store timeout in ms")
@click.option("--log-level", type=click.Choice(LOG_LEVELS, case_sensitive=False), default=None)
def config_cmd(timeout: int | None, log_level: str | None):
    """Show configuration, or update it when options are given."""
    config = load_config()

    if timeout is not None or log_level is not None:
        if timeout is not None:
            config["store"]["timeout"] = timeout
        if log_level is not None:
            config["logging"]["level"] = log_level.upper()
        path = save_config(config)
        console.print(f"[bold]Config saved:[/] {path}")

    table = Table(title="Configuration")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    for section, values in config.items():
        if isinstance(values, dict):
            for key, val in values.items():
                table.add_row(f"{section}.{key}", str(val))
        else:
            table.add_row(section, str(values))
    console.print(table)


def _print_aircraft_table(aircraft: list, now: int):
    """Print Rich table of tracked aircraft."""
    table = Table(title="Aircraft")
    table.add_column("ICAO", style="cyan")
    table.add_column("Callsign")
    table.add_column("Lat", justify="right")
    table.add_column("Lng", justify="right")
    table.add_column("Alt (ft)", justify="right")
    table.add_column("Speed", justify="right")
    table.add_column("Hdg", justify="right")
    table.add_column("Msgs", justify="right")
    table.add_column("Age", justify="right")

    for ac in sorted(aircraft, key=lambda a: a.count, reverse=True):
        positioned = exporters.has_position(ac)
        table.add_row(
            f"{ac.icao:06X}",
            ac.callsign.strip() or "-",
            f"{ac.lat:.4f}" if positioned else "-",
            f"{ac.lng:.4f}" if positioned else "-",
            str(ac.altitude) if ac.altitude else "-",
            f"{ac.speed:.0f}" if ac.speed else "-",
            f"{ac.heading:.0f}°" if ac.speed else "-",
            str(ac.count),
            f"{max(now - ac.seen, 0) / 1000:.0f}s",
        )

    console.print(table)


def _print_summary(store: AircraftStore, stats: _FeedStats, aircraft: list):
    """Print decode summary."""
    console.print("\n[bold]Summary:[/]")
    console.print(f"  Total frames:     {stats.frames}")
    console.print(f"  Decoded frames:   {stats.decoded}")
    console.print(f"  Messages stored:  {store.total_messages}")
    console.print(f"  With position:    {sum(1 for ac in aircraft if exporters.has_position(ac))}")
    console.print(f"  Aircraft active:  {len(aircraft)}")

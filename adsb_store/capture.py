"""Read pre-demodulated Mode S frames from text sources.

Input: one hex frame per line, as produced by rtl_adsb, dump1090 --raw or a
saved capture. A line may be prefixed with an explicit reception time in
milliseconds:

    @1700000000123 8D4840D6202CC371C32CE0576098

Timestamps for lines without a prefix depend on the reader mode:
- "synthetic": t0 + line index (1 ms apart), t0 = time the reader started
- "live":      wall-clock time at the moment the line is read
"""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Iterable, Iterator

from .tracker import now_ms

TIMESTAMP_MODES = ("synthetic", "live")


@dataclass
class RawFrame:
    """A raw Mode S frame before parsing."""

    hex_str: str
    timestamp: int = 0  # milliseconds
    source: str = ""


# Pattern for valid Mode S hex: 14 chars (56-bit) or 28 chars (112-bit)
_HEX_PATTERN = re.compile(r"^[0-9A-Fa-f]{14}$|^[0-9A-Fa-f]{28}$")

# dump1090 raw format: *<hex>;
_DUMP1090_PATTERN = re.compile(r"^\*([0-9A-Fa-f]{14}|[0-9A-Fa-f]{28});$")

# Optional reception time prefix: @<ms>
_TIMESTAMP_PATTERN = re.compile(r"^@(\d+)\s+(.*)$")


def _clean_hex_line(line: str) -> str | None:
    """Extract a valid Mode S hex string from a line.

    Handles:
    - Plain hex: "8D4840D6202CC371C32CE0576098"
    - dump1090 raw: "*8D4840D6202CC371C32CE0576098;"
    - With leading/trailing whitespace
    """
    line = line.strip()
    if not line or line.startswith("#"):
        return None

    m = _DUMP1090_PATTERN.match(line)
    if m:
        return m.group(1).upper()

    if _HEX_PATTERN.match(line):
        return line.upper()

    return None


def _split_timestamp(line: str) -> tuple[int | None, str]:
    """Split an "@<ms> <frame>" line into (ms, frame). ms is None if absent."""
    m = _TIMESTAMP_PATTERN.match(line.strip())
    if m:
        return int(m.group(1)), m.group(2)
    return None, line


class FrameReader:
    """Read hex frames from a file, a stream ("-" for stdin) or an iterable.

    Lines that are blank, comments or not valid Mode S hex are skipped.
    """

    def __init__(
        self,
        source: str | Path | IO[str] | Iterable[str],
        timestamps: str = "synthetic",
        label: str = "",
    ):
        """Initialize frame reader.

        Args:
            source: File path, "-" for stdin, an open text stream, or an
                iterable of lines.
            timestamps: "synthetic" or "live"; used for lines without an
                explicit @<ms> prefix.
            label: Optional label for the source (used in RawFrame.source).
        """
        if timestamps not in TIMESTAMP_MODES:
            raise ValueError(f"Unknown timestamp mode: {timestamps!r}")
        self._source = source
        self._timestamps = timestamps
        if label:
            self._label = label
        elif source == "-":
            self._label = "stdin"
        elif isinstance(source, (str, Path)):
            self._label = str(source)
        else:
            self._label = "iterable"

    def __iter__(self) -> Iterator[RawFrame]:
        if self._source == "-":
            yield from self._read_lines(sys.stdin)
        elif isinstance(self._source, (str, Path)):
            path = Path(self._source)
            if not path.exists():
                raise FileNotFoundError(f"Frame file not found: {path}")
            with path.open() as f:
                yield from self._read_lines(f)
        else:
            yield from self._read_lines(self._source)

    def _read_lines(self, lines: Iterable[str]) -> Iterator[RawFrame]:
        t0 = now_ms()
        for i, line in enumerate(lines):
            explicit, rest = _split_timestamp(line)
            hex_str = _clean_hex_line(rest)
            if hex_str is None:
                continue

            if explicit is not None:
                timestamp = explicit
            elif self._timestamps == "live":
                timestamp = now_ms()
            else:
                timestamp = t0 + i

            yield RawFrame(hex_str=hex_str, timestamp=timestamp, source=self._label)

    def read_all(self) -> list[RawFrame]:
        """Read all frames into a list."""
        return list(self)

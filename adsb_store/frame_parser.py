"""Parse raw hex strings into structured Mode S frames.

Responsibilities:
- Classify Downlink Format (DF) from first 5 bits
- Extract ICAO address (bytes 1-3 for DF11/17/18, or from the parity residual)
- Package into ModeFrame dataclass

No integrity checking: a frame with a damaged parity field is still parsed.
"""

from __future__ import annotations

from dataclasses import dataclass

from . import crc


# Downlink Format metadata
DF_INFO: dict[int, tuple[str, int]] = {
    # DF: (name, expected_bits)
    0: ("Short air-air surveillance", 56),
    4: ("Surveillance altitude reply", 56),
    5: ("Surveillance identity reply", 56),
    11: ("All-call reply", 56),
    16: ("Long air-air surveillance", 112),
    17: ("ADS-B extended squitter", 112),
    18: ("TIS-B / ADS-R", 112),
    20: ("Comm-B altitude reply", 112),
    21: ("Comm-B identity reply", 112),
}

# DFs where ICAO is explicit in bytes 1-3
_DF_EXPLICIT_ICAO = frozenset({11, 17, 18})


@dataclass(frozen=True)
class ModeFrame:
    """A parsed Mode S frame."""

    df: int  # Downlink Format (0-24)
    icao: int  # 24-bit ICAO address
    raw: bytes  # Full message bytes

    @property
    def df_name(self) -> str:
        """Human-readable Downlink Format name."""
        if self.df in DF_INFO:
            return DF_INFO[self.df][0]
        return f"Unknown DF{self.df}"

    @property
    def msg_bits(self) -> int:
        return len(self.raw) * 8

    @property
    def is_long(self) -> bool:
        """True if this is a 112-bit (long) message."""
        return self.msg_bits == 112

    @property
    def me(self) -> bytes:
        """Message Extended field (56 bits) for DF17/18. Empty for short frames."""
        if self.is_long:
            return self.raw[4:11]
        return b""

    @property
    def type_code(self) -> int | None:
        """ADS-B Type Code (first 5 bits of ME field). None for non-ADS-B."""
        if self.df not in (17, 18) or not self.is_long:
            return None
        return (self.raw[4] >> 3) & 0x1F

    @property
    def subtype(self) -> int | None:
        """ADS-B subtype (last 3 bits of the ME field's first byte)."""
        if self.type_code is None:
            return None
        return self.raw[4] & 0x07


def parse_frame(hex_str: str) -> ModeFrame | None:
    """Parse a hex string into a ModeFrame.

    Args:
        hex_str: Hex-encoded Mode S message (14 or 28 hex chars).

    Returns:
        ModeFrame if well-formed, None for bad hex, bad length or unknown DF.
    """
    hex_str = hex_str.strip()
    if len(hex_str) not in (14, 28):
        return None

    try:
        raw = bytes.fromhex(hex_str)
    except ValueError:
        return None

    df = (raw[0] >> 3) & 0x1F
    if df not in DF_INFO:
        return None

    # Validate message length matches expected for this DF
    if len(raw) * 8 != DF_INFO[df][1]:
        return None

    if df in _DF_EXPLICIT_ICAO:
        icao = int.from_bytes(raw[1:4], "big")
    else:
        icao = crc.residual(raw)

    return ModeFrame(df=df, icao=icao, raw=raw)

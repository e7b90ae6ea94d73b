"""Mode S parity for address recovery.

ICAO standard polynomial, generator 0xFFF409.

For DF11/17/18 the address travels in the clear and the last 24 bits are pure
parity. For DF0/4/5/16/20/21 the last 24 bits are parity XORed with the
aircraft address (Address/Parity field), so the residual of a frame IS its
address. Only that recovery is done here; frames are never rejected on parity.
"""

from __future__ import annotations

GENERATOR = 0xFFF409


def _build_crc_table() -> list[int]:
    """Pre-compute 256-entry CRC-24 lookup table for byte-at-a-time processing."""
    table = []
    for i in range(256):
        crc = i << 16
        for _ in range(8):
            crc = (crc << 1) ^ GENERATOR if crc & 0x800000 else crc << 1
        table.append(crc & 0xFFFFFF)
    return table


_CRC_TABLE = _build_crc_table()


def parity(data: bytes) -> int:
    """CRC-24 of the data bytes (everything before the 24-bit parity field)."""
    crc = 0
    for byte in data:
        crc = ((crc << 8) ^ _CRC_TABLE[((crc >> 16) ^ byte) & 0xFF]) & 0xFFFFFF
    return crc


def residual(data: bytes) -> int:
    """Parity of the payload XORed with the trailing AP/PI field.

    0 for an intact DF17/18 frame; the aircraft address for DF0/4/5/16/20/21.
    """
    if len(data) <= 3:
        return int.from_bytes(data, "big") & 0xFFFFFF
    return parity(data[:-3]) ^ int.from_bytes(data[-3:], "big")

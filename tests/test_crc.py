"""Tests for Mode S parity and address recovery."""

from adsb_store.crc import _CRC_TABLE, GENERATOR, parity, residual
from tests.fixtures.known_frames import (
    ALTITUDE_FRAMES,
    CRC_VECTORS,
    IDENTIFICATION_FRAMES,
    POSITION_FRAMES,
    SQUAWK_FRAME,
    VELOCITY_FRAMES,
)


def _bitwise_parity(data: bytes) -> int:
    """Reference CRC-24, one bit at a time."""
    crc = 0
    for byte in data:
        crc ^= byte << 16
        for _ in range(8):
            crc = (crc << 1) ^ GENERATOR if crc & 0x800000 else crc << 1
            crc &= 0xFFFFFF
    return crc


class TestCRCTable:
    """Byte-at-a-time lookup table."""

    def test_table_size(self):
        assert len(_CRC_TABLE) == 256

    def test_table_entries_are_24bit(self):
        for entry in _CRC_TABLE:
            assert 0 <= entry <= 0xFFFFFF

    def test_table_zero_entry(self):
        assert _CRC_TABLE[0] == 0

    def test_table_matches_bitwise(self):
        for payload in (b"\x01", b"\x80\x00", bytes.fromhex("8D4840D6202CC371C32CE0")):
            assert parity(payload) == _bitwise_parity(payload)


class TestParity:
    def test_payload_parity_matches_transmitted(self):
        data = bytes.fromhex("8D4840D6202CC371C32CE0576098")
        assert parity(data[:-3]) == int.from_bytes(data[-3:], "big")

    def test_empty_payload(self):
        assert parity(b"") == 0


class TestResidual:
    """Residual: zero for intact DF17, the address for AP replies."""

    def test_df17_residual_is_zero(self):
        for hex_str, expected in CRC_VECTORS:
            assert residual(bytes.fromhex(hex_str)) == expected

    def test_all_fixture_frames_intact(self):
        frames = [h for h, _, _ in IDENTIFICATION_FRAMES]
        frames += [h for h, *_ in POSITION_FRAMES]
        frames += [h for h, *_ in VELOCITY_FRAMES]
        for hex_str in frames:
            assert residual(bytes.fromhex(hex_str)) == 0, hex_str

    def test_corrupted_parity_field(self):
        """A flipped parity bit shows up directly in the residual."""
        assert residual(bytes.fromhex("8D4840D6202CC371C32CE0576099")) == 1

    def test_address_parity_recovers_icao(self):
        for hex_str, expected_icao, _ in ALTITUDE_FRAMES:
            assert residual(bytes.fromhex(hex_str)) == expected_icao
        hex_str, expected_icao = SQUAWK_FRAME
        assert residual(bytes.fromhex(hex_str)) == expected_icao

    def test_short_input(self):
        assert residual(b"\x12\x34") == 0x1234

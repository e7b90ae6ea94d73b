"""Decode Mode S frames into the flat message consumed by the aircraft store.

Handles:
- DF0/4/16/20:   Surveillance/Comm-B altitude reply (13-bit AC field)
- DF17 TC 1-4:   Aircraft identification (callsign)
- DF17 TC 9-18:  Airborne position (barometric alt + CPR-encoded lat/lon)
- DF17 TC 19:    Airborne velocity, ground speed subtypes 1-2
- DF17 TC 20-22: Airborne position (GNSS altitude)

Every other recognised frame still yields a message carrying only its ICAO
address and DF, so the store can count it.

Output: ModeSMessage, one frozen dataclass for all frame kinds.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntEnum

from .frame_parser import ModeFrame, parse_frame


# ADS-B character set for callsign encoding (6 bits per character)
_CHARSET = "#ABCDEFGHIJKLMNOPQRSTUVWXYZ##### ###############0123456789######"

# GNSS height is reported in metres
METERS_TO_FEET = 3.28084


class AltitudeUnit(IntEnum):
    """Source of a reported altitude."""

    BAROMETRIC = 0
    GNSS = 1


@dataclass(frozen=True)
class ModeSMessage:
    """A decoded Mode S message. Fields not carried by the frame keep defaults."""

    icao: int
    msgtype: int  # Downlink Format
    metype: int = 0  # ES type code (DF17/18 only)
    mesub: int = 0  # ES subtype (DF17/18 only)
    altitude: int = 0  # feet, 0 when unavailable
    unit: AltitudeUnit = AltitudeUnit.BAROMETRIC
    callsign: str = ""
    raw_latitude: int = 0  # 17-bit CPR latitude
    raw_longitude: int = 0  # 17-bit CPR longitude
    fflag: bool = False  # True = odd frame, False = even frame
    speed: float = 0.0  # knots
    heading: float = 0.0  # degrees


# --- Altitude decoding ---


def decode_altitude(alt_code: int) -> int | None:
    """Decode 12-bit altitude code from DF17 airborne position.

    Only the 25-ft mode (Q-bit set) is decoded. Returns feet, or None when the
    field is empty or Gillham coded.
    """
    if alt_code == 0:
        return None

    # Q-bit is at position 4 (0-indexed from LSB) in the 12-bit field
    if not (alt_code >> 4) & 1:
        return None

    n = ((alt_code >> 5) << 4) | (alt_code & 0x0F)
    return n * 25 - 1000


def decode_altitude_13bit(alt_code_13: int) -> int | None:
    """Decode 13-bit altitude code from DF0/4/16/20.

    - M=0, Q=1: 25-ft increments
    - M=0, Q=0: 100-ft Gillham gray code (not decoded)
    - M=1: metric altitude (not decoded)
    """
    if alt_code_13 == 0:
        return None

    m_bit = (alt_code_13 >> 6) & 1
    q_bit = (alt_code_13 >> 4) & 1
    if m_bit or not q_bit:
        return None

    # Remove M and Q bits to get the 11-bit code
    n = ((alt_code_13 & 0x1F80) >> 2) | ((alt_code_13 & 0x0020) >> 1) | (alt_code_13 & 0x000F)
    return n * 25 - 1000


# --- Per-kind field extraction ---


def decode_callsign(me: bytes) -> str:
    """8 callsign characters, 6 bits each, after the TC and category bits."""
    bits = int.from_bytes(me, "big")
    return "".join(_CHARSET[(bits >> (42 - i * 6)) & 0x3F] for i in range(8))


def decode_position_fields(me: bytes) -> dict:
    """Altitude, unit, F flag and raw CPR values from an airborne position ME field.

    ME field layout (56 bits):
    - TC (5 bits), SS (2 bits), SAF (1 bit)
    - ALT (12 bits): Q-bit coded barometric altitude for TC 9-18,
      plain GNSS height in metres for TC 20-22
    - T (1 bit), F (1 bit)
    - LAT_CPR (17 bits), LON_CPR (17 bits)
    """
    bits = int.from_bytes(me, "big")
    alt_code = (bits >> 36) & 0x0FFF
    if (bits >> 51) >= 20:
        altitude = round(alt_code * METERS_TO_FEET)
        unit = AltitudeUnit.GNSS
    else:
        altitude = decode_altitude(alt_code) or 0
        unit = AltitudeUnit.BAROMETRIC
    return {
        "altitude": altitude,
        "unit": unit,
        "fflag": bool((bits >> 34) & 1),
        "raw_latitude": (bits >> 17) & 0x1FFFF,
        "raw_longitude": bits & 0x1FFFF,
    }


def decode_ground_velocity(me: bytes) -> tuple[float, float] | None:
    """Ground speed (knots) and track (degrees) from TC 19 subtypes 1-2.

    Subtype 2 (supersonic) counts 4 knots per LSB. Returns None when either
    velocity component is unavailable.
    """
    bits = int.from_bytes(me, "big")
    scale = 4 if ((bits >> 48) & 0x07) == 2 else 1

    ew_dir = (bits >> 42) & 1  # 0=East, 1=West
    ew_vel = ((bits >> 32) & 0x3FF) - 1
    ns_dir = (bits >> 31) & 1  # 0=North, 1=South
    ns_vel = ((bits >> 21) & 0x3FF) - 1

    if ew_vel < 0 or ns_vel < 0:
        return None

    vx = ew_vel * scale * (-1 if ew_dir else 1)
    vy = ns_vel * scale * (-1 if ns_dir else 1)
    speed = math.sqrt(vx**2 + vy**2)
    heading = math.degrees(math.atan2(vx, vy)) % 360
    return round(speed, 2), round(heading, 2)


# --- Main decode function ---


def _decode_extended_squitter(frame: ModeFrame) -> ModeSMessage:
    tc = frame.type_code
    sub = frame.subtype
    fields: dict = {}

    if 1 <= tc <= 4:
        fields["callsign"] = decode_callsign(frame.me)
    elif 9 <= tc <= 18 or 20 <= tc <= 22:
        fields.update(decode_position_fields(frame.me))
    elif tc == 19 and sub in (1, 2):
        velocity = decode_ground_velocity(frame.me)
        if velocity is not None:
            fields["speed"], fields["heading"] = velocity

    return ModeSMessage(icao=frame.icao, msgtype=frame.df, metype=tc, mesub=sub, **fields)


def decode(frame: ModeFrame | str) -> ModeSMessage | None:
    """Decode a ModeFrame (or hex string) into a ModeSMessage.

    Routes on DF and TC. Returns None only when a hex string fails to parse.
    """
    if isinstance(frame, str):
        frame = parse_frame(frame)
        if frame is None:
            return None

    if frame.df in (17, 18):
        return _decode_extended_squitter(frame)

    if frame.df in (0, 4, 16, 20):
        # 13-bit altitude code is at bits 20-32 in the message
        alt_code = ((frame.raw[2] & 0x1F) << 8) | frame.raw[3]
        altitude = decode_altitude_13bit(alt_code)
        return ModeSMessage(icao=frame.icao, msgtype=frame.df, altitude=altitude or 0)

    return ModeSMessage(icao=frame.icao, msgtype=frame.df)

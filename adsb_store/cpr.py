"""Compact Position Reporting — recover lat/lon from an even/odd fragment pair.

Airborne position squitters carry latitude and longitude as 17-bit CPR values.
A single fragment is ambiguous; an even-framed and an odd-framed fragment
received close together resolve to one global position.

Global decode:
- Latitude zone index j from both raw latitudes
- Candidate latitudes for the even (60 zones) and odd (59 zones) grids
- Both candidates must sit in the same NL band, otherwise the pair is discarded
- Longitude is computed from the more recent fragment

Key constants:
- NB = 17 (bits per coordinate), CPR_MAX = 2**17 = 131072
- Dlat_even = 360 / 60 = 6.0 degrees
- Dlat_odd = 360 / 59 ~ 6.1017 degrees

NL values come from the precomputed 1090-WP-9-14 table rather than the
closed-form cosine formula, so zone boundaries match dump1090 exactly.
"""

from __future__ import annotations

import bisect
import math

NB = 17  # Bits per coordinate
CPR_MAX = 2**NB  # 131072

DLAT_EVEN = 360.0 / 60
DLAT_ODD = 360.0 / 59

# Upper latitude bound (exclusive) of each NL band, from 59 zones down to 2.
# Anything at or above the last bound has a single longitude zone.
_NL_BOUNDS = (
    10.47047130, 14.82817437, 18.18626357, 21.02939493, 23.54504487,
    25.82924707, 27.93898710, 29.91135686, 31.77209708, 33.53993436,
    35.22899598, 36.85025108, 38.41241892, 39.92256684, 41.38651832,
    42.80914012, 44.19454951, 45.54626723, 46.86733252, 48.16039128,
    49.42776439, 50.67150166, 51.89342469, 53.09516153, 54.27817472,
    55.44378444, 56.59318756, 57.72747354, 58.84763776, 59.95459277,
    61.04917774, 62.13216659, 63.20427479, 64.26616523, 65.31845310,
    66.36171008, 67.39646774, 68.42322022, 69.44242631, 70.45451075,
    71.45986473, 72.45884545, 73.45177442, 74.43893416, 75.42056257,
    76.39684391, 77.36789461, 78.33374083, 79.29428225, 80.24923213,
    81.19801349, 82.13956981, 83.07199445, 83.99173563, 84.89166191,
    85.75541621, 86.53536998, 87.00000000,
)


def nl(lat: float) -> int:
    """Number of longitude zones at a given latitude (NL function).

    59 at the equator, 1 from 87 degrees poleward. Symmetric about the equator.
    """
    return 59 - bisect.bisect_right(_NL_BOUNDS, abs(lat))


def cpr_mod(a: float, b: float) -> float:
    """Modulo that always returns a non-negative result."""
    res = a % b
    if res < 0:
        res += b
    return res


def _n(lat: float, odd: int) -> int:
    return max(nl(lat) - odd, 1)


def global_decode(
    lat_even: int,
    lng_even: int,
    lat_odd: int,
    lng_odd: int,
    even_is_newer: bool,
) -> tuple[float, float] | None:
    """Global CPR decode from an even/odd fragment pair.

    Args:
        lat_even: 17-bit CPR latitude from the even fragment
        lng_even: 17-bit CPR longitude from the even fragment
        lat_odd: 17-bit CPR latitude from the odd fragment
        lng_odd: 17-bit CPR longitude from the odd fragment
        even_is_newer: True if the even fragment was received last; the newer
            fragment is the reference for the returned position.

    Returns:
        (latitude, longitude) in degrees, or None when the two candidate
        latitudes fall in different NL bands.
    """
    j = math.floor((59 * lat_even - 60 * lat_odd) / CPR_MAX + 0.5)

    rlat_even = DLAT_EVEN * (cpr_mod(j, 60) + lat_even / CPR_MAX)
    rlat_odd = DLAT_ODD * (cpr_mod(j, 59) + lat_odd / CPR_MAX)

    # Southern hemisphere values come out in [270, 360)
    if rlat_even >= 270:
        rlat_even -= 360
    if rlat_odd >= 270:
        rlat_odd -= 360

    if nl(rlat_even) != nl(rlat_odd):
        return None

    if even_is_newer:
        lat, odd, lng_ref = rlat_even, 0, lng_even
    else:
        lat, odd, lng_ref = rlat_odd, 1, lng_odd

    # Both longitude terms use the NL of the selected latitude
    zones = nl(lat)
    m = math.floor((lng_even * (zones - 1) - lng_odd * zones) / CPR_MAX + 0.5)
    ni = _n(lat, odd)
    lng = (360.0 / ni) * (cpr_mod(m, ni) + lng_ref / CPR_MAX)

    if lng > 180:
        lng -= 360

    return (lat, lng)

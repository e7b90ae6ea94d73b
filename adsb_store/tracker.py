"""Per-aircraft state with CPR fragment pairing, and the TTL-bounded store.

AircraftStore keeps a dictionary of Aircraft records keyed by ICAO address.
Each record tracks:
- Reported state (altitude, speed, heading, callsign) from the latest message
  carrying it
- The last even and last odd CPR fragment with their reception times
- Decoded position (lat, lng) from the last successful global decode
- Liveness (seen, count)

Records are evicted lazily in get_aircrafts() once unseen for longer than the
store timeout (default 2 minutes). All times are milliseconds.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field

from . import cpr
from .decoder import AltitudeUnit

logger = logging.getLogger(__name__)

# Forget aircraft not seen for this many milliseconds
DEFAULT_TIMEOUT = 120_000

# Maximum age difference between even and odd fragments for a global decode
CPR_PAIR_WINDOW = 10_000

# Downlink formats carrying a 13-bit altitude code
_ALTITUDE_REPLY_DFS = (0, 4, 20)


def now_ms() -> int:
    """Current wall-clock time in milliseconds."""
    return int(time.time() * 1000)


@dataclass
class Aircraft:
    """Mutable state for a single tracked aircraft."""

    icao: int = 0
    count: int = 0
    seen: int = 0

    altitude: int = 0
    unit: AltitudeUnit = AltitudeUnit.BAROMETRIC
    speed: float = 0
    heading: float = 0
    callsign: str = ""

    # 0/0 until the first successful decode
    lat: float = 0
    lng: float = 0

    # CPR slots: the latest fragment of each parity
    _even_cpr_lat: int = field(default=0, repr=False)
    _even_cpr_lng: int = field(default=0, repr=False)
    _even_cpr_time: int = field(default=0, repr=False)
    _odd_cpr_lat: int = field(default=0, repr=False)
    _odd_cpr_lng: int = field(default=0, repr=False)
    _odd_cpr_time: int = field(default=0, repr=False)

    def update(self, msg, reception_time: int) -> None:
        """Apply one decoded message received at reception_time (ms)."""
        self.count += 1
        self.seen = reception_time
        self.icao = msg.icao

        if msg.msgtype in _ALTITUDE_REPLY_DFS:
            self._handle_altitude(msg)
        elif msg.msgtype == 17:
            if 1 <= msg.metype <= 4:
                self.callsign = msg.callsign
            elif 9 <= msg.metype <= 18:
                self._handle_position(msg, reception_time)
            elif msg.metype == 19 and msg.mesub in (1, 2):
                self.speed = msg.speed
                self.heading = msg.heading

    def _handle_altitude(self, msg) -> None:
        self.altitude = msg.altitude
        self.unit = msg.unit

    def _handle_position(self, msg, reception_time: int) -> None:
        self._handle_altitude(msg)

        if msg.fflag:
            self._odd_cpr_lat = msg.raw_latitude
            self._odd_cpr_lng = msg.raw_longitude
            self._odd_cpr_time = reception_time
        else:
            self._even_cpr_lat = msg.raw_latitude
            self._even_cpr_lng = msg.raw_longitude
            self._even_cpr_time = reception_time

        if abs(self._even_cpr_time - self._odd_cpr_time) <= CPR_PAIR_WINDOW:
            self._decode_position()

    def _decode_position(self) -> None:
        position = cpr.global_decode(
            lat_even=self._even_cpr_lat,
            lng_even=self._even_cpr_lng,
            lat_odd=self._odd_cpr_lat,
            lng_odd=self._odd_cpr_lng,
            even_is_newer=self._even_cpr_time > self._odd_cpr_time,
        )
        if position is None:
            logger.debug("CPR zone mismatch for %s, keeping last position", _fmt_icao(self.icao))
            return
        self.lat, self.lng = position


class AircraftStore:
    """Track multiple aircraft from decoded messages.

    Routes each message to its aircraft record, creating records on first
    sight, and forgets aircraft that have been silent longer than timeout.
    A single lock serialises add_message() and get_aircrafts().
    """

    def __init__(self, timeout: int | None = None):
        """Initialize store.

        Args:
            timeout: Milliseconds of silence after which an aircraft is
                dropped. None uses DEFAULT_TIMEOUT.
        """
        self.timeout = DEFAULT_TIMEOUT if timeout is None else timeout
        self.aircraft: dict[int, Aircraft] = {}
        self.total_messages = 0
        self._lock = threading.Lock()

    def add_message(self, msg, reception_time: int | None = None) -> None:
        """Route a decoded message to its aircraft record.

        reception_time defaults to now (ms).
        """
        if reception_time is None:
            reception_time = now_ms()

        with self._lock:
            self.total_messages += 1
            ac = self.aircraft.get(msg.icao)
            if ac is None:
                ac = self.aircraft[msg.icao] = Aircraft()
                logger.debug("New aircraft %s", _fmt_icao(msg.icao))
            ac.update(msg, reception_time)

    def get_aircrafts(self, current_time: int | None = None) -> list[Aircraft]:
        """Evict stale aircraft, then return the live ones.

        current_time defaults to now (ms). An aircraft is stale once
        seen < current_time - timeout.
        """
        if current_time is None:
            current_time = now_ms()

        with self._lock:
            self._prune(current_time)
            return list(self.aircraft.values())

    def _prune(self, current_time: int) -> int:
        threshold = current_time - self.timeout
        stale = [k for k, ac in self.aircraft.items() if ac.seen < threshold]
        for k in stale:
            del self.aircraft[k]
        if stale:
            logger.debug("Evicted %d stale aircraft", len(stale))
        return len(stale)

    def __len__(self) -> int:
        return len(self.aircraft)


def _fmt_icao(icao) -> str:
    return f"{icao:06X}" if isinstance(icao, int) else str(icao)

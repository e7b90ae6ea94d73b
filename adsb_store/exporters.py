"""Export a snapshot of tracked aircraft.

Formats:
- CSV:     One row per aircraft for spreadsheet analysis
- JSON:    {"now": ..., "aircraft": [...]}
- GeoJSON: FeatureCollection of Point features, only for aircraft with a
           resolved position

All exporters take the list returned by AircraftStore.get_aircrafts() and
write to a file path or return strings.
"""

from __future__ import annotations

import csv
import io
import json
from pathlib import Path
from typing import Iterable

from .decoder import AltitudeUnit
from .tracker import Aircraft

FIELDS = (
    "icao", "callsign", "lat", "lng", "altitude", "unit",
    "speed", "heading", "count", "seen",
)


def has_position(ac: Aircraft) -> bool:
    """True once a position was decoded (0/0 is the unresolved default)."""
    return ac.lat != 0 or ac.lng != 0


def aircraft_to_dict(ac: Aircraft) -> dict:
    """Public fields of an aircraft record, ICAO as 6-char hex."""
    return {
        "icao": f"{ac.icao:06X}",
        "callsign": ac.callsign.strip(),
        "lat": ac.lat,
        "lng": ac.lng,
        "altitude": ac.altitude,
        "unit": AltitudeUnit(ac.unit).name.lower(),
        "speed": ac.speed,
        "heading": ac.heading,
        "count": ac.count,
        "seen": ac.seen,
    }


def _write(text: str, path: str | Path | None) -> str:
    if path:
        Path(path).write_text(text)
    return text


def export_csv(aircraft: Iterable[Aircraft], path: str | Path | None = None) -> str:
    """Export aircraft as CSV, one row each, columns as in FIELDS."""
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=FIELDS)
    writer.writeheader()
    for ac in aircraft:
        writer.writerow(aircraft_to_dict(ac))
    return _write(output.getvalue(), path)


def export_json(
    aircraft: Iterable[Aircraft],
    path: str | Path | None = None,
    now: int | None = None,
) -> str:
    """Export aircraft as JSON.

    Structure: {"now": <ms or null>, "aircraft": [{...}, ...]}
    """
    data = {
        "now": now,
        "aircraft": [aircraft_to_dict(ac) for ac in aircraft],
    }
    return _write(json.dumps(data, indent=2), path)


def export_geojson(aircraft: Iterable[Aircraft], path: str | Path | None = None) -> str:
    """Export positioned aircraft as a GeoJSON FeatureCollection of Points."""
    features = []
    for ac in aircraft:
        if not has_position(ac):
            continue
        props = aircraft_to_dict(ac)
        del props["lat"], props["lng"]
        features.append({
            "type": "Feature",
            "geometry": {
                "type": "Point",
                # GeoJSON is [lon, lat, alt]
                "coordinates": [round(ac.lng, 6), round(ac.lat, 6), ac.altitude],
            },
            "properties": props,
        })

    geojson = {"type": "FeatureCollection", "features": features}
    return _write(json.dumps(geojson, indent=2), path)

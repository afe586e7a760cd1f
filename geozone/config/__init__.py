"""
Runtime configuration.

Module-level defaults, with a couple of environment overrides.  Bundled
JSON data files live alongside this module.
"""
from __future__ import annotations

import json
import os
from pathlib import Path

CONFIG_DIR = Path(__file__).resolve().parent
ROOT_DIR = CONFIG_DIR.parent.parent

DEFAULT_DB = Path(os.environ.get("GEOZONE_DB", ROOT_DIR / "data" / "geozone_prefs.db"))

# Address lookup timeout per tier (seconds)
LOOKUP_TIMEOUT = float(os.environ.get("GEOZONE_LOOKUP_TIMEOUT", "10"))

# Start view — geohash "9q"
DEFAULT_LATITUDE = 36.5625
DEFAULT_LONGITUDE = -118.125
DEFAULT_ZOOM = 6.0

# Zoom applied when a marker / search result recenters the map
MARKER_ZOOM = 13.0

# Precision of the hash reported for a search result
SEARCH_PRECISION = 6


class DELAYS:
    """Update delays in milliseconds."""
    ZONE_UPDATE_MS = 20
    MAP_INIT_MS = 500


def load_places() -> dict:
    """Bundled fallback gazetteer: lowercase key → {lat, lng, name}."""
    path = CONFIG_DIR / "places.json"
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)

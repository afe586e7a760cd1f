"""
Address → coordinate lookup with fallback tiers.

Tiers, tried in order until one answers:

1. **geocode.maps.co** — Nominatim-style search API.
   https://geocode.maps.co/search?q=...&limit=1&format=json
2. **photon.komoot.io** — OSM-based search returning GeoJSON features.
   https://photon.komoot.io/api/?q=...&limit=1&lang=en
3. **Local gazetteer** — bundled ``config/places.json``, exact key match
   first, then substring match in either direction.

Each remote tier gets one attempt; any failure drops through to the next.

Usage
-----
    from geozone.ingest.address_client import resolve_address
    loc = resolve_address("times square")
    print(loc.lat, loc.lng, loc.label, loc.source)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

import requests

from ..config import load_places
from . import fetch_json

log = logging.getLogger(__name__)

_GEOCODE_MAPS_URL = "https://geocode.maps.co/search"
_PHOTON_URL = "https://photon.komoot.io/api/"

SOURCE_GEOCODE_MAPS = "geocode.maps.co"
SOURCE_PHOTON = "photon.komoot.io"
SOURCE_LOCAL = "local database"


class AddressNotFoundError(LookupError):
    """No tier could resolve the address."""


@dataclass(frozen=True)
class LocationResult:
    lat: float
    lng: float
    label: str
    source: str


def _lookup_geocode_maps(query: str) -> Optional[LocationResult]:
    data = fetch_json(
        _GEOCODE_MAPS_URL, params={"q": query, "limit": 1, "format": "json"},
    )
    if not data:
        return None
    first = data[0]
    return LocationResult(
        lat=float(first["lat"]),
        lng=float(first["lon"]),
        label=first.get("display_name") or query,
        source=SOURCE_GEOCODE_MAPS,
    )


def _lookup_photon(query: str) -> Optional[LocationResult]:
    data = fetch_json(_PHOTON_URL, params={"q": query, "limit": 1, "lang": "en"})
    features = (data or {}).get("features") or []
    if not features:
        return None
    feat = features[0]
    lng, lat = feat["geometry"]["coordinates"][:2]
    props = feat.get("properties") or {}
    return LocationResult(
        lat=float(lat),
        lng=float(lng),
        label=props.get("name") or props.get("city") or query,
        source=SOURCE_PHOTON,
    )


def lookup_local(query: str, places: Optional[dict] = None) -> Optional[LocationResult]:
    """Match *query* against the bundled gazetteer."""
    places = load_places() if places is None else places
    key = query.lower().strip()

    entry = places.get(key)
    if entry is None:
        for name, value in places.items():
            if key in name or name in key:
                entry = value
                break
    if entry is None:
        return None
    return LocationResult(
        lat=float(entry["lat"]),
        lng=float(entry["lng"]),
        label=entry["name"],
        source=SOURCE_LOCAL,
    )


_REMOTE_TIERS: List[Callable[[str], Optional[LocationResult]]] = [
    _lookup_geocode_maps,
    _lookup_photon,
]


def resolve_address(text: str) -> LocationResult:
    """Resolve free-form *text* to a coordinate.

    Raises ``ValueError`` for blank input and :class:`AddressNotFoundError`
    when every tier comes up empty.
    """
    if not text or not text.strip():
        raise ValueError("Please enter an address")
    query = text.strip()

    for tier in _REMOTE_TIERS:
        try:
            result = tier(query)
        except requests.RequestException as exc:
            log.warning("Address lookup %s unavailable: %s", tier.__name__, exc)
            continue
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            log.warning("Address lookup %s returned unusable data: %s", tier.__name__, exc)
            continue
        if result is not None:
            log.info("Resolved %r via %s", query, result.source)
            return result

    result = lookup_local(query)
    if result is None:
        raise AddressNotFoundError("Address not found. Try a city name or landmark")
    log.info("Resolved %r via %s", query, result.source)
    return result

"""
Live hash set — the geohash of the map center at every precision.

Rebuilt wholesale whenever the center moves (pan, marker placement,
search result).  Entries are never patched in place.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from .geohash import encode
from .precision import PRECISION_LABELS, PRECISIONS


@dataclass(frozen=True)
class Coordinate:
    """A WGS84 point in degrees."""
    latitude: float
    longitude: float


@dataclass(frozen=True)
class LiveHashSet:
    """Hashes of ``center`` for precisions 1..9."""
    center: Coordinate
    hashes: Dict[int, str] = field(default_factory=dict)

    def get(self, precision: int) -> str:
        return self.hashes.get(precision, "")

    @property
    def labels(self) -> Dict[int, str]:
        return PRECISION_LABELS


def build_live_hash_set(center: Coordinate) -> LiveHashSet:
    hashes = {
        p: encode(center.latitude, center.longitude, p)
        for p in PRECISIONS
    }
    return LiveHashSet(center=center, hashes=hashes)

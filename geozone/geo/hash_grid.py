"""
Geohash grid covering the visible map area.

The viewport is sampled on a regular lattice; each sample point is
encoded at the requested precision and decoded back to its cell, so every
drawn rectangle is an exact geohash cell rather than an arbitrary tile.
Coarse precisions get a denser lattice.

Usage
-----
    cells = build_hash_grid((-122.6, 37.6, -122.2, 37.9), precision=5)
    for cell in cells:
        print(cell.geohash, cell.cell.bounds)
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

import numpy as np
from shapely.geometry import mapping
from shapely.ops import unary_union

from .geohash import DecodedCell, decode, encode

# (min_lon, min_lat, max_lon, max_lat)
BBox = Tuple[float, float, float, float]


@dataclass(frozen=True)
class GridCell:
    """One geohash cell of the visible grid."""
    geohash: str
    cell: DecodedCell

    @property
    def precision(self) -> int:
        return len(self.geohash)


def grid_divisions(precision: int) -> int:
    """Samples per axis for a given precision (between 4 and 12)."""
    return max(4, min(12, 16 - precision * 2))


def build_hash_grid(bbox: BBox, precision: int) -> List[GridCell]:
    """Build the distinct geohash cells sampled across *bbox*.

    Cells are ordered row-major, south → north then west → east, by the
    first sample that hit them.  A degenerate bbox yields no cells.
    """
    west, south, east, north = bbox
    if east <= west or north <= south or precision <= 0:
        return []

    n = grid_divisions(precision)
    offsets = np.arange(n) + 0.5
    lats = np.clip(south + offsets * (north - south) / n, -90.0, 90.0)
    lngs = np.clip(west + offsets * (east - west) / n, -180.0, 180.0)

    cells: List[GridCell] = []
    seen = set()
    for lat in lats:
        for lng in lngs:
            gh = encode(float(lat), float(lng), precision)
            if gh in seen:
                continue
            seen.add(gh)
            cells.append(GridCell(geohash=gh, cell=decode(gh)))
    return cells


def grid_extent(cells: List[GridCell]) -> BBox:
    """Union bbox of all cells, (min_lon, min_lat, max_lon, max_lat)."""
    if not cells:
        return (0.0, 0.0, 0.0, 0.0)
    return unary_union([c.cell.to_polygon() for c in cells]).bounds


def cells_to_geojson(cells: List[GridCell]) -> dict:
    """Export grid cells as a GeoJSON FeatureCollection for debugging."""
    features = []
    for c in cells:
        features.append({
            "type": "Feature",
            "properties": {
                "geohash": c.geohash,
                "precision": c.precision,
                "center_lat": round(c.cell.center_lat, 6),
                "center_lon": round(c.cell.center_lng, 6),
            },
            "geometry": mapping(c.cell.to_polygon()),
        })

    return {
        "type": "FeatureCollection",
        "features": features,
    }

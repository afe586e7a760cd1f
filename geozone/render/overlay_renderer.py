"""
Overlay renderer — turns grid/zone commands into rectangles on a map
handle, places the single location marker, and keeps the handles so they
can be removed again.

Every call is a silent no-op while the handle is missing or not ready;
that is the normal state during startup and teardown.
"""
from __future__ import annotations

import logging
from typing import Any, List, Optional

from ..geo.geohash import decode
from ..geo.hash_grid import BBox, build_hash_grid, grid_extent
from ..geo.live_hash import Coordinate
from .map_handle import MapHandle, RectStyle

log = logging.getLogger(__name__)

GRID_STYLE = RectStyle(color="#64748b", opacity=0.3, weight=1, fill=False)
ZONE_COLOR = "#FF4500"


def marker_label(position: Coordinate, name: str) -> str:
    """Popup text: the place name, then lat/lng to 6 decimals."""
    lines = [name] if name else []
    lines.append(f"Lat: {position.latitude:.6f}")
    lines.append(f"Lng: {position.longitude:.6f}")
    return "\n".join(lines)


class OverlayRenderer:
    """Owns the grid rectangles, the highlighted zone and the marker."""

    def __init__(self, handle: Optional[MapHandle]):
        self._handle = handle
        self._grid: List[Any] = []
        self._zone: Optional[Any] = None
        self._marker: Optional[Any] = None

    @property
    def available(self) -> bool:
        return self._handle is not None and self._handle.is_ready()

    @property
    def has_grid(self) -> bool:
        return bool(self._grid)

    @property
    def has_zone(self) -> bool:
        return self._zone is not None

    @property
    def has_marker(self) -> bool:
        return self._marker is not None

    def viewport_bbox(self) -> Optional[BBox]:
        if not self.available:
            return None
        return self._handle.get_viewport().bbox

    def show_grid(self, precision: int) -> int:
        """Redraw the grid over the current viewport.  Returns cell count."""
        if not self.available:
            return 0
        self.hide_grid()
        viewport = self._handle.get_viewport()
        cells = build_hash_grid(viewport.bbox, precision)
        for c in cells:
            self._grid.append(self._handle.draw_rectangle(c.cell.bounds, GRID_STYLE))
        log.debug(
            "Grid p=%d: %d cells, extent %s", precision, len(cells), grid_extent(cells),
        )
        return len(cells)

    def hide_grid(self) -> None:
        if self._handle is None:
            self._grid = []
            return
        for rect in self._grid:
            self._handle.remove(rect)
        self._grid = []

    def show_zone(self, geohash: str, style: RectStyle) -> bool:
        """Replace the zone rectangle.  Returns False if nothing was drawn."""
        if not self.available or not geohash:
            return False
        self.hide_zone()
        self._zone = self._handle.draw_rectangle(decode(geohash).bounds, style)
        return True

    def hide_zone(self) -> None:
        if self._zone is not None and self._handle is not None:
            self._handle.remove(self._zone)
        self._zone = None

    def show_marker(self, position: Coordinate, name: str) -> bool:
        """Replace the location marker.  Returns False if nothing was drawn."""
        if not self.available:
            return False
        self.hide_marker()
        self._marker = self._handle.draw_marker(position, marker_label(position, name))
        return True

    def hide_marker(self) -> None:
        if self._marker is not None and self._handle is not None:
            self._handle.remove(self._marker)
        self._marker = None

    def clear_all(self) -> None:
        self.hide_grid()
        self.hide_zone()
        self.hide_marker()

"""
Boundary between the overlay core and whatever draws the map.

A :class:`MapHandle` is acquired when a map session starts and released
(all overlays cleared) when it ends.  Implementations: the PyQt5
``HashMapWidget`` and the in-memory fakes used by the tests.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Tuple

from ..geo.live_hash import Coordinate

# ((south, west), (north, east))
Bounds = Tuple[Tuple[float, float], Tuple[float, float]]


@dataclass(frozen=True)
class RectStyle:
    """Stroke/fill style of a drawn rectangle."""
    color: str = "#FF6B35"
    opacity: float = 0.8
    weight: int = 3
    fill: bool = False
    fill_opacity: float = 0.0


@dataclass(frozen=True)
class Viewport:
    """Visible map area."""
    center: Coordinate
    zoom: float
    south: float
    west: float
    north: float
    east: float

    @property
    def bbox(self) -> Tuple[float, float, float, float]:
        """(min_lon, min_lat, max_lon, max_lat)"""
        return (self.west, self.south, self.east, self.north)


class MapHandle(ABC):
    """Drawing surface for overlay rectangles and the location marker."""

    @abstractmethod
    def is_ready(self) -> bool:
        """False while the map widget is starting up or tearing down."""

    @abstractmethod
    def draw_rectangle(self, bounds: Bounds, style: RectStyle) -> Any:
        """Draw a rectangle and return an opaque handle for :meth:`remove`."""

    @abstractmethod
    def remove(self, handle: Any) -> None:
        ...

    @abstractmethod
    def get_viewport(self) -> Viewport:
        ...

    @abstractmethod
    def set_view(self, center: Coordinate, zoom: float) -> None:
        """Recenter the map.  May trigger a viewport change notification."""

    @abstractmethod
    def draw_marker(self, position: Coordinate, label: str) -> Any:
        """Drop a point marker with a text popup; removed via :meth:`remove`."""

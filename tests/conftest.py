"""Shared fixtures: an in-memory map handle and a manual delay scheduler."""
from __future__ import annotations

import itertools
from typing import Any, Callable, Dict, List, Tuple

import pytest

from geozone.geo.live_hash import Coordinate
from geozone.render.map_handle import Bounds, MapHandle, RectStyle, Viewport
from geozone.storage.preference_store import PreferenceStore


def make_viewport(lat: float = 37.77, lng: float = -122.42, zoom: float = 11.0,
                  half_lat: float = 0.1, half_lng: float = 0.15) -> Viewport:
    return Viewport(
        center=Coordinate(lat, lng),
        zoom=zoom,
        south=lat - half_lat,
        west=lng - half_lng,
        north=lat + half_lat,
        east=lng + half_lng,
    )


class FakeMapHandle(MapHandle):
    """Records rectangles and markers instead of drawing them."""

    def __init__(self, viewport: Viewport = None, ready: bool = True):
        self.ready = ready
        self.viewport = viewport or make_viewport()
        self.rects: Dict[int, Tuple[Bounds, RectStyle]] = {}
        self.draw_log: List[Tuple[Bounds, RectStyle]] = []
        self.removed = 0
        self.views: List[Tuple[Coordinate, float]] = []
        self.markers: Dict[int, Tuple[Coordinate, str]] = {}
        self._ids = itertools.count(1)

    def is_ready(self) -> bool:
        return self.ready

    def draw_rectangle(self, bounds: Bounds, style: RectStyle) -> Any:
        rid = next(self._ids)
        self.rects[rid] = (bounds, style)
        self.draw_log.append((bounds, style))
        return rid

    def remove(self, handle: Any) -> None:
        if self.rects.pop(handle, None) is not None:
            self.removed += 1
        self.markers.pop(handle, None)

    def draw_marker(self, position: Coordinate, label: str) -> Any:
        mid = next(self._ids)
        self.markers[mid] = (position, label)
        return mid

    def get_viewport(self) -> Viewport:
        return self.viewport

    def set_view(self, center: Coordinate, zoom: float) -> None:
        self.views.append((center, zoom))

    def rects_with_weight_above(self, weight: int) -> List[Tuple[Bounds, RectStyle]]:
        return [r for r in self.rects.values() if r[1].weight > weight]


class ManualScheduler:
    """Collects delayed callbacks until ``run_all`` is called."""

    def __init__(self):
        self.pending: List[Tuple[int, Callable[[], None]]] = []

    def __call__(self, delay_ms: int, callback: Callable[[], None]) -> None:
        self.pending.append((delay_ms, callback))

    def run_all(self) -> int:
        ran = 0
        while self.pending:
            _, cb = self.pending.pop(0)
            cb()
            ran += 1
        return ran


@pytest.fixture
def handle() -> FakeMapHandle:
    return FakeMapHandle()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def store(tmp_path) -> PreferenceStore:
    s = PreferenceStore(tmp_path / "prefs.db")
    yield s
    s.close()

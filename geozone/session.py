"""
Map session — owns the map handle for its lifetime and drives one
reconciliation pass per input change.

Inputs arrive from three places: the map (viewport changes), the settings
controls (grid/zone toggles, fixed precision) and the tab bar (mode).
Each handler updates its input, recomputes the live hash set and the
active selection from scratch, and runs the reconciler once.

Usage
-----
    with MapSession(QtMapHandle(widget), store, scheduler=QtCore.QTimer.singleShot) as session:
        widget.viewport_changed.connect(session.on_viewport_change)
        ...
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from .config import MARKER_ZOOM, SEARCH_PRECISION
from .geo.geohash import encode
from .geo.hash_grid import build_hash_grid, cells_to_geojson
from .geo.live_hash import Coordinate, LiveHashSet, build_live_hash_set
from .geo.precision import clamp_precision, select_precision
from .ingest.address_client import LocationResult, resolve_address
from .render.map_handle import MapHandle
from .render.overlay_renderer import OverlayRenderer
from .render.reconciler import (
    OverlayCommand,
    OverlayReconciler,
    ReconcileInputs,
    Scheduler,
)
from .state.selection import ActiveSelection, Mode, resolve_active_selection
from .state.settings import (
    KEY_ACTIVE_MODE,
    KEY_FIXED_PRECISION,
    KEY_MAP_CONTEXT,
    KEY_SHOW_GRID,
    KEY_SHOW_ZONE,
    Settings,
    load_settings,
    save_setting,
)
from .storage.preference_store import PreferenceStore

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchResult:
    label: str
    coordinate: Coordinate
    geohash: str
    source: str


class MapSession:
    """Explicit owner of the map handle and the overlay state."""

    def __init__(
        self,
        handle: Optional[MapHandle],
        store: Optional[PreferenceStore] = None,
        scheduler: Optional[Scheduler] = None,
        settings: Optional[Settings] = None,
    ):
        self._handle = handle
        self._store = store
        self.settings = settings if settings is not None else load_settings(store)
        self._renderer = OverlayRenderer(handle)
        self._reconciler = OverlayReconciler(self._renderer, scheduler)

        self._center = Coordinate(self.settings.map_latitude, self.settings.map_longitude)
        self._zoom = self.settings.map_zoom
        self._live: Optional[LiveHashSet] = None
        self._map_loaded = False
        self._listeners: List[Callable[[ActiveSelection], None]] = []

    # ── Lifecycle ─────────────────────────────────────────────────────

    def open(self) -> None:
        """Start the session: adopt the map's current view and draw."""
        if self._handle is not None and self._handle.is_ready():
            vp = self._handle.get_viewport()
            self._center, self._zoom = vp.center, vp.zoom
        self._live = build_live_hash_set(self._center)
        self._map_loaded = True
        log.info(
            "Map session opened at %.5f, %.5f zoom %.1f",
            self._center.latitude, self._center.longitude, self._zoom,
        )
        self._refresh()

    def close(self) -> None:
        """End the session: clear every overlay and persist the view."""
        self._reconciler.reset()
        self._map_loaded = False
        save_setting(self._store, KEY_MAP_CONTEXT, self.settings.map_context())
        log.info("Map session closed")

    def __enter__(self) -> "MapSession":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ── Read-only views ───────────────────────────────────────────────

    @property
    def center(self) -> Coordinate:
        return self._center

    @property
    def zoom(self) -> float:
        return self._zoom

    @property
    def live_hash_set(self) -> Optional[LiveHashSet]:
        return self._live

    @property
    def map_loaded(self) -> bool:
        return self._map_loaded

    @property
    def reconciler(self) -> OverlayReconciler:
        return self._reconciler

    @property
    def selection(self) -> ActiveSelection:
        return resolve_active_selection(
            mode=self.settings.active_mode,
            fixed_precision=self.settings.fixed_precision,
            center=self._center,
            zoom=self._zoom,
            map_loaded=self._map_loaded,
            live=self._live,
        )

    def add_listener(self, callback: Callable[[ActiveSelection], None]) -> None:
        """Call *callback* with the fresh selection after every pass."""
        self._listeners.append(callback)

    # ── Input events ──────────────────────────────────────────────────

    def on_viewport_change(self, center: Coordinate, zoom: float) -> List[OverlayCommand]:
        self._center = center
        self._zoom = zoom
        self._live = build_live_hash_set(center)
        self.settings.map_latitude = center.latitude
        self.settings.map_longitude = center.longitude
        self.settings.map_zoom = zoom
        save_setting(self._store, KEY_MAP_CONTEXT, self.settings.map_context())
        return self._refresh()

    def place_marker(self, lat: float, lng: float, name: str = "") -> List[OverlayCommand]:
        """Drop the marker at a point and center there at street zoom."""
        self._center = Coordinate(lat, lng)
        self._live = build_live_hash_set(self._center)
        if self._renderer.available:
            self._renderer.show_marker(self._center, name)
            # the handle reports the move back through on_viewport_change
            self._handle.set_view(self._center, MARKER_ZOOM)
            self._zoom = MARKER_ZOOM
            self.settings.map_latitude = lat
            self.settings.map_longitude = lng
            self.settings.map_zoom = MARKER_ZOOM
            save_setting(self._store, KEY_MAP_CONTEXT, self.settings.map_context())
        return self._refresh()

    def set_mode(self, mode: Mode) -> List[OverlayCommand]:
        self.settings.active_mode = mode
        save_setting(self._store, KEY_ACTIVE_MODE, mode)
        return self._refresh()

    def set_fixed_precision(self, precision: int) -> List[OverlayCommand]:
        self.settings.fixed_precision = clamp_precision(precision)
        save_setting(self._store, KEY_FIXED_PRECISION, self.settings.fixed_precision)
        return self._refresh()

    def set_show_grid(self, show: bool) -> List[OverlayCommand]:
        self.settings.show_grid = bool(show)
        save_setting(self._store, KEY_SHOW_GRID, self.settings.show_grid)
        return self._refresh()

    def set_show_zone(self, show: bool) -> List[OverlayCommand]:
        self.settings.show_zone = bool(show)
        save_setting(self._store, KEY_SHOW_ZONE, self.settings.show_zone)
        return self._refresh()

    def lookup(self, text: str) -> LocationResult:
        """Resolve an address without touching the map.

        Safe to call from a worker thread; hand the result to
        :meth:`apply_location` on the GUI thread.  Lookup errors
        (``ValueError``, ``AddressNotFoundError``) propagate to the caller.
        """
        return resolve_address(text)

    def search(self, text: str) -> SearchResult:
        """Resolve an address and move the map there."""
        return self.apply_location(self.lookup(text))

    def apply_location(self, loc: LocationResult) -> SearchResult:
        """Mark an already-resolved location and move the map there."""
        self.place_marker(loc.lat, loc.lng, loc.label)
        return SearchResult(
            label=loc.label,
            coordinate=Coordinate(loc.lat, loc.lng),
            geohash=encode(loc.lat, loc.lng, SEARCH_PRECISION),
            source=loc.source,
        )

    def grid_geojson(self) -> dict:
        """The grid cells covering the current viewport, as GeoJSON."""
        bbox = self._renderer.viewport_bbox()
        cells = build_hash_grid(bbox, select_precision(self._zoom)) if bbox else []
        return cells_to_geojson(cells)

    # ── Reconciliation ────────────────────────────────────────────────

    def _refresh(self) -> List[OverlayCommand]:
        selection = self.selection
        commands = self._reconciler.reconcile(ReconcileInputs(
            map_loaded=self._map_loaded,
            show_grid=self.settings.show_grid,
            show_zone=self.settings.show_zone,
            zoom=self._zoom,
            selection=selection,
        ))
        for cb in self._listeners:
            cb(selection)
        return commands

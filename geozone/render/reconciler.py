"""
Overlay reconciler — decides what the map should show after each input
change and issues only the draw/clear commands needed to get there.

Two independent concerns:

Grid
    Hidden, or Shown(precision).  Shown while the grid toggle is on and the
    map is loaded.  Redrawn in full whenever zoom or the visible bounds
    change; an unchanged view emits nothing.

Zone
    Hidden, or Shown(hash, mode).  The previously drawn hash is remembered
    per mode, so switching tabs and back is never mistaken for "no
    change".  A redraw is forced when the mode differs from the last drawn
    mode, or when the zone toggle was off on the previous pass (re-arm).
    Otherwise an unchanged hash is skipped.  Zone draws are dispatched
    after a short delay; a newer pass makes any pending draw stale, so
    bursts of updates collapse into the most recent one.

The reconciler is the only writer of :class:`OverlayState`.  It runs on
the caller's event turn and never blocks; the delay is delegated to an
injected ``scheduler(delay_ms, callback)`` (``QTimer.singleShot`` in the
GUI).

Usage
-----
    reconciler = OverlayReconciler(OverlayRenderer(handle), scheduler)
    commands = reconciler.reconcile(ReconcileInputs(
        map_loaded=True, show_grid=False, show_zone=True,
        zoom=11.0, selection=selection,
    ))
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from ..config import DELAYS
from ..geo.precision import select_precision
from ..state.selection import ActiveSelection, Mode
from .map_handle import RectStyle
from .overlay_renderer import ZONE_COLOR, OverlayRenderer

log = logging.getLogger(__name__)

Scheduler = Callable[[int, Callable[[], None]], None]

DRAW_GRID = "draw_grid"
CLEAR_GRID = "clear_grid"
DRAW_ZONE = "draw_zone"
CLEAR_ZONE = "clear_zone"

OPTIMAL_INTENSITY = 0.6
BASE_OPACITY = 0.4
BASE_WEIGHT = 3


def immediate_scheduler(delay_ms: int, callback: Callable[[], None]) -> None:
    """Run *callback* at once, ignoring the delay."""
    callback()


@dataclass(frozen=True)
class OverlayCommand:
    kind: str
    geohash: str = ""
    precision: int = 0
    mode: Optional[Mode] = None


@dataclass(frozen=True)
class ReconcileInputs:
    map_loaded: bool
    show_grid: bool
    show_zone: bool
    zoom: float
    selection: ActiveSelection


@dataclass
class OverlayState:
    """What is currently on the map, as far as the reconciler knows."""
    grid_precision: Optional[int] = None
    grid_view: Optional[Tuple] = None
    zone_hashes: Dict[Mode, Optional[str]] = field(
        default_factory=lambda: {Mode.OPTIMAL: None, Mode.FIXED: None}
    )
    last_mode: Optional[Mode] = None
    zone_visible: bool = False


def zone_intensity(mode: Mode, zone_precision: int, zoom: float) -> float:
    """How far the zone's precision strays from the zoom's optimum (0..1).

    The difference is normalised by ``max(4 - optimal, optimal - 1)`` and
    boosted by 0.2 past a difference of 2.
    """
    if mode is Mode.OPTIMAL:
        return OPTIMAL_INTENSITY
    optimal = select_precision(zoom)
    diff = abs(zone_precision - optimal)
    max_diff = max(4 - optimal, optimal - 1)
    intensity = max(0.0, min(1.0, diff / max_diff))
    if diff > 2:
        intensity = min(1.0, intensity + 0.2)
    return intensity


def zone_style(intensity: float) -> RectStyle:
    return RectStyle(
        color=ZONE_COLOR,
        opacity=BASE_OPACITY + intensity * 0.8,
        weight=int(math.floor(BASE_WEIGHT + intensity * 20 + 0.5)),
        fill=False,
    )


class OverlayReconciler:
    """Diffs the desired overlays against :class:`OverlayState`."""

    def __init__(
        self,
        renderer: OverlayRenderer,
        scheduler: Optional[Scheduler] = None,
        zone_delay_ms: int = DELAYS.ZONE_UPDATE_MS,
    ):
        self._renderer = renderer
        self._schedule = scheduler or immediate_scheduler
        self._zone_delay_ms = zone_delay_ms
        self._state = OverlayState()
        self._zone_seq = 0

    @property
    def state(self) -> OverlayState:
        return self._state

    def reconcile(self, inputs: ReconcileInputs) -> List[OverlayCommand]:
        """Run one pass.  Returns the commands issued (zone draws counted
        when scheduled)."""
        if not self._renderer.available:
            log.debug("Map handle not ready — pass suppressed")
            return []
        if not inputs.map_loaded:
            return []

        commands: List[OverlayCommand] = []
        self._reconcile_grid(inputs, commands)
        self._reconcile_zone(inputs, commands)
        return commands

    def reset(self) -> None:
        """Clear every overlay and forget all drawn state."""
        self._zone_seq += 1
        self._renderer.clear_all()
        self._state = OverlayState()

    # ── Grid ──────────────────────────────────────────────────────────

    def _reconcile_grid(self, inputs: ReconcileInputs, out: List[OverlayCommand]) -> None:
        st = self._state
        if not inputs.show_grid:
            if st.grid_precision is not None:
                self._renderer.hide_grid()
                st.grid_precision = None
                st.grid_view = None
                out.append(OverlayCommand(CLEAR_GRID))
            return

        precision = select_precision(inputs.zoom)
        view = (inputs.zoom, self._renderer.viewport_bbox())
        if st.grid_precision is not None and st.grid_view == view:
            return

        count = self._renderer.show_grid(precision)
        st.grid_precision = precision
        st.grid_view = view
        log.debug("Grid redrawn at precision %d (%d cells)", precision, count)
        out.append(OverlayCommand(DRAW_GRID, precision=precision))

    # ── Zone ──────────────────────────────────────────────────────────

    def _reconcile_zone(self, inputs: ReconcileInputs, out: List[OverlayCommand]) -> None:
        st = self._state
        sel = inputs.selection

        if not inputs.show_zone:
            self._zone_seq += 1  # drop any pending draw
            if st.zone_visible:
                self._renderer.hide_zone()
                out.append(OverlayCommand(CLEAR_ZONE))
            st.zone_visible = False
            return

        if sel.is_unready:
            return

        rearmed = not st.zone_visible
        mode_changed = sel.mode != st.last_mode
        st.zone_visible = True
        if not (rearmed or mode_changed) and st.zone_hashes.get(sel.mode) == sel.hash:
            return

        st.zone_hashes[sel.mode] = sel.hash
        st.last_mode = sel.mode
        style = zone_style(zone_intensity(sel.mode, sel.precision, inputs.zoom))

        self._zone_seq += 1
        seq = self._zone_seq
        self._schedule(
            self._zone_delay_ms,
            lambda: self._dispatch_zone(seq, sel.hash, style),
        )
        out.append(OverlayCommand(DRAW_ZONE, sel.hash, sel.precision, sel.mode))

    def _dispatch_zone(self, seq: int, geohash: str, style: RectStyle) -> None:
        if seq != self._zone_seq:
            log.debug("Zone draw for %s superseded", geohash)
            return
        if not self._state.zone_visible:
            return
        if self._renderer.show_zone(geohash, style):
            log.debug("Zone drawn: %s (opacity %.2f, weight %d)",
                      geohash, style.opacity, style.weight)

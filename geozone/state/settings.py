"""
User settings: overlay toggles, active mode, fixed precision and the last
map view.

Loaded once at startup from a :class:`PreferenceStore`; each stored value
is validated and replaced by its default when missing or malformed.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..config import DEFAULT_LATITUDE, DEFAULT_LONGITUDE, DEFAULT_ZOOM
from ..geo.precision import clamp_precision
from ..storage.preference_store import PreferenceStore
from .selection import Mode

log = logging.getLogger(__name__)

KEY_SHOW_GRID = "show_grid"
KEY_SHOW_ZONE = "show_zone"
KEY_ACTIVE_MODE = "active_mode"
KEY_FIXED_PRECISION = "fixed_zone_precision"
KEY_MAP_CONTEXT = "map_context"


@dataclass
class Settings:
    show_grid: bool = False
    show_zone: bool = True
    active_mode: Mode = Mode.OPTIMAL
    fixed_precision: int = 7
    map_latitude: float = DEFAULT_LATITUDE
    map_longitude: float = DEFAULT_LONGITUDE
    map_zoom: float = DEFAULT_ZOOM

    def map_context(self) -> dict:
        return {
            "zoom": self.map_zoom,
            "latitude": self.map_latitude,
            "longitude": self.map_longitude,
        }


def _as_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    log.warning("Ignoring non-boolean preference value %r", value)
    return default


def _as_float(value: Any, default: float) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return default


def load_settings(store: Optional[PreferenceStore]) -> Settings:
    """Build :class:`Settings` from *store*, falling back to defaults."""
    s = Settings()
    if store is None:
        return s

    s.show_grid = _as_bool(store.load_preference(KEY_SHOW_GRID, s.show_grid), s.show_grid)
    s.show_zone = _as_bool(store.load_preference(KEY_SHOW_ZONE, s.show_zone), s.show_zone)
    s.active_mode = Mode.parse(
        store.load_preference(KEY_ACTIVE_MODE, s.active_mode.value), Mode.OPTIMAL,
    )

    raw = store.load_preference(KEY_FIXED_PRECISION, s.fixed_precision)
    if isinstance(raw, int) and not isinstance(raw, bool):
        s.fixed_precision = clamp_precision(raw)
    else:
        log.warning("Ignoring invalid fixed precision %r", raw)

    ctx = store.load_preference(KEY_MAP_CONTEXT, {})
    if isinstance(ctx, dict):
        s.map_zoom = _as_float(ctx.get("zoom"), s.map_zoom)
        s.map_latitude = _as_float(ctx.get("latitude"), s.map_latitude)
        s.map_longitude = _as_float(ctx.get("longitude"), s.map_longitude)

    return s


def save_setting(store: Optional[PreferenceStore], key: str, value: Any) -> bool:
    """Persist one setting.  A missing store counts as a failed save."""
    if store is None:
        return False
    if isinstance(value, Mode):
        value = value.value
    return store.save_preference(key, value)

"""Tests for loading and saving user settings."""

import logging

from geozone.config import DEFAULT_LATITUDE, DEFAULT_LONGITUDE, DEFAULT_ZOOM
from geozone.state.selection import Mode
from geozone.state.settings import (
    KEY_ACTIVE_MODE,
    KEY_FIXED_PRECISION,
    KEY_MAP_CONTEXT,
    KEY_SHOW_GRID,
    KEY_SHOW_ZONE,
    Settings,
    load_settings,
    save_setting,
)


class TestDefaults:

    def test_no_store(self) -> None:
        s = load_settings(None)
        assert s == Settings()
        assert s.show_grid is False
        assert s.show_zone is True
        assert s.active_mode is Mode.OPTIMAL
        assert s.fixed_precision == 7

    def test_empty_store(self, store) -> None:
        s = load_settings(store)
        assert s == Settings()
        assert (s.map_latitude, s.map_longitude, s.map_zoom) == (
            DEFAULT_LATITUDE, DEFAULT_LONGITUDE, DEFAULT_ZOOM,
        )


class TestLoad:

    def test_stored_values(self, store) -> None:
        store.save_preference(KEY_SHOW_GRID, True)
        store.save_preference(KEY_SHOW_ZONE, False)
        store.save_preference(KEY_ACTIVE_MODE, "fixed")
        store.save_preference(KEY_FIXED_PRECISION, 5)
        store.save_preference(KEY_MAP_CONTEXT, {"zoom": 12, "latitude": 51.5, "longitude": -0.12})
        s = load_settings(store)
        assert s.show_grid is True
        assert s.show_zone is False
        assert s.active_mode is Mode.FIXED
        assert s.fixed_precision == 5
        assert s.map_context() == {"zoom": 12.0, "latitude": 51.5, "longitude": -0.12}

    def test_invalid_values_fall_back(self, store, caplog) -> None:
        store.save_preference(KEY_SHOW_GRID, "yes")
        store.save_preference(KEY_ACTIVE_MODE, "search")
        store.save_preference(KEY_FIXED_PRECISION, "seven")
        store.save_preference(KEY_MAP_CONTEXT, {"zoom": "far"})
        with caplog.at_level(logging.WARNING):
            s = load_settings(store)
        assert s == Settings()
        assert "non-boolean" in caplog.text
        assert "invalid fixed precision" in caplog.text

    def test_bool_is_not_a_precision(self, store) -> None:
        store.save_preference(KEY_FIXED_PRECISION, True)
        assert load_settings(store).fixed_precision == 7

    def test_precision_is_clamped(self, store) -> None:
        store.save_preference(KEY_FIXED_PRECISION, 15)
        assert load_settings(store).fixed_precision == 9
        store.save_preference(KEY_FIXED_PRECISION, 0)
        assert load_settings(store).fixed_precision == 1


class TestSave:

    def test_mode_saved_as_value(self, store) -> None:
        assert save_setting(store, KEY_ACTIVE_MODE, Mode.FIXED)
        assert store.load_preference(KEY_ACTIVE_MODE) == "fixed"

    def test_no_store_is_failed_save(self) -> None:
        assert save_setting(None, KEY_SHOW_GRID, True) is False

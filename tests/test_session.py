"""Tests for MapSession: lifecycle, input handlers, persistence and search."""

from unittest.mock import patch

import pytest

from geozone.config import MARKER_ZOOM
from geozone.geo.live_hash import Coordinate
from geozone.geo.precision import select_precision
from geozone.ingest.address_client import LocationResult
from geozone.render.reconciler import CLEAR_GRID, CLEAR_ZONE, DRAW_GRID, DRAW_ZONE
from geozone.session import MapSession
from geozone.state.selection import Mode
from geozone.state.settings import KEY_FIXED_PRECISION, KEY_MAP_CONTEXT, KEY_SHOW_GRID

from tests.conftest import FakeMapHandle, make_viewport


def kinds(commands):
    return [c.kind for c in commands]


@pytest.fixture
def session(handle, store):
    s = MapSession(handle, store)
    yield s
    if s.map_loaded:
        s.close()


class TestLifecycle:

    def test_selection_unready_before_open(self, session) -> None:
        assert session.selection.is_unready

    def test_open_adopts_viewport_and_draws_zone(self, session, handle) -> None:
        session.open()
        assert session.map_loaded
        assert session.center == handle.viewport.center
        assert session.zoom == 11.0
        sel = session.selection
        assert sel.precision == 4
        assert sel.hash == session.live_hash_set.get(4)
        assert len(handle.rects) == 1

    def test_close_clears_overlays(self, session, handle) -> None:
        session.open()
        session.set_show_grid(True)
        session.close()
        assert handle.rects == {}
        assert not session.map_loaded
        assert session.selection.is_unready

    def test_context_manager(self, handle) -> None:
        with MapSession(handle) as s:
            assert s.map_loaded
            assert handle.rects
        assert handle.rects == {}

    def test_listener_receives_selection(self, session) -> None:
        seen = []
        session.add_listener(seen.append)
        session.open()
        assert seen == [session.selection]

    def test_handle_not_ready_draws_nothing(self, store) -> None:
        h = FakeMapHandle(ready=False)
        with MapSession(h, store) as s:
            assert not s.selection.is_unready
            assert h.draw_log == []


class TestInputs:

    def test_viewport_change_updates_selection(self, session, handle) -> None:
        session.open()
        before = session.selection.hash
        handle.viewport = make_viewport(lat=40.7128, lng=-74.006, zoom=14.0)
        cmds = session.on_viewport_change(Coordinate(40.7128, -74.006), 14.0)
        assert kinds(cmds) == [DRAW_ZONE]
        assert session.selection.precision == 5
        assert session.selection.hash != before
        assert session.selection.hash == "dr5re"

    def test_mode_switch_redraws(self, session) -> None:
        session.open()
        assert kinds(session.set_mode(Mode.FIXED)) == [DRAW_ZONE]
        assert session.selection.precision == 7
        assert kinds(session.set_mode(Mode.OPTIMAL)) == [DRAW_ZONE]

    def test_fixed_precision_clamped(self, session) -> None:
        session.open()
        session.set_mode(Mode.FIXED)
        session.set_fixed_precision(12)
        assert session.selection.precision == 9
        assert len(session.selection.hash) == 9

    def test_zone_toggle(self, session, handle) -> None:
        session.open()
        assert kinds(session.set_show_zone(False)) == [CLEAR_ZONE]
        assert handle.rects == {}
        assert kinds(session.set_show_zone(True)) == [DRAW_ZONE]
        assert len(handle.rects) == 1

    def test_grid_toggle(self, session) -> None:
        session.open()
        assert kinds(session.set_show_grid(True)) == [DRAW_GRID]
        assert kinds(session.set_show_grid(False)) == [CLEAR_GRID]

    def test_place_marker_moves_map(self, session, handle) -> None:
        session.open()
        session.place_marker(48.8566, 2.3522)
        assert handle.views == [(Coordinate(48.8566, 2.3522), MARKER_ZOOM)]
        assert session.live_hash_set.get(5) == "u09tv"


class TestPersistence:

    def test_settings_saved(self, session, store) -> None:
        session.open()
        session.set_show_grid(True)
        session.set_fixed_precision(4)
        assert store.load_preference(KEY_SHOW_GRID) is True
        assert store.load_preference(KEY_FIXED_PRECISION) == 4

    def test_map_context_saved(self, session, store) -> None:
        session.open()
        session.on_viewport_change(Coordinate(51.5074, -0.1278), 9.0)
        assert store.load_preference(KEY_MAP_CONTEXT) == {
            "zoom": 9.0, "latitude": 51.5074, "longitude": -0.1278,
        }

    def test_reload_restores_settings(self, handle, store) -> None:
        with MapSession(handle, store) as s:
            s.set_mode(Mode.FIXED)
            s.set_show_zone(False)
        s2 = MapSession(handle, store)
        assert s2.settings.active_mode is Mode.FIXED
        assert s2.settings.show_zone is False

    def test_works_without_store(self, handle) -> None:
        with MapSession(handle) as s:
            assert kinds(s.set_show_grid(True)) == [DRAW_GRID]


class TestSearch:

    def test_apply_location(self, session, handle) -> None:
        session.open()
        loc = LocationResult(40.758, -73.9855, "Times Square", "local database")
        result = session.apply_location(loc)
        assert result.label == "Times Square"
        assert result.coordinate == Coordinate(40.758, -73.9855)
        assert len(result.geohash) == 6
        assert result.geohash.startswith("dr5ru")
        assert result.source == "local database"
        assert handle.views[-1][1] == MARKER_ZOOM

    def test_search_resolves_address(self, session) -> None:
        session.open()
        loc = LocationResult(35.6762, 139.6503, "Tokyo", "photon.komoot.io")
        with patch("geozone.session.resolve_address", return_value=loc) as mock:
            result = session.search("tokyo")
        mock.assert_called_once_with("tokyo")
        assert result.geohash.startswith("xn7")

    def test_search_error_propagates(self, session) -> None:
        session.open()
        with pytest.raises(ValueError):
            session.search("   ")


class TestMarker:
    """Marker placement moves the map and the active cell together."""

    def test_selection_follows_marker_zoom(self, store) -> None:
        h = FakeMapHandle(make_viewport(zoom=6.0))
        seen = []
        with MapSession(h, store) as s:
            s.set_show_grid(True)
            s.add_listener(seen.append)
            cmds = s.place_marker(48.8566, 2.3522)
            assert s.zoom == MARKER_ZOOM
            assert s.selection.precision == select_precision(MARKER_ZOOM)
            assert s.selection.hash == "u09tv"
            assert seen[-1] == s.selection
        zone = [c for c in cmds if c.kind == DRAW_ZONE]
        assert [(c.geohash, c.precision) for c in zone] == [("u09tv", 5)]
        assert [c.precision for c in cmds if c.kind == DRAW_GRID] == [5]

    def test_marker_zoom_persisted(self, session, store) -> None:
        session.open()
        session.place_marker(48.8566, 2.3522)
        assert store.load_preference(KEY_MAP_CONTEXT) == {
            "zoom": MARKER_ZOOM, "latitude": 48.8566, "longitude": 2.3522,
        }

    def test_single_marker_with_popup(self, session, handle) -> None:
        session.open()
        session.place_marker(48.8566, 2.3522, "Paris, France")
        session.place_marker(51.5074, -0.1278, "London, UK")
        [(position, label)] = handle.markers.values()
        assert position == Coordinate(51.5074, -0.1278)
        assert label == "London, UK\nLat: 51.507400\nLng: -0.127800"

    def test_unavailable_map_keeps_zoom(self, store) -> None:
        h = FakeMapHandle(ready=False)
        with MapSession(h, store) as s:
            zoom = s.zoom
            s.place_marker(48.8566, 2.3522)
            assert s.zoom == zoom
            assert s.live_hash_set.center == Coordinate(48.8566, 2.3522)
        assert h.markers == {}
        assert h.views == []

    def test_close_removes_marker(self, session, handle) -> None:
        session.open()
        session.place_marker(48.8566, 2.3522, "Paris")
        session.close()
        assert handle.markers == {}

    def test_search_result_labels_marker(self, session, handle) -> None:
        session.open()
        session.apply_location(LocationResult(40.758, -73.9855, "Times Square", "local database"))
        [(_, label)] = handle.markers.values()
        assert label.startswith("Times Square\nLat: 40.758000")


class TestLookup:

    def test_lookup_leaves_map_alone(self, session, handle) -> None:
        session.open()
        loc = LocationResult(35.6762, 139.6503, "Tokyo", "photon.komoot.io")
        with patch("geozone.session.resolve_address", return_value=loc):
            assert session.lookup("tokyo") == loc
        assert handle.views == []
        assert handle.markers == {}

    def test_grid_geojson_covers_viewport(self, session) -> None:
        session.open()
        fc = session.grid_geojson()
        assert fc["type"] == "FeatureCollection"
        assert fc["features"]
        assert all(f["properties"]["precision"] == 4 for f in fc["features"])

    def test_grid_geojson_without_map(self) -> None:
        s = MapSession(FakeMapHandle(ready=False))
        assert s.grid_geojson()["features"] == []

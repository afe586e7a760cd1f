"""Tests for the search worker used by the main window."""

import json
import logging

import pytest

pytest.importorskip("PyQt5.QtWidgets")

from geozone.gui.main_window import run_lookup  # noqa: E402
from geozone.ingest.address_client import AddressNotFoundError, LocationResult  # noqa: E402

LOC = LocationResult(35.6762, 139.6503, "Tokyo, Japan", "local database")


class Recorder:
    def __init__(self):
        self.done = []
        self.failed = []


def _raise(exc):
    def lookup(query):
        raise exc
    return lookup


class TestRunLookup:
    """Every lookup outcome reaches exactly one callback."""

    def test_success(self) -> None:
        r = Recorder()
        run_lookup(lambda q: LOC, "tokyo", r.done.append, r.failed.append)
        assert r.done == [LOC]
        assert r.failed == []

    def test_blank_input_message(self) -> None:
        r = Recorder()
        run_lookup(_raise(ValueError("Please enter an address")), "", r.done.append, r.failed.append)
        assert r.failed == ["Please enter an address"]
        assert r.done == []

    def test_not_found_message(self) -> None:
        r = Recorder()
        msg = "Address not found. Try a city name or landmark"
        run_lookup(_raise(AddressNotFoundError(msg)), "atlantis", r.done.append, r.failed.append)
        assert r.failed == [msg]

    def test_unreadable_gazetteer_is_reported(self, caplog) -> None:
        r = Recorder()
        with caplog.at_level(logging.ERROR):
            run_lookup(_raise(OSError("places.json missing")), "paris", r.done.append, r.failed.append)
        assert r.failed == ["Search failed: places.json missing"]
        assert r.done == []
        assert "Address lookup for 'paris' failed" in caplog.text

    def test_corrupt_gazetteer_is_reported(self) -> None:
        r = Recorder()
        err = json.JSONDecodeError("Expecting value", "{", 1)
        run_lookup(_raise(err), "paris", r.done.append, r.failed.append)
        assert len(r.failed) == 1
        assert r.failed[0].startswith("Search failed:")

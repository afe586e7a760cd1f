"""
Main window — map on the left, detail panel on the right.

The panel has three tabs (Optimal / Fixed / Search) and the overlay
toggles.  Switching between Optimal and Fixed changes the session mode;
the Search tab leaves the mode alone.  Every label shows the session's
active selection, the same value the map overlay is drawn from.
"""
from __future__ import annotations

import json
import logging
import threading
from typing import Callable, Optional

from PyQt5 import QtCore, QtWidgets

from ..config import DELAYS
from ..geo.geohash import is_valid
from ..geo.precision import (
    MAX_PRECISION,
    MIN_PRECISION,
    PRECISIONS,
    PRECISION_LABELS,
    format_cell_size,
    format_distance,
    format_precision_label,
)
from ..geo.live_hash import Coordinate
from ..ingest.address_client import AddressNotFoundError, LocationResult
from ..session import MapSession
from ..state.selection import ActiveSelection, Mode
from ..storage.preference_store import PreferenceStore
from .map_widget import HashMapWidget, QtMapHandle

log = logging.getLogger(__name__)

_TAB_OPTIMAL, _TAB_FIXED, _TAB_SEARCH = range(3)

_HASH_STYLE = "font-family: monospace; font-size: 22px; font-weight: bold; color: #e0f0ff;"
_SUB_STYLE = "color: #80a0c0; font-size: 11px;"


def _hash_label() -> QtWidgets.QLabel:
    label = QtWidgets.QLabel("Loading...")
    label.setStyleSheet(_HASH_STYLE)
    label.setTextInteractionFlags(QtCore.Qt.TextSelectableByMouse)
    return label


def _sub_label() -> QtWidgets.QLabel:
    label = QtWidgets.QLabel("")
    label.setStyleSheet(_SUB_STYLE)
    return label


def _sub_label_text(text: str) -> QtWidgets.QLabel:
    label = _sub_label()
    label.setText(text)
    return label


def run_lookup(
    lookup: Callable[[str], LocationResult],
    query: str,
    done: Callable[[LocationResult], None],
    failed: Callable[[str], None],
) -> None:
    """Resolve *query* and report through exactly one of the callbacks."""
    try:
        loc = lookup(query)
    except (ValueError, AddressNotFoundError) as exc:
        failed(str(exc))
        return
    except Exception as exc:
        log.exception("Address lookup for %r failed", query)
        failed(f"Search failed: {exc}")
        return
    done(loc)


class MainWindow(QtWidgets.QMainWindow):

    _search_done = QtCore.pyqtSignal(object)
    _search_failed = QtCore.pyqtSignal(str)

    def __init__(
        self,
        store: Optional[PreferenceStore] = None,
        start_view: Optional[tuple] = None,
        parent: Optional[QtWidgets.QWidget] = None,
    ):
        super().__init__(parent)
        self.setWindowTitle("GeoZone — geohash explorer")
        self._store = store
        self._opened = False

        self._map = HashMapWidget(parent=self)
        self._session = MapSession(
            QtMapHandle(self._map), store, scheduler=QtCore.QTimer.singleShot,
        )
        s = self._session.settings
        if start_view is not None:
            lat, lng, zoom = start_view
        else:
            lat, lng, zoom = s.map_latitude, s.map_longitude, s.map_zoom
        self._map.set_view(Coordinate(lat, lng), zoom)

        panel = self._build_panel()
        splitter = QtWidgets.QSplitter(QtCore.Qt.Horizontal)
        splitter.addWidget(self._map)
        splitter.addWidget(panel)
        splitter.setStretchFactor(0, 3)
        splitter.setStretchFactor(1, 1)
        self.setCentralWidget(splitter)

        self._map.viewport_changed.connect(self._on_viewport_changed)
        self._search_done.connect(self._on_search_done)
        self._search_failed.connect(self._on_search_failed)
        self._session.add_listener(self._on_selection)

    # ── Panel ─────────────────────────────────────────────────────────

    def _build_panel(self) -> QtWidgets.QWidget:
        s = self._session.settings
        panel = QtWidgets.QWidget()
        layout = QtWidgets.QVBoxLayout(panel)

        self._tabs = QtWidgets.QTabWidget()
        self._tabs.addTab(self._build_optimal_tab(), "Optimal")
        self._tabs.addTab(self._build_fixed_tab(), "Fixed")
        self._tabs.addTab(self._build_search_tab(), "Search")
        self._tabs.setCurrentIndex(_TAB_FIXED if s.active_mode is Mode.FIXED else _TAB_OPTIMAL)
        self._tabs.currentChanged.connect(self._on_tab_changed)
        layout.addWidget(self._tabs)

        box = QtWidgets.QGroupBox("Settings")
        box_layout = QtWidgets.QVBoxLayout(box)
        self._chk_grid = QtWidgets.QCheckBox("Show geohash grid")
        self._chk_grid.setChecked(s.show_grid)
        self._chk_grid.toggled.connect(self._session.set_show_grid)
        self._chk_zone = QtWidgets.QCheckBox("Show zone")
        self._chk_zone.setChecked(s.show_zone)
        self._chk_zone.toggled.connect(self._session.set_show_zone)
        box_layout.addWidget(self._chk_grid)
        box_layout.addWidget(self._chk_zone)
        btn_geojson = QtWidgets.QPushButton("Copy grid as GeoJSON")
        btn_geojson.clicked.connect(self._copy_grid_geojson)
        box_layout.addWidget(btn_geojson)
        layout.addWidget(box)
        layout.addStretch(1)
        return panel

    def _build_optimal_tab(self) -> QtWidgets.QWidget:
        w = QtWidgets.QWidget()
        layout = QtWidgets.QVBoxLayout(w)
        layout.addWidget(QtWidgets.QLabel("Current Hash"))
        self._opt_hash = _hash_label()
        self._opt_detail = _sub_label()
        layout.addWidget(self._opt_hash)
        layout.addWidget(self._opt_detail)
        btn = QtWidgets.QPushButton("Copy")
        btn.clicked.connect(lambda: self._copy(self._opt_hash.text()))
        layout.addWidget(btn)

        self._live_table = QtWidgets.QTableWidget(len(PRECISIONS), 2)
        self._live_table.setHorizontalHeaderLabels(["Hash", "Cell"])
        self._live_table.setVerticalHeaderLabels([str(p) for p in PRECISIONS])
        self._live_table.setEditTriggers(QtWidgets.QAbstractItemView.NoEditTriggers)
        self._live_table.horizontalHeader().setStretchLastSection(True)
        layout.addWidget(self._live_table)
        return w

    def _build_fixed_tab(self) -> QtWidgets.QWidget:
        s = self._session.settings
        w = QtWidgets.QWidget()
        layout = QtWidgets.QVBoxLayout(w)
        layout.addWidget(QtWidgets.QLabel("Current Hash"))
        self._fix_hash = _hash_label()
        self._fix_detail = _sub_label()
        layout.addWidget(self._fix_hash)
        layout.addWidget(self._fix_detail)
        btn = QtWidgets.QPushButton("Copy")
        btn.clicked.connect(lambda: self._copy(self._fix_hash.text()))
        layout.addWidget(btn)

        layout.addWidget(QtWidgets.QLabel("Cell Size"))
        self._slider = QtWidgets.QSlider(QtCore.Qt.Horizontal)
        self._slider.setRange(MIN_PRECISION, MAX_PRECISION)
        self._slider.setValue(s.fixed_precision)
        self._slider.setTickPosition(QtWidgets.QSlider.TicksBelow)
        self._slider.valueChanged.connect(self._session.set_fixed_precision)
        layout.addWidget(self._slider)
        ends = QtWidgets.QHBoxLayout()
        ends.addWidget(_sub_label_text(f"{MIN_PRECISION} ({format_distance(MIN_PRECISION)})"))
        ends.addStretch(1)
        ends.addWidget(_sub_label_text(f"{MAX_PRECISION} ({format_distance(MAX_PRECISION)})"))
        layout.addLayout(ends)
        layout.addStretch(1)
        return w

    def _build_search_tab(self) -> QtWidgets.QWidget:
        w = QtWidgets.QWidget()
        layout = QtWidgets.QVBoxLayout(w)
        row = QtWidgets.QHBoxLayout()
        self._search_edit = QtWidgets.QLineEdit()
        self._search_edit.setPlaceholderText("Address, city or landmark")
        self._search_edit.returnPressed.connect(self._on_search)
        self._btn_search = QtWidgets.QPushButton("Search")
        self._btn_search.clicked.connect(self._on_search)
        row.addWidget(self._search_edit, 1)
        row.addWidget(self._btn_search)
        layout.addLayout(row)
        self._search_result = QtWidgets.QLabel("")
        self._search_result.setWordWrap(True)
        self._search_result.setTextInteractionFlags(QtCore.Qt.TextSelectableByMouse)
        layout.addWidget(self._search_result)
        layout.addStretch(1)
        return w

    # ── Lifecycle ─────────────────────────────────────────────────────

    def showEvent(self, event):
        super().showEvent(event)
        if not self._opened:
            self._opened = True
            # let the splitter lay the map out before reading its viewport
            QtCore.QTimer.singleShot(DELAYS.MAP_INIT_MS, self._open_session)

    def _open_session(self) -> None:
        self._map.set_ready(True)
        self._session.open()

    def closeEvent(self, event):
        self._session.close()
        self._map.set_ready(False)
        if self._store is not None:
            self._store.close()
        log.info("GeoZone shutdown complete.")
        super().closeEvent(event)

    # ── Event handlers ────────────────────────────────────────────────

    def _on_viewport_changed(self, lat: float, lng: float, zoom: float) -> None:
        self._session.on_viewport_change(Coordinate(lat, lng), zoom)

    def _on_tab_changed(self, index: int) -> None:
        if index == _TAB_OPTIMAL:
            self._session.set_mode(Mode.OPTIMAL)
        elif index == _TAB_FIXED:
            self._session.set_mode(Mode.FIXED)

    def _on_selection(self, selection: ActiveSelection) -> None:
        live = self._session.live_hash_set
        if live is not None:
            for row, p in enumerate(PRECISIONS):
                self._live_table.setItem(row, 0, QtWidgets.QTableWidgetItem(live.get(p)))
                self._live_table.setItem(row, 1, QtWidgets.QTableWidgetItem(live.labels[p]))

        if selection.is_unready:
            text, detail = "Loading...", ""
        else:
            text = selection.hash
            detail = (
                f"{format_precision_label(selection.precision)} "
                f"({PRECISION_LABELS[selection.precision]})  ·  "
                f"{format_cell_size(selection.hash)}"
            )
        target_hash, target_detail = (
            (self._fix_hash, self._fix_detail)
            if selection.mode is Mode.FIXED
            else (self._opt_hash, self._opt_detail)
        )
        target_hash.setText(text)
        target_detail.setText(detail)

        c = self._session.center
        self._map.set_info(
            f"lat {c.latitude:.5f}  lon {c.longitude:.5f}  |  "
            f"zoom {self._session.zoom:.1f}  |  {selection.mode.value}: {text}"
        )

    def _copy(self, text: str) -> None:
        if text and is_valid(text):
            QtWidgets.QApplication.clipboard().setText(text)

    def _copy_grid_geojson(self) -> None:
        fc = self._session.grid_geojson()
        QtWidgets.QApplication.clipboard().setText(json.dumps(fc, indent=2))
        log.info("Copied %d grid cells as GeoJSON", len(fc["features"]))

    def _on_search(self) -> None:
        query = self._search_edit.text()
        self._btn_search.setEnabled(False)
        self._search_result.setText("Searching...")

        threading.Thread(
            target=run_lookup,
            args=(self._session.lookup, query, self._search_done.emit, self._search_failed.emit),
            daemon=True,
            name="address-lookup",
        ).start()

    def _on_search_done(self, loc: LocationResult) -> None:
        self._btn_search.setEnabled(True)
        result = self._session.apply_location(loc)
        c = result.coordinate
        self._search_result.setText(
            f"{result.label}\n"
            f"{c.latitude:.6f}, {c.longitude:.6f}\n"
            f"geohash {result.geohash}  ({result.source})"
        )

    def _on_search_failed(self, message: str) -> None:
        self._btn_search.setEnabled(True)
        self._search_result.setText(message)


"""
GeoZone desktop application.

Usage
-----
    python -m geozone.app [--db PATH] [--lat 48.85 --lng 2.35 --zoom 12]
"""
from __future__ import annotations

import argparse
import logging
import signal
import sqlite3
import sys
from pathlib import Path
from typing import Optional

from PyQt5 import QtCore, QtGui, QtWidgets

from .config import DEFAULT_DB, DEFAULT_ZOOM
from .gui.main_window import MainWindow
from .logger import setup_logging
from .storage.preference_store import PreferenceStore

log = logging.getLogger(__name__)


def open_store(path: Path) -> Optional[PreferenceStore]:
    """Open the preference store; run without persistence if that fails."""
    try:
        return PreferenceStore(path)
    except (sqlite3.Error, OSError) as exc:
        log.warning("Preferences unavailable (%s) — using defaults", exc)
        return None


def main():
    parser = argparse.ArgumentParser(description="GeoZone — geohash zone explorer")
    parser.add_argument(
        "--db",
        type=Path,
        default=DEFAULT_DB,
        help=f"Preference database (default: {DEFAULT_DB})",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
    )
    parser.add_argument("--lat", type=float, help="Start latitude")
    parser.add_argument("--lng", type=float, help="Start longitude")
    parser.add_argument("--zoom", type=float, default=DEFAULT_ZOOM, help="Start zoom (with --lat/--lng)")
    args, remaining = parser.parse_known_args()

    setup_logging(getattr(logging, args.log_level))

    start_view = None
    if args.lat is not None and args.lng is not None:
        start_view = (args.lat, args.lng, args.zoom)

    sys.argv = sys.argv[:1] + remaining
    app = QtWidgets.QApplication(sys.argv)
    app.setStyle("Fusion")

    palette = QtGui.QPalette()
    palette.setColor(QtGui.QPalette.Window, QtGui.QColor("#060a10"))
    palette.setColor(QtGui.QPalette.WindowText, QtGui.QColor("#c0d0e0"))
    palette.setColor(QtGui.QPalette.Base, QtGui.QColor("#080c14"))
    palette.setColor(QtGui.QPalette.AlternateBase, QtGui.QColor("#060a10"))
    palette.setColor(QtGui.QPalette.Text, QtGui.QColor("#c0d0e0"))
    palette.setColor(QtGui.QPalette.Button, QtGui.QColor("#0c1624"))
    palette.setColor(QtGui.QPalette.ButtonText, QtGui.QColor("#c0d0e0"))
    palette.setColor(QtGui.QPalette.Highlight, QtGui.QColor("#00ccff"))
    app.setPalette(palette)

    win = MainWindow(store=open_store(args.db), start_view=start_view)
    win.resize(1280, 800)
    win.show()

    def _sigint_handler(*_args):
        log.info("SIGINT received — shutting down...")
        win.close()

    signal.signal(signal.SIGINT, _sigint_handler)
    signal.signal(signal.SIGTERM, _sigint_handler)

    # Qt's event loop blocks Python signal delivery; wake it periodically
    _sig_timer = QtCore.QTimer()
    _sig_timer.timeout.connect(lambda: None)
    _sig_timer.start(200)

    sys.exit(app.exec_())


if __name__ == "__main__":
    main()

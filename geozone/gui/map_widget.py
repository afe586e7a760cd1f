"""
Geohash map widget — QGraphicsScene-based world view.

Renders a plain equirectangular world (graticule + outline), the overlay
rectangles and the location marker the session asks for.  Scene
coordinates are degrees: x = longitude, y = -latitude.  Zoom follows the
slippy-map convention of 256 · 2^zoom pixels per 360° so zoom levels line
up with the precision table.

Interaction:
  - Mouse wheel zooms in/out by ``ZOOM_STEP`` anchored at the center
  - Drag pans the map
  - ``viewport_changed`` fires once the view settles (like a moveend)

``QtMapHandle`` adapts the widget to the :class:`MapHandle` boundary.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from PyQt5 import QtCore, QtGui, QtWidgets

from ..config import DEFAULT_LATITUDE, DEFAULT_LONGITUDE, DEFAULT_ZOOM
from ..geo.live_hash import Coordinate
from ..render.map_handle import Bounds, MapHandle, RectStyle, Viewport

log = logging.getLogger(__name__)

MIN_ZOOM = 0.0
MAX_ZOOM = 22.0
ZOOM_STEP = 1.0
_SETTLE_MS = 150
_MARKER_RADIUS = 6.0


def _pixels_per_degree(zoom: float) -> float:
    return 256.0 * (2.0 ** zoom) / 360.0


def _style_pen(style: RectStyle) -> QtGui.QPen:
    color = QtGui.QColor(style.color)
    color.setAlphaF(max(0.0, min(1.0, style.opacity)))
    pen = QtGui.QPen(color)
    pen.setWidthF(float(style.weight))
    pen.setCosmetic(True)
    return pen


def _style_brush(style: RectStyle) -> QtGui.QBrush:
    if not style.fill:
        return QtGui.QBrush(QtCore.Qt.NoBrush)
    color = QtGui.QColor(style.color)
    color.setAlphaF(max(0.0, min(1.0, style.fill_opacity)))
    return QtGui.QBrush(color)


class _MapView(QtWidgets.QGraphicsView):
    """Graphics view with a center crosshair and wheel zoom."""

    zoom_requested = QtCore.pyqtSignal(float)

    def __init__(self, scene: QtWidgets.QGraphicsScene, parent=None):
        super().__init__(scene, parent)
        self.setDragMode(QtWidgets.QGraphicsView.ScrollHandDrag)
        self.setRenderHint(QtGui.QPainter.Antialiasing)
        self.setHorizontalScrollBarPolicy(QtCore.Qt.ScrollBarAlwaysOff)
        self.setVerticalScrollBarPolicy(QtCore.Qt.ScrollBarAlwaysOff)
        self.setTransformationAnchor(QtWidgets.QGraphicsView.AnchorViewCenter)
        self.setResizeAnchor(QtWidgets.QGraphicsView.AnchorViewCenter)
        self.setBackgroundBrush(QtGui.QBrush(QtGui.QColor(6, 10, 16)))

    def wheelEvent(self, event):
        step = ZOOM_STEP if event.angleDelta().y() > 0 else -ZOOM_STEP
        self.zoom_requested.emit(step)
        event.accept()

    def drawForeground(self, painter: QtGui.QPainter, rect: QtCore.QRectF) -> None:
        painter.save()
        painter.resetTransform()
        c = self.viewport().rect().center()
        pen = QtGui.QPen(QtGui.QColor(0, 220, 255, 200))
        pen.setWidthF(1.5)
        painter.setPen(pen)
        painter.drawLine(c.x() - 8, c.y(), c.x() + 8, c.y())
        painter.drawLine(c.x(), c.y() - 8, c.x(), c.y() + 8)
        painter.restore()


class HashMapWidget(QtWidgets.QWidget):
    """Zoomable world map that hosts geohash overlays.

    Signals
    -------
    viewport_changed(float, float, float)
        (latitude, longitude, zoom) once a pan or zoom has settled.
    """

    viewport_changed = QtCore.pyqtSignal(float, float, float)

    def __init__(
        self,
        latitude: float = DEFAULT_LATITUDE,
        longitude: float = DEFAULT_LONGITUDE,
        zoom: float = DEFAULT_ZOOM,
        parent: Optional[QtWidgets.QWidget] = None,
    ):
        super().__init__(parent)
        self._zoom = max(MIN_ZOOM, min(MAX_ZOOM, zoom))
        self._ready = False

        self._scene = QtWidgets.QGraphicsScene(self)
        self._scene.setSceneRect(-180.0, -90.0, 360.0, 180.0)
        self._view = _MapView(self._scene, self)
        self._view.zoom_requested.connect(self._on_zoom_requested)

        self._info = QtWidgets.QLabel("")
        self._info.setStyleSheet(
            "color: #a0b8d0; font-family: monospace; font-size: 10px; "
            "padding: 2px 8px; background: #040810;"
        )

        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)
        layout.addWidget(self._view, 1)
        layout.addWidget(self._info)

        self._add_world()

        self._settle_timer = QtCore.QTimer(self)
        self._settle_timer.setSingleShot(True)
        self._settle_timer.setInterval(_SETTLE_MS)
        self._settle_timer.timeout.connect(self._emit_viewport)
        self._view.horizontalScrollBar().valueChanged.connect(self._on_scrolled)
        self._view.verticalScrollBar().valueChanged.connect(self._on_scrolled)

        self._apply_zoom()
        self._view.centerOn(longitude, -latitude)

    # ── Scene content ─────────────────────────────────────────────────

    def _add_world(self) -> None:
        grat = QtGui.QPen(QtGui.QColor(40, 60, 80, 160))
        grat.setCosmetic(True)
        grat.setWidthF(0.5)
        for lng in range(-180, 181, 15):
            self._scene.addLine(lng, -90, lng, 90, grat)
        for lat in range(-90, 91, 15):
            self._scene.addLine(-180, -lat, 180, -lat, grat)

        outline = QtGui.QPen(QtGui.QColor(120, 150, 180))
        outline.setCosmetic(True)
        outline.setWidthF(1.5)
        self._scene.addRect(QtCore.QRectF(-180.0, -90.0, 360.0, 180.0), outline)

    # ── View state ────────────────────────────────────────────────────

    @property
    def zoom(self) -> float:
        return self._zoom

    def center(self) -> Coordinate:
        p = self._view.mapToScene(self._view.viewport().rect().center())
        return Coordinate(latitude=-p.y(), longitude=p.x())

    def viewport(self) -> Viewport:
        r = self._view.mapToScene(self._view.viewport().rect()).boundingRect()
        r = r.intersected(self._scene.sceneRect())
        return Viewport(
            center=self.center(),
            zoom=self._zoom,
            south=-r.bottom(),
            west=r.left(),
            north=-r.top(),
            east=r.right(),
        )

    def set_view(self, center: Coordinate, zoom: float) -> None:
        self._zoom = max(MIN_ZOOM, min(MAX_ZOOM, zoom))
        self._apply_zoom()
        self._view.centerOn(center.longitude, -center.latitude)
        self._settle_timer.start()

    def set_ready(self, ready: bool) -> None:
        self._ready = ready

    def is_ready(self) -> bool:
        return self._ready and self.isVisible()

    def set_info(self, text: str) -> None:
        self._info.setText(text)

    def _apply_zoom(self) -> None:
        ppd = _pixels_per_degree(self._zoom)
        self._view.setTransform(QtGui.QTransform.fromScale(ppd, ppd))

    # ── Overlay items ─────────────────────────────────────────────────

    def add_rect(self, bounds: Bounds, style: RectStyle) -> QtWidgets.QGraphicsRectItem:
        (south, west), (north, east) = bounds
        item = self._scene.addRect(
            QtCore.QRectF(west, -north, east - west, north - south),
            _style_pen(style),
            _style_brush(style),
        )
        item.setZValue(10 if style.weight > 1 else 5)
        return item

    def remove_item(self, item: QtWidgets.QGraphicsItem) -> None:
        if item.scene() is self._scene:
            self._scene.removeItem(item)

    def add_marker(self, position: Coordinate, label: str) -> QtWidgets.QGraphicsItem:
        """Pin at *position* with *label* beside it and as its tooltip."""
        pin = QtWidgets.QGraphicsEllipseItem(
            -_MARKER_RADIUS, -_MARKER_RADIUS, 2 * _MARKER_RADIUS, 2 * _MARKER_RADIUS,
        )
        pin.setPen(QtGui.QPen(QtGui.QColor("#ffffff"), 1.5))
        pin.setBrush(QtGui.QBrush(QtGui.QColor("#2a81cb")))
        pin.setFlag(QtWidgets.QGraphicsItem.ItemIgnoresTransformations)
        pin.setPos(position.longitude, -position.latitude)
        pin.setZValue(20)
        pin.setToolTip(label)

        text = QtWidgets.QGraphicsSimpleTextItem(label, pin)
        text.setBrush(QtGui.QBrush(QtGui.QColor("#e0f0ff")))
        text.setPos(_MARKER_RADIUS + 4, -_MARKER_RADIUS)

        self._scene.addItem(pin)
        return pin

    # ── Event handlers ────────────────────────────────────────────────

    def _on_zoom_requested(self, step: float) -> None:
        center = self.center()
        new_zoom = max(MIN_ZOOM, min(MAX_ZOOM, self._zoom + step))
        if new_zoom == self._zoom:
            return
        self.set_view(center, new_zoom)

    def _on_scrolled(self, _value: int) -> None:
        self._settle_timer.start()

    def _emit_viewport(self) -> None:
        c = self.center()
        self.viewport_changed.emit(c.latitude, c.longitude, self._zoom)


class QtMapHandle(MapHandle):
    """:class:`MapHandle` backed by a :class:`HashMapWidget`."""

    def __init__(self, widget: HashMapWidget):
        self._widget = widget

    def is_ready(self) -> bool:
        return self._widget.is_ready()

    def draw_rectangle(self, bounds: Bounds, style: RectStyle) -> Any:
        return self._widget.add_rect(bounds, style)

    def remove(self, handle: Any) -> None:
        self._widget.remove_item(handle)

    def get_viewport(self) -> Viewport:
        return self._widget.viewport()

    def set_view(self, center: Coordinate, zoom: float) -> None:
        self._widget.set_view(center, zoom)

    def draw_marker(self, position: Coordinate, label: str) -> Any:
        return self._widget.add_marker(position, label)

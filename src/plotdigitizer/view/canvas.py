"""
Site-Plan Canvas
================
Paints the site plan with saved plots, the draft polygon and calibration
markers, and forwards clicks to the Store. It holds no geometry of its own:
every shape is re-derived from the Store on each repaint.
"""
from __future__ import annotations

from enum import StrEnum
from typing import Optional

from PySide6.QtCore import Qt, QPointF, QSize
from PySide6.QtGui import QPainter, QPen, QBrush, QColor, QPixmap, QPolygonF, QMouseEvent, QPaintEvent
from PySide6.QtWidgets import QWidget

from plotdigitizer.app.state import Store
from plotdigitizer.model.geometry_primitives import DisplayPoint


class CanvasMode(StrEnum):
    DRAW = "draw"
    CALIBRATE = "calibrate"


def _qpoint(p: DisplayPoint) -> QPointF:
    return QPointF(p.x, p.y)


class SitePlanCanvas(QWidget):
    def __init__(self, store: Store, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.store = store
        self.mode = CanvasMode.DRAW
        self._pixmap: Optional[QPixmap] = None

        self.setCursor(Qt.CursorShape.CrossCursor)

        for signal in (store.draft_changed, store.plots_changed,
                       store.calibration_changed, store.session_changed):
            signal.connect(lambda *_: self.update())
        store.image_changed.connect(self._on_image_changed)

    def set_mode(self, mode: CanvasMode) -> None:
        if mode == self.mode:
            return
        self.mode = mode
        self.updateGeometry()
        self.update()

    def _max_box(self):
        return self.store.drawer_box if self.mode == CanvasMode.DRAW else self.store.calibration_box

    def _on_image_changed(self, *_) -> None:
        path = self.store.venture.image_path
        self._pixmap = QPixmap(path) if path else None
        self.updateGeometry()
        self.update()

    def sizeHint(self) -> QSize:
        size = self.store.venture.display_size(self._max_box())
        return QSize(size.width, size.height)

    # ---- input ----

    def mousePressEvent(self, event: QMouseEvent) -> None:
        if event.button() != Qt.MouseButton.LeftButton:
            return
        pos = event.position()
        point = DisplayPoint(pos.x(), pos.y())
        if self.mode == CanvasMode.DRAW:
            self.store.add_vertex(point)
        else:
            self.store.calibration_click(point)

    # ---- painting ----

    def paintEvent(self, event: QPaintEvent) -> None:
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)

        size = self.store.venture.display_size(self._max_box())
        if self._pixmap is not None and not self._pixmap.isNull():
            painter.drawPixmap(0, 0, size.width, size.height, self._pixmap)
        else:
            painter.fillRect(0, 0, size.width, size.height, QColor("#f1f5f9"))

        if self.mode == CanvasMode.DRAW:
            self._paint_plots(painter)
            self._paint_draft(painter)
        else:
            self._paint_markers(painter)
        painter.end()

    def _paint_plots(self, painter: QPainter) -> None:
        painter.setPen(QPen(QColor("green"), 2))
        painter.setBrush(QBrush(QColor(0, 255, 0, 26)))
        for shape in self.store.plot_shapes():
            painter.drawPolygon(QPolygonF([_qpoint(p) for p in shape.points]))
            painter.drawText(_qpoint(shape.label_anchor), shape.label)

    def _paint_draft(self, painter: QPainter) -> None:
        shape = self.store.draft_shape()
        if not shape.points:
            return
        pen = QPen(QColor("red"), 3)
        pen.setStyle(Qt.PenStyle.DashLine)
        painter.setPen(pen)
        painter.setBrush(Qt.BrushStyle.NoBrush)
        polygon = QPolygonF([_qpoint(p) for p in shape.points])
        if shape.closed:
            painter.drawPolygon(polygon)
        else:
            painter.drawPolyline(polygon)

    def _paint_markers(self, painter: QPainter) -> None:
        markers = self.store.calibration_markers()
        if markers.origin is not None:
            painter.setPen(QPen(QColor("white"), 2))
            painter.setBrush(QBrush(QColor("#ef4444")))
            painter.drawEllipse(_qpoint(markers.origin), 8, 8)
            painter.setPen(QPen(QColor("#ef4444")))
            painter.drawText(_qpoint(markers.origin) + QPointF(16, -8), "Origin")

        painter.setPen(QPen(QColor("#3b82f6"), 3))
        painter.setBrush(QBrush(QColor("#3b82f6")))
        for p in markers.scale_points:
            painter.drawEllipse(_qpoint(p), 6, 6)
        if markers.scale_line is not None:
            a, b = markers.scale_line
            painter.drawLine(_qpoint(a), _qpoint(b))
        if markers.scale_label and markers.scale_label_anchor is not None:
            painter.drawText(_qpoint(markers.scale_label_anchor) + QPointF(0, -20), markers.scale_label)

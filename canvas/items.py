"""
canvas/items.py

Graphics items rendering drawings on the map scene: one overlay item per
drawing (shape chosen by geometry kind), a tooltip popup, and draggable
vertex handles for the drawing under edit.

Scene coordinates are a plain lat/lng projection: x = lng * scale,
y = -lat * scale, with ``scale`` scene units per degree.
"""

from __future__ import annotations

import html
from typing import Callable, Dict, List, Optional, Tuple

from PyQt6.QtCore import Qt, QPointF, QRectF
from PyQt6.QtGui import QBrush, QColor, QFont, QPainterPath, QPen, QPolygonF
from PyQt6.QtWidgets import (
    QGraphicsEllipseItem,
    QGraphicsItem,
    QGraphicsPathItem,
    QGraphicsPolygonItem,
    QGraphicsRectItem,
    QGraphicsSimpleTextItem,
)

from icons import ICON_KINDS, priority_meta
from models import (
    Circle,
    Drawing,
    IconMarker,
    Marker,
    Polygon,
    Polyline,
    Rectangle,
)
from settings import get_settings
from utils import LatLng, meters_to_degrees

# QGraphicsItem.data() key holding the drawing id
DRAWING_ID_KEY = 0

# Z layers
Z_OVERLAY = 10
Z_INCIDENT = 5
Z_PREVIEW = 900
Z_HANDLE = 1000


# =============================================================================
# Settings helpers
# =============================================================================

def _overlay():
    return get_settings().settings.canvas.overlay


def _get_scale() -> float:
    """Get scene units per degree from settings. Default: 10000.0."""
    return _overlay().scene_scale


def _get_handle_size() -> float:
    """Get handle size from settings. Default: 12.0 pixels."""
    return get_settings().settings.canvas.handles.size


def _get_handle_border_color() -> QColor:
    """Get handle border color from settings. Default: #0F172A (slate)."""
    return QColor(get_settings().settings.canvas.handles.border_color)


def _get_handle_fill_color() -> QColor:
    """Get handle fill color from settings. Default: #FFFFFF (white)."""
    return QColor(get_settings().settings.canvas.handles.fill_color)


def qcolor(hex_color: str, alpha: Optional[float] = None) -> QColor:
    """QColor from a hex string, with optional alpha in 0..1."""
    c = QColor(hex_color)
    if not c.isValid():
        c = QColor("#64748b")
    if alpha is not None:
        c.setAlphaF(max(0.0, min(1.0, alpha)))
    return c


def cosmetic_pen(color: QColor, width: float, style: Qt.PenStyle = Qt.PenStyle.SolidLine) -> QPen:
    """Pen whose width is in screen pixels regardless of zoom."""
    pen = QPen(color, width, style)
    pen.setCosmetic(True)
    return pen


# =============================================================================
# Projection
# =============================================================================

def latlng_to_scene(point: LatLng, scale: Optional[float] = None) -> QPointF:
    if scale is None:
        scale = _get_scale()
    return QPointF(point[1] * scale, -point[0] * scale)


def scene_to_latlng(pos: QPointF, scale: Optional[float] = None) -> LatLng:
    if scale is None:
        scale = _get_scale()
    return (-pos.y() / scale, pos.x() / scale)


# =============================================================================
# Popup
# =============================================================================

def popup_fields(drawing: Drawing) -> List[Tuple[str, str]]:
    """
    Ordered (field, text) rows of a drawing's popup.

    Name (or "Sin nombre") and the category label are always present;
    description and the resources note only when filled in.
    """
    rows = [
        ("name", drawing.name.strip() or "Sin nombre"),
        ("category", drawing.category_label),
    ]
    if drawing.description.strip():
        rows.append(("description", drawing.description))
    if drawing.resources_note.strip():
        rows.append(("resources", f"Recursos: {drawing.resources_note}"))
    return rows


def popup_html(drawing: Drawing) -> str:
    """Tooltip HTML for a drawing."""
    parts = []
    for key, text in popup_fields(drawing):
        text = html.escape(text)
        if key == "name":
            parts.append(f"<b>{text}</b>")
        elif key == "category":
            color = html.escape(drawing.display_color)
            parts.append(f"<span style='color:{color}'>{text}</span>")
        else:
            parts.append(f"<span style='color:#64748b'>{text}</span>")
    prio = priority_meta(drawing.priority)
    parts.append(f"<small style='color:{prio.color}'>Prioridad: {html.escape(prio.label)}</small>")
    return "<br>".join(parts)


# =============================================================================
# Overlay items
# =============================================================================

class DrawingItemMixin:
    """Common setup for the overlay item of one drawing."""

    drawing_id: str

    def _init_drawing(self, drawing: Drawing, on_activate: Optional[Callable[[str], None]] = None):
        self.drawing_id = drawing.id
        self._on_activate = on_activate
        self.setData(DRAWING_ID_KEY, drawing.id)
        self.setToolTip(popup_html(drawing))
        self.setZValue(Z_OVERLAY)
        self.setFlag(QGraphicsItem.GraphicsItemFlag.ItemIsSelectable, True)

    def _apply_area_style(self, drawing: Drawing):
        ov = _overlay()
        self.setPen(cosmetic_pen(qcolor(drawing.display_color), ov.line_width))
        self.setBrush(QBrush(qcolor(drawing.display_color, ov.fill_opacity)))

    def mouseDoubleClickEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton and self._on_activate:
            self._on_activate(self.drawing_id)
            event.accept()
            return
        super().mouseDoubleClickEvent(event)


class MarkerItem(DrawingItemMixin, QGraphicsEllipseItem):
    """Fixed-size dot at a point."""

    def __init__(self, drawing: Drawing, on_activate=None):
        size = _overlay().marker_size
        QGraphicsEllipseItem.__init__(self, -size / 2, -size / 2, size, size)
        self._init_drawing(drawing, on_activate)
        self.setFlag(QGraphicsItem.GraphicsItemFlag.ItemIgnoresTransformations, True)
        self.setPos(latlng_to_scene(drawing.geometry.point))
        self.setPen(cosmetic_pen(QColor("#FFFFFF"), 2))
        self.setBrush(QBrush(qcolor(drawing.display_color)))


class IconMarkerItem(DrawingItemMixin, QGraphicsEllipseItem):
    """Round badge with the icon glyph, colored by the icon kind."""

    def __init__(self, drawing: Drawing, on_activate=None):
        size = _overlay().icon_size
        QGraphicsEllipseItem.__init__(self, -size / 2, -size / 2, size, size)
        self._init_drawing(drawing, on_activate)
        self.setFlag(QGraphicsItem.GraphicsItemFlag.ItemIgnoresTransformations, True)
        self.setPos(latlng_to_scene(drawing.geometry.point))

        icon = ICON_KINDS[drawing.geometry.icon_key]
        self.setPen(cosmetic_pen(QColor("#FFFFFF"), 2))
        self.setBrush(QBrush(qcolor(icon.color)))

        self.glyph = QGraphicsSimpleTextItem(icon.glyph, self)
        font = QFont()
        font.setPixelSize(int(size * 0.6))
        self.glyph.setFont(font)
        br = self.glyph.boundingRect()
        self.glyph.setPos(-br.width() / 2, -br.height() / 2)


class CircleItem(DrawingItemMixin, QGraphicsEllipseItem):
    """Circle with a radius in meters, projected around its center."""

    def __init__(self, drawing: Drawing, on_activate=None):
        geom: Circle = drawing.geometry
        scale = _get_scale()
        dlat, dlng = meters_to_degrees(geom.radius_m, geom.center_point[0])
        c = latlng_to_scene(geom.center_point, scale)
        rx, ry = dlng * scale, dlat * scale
        QGraphicsEllipseItem.__init__(self, QRectF(c.x() - rx, c.y() - ry, 2 * rx, 2 * ry))
        self._init_drawing(drawing, on_activate)
        self._apply_area_style(drawing)


class PolygonItem(DrawingItemMixin, QGraphicsPolygonItem):
    def __init__(self, drawing: Drawing, on_activate=None):
        scale = _get_scale()
        poly = QPolygonF([latlng_to_scene(v, scale) for v in drawing.geometry.vertices])
        QGraphicsPolygonItem.__init__(self, poly)
        self._init_drawing(drawing, on_activate)
        self._apply_area_style(drawing)


class PolylineItem(DrawingItemMixin, QGraphicsPathItem):
    def __init__(self, drawing: Drawing, on_activate=None):
        scale = _get_scale()
        pts = [latlng_to_scene(v, scale) for v in drawing.geometry.vertices]
        path = QPainterPath(pts[0])
        for p in pts[1:]:
            path.lineTo(p)
        QGraphicsPathItem.__init__(self, path)
        self._init_drawing(drawing, on_activate)
        self.setPen(cosmetic_pen(qcolor(drawing.display_color), _overlay().polyline_width))
        self.setBrush(QBrush(Qt.BrushStyle.NoBrush))


class RectangleItem(DrawingItemMixin, QGraphicsRectItem):
    def __init__(self, drawing: Drawing, on_activate=None):
        scale = _get_scale()
        geom: Rectangle = drawing.geometry
        rect = QRectF(latlng_to_scene(geom.corner1, scale), latlng_to_scene(geom.corner2, scale))
        QGraphicsRectItem.__init__(self, rect.normalized())
        self._init_drawing(drawing, on_activate)
        self._apply_area_style(drawing)


OVERLAY_ITEM_TYPES: Dict[type, type] = {
    Marker: MarkerItem,
    IconMarker: IconMarkerItem,
    Circle: CircleItem,
    Polygon: PolygonItem,
    Polyline: PolylineItem,
    Rectangle: RectangleItem,
}


def make_overlay_item(drawing: Drawing,
                      on_activate: Optional[Callable[[str], None]] = None) -> QGraphicsItem:
    """Create the overlay item for a drawing.

    Raises:
        TypeError: If the geometry type has no overlay item.
    """
    cls = OVERLAY_ITEM_TYPES.get(type(drawing.geometry))
    if cls is None:
        raise TypeError(f"No overlay item for {type(drawing.geometry).__name__}")
    return cls(drawing, on_activate)


# =============================================================================
# Vertex handles
# =============================================================================

class VertexHandleItem(QGraphicsRectItem):
    """
    Draggable square over one control point of the drawing under edit.

    Reports the new lat/lng of the handle through ``on_moved(index, point)``
    while it is dragged.
    """

    def __init__(self, index: int, point: LatLng,
                 on_moved: Callable[[int, LatLng], None]):
        size = _get_handle_size()
        super().__init__(-size / 2, -size / 2, size, size)
        self.index = index
        self._on_moved = on_moved
        self._placing = True
        self.setPen(QPen(_get_handle_border_color(), 1.5))
        self.setBrush(QBrush(_get_handle_fill_color()))
        self.setZValue(Z_HANDLE)
        self.setCursor(Qt.CursorShape.CrossCursor)
        self.setFlags(
            QGraphicsItem.GraphicsItemFlag.ItemIsMovable
            | QGraphicsItem.GraphicsItemFlag.ItemIgnoresTransformations
            | QGraphicsItem.GraphicsItemFlag.ItemSendsGeometryChanges
        )
        self.setPos(latlng_to_scene(point))
        self._placing = False

    def itemChange(self, change, value):
        if change == QGraphicsItem.GraphicsItemChange.ItemPositionHasChanged and not self._placing:
            self._on_moved(self.index, scene_to_latlng(self.pos()))
        return super().itemChange(change, value)


def make_vertex_handles(drawing: Drawing,
                        on_moved: Callable[[int, LatLng], None]) -> List[VertexHandleItem]:
    """One handle per control point (the circle radius has no handle)."""
    return [
        VertexHandleItem(i, pt, on_moved)
        for i, pt in enumerate(drawing.geometry.control_points())
    ]


# =============================================================================
# Incident context
# =============================================================================

def make_incident_items(point: LatLng, radius_m: float, name: str = "") -> List[QGraphicsItem]:
    """Incident marker plus its dashed radius ring."""
    scale = _get_scale()
    c = latlng_to_scene(point, scale)
    dlat, dlng = meters_to_degrees(radius_m, point[0])
    rx, ry = dlng * scale, dlat * scale

    ring = QGraphicsEllipseItem(QRectF(c.x() - rx, c.y() - ry, 2 * rx, 2 * ry))
    ring.setPen(cosmetic_pen(QColor("#ef4444"), 2, Qt.PenStyle.DashLine))
    ring.setBrush(QBrush(qcolor("#ef4444", 0.1)))
    ring.setZValue(Z_INCIDENT)

    size = _overlay().icon_size
    marker = QGraphicsEllipseItem(-size / 2, -size / 2, size, size)
    marker.setFlag(QGraphicsItem.GraphicsItemFlag.ItemIgnoresTransformations, True)
    marker.setPos(c)
    marker.setPen(cosmetic_pen(QColor("#FFFFFF"), 2))
    marker.setBrush(QBrush(QColor("#dc2626")))
    marker.setZValue(Z_INCIDENT + 1)
    if name:
        marker.setToolTip(f"<b>{html.escape(name)}</b>")
    return [ring, marker]

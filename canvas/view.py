"""
canvas/view.py

QGraphicsView for the map: wheel zoom, hand panning when no draw mode is
armed, and slippy-map style zoom levels.
"""

from __future__ import annotations

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QPainter
from PyQt6.QtWidgets import QGraphicsView

from canvas.items import _get_scale, latlng_to_scene
from canvas.scene import MapScene
from settings import get_settings
from utils import LatLng

# Pixels per degree at zoom level 0 (256 px tiles spanning 360 degrees)
_PX_PER_DEGREE_Z0 = 256.0 / 360.0


def zoom_to_view_scale(zoom: float, scene_scale: float) -> float:
    """View transform scale that shows a web map zoom level."""
    return _PX_PER_DEGREE_Z0 * (2.0 ** zoom) / scene_scale


class MapView(QGraphicsView):
    """
    Graphics view over a MapScene.

    - Mouse wheel zooms around the cursor.
    - With no draw mode armed, dragging the background pans the map.
    """

    def __init__(self, scene: MapScene, parent=None):
        super().__init__(scene, parent)
        self.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        self.setTransformationAnchor(QGraphicsView.ViewportAnchor.AnchorUnderMouse)
        self.setResizeAnchor(QGraphicsView.ViewportAnchor.AnchorViewCenter)
        self.setDragMode(QGraphicsView.DragMode.ScrollHandDrag)

    def sync_drag_mode(self, drawing: bool) -> None:
        """Pan with the mouse only while no draw mode is armed."""
        if drawing:
            self.setDragMode(QGraphicsView.DragMode.NoDrag)
            self.viewport().setCursor(Qt.CursorShape.CrossCursor)
        else:
            self.setDragMode(QGraphicsView.DragMode.ScrollHandDrag)
            self.viewport().unsetCursor()

    def wheelEvent(self, event):
        """Zoom with mouse wheel."""
        delta = event.angleDelta().y()
        # Zoom factor from settings. Default: 1.15 (15% per scroll step)
        zoom_factor = get_settings().settings.canvas.zoom.wheel_factor
        factor = zoom_factor if delta > 0 else 1 / zoom_factor
        self.scale(factor, factor)

    def center_on(self, point: LatLng) -> None:
        """Center the viewport on a lat/lng point."""
        self.centerOn(latlng_to_scene(point))

    def set_zoom(self, zoom: float) -> None:
        """Set the transform to a web map zoom level."""
        s = zoom_to_view_scale(zoom, _get_scale())
        self.resetTransform()
        self.scale(s, s)

    def show_view(self, center: LatLng, zoom: float) -> None:
        self.set_zoom(zoom)
        self.center_on(center)

    def zoom_fit(self):
        """Zoom to fit every item in the view."""
        scene_rect = self.scene().itemsBoundingRect()
        if not scene_rect.isNull() and not scene_rect.isEmpty():
            margin = max(scene_rect.width(), scene_rect.height()) * 0.05
            scene_rect = scene_rect.adjusted(-margin, -margin, margin, margin)
            self.fitInView(scene_rect, Qt.AspectRatioMode.KeepAspectRatio)

    def zoom_in(self):
        """Zoom in by the configured factor."""
        zoom_factor = get_settings().settings.canvas.zoom.wheel_factor
        self.scale(zoom_factor, zoom_factor)

    def zoom_out(self):
        """Zoom out by the configured factor."""
        zoom_factor = get_settings().settings.canvas.zoom.wheel_factor
        self.scale(1 / zoom_factor, 1 / zoom_factor)

"""
canvas/scene.py

QGraphicsScene routing map input to an AnnotationController and showing
the drawing collection, the sketch in progress and the edit handles.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

from PyQt6.QtCore import Qt, QPointF
from PyQt6.QtGui import QAction, QColor, QPainterPath, QTransform
from PyQt6.QtWidgets import QGraphicsItem, QGraphicsPathItem, QGraphicsScene, QMenu

from canvas.items import (
    DRAWING_ID_KEY,
    Z_PREVIEW,
    cosmetic_pen,
    latlng_to_scene,
    make_incident_items,
    make_overlay_item,
    make_vertex_handles,
    scene_to_latlng,
)
from debug_trace import trace
from models import Drawing, Mode
from settings import get_settings
from utils import LatLng

if TYPE_CHECKING:
    from controller import AnnotationController

log = logging.getLogger(__name__)


class MapScene(QGraphicsScene):
    """
    Map scene bound to one AnnotationController.

    Input:
    - Left click / double-click feed the armed draw mode.
    - Escape cancels the sketch, or discards the vertex edit.
    - Double-click on a drawing (no mode armed) opens its metadata.
    - Right-click on a drawing shows Edit / Edit points / Center / Delete.
    """

    def __init__(self, controller: "AnnotationController", parent=None):
        super().__init__(parent)
        self.controller = controller
        self._overlays: Dict[str, QGraphicsItem] = {}
        self._handles: List[QGraphicsItem] = []
        self._incident_items: List[QGraphicsItem] = []
        self._preview: Optional[QGraphicsPathItem] = None
        self._on_edit_started: Optional[Callable[[str], None]] = None
        self._on_state_changed: Optional[Callable[[], None]] = None

    def configure_linkage(
        self,
        on_edit_started: Optional[Callable[[str], None]] = None,
        on_state_changed: Optional[Callable[[], None]] = None,
    ):
        """
        Configure UI callbacks.

        Args:
            on_edit_started: Called with the drawing id when a vertex edit
                starts from the context menu.
            on_state_changed: Called after any input that may change the
                toolbar state (mode, sketch, edit session).
        """
        self._on_edit_started = on_edit_started
        self._on_state_changed = on_state_changed

    # ---- Rendering ----

    def rebuild(self, drawings: Optional[List[Drawing]] = None) -> None:
        """Recreate every overlay from the collection (plus edit handles)."""
        if drawings is None:
            drawings = self.controller.drawings
        self._clear_handles()
        for item in self._overlays.values():
            self.removeItem(item)
        self._overlays.clear()

        for drawing in drawings:
            self._add_overlay(self.controller.display_drawing(drawing))
        self._add_handles()
        trace(f"scene rebuilt with {len(drawings)} drawing(s)", "SCENE")

    def refresh_drawing(self, drawing_id: str) -> None:
        """Replace one overlay (handles are left alone)."""
        old = self._overlays.pop(drawing_id, None)
        if old is not None:
            self.removeItem(old)
        drawing = self.controller.store.get(drawing_id)
        if drawing is not None:
            self._add_overlay(self.controller.display_drawing(drawing))

    def show_incident(self) -> None:
        """Draw the incident marker and ring, if the incident has a location."""
        for item in self._incident_items:
            self.removeItem(item)
        self._incident_items = []
        incident = self.controller.incident
        if incident.coordinates is None:
            return
        radius = get_settings().settings.general.incident_radius_m
        self._incident_items = make_incident_items(incident.coordinates, radius, incident.name)
        for item in self._incident_items:
            self.addItem(item)

    def _add_overlay(self, drawing: Drawing) -> None:
        item = make_overlay_item(drawing, self._activate)
        self.addItem(item)
        self._overlays[drawing.id] = item

    def _add_handles(self) -> None:
        working = self.controller.vertex_editor.working
        if working is None:
            return
        self._handles = make_vertex_handles(working, self._handle_moved)
        for h in self._handles:
            self.addItem(h)

    def _clear_handles(self) -> None:
        for h in self._handles:
            self.removeItem(h)
        self._handles = []

    def overlay_for(self, drawing_id: str) -> Optional[QGraphicsItem]:
        return self._overlays.get(drawing_id)

    def _handle_moved(self, index: int, point: LatLng) -> None:
        drawing_id = self.controller.vertex_editor.active_id
        if drawing_id is not None and self.controller.drag_vertex(index, point):
            self.refresh_drawing(drawing_id)

    # ---- Sketch preview ----

    def _update_preview(self, cursor: Optional[QPointF] = None) -> None:
        points = self.controller.builder.pending_points
        if not points:
            self.clear_preview()
            return
        path = QPainterPath(latlng_to_scene(points[0]))
        for pt in points[1:]:
            path.lineTo(latlng_to_scene(pt))
        if cursor is not None:
            path.lineTo(cursor)

        if self._preview is None:
            self._preview = QGraphicsPathItem()
            self._preview.setPen(cosmetic_pen(QColor(80, 80, 255, 180), 1.5, Qt.PenStyle.DashLine))
            self._preview.setZValue(Z_PREVIEW)
            self.addItem(self._preview)
        self._preview.setPath(path)

    def clear_preview(self) -> None:
        if self._preview is not None:
            self.removeItem(self._preview)
            self._preview = None

    def _notify_state(self) -> None:
        if self._on_state_changed:
            self._on_state_changed()

    # ---- Events ----

    def keyPressEvent(self, event):
        if event.key() == Qt.Key.Key_Escape:
            if self.controller.builder.is_armed:
                self.controller.cancel_sketch()
                self.clear_preview()
                self._notify_state()
                event.accept()
                return
            if self.controller.vertex_editor.is_active:
                self.controller.discard_vertex_edit()
                self.rebuild()
                self._notify_state()
                event.accept()
                return
        super().keyPressEvent(event)

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton and self.controller.builder.is_armed:
            self.controller.click(scene_to_latlng(event.scenePos()))
            self._update_preview(event.scenePos())
            self._notify_state()
            event.accept()
            return

        if event.button() == Qt.MouseButton.RightButton and not self.controller.builder.is_armed:
            drawing_id = self._drawing_at(event.scenePos())
            if drawing_id is not None:
                self._show_context_menu(event.screenPos(), drawing_id)
                event.accept()
                return

        super().mousePressEvent(event)

    def mouseDoubleClickEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton and self.controller.builder.is_armed:
            mode = self.controller.mode
            if mode in (Mode.POLYGON, Mode.POLYLINE):
                self.controller.double_click(scene_to_latlng(event.scenePos()))
            else:
                # The second press of a double-click is a plain click elsewhere
                self.controller.click(scene_to_latlng(event.scenePos()))
            self._update_preview(event.scenePos())
            self._notify_state()
            event.accept()
            return
        super().mouseDoubleClickEvent(event)

    def mouseMoveEvent(self, event):
        if self.controller.builder.has_pending:
            self._update_preview(event.scenePos())
            event.accept()
            return
        super().mouseMoveEvent(event)

    def _drawing_at(self, pos: QPointF) -> Optional[str]:
        item = self.itemAt(pos, self.views()[0].transform() if self.views() else QTransform())
        while item is not None:
            drawing_id = item.data(DRAWING_ID_KEY)
            if drawing_id:
                return drawing_id
            item = item.parentItem()
        return None

    def _activate(self, drawing_id: str) -> None:
        if self.controller.builder.is_armed:
            return
        self.controller.edit_metadata(drawing_id)

    def _show_context_menu(self, screen_pos, drawing_id: str):
        menu = QMenu()

        edit_act = QAction("Editar datos", menu)
        edit_act.triggered.connect(lambda: self.controller.edit_metadata(drawing_id))
        menu.addAction(edit_act)

        points_act = QAction("Editar puntos", menu)
        points_act.triggered.connect(lambda: self._start_vertex_edit(drawing_id))
        menu.addAction(points_act)

        center_act = QAction("Centrar mapa", menu)
        center_act.triggered.connect(lambda: self.controller.locate(drawing_id))
        menu.addAction(center_act)

        menu.addSeparator()
        delete_act = QAction("Eliminar", menu)
        delete_act.triggered.connect(lambda: self.controller.delete(drawing_id))
        menu.addAction(delete_act)

        menu.exec(screen_pos)

    def _start_vertex_edit(self, drawing_id: str) -> None:
        self.controller.start_vertex_edit(drawing_id)
        self.clear_preview()
        self.rebuild()
        if self._on_edit_started:
            self._on_edit_started(drawing_id)
        self._notify_state()

"""
controller.py

One AnnotationController per map view. It owns the draw state machine, the
vertex edit session, the metadata form and the drawing store, and routes
UI events between them:

    select_mode -> click/double_click -> (shape completed) metadata form
    -> save_metadata -> on_drawings_change(new list)

Editing an existing drawing goes through start_vertex_edit / drag_vertex /
commit_vertex_edit, or edit_metadata / save_metadata for its fields.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Optional

from canvas.builder import GeometryBuilder
from canvas.vertex_editor import EditSession, VertexEditor
from debug_trace import trace, trace_call
from models import (
    Drawing,
    Geometry,
    IncidentContext,
    MODE_HINTS,
    Resource,
)
from properties.metadata import LinkOutcome, MetadataEditor
from settings import get_settings
from store import DrawingsCallback, DrawingStore
from utils import LatLng

log = logging.getLogger(__name__)


class AnnotationController:
    """
    Glue between UI events and the annotation state machines.

    Args:
        drawings: Current drawing collection (owned by the caller).
        on_drawings_change: Receives the next collection after each commit
            or delete.
        resources: External resources available for linking.
        incident: Incident the map is centered on, if any.
    """

    def __init__(
        self,
        drawings: Optional[Iterable[Drawing]] = None,
        on_drawings_change: Optional[DrawingsCallback] = None,
        resources: Iterable[Resource] = (),
        incident: Optional[IncidentContext] = None,
    ):
        self.store = DrawingStore(drawings, on_drawings_change)
        self.builder = GeometryBuilder(on_complete=self._on_shape_completed)
        self.vertex_editor = VertexEditor(self.store)
        self.metadata = MetadataEditor(self.store, resources)
        self.incident = incident or IncidentContext()

        self._on_metadata_requested: Optional[Callable[[MetadataEditor], None]] = None
        self._on_center_requested: Optional[Callable[[LatLng], None]] = None

    def configure_linkage(
        self,
        on_metadata_requested: Optional[Callable[[MetadataEditor], None]] = None,
        on_center_requested: Optional[Callable[[LatLng], None]] = None,
    ):
        """
        Configure UI callbacks.

        Args:
            on_metadata_requested: Called when the metadata form should be
                shown (a shape was completed or an edit was requested).
            on_center_requested: Called with a point the map should center on.
        """
        self._on_metadata_requested = on_metadata_requested
        self._on_center_requested = on_center_requested

    # ---- Collection ----

    @property
    def drawings(self) -> List[Drawing]:
        return self.store.drawings

    def set_drawings(self, drawings: Iterable[Drawing]) -> None:
        """Take a new collection value from the caller (e.g. after a reload)."""
        self.store.reset(drawings)
        if self.vertex_editor.is_active and self.vertex_editor.active_id not in self.store:
            self.vertex_editor.discard()

    def set_resources(self, resources: Iterable[Resource]) -> None:
        self.metadata.set_resources(resources)

    def initial_view(self):
        """(center, zoom) for the map when it first opens."""
        general = get_settings().settings.general
        return self.incident.initial_view(
            (general.default_center_lat, general.default_center_lng),
            general.default_zoom,
            general.incident_zoom,
        )

    # ---- Drawing ----

    @property
    def mode(self) -> str:
        return self.builder.mode

    @property
    def mode_hint(self) -> str:
        return MODE_HINTS.get(self.builder.mode, "")

    @trace_call("MODE")
    def select_mode(self, mode: str, icon_key: Optional[str] = None) -> None:
        """Arm a draw mode. Open edit sessions stay open; the sketch is reset."""
        self.builder.begin(mode, icon_key)

    def cancel_sketch(self) -> None:
        self.builder.cancel()

    def click(self, point: Any) -> Optional[Geometry]:
        return self.builder.on_click(point)

    def double_click(self, point: Any) -> Optional[Geometry]:
        return self.builder.on_double_click(point)

    def _on_shape_completed(self, geometry: Geometry) -> None:
        trace(f"shape completed: {geometry.kind}", "DRAW")
        if self.metadata.is_open:
            log.warning("Metadata form replaced by a new %s before saving", geometry.kind)
        self.metadata.open(geometry)
        if self._on_metadata_requested:
            self._on_metadata_requested(self.metadata)

    # ---- Metadata ----

    def edit_metadata(self, drawing_id: str) -> None:
        """Open the metadata form for an existing drawing.

        Raises:
            KeyError: If no drawing has this id.
        """
        drawing = self.store.get(drawing_id)
        if drawing is None:
            raise KeyError(drawing_id)
        self.metadata.open(drawing)
        if self._on_metadata_requested:
            self._on_metadata_requested(self.metadata)

    def link_resource(self, resource_id: Optional[str]) -> LinkOutcome:
        """Link a resource in the open form; on a duplicate, center on the existing drawing."""
        outcome = self.metadata.link_resource(resource_id)
        if outcome.status == "duplicate" and outcome.drawing_id is not None:
            self.locate(outcome.drawing_id)
        return outcome

    @trace_call("METADATA")
    def save_metadata(self) -> Optional[Drawing]:
        return self.metadata.commit()

    def cancel_metadata(self) -> None:
        self.metadata.cancel()

    # ---- Vertex editing ----

    @trace_call("EDIT")
    def start_vertex_edit(self, drawing_id: str) -> EditSession:
        """Open an edit session; any pending sketch is discarded first."""
        self.builder.cancel()
        return self.vertex_editor.start_edit(drawing_id)

    def drag_vertex(self, handle, value) -> bool:
        return self.vertex_editor.drag_vertex(handle, value)

    def set_radius(self, radius_m) -> bool:
        return self.vertex_editor.set_radius(radius_m)

    @trace_call("EDIT")
    def commit_vertex_edit(self) -> Optional[Drawing]:
        return self.vertex_editor.commit()

    def discard_vertex_edit(self) -> None:
        self.vertex_editor.discard()

    def display_drawing(self, drawing: Drawing) -> Drawing:
        """The version of a drawing to render: the working copy while under edit."""
        working = self.vertex_editor.working
        if working is not None and working.id == drawing.id:
            return working
        return drawing

    # ---- Delete / locate ----

    @trace_call("DELETE")
    def delete(self, drawing_id: str) -> bool:
        """Remove a drawing, ending any session that targets it."""
        if self.vertex_editor.is_editing(drawing_id):
            self.vertex_editor.discard()
        if self.metadata.target_id == drawing_id:
            self.metadata.cancel()
        return self.store.remove(drawing_id)

    def locate(self, drawing_id: str) -> Optional[LatLng]:
        """Ask the view to center on a drawing. Returns the point, or None."""
        drawing = self.store.get(drawing_id)
        if drawing is None:
            return None
        point = drawing.geometry.center()
        if self._on_center_requested:
            self._on_center_requested(point)
        return point

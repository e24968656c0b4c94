"""
canvas/vertex_editor.py

In-place coordinate editing of one existing drawing.

An edit session holds a working copy of the drawing. Handle drags and the
circle radius input update only the working copy; ``commit()`` writes it
back to the store by id, ``discard()`` drops it.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional, Union

from models import Circle, Drawing
from store import DrawingStore

log = logging.getLogger(__name__)

Handle = Union[int, str]

RADIUS_FIELDS = ("radius", "radius_m")


@dataclass
class EditSession:
    """Working copy of the drawing under edit."""
    original: Drawing
    working: Drawing

    @property
    def drawing_id(self) -> str:
        return self.original.id

    @property
    def dirty(self) -> bool:
        return self.working != self.original


class VertexEditor:
    """
    Edit-session state machine for dragging a drawing's control points.

    Handles per geometry kind:
      - marker / icon: index 0 or "point"
      - circle: index 0 or "center"; the radius ("radius") takes a number
      - polygon / polyline: one index per vertex
      - rectangle: index 0/1 or "corner1"/"corner2"

    Args:
        store: Collection the session commits into.
    """

    def __init__(self, store: DrawingStore):
        self._store = store
        self._session: Optional[EditSession] = None

    @property
    def session(self) -> Optional[EditSession]:
        return self._session

    @property
    def is_active(self) -> bool:
        return self._session is not None

    @property
    def active_id(self) -> Optional[str]:
        return self._session.drawing_id if self._session else None

    @property
    def working(self) -> Optional[Drawing]:
        return self._session.working if self._session else None

    def is_editing(self, drawing_id: str) -> bool:
        return self._session is not None and self._session.drawing_id == drawing_id

    def start_edit(self, drawing: Union[Drawing, str]) -> EditSession:
        """Open a session on a drawing (object or id).

        An uncommitted session on another drawing is discarded first.

        Raises:
            KeyError: If the drawing is not in the store.
        """
        drawing_id = drawing if isinstance(drawing, str) else drawing.id
        current = self._store.get(drawing_id)
        if current is None:
            raise KeyError(drawing_id)
        if self._session is not None:
            if self._session.dirty:
                log.warning("Discarding uncommitted edit of drawing %s", self._session.drawing_id)
            self._session = None
        self._session = EditSession(original=current, working=current)
        log.debug("Edit session started for %s (%s)", drawing_id, current.kind)
        return self._session

    def drag_vertex(self, handle: Handle, value: Any) -> bool:
        """Move a control point (or set the circle radius) on the working copy.

        Args:
            handle: Control point index or handle name.
            value: New (lat, lng) point, or meters for the circle radius.

        Returns:
            True if the working copy changed, False if the input was rejected.
        """
        if self._session is None:
            log.debug("drag_vertex ignored: no active edit session")
            return False
        geometry = self._session.working.geometry

        if handle in RADIUS_FIELDS:
            return self.set_radius(value)

        index = geometry.handle_index(handle)
        if index is None:
            log.debug("drag_vertex ignored: %s has no handle %r", geometry.kind, handle)
            return False
        try:
            moved = geometry.with_control_point(index, value)
        except ValueError as e:
            log.debug("drag_vertex ignored: %s", e)
            return False
        self._session.working = self._session.working.with_geometry(moved)
        return True

    def set_radius(self, radius_m: Any) -> bool:
        """Set the radius (meters) of a circle under edit."""
        if self._session is None:
            return False
        geometry = self._session.working.geometry
        if not isinstance(geometry, Circle):
            log.debug("set_radius ignored: drawing is a %s", geometry.kind)
            return False
        try:
            r = float(radius_m)
        except (TypeError, ValueError):
            return False
        if not math.isfinite(r) or r < 0:
            return False
        self._session.working = self._session.working.with_geometry(geometry.with_radius(r))
        return True

    def commit(self) -> Optional[Drawing]:
        """Write the working copy back to the store and end the session.

        Returns:
            The committed drawing, or None if there was no session or the
            drawing was removed from the store meanwhile.
        """
        session = self._session
        if session is None:
            return None
        self._session = None
        current = self._store.get(session.drawing_id)
        if current is None:
            log.info("Drawing %s no longer exists; edit dropped", session.drawing_id)
            return None
        if not session.dirty:
            log.debug("Edit of %s committed without changes", session.drawing_id)
            return current
        # Metadata edited while the session was open is kept
        updated = current.with_geometry(session.working.geometry)
        self._store.replace(updated)
        return updated

    def discard(self) -> None:
        """End the session without touching the store."""
        if self._session is not None:
            log.debug("Edit session for %s discarded", self._session.drawing_id)
        self._session = None

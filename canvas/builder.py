"""
canvas/builder.py

Click-driven shape construction.

The builder holds the armed draw mode and the transient sketch (points
placed so far). Completed shapes are returned from the event methods and
also passed to the ``on_complete`` callback; after every completion the
mode falls back to ``Mode.NONE`` and the caller re-arms it to keep drawing.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional

from icons import ICON_KINDS
from models import (
    Circle,
    Geometry,
    IconMarker,
    Marker,
    Mode,
    Polygon,
    Polyline,
    Rectangle,
    as_latlng,
)
from settings import get_settings
from utils import LatLng, get_distance_function, same_point

log = logging.getLogger(__name__)


class GeometryBuilder:
    """
    State machine turning click/double-click events into geometries.

    Per mode:
      - marker / icon: first click emits the shape.
      - circle: first click sets the center, second click sets the radius
        (distance from the center) and emits.
      - rectangle: first click sets corner1, second click emits.
      - polygon / polyline: clicks append vertices, a double-click finalizes
        once the minimum vertex count is reached.

    Args:
        on_complete: Called with each completed geometry.
        distance_method: "haversine" or "planar"; defaults from settings.
        polygon_min_vertices: Minimum polygon vertices; defaults from settings.
        polyline_min_vertices: Minimum polyline vertices; defaults from settings.
    """

    def __init__(
        self,
        on_complete: Optional[Callable[[Geometry], None]] = None,
        distance_method: Optional[str] = None,
        polygon_min_vertices: Optional[int] = None,
        polyline_min_vertices: Optional[int] = None,
    ):
        cfg = get_settings().settings.builder
        self._on_complete = on_complete
        self._distance = get_distance_function(distance_method or cfg.distance_method)
        # Geometry invariants are a hard floor for the configured minimums
        self.polygon_min_vertices = max(
            Polygon.MIN_VERTICES,
            polygon_min_vertices if polygon_min_vertices is not None else cfg.polygon_min_vertices,
        )
        self.polyline_min_vertices = max(
            Polyline.MIN_VERTICES,
            polyline_min_vertices if polyline_min_vertices is not None else cfg.polyline_min_vertices,
        )
        self._mode = Mode.NONE
        self._icon_key: Optional[str] = None
        self._pending: List[LatLng] = []

    # ---- State ----

    @property
    def mode(self) -> str:
        return self._mode

    @property
    def icon_key(self) -> Optional[str]:
        return self._icon_key

    @property
    def pending_points(self) -> List[LatLng]:
        """Copy of the transient sketch points."""
        return list(self._pending)

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    @property
    def is_armed(self) -> bool:
        return self._mode != Mode.NONE

    # ---- Control ----

    def begin(self, mode: str, icon_key: Optional[str] = None) -> None:
        """Arm a draw mode, discarding any pending sketch.

        Args:
            mode: One of Mode.DRAW_MODES, or Mode.NONE to disarm.
            icon_key: Required for Mode.ICON; must be a key of ICON_KINDS.

        Raises:
            ValueError: Unknown mode, or missing/unknown icon key in icon mode.
        """
        if mode != Mode.NONE and mode not in Mode.DRAW_MODES:
            raise ValueError(f"Unknown draw mode: {mode!r}")
        if mode == Mode.ICON:
            if icon_key is None:
                raise ValueError("Icon mode requires an icon key")
            if icon_key not in ICON_KINDS:
                raise ValueError(f"Unknown icon key: {icon_key!r}")
        self._discard("mode change")
        self._mode = mode
        self._icon_key = icon_key if mode == Mode.ICON else None
        log.debug("Draw mode armed: %s%s", mode, f" ({icon_key})" if self._icon_key else "")

    def cancel(self) -> None:
        """Discard the pending sketch and disarm."""
        self._discard("cancel")
        self._mode = Mode.NONE
        self._icon_key = None

    def _discard(self, reason: str) -> None:
        if self._pending:
            log.debug("Discarding %d pending point(s) (%s)", len(self._pending), reason)
            self._pending.clear()

    # ---- Events ----

    def on_click(self, point: Any) -> Optional[Geometry]:
        """Feed a single click. Returns the geometry if this click completed one."""
        mode = self._mode
        if mode == Mode.NONE:
            return None
        pt = as_latlng(point)

        if mode == Mode.MARKER:
            return self._emit(Marker(pt))

        if mode == Mode.ICON:
            return self._emit(IconMarker(pt, self._icon_key))

        if mode == Mode.CIRCLE:
            if not self._pending:
                self._pending.append(pt)
                return None
            center = self._pending[0]
            return self._emit(Circle(center, self._distance(center, pt)))

        if mode == Mode.RECTANGLE:
            if not self._pending:
                self._pending.append(pt)
                return None
            return self._emit(Rectangle(self._pending[0], pt))

        # polygon / polyline
        self._pending.append(pt)
        return None

    def on_double_click(self, point: Any) -> Optional[Geometry]:
        """Feed a double-click. Finalizes a polygon or polyline.

        The double-click position is taken as the last vertex unless it
        coincides with the last placed point (the clicks that make up the
        double-click usually land there first). With too few vertices the
        shape is not emitted and the sketch stays open.
        """
        mode = self._mode
        if mode not in (Mode.POLYGON, Mode.POLYLINE):
            return None
        pt = as_latlng(point)
        if not self._pending or not same_point(self._pending[-1], pt):
            self._pending.append(pt)

        needed = self.polygon_min_vertices if mode == Mode.POLYGON else self.polyline_min_vertices
        if len(self._pending) < needed:
            log.debug("%s needs %d vertices, have %d; keep clicking",
                      mode, needed, len(self._pending))
            return None

        cls = Polygon if mode == Mode.POLYGON else Polyline
        return self._emit(cls(tuple(self._pending)))

    def _emit(self, geometry: Geometry) -> Geometry:
        self._pending.clear()
        self._mode = Mode.NONE
        self._icon_key = None
        log.debug("Shape completed: %s", geometry.kind)
        if self._on_complete:
            self._on_complete(geometry)
        return geometry

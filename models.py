"""
models.py

Data models and constants for the incident operations map annotator.

Geometry is a closed set of frozen dataclasses (Marker, IconMarker, Circle,
Polygon, Polyline, Rectangle). A Drawing wraps one geometry with the
metadata captured by the metadata form. Records serialize to the plain
dict layout the surrounding application already stores:

    {"id": "1718000000000",
     "geometry": {"type": "circle", "center": [lat, lng], "radius": 120.0},
     "name": "...", "type": "hazard_zone", "description": "...",
     "resources": "...", "priority": "medium", "color": "#ef4444",
     "resource_id": null}
"""

from __future__ import annotations

import json
import math
import threading
import time
from dataclasses import dataclass, field, fields, replace
from typing import Any, ClassVar, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from icons import ICON_KINDS, PRIORITIES, category_meta
from utils import LatLng, meters_to_degrees, normalize_hex


# ----------------------------
# Drawing mode constants
# ----------------------------

class Mode:
    """Drawing mode constants for the geometry builder."""
    NONE = "none"
    MARKER = "marker"
    ICON = "icon"
    CIRCLE = "circle"
    POLYGON = "polygon"
    POLYLINE = "polyline"
    RECTANGLE = "rectangle"

    DRAW_MODES = (MARKER, ICON, CIRCLE, POLYGON, POLYLINE, RECTANGLE)


# Helper text shown under the draw toolbar while a mode is armed
MODE_HINTS: Dict[str, str] = {
    Mode.MARKER: "Click en el mapa para colocar marcador",
    Mode.ICON: "Click en el mapa para colocar el ícono",
    Mode.CIRCLE: "Click para centro, luego click para radio",
    Mode.POLYGON: "Click para puntos, doble-click para finalizar",
    Mode.POLYLINE: "Click para puntos, doble-click para finalizar",
    Mode.RECTANGLE: "Click para esquina, luego click para finalizar",
}


def as_latlng(value: Any) -> LatLng:
    """Coerce a 2-sequence into a (lat, lng) float tuple.

    Raises:
        ValueError: If the value is not two finite numbers.
    """
    try:
        lat, lng = value
        lat, lng = float(lat), float(lng)
    except (TypeError, ValueError):
        raise ValueError(f"Expected a (lat, lng) pair, got {value!r}") from None
    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise ValueError(f"Non-finite coordinate: {value!r}")
    return (lat, lng)


# ----------------------------
# Geometry
# ----------------------------

class _GeometryBase:
    """Behavior shared by all geometry variants.

    Every variant exposes its draggable control points in a fixed order;
    ``HANDLE_NAMES`` gives symbolic names for them where the shape has a
    fixed number of points.
    """

    KIND: ClassVar[str] = ""
    HANDLE_NAMES: ClassVar[Tuple[str, ...]] = ()

    @property
    def kind(self) -> str:
        return self.KIND

    def control_points(self) -> List[LatLng]:
        raise NotImplementedError

    def with_control_point(self, index: int, point: Any):
        raise NotImplementedError

    def handle_index(self, handle: Union[int, str]) -> Optional[int]:
        """Resolve a handle index or name to a control point index, or None."""
        if isinstance(handle, bool):
            return None
        if isinstance(handle, int):
            n = len(self.control_points())
            return handle if 0 <= handle < n else None
        if isinstance(handle, str) and handle in self.HANDLE_NAMES:
            return self.HANDLE_NAMES.index(handle)
        return None

    def bounds(self) -> Tuple[LatLng, LatLng]:
        """Return ((south, west), (north, east))."""
        pts = self.control_points()
        lats = [p[0] for p in pts]
        lngs = [p[1] for p in pts]
        return (min(lats), min(lngs)), (max(lats), max(lngs))

    def center(self) -> LatLng:
        """Center of the bounding box (used to re-center the map)."""
        (s, w), (n, e) = self.bounds()
        return ((s + n) / 2.0, (w + e) / 2.0)


@dataclass(frozen=True)
class Marker(_GeometryBase):
    point: LatLng

    KIND: ClassVar[str] = Mode.MARKER
    HANDLE_NAMES: ClassVar[Tuple[str, ...]] = ("point",)

    def __post_init__(self):
        object.__setattr__(self, "point", as_latlng(self.point))

    def control_points(self) -> List[LatLng]:
        return [self.point]

    def with_control_point(self, index: int, point: Any) -> "Marker":
        return replace(self, point=as_latlng(point))

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.KIND, "coordinates": list(self.point)}


@dataclass(frozen=True)
class IconMarker(_GeometryBase):
    point: LatLng
    icon_key: str

    KIND: ClassVar[str] = Mode.ICON
    HANDLE_NAMES: ClassVar[Tuple[str, ...]] = ("point",)

    def __post_init__(self):
        object.__setattr__(self, "point", as_latlng(self.point))
        if self.icon_key not in ICON_KINDS:
            raise ValueError(f"Unknown icon key: {self.icon_key!r}")

    def control_points(self) -> List[LatLng]:
        return [self.point]

    def with_control_point(self, index: int, point: Any) -> "IconMarker":
        return replace(self, point=as_latlng(point))

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.KIND, "coordinates": list(self.point), "icon": self.icon_key}


@dataclass(frozen=True)
class Circle(_GeometryBase):
    center_point: LatLng
    radius_m: float

    KIND: ClassVar[str] = Mode.CIRCLE
    HANDLE_NAMES: ClassVar[Tuple[str, ...]] = ("center",)

    def __post_init__(self):
        object.__setattr__(self, "center_point", as_latlng(self.center_point))
        r = float(self.radius_m)
        if not math.isfinite(r) or r < 0:
            raise ValueError(f"Circle radius must be a finite value >= 0, got {self.radius_m!r}")
        object.__setattr__(self, "radius_m", r)

    def control_points(self) -> List[LatLng]:
        return [self.center_point]

    def with_control_point(self, index: int, point: Any) -> "Circle":
        return replace(self, center_point=as_latlng(point))

    def with_radius(self, radius_m: float) -> "Circle":
        return replace(self, radius_m=radius_m)

    def bounds(self) -> Tuple[LatLng, LatLng]:
        lat, lng = self.center_point
        dlat, dlng = meters_to_degrees(self.radius_m, lat)
        return (lat - dlat, lng - dlng), (lat + dlat, lng + dlng)

    def center(self) -> LatLng:
        return self.center_point

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.KIND, "center": list(self.center_point), "radius": self.radius_m}


@dataclass(frozen=True)
class _VertexPath(_GeometryBase):
    vertices: Tuple[LatLng, ...]

    MIN_VERTICES: ClassVar[int] = 2

    def __post_init__(self):
        verts = tuple(as_latlng(v) for v in self.vertices)
        if len(verts) < self.MIN_VERTICES:
            raise ValueError(
                f"{self.KIND} needs at least {self.MIN_VERTICES} vertices, got {len(verts)}"
            )
        object.__setattr__(self, "vertices", verts)

    def control_points(self) -> List[LatLng]:
        return list(self.vertices)

    def with_control_point(self, index: int, point: Any):
        verts = list(self.vertices)
        verts[index] = as_latlng(point)
        return replace(self, vertices=tuple(verts))

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.KIND, "coordinates": [list(v) for v in self.vertices]}


@dataclass(frozen=True)
class Polygon(_VertexPath):
    KIND: ClassVar[str] = Mode.POLYGON
    MIN_VERTICES: ClassVar[int] = 3


@dataclass(frozen=True)
class Polyline(_VertexPath):
    KIND: ClassVar[str] = Mode.POLYLINE
    MIN_VERTICES: ClassVar[int] = 2


@dataclass(frozen=True)
class Rectangle(_GeometryBase):
    corner1: LatLng
    corner2: LatLng

    KIND: ClassVar[str] = Mode.RECTANGLE
    HANDLE_NAMES: ClassVar[Tuple[str, ...]] = ("corner1", "corner2")

    def __post_init__(self):
        object.__setattr__(self, "corner1", as_latlng(self.corner1))
        object.__setattr__(self, "corner2", as_latlng(self.corner2))

    def control_points(self) -> List[LatLng]:
        return [self.corner1, self.corner2]

    def with_control_point(self, index: int, point: Any) -> "Rectangle":
        if index == 0:
            return replace(self, corner1=as_latlng(point))
        return replace(self, corner2=as_latlng(point))

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.KIND, "coordinates": [list(self.corner1), list(self.corner2)]}


Geometry = Union[Marker, IconMarker, Circle, Polygon, Polyline, Rectangle]

GEOMETRY_TYPES: Dict[str, type] = {
    cls.KIND: cls for cls in (Marker, IconMarker, Circle, Polygon, Polyline, Rectangle)
}

# Kinds whose color the user may override in the metadata form
COLOR_OVERRIDABLE_KINDS = frozenset({Mode.POLYGON, Mode.CIRCLE, Mode.RECTANGLE})


def geometry_from_dict(d: Dict[str, Any]) -> Geometry:
    """Build a geometry from its record dict.

    Raises:
        ValueError: If the record is malformed or of an unknown type.
    """
    if not isinstance(d, dict):
        raise ValueError(f"Geometry record must be a dict, got {type(d).__name__}")
    kind = d.get("type")
    try:
        if kind == Mode.MARKER:
            return Marker(d["coordinates"])
        if kind == Mode.ICON:
            return IconMarker(d["coordinates"], d["icon"])
        if kind == Mode.CIRCLE:
            return Circle(d["center"], d["radius"])
        if kind == Mode.POLYGON:
            return Polygon(tuple(d["coordinates"]))
        if kind == Mode.POLYLINE:
            return Polyline(tuple(d["coordinates"]))
        if kind == Mode.RECTANGLE:
            c1, c2 = d["coordinates"]
            return Rectangle(c1, c2)
    except KeyError as e:
        raise ValueError(f"{kind} geometry is missing {e.args[0]!r}") from None
    except TypeError as e:
        raise ValueError(f"Malformed {kind} geometry: {e}") from None
    raise ValueError(f"Unknown geometry type: {kind!r}")


# ----------------------------
# Drawing record
# ----------------------------

_RECORD_KEYS = {
    "id", "geometry", "name", "type", "description",
    "resources", "priority", "color", "resource_id",
}


@dataclass(frozen=True)
class Drawing:
    """A persisted map annotation.

    ``color`` is stored explicitly; ``display_color`` falls back to the
    category color when it is empty. Record keys the engine does not know
    are kept in ``extras`` so they survive a load/save round trip.
    """
    id: str
    geometry: Geometry
    name: str = ""
    category: str = "hazard_zone"
    description: str = ""
    resources_note: str = ""
    priority: str = "medium"
    color: str = ""
    resource_id: Optional[str] = None
    extras: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def kind(self) -> str:
        return self.geometry.kind

    @property
    def display_color(self) -> str:
        return self.color or category_meta(self.category).color

    @property
    def category_label(self) -> str:
        return category_meta(self.category).label

    def with_geometry(self, geometry: Geometry) -> "Drawing":
        """Return a copy with new coordinates; the geometry kind may not change."""
        if geometry.kind != self.geometry.kind:
            raise ValueError(
                f"Drawing {self.id} is a {self.geometry.kind}; cannot become {geometry.kind}"
            )
        return replace(self, geometry=geometry)

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "id": self.id,
            "geometry": self.geometry.to_dict(),
            "name": self.name,
            "type": self.category,
            "description": self.description,
            "resources": self.resources_note,
            "priority": self.priority,
            "color": self.display_color,
            "resource_id": self.resource_id,
        }
        d.update(self.extras)
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Drawing":
        """Create a Drawing from a record dict, preserving unknown keys in ``extras``.

        Raises:
            ValueError: If id or geometry is missing or malformed.
        """
        if not isinstance(d, dict):
            raise ValueError(f"Drawing record must be a dict, got {type(d).__name__}")
        if d.get("id") in (None, ""):
            raise ValueError("Drawing record has no id")
        geometry = geometry_from_dict(d.get("geometry"))
        category = d.get("type") or "hazard_zone"
        priority = d.get("priority") or "medium"
        resource_id = d.get("resource_id")
        return cls(
            id=str(d["id"]),
            geometry=geometry,
            name=str(d.get("name") or ""),
            category=str(category),
            description=str(d.get("description") or ""),
            resources_note=str(d.get("resources") or ""),
            priority=priority if priority in PRIORITIES else "medium",
            color=normalize_hex(d.get("color") or "", "") or "",
            resource_id=str(resource_id) if resource_id not in (None, "") else None,
            extras={k: v for k, v in d.items() if k not in _RECORD_KEYS},
        )


# Metadata fields of a Drawing the metadata form may edit
METADATA_FIELDS = tuple(
    f.name for f in fields(Drawing) if f.name not in ("id", "geometry", "extras")
)


def drawings_to_json(drawings: Iterable[Drawing], indent: int = 2) -> str:
    return json.dumps([d.to_dict() for d in drawings], indent=indent, ensure_ascii=False)


def drawings_from_json(text: str) -> List[Drawing]:
    """Parse a JSON array of drawing records.

    Raises:
        ValueError: On invalid JSON or malformed records.
    """
    data = json.loads(text)
    if not isinstance(data, list):
        raise ValueError("Expected a JSON array of drawings")
    return [Drawing.from_dict(rec) for rec in data]


# ----------------------------
# Drawing ids
# ----------------------------

_id_lock = threading.Lock()
_last_id = 0


def make_drawing_id(existing: Iterable[str] = ()) -> str:
    """Generate a creation-timestamp-derived drawing id.

    Ids are millisecond timestamps, bumped when two drawings are created
    within the same millisecond or when the value is already taken.
    """
    global _last_id
    taken = set(existing)
    with _id_lock:
        candidate = max(int(time.time() * 1000), _last_id + 1)
        while str(candidate) in taken:
            candidate += 1
        _last_id = candidate
    return str(candidate)


# ----------------------------
# External collaborators
# ----------------------------

@dataclass(frozen=True)
class Resource:
    """An externally-owned resource (vehicle, personnel, equipment)."""
    id: str
    kind: str = ""
    category: str = ""
    name: str = ""
    status: str = ""

    @property
    def label(self) -> str:
        if self.category:
            return f"{self.name} ({self.category})"
        return self.name or self.id

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Resource":
        return cls(
            id=str(d["id"]),
            kind=str(d.get("kind") or d.get("resource_type") or ""),
            category=str(d.get("category") or ""),
            name=str(d.get("name") or ""),
            status=str(d.get("status") or ""),
        )


def resource_label(resource: Optional[Resource]) -> str:
    """Display text for a resource in pickers and popups."""
    if resource is None:
        return "Sin recurso"
    status = f" - {resource.status}" if resource.status else ""
    return f"{resource.label}{status}"


@dataclass(frozen=True)
class IncidentContext:
    """Incident the map is centered on, supplied by the caller."""
    name: str = ""
    location: str = ""
    coordinates: Optional[LatLng] = None

    def initial_view(self, default_center: LatLng, default_zoom: int,
                     incident_zoom: int) -> Tuple[LatLng, int]:
        """Return (center, zoom): the incident when known, else the defaults."""
        if self.coordinates is not None:
            return as_latlng(self.coordinates), incident_zoom
        return default_center, default_zoom


def find_by_id(drawings: Sequence[Drawing], drawing_id: str) -> Optional[Drawing]:
    for d in drawings:
        if d.id == drawing_id:
            return d
    return None


def find_by_resource(drawings: Sequence[Drawing], resource_id: str) -> Optional[Drawing]:
    """Linear scan for the drawing linked to a resource."""
    for d in drawings:
        if d.resource_id is not None and d.resource_id == resource_id:
            return d
    return None

"""
properties/metadata.py

Metadata capture and commit for drawings.

A completed geometry (new drawing) or an existing drawing is opened in the
editor; the form sets name, category, priority, color, description and the
resources note, and may link an external resource. ``commit()`` appends a
new drawing or replaces the existing one by id.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from icons import DRAWING_CATEGORIES, ICON_KINDS, PRIORITIES, category_meta, resolve_icon
from models import (
    COLOR_OVERRIDABLE_KINDS,
    Drawing,
    Geometry,
    IconMarker,
    Resource,
    make_drawing_id,
)
from settings import get_settings
from store import DrawingStore
from utils import normalize_hex

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkOutcome:
    """Result of a resource link request.

    status:
        "linked"    the resource is now linked in the form
        "cleared"   the link was removed
        "duplicate" another drawing already references the resource;
                    ``drawing_id`` names it so the caller can center on it
        "unknown"   no resource with that id was supplied
    """
    status: str
    drawing_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status in ("linked", "cleared")


TEXT_FIELDS = ("name", "description", "resources_note")
EDITABLE_FIELDS = TEXT_FIELDS + ("category", "priority", "color", "icon_key")


class MetadataEditor:
    """
    Form state for one drawing's metadata.

    Args:
        store: Collection commits go to.
        resources: External resources available for linking.
        make_id: Id factory for new drawings; receives the taken ids.
    """

    def __init__(
        self,
        store: DrawingStore,
        resources: Iterable[Resource] = (),
        make_id: Callable[[Iterable[str]], str] = make_drawing_id,
    ):
        self._store = store
        self._resources: Dict[str, Resource] = {}
        self.set_resources(resources)
        self._make_id = make_id

        self._geometry: Optional[Geometry] = None
        self._target_id: Optional[str] = None
        self._values: Dict[str, Any] = {}
        self._color_overridden = False

    # ---- Resources ----

    def set_resources(self, resources: Iterable[Resource]) -> None:
        self._resources = {r.id: r for r in resources}

    @property
    def resources(self) -> List[Resource]:
        return list(self._resources.values())

    def linked_resource(self) -> Optional[Resource]:
        rid = self._values.get("resource_id")
        return self._resources.get(rid) if rid else None

    # ---- State ----

    @property
    def is_open(self) -> bool:
        return self._geometry is not None

    @property
    def is_new(self) -> bool:
        return self.is_open and self._target_id is None

    @property
    def target_id(self) -> Optional[str]:
        return self._target_id

    @property
    def geometry(self) -> Optional[Geometry]:
        return self._geometry

    @property
    def values(self) -> Dict[str, Any]:
        """Copy of the current form values."""
        return dict(self._values)

    def get(self, key: str) -> Any:
        return self._values.get(key)

    @property
    def color_editable(self) -> bool:
        return self._geometry is not None and self._geometry.kind in COLOR_OVERRIDABLE_KINDS

    @property
    def can_commit(self) -> bool:
        return self.is_open and bool(str(self._values.get("name", "")).strip())

    # ---- Workflow ----

    def open(self, target: Union[Geometry, Drawing]) -> None:
        """Open the form for a new geometry or an existing drawing."""
        if isinstance(target, Drawing):
            self._geometry = target.geometry
            self._target_id = target.id
            self._values = {
                "name": target.name,
                "category": target.category,
                "priority": target.priority,
                "color": target.display_color,
                "description": target.description,
                "resources_note": target.resources_note,
                "resource_id": target.resource_id,
            }
            self._color_overridden = (
                bool(target.color) and target.color != category_meta(target.category).color
            )
            log.debug("Metadata form opened for drawing %s", target.id)
            return

        defaults = get_settings().settings.drawing
        category = defaults.default_category if defaults.default_category in DRAWING_CATEGORIES else "hazard_zone"
        priority = defaults.default_priority if defaults.default_priority in PRIORITIES else "medium"
        self._geometry = target
        self._target_id = None
        self._values = {
            "name": "",
            "category": category,
            "priority": priority,
            "color": category_meta(category).color,
            "description": "",
            "resources_note": "",
            "resource_id": None,
        }
        self._color_overridden = False
        log.debug("Metadata form opened for new %s", target.kind)

    def set_field(self, key: str, value: Any) -> bool:
        """Set one form field.

        Returns:
            False if the field does not apply to this drawing (color on a
            marker or polyline, icon on a non-icon shape) or nothing is open.

        Raises:
            ValueError: Unknown field, category, priority, color or icon key.
        """
        if key not in EDITABLE_FIELDS:
            raise ValueError(f"Unknown metadata field: {key!r}")
        if not self.is_open:
            return False

        if key in TEXT_FIELDS:
            self._values[key] = "" if value is None else str(value)
        elif key == "category":
            if value not in DRAWING_CATEGORIES:
                raise ValueError(f"Unknown category: {value!r}")
            self._values["category"] = value
            if not self._color_overridden:
                self._values["color"] = category_meta(value).color
        elif key == "priority":
            if value not in PRIORITIES:
                raise ValueError(f"Unknown priority: {value!r}")
            self._values["priority"] = value
        elif key == "color":
            if not self.color_editable:
                return False
            color = normalize_hex(value)
            if color is None:
                raise ValueError(f"Invalid color: {value!r}")
            self._values["color"] = color
            self._color_overridden = color != category_meta(self._values["category"]).color
        elif key == "icon_key":
            if not isinstance(self._geometry, IconMarker):
                return False
            if value not in ICON_KINDS:
                raise ValueError(f"Unknown icon key: {value!r}")
            self._geometry = replace(self._geometry, icon_key=value)
        return True

    def link_resource(self, resource_id: Optional[str]) -> LinkOutcome:
        """Link an external resource to the drawing (None clears the link).

        A resource already referenced by another drawing is never linked a
        second time; the outcome names that drawing instead.
        """
        if not self.is_open:
            return LinkOutcome("unknown")
        if resource_id is None:
            self._values["resource_id"] = None
            return LinkOutcome("cleared")

        resource = self._resources.get(resource_id)
        if resource is None:
            log.debug("link_resource: unknown resource %s", resource_id)
            return LinkOutcome("unknown")

        existing = self._store.find_by_resource(resource_id)
        if existing is not None and existing.id != self._target_id:
            log.info("Resource %s is already linked to drawing %s", resource_id, existing.id)
            return LinkOutcome("duplicate", existing.id)

        self._values["resource_id"] = resource_id
        if isinstance(self._geometry, IconMarker) and self.is_new:
            self._geometry = replace(
                self._geometry, icon_key=resolve_icon(resource.kind, resource.category)
            )
        if not str(self._values.get("name", "")).strip():
            self._values["name"] = resource.name
        return LinkOutcome("linked")

    def commit(self) -> Optional[Drawing]:
        """Persist the form into the store.

        Returns:
            The new or updated drawing, or None when the commit is refused
            (nothing open, empty name, resource linked elsewhere meanwhile,
            or the edited drawing no longer exists).
        """
        if not self.is_open:
            return None
        if not self.can_commit:
            log.debug("Commit refused: name is required")
            return None

        resource_id = self._values.get("resource_id")
        if resource_id is not None:
            existing = self._store.find_by_resource(resource_id)
            if existing is not None and existing.id != self._target_id:
                log.info("Commit refused: resource %s already linked to %s", resource_id, existing.id)
                return None

        fields = {
            "name": self._values["name"],
            "category": self._values["category"],
            "priority": self._values["priority"],
            "color": self._values["color"] if self.color_editable else category_meta(self._values["category"]).color,
            "description": self._values["description"],
            "resources_note": self._values["resources_note"],
            "resource_id": resource_id,
        }

        if self._target_id is None:
            drawing = Drawing(id=self._make_id(self._store.ids()), geometry=self._geometry, **fields)
            self._store.append(drawing)
        else:
            current = self._store.get(self._target_id)
            if current is None:
                log.info("Drawing %s no longer exists; metadata edit dropped", self._target_id)
                self._close()
                return None
            geometry = current.geometry
            if isinstance(geometry, IconMarker) and isinstance(self._geometry, IconMarker):
                geometry = replace(geometry, icon_key=self._geometry.icon_key)
            drawing = replace(current, geometry=geometry, **fields)
            self._store.replace(drawing)

        self._close()
        return drawing

    def cancel(self) -> None:
        """Close the form without touching the store."""
        if self.is_open:
            log.debug("Metadata form cancelled")
        self._close()

    def _close(self) -> None:
        self._geometry = None
        self._target_id = None
        self._values = {}
        self._color_overridden = False

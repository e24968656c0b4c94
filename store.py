"""
store.py

Holder for the caller-owned drawing collection.

The store never mutates a list it has published: every change builds a
new list (unchanged drawings keep their identity) and hands it to the
``on_change`` callback. The engine performs no I/O; persisting the list is
the callback's job.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional

from models import Drawing, find_by_id, find_by_resource

log = logging.getLogger(__name__)

DrawingsCallback = Callable[[List[Drawing]], None]


class DrawingStore:
    """Current value of the drawing collection plus its change callback.

    Args:
        drawings: Initial collection supplied by the caller.
        on_change: Called with the new list after every committed mutation.
    """

    def __init__(self, drawings: Optional[Iterable[Drawing]] = None,
                 on_change: Optional[DrawingsCallback] = None):
        self._drawings: List[Drawing] = list(drawings or [])
        self._on_change = on_change

    @property
    def drawings(self) -> List[Drawing]:
        """The current collection (treat as read-only)."""
        return self._drawings

    def set_on_change(self, callback: Optional[DrawingsCallback]) -> None:
        self._on_change = callback

    def reset(self, drawings: Iterable[Drawing]) -> None:
        """Replace the collection with a caller-supplied value without publishing."""
        self._drawings = list(drawings)

    def __len__(self) -> int:
        return len(self._drawings)

    def __contains__(self, drawing_id: str) -> bool:
        return self.get(drawing_id) is not None

    def get(self, drawing_id: str) -> Optional[Drawing]:
        return find_by_id(self._drawings, drawing_id)

    def ids(self) -> List[str]:
        return [d.id for d in self._drawings]

    def find_by_resource(self, resource_id: str) -> Optional[Drawing]:
        return find_by_resource(self._drawings, resource_id)

    def append(self, drawing: Drawing) -> None:
        if drawing.id in self:
            raise ValueError(f"Duplicate drawing id: {drawing.id}")
        self._publish(self._drawings + [drawing])
        log.info("Added %s drawing %s (%r)", drawing.kind, drawing.id, drawing.name)

    def replace(self, drawing: Drawing) -> bool:
        """Replace the entry with the same id. Returns False if there is none."""
        if drawing.id not in self:
            log.debug("replace: no drawing with id %s", drawing.id)
            return False
        self._publish([drawing if d.id == drawing.id else d for d in self._drawings])
        log.info("Updated drawing %s", drawing.id)
        return True

    def remove(self, drawing_id: str) -> bool:
        """Remove the entry with this id. Returns False if there is none."""
        if drawing_id not in self:
            log.debug("remove: no drawing with id %s", drawing_id)
            return False
        self._publish([d for d in self._drawings if d.id != drawing_id])
        log.info("Deleted drawing %s", drawing_id)
        return True

    def _publish(self, drawings: List[Drawing]) -> None:
        self._drawings = drawings
        if self._on_change:
            self._on_change(list(drawings))

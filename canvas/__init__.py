"""
canvas package

Draw and vertex-edit state machines. The PyQt6 items, scene and view that
render drawings on the map live in canvas.items, canvas.scene and
canvas.view and are imported from there.
"""

from canvas.builder import GeometryBuilder
from canvas.vertex_editor import EditSession, VertexEditor

__all__ = ["GeometryBuilder", "EditSession", "VertexEditor"]

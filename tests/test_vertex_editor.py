"""Tests for VertexEditor edit sessions."""
from __future__ import annotations

import pytest

from canvas.vertex_editor import VertexEditor
from models import Circle, Drawing, IconMarker, Marker, Polygon, Polyline, Rectangle
from store import DrawingStore


def _polygon_drawing(did="x"):
    return Drawing(id=did, geometry=Polygon(((0, 0), (0, 1), (1, 1), (1, 0))), name="Zona")


@pytest.fixture()
def published():
    return []


@pytest.fixture()
def store(published):
    drawings = [
        Drawing(id="a", geometry=Marker((1, 1)), name="A"),
        _polygon_drawing("x"),
        Drawing(id="c", geometry=Circle((0, 0), 100.0), name="C"),
    ]
    return DrawingStore(drawings, on_change=published.append)


@pytest.fixture()
def editor(store):
    return VertexEditor(store)


class TestScenarioDiscardThenCommit:
    def test_discard_leaves_collection_unchanged(self, store, editor, published):
        before = list(store.drawings)
        editor.start_edit("x")
        assert editor.drag_vertex(1, (5, 5))
        editor.discard()
        assert store.drawings == before
        assert published == []
        assert not editor.is_active

    def test_commit_moves_only_that_vertex(self, store, editor, published):
        editor.start_edit(store.get("x"))
        editor.drag_vertex(1, (5, 5))
        committed = editor.commit()
        assert committed.geometry.vertices == ((0, 0), (5, 5), (1, 1), (1, 0))
        assert store.get("x").geometry.vertices[1] == (5, 5)
        assert len(published) == 1
        assert not editor.is_active


class TestEditIsolation:
    def test_other_drawings_keep_identity(self, store, editor):
        before = {d.id: d for d in store.drawings}
        editor.start_edit("x")
        editor.drag_vertex(0, (9, 9))
        editor.commit()
        for d in store.drawings:
            if d.id != "x":
                assert d is before[d.id]
        assert [d.id for d in store.drawings] == ["a", "x", "c"]

    def test_kind_and_id_unchanged(self, store, editor):
        editor.start_edit("x")
        editor.drag_vertex(2, (3, 3))
        committed = editor.commit()
        assert committed.id == "x"
        assert committed.kind == "polygon"

    def test_metadata_edited_during_session_is_kept(self, store, editor):
        editor.start_edit("x")
        editor.drag_vertex(0, (2, 2))
        store.replace(Drawing(id="x", geometry=store.get("x").geometry, name="Renamed"))
        committed = editor.commit()
        assert committed.name == "Renamed"
        assert committed.geometry.vertices[0] == (2, 2)

    def test_commit_without_changes_does_not_publish(self, store, editor, published):
        editor.start_edit("x")
        assert editor.commit() is store.get("x")
        assert published == []

    def test_commit_after_delete_returns_none(self, store, editor, published):
        editor.start_edit("x")
        editor.drag_vertex(0, (2, 2))
        store.remove("x")
        published.clear()
        assert editor.commit() is None
        assert published == []


class TestHandles:
    def test_marker_point_handle(self, store, editor):
        editor.start_edit("a")
        assert editor.drag_vertex("point", (2, 3))
        assert editor.working.geometry == Marker((2, 3))

    def test_icon_keeps_icon_key(self):
        store = DrawingStore([Drawing(id="i", geometry=IconMarker((0, 0), "boat"))])
        ed = VertexEditor(store)
        ed.start_edit("i")
        ed.drag_vertex(0, (1, 1))
        assert ed.commit().geometry == IconMarker((1, 1), "boat")

    def test_rectangle_corners(self):
        store = DrawingStore([Drawing(id="r", geometry=Rectangle((0, 0), (1, 1)))])
        ed = VertexEditor(store)
        ed.start_edit("r")
        ed.drag_vertex("corner2", (4, 4))
        ed.drag_vertex(0, (-1, -1))
        assert ed.commit().geometry == Rectangle((-1, -1), (4, 4))

    def test_polyline_vertex(self):
        store = DrawingStore([Drawing(id="l", geometry=Polyline(((0, 0), (1, 1), (2, 2))))])
        ed = VertexEditor(store)
        ed.start_edit("l")
        ed.drag_vertex(2, (7, 7))
        assert ed.working.geometry.vertices == ((0, 0), (1, 1), (7, 7))

    def test_out_of_range_index_rejected(self, editor):
        editor.start_edit("x")
        assert not editor.drag_vertex(4, (0, 0))
        assert not editor.drag_vertex(-1, (0, 0))
        assert not editor.drag_vertex("corner1", (0, 0))
        assert not editor.session.dirty

    def test_bad_point_rejected(self, editor):
        editor.start_edit("x")
        assert not editor.drag_vertex(0, (float("inf"), 0))

    def test_drag_without_session(self, editor):
        assert not editor.drag_vertex(0, (1, 1))


class TestCircleRadius:
    def test_center_drag_and_radius_input(self, editor):
        editor.start_edit("c")
        assert editor.drag_vertex("center", (1, 1))
        assert editor.set_radius(250)
        assert editor.working.geometry == Circle((1, 1), 250.0)

    def test_radius_via_drag_vertex_field(self, editor):
        editor.start_edit("c")
        assert editor.drag_vertex("radius", 42.5)
        assert editor.working.geometry.radius_m == 42.5

    @pytest.mark.parametrize("value", [-1, float("nan"), float("inf"), "abc", None])
    def test_invalid_radius_rejected(self, editor, value):
        editor.start_edit("c")
        assert not editor.set_radius(value)
        assert editor.working.geometry.radius_m == 100.0

    def test_radius_on_non_circle(self, editor):
        editor.start_edit("x")
        assert not editor.set_radius(10)


class TestSessions:
    def test_unknown_id_raises(self, editor):
        with pytest.raises(KeyError):
            editor.start_edit("missing")

    def test_new_session_discards_previous(self, store, editor, published):
        editor.start_edit("x")
        editor.drag_vertex(0, (8, 8))
        editor.start_edit("a")
        assert editor.active_id == "a"
        editor.commit()
        assert store.get("x").geometry.vertices[0] == (0, 0)
        assert published == []

    def test_is_editing(self, editor):
        editor.start_edit("x")
        assert editor.is_editing("x")
        assert not editor.is_editing("a")

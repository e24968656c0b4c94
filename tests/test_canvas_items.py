"""Tests for overlay items, popups and vertex handles."""
import pytest
from PyQt6.QtCore import QPointF

from canvas.items import (
    CircleItem,
    DRAWING_ID_KEY,
    IconMarkerItem,
    MarkerItem,
    PolygonItem,
    PolylineItem,
    RectangleItem,
    latlng_to_scene,
    make_incident_items,
    make_overlay_item,
    make_vertex_handles,
    popup_fields,
    popup_html,
    scene_to_latlng,
)
from models import Circle, Drawing, IconMarker, Marker, Polygon, Polyline, Rectangle


def test_popup_minimal():
    d = Drawing(id="a", geometry=Marker((0, 0)), category="safe_zone")
    assert popup_fields(d) == [("name", "Sin nombre"), ("category", "Zona Segura")]


def test_popup_full():
    d = Drawing(id="a", geometry=Marker((0, 0)), name="Base", description="Norte",
                resources_note="3 carros")
    assert [k for k, _ in popup_fields(d)] == ["name", "category", "description", "resources"]
    assert popup_fields(d)[-1][1] == "Recursos: 3 carros"


def test_popup_html_escapes():
    d = Drawing(id="a", geometry=Marker((0, 0)), name="<b>x</b>", priority="critical")
    text = popup_html(d)
    assert "&lt;b&gt;x&lt;/b&gt;" in text
    assert "Crítica" in text


def test_projection_inverse():
    p = latlng_to_scene((-33.45, -70.67), 10000)
    assert p.x() == pytest.approx(-706700)
    assert p.y() == pytest.approx(334500)
    assert scene_to_latlng(p, 10000) == pytest.approx((-33.45, -70.67))


@pytest.mark.parametrize("geometry,item_type", [
    (Marker((1, 1)), MarkerItem),
    (IconMarker((1, 1), "shelter"), IconMarkerItem),
    (Circle((1, 1), 100), CircleItem),
    (Polygon(((0, 0), (0, 1), (1, 1))), PolygonItem),
    (Polyline(((0, 0), (1, 1))), PolylineItem),
    (Rectangle((0, 0), (1, 1)), RectangleItem),
])
def test_overlay_item_per_kind(qapp, geometry, item_type):
    item = make_overlay_item(Drawing(id="d", geometry=geometry, name="n"))
    assert isinstance(item, item_type)
    assert item.data(DRAWING_ID_KEY) == "d"
    assert item.drawing_id == "d"


def test_overlay_item_unknown_geometry(qapp):
    class Odd:
        kind = "odd"

    with pytest.raises(TypeError):
        make_overlay_item(Drawing(id="d", geometry=Odd()))


def test_handles_report_moves(qapp):
    d = Drawing(id="r", geometry=Rectangle((0, 0), (1, 1)))
    moves = []
    handles = make_vertex_handles(d, lambda i, pt: moves.append((i, pt)))
    assert [h.index for h in handles] == [0, 1]
    assert moves == []
    handles[1].setPos(latlng_to_scene((2, 2)))
    assert moves[-1][0] == 1
    assert moves[-1][1] == pytest.approx((2, 2))


def test_circle_has_single_handle(qapp):
    d = Drawing(id="c", geometry=Circle((0, 0), 50))
    assert len(make_vertex_handles(d, lambda i, pt: None)) == 1


def test_incident_items(qapp):
    ring, marker = make_incident_items((-33.0, -70.0), 500, "Incendio")
    assert ring.zValue() < marker.zValue()
    assert "Incendio" in marker.toolTip()
    assert marker.pos() == QPointF(latlng_to_scene((-33.0, -70.0)))

"""Tests for geometry and drawing records."""
import json

import pytest

from models import (
    Circle,
    Drawing,
    IconMarker,
    IncidentContext,
    Marker,
    Polygon,
    Polyline,
    Rectangle,
    Resource,
    drawings_from_json,
    drawings_to_json,
    geometry_from_dict,
    make_drawing_id,
    resource_label,
)


class TestGeometry:
    def test_polygon_needs_three_vertices(self):
        with pytest.raises(ValueError):
            Polygon(((0, 0), (1, 1)))

    def test_polyline_needs_two_vertices(self):
        with pytest.raises(ValueError):
            Polyline(((0, 0),))

    def test_negative_radius_rejected(self):
        with pytest.raises(ValueError):
            Circle((0, 0), -5)

    def test_unknown_icon_rejected(self):
        with pytest.raises(ValueError):
            IconMarker((0, 0), "unicorn")

    def test_handle_index(self):
        rect = Rectangle((0, 0), (1, 1))
        assert rect.handle_index("corner2") == 1
        assert rect.handle_index(2) is None
        assert rect.handle_index(True) is None
        assert Circle((0, 0), 1).handle_index("center") == 0

    def test_circle_bounds_contain_radius(self):
        (s, w), (n, e) = Circle((10, 20), 1000).bounds()
        assert s < 10 < n
        assert w < 20 < e
        assert n - 10 == pytest.approx(1000 / 111194.9, rel=1e-3)

    def test_center_of_polygon(self):
        assert Polygon(((0, 0), (0, 2), (2, 2))).center() == (1.0, 1.0)

    @pytest.mark.parametrize("record", [
        {"type": "marker"},
        {"type": "circle", "center": [0, 0]},
        {"type": "triangle", "coordinates": []},
        {"type": "rectangle", "coordinates": [[0, 0]]},
        "marker",
    ])
    def test_malformed_geometry(self, record):
        with pytest.raises(ValueError):
            geometry_from_dict(record)


class TestDrawingRecord:
    def test_from_dict_keeps_unknown_keys(self):
        record = {
            "id": 1718000000000,
            "geometry": {"type": "circle", "center": [-33.4, -70.6], "radius": 120},
            "name": "Zona",
            "type": "hazard_zone",
            "resources": "2 brigadas",
            "priority": "high",
            "color": "#FF0000",
            "created_by": "ops1",
        }
        d = Drawing.from_dict(record)
        assert d.id == "1718000000000"
        assert d.resources_note == "2 brigadas"
        assert d.color == "#ff0000"
        assert d.extras == {"created_by": "ops1"}
        out = d.to_dict()
        assert out["created_by"] == "ops1"
        assert out["geometry"] == {"type": "circle", "center": [-33.4, -70.6], "radius": 120.0}

    def test_defaults_for_missing_metadata(self):
        d = Drawing.from_dict({"id": "a", "geometry": {"type": "marker", "coordinates": [1, 2]},
                               "priority": "urgent"})
        assert d.name == ""
        assert d.category == "hazard_zone"
        assert d.priority == "medium"
        assert d.resource_id is None
        assert d.to_dict()["color"] == "#ef4444"

    def test_missing_id(self):
        with pytest.raises(ValueError):
            Drawing.from_dict({"geometry": {"type": "marker", "coordinates": [1, 2]}})

    def test_with_geometry_rejects_kind_change(self):
        d = Drawing(id="a", geometry=Marker((0, 0)))
        with pytest.raises(ValueError):
            d.with_geometry(Circle((0, 0), 1))
        assert d.with_geometry(Marker((1, 1))).geometry == Marker((1, 1))

    def test_json_round_trip_preserves_order(self):
        drawings = [
            Drawing(id="1", geometry=IconMarker((0, 0), "shelter"), name="Albergue"),
            Drawing(id="2", geometry=Polyline(((0, 0), (1, 1))), name="Ruta",
                    category="evacuation_route"),
        ]
        text = drawings_to_json(drawings)
        assert "Albergue" in text
        loaded = drawings_from_json(text)
        assert [d.id for d in loaded] == ["1", "2"]
        assert loaded[0].geometry == drawings[0].geometry

    def test_from_json_requires_array(self):
        with pytest.raises(ValueError):
            drawings_from_json(json.dumps({"id": "x"}))


class TestIds:
    def test_ids_unique_and_skip_taken(self):
        a = make_drawing_id()
        b = make_drawing_id()
        assert a != b
        taken = {str(int(b) + 1), str(int(b) + 2)}
        c = make_drawing_id(taken)
        assert c not in taken
        assert int(c) > int(b)


class TestCollaborators:
    def test_resource_label(self):
        r = Resource(id="R1", kind="vehicle", category="Carro Bomba", name="B-1", status="en ruta")
        assert resource_label(r) == "B-1 (Carro Bomba) - en ruta"
        assert resource_label(Resource(id="R2")) == "R2"
        assert resource_label(None) == "Sin recurso"

    def test_resource_from_dict(self):
        r = Resource.from_dict({"id": 7, "resource_type": "equipment", "name": "Gen"})
        assert r.id == "7"
        assert r.kind == "equipment"

    def test_initial_view(self):
        assert IncidentContext().initial_view((1, 2), 13, 14) == ((1, 2), 13)
        ctx = IncidentContext(name="Incendio", coordinates=(-33.0, -70.0))
        assert ctx.initial_view((1, 2), 13, 14) == ((-33.0, -70.0), 14)

"""Tests for the click-driven GeometryBuilder state machine."""
from __future__ import annotations

import pytest

from canvas.builder import GeometryBuilder
from models import Circle, IconMarker, Marker, Mode, Polygon, Polyline, Rectangle
from utils import haversine_m, planar_m


@pytest.fixture()
def emitted():
    return []


@pytest.fixture()
def builder(emitted):
    return GeometryBuilder(on_complete=emitted.append)


class TestSingleClickShapes:
    def test_marker_emits_on_first_click(self, builder, emitted):
        builder.begin(Mode.MARKER)
        shape = builder.on_click((-33.45, -70.67))
        assert shape == Marker((-33.45, -70.67))
        assert emitted == [shape]
        assert builder.mode == Mode.NONE

    def test_icon_requires_key(self, builder):
        with pytest.raises(ValueError):
            builder.begin(Mode.ICON)
        with pytest.raises(ValueError):
            builder.begin(Mode.ICON, "not_an_icon")

    def test_icon_emits_icon_marker(self, builder, emitted):
        builder.begin(Mode.ICON, "ambulance")
        shape = builder.on_click((1.0, 2.0))
        assert isinstance(shape, IconMarker)
        assert shape.icon_key == "ambulance"
        assert builder.icon_key is None
        assert len(emitted) == 1

    def test_click_without_mode_is_ignored(self, builder, emitted):
        assert builder.on_click((0, 0)) is None
        assert emitted == []
        assert not builder.has_pending

    def test_unknown_mode_rejected(self, builder):
        with pytest.raises(ValueError):
            builder.begin("hexagon")


class TestTwoClickShapes:
    def test_scenario_circle_radius(self, builder, emitted):
        builder.begin(Mode.CIRCLE)
        assert builder.on_click((-33.45, -70.67)) is None
        assert builder.pending_points == [(-33.45, -70.67)]
        shape = builder.on_click((-33.451, -70.67))
        assert isinstance(shape, Circle)
        assert shape.center_point == (-33.45, -70.67)
        assert shape.radius_m == pytest.approx(111.2, abs=0.5)
        assert emitted == [shape]
        assert builder.mode == Mode.NONE

    def test_circle_radius_matches_distance_function(self, builder):
        c, p = (10.0, 20.0), (10.02, 20.03)
        builder.begin(Mode.CIRCLE)
        builder.on_click(c)
        shape = builder.on_click(p)
        assert shape.radius_m == pytest.approx(haversine_m(c, p), abs=1e-9)

    def test_planar_distance_method(self):
        b = GeometryBuilder(distance_method="planar")
        c, p = (-33.45, -70.67), (-33.45, -70.66)
        b.begin(Mode.CIRCLE)
        b.on_click(c)
        shape = b.on_click(p)
        assert shape.radius_m == pytest.approx(planar_m(c, p), abs=1e-9)

    def test_rectangle_keeps_corner_order(self, builder):
        builder.begin(Mode.RECTANGLE)
        assert builder.on_click((1, 1)) is None
        shape = builder.on_click((0, 0))
        assert shape == Rectangle((1, 1), (0, 0))

    def test_third_click_after_circle_needs_rearm(self, builder, emitted):
        builder.begin(Mode.CIRCLE)
        builder.on_click((0, 0))
        builder.on_click((0, 0.001))
        assert builder.on_click((0, 0.002)) is None
        assert len(emitted) == 1


class TestMultiClickShapes:
    def test_scenario_polygon_double_click_adds_last_vertex(self, builder, emitted):
        builder.begin(Mode.POLYGON)
        for pt in [(0, 0), (0, 1), (1, 1)]:
            assert builder.on_click(pt) is None
        shape = builder.on_double_click((1, 0))
        assert shape == Polygon(((0, 0), (0, 1), (1, 1), (1, 0)))
        assert emitted == [shape]

    def test_double_click_on_last_point_is_not_duplicated(self, builder):
        builder.begin(Mode.POLYGON)
        for pt in [(0, 0), (0, 1), (1, 1)]:
            builder.on_click(pt)
        shape = builder.on_double_click((1, 1))
        assert shape.vertices == ((0, 0), (0, 1), (1, 1))

    def test_polygon_with_too_few_points_stays_open(self, builder, emitted):
        builder.begin(Mode.POLYGON)
        builder.on_click((0, 0))
        assert builder.on_double_click((0, 0)) is None
        assert emitted == []
        assert builder.mode == Mode.POLYGON
        assert builder.pending_points == [(0, 0)]
        builder.on_click((0, 1))
        shape = builder.on_double_click((1, 1))
        assert shape.vertices == ((0, 0), (0, 1), (1, 1))

    def test_polyline_two_points(self, builder):
        builder.begin(Mode.POLYLINE)
        builder.on_click((0, 0))
        shape = builder.on_double_click((2, 2))
        assert shape == Polyline(((0, 0), (2, 2)))

    def test_polyline_single_point_rejected(self, builder):
        builder.begin(Mode.POLYLINE)
        assert builder.on_double_click((0, 0)) is None
        assert builder.has_pending

    def test_double_click_outside_multi_click_mode(self, builder):
        builder.begin(Mode.CIRCLE)
        assert builder.on_double_click((0, 0)) is None
        assert not builder.has_pending

    def test_configured_minimum_is_clamped(self):
        b = GeometryBuilder(polygon_min_vertices=1, polyline_min_vertices=0)
        assert b.polygon_min_vertices == 3
        assert b.polyline_min_vertices == 2

    def test_stricter_polygon_minimum(self, isolated_settings):
        isolated_settings.settings.builder.polygon_min_vertices = 4
        b = GeometryBuilder()
        b.begin(Mode.POLYGON)
        b.on_click((0, 0))
        b.on_click((0, 1))
        assert b.on_double_click((1, 1)) is None
        assert b.on_double_click((1, 0)).vertices[-1] == (1, 0)


class TestCancellation:
    def test_cancel_discards_pending(self, builder, emitted):
        builder.begin(Mode.POLYGON)
        builder.on_click((0, 0))
        builder.on_click((0, 1))
        builder.cancel()
        assert not builder.has_pending
        assert builder.mode == Mode.NONE
        assert emitted == []

    def test_cancel_is_idempotent(self, builder):
        builder.cancel()
        builder.cancel()
        assert builder.mode == Mode.NONE

    def test_mode_change_discards_sketch(self, builder, emitted):
        builder.begin(Mode.CIRCLE)
        builder.on_click((0, 0))
        builder.begin(Mode.RECTANGLE)
        assert not builder.has_pending
        assert builder.on_click((5, 5)) is None
        assert emitted == []

    def test_pending_points_is_a_copy(self, builder):
        builder.begin(Mode.POLYLINE)
        builder.on_click((0, 0))
        builder.pending_points.append((9, 9))
        assert builder.pending_points == [(0, 0)]

    def test_invalid_point_raises(self, builder):
        builder.begin(Mode.MARKER)
        with pytest.raises(ValueError):
            builder.on_click(("a", 1))
        with pytest.raises(ValueError):
            builder.on_click((float("nan"), 1))

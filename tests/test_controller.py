"""End-to-end flows through AnnotationController (no Qt)."""
import pytest

from controller import AnnotationController
from models import Drawing, IncidentContext, Marker, Mode, Polygon, Resource


@pytest.fixture()
def published():
    return []


@pytest.fixture()
def controller(published):
    ctrl = AnnotationController(
        drawings=[],
        on_drawings_change=published.append,
        resources=[Resource(id="R1", kind="vehicle", category="Carro Bomba", name="B-1")],
    )
    return ctrl


def test_draw_then_save(controller, published):
    requested = []
    controller.configure_linkage(on_metadata_requested=requested.append)
    controller.select_mode(Mode.POLYGON)
    assert "doble-click" in controller.mode_hint
    for pt in [(0, 0), (0, 1), (1, 1)]:
        controller.click(pt)
    controller.double_click((1, 0))
    assert requested == [controller.metadata]
    assert controller.mode == Mode.NONE

    controller.metadata.set_field("name", "Perímetro")
    saved = controller.save_metadata()
    assert saved.kind == "polygon"
    assert published[-1] == [saved]
    assert controller.drawings == [saved]


def test_cancel_metadata_discards_shape(controller, published):
    controller.select_mode(Mode.MARKER)
    controller.click((1, 1))
    controller.cancel_metadata()
    assert published == []
    assert controller.drawings == []


def test_duplicate_link_centers_on_existing(controller):
    existing = Drawing(id="e", geometry=Marker((5, 6)), name="B-1", resource_id="R1")
    controller.set_drawings([existing])
    centered = []
    controller.configure_linkage(on_center_requested=centered.append)
    controller.select_mode(Mode.ICON, "fire_truck")
    controller.click((0, 0))
    outcome = controller.link_resource("R1")
    assert outcome.status == "duplicate"
    assert centered == [(5.0, 6.0)]


def test_vertex_edit_round_trip(controller, published):
    controller.set_drawings([Drawing(id="p", geometry=Polygon(((0, 0), (0, 1), (1, 1))), name="P")])
    controller.select_mode(Mode.CIRCLE)
    controller.click((3, 3))
    controller.start_vertex_edit("p")
    assert controller.mode == Mode.NONE
    assert controller.drag_vertex(0, (0.5, 0.5))
    shown = controller.display_drawing(controller.drawings[0])
    assert shown.geometry.vertices[0] == (0.5, 0.5)
    assert controller.drawings[0].geometry.vertices[0] == (0, 0)
    controller.commit_vertex_edit()
    assert published[-1][0].geometry.vertices[0] == (0.5, 0.5)


def test_delete_ends_sessions(controller, published):
    controller.set_drawings([Drawing(id="m", geometry=Marker((0, 0)), name="M")])
    controller.start_vertex_edit("m")
    controller.edit_metadata("m")
    assert controller.delete("m")
    assert not controller.vertex_editor.is_active
    assert not controller.metadata.is_open
    assert published[-1] == []
    assert not controller.delete("m")


def test_edit_metadata_unknown_id(controller):
    with pytest.raises(KeyError):
        controller.edit_metadata("nope")


def test_set_drawings_drops_orphaned_session(controller):
    controller.set_drawings([Drawing(id="m", geometry=Marker((0, 0)), name="M")])
    controller.start_vertex_edit("m")
    controller.set_drawings([])
    assert not controller.vertex_editor.is_active


def test_locate(controller):
    controller.set_drawings([Drawing(id="m", geometry=Marker((2, 3)), name="M")])
    centered = []
    controller.configure_linkage(on_center_requested=centered.append)
    assert controller.locate("m") == (2.0, 3.0)
    assert controller.locate("zz") is None
    assert centered == [(2.0, 3.0)]


def test_initial_view_uses_incident(isolated_settings):
    ctrl = AnnotationController(incident=IncidentContext(coordinates=(-36.8, -73.0)))
    assert ctrl.initial_view() == ((-36.8, -73.0), isolated_settings.settings.general.incident_zoom)
    plain = AnnotationController()
    g = isolated_settings.settings.general
    assert plain.initial_view() == ((g.default_center_lat, g.default_center_lng), g.default_zoom)

"""Tests for drawings file validation."""
from models import Circle, Drawing, IconMarker, Polygon
from schemas import validate_collection, validate_drawing


def _records():
    return [
        Drawing(id="1", geometry=Circle((-33.4, -70.6), 200), name="Zona").to_dict(),
        Drawing(id="2", geometry=IconMarker((-33.4, -70.6), "ambulance"), name="AMB",
                resource_id="R1").to_dict(),
        Drawing(id="3", geometry=Polygon(((0, 0), (0, 1), (1, 1))), name="P").to_dict(),
    ]


def test_serialized_drawings_are_valid():
    ok, errors = validate_collection(_records())
    assert ok, errors


def test_single_record():
    ok, errors = validate_drawing(_records()[0])
    assert ok, errors


def test_missing_name_and_bad_category():
    record = _records()[0]
    del record["name"]
    record["type"] = "volcano"
    ok, errors = validate_drawing(record)
    assert not ok
    assert len(errors) >= 2


def test_bad_geometry():
    record = _records()[2]
    record["geometry"]["coordinates"] = [[0, 0], [1, 1]]
    ok, _ = validate_drawing(record)
    assert not ok


def test_unknown_icon_key():
    record = _records()[1]
    record["geometry"]["icon"] = "unicorn"
    ok, errors = validate_drawing(record)
    assert not ok
    assert any("unicorn" in e for e in errors)


def test_duplicate_ids_and_resources():
    records = _records()
    records[2]["id"] = "1"
    records[0]["resource_id"] = "R1"
    ok, errors = validate_collection(records)
    assert not ok
    assert any("duplicate id" in e for e in errors)
    assert any("already linked" in e for e in errors)


def test_not_an_array():
    ok, errors = validate_collection({"id": "1"})
    assert not ok
    assert errors

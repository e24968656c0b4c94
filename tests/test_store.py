"""Tests for DrawingStore publishing."""
import pytest

from models import Drawing, Marker
from store import DrawingStore


def _d(did, resource_id=None):
    return Drawing(id=did, geometry=Marker((0, 0)), name=did, resource_id=resource_id)


def test_append_publishes_new_list():
    published = []
    original = [_d("a")]
    store = DrawingStore(original, on_change=published.append)
    store.append(_d("b"))
    assert [d.id for d in published[-1]] == ["a", "b"]
    assert [d.id for d in original] == ["a"]


def test_append_duplicate_id_raises():
    store = DrawingStore([_d("a")])
    with pytest.raises(ValueError):
        store.append(_d("a"))


def test_replace_and_remove_missing_return_false():
    published = []
    store = DrawingStore([_d("a")], on_change=published.append)
    assert not store.replace(_d("zz"))
    assert not store.remove("zz")
    assert published == []


def test_replace_keeps_position_and_identity_of_others():
    a, b, c = _d("a"), _d("b"), _d("c")
    store = DrawingStore([a, b, c])
    new_b = Drawing(id="b", geometry=Marker((1, 1)), name="B2")
    assert store.replace(new_b)
    assert store.drawings[0] is a
    assert store.drawings[1] is new_b
    assert store.drawings[2] is c


def test_reset_does_not_publish():
    published = []
    store = DrawingStore([], on_change=published.append)
    store.reset([_d("x")])
    assert "x" in store
    assert published == []


def test_find_by_resource():
    store = DrawingStore([_d("a"), _d("b", "R1")])
    assert store.find_by_resource("R1").id == "b"
    assert store.find_by_resource("R2") is None

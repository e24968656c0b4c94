"""Tests for SVG icon generation."""
import os

from icons import ICON_KINDS
from icons.generate_icons import MODE_ICONS, generate_icons, marker_icon_path, render_marker_icon


def test_generate_writes_all_icons(tmp_path):
    written = generate_icons(str(tmp_path), verbose=False)
    for mode in MODE_ICONS:
        assert os.path.exists(tmp_path / "modes" / f"{mode}.svg")
        assert os.path.exists(tmp_path / "modes" / f"{mode}_selected.svg")
    for key in ICON_KINDS:
        assert written[f"markers/{key}.svg"] == marker_icon_path(key, str(tmp_path))
        assert os.path.exists(marker_icon_path(key, str(tmp_path)))


def test_marker_icon_uses_kind_color():
    svg = render_marker_icon("ambulance")
    assert ICON_KINDS["ambulance"].color in svg
    assert svg.startswith("<svg")


def test_icon_combo_uses_generated_badges(qapp, tmp_path):
    from PyQt6.QtWidgets import QComboBox
    from properties.dock import add_icon_items

    generate_icons(str(tmp_path), verbose=False)
    combo = QComboBox()
    add_icon_items(combo, str(tmp_path))
    assert combo.count() == len(ICON_KINDS)
    assert combo.itemData(0) == "fire_truck"
    assert combo.itemText(0) == ICON_KINDS["fire_truck"].label


def test_icon_combo_falls_back_to_glyph(qapp, tmp_path):
    from PyQt6.QtWidgets import QComboBox
    from properties.dock import add_icon_items

    combo = QComboBox()
    add_icon_items(combo, str(tmp_path))
    icon = ICON_KINDS["fire_truck"]
    assert combo.itemText(0) == f"{icon.glyph}  {icon.label}"
    assert combo.itemIcon(0).isNull()

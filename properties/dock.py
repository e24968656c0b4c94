"""
properties/dock.py

Metadata form widget bound to the controller's MetadataEditor.

The form is built programmatically. Field edits are pushed into the
editor as they happen; Save is only enabled while the name is non-empty.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Callable, Optional

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QColor, QIcon
from PyQt6.QtWidgets import (
    QColorDialog,
    QComboBox,
    QDockWidget,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPlainTextEdit,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from icons import DRAWING_CATEGORIES, ICON_KINDS, PRIORITIES, choices
from icons.generate_icons import marker_icon_path
from models import IconMarker, resource_label

if TYPE_CHECKING:
    from controller import AnnotationController

log = logging.getLogger(__name__)

KIND_LABELS = {
    "marker": "Marcador",
    "icon": "Ícono",
    "circle": "Círculo",
    "polygon": "Polígono",
    "polyline": "Línea",
    "rectangle": "Rectángulo",
}


def add_icon_items(combo: QComboBox, base_dir: Optional[str] = None):
    """Fill a combo box with every icon kind.

    Items show the generated marker badge when its SVG exists and fall
    back to the kind's glyph otherwise. Item data is the icon key.
    """
    for icon in ICON_KINDS.values():
        path = marker_icon_path(icon.key, base_dir)
        if os.path.exists(path):
            combo.addItem(QIcon(path), icon.label, icon.key)
        else:
            combo.addItem(f"{icon.glyph}  {icon.label}", icon.key)


class MetadataPanel(QWidget):
    """
    Form for a drawing's name, category, priority, color, icon, linked
    resource, description and resources note.

    The panel is disabled until ``load()`` is called after the controller
    opened its metadata editor.
    """

    def __init__(self, controller: "AnnotationController", parent=None):
        super().__init__(parent)
        self.controller = controller
        self._loading = False
        self._on_closed: Optional[Callable[[], None]] = None

        self._init_form()
        self._connect_signals()
        self._set_enabled(False)

    def set_closed_callback(self, callback: Optional[Callable[[], None]]):
        """Set callback invoked after Save or Cancel closes the form."""
        self._on_closed = callback

    @property
    def editor(self):
        return self.controller.metadata

    def _init_form(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(6, 6, 6, 6)

        form = QFormLayout()
        layout.addLayout(form)

        self.kind_label = QLabel("-")
        form.addRow("Tipo de figura:", self.kind_label)

        self.name_edit = QLineEdit()
        self.name_edit.setPlaceholderText("Nombre (obligatorio)")
        form.addRow("Nombre:", self.name_edit)

        self.category_combo = QComboBox()
        for key, label in choices(DRAWING_CATEGORIES):
            self.category_combo.addItem(label, key)
        form.addRow("Categoría:", self.category_combo)

        self.priority_combo = QComboBox()
        for key, label in choices(PRIORITIES):
            self.priority_combo.addItem(label, key)
        form.addRow("Prioridad:", self.priority_combo)

        self.color_btn = QPushButton("Color...")
        self.color_preview = QLabel()
        self.color_preview.setFixedSize(24, 16)
        self.color_row = QWidget()
        color_layout = QHBoxLayout(self.color_row)
        color_layout.setContentsMargins(0, 0, 0, 0)
        color_layout.addWidget(self.color_preview)
        color_layout.addWidget(self.color_btn)
        color_layout.addStretch(1)
        form.addRow("Color:", self.color_row)

        self.icon_combo = QComboBox()
        add_icon_items(self.icon_combo)
        self.icon_label = QLabel("Ícono:")
        form.addRow(self.icon_label, self.icon_combo)

        self.resource_combo = QComboBox()
        form.addRow("Recurso:", self.resource_combo)

        self.description_edit = QPlainTextEdit()
        self.description_edit.setMaximumHeight(80)
        form.addRow("Descripción:", self.description_edit)

        self.resources_edit = QLineEdit()
        self.resources_edit.setPlaceholderText("Recursos asignados")
        form.addRow("Recursos:", self.resources_edit)

        self.status_label = QLabel("")
        self.status_label.setWordWrap(True)
        self.status_label.setStyleSheet("color: #b45309;")
        layout.addWidget(self.status_label)

        buttons = QHBoxLayout()
        self.save_btn = QPushButton("Guardar")
        self.cancel_btn = QPushButton("Cancelar")
        buttons.addStretch(1)
        buttons.addWidget(self.cancel_btn)
        buttons.addWidget(self.save_btn)
        layout.addLayout(buttons)
        layout.addStretch(1)

    def _connect_signals(self):
        self.name_edit.textChanged.connect(lambda t: self._set_field("name", t))
        self.category_combo.currentIndexChanged.connect(self._on_category_changed)
        self.priority_combo.currentIndexChanged.connect(
            lambda _i: self._set_field("priority", self.priority_combo.currentData())
        )
        self.icon_combo.currentIndexChanged.connect(
            lambda _i: self._set_field("icon_key", self.icon_combo.currentData())
        )
        self.description_edit.textChanged.connect(
            lambda: self._set_field("description", self.description_edit.toPlainText())
        )
        self.resources_edit.textChanged.connect(lambda t: self._set_field("resources_note", t))
        self.resource_combo.currentIndexChanged.connect(self._on_resource_changed)
        self.color_btn.clicked.connect(self.pick_color)
        self.save_btn.clicked.connect(self.save)
        self.cancel_btn.clicked.connect(self.cancel)

    def _set_enabled(self, enabled: bool):
        for w in (self.name_edit, self.category_combo, self.priority_combo, self.icon_combo,
                  self.resource_combo, self.description_edit, self.resources_edit,
                  self.cancel_btn):
            w.setEnabled(enabled)
        self.color_btn.setEnabled(enabled and self.editor.color_editable)
        self._update_save_enabled()

    def _update_save_enabled(self):
        self.save_btn.setEnabled(self.editor.can_commit)

    def _set_preview(self, color: str):
        self.color_preview.setStyleSheet(f"background-color: {color}; border: 1px solid #444;")

    @staticmethod
    def _select_data(combo: QComboBox, value) -> None:
        idx = combo.findData(value)
        if idx >= 0:
            combo.setCurrentIndex(idx)

    # ---- Loading ----

    def load(self):
        """Fill the form from the editor's current values."""
        editor = self.editor
        self._loading = True
        try:
            self.status_label.setText("")
            if editor.is_open:
                self._fill_from(editor)
            else:
                self.kind_label.setText("-")
                self.name_edit.clear()
                self.description_edit.clear()
                self.resources_edit.clear()
                self.resource_combo.clear()
        finally:
            self._loading = False
        self._set_enabled(editor.is_open)

    def _fill_from(self, editor):
        geometry = editor.geometry
        title = KIND_LABELS.get(geometry.kind, geometry.kind)
        self.kind_label.setText(title if editor.is_new else f"{title} (existente)")
        self.name_edit.setText(editor.get("name") or "")
        self._select_data(self.category_combo, editor.get("category"))
        self._select_data(self.priority_combo, editor.get("priority"))
        self.description_edit.setPlainText(editor.get("description") or "")
        self.resources_edit.setText(editor.get("resources_note") or "")
        self._set_preview(editor.get("color"))

        is_icon = isinstance(geometry, IconMarker)
        self.icon_label.setVisible(is_icon)
        self.icon_combo.setVisible(is_icon)
        if is_icon:
            self._select_data(self.icon_combo, geometry.icon_key)

        self.resource_combo.clear()
        self.resource_combo.addItem(resource_label(None), None)
        for res in editor.resources:
            self.resource_combo.addItem(resource_label(res), res.id)
        self._select_data(self.resource_combo, editor.get("resource_id"))

    # ---- Field handlers ----

    def _set_field(self, key: str, value):
        if self._loading:
            return
        self.editor.set_field(key, value)
        self._update_save_enabled()

    def _on_category_changed(self, _index: int):
        if self._loading:
            return
        self.editor.set_field("category", self.category_combo.currentData())
        self._set_preview(self.editor.get("color"))

    def _on_resource_changed(self, _index: int):
        if self._loading:
            return
        outcome = self.controller.link_resource(self.resource_combo.currentData())
        if outcome.status == "duplicate":
            self.status_label.setText("Este recurso ya tiene un elemento en el mapa; se centró el mapa en él.")
            self._loading = True
            self._select_data(self.resource_combo, self.editor.get("resource_id"))
            self._loading = False
            return
        self.status_label.setText("")
        # Linking may pre-fill the name and icon
        if outcome.status == "linked":
            self._loading = True
            self.name_edit.setText(self.editor.get("name") or "")
            geometry = self.editor.geometry
            if isinstance(geometry, IconMarker):
                self._select_data(self.icon_combo, geometry.icon_key)
            self._loading = False
        self._update_save_enabled()

    def pick_color(self):
        """Pick an override color (area shapes only)."""
        if not self.editor.color_editable:
            return
        c = QColorDialog.getColor(QColor(self.editor.get("color")), self, "Color de la figura")
        if not c.isValid():
            return
        self.editor.set_field("color", c.name())
        self._set_preview(self.editor.get("color"))

    # ---- Actions ----

    def save(self):
        drawing = self.controller.save_metadata()
        if drawing is None:
            self.status_label.setText("No se pudo guardar: revise el nombre y el recurso.")
            self._update_save_enabled()
            return
        self._close()

    def cancel(self):
        self.controller.cancel_metadata()
        self._close()

    def _close(self):
        self.load()
        if self._on_closed:
            self._on_closed()


class MetadataDock(QDockWidget):
    """Dock wrapping a MetadataPanel."""

    def __init__(self, controller: "AnnotationController", parent=None):
        super().__init__("Detalles", parent)
        self.panel = MetadataPanel(controller, self)
        self.setWidget(self.panel)
        self.setAllowedAreas(
            Qt.DockWidgetArea.LeftDockWidgetArea | Qt.DockWidgetArea.RightDockWidgetArea
        )

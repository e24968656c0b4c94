"""
main.py

Incident operations map annotator - desktop entry point.

PyQt6 application wiring the annotation engine to a drawings JSON file:
- Draw toolbar (marker, icon, circle, polygon, polyline, rectangle)
- Metadata form dock (name, category, priority, color, resource link)
- Vertex editing of existing drawings (save / cancel, circle radius)
- Load / save of the drawings file with schema validation

Usage:
    python main.py [drawings.json] [--resources resources.json]
                   [--incident LAT,LNG] [--incident-name NAME]

Dependencies:
    pip install PyQt6 platformdirs tomli-w jsonschema
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import List, Optional, Sequence

from PyQt6.QtCore import QSize, Qt
from PyQt6.QtGui import QAction, QActionGroup, QIcon, QKeySequence
from PyQt6.QtWidgets import (
    QApplication,
    QComboBox,
    QDoubleSpinBox,
    QFileDialog,
    QLabel,
    QMainWindow,
    QMessageBox,
    QToolBar,
)

from canvas.scene import MapScene
from canvas.view import MapView
from controller import AnnotationController
from debug_trace import close_log, configure_logging, trace, trace_exception
from icons import DEFAULT_ICON
from models import (
    Circle,
    Drawing,
    IncidentContext,
    Mode,
    Resource,
    drawings_from_json,
    drawings_to_json,
)
from properties.dock import MetadataDock, add_icon_items
from schemas import validate_collection
from settings import SettingsManager, get_settings

log = logging.getLogger(__name__)

MODE_LABELS = {
    Mode.MARKER: ("Marcador", "M"),
    Mode.ICON: ("Ícono", "I"),
    Mode.CIRCLE: ("Círculo", "C"),
    Mode.POLYGON: ("Polígono", "P"),
    Mode.POLYLINE: ("Línea", "L"),
    Mode.RECTANGLE: ("Rectángulo", "R"),
}


def get_icon_path(icon_name: str, selected: bool = False) -> str:
    """Get the path to a draw toolbar icon."""
    base_dir = os.path.dirname(os.path.abspath(__file__))
    suffix = "_selected" if selected else ""
    return os.path.join(base_dir, "icons", "modes", f"{icon_name}{suffix}.svg")


def create_icon_with_states(icon_name: str) -> QIcon:
    """Create a QIcon with normal and selected state variants."""
    icon = QIcon()
    normal_path = get_icon_path(icon_name, selected=False)
    selected_path = get_icon_path(icon_name, selected=True)
    if os.path.exists(normal_path):
        icon.addFile(normal_path, mode=QIcon.Mode.Normal, state=QIcon.State.Off)
    if os.path.exists(selected_path):
        icon.addFile(selected_path, mode=QIcon.Mode.Normal, state=QIcon.State.On)
    return icon


def load_drawings_file(path: str) -> List[Drawing]:
    """Read and validate a drawings file.

    Raises:
        ValueError: If the file is not a valid drawings collection.
        OSError: If the file cannot be read.
    """
    with open(path, "r", encoding="utf-8") as f:
        text = f.read()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e}") from None
    ok, messages = validate_collection(data)
    if not ok:
        raise ValueError("\n".join(messages[:10]))
    return drawings_from_json(text)


def load_resources_file(path: str) -> List[Resource]:
    """Read the external resources list.

    Raises:
        ValueError: If the file is not a JSON array of resource objects.
        OSError: If the file cannot be read.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError("Resources file must contain a JSON array")
    for i, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ValueError(f"Resource #{i} is not an object")
    return [Resource.from_dict(r) for r in data]


class MainWindow(QMainWindow):
    """Main application window.

    Args:
        settings_manager: The SettingsManager instance for application settings.
        drawings_path: Drawings file the collection is persisted to.
        resources: External resources available for linking.
        incident: Incident the map is centered on.
    """

    def __init__(self, settings_manager: SettingsManager, drawings_path: str = "",
                 resources: Sequence[Resource] = (), incident: Optional[IncidentContext] = None):
        super().__init__()
        self.settings_manager = settings_manager
        self.drawings_path = drawings_path
        self.setWindowTitle("Mapa de Operaciones")

        self.controller = AnnotationController(
            on_drawings_change=self._on_drawings_changed,
            resources=resources,
            incident=incident,
        )
        self.scene = MapScene(self.controller)
        self.view = MapView(self.scene)
        self.setCentralWidget(self.view)

        self.metadata_dock = MetadataDock(self.controller, self)
        self.addDockWidget(Qt.DockWidgetArea.RightDockWidgetArea, self.metadata_dock)

        self._build_toolbar()

        self.controller.configure_linkage(
            on_metadata_requested=self._on_metadata_requested,
            on_center_requested=self.view.center_on,
        )
        self.scene.configure_linkage(
            on_edit_started=self._on_edit_started,
            on_state_changed=self._sync_toolbar,
        )
        self.metadata_dock.panel.set_closed_callback(self._sync_toolbar)

        if drawings_path and os.path.exists(drawings_path):
            self._load(drawings_path)

        self.scene.show_incident()
        self.scene.rebuild()
        center, zoom = self.controller.initial_view()
        self.view.show_view(center, zoom)
        self._sync_toolbar()

    # ---- Toolbar ----

    def _build_toolbar(self):
        tb = QToolBar("Dibujo")
        tb.setIconSize(QSize(18, 18))
        self.addToolBar(tb)

        self.mode_group = QActionGroup(self)
        self.mode_group.setExclusionPolicy(QActionGroup.ExclusionPolicy.ExclusiveOptional)
        self.mode_actions = {}
        for mode in Mode.DRAW_MODES:
            text, shortcut = MODE_LABELS[mode]
            act = QAction(create_icon_with_states(mode), text, self)
            act.setCheckable(True)
            act.setShortcut(shortcut)
            act.setToolTip(f"{text} ({shortcut})")
            act.triggered.connect(lambda checked, m=mode: self._on_mode_action_triggered(m, checked))
            self.mode_group.addAction(act)
            tb.addAction(act)
            self.mode_actions[mode] = act

        self.icon_combo = QComboBox()
        add_icon_items(self.icon_combo)
        self.icon_combo.setCurrentIndex(max(0, self.icon_combo.findData(DEFAULT_ICON)))
        self.icon_combo.setToolTip("Ícono a colocar")
        tb.addWidget(self.icon_combo)

        tb.addSeparator()

        self.save_points_act = QAction("Guardar puntos", self)
        self.save_points_act.triggered.connect(self.commit_vertex_edit)
        tb.addAction(self.save_points_act)

        self.cancel_points_act = QAction("Cancelar edición", self)
        self.cancel_points_act.triggered.connect(self.discard_vertex_edit)
        tb.addAction(self.cancel_points_act)

        self.radius_spin = QDoubleSpinBox()
        self.radius_spin.setRange(0.0, 1_000_000.0)
        self.radius_spin.setDecimals(1)
        self.radius_spin.setSuffix(" m")
        self.radius_spin.setToolTip("Radio del círculo en edición")
        self.radius_spin.valueChanged.connect(self._on_radius_changed)
        self.radius_label = QLabel(" Radio: ")
        tb.addWidget(self.radius_label)
        tb.addWidget(self.radius_spin)

        tb.addSeparator()

        fit_act = QAction("Ajustar vista", self)
        fit_act.triggered.connect(self.view.zoom_fit)
        tb.addAction(fit_act)

        zoom_in_act = QAction("Acercar", self)
        zoom_in_act.setShortcut(QKeySequence.StandardKey.ZoomIn)
        zoom_in_act.triggered.connect(lambda: self.view.zoom_in())
        tb.addAction(zoom_in_act)

        zoom_out_act = QAction("Alejar", self)
        zoom_out_act.setShortcut(QKeySequence.StandardKey.ZoomOut)
        zoom_out_act.triggered.connect(lambda: self.view.zoom_out())
        tb.addAction(zoom_out_act)

        open_act = QAction("Abrir...", self)
        open_act.setShortcut("Ctrl+O")
        open_act.triggered.connect(self.open_drawings_dialog)
        tb.addAction(open_act)

        save_act = QAction("Guardar como...", self)
        save_act.setShortcut("Ctrl+S")
        save_act.triggered.connect(self.save_drawings_dialog)
        tb.addAction(save_act)

    def _on_mode_action_triggered(self, mode: str, checked: bool):
        if not checked:
            self.controller.cancel_sketch()
        elif mode == Mode.ICON:
            self.controller.select_mode(mode, self.icon_combo.currentData())
        else:
            self.controller.select_mode(mode)
        self.scene.clear_preview()
        self._sync_toolbar()

    def _sync_toolbar(self):
        """Reflect controller state in the toolbar and status bar."""
        mode = self.controller.mode
        for m, act in self.mode_actions.items():
            act.setChecked(m == mode)
        self.view.sync_drag_mode(mode != Mode.NONE)

        editing = self.controller.vertex_editor.is_active
        self.save_points_act.setEnabled(editing)
        self.cancel_points_act.setEnabled(editing)
        working = self.controller.vertex_editor.working
        is_circle = working is not None and isinstance(working.geometry, Circle)
        self.radius_spin.setEnabled(is_circle)
        if is_circle:
            self.radius_spin.blockSignals(True)
            self.radius_spin.setValue(working.geometry.radius_m)
            self.radius_spin.blockSignals(False)

        if mode != Mode.NONE:
            self.statusBar().showMessage(self.controller.mode_hint)
        elif editing:
            self.statusBar().showMessage("Arrastre los puntos y guarde o cancele la edición")
        else:
            self.statusBar().clearMessage()

    # ---- Controller callbacks ----

    def _on_drawings_changed(self, drawings: List[Drawing]):
        trace(f"collection changed: {len(drawings)} drawing(s)", "MAIN")
        self.scene.rebuild(drawings)
        if self.drawings_path:
            self._write(self.drawings_path, drawings)
        self._sync_toolbar()

    def _on_metadata_requested(self, _editor):
        self.metadata_dock.panel.load()
        self.metadata_dock.show()
        self.metadata_dock.raise_()
        self.metadata_dock.panel.name_edit.setFocus()
        self._sync_toolbar()

    def _on_edit_started(self, drawing_id: str):
        self.statusBar().showMessage(f"Editando puntos de {drawing_id}")

    def _on_radius_changed(self, value: float):
        if self.controller.set_radius(value):
            drawing_id = self.controller.vertex_editor.active_id
            if drawing_id is not None:
                self.scene.refresh_drawing(drawing_id)

    def commit_vertex_edit(self):
        self.controller.commit_vertex_edit()
        self.scene.rebuild()
        self._sync_toolbar()

    def discard_vertex_edit(self):
        self.controller.discard_vertex_edit()
        self.scene.rebuild()
        self._sync_toolbar()

    # ---- Files ----

    def _load(self, path: str) -> bool:
        try:
            drawings = load_drawings_file(path)
        except (OSError, ValueError) as e:
            log.warning("Could not load %s: %s", path, e)
            QMessageBox.critical(self, "Error al abrir", str(e))
            return False
        self.controller.set_drawings(drawings)
        self.drawings_path = path
        self.settings_manager.settings.general.last_drawings_file = path
        self.statusBar().showMessage(f"Abierto: {path} ({len(drawings)} elementos)")
        return True

    def _write(self, path: str, drawings: Sequence[Drawing]):
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(drawings_to_json(drawings))
        except OSError as e:
            log.error("Could not write %s: %s", path, e)
            QMessageBox.critical(self, "Error al guardar", str(e))

    def open_drawings_dialog(self):
        path, _ = QFileDialog.getOpenFileName(
            self, "Abrir dibujos", os.path.dirname(self.drawings_path or ""), "JSON (*.json)"
        )
        if path and self._load(path):
            self.scene.rebuild()
            self.view.zoom_fit()
            self._sync_toolbar()

    def save_drawings_dialog(self):
        path, _ = QFileDialog.getSaveFileName(
            self, "Guardar dibujos", self.drawings_path or "", "JSON (*.json)"
        )
        if not path:
            return
        self._write(path, self.controller.drawings)
        self.drawings_path = path
        self.settings_manager.settings.general.last_drawings_file = path
        self.statusBar().showMessage(f"Guardado: {path}")


def _parse_latlng(text: str):
    try:
        lat, lng = (float(v) for v in text.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected LAT,LNG, got {text!r}") from None
    return (lat, lng)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Incident operations map annotator")
    parser.add_argument("drawings", nargs="?", default="", help="drawings JSON file")
    parser.add_argument("--resources", default="", help="resources JSON file")
    parser.add_argument("--incident", type=_parse_latlng, default=None, help="incident LAT,LNG")
    parser.add_argument("--incident-name", default="", help="incident name")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None):
    """Application entry point."""
    args = parse_args(argv)

    settings_manager = get_settings()
    settings_manager.ensure_file_complete()
    log_cfg = settings_manager.settings.logging
    configure_logging(log_cfg.level, log_cfg.log_file, log_cfg.trace)
    trace("Application starting", "MAIN")

    app = QApplication(sys.argv[:1])

    resources: List[Resource] = []
    if args.resources:
        try:
            resources = load_resources_file(args.resources)
        except (OSError, ValueError, KeyError) as e:
            log.warning("Could not load resources from %s: %s", args.resources, e)

    incident = IncidentContext(name=args.incident_name, coordinates=args.incident)
    drawings_path = args.drawings or settings_manager.settings.general.last_drawings_file

    def save_on_quit():
        trace("Saving settings on quit", "MAIN")
        settings_manager.save()
        close_log()

    app.aboutToQuit.connect(save_on_quit)

    w = MainWindow(settings_manager, drawings_path, resources, incident)
    w.resize(1400, 900)
    w.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    def excepthook(exc_type, exc_value, exc_tb):
        import traceback
        trace("UNCAUGHT EXCEPTION:", "CRASH")
        trace("".join(traceback.format_exception(exc_type, exc_value, exc_tb)), "CRASH")
        close_log()
        sys.__excepthook__(exc_type, exc_value, exc_tb)

    sys.excepthook = excepthook

    try:
        main()
    except Exception as e:
        trace(f"FATAL: {type(e).__name__}: {e}", "CRASH")
        trace_exception("Fatal exception")
        close_log()
        raise

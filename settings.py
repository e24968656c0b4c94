"""
settings.py

Persistent settings management for opsmap.

Handles cross-platform settings storage using TOML format with platformdirs
for proper user config directory detection.

Settings file location:
    - Windows: %APPDATA%/opsmap/settings.toml
    - macOS: ~/Library/Application Support/opsmap/settings.toml
    - Linux: ~/.config/opsmap/settings.toml

Default values are documented in comments throughout this file.
If settings.toml is corrupted, these defaults will be used.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import platformdirs

# TOML reading - use tomllib for Python 3.11+, tomli for earlier versions
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomli_w

APP_NAME = "opsmap"

# Global settings manager instance (singleton)
_settings_manager: Optional["SettingsManager"] = None


def get_settings() -> "SettingsManager":
    """Get the global settings manager instance.

    Returns:
        The singleton SettingsManager instance.
    """
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager()
    return _settings_manager


def set_settings(manager: Optional["SettingsManager"]) -> None:
    """Replace the global settings manager (None resets to lazy default)."""
    global _settings_manager
    _settings_manager = manager


# =============================================================================
# General Settings
# =============================================================================

@dataclass
class GeneralSettings:
    """Map view defaults used when the caller supplies no incident context.

    Defaults:
        default_center_lat: -33.4489
        default_center_lng: -70.6693
        default_zoom: 13
        incident_zoom: 14
        incident_radius_m: 500.0
        last_drawings_file: ""
    """
    default_center_lat: float = -33.4489   # Default: Santiago, Chile
    default_center_lng: float = -70.6693   # Default: Santiago, Chile
    default_zoom: int = 13                 # Default: 13
    incident_zoom: int = 14                # Default: 14 when an incident is known
    incident_radius_m: float = 500.0       # Default: 500 meters (dashed ring)
    last_drawings_file: str = ""           # Default: "" (none)


# =============================================================================
# Drawing Settings
# =============================================================================

@dataclass
class DrawingSettings:
    """Defaults applied when the metadata form opens for a new shape.

    Defaults:
        default_category: "hazard_zone"
        default_priority: "medium"
    """
    default_category: str = "hazard_zone"  # Default: "hazard_zone"
    default_priority: str = "medium"       # Default: "medium"


@dataclass
class BuilderSettings:
    """Shape construction settings.

    Defaults:
        polygon_min_vertices: 3
        polyline_min_vertices: 2
        distance_method: "haversine"
    """
    polygon_min_vertices: int = 3           # Default: 3 vertices
    polyline_min_vertices: int = 2          # Default: 2 vertices
    distance_method: str = "haversine"      # Default: "haversine" | "planar"


# =============================================================================
# Canvas Settings
# =============================================================================

@dataclass
class CanvasHandleSettings:
    """Vertex handle settings.

    Defaults:
        size: 12.0
        border_color: "#0F172A"
        fill_color: "#FFFFFF"
    """
    size: float = 12.0                # Default: 12.0 pixels
    border_color: str = "#0F172A"     # Default: slate
    fill_color: str = "#FFFFFF"       # Default: white


@dataclass
class CanvasOverlaySettings:
    """Overlay rendering settings.

    Defaults:
        fill_opacity: 0.3
        line_width: 2
        polyline_width: 3
        marker_size: 14.0
        icon_size: 22.0
        scene_scale: 10000.0
    """
    fill_opacity: float = 0.3      # Default: 0.3
    line_width: int = 2            # Default: 2 pixels
    polyline_width: int = 3        # Default: 3 pixels
    marker_size: float = 14.0      # Default: 14.0 pixels
    icon_size: float = 22.0        # Default: 22.0 points
    scene_scale: float = 10000.0   # Default: 10000 scene units per degree


@dataclass
class CanvasZoomSettings:
    """Zoom behavior settings.

    Defaults:
        wheel_factor: 1.15
    """
    wheel_factor: float = 1.15  # Default: 1.15 (15% per scroll step)


@dataclass
class CanvasSettings:
    """All canvas-related settings."""
    handles: CanvasHandleSettings = field(default_factory=CanvasHandleSettings)
    overlay: CanvasOverlaySettings = field(default_factory=CanvasOverlaySettings)
    zoom: CanvasZoomSettings = field(default_factory=CanvasZoomSettings)


# =============================================================================
# Logging Settings
# =============================================================================

@dataclass
class LoggingSettings:
    """Logging settings.

    Defaults:
        level: "INFO"
        log_file: ""
        trace: False
    """
    level: str = "INFO"     # Default: "INFO"
    log_file: str = ""      # Default: "" (stderr only)
    trace: bool = False     # Default: False


# =============================================================================
# Main App Settings
# =============================================================================

@dataclass
class AppSettings:
    """Application settings with default values.

    Attributes:
        general: Map view defaults.
        drawing: Metadata form defaults.
        builder: Shape construction settings.
        canvas: Canvas-related settings.
        logging: Logging settings.
    """
    general: GeneralSettings = field(default_factory=GeneralSettings)
    drawing: DrawingSettings = field(default_factory=DrawingSettings)
    builder: BuilderSettings = field(default_factory=BuilderSettings)
    canvas: CanvasSettings = field(default_factory=CanvasSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


# =============================================================================
# Settings Manager
# =============================================================================

class SettingsManager:
    """Manages loading, saving, and accessing application settings.

    Settings are stored in a TOML file at the platform-appropriate location.
    If the settings file doesn't exist, defaults are used and the file is
    created on first save.

    Args:
        app_name: Application name used for the config directory.
        settings_dir: Explicit directory overriding the platform location.
    """

    def __init__(self, app_name: str = APP_NAME, settings_dir: Optional[Path] = None):
        if settings_dir is not None:
            self.settings_dir = Path(settings_dir)
        else:
            self.settings_dir = Path(platformdirs.user_config_dir(app_name))
        self.settings_file = self.settings_dir / "settings.toml"
        self.settings = self.load()
        self._needs_save = not self.settings_file.exists()  # Save if file didn't exist

    def ensure_file_complete(self) -> None:
        """Ensure settings file exists with all sections. Call once at startup."""
        if self._needs_save or not self.settings_file.exists():
            self.save()
            self._needs_save = False

    def load(self) -> AppSettings:
        """Load settings from the TOML file.

        Returns:
            AppSettings instance with values from file or defaults if file
            doesn't exist or is invalid.
        """
        if not self.settings_file.exists():
            return AppSettings()

        try:
            with open(self.settings_file, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError):
            # If file is corrupted or unreadable, return defaults
            return AppSettings()

        return self._parse_toml(data)

    def _parse_toml(self, data: Dict[str, Any]) -> AppSettings:
        """Parse TOML data into AppSettings.

        Args:
            data: Parsed TOML dictionary.

        Returns:
            AppSettings instance populated from TOML data.
        """
        settings = AppSettings()

        general = data.get("general", {})
        g = settings.general
        g.default_center_lat = float(general.get("default_center_lat", g.default_center_lat))
        g.default_center_lng = float(general.get("default_center_lng", g.default_center_lng))
        g.default_zoom = int(general.get("default_zoom", g.default_zoom))
        g.incident_zoom = int(general.get("incident_zoom", g.incident_zoom))
        g.incident_radius_m = float(general.get("incident_radius_m", g.incident_radius_m))
        g.last_drawings_file = str(general.get("last_drawings_file", g.last_drawings_file))

        drawing = data.get("drawing", {})
        settings.drawing.default_category = drawing.get("default_category", settings.drawing.default_category)
        settings.drawing.default_priority = drawing.get("default_priority", settings.drawing.default_priority)

        builder = data.get("builder", {})
        b = settings.builder
        b.polygon_min_vertices = int(builder.get("polygon_min_vertices", b.polygon_min_vertices))
        b.polyline_min_vertices = int(builder.get("polyline_min_vertices", b.polyline_min_vertices))
        b.distance_method = builder.get("distance_method", b.distance_method)

        canvas = data.get("canvas", {})
        if "handles" in canvas:
            h = canvas["handles"]
            settings.canvas.handles.size = h.get("size", settings.canvas.handles.size)
            settings.canvas.handles.border_color = h.get("border_color", settings.canvas.handles.border_color)
            settings.canvas.handles.fill_color = h.get("fill_color", settings.canvas.handles.fill_color)
        if "overlay" in canvas:
            o = canvas["overlay"]
            ov = settings.canvas.overlay
            ov.fill_opacity = o.get("fill_opacity", ov.fill_opacity)
            ov.line_width = o.get("line_width", ov.line_width)
            ov.polyline_width = o.get("polyline_width", ov.polyline_width)
            ov.marker_size = o.get("marker_size", ov.marker_size)
            ov.icon_size = o.get("icon_size", ov.icon_size)
            ov.scene_scale = o.get("scene_scale", ov.scene_scale)
        if "zoom" in canvas:
            zm = canvas["zoom"]
            settings.canvas.zoom.wheel_factor = zm.get("wheel_factor", settings.canvas.zoom.wheel_factor)

        log_section = data.get("logging", {})
        settings.logging.level = log_section.get("level", settings.logging.level)
        settings.logging.log_file = log_section.get("log_file", settings.logging.log_file)
        settings.logging.trace = bool(log_section.get("trace", settings.logging.trace))

        return settings

    def save(self) -> None:
        """Save current settings to the TOML file.

        Creates the settings directory if it doesn't exist.
        """
        self.settings_dir.mkdir(parents=True, exist_ok=True)

        data = self._to_toml_dict()

        with open(self.settings_file, "wb") as f:
            tomli_w.dump(data, f)

    def _to_toml_dict(self) -> Dict[str, Any]:
        """Convert settings to a TOML-compatible dictionary structure.

        Returns:
            Dictionary organized by TOML sections.
        """
        s = self.settings
        return {
            "general": {
                "default_center_lat": s.general.default_center_lat,
                "default_center_lng": s.general.default_center_lng,
                "default_zoom": s.general.default_zoom,
                "incident_zoom": s.general.incident_zoom,
                "incident_radius_m": s.general.incident_radius_m,
                "last_drawings_file": s.general.last_drawings_file,
            },
            "drawing": {
                "default_category": s.drawing.default_category,
                "default_priority": s.drawing.default_priority,
            },
            "builder": {
                "polygon_min_vertices": s.builder.polygon_min_vertices,
                "polyline_min_vertices": s.builder.polyline_min_vertices,
                "distance_method": s.builder.distance_method,
            },
            "canvas": {
                "handles": {
                    "size": s.canvas.handles.size,
                    "border_color": s.canvas.handles.border_color,
                    "fill_color": s.canvas.handles.fill_color,
                },
                "overlay": {
                    "fill_opacity": s.canvas.overlay.fill_opacity,
                    "line_width": s.canvas.overlay.line_width,
                    "polyline_width": s.canvas.overlay.polyline_width,
                    "marker_size": s.canvas.overlay.marker_size,
                    "icon_size": s.canvas.overlay.icon_size,
                    "scene_scale": s.canvas.overlay.scene_scale,
                },
                "zoom": {
                    "wheel_factor": s.canvas.zoom.wheel_factor,
                },
            },
            "logging": {
                "level": s.logging.level,
                "log_file": s.logging.log_file,
                "trace": s.logging.trace,
            },
        }

    def to_toml(self) -> str:
        """Convert current settings to a TOML-formatted string.

        Returns:
            TOML representation of the current settings.
        """
        data = self._to_toml_dict()
        return tomli_w.dumps(data)

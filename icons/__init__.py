"""
icons package

Static taxonomy for map annotations:

- icon kinds (key, label, category, color, glyph) used by icon markers,
- drawing categories with their fixed default color and display label,
- priorities,

plus ``resolve_icon()``, the heuristic that suggests an icon for an
external resource from its kind and free-text category.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple


# ----------------------------
# Icon taxonomy
# ----------------------------

class IconCategory:
    """Icon category constants."""
    VEHICLES = "vehicles"
    PERSONNEL = "personnel"
    EQUIPMENT = "equipment"
    FACILITIES = "facilities"
    ALERTS = "alerts"

    ALL = (VEHICLES, PERSONNEL, EQUIPMENT, FACILITIES, ALERTS)


ICON_CATEGORY_LABELS: Dict[str, str] = {
    IconCategory.VEHICLES: "Vehículos",
    IconCategory.PERSONNEL: "Personal",
    IconCategory.EQUIPMENT: "Equipamiento",
    IconCategory.FACILITIES: "Instalaciones",
    IconCategory.ALERTS: "Alertas",
}


@dataclass(frozen=True)
class IconKind:
    """A single icon a marker can carry.

    Attributes:
        key: Stable identifier stored in drawings (e.g. "fire_truck").
        label: Display label.
        category: One of IconCategory.ALL.
        color: Marker background color.
        glyph: Short glyph drawn on the marker.
    """
    key: str
    label: str
    category: str
    color: str
    glyph: str


_ICON_TABLE: Tuple[IconKind, ...] = (
    # ── Vehicles ──
    IconKind("fire_truck", "Carro Bomba", IconCategory.VEHICLES, "#dc2626", "🚒"),
    IconKind("ambulance", "Ambulancia", IconCategory.VEHICLES, "#f59e0b", "🚑"),
    IconKind("police_car", "Patrulla", IconCategory.VEHICLES, "#3b82f6", "🚓"),
    IconKind("helicopter", "Helicóptero", IconCategory.VEHICLES, "#06b6d4", "🚁"),
    IconKind("boat", "Embarcación", IconCategory.VEHICLES, "#0ea5e9", "🚤"),
    # ── Personnel ──
    IconKind("firefighter", "Bombero", IconCategory.PERSONNEL, "#dc2626", "👨‍🚒"),
    IconKind("paramedic", "Paramédico", IconCategory.PERSONNEL, "#ef4444", "⚕"),
    IconKind("police_officer", "Policía", IconCategory.PERSONNEL, "#3b82f6", "👮"),
    IconKind("rescue_team", "Equipo de Rescate", IconCategory.PERSONNEL, "#f97316", "🦺"),
    IconKind("volunteer", "Voluntario", IconCategory.PERSONNEL, "#14b8a6", "🤝"),
    # ── Equipment ──
    IconKind("water_pump", "Motobomba", IconCategory.EQUIPMENT, "#0ea5e9", "⛲"),
    IconKind("generator", "Generador", IconCategory.EQUIPMENT, "#eab308", "⚡"),
    IconKind("communications", "Comunicaciones", IconCategory.EQUIPMENT, "#6366f1", "📡"),
    IconKind("heavy_machinery", "Maquinaria Pesada", IconCategory.EQUIPMENT, "#92400e", "🚜"),
    # ── Facilities ──
    IconKind("command_post", "Puesto de Comando", IconCategory.FACILITIES, "#8b5cf6", "🏢"),
    IconKind("field_hospital", "Hospital de Campaña", IconCategory.FACILITIES, "#ec4899", "⛺"),
    IconKind("shelter", "Albergue", IconCategory.FACILITIES, "#10b981", "🏠"),
    IconKind("water_point", "Punto de Agua", IconCategory.FACILITIES, "#06b6d4", "💧"),
    # ── Alerts ──
    IconKind("fire", "Foco de Incendio", IconCategory.ALERTS, "#b91c1c", "🔥"),
    IconKind("hazard", "Peligro", IconCategory.ALERTS, "#f97316", "☢"),
    IconKind("roadblock", "Bloqueo de Ruta", IconCategory.ALERTS, "#ef4444", "🚧"),
    IconKind("evacuation_point", "Punto de Evacuación", IconCategory.ALERTS, "#10b981", "🚪"),
)

ICON_KINDS: Dict[str, IconKind] = {icon.key: icon for icon in _ICON_TABLE}

DEFAULT_ICON = "fire_truck"


def icons_by_category() -> Dict[str, List[IconKind]]:
    """Group icon kinds by category, preserving table order."""
    grouped: Dict[str, List[IconKind]] = {c: [] for c in IconCategory.ALL}
    for icon in _ICON_TABLE:
        grouped[icon.category].append(icon)
    return grouped


# ----------------------------
# Resource → icon heuristic
# ----------------------------

# Order is significant: the first rule whose substring appears in the
# lowercased resource category wins.
ICON_RULES: Dict[str, Tuple[Tuple[Tuple[str, ...], str], ...]] = {
    "vehicle": (
        (("bomba",), "fire_truck"),
        (("ambulancia",), "ambulance"),
        (("patrulla", "policia", "policía"), "police_car"),
        (("helicóptero", "helicoptero"), "helicopter"),
        (("lancha", "bote"), "boat"),
    ),
    "personnel": (
        (("bombero",), "firefighter"),
        (("paramédico", "paramedico", "médico", "medico"), "paramedic"),
        (("carabinero", "policía", "policia"), "police_officer"),
        (("rescate",), "rescue_team"),
        (("voluntario",), "volunteer"),
    ),
    "equipment": (
        (("motobomba", "bomba de agua"), "water_pump"),
        (("generador",), "generator"),
        (("radio", "comunicaci"), "communications"),
        (("maquinaria", "retroexcavadora"), "heavy_machinery"),
    ),
}


def resolve_icon(resource_kind: Optional[str], resource_category: Optional[str]) -> str:
    """Suggest an icon key for an external resource.

    Rules are checked per resource kind bucket (vehicle, personnel,
    equipment) as case-insensitive substring matches against the
    resource category; the first match wins.

    Args:
        resource_kind: Resource kind ("vehicle", "personnel", "equipment").
        resource_category: Free-text category (e.g. "Carro Bomba").

    Returns:
        An icon key from ICON_KINDS; DEFAULT_ICON when nothing matches.
    """
    rules = ICON_RULES.get((resource_kind or "").strip().lower())
    if not rules:
        return DEFAULT_ICON
    category = (resource_category or "").lower()
    for needles, icon_key in rules:
        if any(n in category for n in needles):
            return icon_key
    return DEFAULT_ICON


# ----------------------------
# Drawing categories and priorities
# ----------------------------

@dataclass(frozen=True)
class CategoryMeta:
    """Fixed default color and display label of a drawing category."""
    color: str
    label: str


DRAWING_CATEGORIES: Dict[str, CategoryMeta] = {
    "hazard_zone":      CategoryMeta("#ef4444", "Zona de Peligro"),
    "safe_zone":        CategoryMeta("#10b981", "Zona Segura"),
    "evacuation_route": CategoryMeta("#3b82f6", "Ruta de Evacuación"),
    "staging_area":     CategoryMeta("#f59e0b", "Área de Preparación"),
    "water_source":     CategoryMeta("#06b6d4", "Fuente de Agua"),
    "fire_line":        CategoryMeta("#dc2626", "Línea de Fuego"),
    "access_point":     CategoryMeta("#8b5cf6", "Punto de Acceso"),
    "restricted_area":  CategoryMeta("#f97316", "Área Restringida"),
    "medical_area":     CategoryMeta("#ec4899", "Área Médica"),
    "other":            CategoryMeta("#64748b", "Otro"),
}


def category_meta(category: str) -> CategoryMeta:
    """Return color and label for a drawing category.

    Unknown categories get the "other" color and their raw name as label.
    """
    meta = DRAWING_CATEGORIES.get(category)
    if meta is not None:
        return meta
    return CategoryMeta(DRAWING_CATEGORIES["other"].color, str(category))


PRIORITIES: Dict[str, CategoryMeta] = {
    "low":      CategoryMeta("#22c55e", "Baja"),
    "medium":   CategoryMeta("#eab308", "Media"),
    "high":     CategoryMeta("#f97316", "Alta"),
    "critical": CategoryMeta("#ef4444", "Crítica"),
}


def priority_meta(priority: str) -> CategoryMeta:
    return PRIORITIES.get(priority, PRIORITIES["medium"])


def choices(table: Dict[str, CategoryMeta]) -> Sequence[Tuple[str, str]]:
    """(key, label) pairs for a combo box, in table order."""
    return [(key, meta.label) for key, meta in table.items()]

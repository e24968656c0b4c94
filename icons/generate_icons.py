"""
generate_icons.py

Generate SVG icons for the draw toolbar and for every icon kind.
Run this script to regenerate icons after modifying colors or designs.

Output:
- modes/<mode>.svg and modes/<mode>_selected.svg for the draw toolbar
- markers/<icon_key>.svg, a round badge in the icon kind's color
"""

import html
import os
import sys
from typing import Dict, Optional

if __package__ in (None, ""):
    sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from icons import ICON_KINDS  # noqa: E402

# Toolbar color variants
VARIANTS = {
    "normal": {"stroke": "#1F2937", "fill": "none", "accent": "#EF4444"},
    "selected": {"stroke": "#FFFFFF", "fill": "none", "accent": "#FCA5A5"},
}

# SVG toolbar templates (24x24 viewBox)
MODE_ICONS = {
    "marker": '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24" width="24" height="24">
  <path d="M12 22 C12 22 5 14 5 9 A7 7 0 0 1 19 9 C19 14 12 22 12 22 Z" stroke="{stroke}" stroke-width="1.5" fill="{accent}" stroke-linejoin="round"/>
  <circle cx="12" cy="9" r="2.5" fill="{stroke}"/>
</svg>''',

    "icon": '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24" width="24" height="24">
  <circle cx="12" cy="12" r="9" stroke="{stroke}" stroke-width="1.5" fill="{accent}"/>
  <path d="M8 12 L11 15 L16 9" stroke="{stroke}" stroke-width="2" fill="none" stroke-linecap="round" stroke-linejoin="round"/>
</svg>''',

    "circle": '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24" width="24" height="24">
  <circle cx="12" cy="12" r="9" stroke="{stroke}" stroke-width="2" fill="{fill}"/>
  <line x1="12" y1="12" x2="21" y2="12" stroke="{accent}" stroke-width="1.5" stroke-dasharray="2,1"/>
  <circle cx="12" cy="12" r="1.5" fill="{accent}"/>
</svg>''',

    "polygon": '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24" width="24" height="24">
  <polygon points="4,7 13,3 21,10 17,20 6,18" stroke="{stroke}" stroke-width="2" fill="{fill}" stroke-linejoin="round"/>
  <circle cx="4" cy="7" r="1.5" fill="{accent}"/>
  <circle cx="21" cy="10" r="1.5" fill="{accent}"/>
  <circle cx="6" cy="18" r="1.5" fill="{accent}"/>
</svg>''',

    "polyline": '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24" width="24" height="24">
  <polyline points="3,19 9,9 15,15 21,5" stroke="{stroke}" stroke-width="2" fill="none" stroke-linecap="round" stroke-linejoin="round"/>
  <circle cx="3" cy="19" r="1.5" fill="{accent}"/>
  <circle cx="21" cy="5" r="1.5" fill="{accent}"/>
</svg>''',

    "rectangle": '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24" width="24" height="24">
  <rect x="3" y="5" width="18" height="14" stroke="{stroke}" stroke-width="2" fill="{fill}"/>
  <circle cx="3" cy="5" r="1.5" fill="{accent}"/>
  <circle cx="21" cy="19" r="1.5" fill="{accent}"/>
</svg>''',
}

MARKER_TEMPLATE = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 32 32" width="32" height="32">
  <circle cx="16" cy="16" r="14" fill="{color}" stroke="#FFFFFF" stroke-width="2"/>
  <text x="16" y="21" font-size="14" text-anchor="middle">{glyph}</text>
</svg>'''


def render_mode_icon(mode: str, variant: str = "normal") -> str:
    return MODE_ICONS[mode].format(**VARIANTS[variant])


def render_marker_icon(icon_key: str) -> str:
    icon = ICON_KINDS[icon_key]
    return MARKER_TEMPLATE.format(color=icon.color, glyph=html.escape(icon.glyph))


def marker_icon_path(icon_key: str, base_dir: Optional[str] = None) -> str:
    """Path of the marker badge SVG for an icon key."""
    if base_dir is None:
        base_dir = os.path.dirname(os.path.abspath(__file__))
    return os.path.join(base_dir, "markers", f"{icon_key}.svg")


def generate_icons(base_dir: Optional[str] = None, verbose: bool = True) -> Dict[str, str]:
    """Write all toolbar and marker icons.

    Returns:
        Mapping of icon name to written path.
    """
    if base_dir is None:
        base_dir = os.path.dirname(os.path.abspath(__file__))
    written: Dict[str, str] = {}

    modes_dir = os.path.join(base_dir, "modes")
    os.makedirs(modes_dir, exist_ok=True)
    for variant_name in VARIANTS:
        for mode in MODE_ICONS:
            # Normal icons: mode.svg, Selected icons: mode_selected.svg
            if variant_name == "normal":
                filename = f"{mode}.svg"
            else:
                filename = f"{mode}_{variant_name}.svg"
            path = os.path.join(modes_dir, filename)
            with open(path, "w", encoding="utf-8") as f:
                f.write(render_mode_icon(mode, variant_name))
            written[f"modes/{filename}"] = path

    os.makedirs(os.path.join(base_dir, "markers"), exist_ok=True)
    for key in ICON_KINDS:
        path = marker_icon_path(key, base_dir)
        with open(path, "w", encoding="utf-8") as f:
            f.write(render_marker_icon(key))
        written[f"markers/{key}.svg"] = path

    if verbose:
        for path in written.values():
            print(f"Created: {path}")
        print("\nIcon generation complete!")
    return written


if __name__ == "__main__":
    generate_icons()

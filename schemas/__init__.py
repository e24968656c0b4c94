"""
schemas/__init__.py

JSON Schema for drawing records and validation helpers used when loading
or saving a drawings file.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft202012Validator

from icons import ICON_KINDS

# Schema file paths
SCHEMA_DIR = os.path.dirname(os.path.abspath(__file__))
DRAWING_SCHEMA_PATH = os.path.join(SCHEMA_DIR, "drawing_schema.json")

# Cached schema
_drawing_schema: Optional[Dict] = None


def get_drawing_schema() -> Dict:
    """Load and return the drawings file schema."""
    global _drawing_schema
    if _drawing_schema is None:
        with open(DRAWING_SCHEMA_PATH, "r", encoding="utf-8") as f:
            _drawing_schema = json.load(f)
    return _drawing_schema


def _item_schema() -> Dict[str, Any]:
    schema = get_drawing_schema()
    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "$defs": schema["$defs"],
        "$ref": "#/$defs/drawing",
    }


def _format_errors(validator: Draft202012Validator, data: Any) -> List[str]:
    messages = []
    for error in sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path)):
        path = " -> ".join(str(p) for p in error.absolute_path) if error.absolute_path else "root"
        messages.append(f"{path}: {error.message}")
    return messages


def _icon_errors(record: Dict[str, Any], prefix: str = "") -> List[str]:
    """Icon keys are a closed set owned by the icons package, not the schema file."""
    geometry = record.get("geometry") if isinstance(record, dict) else None
    if isinstance(geometry, dict) and geometry.get("type") == "icon":
        key = geometry.get("icon")
        if isinstance(key, str) and key not in ICON_KINDS:
            return [f"{prefix}geometry -> icon: unknown icon key {key!r}"]
    return []


def validate_drawing(record: Dict) -> Tuple[bool, List[str]]:
    """
    Validate one drawing record.

    Args:
        record: A drawing dictionary as produced by Drawing.to_dict().

    Returns:
        Tuple of (is_valid, list_of_error_messages)
    """
    validator = Draft202012Validator(_item_schema())
    messages = _format_errors(validator, record) + _icon_errors(record)
    return not messages, messages


def validate_collection(data: Any) -> Tuple[bool, List[str]]:
    """
    Validate a drawings file (array of drawing records).

    Also reports duplicate ids and resources linked to more than one drawing.

    Returns:
        Tuple of (is_valid, list_of_error_messages)
    """
    validator = Draft202012Validator(get_drawing_schema())
    messages = _format_errors(validator, data)
    if not isinstance(data, list):
        return False, messages

    seen_ids: Dict[str, int] = {}
    seen_resources: Dict[str, int] = {}
    for i, record in enumerate(data):
        messages.extend(_icon_errors(record, f"{i} -> "))
        if not isinstance(record, dict):
            continue
        rid = record.get("id")
        if rid is not None:
            key = str(rid)
            if key in seen_ids:
                messages.append(f"{i} -> id: duplicate id {key!r} (also at {seen_ids[key]})")
            else:
                seen_ids[key] = i
        res = record.get("resource_id")
        if res not in (None, ""):
            key = str(res)
            if key in seen_resources:
                messages.append(
                    f"{i} -> resource_id: resource {key!r} already linked at {seen_resources[key]}"
                )
            else:
                seen_resources[key] = i
    return not messages, messages

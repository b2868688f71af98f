from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from portal.services.fields import FieldDescriptor, FieldKind


def build_option_label_map(descriptors: Sequence[FieldDescriptor]) -> Dict[str, Dict[str, str]]:
    """
    Returns a mapping: field_name -> { option_value: option_label }
    Only for select fields.
    """
    out: Dict[str, Dict[str, str]] = {}

    for field in descriptors:
        if field.kind is not FieldKind.SELECT:
            continue
        out[field.name] = {opt.value: opt.label for opt in field.options}

    return out


def build_field_label_map(descriptors: Sequence[FieldDescriptor]) -> Dict[str, str]:
    return {field.name: field.display_name for field in descriptors}


def resolve_label(field_name: str, stored_value: Any, label_map: Dict[str, Dict[str, str]]) -> Optional[str]:
    """
    Converts a stored option value to its label if possible.
    Falls back to the stringified value.
    """
    if stored_value is None or stored_value == "":
        return None

    field_map = label_map.get(field_name, {})
    if isinstance(stored_value, list):
        labels = [field_map.get(str(v), str(v)) for v in stored_value]
        return ", ".join(labels)

    return field_map.get(str(stored_value), str(stored_value))


def display_value(field_name: str, stored_value: Any, label_map: Dict[str, Dict[str, str]]) -> str:
    """Human-readable rendering of one stored answer (files show their original name)."""
    if isinstance(stored_value, dict):
        return str(stored_value.get("original_name") or "")
    if isinstance(stored_value, bool):
        return "Yes" if stored_value else "No"
    return resolve_label(field_name, stored_value, label_map) or ""


def answer_rows(descriptors: Sequence[FieldDescriptor], data: Dict[str, Any]) -> List[Tuple[str, str]]:
    """
    (label, display value) pairs for a stored submission.
    Known fields come first in form order; leftover keys follow with a prettified label.
    """
    field_labels = build_field_label_map(descriptors)
    option_labels = build_option_label_map(descriptors)

    ordered = [f.name for f in descriptors if f.name in data]
    ordered += [k for k in data if k not in field_labels]

    rows = []
    for key in ordered:
        label = field_labels.get(key, key.replace("_", " ").title())
        rows.append((label, display_value(key, data.get(key), option_labels)))
    return rows

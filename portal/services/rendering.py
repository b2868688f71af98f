from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from portal.services.fields import FieldDescriptor, FieldKind
from portal.services.form_state import FormState

# Colours match the portal's dark theme (tailwind gray-600 / red-500 / blue-500).
BORDER_DEFAULT = "#4b5563"
BORDER_ERROR = "#ef4444"
BORDER_FOCUS = "#3b82f6"
FOCUS_SHADOW = "0 0 0 3px rgba(59, 130, 246, 0.3), 0 0 10px rgba(59, 130, 246, 0.5)"


@dataclass(frozen=True)
class StyleDescriptor:
    border_color: str
    box_shadow: str
    css_class: str

    def as_css(self) -> str:
        return f"border-color: {self.border_color}; box-shadow: {self.box_shadow};"


def field_style(has_error: bool, is_focused: bool = False) -> StyleDescriptor:
    if is_focused:
        return StyleDescriptor(border_color=BORDER_FOCUS, box_shadow=FOCUS_SHADOW, css_class="is-focused")
    if has_error:
        return StyleDescriptor(border_color=BORDER_ERROR, box_shadow="none", css_class="has-error")
    return StyleDescriptor(border_color=BORDER_DEFAULT, box_shadow="none", css_class="")


def widget_template(descriptor: FieldDescriptor) -> str:
    kind = descriptor.kind
    if kind is FieldKind.TEXT_LIKE:
        return "portal/fields/input.html"
    if kind is FieldKind.TEXTAREA:
        return "portal/fields/textarea.html"
    if kind is FieldKind.SELECT:
        return "portal/fields/select.html"
    if kind is FieldKind.CHECKBOX:
        return "portal/fields/checkbox.html"
    if kind is FieldKind.FILE:
        return "portal/fields/file.html"
    raise AssertionError(f"Unhandled field kind: {kind!r}")


def html_attrs(descriptor: FieldDescriptor) -> Dict[str, Any]:
    """Attributes for the control itself; None values are dropped."""
    attrs: Dict[str, Any] = {
        "id": descriptor.name,
        "name": descriptor.name,
        "required": descriptor.required or None,
        "disabled": descriptor.disabled or None,
    }

    kind = descriptor.kind
    if kind is FieldKind.TEXT_LIKE:
        attrs.update({
            "type": descriptor.input_type,
            "placeholder": descriptor.placeholder or None,
            "minlength": descriptor.min_length,
            "min": descriptor.min,
            "max": descriptor.max,
            "step": descriptor.step,
            "pattern": descriptor.pattern,
        })
    elif kind is FieldKind.TEXTAREA:
        attrs.update({"rows": descriptor.rows, "placeholder": descriptor.placeholder or None})
    elif kind is FieldKind.FILE:
        attrs.update({"type": "file", "accept": descriptor.accept_display})
    elif kind is FieldKind.CHECKBOX:
        # A browser can't submit an unchecked box, so "required" is enforced server-side only.
        attrs.update({"type": "checkbox", "required": None})
    # Selects use only the common attributes; their options come from the widget template.

    return {k: v for k, v in attrs.items() if v is not None}


@dataclass
class BoundField:
    descriptor: FieldDescriptor
    value: Any
    error: str
    file_display: str
    style: StyleDescriptor
    attrs: Dict[str, Any]
    template_name: str
    autofocus: bool = False

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def show_label(self) -> bool:
        # checkboxes carry their own inline label
        return bool(self.descriptor.label) and self.descriptor.kind is not FieldKind.CHECKBOX

    @property
    def show_help(self) -> bool:
        return bool(self.descriptor.help_text) and not self.error


def bind_fields(
    state: FormState,
    descriptors: Optional[Sequence[FieldDescriptor]] = None,
    *,
    focus_field: Optional[str] = None,
    disabled: bool = False,
) -> List[BoundField]:
    descriptors = descriptors if descriptors is not None else state.descriptors
    values = state.values
    errors = state.errors
    displays = state.file_displays

    bound = []
    for descriptor in descriptors:
        error = errors.get(descriptor.name, "")
        attrs = html_attrs(descriptor)
        if disabled:
            attrs["disabled"] = True
        autofocus = descriptor.name == focus_field
        if autofocus:
            attrs["autofocus"] = True

        bound.append(
            BoundField(
                descriptor=descriptor,
                value=values.get(descriptor.name),
                error=error,
                file_display=displays.get(descriptor.name, ""),
                style=field_style(bool(error), is_focused=False),
                attrs=attrs,
                template_name=widget_template(descriptor),
                autofocus=autofocus,
            )
        )
    return bound

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Sequence

from portal.services.errors import FieldKindMismatch, UnknownFieldError
from portal.services.fields import FieldDescriptor, FieldKind
from portal.services.file_rules import exceeds_hard_cap

logger = logging.getLogger(__name__)

HARD_CAP_ERROR = "File size exceeds the 10MB limit"

TRUTHY_CHECKBOX_VALUES = ("on", "true", "True", "1", "yes")


def default_value(field: FieldDescriptor) -> Any:
    if field.kind is FieldKind.CHECKBOX:
        return False
    if field.kind is FieldKind.FILE:
        return None
    return ""


def coerce_checkbox(raw_value: Any) -> bool:
    if isinstance(raw_value, bool):
        return raw_value
    return raw_value in TRUTHY_CHECKBOX_VALUES


def initial_value(field: FieldDescriptor, initial_values: Mapping[str, Any]) -> Any:
    # File inputs can't be prefilled, so they always start empty.
    if field.kind is FieldKind.FILE or field.name not in initial_values:
        return default_value(field)
    raw_value = initial_values[field.name]
    if field.kind is FieldKind.CHECKBOX:
        return coerce_checkbox(raw_value)
    return "" if raw_value is None else raw_value


class FormState:
    """
    Values, per-field errors and file display names for one form instance.

    Every mutation goes through a method here; the maps only ever hold keys
    from the descriptor list. `file_displays[name]` is set exactly when
    `values[name]` holds a file.
    """

    def __init__(
        self,
        descriptors: Sequence[FieldDescriptor],
        initial_values: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.descriptors = list(descriptors)
        self._fields: Dict[str, FieldDescriptor] = {f.name: f for f in self.descriptors}

        initial_values = initial_values or {}
        ignored = set(initial_values) - set(self._fields)
        if ignored:
            logger.debug("Ignoring initial values for unknown fields: %s", sorted(ignored))

        self._initial: Dict[str, Any] = {f.name: initial_value(f, initial_values) for f in self.descriptors}
        self._values: Dict[str, Any] = dict(self._initial)
        self._errors: Dict[str, str] = {}
        self._file_displays: Dict[str, str] = {}
        self._form_error: str = ""

    # ----------------------------
    # Read access (copies only)
    # ----------------------------

    @property
    def values(self) -> Dict[str, Any]:
        return dict(self._values)

    @property
    def errors(self) -> Dict[str, str]:
        return dict(self._errors)

    @property
    def file_displays(self) -> Dict[str, str]:
        return dict(self._file_displays)

    @property
    def form_error(self) -> str:
        return self._form_error

    @property
    def initial_values(self) -> Dict[str, Any]:
        return dict(self._initial)

    def field(self, name: str) -> FieldDescriptor:
        try:
            return self._fields[name]
        except KeyError:
            raise UnknownFieldError(name) from None

    def snapshot(self) -> Dict[str, Any]:
        return dict(self._values)

    def has_values(self) -> bool:
        return any(bool(v) for v in self._values.values())

    # ----------------------------
    # Transitions
    # ----------------------------

    def set_value(self, name: str, raw_value: Any) -> None:
        field = self.field(name)

        if field.kind is FieldKind.FILE:
            self.set_file(name, raw_value)
            return

        if field.kind is FieldKind.CHECKBOX:
            self._values[name] = coerce_checkbox(raw_value)
        else:
            self._values[name] = "" if raw_value is None else raw_value

        self.clear_error(name)

    def set_file(self, name: str, file: Any) -> None:
        field = self.field(name)
        if field.kind is not FieldKind.FILE:
            raise FieldKindMismatch(f"{name} is a {field.kind.value} field, not a file field")

        if file is None:
            self.clear_file(name)
            return

        # Hard cap runs before the file ever reaches the values map,
        # whatever the descriptor's own max_size says.
        if exceeds_hard_cap(file):
            logger.info("Rejected %s for %s: over the hard size cap", getattr(file, "name", "file"), name)
            self._errors[name] = HARD_CAP_ERROR
            return

        self._values[name] = file
        self._file_displays[name] = getattr(file, "name", "") or name
        self.clear_error(name)

    def clear_file(self, name: str) -> None:
        self.field(name)
        self._values[name] = None
        self._file_displays.pop(name, None)

    def clear_error(self, name: str) -> None:
        self._errors.pop(name, None)

    def set_errors(self, errors: Mapping[str, str]) -> None:
        for name in errors:
            self.field(name)
        self._errors = {name: msg for name, msg in errors.items() if msg}

    def set_form_error(self, message: str) -> None:
        self._form_error = message or ""

    def reset(self) -> None:
        self._values = dict(self._initial)
        self._errors = {}
        self._file_displays = {}
        self._form_error = ""

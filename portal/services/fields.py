from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from portal.services.errors import FormConfigError
from portal.services.validators import Predicate, ValidatorRegistry, default_validators


class FieldKind(str, enum.Enum):
    TEXT_LIKE = "text"
    TEXTAREA = "textarea"
    SELECT = "select"
    CHECKBOX = "checkbox"
    FILE = "file"


# Concrete <input type="..."> values that all behave as TEXT_LIKE.
TEXT_INPUT_TYPES = frozenset({
    "text",
    "email",
    "password",
    "number",
    "date",
    "tel",
    "url",
    "search",
    "time",
    "datetime-local",
    "month",
    "week",
    "color",
})


@dataclass(frozen=True)
class SelectOption:
    value: str
    label: str


@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    kind: FieldKind
    input_type: str = "text"
    label: str = ""
    placeholder: str = ""
    help_text: str = ""
    checkbox_label: str = ""
    required: bool = False
    disabled: bool = False
    options: Tuple[SelectOption, ...] = ()
    accept: Tuple[str, ...] = ()
    max_size: Optional[str] = None
    min_length: Optional[int] = None
    min: Optional[Any] = None
    max: Optional[Any] = None
    step: Optional[Any] = None
    pattern: Optional[str] = None
    rows: int = 4
    validate: Optional[Predicate] = field(default=None, compare=False)

    @property
    def display_name(self) -> str:
        return self.label or self.name

    @property
    def accept_display(self) -> str:
        return ",".join(self.accept)

    @property
    def is_email(self) -> bool:
        return self.kind is FieldKind.TEXT_LIKE and self.input_type == "email"

    @property
    def is_password(self) -> bool:
        return self.kind is FieldKind.TEXT_LIKE and self.input_type == "password"


def kind_for_type(type_name: Optional[str]) -> FieldKind:
    ftype = (type_name or "text").strip().lower()
    if ftype in TEXT_INPUT_TYPES:
        return FieldKind.TEXT_LIKE
    try:
        return FieldKind(ftype)
    except ValueError:
        raise FormConfigError(f"Unsupported field type: {type_name!r}") from None


def _first(raw: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    # YAML configs use snake_case, JS-era configs camelCase; accept both.
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return default


def _parse_accept(value: Any) -> Tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        value = value.split(",")
    return tuple(p.strip() for p in value if p and str(p).strip())


def _parse_options(value: Any) -> Tuple[SelectOption, ...]:
    options = []
    for opt in value or []:
        if isinstance(opt, dict):
            val = opt.get("value", "")
            options.append(SelectOption(value=str(val), label=str(opt.get("label", val))))
        else:
            options.append(SelectOption(value=str(opt), label=str(opt)))
    return tuple(options)


def _optional_int(raw: Dict[str, Any], *keys: str) -> Optional[int]:
    value = _first(raw, *keys)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise FormConfigError(f"{keys[0]} must be an integer, got {value!r}") from None


def build_descriptor(
    raw: Dict[str, Any],
    validators: ValidatorRegistry | None = None,
) -> FieldDescriptor:
    """
    Build one FieldDescriptor from a config mapping.

    `name` (or `key`) and `type` drive everything else; selects need options
    and file fields need an accept list.
    """
    validators = validators or default_validators

    name = _first(raw, "name", "key")
    if not name:
        raise FormConfigError(f"Field is missing a name: {raw!r}")
    name = str(name)

    input_type = (raw.get("type") or "text").strip().lower()
    kind = kind_for_type(input_type)

    options = _parse_options(raw.get("options"))
    if kind is FieldKind.SELECT and not options:
        raise FormConfigError(f"Select field {name!r} has no options")

    accept = _parse_accept(raw.get("accept"))
    if kind is FieldKind.FILE and not accept:
        raise FormConfigError(f"File field {name!r} has no accept list")

    validate_config = raw.get("validate")
    validate = validators.resolve(validate_config) if validate_config else None

    max_size = _first(raw, "max_size", "maxSize")

    return FieldDescriptor(
        name=name,
        kind=kind,
        input_type=input_type if kind is FieldKind.TEXT_LIKE else kind.value,
        label=str(raw.get("label") or ""),
        placeholder=str(raw.get("placeholder") or ""),
        help_text=str(_first(raw, "help_text", "helpText", default="")),
        checkbox_label=str(_first(raw, "checkbox_label", "checkboxLabel", default="")),
        required=bool(raw.get("required", False)),
        disabled=bool(raw.get("disabled", False)),
        options=options,
        accept=accept,
        max_size=str(max_size) if max_size is not None else None,
        min_length=_optional_int(raw, "min_length", "minLength"),
        min=raw.get("min"),
        max=raw.get("max"),
        step=raw.get("step"),
        pattern=raw.get("pattern"),
        rows=_optional_int(raw, "rows") or 4,
        validate=validate,
    )


def ensure_unique_names(descriptors: Iterable[FieldDescriptor]) -> None:
    seen = set()
    for descriptor in descriptors:
        if descriptor.name in seen:
            raise FormConfigError(f"Duplicate field name: {descriptor.name!r}")
        seen.add(descriptor.name)


def build_descriptors(
    raw_fields: Iterable[Dict[str, Any]],
    validators: ValidatorRegistry | None = None,
) -> List[FieldDescriptor]:
    descriptors = [build_descriptor(raw, validators) for raw in (raw_fields or [])]
    ensure_unique_names(descriptors)
    return descriptors

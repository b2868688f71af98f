from __future__ import annotations

import logging
import re
from typing import Any, Dict, Mapping, Optional, Sequence

from portal.services.fields import FieldDescriptor, FieldKind
from portal.services.file_rules import (
    file_content_type,
    file_matches_accept,
    file_size,
    parse_human_size,
)

logger = logging.getLogger(__name__)

CUSTOM_RULE_FAILURE_MESSAGE = "This value could not be checked. Please try again."

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_empty(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    if isinstance(value, (list, tuple)) and len(value) == 0:
        return True
    return False


def _check_required(field: FieldDescriptor, value: Any, values: Mapping[str, Any]) -> Optional[str]:
    if field.required and is_empty(value):
        return f"{field.display_name} is required"
    return None


def _check_email(field: FieldDescriptor, value: Any, values: Mapping[str, Any]) -> Optional[str]:
    if field.is_email and not is_empty(value) and not EMAIL_RE.match(str(value)):
        return "Please enter a valid email address"
    return None


def _check_password_length(field: FieldDescriptor, value: Any, values: Mapping[str, Any]) -> Optional[str]:
    if field.is_password and field.min_length and not is_empty(value):
        if len(str(value)) < field.min_length:
            return f"Password must be at least {field.min_length} characters"
    return None


def _check_file_accept(field: FieldDescriptor, value: Any, values: Mapping[str, Any]) -> Optional[str]:
    if field.kind is FieldKind.FILE and field.accept and not is_empty(value):
        if not file_matches_accept(value, field.accept):
            return f"Please select a file of type: {field.accept_display}"
    return None


def _check_file_size(field: FieldDescriptor, value: Any, values: Mapping[str, Any]) -> Optional[str]:
    if field.kind is FieldKind.FILE and field.max_size and not is_empty(value):
        if file_size(value) > parse_human_size(field.max_size):
            return f"File size should not exceed {field.max_size}"
    return None


def _check_custom(field: FieldDescriptor, value: Any, values: Mapping[str, Any]) -> Optional[str]:
    if field.validate is not None and not is_empty(value):
        try:
            return field.validate(value, values) or None
        except Exception:
            logger.exception("Custom validator for %s raised", field.name)
            return CUSTOM_RULE_FAILURE_MESSAGE
    return None


# Order matters: required before format, file rules before custom predicates.
RULES = (
    _check_required,
    _check_email,
    _check_password_length,
    _check_file_accept,
    _check_file_size,
    _check_custom,
)


def validate_field(field: FieldDescriptor, values: Mapping[str, Any]) -> Optional[str]:
    value = values.get(field.name)
    for rule in RULES:
        error = rule(field, value, values)
        if error:
            return error
    return None


def validate(descriptors: Sequence[FieldDescriptor], values: Mapping[str, Any]) -> Dict[str, str]:
    """
    Returns: field name -> error message, in descriptor order.
    A field reports at most one error (the first failing rule).
    """
    errors: Dict[str, str] = {}
    for field in descriptors:
        error = validate_field(field, values)
        if error:
            errors[field.name] = error
    return errors


def first_error_field(descriptors: Sequence[FieldDescriptor], errors: Mapping[str, str]) -> Optional[str]:
    for field in descriptors:
        if errors.get(field.name):
            return field.name
    return None


def clean_values(descriptors: Sequence[FieldDescriptor], values: Mapping[str, Any]) -> Dict[str, Any]:
    """
    JSON-serializable copy of validated values for storage.
    Files are reduced to metadata (the upload itself is saved separately).
    """
    cleaned: Dict[str, Any] = {}

    for field in descriptors:
        value = values.get(field.name)

        if field.kind is FieldKind.FILE:
            if is_empty(value):
                cleaned[field.name] = None
            else:
                cleaned[field.name] = {
                    "original_name": getattr(value, "name", "") or "",
                    "content_type": file_content_type(value),
                    "size_bytes": file_size(value),
                }
            continue

        if field.kind is FieldKind.CHECKBOX:
            cleaned[field.name] = bool(value)
            continue

        cleaned[field.name] = "" if value is None else value

    return cleaned

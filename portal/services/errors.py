from __future__ import annotations


class FormConfigError(ValueError):
    """A form definition (YAML or dict) cannot be turned into field descriptors."""


class UnknownFieldError(KeyError):
    """A field name that is not part of the form's descriptor list."""


class SubmissionInProgress(RuntimeError):
    """submit() was called while a previous submit is still awaiting the handler."""


class FieldKindMismatch(ValueError):
    """An operation reserved for one field kind was used on a field of another kind."""

from __future__ import annotations

import re
from typing import Any, Callable, Dict, Mapping, Optional

from portal.services.errors import FormConfigError

# (value, all_values) -> error message or None
Predicate = Callable[[Any, Mapping[str, Any]], Optional[str]]
PredicateFactory = Callable[..., Predicate]


class ValidatorRegistry:
    """
    Named custom validators for YAML-defined forms.

    YAML can't carry code, so a field says `validate: university_email` or
    `validate: {rule: matches, field: password}` and the rule is looked up here.
    """

    def __init__(self) -> None:
        self._factories: Dict[str, PredicateFactory] = {}

    def register(self, name: str) -> Callable[[PredicateFactory], PredicateFactory]:
        def decorator(factory: PredicateFactory) -> PredicateFactory:
            self._factories[name] = factory
            return factory

        return decorator

    def names(self) -> list[str]:
        return sorted(self._factories)

    def resolve(self, rule_config: Any) -> Predicate:
        if callable(rule_config):
            return rule_config

        if isinstance(rule_config, str):
            rule, kwargs = rule_config, {}
        elif isinstance(rule_config, Mapping):
            kwargs = dict(rule_config)
            rule = kwargs.pop("rule", None)
        else:
            raise FormConfigError(f"Unsupported validator config: {rule_config!r}")

        factory = self._factories.get(rule or "")
        if factory is None:
            raise FormConfigError(f"Unknown validator: {rule!r}")

        try:
            return factory(**kwargs)
        except FormConfigError:
            raise
        except (TypeError, ValueError, re.error) as exc:
            raise FormConfigError(f"Bad arguments for validator {rule!r}: {exc}") from exc


default_validators = ValidatorRegistry()


def _has_marker(email: str, marker: str) -> bool:
    # ".edu" is a suffix, anything else a substring ("university")
    if marker.startswith("."):
        return email.endswith(marker)
    return marker in email


@default_validators.register("university_email")
def university_email(domains: list[str] | None = None, message: str | None = None) -> Predicate:
    markers = [d.lower() for d in (domains or ["university", ".edu"])]
    message = message or "Please use your university email address"

    def check(value: Any, all_values: Mapping[str, Any]) -> Optional[str]:
        email = str(value).lower()
        if any(_has_marker(email, m) for m in markers):
            return None
        return message

    return check


@default_validators.register("matches")
def matches(field: str, message: str | None = None) -> Predicate:
    message = message or "Values do not match"

    def check(value: Any, all_values: Mapping[str, Any]) -> Optional[str]:
        if value != all_values.get(field):
            return message
        return None

    return check


@default_validators.register("regex")
def regex(pattern: str, message: str | None = None) -> Predicate:
    try:
        compiled = re.compile(pattern)
    except re.error as exc:
        raise FormConfigError(f"Invalid regex {pattern!r}: {exc}") from exc
    message = message or "Enter a valid value."

    def check(value: Any, all_values: Mapping[str, Any]) -> Optional[str]:
        if not compiled.fullmatch(str(value)):
            return message
        return None

    return check


@default_validators.register("max_length")
def max_length(length: int, message: str | None = None) -> Predicate:
    try:
        length = int(length)
    except (TypeError, ValueError) as exc:
        raise FormConfigError(f"max_length needs an integer length, got {length!r}") from exc
    message = message or f"Must be at most {length} characters"

    def check(value: Any, all_values: Mapping[str, Any]) -> Optional[str]:
        if len(str(value)) > length:
            return message
        return None

    return check

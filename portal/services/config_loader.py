from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from django.conf import settings

from portal.services.fields import FieldDescriptor, build_descriptors

DEFAULT_SUBMIT_TEXT = "Submit"
DEFAULT_LOGIN_MESSAGE = "You are not logged in. Please log in to submit this form."


def prettify_form_key(form_key: str) -> str:
    # "magazine-submission" -> "Magazine Submission"
    return " ".join([p.capitalize() for p in form_key.replace("_", "-").split("-") if p])


@dataclass(frozen=True)
class FormConfig:
    form_key: str
    raw: Dict[str, Any]

    @property
    def title(self) -> str:
        return self.raw.get("title") or prettify_form_key(self.form_key)

    @property
    def submit_text(self) -> str:
        return self.raw.get("submit_text") or DEFAULT_SUBMIT_TEXT

    @property
    def login_required_message(self) -> str:
        return self.raw.get("login_required_message") or DEFAULT_LOGIN_MESSAGE

    @property
    def fields(self) -> List[FieldDescriptor]:
        """Parsed on each access; raises FormConfigError for a broken definition."""
        return build_descriptors(self.raw.get("fields") or [])

    @property
    def success(self) -> Dict[str, str]:
        success = self.raw.get("success") or {}
        return {
            "title": success.get("title") or "Submitted!",
            "message": success.get("message") or "Your submission has been successfully received!",
        }


def forms_dir() -> Path:
    configured = getattr(settings, "PORTAL_FORMS_DIR", None)
    if configured:
        return Path(configured)
    return Path(settings.BASE_DIR) / "configs" / "forms"


def load_form_config(form_key: str) -> Optional[FormConfig]:
    """
    Loads configs/forms/<form_key>.yaml.
    Returns None if file doesn't exist.
    """
    path = forms_dir() / f"{form_key}.yaml"

    if not path.exists():
        return None

    with path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return FormConfig(form_key=form_key, raw=raw)


def list_form_keys() -> List[str]:
    base = forms_dir()
    if not base.is_dir():
        return []
    return sorted(p.stem for p in base.glob("*.yaml"))

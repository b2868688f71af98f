from __future__ import annotations

import re
from typing import Any, Iterable

# Applied when a file is selected, before any descriptor rule runs.
HARD_FILE_SIZE_CAP = 10 * 1024 * 1024

SIZE_UNITS = {
    "KB": 1024,
    "MB": 1024 * 1024,
    "GB": 1024 * 1024 * 1024,
}

_SIZE_RE = re.compile(r"^\s*(\d+)\s*([A-Za-z]+)\s*$")
_LEADING_INT_RE = re.compile(r"^\s*(\d+)")


def parse_human_size(text: Any) -> int:
    """
    "10MB" -> 10485760, "512kb" -> 524288, "7" -> 7.

    Best effort only: an unknown unit counts as bytes and anything
    unparseable comes back as 0. Never raises.
    """
    if text is None:
        return 0
    if isinstance(text, bool):
        return 0
    if isinstance(text, int):
        return text

    raw = str(text)
    match = _SIZE_RE.match(raw)
    if match:
        size, unit = match.groups()
        return int(size) * SIZE_UNITS.get(unit.upper(), 1)

    match = _LEADING_INT_RE.match(raw)
    if match:
        return int(match.group(1))
    return 0


def format_size(num_bytes: int) -> str:
    # 10485760 -> "10MB", 1536 -> "1536B" (only exact multiples get a unit)
    for unit in ("GB", "MB", "KB"):
        factor = SIZE_UNITS[unit]
        if num_bytes >= factor and num_bytes % factor == 0:
            return f"{num_bytes // factor}{unit}"
    return f"{num_bytes}B"


def file_extension(filename: str | None) -> str:
    name = filename or ""
    if "." not in name:
        return ""
    return "." + name.rsplit(".", 1)[-1].lower()


def file_content_type(file: Any) -> str:
    """Declared MIME type (Django uploads use content_type, browser-like objects use type)."""
    return getattr(file, "content_type", None) or getattr(file, "type", None) or ""


def file_size(file: Any) -> int:
    return int(getattr(file, "size", 0) or 0)


def _pattern_matches(pattern: str, extension: str, mime_type: str) -> bool:
    if pattern.startswith("."):
        return extension == pattern.lower()
    if "*" not in pattern:
        return mime_type == pattern
    if pattern.endswith("/*"):
        category = pattern.split("/", 1)[0]
        return mime_type.split("/", 1)[0] == category and "/" in mime_type
    return False


def file_matches_accept(file: Any, accept: Iterable[str]) -> bool:
    """
    True if ANY accept pattern matches the file:
    - ".pdf"       -> lowercase extension match
    - "image/jpeg" -> exact MIME match
    - "image/*"    -> MIME category match
    """
    extension = file_extension(getattr(file, "name", ""))
    mime_type = file_content_type(file)

    for raw in accept or ():
        pattern = (raw or "").strip()
        if pattern and _pattern_matches(pattern, extension, mime_type):
            return True
    return False


def exceeds_hard_cap(file: Any) -> bool:
    return file_size(file) > HARD_FILE_SIZE_CAP

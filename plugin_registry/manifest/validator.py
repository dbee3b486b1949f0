"""Manifest validator — the admission rule for registry entries.

Checks run in a fixed order and stop at the first failure, so exactly one
reason is reported per rejected manifest:

1. The document is a JSON object
2. Required fields are present and set
3. ``type`` is a supported plugin type
4. ``permissions`` is an array
5. ``category``, when set, is a known category

Nothing else is inspected. Unknown fields pass through and optional fields
are not defaulted here; that happens when the entry is built.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any


REQUIRED_FIELDS = ("name", "version", "author", "type", "entry", "permissions")
VALID_TYPES = ("js", "wasm")
VALID_CATEGORIES = ("audio", "ui", "lyrics", "library", "utility")


class RejectCode(Enum):
    MALFORMED_DOCUMENT = "malformed_document"
    MISSING_FIELD = "missing_field"
    INVALID_TYPE = "invalid_type"
    PERMISSIONS_NOT_ARRAY = "permissions_not_array"
    INVALID_CATEGORY = "invalid_category"


@dataclass(frozen=True)
class Rejection:
    """Why a manifest was refused. ``detail`` is the field name or bad value."""

    code: RejectCode
    detail: str = ""

    @property
    def message(self) -> str:
        if self.code == RejectCode.MALFORMED_DOCUMENT:
            return "Manifest is not a JSON object"
        if self.code == RejectCode.MISSING_FIELD:
            return f"Missing required field: {self.detail}"
        if self.code == RejectCode.INVALID_TYPE:
            return f"Invalid type: {self.detail}"
        if self.code == RejectCode.PERMISSIONS_NOT_ARRAY:
            return "Permissions must be an array"
        return f"Invalid category: {self.detail}"


@dataclass(frozen=True)
class ValidationResult:
    rejection: Rejection | None = None

    @property
    def accepted(self) -> bool:
        return self.rejection is None


ACCEPTED = ValidationResult()


def _reject(code: RejectCode, detail: Any = "") -> ValidationResult:
    return ValidationResult(Rejection(code, str(detail)))


def _is_unset(value: Any) -> bool:
    """JSON falsiness: null, false, "" and 0 count as unset, [] and {} do not."""
    if isinstance(value, (list, tuple, Mapping)):
        return False
    return not value


def validate_manifest(doc: Any) -> ValidationResult:
    """Decide whether a decoded manifest may enter the registry.

    Args:
        doc: Whatever the manifest body decoded to.

    Returns:
        ``ACCEPTED`` or a result carrying the first ``Rejection`` found.
    """
    if not isinstance(doc, Mapping):
        return _reject(RejectCode.MALFORMED_DOCUMENT)

    for field_name in REQUIRED_FIELDS:
        if _is_unset(doc.get(field_name)):
            return _reject(RejectCode.MISSING_FIELD, field_name)

    if doc["type"] not in VALID_TYPES:
        return _reject(RejectCode.INVALID_TYPE, doc["type"])

    if not isinstance(doc["permissions"], (list, tuple)):
        return _reject(RejectCode.PERMISSIONS_NOT_ARRAY)

    category = doc.get("category")
    if not _is_unset(category) and category not in VALID_CATEGORIES:
        return _reject(RejectCode.INVALID_CATEGORY, category)

    return ACCEPTED


def validate_manifest_file(path: str | Path) -> ValidationResult:
    """Validate a local ``plugin.json`` the same way the builder would.

    Raises:
        FileNotFoundError: ``path`` does not exist.
    """
    raw = Path(path).read_bytes()
    try:
        doc = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return _reject(RejectCode.MALFORMED_DOCUMENT)
    return validate_manifest(doc)

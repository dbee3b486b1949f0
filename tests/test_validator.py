"""Tests for the plugin manifest validator."""

import json
import tempfile

import pytest

from plugin_registry.manifest.validator import (
    ACCEPTED,
    REQUIRED_FIELDS,
    RejectCode,
    validate_manifest,
    validate_manifest_file,
)


def _manifest(**overrides) -> dict:
    data = {
        "name": "My Plugin",
        "version": "1.0.0",
        "author": "Acme",
        "type": "js",
        "entry": "index.js",
        "permissions": ["player:read"],
    }
    data.update(overrides)
    return data


def test_valid_manifest():
    assert validate_manifest(_manifest()) == ACCEPTED
    assert validate_manifest(_manifest()).accepted


def test_validation_is_idempotent():
    doc = _manifest(category="audio", extra={"anything": True})
    assert validate_manifest(doc) == validate_manifest(doc)
    assert doc == _manifest(category="audio", extra={"anything": True})


@pytest.mark.parametrize("doc", [None, "not json", 42, ["name", "version"], True])
def test_non_object_is_malformed(doc):
    result = validate_manifest(doc)
    assert result.rejection.code == RejectCode.MALFORMED_DOCUMENT


@pytest.mark.parametrize("field_name", REQUIRED_FIELDS)
def test_each_missing_field_is_reported(field_name):
    doc = _manifest()
    del doc[field_name]
    result = validate_manifest(doc)
    assert not result.accepted
    assert result.rejection.code == RejectCode.MISSING_FIELD
    assert result.rejection.detail == field_name


@pytest.mark.parametrize("value", [None, "", 0, False])
def test_unset_values_count_as_missing(value):
    result = validate_manifest(_manifest(author=value))
    assert result.rejection.code == RejectCode.MISSING_FIELD
    assert result.rejection.detail == "author"


def test_first_missing_field_wins():
    doc = _manifest()
    del doc["entry"]
    del doc["version"]
    del doc["permissions"]
    result = validate_manifest(doc)
    assert result.rejection.detail == "version"


def test_missing_field_checked_before_type():
    result = validate_manifest(_manifest(type="python", entry=""))
    assert result.rejection.code == RejectCode.MISSING_FIELD
    assert result.rejection.detail == "entry"


@pytest.mark.parametrize("plugin_type", ["python", "JS", "native"])
def test_invalid_type(plugin_type):
    result = validate_manifest(_manifest(type=plugin_type, category="nonsense", permissions="x"))
    assert result.rejection.code == RejectCode.INVALID_TYPE
    assert result.rejection.detail == plugin_type
    assert plugin_type in result.rejection.message


def test_wasm_type_accepted():
    assert validate_manifest(_manifest(type="wasm", entry="plugin.wasm")).accepted


@pytest.mark.parametrize("permissions", ["player:read", {"player": "read"}, 7])
def test_permissions_must_be_array(permissions):
    result = validate_manifest(_manifest(permissions=permissions))
    assert result.rejection.code == RejectCode.PERMISSIONS_NOT_ARRAY


def test_empty_permissions_array_is_present():
    assert validate_manifest(_manifest(permissions=[])).accepted


@pytest.mark.parametrize("category", ["audio", "ui", "lyrics", "library", "utility"])
def test_known_categories(category):
    assert validate_manifest(_manifest(category=category)).accepted


def test_invalid_category():
    result = validate_manifest(_manifest(category="games"))
    assert result.rejection.code == RejectCode.INVALID_CATEGORY
    assert result.rejection.message == "Invalid category: games"


def test_unset_category_not_checked():
    assert validate_manifest(_manifest(category=None)).accepted
    assert validate_manifest(_manifest(category="")).accepted


def test_unknown_fields_pass_through():
    assert validate_manifest(_manifest(homepage=123, tags="not-a-list", whatever=[1, 2])).accepted


def _write(text: str) -> str:
    f = tempfile.NamedTemporaryFile(mode="w", suffix=".json", delete=False)
    f.write(text)
    f.close()
    return f.name


def test_validate_file():
    assert validate_manifest_file(_write(json.dumps(_manifest()))).accepted


def test_validate_file_invalid_json():
    result = validate_manifest_file(_write("{not json"))
    assert result.rejection.code == RejectCode.MALFORMED_DOCUMENT


def test_validate_file_not_found():
    with pytest.raises(FileNotFoundError):
        validate_manifest_file("/nonexistent/plugin.json")


def test_validate_file_not_utf8():
    f = tempfile.NamedTemporaryFile(mode="wb", suffix=".json", delete=False)
    f.write(b'{"name": "caf\xe9"}')
    f.close()
    result = validate_manifest_file(f.name)
    assert result.rejection.code == RejectCode.MALFORMED_DOCUMENT

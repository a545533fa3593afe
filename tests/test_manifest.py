import json
from pathlib import Path

import pytest

from portledger.core.errors import ManifestParseError
from portledger.core.types import SchemedVersion, Version, VersionScheme
from portledger.manifest import MANIFEST_SOURCES, LegacyControlFile, ManifestFile, load_local_manifest


def test_lookup_order_is_control_then_manifest():
    assert [s.filename for s in MANIFEST_SOURCES] == ["CONTROL", "vcpkg.json"]


@pytest.mark.parametrize("field, scheme", [
    ("version", VersionScheme.RELAXED),
    ("version-semver", VersionScheme.SEMVER),
    ("version-date", VersionScheme.DATE),
    ("version-string", VersionScheme.STRING),
])
def test_manifest_file_schemes(field, scheme):
    text = json.dumps({"name": "foo", field: "1.2.3", "port-version": 2})
    assert ManifestFile().parse(text, "vcpkg.json") == SchemedVersion(scheme, Version("1.2.3", 2))


@pytest.mark.parametrize("doc, match", [
    ("{", "invalid JSON"),
    ("[]", "object"),
    ('{"name": "foo"}', "exactly one"),
    ('{"version": "1", "version-semver": "1.0.0"}', "exactly one"),
    ('{"version": ""}', "non-empty"),
    ('{"version": "1", "port-version": "2"}', "port-version"),
])
def test_manifest_file_errors(doc, match):
    with pytest.raises(ManifestParseError, match=match):
        ManifestFile().parse(doc, "abc:vcpkg.json")


def test_manifest_error_carries_origin():
    with pytest.raises(ManifestParseError) as info:
        ManifestFile().parse("{", "deadbeef:vcpkg.json")
    assert info.value.path == "deadbeef:vcpkg.json"


def test_control_file():
    text = (
        "Source: zlib\n"
        "Version: 1.2.11\n"
        "Port-Version: 9\n"
        "Description: A compression library\n"
        "  spanning two lines\n"
        "\n"
        "Feature: extra\n"
        "Version: ignored\n"
    )
    assert LegacyControlFile().parse(text, "CONTROL") == SchemedVersion(
        VersionScheme.STRING, Version("1.2.11", 9)
    )


@pytest.mark.parametrize("text, match", [
    ("", "empty"),
    ("Source: zlib\n", "Version"),
    ("Source: zlib\nVersion: 1.0\nPort-Version: x\n", "integer"),
    ("Source: zlib\nnot a field\n", "Field: value"),
    ("  leading continuation\n", "continuation"),
])
def test_control_file_errors(text, match):
    with pytest.raises(ManifestParseError, match=match):
        LegacyControlFile().parse(text, "CONTROL")


def test_local_manifest_prefers_vcpkg_json(tmp_path: Path):
    (tmp_path / "CONTROL").write_text("Source: foo\nVersion: 0.9\n")
    (tmp_path / "vcpkg.json").write_text('{"name": "foo", "version-semver": "1.0.0"}')
    assert load_local_manifest(tmp_path) == SchemedVersion(VersionScheme.SEMVER, Version("1.0.0"))


def test_local_manifest_falls_back_to_control(tmp_path: Path):
    (tmp_path / "CONTROL").write_text("Source: foo\nVersion: 0.9\n")
    assert load_local_manifest(tmp_path) == SchemedVersion(VersionScheme.STRING, Version("0.9"))


def test_local_manifest_missing(tmp_path: Path):
    with pytest.raises(ManifestParseError, match="no vcpkg.json or CONTROL"):
        load_local_manifest(tmp_path)


def test_local_manifest_that_is_not_utf8(tmp_path: Path):
    (tmp_path / "CONTROL").write_bytes(b"Source: foo\nVersion: 1.0\nDescription: caf\xe9\n")
    with pytest.raises(ManifestParseError, match="unable to read") as info:
        load_local_manifest(tmp_path)
    assert info.value.path == tmp_path / "CONTROL"

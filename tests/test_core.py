import pytest

from portledger.core.errors import ErrorKind, LedgerParseError, Problem
from portledger.core.types import (
    LedgerEntry,
    SchemedVersion,
    Version,
    VersionScheme,
    scheme_field,
    scheme_for_field,
)


def test_version_display_omits_zero_revision():
    assert str(Version("1.0.0")) == "1.0.0"
    assert str(Version("1.0.0", 2)) == "1.0.0#2"


def test_version_equality_is_structural():
    assert Version("1.0.0") == Version("1.0.0", 0)
    assert Version("1.0.0") != Version("1.0.0", 1)
    assert Version("1.0.0") != Version("1.0.1")


def test_version_immutable():
    v = Version("1.0.0")
    with pytest.raises(AttributeError):
        v.text = "2.0.0"


def test_negative_port_revision_rejected():
    with pytest.raises(ValueError, match="non-negative"):
        Version("1.0.0", -1)


def test_schemed_version_compares_scheme():
    relaxed = SchemedVersion(VersionScheme.RELAXED, Version("1.0"))
    string = SchemedVersion(VersionScheme.STRING, Version("1.0"))
    assert relaxed != string
    assert relaxed == SchemedVersion(VersionScheme.RELAXED, Version("1.0"))


@pytest.mark.parametrize("scheme, name", [
    (VersionScheme.RELAXED, "version"),
    (VersionScheme.SEMVER, "version-semver"),
    (VersionScheme.DATE, "version-date"),
    (VersionScheme.STRING, "version-string"),
])
def test_scheme_field_names(scheme, name):
    assert scheme_field(scheme) == name
    assert scheme_for_field(name) is scheme


def test_unknown_scheme_is_an_error():
    with pytest.raises(KeyError):
        scheme_field("version")
    assert scheme_for_field("baseline") is None


def test_ledger_entry_accessors():
    entry = LedgerEntry(SchemedVersion(VersionScheme.DATE, Version("2021-01-01", 1)), "a" * 40)
    assert entry.version == Version("2021-01-01", 1)
    assert entry.scheme is VersionScheme.DATE


def test_problem_fatality():
    parse = Problem(ErrorKind.PARSE, "foo", None, "bad file")
    bump = Problem(ErrorKind.MISSING_VERSION_BUMP, "foo", None, "bump it")
    assert parse.always_fatal
    assert not bump.always_fatal
    assert str(bump) == "Error: bump it"


def test_parse_error_message_includes_path():
    err = LedgerParseError("versions/f-/foo.json", "file contains no versions", empty=True)
    assert err.empty
    assert "versions/f-/foo.json" in str(err)
    assert isinstance(err, ValueError)

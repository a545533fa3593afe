from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional


class VersionScheme(Enum):
    """Comparison discipline declared for a version."""
    RELAXED = "relaxed"
    SEMVER = "semver"
    DATE = "date"
    STRING = "string"


# JSON field carrying the version text for each scheme
_SCHEME_FIELDS = {
    VersionScheme.RELAXED: "version",
    VersionScheme.SEMVER: "version-semver",
    VersionScheme.DATE: "version-date",
    VersionScheme.STRING: "version-string",
}

_FIELD_SCHEMES = {name: scheme for scheme, name in _SCHEME_FIELDS.items()}

VERSION_FIELDS = tuple(_SCHEME_FIELDS.values())


def scheme_field(scheme: VersionScheme) -> str:
    """Field name used to serialize ``scheme``; unknown schemes raise KeyError."""
    return _SCHEME_FIELDS[scheme]


def scheme_for_field(field_name: str) -> Optional[VersionScheme]:
    return _FIELD_SCHEMES.get(field_name)


@dataclass(frozen=True)
class Version:
    """Version text plus port revision. Equality covers both."""
    text: str
    port_revision: int = 0

    def __post_init__(self):
        if self.port_revision < 0:
            raise ValueError(f"port revision must be non-negative, got {self.port_revision}")

    def __str__(self):
        if self.port_revision == 0:
            return self.text
        return f"{self.text}#{self.port_revision}"


@dataclass(frozen=True)
class SchemedVersion:
    scheme: VersionScheme
    version: Version

    @property
    def field_name(self) -> str:
        return scheme_field(self.scheme)

    def __str__(self):
        return str(self.version)


@dataclass(frozen=True)
class LedgerEntry:
    """One published version and the content id of its manifest snapshot."""
    schemed_version: SchemedVersion
    content_id: str             # 40-hex git tree id

    @property
    def version(self) -> Version:
        return self.schemed_version.version

    @property
    def scheme(self) -> VersionScheme:
        return self.schemed_version.scheme


# Newest entry first
Ledger = List[LedgerEntry]

# package name -> endorsed version
Baseline = Dict[str, Version]


@dataclass(frozen=True)
class LocalManifest:
    schemed_version: SchemedVersion
    content_id: str

"""
Package manifest readers.

Two on-disk forms declare a package version: the legacy ``CONTROL``
paragraph file and the ``vcpkg.json`` manifest. Each is a ManifestSource
that turns raw text into a SchemedVersion.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from portledger.core.errors import ManifestParseError, Origin
from portledger.core.types import SchemedVersion, Version, VersionScheme, VERSION_FIELDS, scheme_for_field
from portledger.storage.ledger_file import parse_port_version

logger = logging.getLogger(__name__)


class ManifestSource(ABC):
    """A manifest file format, identified by its conventional filename."""

    filename: str = ""

    @abstractmethod
    def parse(self, text: str, origin: Origin) -> SchemedVersion:
        """Extract the declared version. Raises ManifestParseError."""


class ManifestFile(ManifestSource):
    filename = "vcpkg.json"

    def parse(self, text: str, origin: Origin) -> SchemedVersion:
        try:
            doc = json.loads(text)
        except json.JSONDecodeError as e:
            raise ManifestParseError(origin, f"invalid JSON: {e}") from e
        if not isinstance(doc, dict):
            raise ManifestParseError(origin, "manifest must be a JSON object")

        present = [name for name in VERSION_FIELDS if name in doc]
        if len(present) != 1:
            raise ManifestParseError(
                origin, f"expected exactly one of {', '.join(VERSION_FIELDS)}, found {len(present)}"
            )
        text_value = doc[present[0]]
        if not isinstance(text_value, str) or not text_value:
            raise ManifestParseError(origin, f"\"{present[0]}\" must be a non-empty string")
        try:
            port_revision = parse_port_version(doc.get("port-version"), "manifest")
        except ValueError as e:
            raise ManifestParseError(origin, str(e)) from e
        return SchemedVersion(scheme_for_field(present[0]), Version(text_value, port_revision))


def _control_paragraphs(text: str) -> List[Dict[str, str]]:
    paragraphs: List[Dict[str, str]] = []
    current: Dict[str, str] = {}
    last_key: Optional[str] = None
    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            if current:
                paragraphs.append(current)
            current, last_key = {}, None
            continue
        if line.startswith("#"):
            continue
        if line[0] in " \t":
            if last_key is None:
                raise ValueError(f"line {lineno}: continuation line without a field")
            current[last_key] += "\n" + line.strip()
            continue
        key, sep, value = line.partition(":")
        if not sep:
            raise ValueError(f"line {lineno}: expected 'Field: value'")
        last_key = key.strip()
        current[last_key] = value.strip()
    if current:
        paragraphs.append(current)
    return paragraphs


class LegacyControlFile(ManifestSource):
    """``CONTROL`` paragraphs; the first paragraph declares the package."""

    filename = "CONTROL"

    def parse(self, text: str, origin: Origin) -> SchemedVersion:
        try:
            paragraphs = _control_paragraphs(text)
        except ValueError as e:
            raise ManifestParseError(origin, str(e)) from e
        if not paragraphs:
            raise ManifestParseError(origin, "CONTROL file is empty")

        source = paragraphs[0]
        version = source.get("Version")
        if not version:
            raise ManifestParseError(origin, "missing required field 'Version'")
        try:
            port_revision = int(source.get("Port-Version", "0"))
        except ValueError:
            raise ManifestParseError(origin, f"'Port-Version' must be an integer, got {source['Port-Version']!r}") from None
        if port_revision < 0:
            raise ManifestParseError(origin, "'Port-Version' must be non-negative")
        return SchemedVersion(VersionScheme.STRING, Version(version, port_revision))


# Lookup order for historical content: legacy file first
MANIFEST_SOURCES: Tuple[ManifestSource, ...] = (LegacyControlFile(), ManifestFile())


def load_local_manifest(port_dir: str | Path) -> SchemedVersion:
    """Read the version a port directory declares; vcpkg.json wins over CONTROL."""
    port_dir = Path(port_dir)
    for source in (ManifestFile(), LegacyControlFile()):
        path = port_dir / source.filename
        if path.is_file():
            logger.debug("Reading %s", path)
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise ManifestParseError(path, f"unable to read manifest: {e}") from e
            return source.parse(text, path)
    raise ManifestParseError(port_dir, "no vcpkg.json or CONTROL file found")


__all__ = [
    "ManifestSource",
    "ManifestFile",
    "LegacyControlFile",
    "MANIFEST_SOURCES",
    "load_local_manifest",
]

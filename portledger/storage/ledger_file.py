import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List

from portledger.core.errors import LedgerParseError
from portledger.core.types import (
    Ledger,
    LedgerEntry,
    SchemedVersion,
    Version,
    VERSION_FIELDS,
    scheme_field,
    scheme_for_field,
)
from .atomic import atomic_write_json

logger = logging.getLogger(__name__)

CONTENT_ID_RE = re.compile(r"[0-9a-f]{40}")


def parse_port_version(raw: Any, where: str) -> int:
    if raw is None:
        return 0
    # bool is an int subclass; reject it explicitly
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
        raise ValueError(f"{where}: \"port-version\" must be a non-negative integer, got {raw!r}")
    return raw


def parse_entry(raw: Any, index: int) -> LedgerEntry:
    where = f"versions[{index}]"
    if not isinstance(raw, dict):
        raise ValueError(f"{where}: expected an object")

    content_id = raw.get("git-tree")
    if not isinstance(content_id, str) or not CONTENT_ID_RE.fullmatch(content_id):
        raise ValueError(f"{where}: \"git-tree\" must be a 40-character lowercase hex object id")

    present = [name for name in VERSION_FIELDS if name in raw]
    if len(present) != 1:
        raise ValueError(
            f"{where}: expected exactly one of {', '.join(VERSION_FIELDS)}, found {len(present)}"
        )
    text = raw[present[0]]
    if not isinstance(text, str) or not text:
        raise ValueError(f"{where}: \"{present[0]}\" must be a non-empty string")

    version = Version(text, parse_port_version(raw.get("port-version"), where))
    return LedgerEntry(SchemedVersion(scheme_for_field(present[0]), version), content_id)


def parse_ledger(doc: Any, path: Path) -> Ledger:
    """Validate a decoded versions document. Raises LedgerParseError."""
    if not isinstance(doc, dict) or not isinstance(doc.get("versions"), list):
        raise LedgerParseError(path, "expected an object with a \"versions\" array")

    try:
        entries = [parse_entry(raw, i) for i, raw in enumerate(doc["versions"])]
    except ValueError as e:
        raise LedgerParseError(path, str(e)) from e

    if not entries:
        raise LedgerParseError(path, "file contains no versions", empty=True)
    return entries


def serialize_entry(entry: LedgerEntry) -> Dict[str, Any]:
    return {
        "git-tree": entry.content_id,
        scheme_field(entry.scheme): entry.version.text,
        "port-version": entry.version.port_revision,
    }


def serialize_ledger(ledger: Ledger) -> Dict[str, List[Dict[str, Any]]]:
    return {"versions": [serialize_entry(e) for e in ledger]}


def load_ledger_file(path: Path) -> Ledger:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise LedgerParseError(path, f"unable to read versions file: {e}") from e
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as e:
        raise LedgerParseError(path, f"invalid JSON: {e}") from e
    return parse_ledger(doc, path)


def save_ledger_file(path: Path, ledger: Ledger) -> None:
    if not ledger:
        raise ValueError("Refusing to write an empty versions file")
    atomic_write_json(Path(path), serialize_ledger(ledger))
    logger.debug("Wrote %d version(s) to %s", len(ledger), path)


class LedgerStorage:
    """One versions file per package under ``<root>/<first letter>-/<package>.json``."""

    def __init__(self, versions_root: str | Path):
        self.root = Path(versions_root)

    def path_for(self, package: str) -> Path:
        if not package:
            raise ValueError("package name is required")
        return self.root / f"{package[0]}-" / f"{package}.json"

    def exists(self, package: str) -> bool:
        return self.path_for(package).is_file()

    def load(self, package: str) -> Ledger:
        return load_ledger_file(self.path_for(package))

    def save(self, package: str, ledger: Ledger) -> None:
        save_ledger_file(self.path_for(package), ledger)

"""
Error taxonomy for ledger/baseline consistency.

Parsing raises exceptions; the checker and updater report outcomes as
``Problem`` values tagged with an ``ErrorKind``.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

# Path of a file, or a "<object>:<path>" tree-ish for historical content
Origin = Union[str, Path]


class PortLedgerError(ValueError):
    """Base for errors raised while reading ledger, baseline or manifest data."""

    def __init__(self, path: Optional[Origin], detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"{path}: {detail}" if path is not None else detail)


class LedgerParseError(PortLedgerError):
    """Versions file is malformed (or, with ``empty=True``, has no entries)."""

    def __init__(self, path, detail: str, empty: bool = False):
        self.empty = empty
        super().__init__(path, detail)


class BaselineParseError(PortLedgerError):
    pass


class ManifestParseError(PortLedgerError):
    pass


class GitError(PortLedgerError):
    pass


class ErrorKind(Enum):
    PARSE = "ParseError"
    EMPTY_LEDGER = "EmptyLedgerError"
    ORDERING = "OrderingError"
    UNREGISTERED_VERSION = "UnregisteredVersionError"
    SCHEME_CONFLICT = "SchemeConflictError"
    STALE_HISTORY = "StaleHistoryError"
    MISSING_BASELINE = "MissingBaselineError"
    STALE_BASELINE = "StaleBaselineError"
    UNCOMMITTED_CHANGE = "UncommittedChangeError"
    MISSING_VERSION_BUMP = "MissingVersionBumpError"
    CONTENT_MISMATCH = "ContentMismatchError"
    MISSING_MANIFEST_IN_CONTENT = "MissingManifestInContentError"


# Corruption of an existing file, never skipped by keep_going
_ALWAYS_FATAL = {ErrorKind.PARSE, ErrorKind.EMPTY_LEDGER}


@dataclass(frozen=True)
class Problem:
    """A single failed check or refused update, with remediation text."""
    kind: ErrorKind
    package: str
    path: Optional[Origin]
    message: str

    @property
    def always_fatal(self) -> bool:
        return self.kind in _ALWAYS_FATAL

    def __str__(self):
        return f"Error: {self.message}"

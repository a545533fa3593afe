"""
portledger: per-package version ledgers and a shared baseline for a port registry.
Verifies that each port's history, manifest and baseline agree, and records new
versions with atomic, idempotent writes.
"""

__version__ = "0.1.0-dev"

from portledger.core.errors import ErrorKind, Problem
from portledger.core.types import LedgerEntry, SchemedVersion, Version, VersionScheme
from portledger.update import LedgerUpdater
from portledger.verify import ConsistencyChecker, ContentVerifier

__all__ = [
    "ErrorKind",
    "Problem",
    "LedgerEntry",
    "SchemedVersion",
    "Version",
    "VersionScheme",
    "LedgerUpdater",
    "ConsistencyChecker",
    "ContentVerifier",
]

"""
File storage for per-package versions files and the shared baseline.
"""

from pathlib import Path
from typing import Tuple

from .atomic import atomic_write_json
from .ledger_file import LedgerStorage, load_ledger_file, save_ledger_file
from .baseline_file import BaselineStorage


def create_storage(versions_root: str | Path) -> Tuple[LedgerStorage, BaselineStorage]:
    """Both stores rooted at a ``versions/`` directory."""
    root = Path(versions_root)
    return LedgerStorage(root), BaselineStorage(root / "baseline.json")


__all__ = [
    "LedgerStorage",
    "BaselineStorage",
    "create_storage",
    "atomic_write_json",
    "load_ledger_file",
    "save_ledger_file",
]

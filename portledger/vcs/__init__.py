"""
Version-control backends that serve immutable historical content.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional


class ContentBackend(ABC):
    """Abstract source of blob content addressed by ``<object>:<path>``."""

    @abstractmethod
    def show(self, treeish: str) -> Optional[str]:
        """
        Blob text for ``treeish``, or None when it does not resolve.
        Raises ManifestParseError when the blob is not valid UTF-8.
        """

    @abstractmethod
    def tree_id(self, path: str | Path) -> str:
        """Content id of the working tree under ``path``."""


from .git import GitBackend

__all__ = ["ContentBackend", "GitBackend"]

import logging
import os
import re
import subprocess
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from portledger.core.errors import GitError, ManifestParseError
from . import ContentBackend

logger = logging.getLogger(__name__)

_OBJECT_ID_RE = re.compile(r"[0-9a-f]{40}")


class GitBackend(ContentBackend):
    """Reads objects from, and hashes working trees of, a local git checkout."""

    def __init__(self, repo_root: str | Path, git: str = "git"):
        self.root = Path(repo_root).resolve()
        self.git = git

    def _run(
        self, args: Sequence[str], env: Optional[Dict[str, str]] = None, text: bool = True
    ) -> subprocess.CompletedProcess:
        cmd: List[str] = [self.git, *args]
        logger.debug("Running %s", " ".join(cmd))
        try:
            return subprocess.run(
                cmd,
                cwd=str(self.root),
                env=env,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=text,
            )
        except FileNotFoundError as e:
            raise GitError(None, f"git executable not found: {self.git}") from e

    def _check(self, args: Sequence[str], env: Optional[Dict[str, str]] = None) -> str:
        cp = self._run(args, env)
        if cp.returncode != 0:
            raise GitError(self.root, f"git {' '.join(args)} failed: {cp.stderr.strip()}")
        return cp.stdout

    def show(self, treeish: str) -> Optional[str]:
        cp = self._run(["show", treeish], text=False)
        if cp.returncode != 0:
            logger.debug("git show %s: %s", treeish, cp.stderr.decode("utf-8", "replace").strip())
            return None
        try:
            return cp.stdout.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ManifestParseError(treeish, f"content is not valid UTF-8: {e}") from e

    def tree_id(self, path: str | Path) -> str:
        """
        Stage ``path`` into a throwaway index and write its tree. Uncommitted
        edits count; the repository's own index is left untouched.
        """
        target = Path(path)
        if not target.is_absolute():
            target = self.root / target
        try:
            rel = target.resolve().relative_to(self.root).as_posix()
        except ValueError as e:
            raise GitError(target, f"path is outside repository {self.root}") from e
        if rel == ".":
            raise GitError(target, "expected a package directory, not the repository root")

        with tempfile.TemporaryDirectory(prefix="portledger-index-") as tmp:
            env = dict(os.environ, GIT_INDEX_FILE=str(Path(tmp) / "index"))
            self._check(["add", "-A", "--", rel], env)
            out = self._check(["write-tree", f"--prefix={rel}/"], env).strip()

        if not _OBJECT_ID_RE.fullmatch(out):
            raise GitError(target, f"unexpected tree id from git write-tree: {out!r}")
        return out

import shutil
import subprocess
from pathlib import Path

import pytest

from portledger.core.errors import ErrorKind, GitError, ManifestParseError
from portledger.core.types import LedgerEntry, SchemedVersion, Version, VersionScheme
from portledger.vcs import GitBackend
from portledger.verify import ContentVerifier

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def git(repo: Path, *args: str) -> str:
    cp = subprocess.run(
        ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com",
         "-c", "commit.gpgsign=false", *args],
        cwd=str(repo), capture_output=True, text=True, check=True,
    )
    return cp.stdout.strip()


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    git(tmp_path, "init", "-q")
    port = tmp_path / "ports" / "foo"
    port.mkdir(parents=True)
    (port / "vcpkg.json").write_text('{"name": "foo", "version": "1.0.0"}\n')
    (port / "portfile.cmake").write_text("# build\n")
    git(tmp_path, "add", "-A")
    git(tmp_path, "commit", "-q", "-m", "add foo")
    return tmp_path


def test_tree_id_matches_committed_tree(repo: Path):
    backend = GitBackend(repo)
    assert backend.tree_id(repo / "ports" / "foo") == git(repo, "rev-parse", "HEAD:ports/foo")
    assert backend.tree_id("ports/foo") == git(repo, "rev-parse", "HEAD:ports/foo")


def test_tree_id_sees_uncommitted_edits(repo: Path):
    backend = GitBackend(repo)
    committed = backend.tree_id("ports/foo")
    (repo / "ports" / "foo" / "vcpkg.json").write_text('{"name": "foo", "version": "1.0.1"}\n')
    changed = backend.tree_id("ports/foo")
    assert changed != committed
    # the real index is untouched
    assert git(repo, "diff", "--cached", "--name-only") == ""


def test_show_reads_blob_from_tree(repo: Path):
    backend = GitBackend(repo)
    tree = backend.tree_id("ports/foo")
    assert '"version": "1.0.0"' in backend.show(f"{tree}:vcpkg.json")
    assert backend.show(f"{tree}:CONTROL") is None
    assert backend.show(f"{'0' * 40}:vcpkg.json") is None


def test_tree_id_outside_repo(repo: Path, tmp_path_factory):
    elsewhere = tmp_path_factory.mktemp("elsewhere")
    with pytest.raises(GitError, match="outside"):
        GitBackend(repo).tree_id(elsewhere)


def test_missing_git_executable(repo: Path):
    with pytest.raises(GitError, match="not found"):
        GitBackend(repo, git="definitely-not-git-xyz").tree_id("ports/foo")


def test_show_rejects_blob_that_is_not_utf8(repo: Path):
    (repo / "ports" / "foo" / "CONTROL").write_bytes(b"Source: foo\nVersion: 1.0\nDescription: caf\xe9\n")
    git(repo, "add", "-A")
    git(repo, "commit", "-q", "-m", "latin-1 CONTROL")
    tree = git(repo, "rev-parse", "HEAD:ports/foo")

    with pytest.raises(ManifestParseError, match="UTF-8"):
        GitBackend(repo).show(f"{tree}:CONTROL")

    entry = LedgerEntry(SchemedVersion(VersionScheme.STRING, Version("1.0")), tree)
    problem = ContentVerifier(GitBackend(repo)).verify_entry("foo", repo / "versions" / "f-" / "foo.json", entry)
    assert problem.kind is ErrorKind.PARSE
    assert f"{tree}:CONTROL" in problem.message

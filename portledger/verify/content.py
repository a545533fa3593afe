import logging
from pathlib import Path
from typing import Optional, Sequence

from portledger.core.errors import ErrorKind, ManifestParseError, Problem
from portledger.core.types import Ledger, LedgerEntry
from portledger.manifest import MANIFEST_SOURCES, ManifestSource
from portledger.vcs import ContentBackend

logger = logging.getLogger(__name__)


class ContentVerifier:
    """
    Cross-checks ledger entries against the manifest stored at each entry's
    content id. One backend lookup per candidate file per entry, so this is
    slow on long histories.
    """

    def __init__(self, backend: ContentBackend, sources: Sequence[ManifestSource] = MANIFEST_SOURCES):
        self.backend = backend
        self.sources = tuple(sources)

    def verify_entry(self, package: str, versions_path: Path, entry: LedgerEntry) -> Optional[Problem]:
        prefix = (
            f"While reading versions for port {package} from file: {versions_path}\n"
            f"While validating version: {entry.version}."
        )
        for source in self.sources:
            treeish = f"{entry.content_id}:{source.filename}"
            try:
                text = self.backend.show(treeish)
                if text is None:
                    continue
                declared = source.parse(text, treeish)
            except ManifestParseError as e:
                return Problem(
                    ErrorKind.PARSE, package, versions_path,
                    f"{prefix}\nWhile trying to load port from: {treeish}\n"
                    f"Found the following error(s):\n{e.detail}",
                )

            if declared != entry.schemed_version:
                return Problem(
                    ErrorKind.CONTENT_MISMATCH, package, versions_path,
                    f"{prefix}\nThe version declared in file does not match checked-out version: "
                    f"{declared} ({declared.field_name})\n"
                    f"Recorded: {entry.version} ({entry.schemed_version.field_name})\n"
                    f"Checked out Git SHA: {entry.content_id}",
                )
            logger.debug("%s %s matches %s", package, entry.version, treeish)
            return None

        names = " or ".join(s.filename for s in self.sources)
        return Problem(
            ErrorKind.MISSING_MANIFEST_IN_CONTENT, package, versions_path,
            f"{prefix}\nThe checked-out object does not contain a {names} file.\n"
            f"Checked out Git SHA: {entry.content_id}",
        )

    def verify(self, package: str, versions_path: Path, ledger: Ledger) -> Optional[Problem]:
        """First problem across all entries, or None."""
        for entry in ledger:
            problem = self.verify_entry(package, versions_path, entry)
            if problem is not None:
                return problem
        return None

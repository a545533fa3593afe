import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from portledger.core.errors import BaselineParseError, ErrorKind, LedgerParseError, Problem
from portledger.core.types import LedgerEntry, SchemedVersion
from portledger.storage.baseline_file import BaselineStorage
from portledger.storage.ledger_file import load_ledger_file, save_ledger_file

logger = logging.getLogger(__name__)


class UpdateStatus(Enum):
    CREATED = "created"             # new versions file
    ADDED = "added"                 # new entry prepended
    OVERWRITTEN = "overwritten"     # existing entry replaced in place
    UNCHANGED = "unchanged"


@dataclass
class UpdateResult:
    package: str
    status: Optional[UpdateStatus] = None
    problem: Optional[Problem] = None
    baseline_updated: bool = False
    fatal: bool = False             # batch must stop after this package
    messages: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.problem is None

    def __bool__(self):
        return self.ok


class LedgerUpdater:
    """
    Records a package's current version in its versions file and the baseline.
    Re-running with no manifest change writes nothing.
    """

    def __init__(self, baseline: BaselineStorage):
        self.baseline = baseline

    def update(
        self,
        package: str,
        version: SchemedVersion,
        content_id: str,
        versions_path: Path,
        overwrite: bool = False,
        keep_going: bool = False,
    ) -> UpdateResult:
        versions_path = Path(versions_path)
        result = UpdateResult(package)

        def refuse(kind: ErrorKind, message: str) -> UpdateResult:
            result.problem = Problem(kind, package, versions_path, message)
            result.fatal = result.problem.always_fatal or not keep_going
            logger.warning("%s: %s", package, kind.value)
            return result

        if not versions_path.exists():
            save_ledger_file(versions_path, [LedgerEntry(version, content_id)])
            result.status = UpdateStatus.CREATED
            result.messages.append(f"Added version `{version}` to `{versions_path}` (new file).")
            logger.info("Created %s at %s", versions_path, version)
            self._update_baseline(package, version, result)
            return result

        try:
            ledger = load_ledger_file(versions_path)
        except LedgerParseError as e:
            return refuse(
                ErrorKind.EMPTY_LEDGER if e.empty else ErrorKind.PARSE,
                f"Unable to parse versions file {versions_path}.\n{e.detail}",
            )

        same_content = next((e for e in ledger if e.content_id == content_id), None)
        if same_content is not None:
            if same_content.version == version.version:
                result.status = UpdateStatus.UNCHANGED
                result.messages.append(f"Version `{version}` is already in `{versions_path}`")
                self._update_baseline(package, version, result)
                return result
            # overwrite never applies here: the content did not change
            return refuse(
                ErrorKind.UNCOMMITTED_CHANGE,
                f"Local port files SHA is the same as version `{same_content.version}` in `{versions_path}`.\n"
                f"-- SHA: {content_id}\n"
                f"-- Did you remember to commit your changes?\n"
                f"***No files were updated.***",
            )

        index = next((i for i, e in enumerate(ledger) if e.version == version.version), None)
        if index is not None:
            if not overwrite:
                return refuse(
                    ErrorKind.MISSING_VERSION_BUMP,
                    f"Local changes detected for {package} but no changes to version or port version.\n"
                    f"-- Version: {version}\n"
                    f"-- Old SHA: {ledger[index].content_id}\n"
                    f"-- New SHA: {content_id}\n"
                    f"-- Did you remember to update the version or port version?\n"
                    f"-- Pass `--overwrite-version` to bypass this check.\n"
                    f"***No files were updated.***",
                )
            ledger[index] = LedgerEntry(version, content_id)
            result.status = UpdateStatus.OVERWRITTEN
        else:
            ledger.insert(0, LedgerEntry(version, content_id))
            result.status = UpdateStatus.ADDED

        save_ledger_file(versions_path, ledger)
        logger.info("%s %s in %s", result.status.value.capitalize(), version, versions_path)
        result.messages.append(f"Added version `{version}` to `{versions_path}`.")
        self._update_baseline(package, version, result)
        return result

    def _update_baseline(self, package: str, version: SchemedVersion, result: UpdateResult) -> None:
        try:
            written = self.baseline.upsert(package, version.version)
        except BaselineParseError as e:
            result.problem = Problem(ErrorKind.PARSE, package, self.baseline.path, f"Unable to parse baseline file.\n{e}")
            result.fatal = True
            logger.error("%s: %s", package, e)
            return
        if written:
            result.baseline_updated = True
            result.messages.append(f"Added version `{version}` to `{self.baseline.path}`.")
        else:
            result.messages.append(f"Version `{version}` is already in `{self.baseline.path}`")

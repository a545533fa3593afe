import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from portledger.core.errors import ErrorKind, LedgerParseError, ManifestParseError, Problem
from portledger.core.types import Baseline, SchemedVersion, Version
from portledger.manifest import load_local_manifest
from portledger.storage.ledger_file import load_ledger_file
from .content import ContentVerifier

logger = logging.getLogger(__name__)

CLI_NAME = "portledger"


@dataclass(frozen=True)
class Confirmation:
    content_id: str
    package: str
    version: Version

    def __str__(self):
        return f"OK: {self.content_id}\t{self.package} -> {self.version}"


@dataclass(frozen=True)
class CheckResult:
    """Outcome of checking one package: exactly one of confirmation / problem."""
    package: str
    confirmation: Optional[Confirmation] = None
    problem: Optional[Problem] = None

    @property
    def is_valid(self) -> bool:
        return self.problem is None

    def __bool__(self):
        return self.is_valid

    def __str__(self):
        return str(self.confirmation) if self.is_valid else str(self.problem)


def run_hint(package: str, extra: str = "") -> str:
    """Remediation block naming the add-version command for ``package``."""
    return f"Run:\n\n    {CLI_NAME} add-version {package}{extra}\n\n"


class ConsistencyChecker:
    """
    Read-only verification of one package's versions file against its local
    manifest and the baseline. Stops at the first problem found.
    """

    def __init__(
        self,
        content_verifier: Optional[ContentVerifier] = None,
        manifest_loader: Callable[[Path], SchemedVersion] = load_local_manifest,
    ):
        self.content_verifier = content_verifier
        self.manifest_loader = manifest_loader

    def check(
        self,
        package: str,
        port_path: Path,
        versions_path: Path,
        local_content_id: str,
        baseline: Baseline,
        verify_content: bool = False,
        baseline_path: Optional[Path] = None,
    ) -> CheckResult:
        def fail(kind: ErrorKind, message: str, path=versions_path) -> CheckResult:
            logger.debug("%s: %s", package, kind.value)
            return CheckResult(package, problem=Problem(kind, package, path, message))

        where = f"While reading versions for port {package} from file: {versions_path}\n"

        try:
            ledger = load_ledger_file(versions_path)
        except LedgerParseError as e:
            if e.empty:
                return fail(ErrorKind.EMPTY_LEDGER, f"{where}File contains no versions.")
            return fail(
                ErrorKind.PARSE,
                f"While attempting to parse versions for port {package} from file: {versions_path}\n"
                f"Found the following error(s):\n{e.detail}",
            )

        if verify_content:
            if self.content_verifier is None:
                raise ValueError("verify_content requested but no content verifier configured")
            problem = self.content_verifier.verify(package, versions_path, ledger)
            if problem is not None:
                return CheckResult(package, problem=problem)

        try:
            local = self.manifest_loader(port_path)
        except ManifestParseError as e:
            return fail(
                ErrorKind.PARSE,
                f"While attempting to load local port {package}.\nFound the following error(s):\n{e}",
                path=port_path,
            )

        top = ledger[0]
        if top.version != local.version:
            if any(entry.version == local.version for entry in ledger[1:]):
                return fail(
                    ErrorKind.ORDERING,
                    f"{where}Local port version `{local.version}` exists in version file "
                    f"but it's not the first entry in the \"versions\" array.",
                )
            return fail(
                ErrorKind.UNREGISTERED_VERSION,
                f"{where}Version `{local.version}` was not found in versions file.\n"
                f"{run_hint(package)}to add the new port version.",
            )

        if top.scheme != local.scheme:
            return fail(
                ErrorKind.SCHEME_CONFLICT,
                f"{where}File declares version `{top.version}` with scheme: `{top.schemed_version.field_name}`.\n"
                f"But local port declares the same version with a different scheme: `{local.field_name}`.\n"
                f"Version must be unique even between different schemes.\n"
                f"{run_hint(package, ' --overwrite-version')}to overwrite the declared version's scheme.",
            )

        if local_content_id != top.content_id:
            return fail(
                ErrorKind.STALE_HISTORY,
                f"{where}File declares version `{top.version}` with SHA: {top.content_id}\n"
                f"But local port with the same version has a different SHA: {local_content_id}\n"
                f"Please update the port's version fields and then run:\n\n"
                f"    {CLI_NAME} add-version {package}\n\n"
                f"to add a new version.",
            )

        baseline_version = baseline.get(package)
        if baseline_version is None:
            return fail(
                ErrorKind.MISSING_BASELINE,
                f"While reading baseline version for port {package}.\nBaseline version not found.\n"
                f"{run_hint(package)}to set version {local.version} as the baseline version.",
                path=baseline_path or versions_path,
            )

        if baseline_version != top.version:
            return fail(
                ErrorKind.STALE_BASELINE,
                f"While reading baseline version for port {package}.\n"
                f"While validating latest version from file: {versions_path}\n"
                f"Baseline file declares version: {baseline_version}.\n"
                f"But the latest version in version files is: {top.version}.\n"
                f"{run_hint(package)}to update the baseline version.",
                path=baseline_path or versions_path,
            )

        return CheckResult(package, confirmation=Confirmation(top.content_id, package, top.version))

"""
Runs the checker or the updater over many packages.

Packages are independent, so both run in a thread pool of ``config.jobs``
workers. Baseline writes are serialized inside BaselineStorage.upsert.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, TypeVar, Union

from portledger.config import LedgerConfig
from portledger.core.errors import ErrorKind, ManifestParseError, Problem
from portledger.core.types import LocalManifest
from portledger.manifest import load_local_manifest
from portledger.storage import create_storage
from portledger.update.updater import LedgerUpdater, UpdateResult
from portledger.vcs import ContentBackend
from portledger.verify import CheckResult, ConsistencyChecker, ContentVerifier, run_hint

logger = logging.getLogger(__name__)

R = TypeVar("R", CheckResult, UpdateResult)


@dataclass
class BatchReport:
    results: List[Union[CheckResult, UpdateResult]] = field(default_factory=list)
    aborted: bool = False           # stopped early on a fatal problem

    @property
    def failures(self) -> List[Problem]:
        return [r.problem for r in self.results if r.problem is not None]

    @property
    def ok(self) -> bool:
        return not self.aborted and not self.failures


def list_ports(config: LedgerConfig) -> List[str]:
    if not config.ports_dir.is_dir():
        return []
    return sorted(
        p.name for p in config.ports_dir.iterdir()
        if p.is_dir() and p.name not in config.exclude
    )


def read_local(port_dir: Path, backend: ContentBackend) -> LocalManifest:
    """Declared version and working-tree content id of one port directory."""
    return LocalManifest(load_local_manifest(port_dir), backend.tree_id(port_dir))


def _run_all(
    packages: List[str],
    fn: Callable[[str], R],
    jobs: int,
    stop: Callable[[R], bool],
) -> BatchReport:
    done: Dict[str, R] = {}
    aborted = False

    if jobs <= 1:
        for name in packages:
            done[name] = fn(name)
            if stop(done[name]):
                aborted = True
                break
    else:
        with ThreadPoolExecutor(max_workers=jobs) as pool:
            futures = {pool.submit(fn, name): name for name in packages}
            for future in as_completed(futures):
                if future.cancelled():
                    continue
                result = future.result()
                done[futures[future]] = result
                if stop(result) and not aborted:
                    aborted = True
                    for pending in futures:
                        pending.cancel()

    if aborted:
        logger.warning("Stopped after a fatal error; %d package(s) not processed", len(packages) - len(done))
    return BatchReport([done[name] for name in packages if name in done], aborted)


def run_verify(config: LedgerConfig, backend: ContentBackend, packages: Optional[Iterable[str]] = None) -> BatchReport:
    """Check every package (or ``packages``); never writes."""
    ledgers, baseline_store = create_storage(config.versions_dir)
    baseline = baseline_store.load()
    checker = ConsistencyChecker(ContentVerifier(backend) if config.verify_content else None)
    names = sorted(set(packages) - config.exclude) if packages is not None else list_ports(config)

    def check_one(name: str) -> CheckResult:
        versions_path = ledgers.path_for(name)
        if not versions_path.is_file():
            return CheckResult(name, problem=Problem(
                ErrorKind.PARSE, name, versions_path,
                f"While attempting to parse versions for port {name}: "
                f"versions file {versions_path} does not exist.\n"
                f"{run_hint(name)}to create it.",
            ))
        port_dir = config.ports_dir / name
        return checker.check(
            name,
            port_dir,
            versions_path,
            backend.tree_id(port_dir),
            baseline,
            verify_content=config.verify_content,
            baseline_path=baseline_store.path,
        )

    # verification reports everything; nothing stops the batch
    return _run_all(names, check_one, config.jobs, stop=lambda r: False)


def run_add_version(config: LedgerConfig, backend: ContentBackend, packages: Iterable[str]) -> BatchReport:
    """Record the current version of each package in its versions file and the baseline."""
    ledgers, baseline_store = create_storage(config.versions_dir)
    updater = LedgerUpdater(baseline_store)

    def add_one(name: str) -> UpdateResult:
        port_dir = config.ports_dir / name
        try:
            local = read_local(port_dir, backend)
        except ManifestParseError as e:
            problem = Problem(ErrorKind.PARSE, name, port_dir, f"While loading port {name}:\n{e}")
            return UpdateResult(name, problem=problem, fatal=not config.keep_going)
        return updater.update(
            name,
            local.schemed_version,
            local.content_id,
            ledgers.path_for(name),
            overwrite=config.overwrite,
            keep_going=config.keep_going,
        )

    return _run_all(list(packages), add_one, config.jobs, stop=lambda r: r.fatal)

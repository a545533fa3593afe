import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict

from portledger.core.errors import BaselineParseError
from portledger.core.types import Baseline, Version
from .atomic import atomic_write_json
from .ledger_file import parse_port_version

logger = logging.getLogger(__name__)

SNAPSHOT_KEY = "default"


def parse_baseline(doc: Any, path: Path) -> Baseline:
    if not isinstance(doc, dict) or not isinstance(doc.get(SNAPSHOT_KEY), dict):
        raise BaselineParseError(path, f"expected an object with a \"{SNAPSHOT_KEY}\" object")

    baseline: Baseline = {}
    for package, raw in doc[SNAPSHOT_KEY].items():
        where = f"{SNAPSHOT_KEY}.{package}"
        if not isinstance(raw, dict) or not isinstance(raw.get("baseline"), str) or not raw["baseline"]:
            raise BaselineParseError(path, f"{where}: \"baseline\" must be a non-empty string")
        try:
            port_revision = parse_port_version(raw.get("port-version"), where)
        except ValueError as e:
            raise BaselineParseError(path, str(e)) from e
        baseline[package] = Version(raw["baseline"], port_revision)
    return baseline


def serialize_baseline(baseline: Baseline) -> Dict[str, Any]:
    return {
        SNAPSHOT_KEY: {
            package: {"baseline": version.text, "port-version": version.port_revision}
            for package, version in sorted(baseline.items())
        }
    }


class BaselineStorage:
    """
    The shared baseline file. ``upsert`` holds a lock across
    load-mutate-save so concurrent updates never lose a write.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def load(self) -> Baseline:
        """Missing file loads as an empty baseline."""
        if not self.path.exists():
            return {}
        try:
            doc = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise BaselineParseError(self.path, f"invalid JSON: {e}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise BaselineParseError(self.path, f"unable to read baseline file: {e}") from e
        return parse_baseline(doc, self.path)

    def save(self, baseline: Baseline) -> None:
        atomic_write_json(self.path, serialize_baseline(baseline))

    def upsert(self, package: str, version: Version) -> bool:
        """Set ``package`` to ``version``. Returns False when it was already equal."""
        with self._lock:
            baseline = self.load()
            if baseline.get(package) == version:
                logger.debug("Baseline for %s already at %s", package, version)
                return False
            baseline[package] = version
            self.save(baseline)
        logger.info("Baseline for %s set to %s", package, version)
        return True

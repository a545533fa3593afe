import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Optional

ROOT_ENV_VAR = "PORTLEDGER_ROOT"


def resolve_root(root_flag: Optional[Path] = None) -> Path:
    """Resolve the registry root in this order:
    1. --root flag
    2. PORTLEDGER_ROOT environment variable
    3. Current working directory
    """
    if root_flag:
        return Path(root_flag).resolve()
    env_root = os.environ.get(ROOT_ENV_VAR)
    if env_root:
        return Path(env_root).resolve()
    return Path.cwd().resolve()


def parse_exclude(raw: Optional[str]) -> FrozenSet[str]:
    """Comma-separated package names; blanks are ignored."""
    if not raw:
        return frozenset()
    return frozenset(name.strip() for name in raw.split(",") if name.strip())


@dataclass(frozen=True)
class LedgerConfig:
    """Settings for one invocation, built once by the CLI and passed down."""
    root: Path
    verbose: bool = False
    verify_content: bool = False
    overwrite: bool = False
    keep_going: bool = False
    exclude: FrozenSet[str] = field(default_factory=frozenset)
    jobs: int = 1

    def __post_init__(self):
        if self.jobs < 1:
            raise ValueError(f"jobs must be at least 1, got {self.jobs}")

    @property
    def ports_dir(self) -> Path:
        return self.root / "ports"

    @property
    def versions_dir(self) -> Path:
        return self.root / "versions"

    @property
    def baseline_path(self) -> Path:
        return self.versions_dir / "baseline.json"

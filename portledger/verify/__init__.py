from .content import ContentVerifier
from .checker import CLI_NAME, CheckResult, Confirmation, ConsistencyChecker, run_hint

__all__ = ["CLI_NAME", "ContentVerifier", "CheckResult", "Confirmation", "ConsistencyChecker", "run_hint"]

from .updater import LedgerUpdater, UpdateResult, UpdateStatus

__all__ = ["LedgerUpdater", "UpdateResult", "UpdateStatus"]

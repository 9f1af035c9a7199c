"""Exception hierarchy for the log index synchronizer."""


class LogSyncError(Exception):
    """Base class for all synchronizer errors."""


class ConfigError(LogSyncError):
    """A required setting is missing or a value is invalid."""


class StoreWriteError(LogSyncError):
    """The indexed-state update could not be confirmed by the store."""

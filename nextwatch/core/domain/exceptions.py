class NextwatchError(Exception):
    """Base class for errors raised by the observer and its environments."""
    pass

class EnvironmentUnavailable(NextwatchError):
    """Raised when an optional page capability is missing or fails."""
    pass

class SnapshotUnavailable(NextwatchError):
    """Raised when the environment cannot read the document (closed page, detached frame)."""
    pass

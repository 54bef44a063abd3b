from __future__ import annotations


class InputError(Exception):
    """Raised when required user input is missing or invalid."""


class StoreInitError(Exception):
    """Raised when the database schema cannot be created."""


class ScanError(Exception):
    """Base class of every error that aborts a running scan."""


class UnreadableDirectoryError(ScanError):
    """A directory could not be opened or listed."""

    def __init__(self, path: str, reason: BaseException | None = None) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Unable to read directory '{path}': {reason}")


class MetadataError(ScanError):
    """Stat information of an entry was not available."""

    def __init__(self, path: str, reason: BaseException | None = None) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Unable to read metadata of '{path}': {reason}")


class SinkWriteError(ScanError):
    """The record sink rejected or failed a write."""

    def __init__(self, operation: str, path: str, reason: BaseException) -> None:
        self.operation = operation
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to {operation} '{path}': {reason}")

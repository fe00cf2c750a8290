"""
Sync failure taxonomy.

Every error raised inside a sync cycle derives from SyncError and carries the
stage it happened in plus the underlying cause. The attempt loop catches
SyncError, logs it and moves on to the next attempt; nothing below the
scheduler decides whether to retry.

ConfigError is the exception: it only happens at startup and is fatal.
"""

from enum import Enum


class SyncStage(str, Enum):
    """Pipeline stage in which a cycle failed."""

    FETCH = "fetch"
    PARSE = "parse"
    DEDUPE = "dedupe"
    STORE_READ = "store_read"
    STORE_WRITE = "store_write"


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""

    def __init__(self, message: str, missing: tuple[str, ...] = ()) -> None:
        self.missing = missing
        super().__init__(message)


class SyncError(Exception):
    """
    Base class for retryable failures inside a sync cycle.

    Attributes:
        stage: Pipeline stage that failed
        message: Human-readable description
        cause: Underlying exception, if any
    """

    stage: SyncStage = SyncStage.FETCH

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)

    def __str__(self) -> str:
        if self.cause is None:
            return f"[{self.stage.value}] {self.message}"
        return f"[{self.stage.value}] {self.message}: {self.cause}"


class TransientFetchError(SyncError):
    """Raised when the bulk document cannot be downloaded."""

    stage = SyncStage.FETCH


class MalformedDocumentError(SyncError):
    """Raised when the bulk document does not match the published schema."""

    stage = SyncStage.PARSE


class StoreReadError(SyncError):
    """Raised when existing rows cannot be read from the store."""

    stage = SyncStage.STORE_READ


class StoreWriteError(SyncError):
    """Raised when a card cannot be written to the store."""

    stage = SyncStage.STORE_WRITE

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        oracle_id: str | None = None,
    ) -> None:
        self.oracle_id = oracle_id
        super().__init__(message, cause)

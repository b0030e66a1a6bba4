"""Error taxonomy shared by the store, the core services and the API layer."""
from typing import Any, Optional


class ArtlinkError(Exception):
    """Base class; `reason` is a short machine-readable code."""

    reason = "error"

    def __init__(self, message: str = "", reason: Optional[str] = None) -> None:
        if reason is not None:
            self.reason = reason
        super().__init__(message or self.reason)


class StoreError(ArtlinkError):
    """The record store rejected or failed a request."""

    reason = "store-error"


class ConstraintError(StoreError):
    """A unique column would be violated by an insert or update."""

    reason = "constraint"

    def __init__(self, table: str, column: str, value: Any) -> None:
        self.table = table
        self.column = column
        self.value = value
        super().__init__(f"duplicate value for {table}.{column}: {value!r}")


class ValidationError(ArtlinkError):
    """Caller input failed a local check. Never retried."""

    reason = "invalid"

    def __init__(self, reason: str, message: str = "") -> None:
        super().__init__(message or reason, reason=reason)


class ConflictError(ArtlinkError):
    """Request clashes with existing state (username-taken, tag-already-bound, ...)."""

    reason = "conflict"

    def __init__(self, reason: str, message: str = "") -> None:
        super().__init__(message or reason, reason=reason)


class NotFoundError(ArtlinkError):
    """A mutation targeted a record that does not exist. Lookups return None instead."""

    reason = "not-found"

"""Core services: record store, tag binding, identifiers, artworks, certificates, profiles."""
from artlink.core.errors import (
    ArtlinkError,
    ConflictError,
    ConstraintError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from artlink.core.record_store import Filter, InMemoryRecordStore, JsonRecordStore, RecordStore

__all__ = [
    "ArtlinkError",
    "ConflictError",
    "ConstraintError",
    "Filter",
    "InMemoryRecordStore",
    "JsonRecordStore",
    "NotFoundError",
    "RecordStore",
    "StoreError",
    "ValidationError",
]

"""Shared application state (injected into routes)."""
from typing import Optional

from artlink.config import RECORDS_PATH, STORE_BACKEND
from artlink.core.artworks import ArtworkService
from artlink.core.binding import BindingResolver
from artlink.core.certificates import CertificateService
from artlink.core.identifiers import IdentifierAllocator
from artlink.core.profiles import ProfileService
from artlink.core.record_store import InMemoryRecordStore, JsonRecordStore, RecordStore


def make_store(backend: str = STORE_BACKEND) -> RecordStore:
    if backend == "memory":
        return InMemoryRecordStore()
    if backend == "json":
        return JsonRecordStore(RECORDS_PATH)
    raise ValueError(f"unknown store backend {backend!r} (expected 'json' or 'memory')")


class AppState:
    def __init__(self, store: Optional[RecordStore] = None) -> None:
        self._store = store
        self._binding: BindingResolver | None = None
        self._allocator: IdentifierAllocator | None = None
        self._artworks: ArtworkService | None = None
        self._certificates: CertificateService | None = None
        self._profiles: ProfileService | None = None

    @property
    def store(self) -> RecordStore:
        if self._store is None:
            self._store = make_store()
        return self._store

    @property
    def binding(self) -> BindingResolver:
        if self._binding is None:
            self._binding = BindingResolver(self.store)
        return self._binding

    @property
    def allocator(self) -> IdentifierAllocator:
        if self._allocator is None:
            self._allocator = IdentifierAllocator(self.store)
        return self._allocator

    @property
    def artworks(self) -> ArtworkService:
        if self._artworks is None:
            self._artworks = ArtworkService(self.store)
        return self._artworks

    @property
    def certificates(self) -> CertificateService:
        if self._certificates is None:
            self._certificates = CertificateService(self.store, self.artworks)
        return self._certificates

    @property
    def profiles(self) -> ProfileService:
        if self._profiles is None:
            self._profiles = ProfileService(self.store, self.allocator)
        return self._profiles


_state = AppState()


def get_state() -> AppState:
    return _state

"""Test configuration and fixtures."""
import os

# Keep the API's default state off disk
os.environ.setdefault("ARTLINK_STORE_BACKEND", "memory")

import pytest
from fastapi.testclient import TestClient

from artlink.api.app import app
from artlink.api.state import AppState, get_state
from artlink.core.artworks import ArtworkService
from artlink.core.binding import BindingResolver
from artlink.core.certificates import CertificateService
from artlink.core.identifiers import IdentifierAllocator
from artlink.core.profiles import ProfileService
from artlink.core.record_store import InMemoryRecordStore


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def binding(store) -> BindingResolver:
    return BindingResolver(store, rebind_policy="overwrite", exclusive=True)


@pytest.fixture
def allocator(store) -> IdentifierAllocator:
    return IdentifierAllocator(store, persist_attempts=5)


@pytest.fixture
def artworks(store) -> ArtworkService:
    return ArtworkService(store)


@pytest.fixture
def certificates(store, artworks) -> CertificateService:
    return CertificateService(store, artworks)


@pytest.fixture
def profiles(store, allocator) -> ProfileService:
    return ProfileService(store, allocator)


@pytest.fixture
def state(store) -> AppState:
    return AppState(store)


@pytest.fixture
def client(state):
    app.dependency_overrides[get_state] = lambda: state
    yield TestClient(app)
    app.dependency_overrides.clear()


def profile_row(id_: str, **fields) -> dict:
    """Minimal user_profiles row for seeding a store."""
    return {"id": id_, "email": f"{id_}@example.com", "profile_visibility": "private", **fields}


def artwork_row(id_: str, user_id: str = "u1", **fields) -> dict:
    row = {
        "id": id_,
        "user_id": user_id,
        "title": f"Untitled {id_}",
        "artist": "A. Painter",
        "year": 2021,
        "medium": "Oil on canvas",
        "dimensions": "50x70 cm",
        "status": "unverified",
    }
    row.update(fields)
    return row

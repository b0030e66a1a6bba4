from dataclasses import asdict

import pytest

from artlink.core.errors import ConflictError, ConstraintError, NotFoundError, ValidationError
from artlink.core.identifiers import IdentifierAllocator
from artlink.core.profiles import ProfileService
from artlink.core.record_store import InMemoryRecordStore

from conftest import artwork_row, profile_row


@pytest.mark.asyncio
async def test_create_defaults(profiles):
    profile = await profiles.create("P", " p@example.com ", full_name="Ada", user_type="Artist")
    assert profile.email == "p@example.com"
    assert profile.user_type == "artist"
    assert profile.profile_visibility == "private"
    assert profile.username is None and profile.slug is None


@pytest.mark.asyncio
async def test_create_duplicate_id(profiles):
    await profiles.create("P", "p@example.com")
    with pytest.raises(ConstraintError):
        await profiles.create("P", "other@example.com")


@pytest.mark.asyncio
async def test_update_normalizes_user_type(profiles):
    await profiles.create("P", "p@example.com")
    profile = await profiles.update("P", user_type="Gallery", bio="Contemporary prints")
    assert profile.user_type == "gallery"
    assert profile.bio == "Contemporary prints"
    with pytest.raises(ValidationError) as exc:
        await profiles.update("P", user_type="curator")
    assert exc.value.reason == "user_type"


@pytest.mark.asyncio
async def test_update_rejects_unknown_fields(profiles):
    await profiles.create("P", "p@example.com")
    with pytest.raises(ValidationError):
        await profiles.update("P", email="new@example.com")


@pytest.mark.asyncio
async def test_update_unknown_profile(profiles):
    with pytest.raises(NotFoundError):
        await profiles.update("missing", bio="x")


@pytest.mark.asyncio
async def test_update_username_goes_through_allocator():
    store = InMemoryRecordStore(
        {"user_profiles": [profile_row("P"), profile_row("Q", username="jane")]}
    )
    profiles = ProfileService(store, IdentifierAllocator(store))
    with pytest.raises(ConflictError) as exc:
        await profiles.update("P", username="Jane", bio="ignored")
    assert exc.value.reason == "username-taken"
    assert (await profiles.get("P")).bio is None

    profile = await profiles.update("P", username="Jane_R", bio="Painter")
    assert profile.username == "jane_r"
    assert profile.bio == "Painter"


@pytest.mark.asyncio
async def test_slug_is_immutable_once_assigned():
    store = InMemoryRecordStore({"user_profiles": [profile_row("P", slug="ada")]})
    profiles = ProfileService(store, IdentifierAllocator(store))
    with pytest.raises(ConflictError) as exc:
        await profiles.update("P", slug="ada-2")
    assert exc.value.reason == "slug-immutable"
    # Same value is accepted
    assert (await profiles.update("P", slug="ada")).slug == "ada"


@pytest.mark.asyncio
async def test_first_slug_must_be_free_and_url_safe():
    store = InMemoryRecordStore({"user_profiles": [profile_row("P"), profile_row("Q", slug="ada")]})
    profiles = ProfileService(store, IdentifierAllocator(store))
    with pytest.raises(ConflictError):
        await profiles.update("P", slug="ada")
    with pytest.raises(ValidationError):
        await profiles.update("P", slug="Ada Lovelace")
    assert (await profiles.update("P", slug="ada-lovelace")).slug == "ada-lovelace"


@pytest.mark.asyncio
async def test_set_visibility(profiles):
    await profiles.create("P", "p@example.com")
    assert (await profiles.set_visibility("P", "public")).profile_visibility == "public"
    with pytest.raises(ValidationError):
        await profiles.set_visibility("P", "friends")


@pytest.fixture
def populated():
    store = InMemoryRecordStore(
        {
            "user_profiles": [
                profile_row("P", username="jane", slug="jane-doe", profile_visibility="public",
                            phone="555-0100", full_name="Jane Doe"),
                profile_row("Q", username="quiet"),
                profile_row("R"),
            ],
            "artworks": [artwork_row("a1", user_id="P"), artwork_row("a2", user_id="P"),
                         artwork_row("q1", user_id="Q")],
            "certificates": [
                {"id": "c1", "artwork_id": "a1", "certificate_id": "CERT-1"},
                {"id": "c2", "artwork_id": "q1", "certificate_id": "CERT-2"},
            ],
            "nfc_tags": [
                {"id": "t1", "nfc_uid": "X1", "artwork_id": "a1", "is_bound": True, "binding_status": "bound"},
                {"id": "t2", "nfc_uid": "X2", "artwork_id": None, "is_bound": False,
                 "binding_status": "unbound"},
            ],
        }
    )
    return ProfileService(store, IdentifierAllocator(store))


@pytest.mark.asyncio
async def test_statistics(populated):
    stats = await populated.statistics("P")
    assert (stats.artworks, stats.certificates, stats.tags_linked) == (2, 1, 1)
    empty = await populated.statistics("R")
    assert (empty.artworks, empty.certificates, empty.tags_linked) == (0, 0, 0)


@pytest.mark.asyncio
@pytest.mark.parametrize("identifier", ["jane", "JANE", "jane-doe", "Jane-Doe"])
async def test_public_profile_by_username_or_slug(populated, identifier):
    public = await populated.get_public_profile(identifier)
    assert public.id == "P"
    assert public.statistics.artworks == 2
    fields = asdict(public)
    for private in ("email", "phone", "instagram", "website", "email_verified", "updated_at"):
        assert private not in fields


@pytest.mark.asyncio
async def test_private_public_profile_has_no_statistics(populated):
    public = await populated.get_public_profile("quiet")
    assert public.id == "Q"
    assert public.statistics is None


@pytest.mark.asyncio
async def test_public_profile_absent(populated):
    assert await populated.get_public_profile("nobody") is None
    assert await populated.get_public_profile("  ") is None

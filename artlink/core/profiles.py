"""User profiles: edits, visibility, statistics and public lookup."""
import asyncio
import logging
from typing import Optional

from artlink.core.errors import ConflictError, NotFoundError, ValidationError
from artlink.core.identifiers import PROFILES, IdentifierAllocator, normalize_handle, slugify
from artlink.core.record_store import Filter, RecordStore
from artlink.models.profile import (
    PROFILE_VISIBILITIES,
    USER_TYPES,
    ProfileStatistics,
    PublicProfile,
    UserProfile,
)

logger = logging.getLogger(__name__)

_EDITABLE = (
    "full_name",
    "username",
    "slug",
    "avatar_url",
    "user_type",
    "bio",
    "website",
    "location",
    "phone",
    "instagram",
    "profile_visibility",
)


def _normalize_user_type(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    user_type = value.strip().lower()
    if user_type not in USER_TYPES:
        raise ValidationError("user_type", f"user_type must be one of {USER_TYPES}")
    return user_type


class ProfileService:
    def __init__(self, store: RecordStore, allocator: IdentifierAllocator) -> None:
        self._store = store
        self._allocator = allocator

    async def get(self, profile_id: str) -> Optional[UserProfile]:
        row = await self._store.find_one(PROFILES, Filter().eq("id", profile_id))
        return UserProfile.from_record(row) if row else None

    async def create(
        self,
        profile_id: str,
        email: str,
        full_name: Optional[str] = None,
        user_type: str = "artist",
    ) -> UserProfile:
        if not email or not email.strip():
            raise ValidationError("required", "email is required")
        row = await self._store.insert(
            PROFILES,
            {
                "id": profile_id,
                "email": email.strip(),
                "full_name": full_name,
                "user_type": _normalize_user_type(user_type),
                "profile_visibility": "private",
                "email_verified": False,
            },
        )
        return UserProfile.from_record(row)

    async def update(self, profile_id: str, **fields) -> UserProfile:
        """Apply profile edits. Usernames go through the allocator; slugs never change once set."""
        unknown = [k for k in fields if k not in _EDITABLE]
        if unknown:
            raise ValidationError("unknown-field", f"profile fields cannot be set: {unknown}")
        current = await self.get(profile_id)
        if current is None:
            raise NotFoundError(f"profile {profile_id} not found")

        changes = dict(fields)
        if "user_type" in changes:
            changes["user_type"] = _normalize_user_type(changes["user_type"])
        if "profile_visibility" in changes and changes["profile_visibility"] not in PROFILE_VISIBILITIES:
            raise ValidationError(
                "profile_visibility", f"profile_visibility must be one of {PROFILE_VISIBILITIES}"
            )
        if "slug" in changes:
            slug = changes.pop("slug")
            if current.slug and slug != current.slug:
                raise ConflictError("slug-immutable", "a profile slug cannot change once assigned")
            if slug and not current.slug:
                if slugify(slug) != slug:
                    raise ValidationError("slug", f"slug {slug!r} is not URL-safe")
                if not await self._allocator.is_slug_available(slug, exclude_id=profile_id):
                    raise ConflictError("slug-taken", f"slug {slug!r} is already taken")
                changes["slug"] = slug

        username = changes.pop("username", None)
        if username is not None and normalize_handle(username) != (current.username or ""):
            current = await self._allocator.update_handle(profile_id, username)
        if not changes:
            return current
        rows = await self._store.update(PROFILES, Filter().eq("id", profile_id), changes)
        if not rows:
            raise NotFoundError(f"profile {profile_id} not found")
        return UserProfile.from_record(rows[0])

    async def set_visibility(self, profile_id: str, visibility: str) -> UserProfile:
        return await self.update(profile_id, profile_visibility=visibility)

    async def statistics(self, profile_id: str) -> ProfileStatistics:
        """Counts for the profile's artworks, their certificates and bound tags."""
        artworks = await self._store.find("artworks", Filter().eq("user_id", profile_id))
        ids = [a["id"] for a in artworks]
        if not ids:
            return ProfileStatistics(artworks=0, certificates=0, tags_linked=0)
        # Independent reads, issued concurrently
        certificates, tags = await asyncio.gather(
            self._store.count("certificates", Filter().in_("artwork_id", ids)),
            self._store.count("nfc_tags", Filter().in_("artwork_id", ids).eq("is_bound", True)),
        )
        return ProfileStatistics(artworks=len(ids), certificates=certificates, tags_linked=tags)

    async def get_public_profile(self, identifier: str) -> Optional[PublicProfile]:
        """Look up by username or slug. Statistics are included only for public profiles."""
        key = identifier.strip()
        if not key:
            return None
        row = await self._store.find_one(PROFILES, Filter().ieq("username", key))
        if row is None:
            row = await self._store.find_one(PROFILES, Filter().ieq("slug", key))
        if row is None:
            return None
        profile = UserProfile.from_record(row)
        stats = None
        if profile.profile_visibility == "public":
            stats = await self.statistics(profile.id)
        return PublicProfile.from_profile(profile, stats)

"""Usernames and profile slugs: validation, normalization, unique allocation.

Uniqueness is probed before writing, but nothing here is transactional. Two
allocators racing on the same base can pick the same candidate; the store's
case-insensitive unique index on `user_profiles.username` / `.slug` is what
finally decides, and a lost race surfaces as ConstraintError on the write.
"""
import logging
import re
from dataclasses import dataclass
from typing import Optional

from artlink.config import PROFILE_SHARE_BASE_URL, SLUG_PERSIST_ATTEMPTS
from artlink.core.errors import ConflictError, ConstraintError, NotFoundError, StoreError, ValidationError
from artlink.core.record_store import Filter, RecordStore
from artlink.models.profile import UserProfile

logger = logging.getLogger(__name__)

HANDLE_MIN_LENGTH = 1
HANDLE_MAX_LENGTH = 30
SLUG_MAX_LENGTH = 50

_HANDLE_CHARSET = re.compile(r"^[A-Za-z0-9._]+$")
_SLUG_SEPARATORS = re.compile(r"[^a-z0-9]+")

PROFILES = "user_profiles"


@dataclass(frozen=True)
class HandleCheck:
    valid: bool
    reason: Optional[str] = None

    def raise_for_reason(self) -> None:
        if not self.valid:
            raise ValidationError(self.reason)


def validate_handle(raw: Optional[str]) -> HandleCheck:
    """Check a username; only the first failing rule is reported.

    Order: required, length, charset, edge-dot, double-dot.
    """
    if raw is None or not raw.strip():
        return HandleCheck(False, "required")
    handle = raw.strip()
    if not HANDLE_MIN_LENGTH <= len(handle) <= HANDLE_MAX_LENGTH:
        return HandleCheck(False, "length")
    if not _HANDLE_CHARSET.match(handle):
        return HandleCheck(False, "charset")
    if handle.startswith(".") or handle.endswith("."):
        return HandleCheck(False, "edge-dot")
    if ".." in handle:
        return HandleCheck(False, "double-dot")
    return HandleCheck(True)


def normalize_handle(raw: str) -> str:
    return raw.strip().lower()


def slugify(text: str) -> str:
    """URL-safe slug: lower-case, [a-z0-9] runs joined by single hyphens, at most 50 chars."""
    slug = _SLUG_SEPARATORS.sub("-", text.lower().strip()).strip("-")
    # Truncation can expose a hyphen at the cut
    return slug[:SLUG_MAX_LENGTH].rstrip("-")


def _candidate(base: str, n: int) -> str:
    return base if n == 0 else f"{base}-{n}"


def profile_share_url(slug: str) -> str:
    return f"{PROFILE_SHARE_BASE_URL.rstrip('/')}/{slug}"


class IdentifierAllocator:
    """Resolves usernames and slugs against the profile table's uniqueness index."""

    def __init__(self, store: RecordStore, persist_attempts: int = SLUG_PERSIST_ATTEMPTS) -> None:
        self._store = store
        self._persist_attempts = max(1, persist_attempts)

    async def _is_free(self, column: str, value: str, exclude_id: Optional[str]) -> bool:
        flt = Filter().ieq(column, value)
        if exclude_id:
            flt = flt.neq("id", exclude_id)
        return await self._store.count(PROFILES, flt) == 0

    async def is_username_available(self, username: str, exclude_id: Optional[str] = None) -> bool:
        return await self._is_free("username", normalize_handle(username), exclude_id)

    async def is_slug_available(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        return await self._is_free("slug", slug, exclude_id)

    async def _first_free_suffix(self, base: str, exclude_id: Optional[str], start: int = 0) -> int:
        n = start
        while not await self.is_slug_available(_candidate(base, n), exclude_id):
            n += 1
        return n

    async def allocate_unique_slug(self, base_input: str, exclude_id: Optional[str] = None) -> str:
        """First free slug among base, base-1, base-2, ... (probed in order)."""
        base = slugify(base_input) or "user"
        return _candidate(base, await self._first_free_suffix(base, exclude_id))

    async def _load(self, profile_id: str) -> UserProfile:
        row = await self._store.find_one(PROFILES, Filter().eq("id", profile_id))
        if row is None:
            raise NotFoundError(f"profile {profile_id} not found")
        return UserProfile.from_record(row)

    async def update_handle(self, profile_id: str, raw_username: str) -> UserProfile:
        """Validate, check availability and persist a new username."""
        username = normalize_handle(raw_username or "")
        validate_handle(username).raise_for_reason()
        current = await self._load(profile_id)
        if (current.username or "").lower() != username:
            if not await self.is_username_available(username, exclude_id=profile_id):
                raise ConflictError("username-taken", f"username {username!r} is already taken")
        try:
            rows = await self._store.update(
                PROFILES, Filter().eq("id", profile_id), {"username": username}
            )
        except ConstraintError as e:
            raise ConflictError("username-taken", f"username {username!r} is already taken") from e
        if not rows:
            raise NotFoundError(f"profile {profile_id} not found")
        return UserProfile.from_record(rows[0])

    async def ensure_slug(self, profile: UserProfile) -> str:
        """Return the profile's slug, allocating and saving one on first use.

        Base is the username, else the full name, else `user-<id prefix>`. When
        the save loses a race on the candidate, probing resumes from the next
        suffix. Any other store failure is logged and the computed slug is
        returned unsaved; the next call retries.
        """
        if profile.slug:
            return profile.slug
        # The caller's copy may predate a slug saved elsewhere
        row = await self._store.find_one(PROFILES, Filter().eq("id", profile.id))
        if row and row.get("slug"):
            return row["slug"]
        if profile.username:
            base = slugify(profile.username)
        else:
            base = slugify(profile.full_name or f"user-{profile.id[:8]}")
        base = base or "user"

        n = await self._first_free_suffix(base, profile.id)
        slug = _candidate(base, n)
        for attempt in range(self._persist_attempts):
            try:
                rows = await self._store.update(PROFILES, Filter().eq("id", profile.id), {"slug": slug})
                if not rows:
                    logger.warning("Profile %s not found; slug %r not saved", profile.id, slug)
                    return slug
                logger.info("Assigned slug %r to profile %s", slug, profile.id)
                return slug
            except ConstraintError:
                logger.info("Slug %r taken concurrently (attempt %d), trying next", slug, attempt + 1)
                n = await self._first_free_suffix(base, profile.id, start=n + 1)
                slug = _candidate(base, n)
            except StoreError as e:
                logger.error("Could not save slug %r for profile %s: %s", slug, profile.id, e)
                return slug
        logger.error(
            "Gave up saving a slug for profile %s after %d attempts; returning %r unsaved",
            profile.id,
            self._persist_attempts,
            slug,
        )
        return slug

    async def share_url(self, profile: UserProfile) -> str:
        return profile_share_url(await self.ensure_slug(profile))

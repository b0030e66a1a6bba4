"""User profiles and their share-safe public projection."""
from dataclasses import dataclass
from typing import Optional

from artlink.core.errors import StoreError

USER_TYPES = ("artist", "gallery", "collector")
PROFILE_VISIBILITIES = ("private", "public")


@dataclass
class UserProfile:
    """Profile row; id matches the external identity record."""
    id: str
    email: str
    full_name: Optional[str] = None
    username: Optional[str] = None
    slug: Optional[str] = None
    avatar_url: Optional[str] = None
    user_type: Optional[str] = None  # "artist" | "gallery" | "collector"
    bio: Optional[str] = None
    website: Optional[str] = None
    location: Optional[str] = None
    phone: Optional[str] = None
    instagram: Optional[str] = None
    profile_visibility: str = "private"
    email_verified: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_record(cls, item: dict) -> "UserProfile":
        try:
            profile = cls(
                id=item["id"],
                email=item["email"],
                full_name=item.get("full_name"),
                username=item.get("username"),
                slug=item.get("slug"),
                avatar_url=item.get("avatar_url"),
                user_type=item.get("user_type"),
                bio=item.get("bio"),
                website=item.get("website"),
                location=item.get("location"),
                phone=item.get("phone"),
                instagram=item.get("instagram"),
                profile_visibility=item.get("profile_visibility") or "private",
                email_verified=bool(item.get("email_verified", False)),
                created_at=item.get("created_at"),
                updated_at=item.get("updated_at"),
            )
        except (KeyError, TypeError) as e:
            raise StoreError(f"malformed user profile record: {e}") from e
        if profile.user_type is not None and profile.user_type not in USER_TYPES:
            raise StoreError(f"profile {profile.id} has unknown user type {profile.user_type!r}")
        if profile.profile_visibility not in PROFILE_VISIBILITIES:
            raise StoreError(
                f"profile {profile.id} has unknown visibility {profile.profile_visibility!r}"
            )
        return profile


@dataclass
class ProfileStatistics:
    artworks: int
    certificates: int
    tags_linked: int


@dataclass
class PublicProfile:
    """Share-safe view of a profile: no email, phone, instagram, website."""
    id: str
    full_name: Optional[str]
    username: Optional[str]
    slug: Optional[str]
    avatar_url: Optional[str]
    user_type: Optional[str]
    bio: Optional[str]
    location: Optional[str]
    profile_visibility: str
    created_at: Optional[str]
    statistics: Optional[ProfileStatistics] = None

    @classmethod
    def from_profile(
        cls, profile: UserProfile, statistics: Optional[ProfileStatistics] = None
    ) -> "PublicProfile":
        return cls(
            id=profile.id,
            full_name=profile.full_name,
            username=profile.username,
            slug=profile.slug,
            avatar_url=profile.avatar_url,
            user_type=profile.user_type,
            bio=profile.bio,
            location=profile.location,
            profile_visibility=profile.profile_visibility,
            created_at=profile.created_at,
            statistics=statistics,
        )

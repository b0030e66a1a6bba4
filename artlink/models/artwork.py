"""Artwork records."""
from dataclasses import dataclass
from typing import Optional

from artlink.core.errors import StoreError

ARTWORK_STATUSES = ("verified", "unverified")


@dataclass
class Artwork:
    """Registered artwork owned by a user profile."""
    id: str
    user_id: Optional[str]
    title: str
    artist: str
    year: int
    medium: str
    dimensions: str
    status: str  # "verified" | "unverified"
    image_url: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_record(cls, item: dict) -> "Artwork":
        try:
            artwork = cls(
                id=item["id"],
                user_id=item.get("user_id"),
                title=item["title"],
                artist=item["artist"],
                year=int(item["year"]),
                medium=item["medium"],
                dimensions=item["dimensions"],
                status=item.get("status") or "unverified",
                image_url=item.get("image_url"),
                created_at=item.get("created_at"),
                updated_at=item.get("updated_at"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError(f"malformed artwork record: {e}") from e
        if artwork.status not in ARTWORK_STATUSES:
            raise StoreError(f"artwork {artwork.id} has unknown status {artwork.status!r}")
        return artwork

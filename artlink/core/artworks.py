"""Artwork CRUD against the record store."""
import logging
from typing import List, Optional

from artlink.core.errors import NotFoundError, ValidationError
from artlink.core.record_store import Filter, RecordStore
from artlink.models.artwork import ARTWORK_STATUSES, Artwork

logger = logging.getLogger(__name__)

ARTWORKS = "artworks"

_REQUIRED_TEXT = ("title", "artist", "medium", "dimensions")
_EDITABLE = ("title", "artist", "year", "medium", "dimensions", "status", "image_url")


def _check_fields(fields: dict) -> dict:
    out = {}
    for key, value in fields.items():
        if key not in _EDITABLE:
            raise ValidationError("unknown-field", f"artwork field {key!r} cannot be set")
        if key in _REQUIRED_TEXT:
            if value is None or not str(value).strip():
                raise ValidationError("required", f"{key} is required")
            value = str(value).strip()
        elif key == "year":
            try:
                value = int(value)
            except (TypeError, ValueError):
                raise ValidationError("year", f"year must be an integer, got {value!r}") from None
        elif key == "status" and value not in ARTWORK_STATUSES:
            raise ValidationError("status", f"status must be one of {ARTWORK_STATUSES}")
        out[key] = value
    return out


class ArtworkService:
    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def list_for_user(self, user_id: str) -> List[Artwork]:
        """Owner's artworks, newest first."""
        rows = await self._store.find(
            ARTWORKS, Filter().eq("user_id", user_id).order("created_at", descending=True)
        )
        return [Artwork.from_record(r) for r in rows]

    async def get(self, artwork_id: str) -> Optional[Artwork]:
        row = await self._store.find_one(ARTWORKS, Filter().eq("id", artwork_id))
        return Artwork.from_record(row) if row else None

    async def create(
        self,
        user_id: str,
        title: str,
        artist: str,
        year: int,
        medium: str,
        dimensions: str,
        image_url: Optional[str] = None,
    ) -> Artwork:
        fields = _check_fields(
            {
                "title": title,
                "artist": artist,
                "year": year,
                "medium": medium,
                "dimensions": dimensions,
                "image_url": image_url,
            }
        )
        row = await self._store.insert(
            ARTWORKS, {"user_id": user_id, "status": "unverified", **fields}
        )
        logger.info("Created artwork %s for user %s", row["id"], user_id)
        return Artwork.from_record(row)

    async def update(self, artwork_id: str, **fields) -> Artwork:
        changes = _check_fields(fields)
        rows = await self._store.update(ARTWORKS, Filter().eq("id", artwork_id), changes)
        if not rows:
            raise NotFoundError(f"artwork {artwork_id} not found")
        return Artwork.from_record(rows[0])

    async def set_status(self, artwork_id: str, status: str) -> Artwork:
        return await self.update(artwork_id, status=status)

    async def delete(self, artwork_id: str) -> None:
        """Delete the artwork after releasing its tag and dropping its certificates."""
        await self._store.update(
            "nfc_tags",
            Filter().eq("artwork_id", artwork_id),
            {"artwork_id": None, "is_bound": False, "binding_status": "unbound"},
        )
        await self._store.delete("certificates", Filter().eq("artwork_id", artwork_id))
        removed = await self._store.delete(ARTWORKS, Filter().eq("id", artwork_id))
        if removed:
            logger.info("Deleted artwork %s", artwork_id)

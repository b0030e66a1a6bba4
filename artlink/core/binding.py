"""NFC tag UID <-> artwork binding.

Every operation re-reads the tag table before writing. There is no
transaction around the read and the write; the unique index on
`nfc_tags.nfc_uid` is the only backstop when two callers link the same
new tag at once (the loser gets ConstraintError, unchanged).
"""
import logging
from typing import Optional, Sequence, Union

from artlink.config import EXCLUSIVE_BINDING, REBIND_POLICY
from artlink.core.errors import ConflictError, NotFoundError, ValidationError
from artlink.core.record_store import Filter, RecordStore
from artlink.models.nfc_tag import NFCTag

logger = logging.getLogger(__name__)

TAGS = "nfc_tags"

REBIND_OVERWRITE = "overwrite"
REBIND_REJECT = "reject"
REBIND_POLICIES = (REBIND_OVERWRITE, REBIND_REJECT)

_BOUND = {"is_bound": True, "binding_status": "bound"}
_UNBOUND = {"artwork_id": None, "is_bound": False, "binding_status": "unbound"}


def format_uid(raw: Union[str, bytes, Sequence[int], None]) -> str:
    """Normalize a reader-reported UID: bytes become upper-case hex, strings are upper-cased."""
    if raw is None:
        raise ValidationError("required", "tag UID is required")
    if isinstance(raw, str):
        uid = raw.strip().upper()
    else:
        uid = "".join(f"{b:02x}" for b in raw).upper()
    if not uid:
        raise ValidationError("required", "tag UID is required")
    return uid


class BindingResolver:
    """Links physical tags to artworks; at most one bound tag per artwork."""

    def __init__(
        self,
        store: RecordStore,
        rebind_policy: str = REBIND_POLICY,
        exclusive: bool = EXCLUSIVE_BINDING,
    ) -> None:
        if rebind_policy not in REBIND_POLICIES:
            raise ValueError(f"rebind_policy must be one of {REBIND_POLICIES}, got {rebind_policy!r}")
        self._store = store
        self._rebind_policy = rebind_policy
        self._exclusive = exclusive

    async def lookup_by_uid(self, uid: str) -> Optional[NFCTag]:
        row = await self._store.find_one(TAGS, Filter().eq("nfc_uid", uid))
        return NFCTag.from_record(row) if row else None

    async def lookup_by_artwork(self, artwork_id: str) -> Optional[NFCTag]:
        row = await self._store.find_one(TAGS, Filter().eq("artwork_id", artwork_id))
        return NFCTag.from_record(row) if row else None

    async def link_tag(self, artwork_id: str, uid: str) -> NFCTag:
        """Bind tag `uid` to `artwork_id`, creating the tag row if unseen."""
        if not artwork_id:
            raise ValidationError("required", "artwork id is required")
        if not uid or not uid.strip():
            raise ValidationError("required", "tag UID is required")

        existing = await self.lookup_by_uid(uid)
        if existing and existing.is_bound and existing.artwork_id not in (None, artwork_id):
            if self._rebind_policy == REBIND_REJECT:
                raise ConflictError(
                    "tag-already-bound",
                    f"tag {uid} is already bound to artwork {existing.artwork_id}",
                )
            logger.warning(
                "Rebinding tag %s from artwork %s to %s", uid, existing.artwork_id, artwork_id
            )

        if existing:
            rows = await self._store.update(
                TAGS, Filter().eq("id", existing.id), {"artwork_id": artwork_id, **_BOUND}
            )
            if not rows:
                # Deleted between the read and the write
                raise NotFoundError(f"tag {uid} disappeared while linking")
            tag = NFCTag.from_record(rows[0])
        else:
            row = await self._store.insert(TAGS, {"artwork_id": artwork_id, "nfc_uid": uid, **_BOUND})
            logger.info("Registered tag %s for artwork %s", uid, artwork_id)
            tag = NFCTag.from_record(row)

        # Other tags on the artwork are released only once the new link is stored
        if self._exclusive:
            released = await self._store.update(
                TAGS, Filter().eq("artwork_id", artwork_id).neq("id", tag.id), _UNBOUND
            )
            for row in released:
                logger.info("Unbound tag %s from artwork %s", row["nfc_uid"], artwork_id)
        return tag

    async def unlink_tag(self, artwork_id: str) -> None:
        """Release whatever tag points at `artwork_id`; no-op if none does."""
        released = await self._store.update(TAGS, Filter().eq("artwork_id", artwork_id), _UNBOUND)
        for row in released:
            logger.info("Unbound tag %s from artwork %s", row["nfc_uid"], artwork_id)

    async def delete_tag(self, tag_id: str) -> None:
        await self._store.delete(TAGS, Filter().eq("id", tag_id))

"""NFC tag records and their binding to artworks."""
from dataclasses import dataclass
from typing import Optional

from artlink.core.errors import StoreError

BINDING_STATUSES = ("bound", "unbound", "pending")


@dataclass
class NFCTag:
    """Stored tag: physical UID -> artwork (or unbound)."""
    id: str
    nfc_uid: str
    artwork_id: Optional[str]
    is_bound: bool
    binding_status: str  # "bound" | "unbound" | "pending"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_record(cls, item: dict) -> "NFCTag":
        try:
            tag = cls(
                id=item["id"],
                nfc_uid=item["nfc_uid"],
                artwork_id=item.get("artwork_id"),
                is_bound=bool(item.get("is_bound", False)),
                binding_status=item.get("binding_status") or "pending",
                created_at=item.get("created_at"),
                updated_at=item.get("updated_at"),
            )
        except (KeyError, TypeError) as e:
            raise StoreError(f"malformed nfc tag record: {e}") from e
        if tag.binding_status not in BINDING_STATUSES:
            raise StoreError(f"tag {tag.id} has unknown binding status {tag.binding_status!r}")
        return tag

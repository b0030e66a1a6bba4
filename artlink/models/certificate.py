"""Certificate of authenticity records."""
from dataclasses import dataclass
from typing import Optional

from artlink.core.errors import StoreError


@dataclass
class Certificate:
    id: str
    artwork_id: Optional[str]
    certificate_id: str
    qr_code_url: Optional[str] = None
    blockchain_hash: Optional[str] = None
    generated_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_record(cls, item: dict) -> "Certificate":
        try:
            return cls(
                id=item["id"],
                artwork_id=item.get("artwork_id"),
                certificate_id=item["certificate_id"],
                qr_code_url=item.get("qr_code_url"),
                blockchain_hash=item.get("blockchain_hash"),
                generated_at=item.get("generated_at"),
                created_at=item.get("created_at"),
                updated_at=item.get("updated_at"),
            )
        except (KeyError, TypeError) as e:
            raise StoreError(f"malformed certificate record: {e}") from e

"""Certificates of authenticity: issue, look up, revoke.

Issuing a certificate marks its artwork verified; deleting the last one
marks it unverified again. Those status updates are secondary: if one
fails it is logged and the certificate operation still succeeds.
"""
import hashlib
import logging
import secrets
import string
import time
from datetime import datetime, timezone
from typing import List, Optional
from urllib.parse import quote

from artlink.config import CERTIFICATE_BASE_URL, QR_SERVICE_URL
from artlink.core.artworks import ArtworkService
from artlink.core.errors import NotFoundError, StoreError
from artlink.core.record_store import Filter, RecordStore
from artlink.models.certificate import Certificate

logger = logging.getLogger(__name__)

CERTIFICATES = "certificates"

_CODE_ALPHABET = string.digits + string.ascii_uppercase


def generate_certificate_id() -> str:
    """CERT-<epoch ms>-<7 base36 chars>."""
    suffix = "".join(secrets.choice(_CODE_ALPHABET) for _ in range(7))
    return f"CERT-{int(time.time() * 1000)}-{suffix}"


def blockchain_hash(certificate_id: str, artwork_id: str, generated_at: str) -> str:
    digest = hashlib.sha256(f"{certificate_id}-{artwork_id}-{generated_at}".encode()).hexdigest()
    return f"0x{digest}"


def qr_code_url(certificate_id: str, base_url: Optional[str] = None) -> str:
    target = f"{(base_url or CERTIFICATE_BASE_URL).rstrip('/')}/{certificate_id}"
    return f"{QR_SERVICE_URL}{quote(target, safe='')}"


class CertificateService:
    def __init__(self, store: RecordStore, artworks: ArtworkService) -> None:
        self._store = store
        self._artworks = artworks

    async def create(
        self,
        artwork_id: str,
        *,
        generate_qr: bool = True,
        generate_hash: bool = True,
        base_url: Optional[str] = None,
    ) -> Certificate:
        if await self._artworks.get(artwork_id) is None:
            raise NotFoundError(f"artwork {artwork_id} not found")
        certificate_id = generate_certificate_id()
        generated_at = datetime.now(timezone.utc).isoformat()
        row = await self._store.insert(
            CERTIFICATES,
            {
                "artwork_id": artwork_id,
                "certificate_id": certificate_id,
                "qr_code_url": qr_code_url(certificate_id, base_url) if generate_qr else None,
                "blockchain_hash": (
                    blockchain_hash(certificate_id, artwork_id, generated_at) if generate_hash else None
                ),
                "generated_at": generated_at,
            },
        )
        logger.info("Issued certificate %s for artwork %s", certificate_id, artwork_id)
        try:
            await self._artworks.set_status(artwork_id, "verified")
        except (StoreError, NotFoundError) as e:
            logger.error("Certificate %s issued but artwork %s not marked verified: %s",
                         certificate_id, artwork_id, e)
        return Certificate.from_record(row)

    async def get(self, id_: str) -> Optional[Certificate]:
        row = await self._store.find_one(CERTIFICATES, Filter().eq("id", id_))
        return Certificate.from_record(row) if row else None

    async def get_by_certificate_id(self, certificate_id: str) -> Optional[Certificate]:
        row = await self._store.find_one(CERTIFICATES, Filter().eq("certificate_id", certificate_id))
        return Certificate.from_record(row) if row else None

    async def get_by_artwork(self, artwork_id: str) -> Optional[Certificate]:
        row = await self._store.find_one(
            CERTIFICATES,
            Filter().eq("artwork_id", artwork_id).order("generated_at", descending=True),
        )
        return Certificate.from_record(row) if row else None

    async def list_for_user(self, user_id: str) -> List[Certificate]:
        """All certificates on the user's artworks, newest first."""
        artworks = await self._store.find("artworks", Filter().eq("user_id", user_id))
        if not artworks:
            return []
        rows = await self._store.find(
            CERTIFICATES,
            Filter().in_("artwork_id", [a["id"] for a in artworks]).order("generated_at", descending=True),
        )
        return [Certificate.from_record(r) for r in rows]

    async def delete(self, id_: str) -> None:
        certificate = await self.get(id_)
        if certificate is None:
            return
        await self._store.delete(CERTIFICATES, Filter().eq("id", id_))
        logger.info("Deleted certificate %s", certificate.certificate_id)
        if not certificate.artwork_id:
            return
        try:
            remaining = await self._store.count(
                CERTIFICATES, Filter().eq("artwork_id", certificate.artwork_id)
            )
            if remaining == 0:
                await self._artworks.set_status(certificate.artwork_id, "unverified")
        except (StoreError, NotFoundError) as e:
            logger.error("Certificate %s deleted but artwork %s status not reset: %s",
                         certificate.certificate_id, certificate.artwork_id, e)

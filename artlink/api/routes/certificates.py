"""Certificate lookups and revocation."""
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException

from artlink.api.state import AppState, get_state

router = APIRouter()


@router.get("/")
async def list_certificates(user_id: str, state: AppState = Depends(get_state)):
    """All certificates on a user's artworks, newest first."""
    return [asdict(c) for c in await state.certificates.list_for_user(user_id)]


@router.get("/by-code/{certificate_id}")
async def get_certificate_by_code(certificate_id: str, state: AppState = Depends(get_state)):
    certificate = await state.certificates.get_by_certificate_id(certificate_id)
    if certificate is None:
        raise HTTPException(status_code=404, detail="Certificate not found")
    return asdict(certificate)


@router.get("/{id_}")
async def get_certificate(id_: str, state: AppState = Depends(get_state)):
    certificate = await state.certificates.get(id_)
    if certificate is None:
        raise HTTPException(status_code=404, detail="Certificate not found")
    return asdict(certificate)


@router.delete("/{id_}", status_code=204)
async def delete_certificate(id_: str, state: AppState = Depends(get_state)):
    await state.certificates.delete(id_)

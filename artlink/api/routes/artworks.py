"""Artwork CRUD plus the artwork's tag binding and certificate."""
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from artlink.api.state import AppState, get_state
from artlink.core.binding import format_uid

router = APIRouter()


class CreateArtworkBody(BaseModel):
    user_id: str
    title: str
    artist: str
    year: int
    medium: str
    dimensions: str
    image_url: Optional[str] = None


class UpdateArtworkBody(BaseModel):
    title: Optional[str] = None
    artist: Optional[str] = None
    year: Optional[int] = None
    medium: Optional[str] = None
    dimensions: Optional[str] = None
    status: Optional[str] = None
    image_url: Optional[str] = None


class LinkTagBody(BaseModel):
    uid: str


class CreateCertificateBody(BaseModel):
    generate_qr: bool = True
    generate_hash: bool = True
    base_url: Optional[str] = None


@router.get("/")
async def list_artworks(user_id: str, state: AppState = Depends(get_state)):
    """List a user's artworks, newest first."""
    return [asdict(a) for a in await state.artworks.list_for_user(user_id)]


@router.post("/", status_code=201)
async def create_artwork(body: CreateArtworkBody, state: AppState = Depends(get_state)):
    artwork = await state.artworks.create(**body.model_dump())
    return asdict(artwork)


@router.get("/{artwork_id}")
async def get_artwork(artwork_id: str, state: AppState = Depends(get_state)):
    artwork = await state.artworks.get(artwork_id)
    if artwork is None:
        raise HTTPException(status_code=404, detail="Artwork not found")
    return asdict(artwork)


@router.patch("/{artwork_id}")
async def update_artwork(
    artwork_id: str,
    body: UpdateArtworkBody,
    state: AppState = Depends(get_state),
):
    """Update only the fields present in the body."""
    artwork = await state.artworks.update(artwork_id, **body.model_dump(exclude_unset=True))
    return asdict(artwork)


@router.delete("/{artwork_id}", status_code=204)
async def delete_artwork(artwork_id: str, state: AppState = Depends(get_state)):
    if await state.artworks.get(artwork_id) is None:
        raise HTTPException(status_code=404, detail="Artwork not found")
    await state.artworks.delete(artwork_id)


@router.get("/{artwork_id}/tag")
async def get_artwork_tag(artwork_id: str, state: AppState = Depends(get_state)):
    tag = await state.binding.lookup_by_artwork(artwork_id)
    if tag is None:
        raise HTTPException(status_code=404, detail="No tag linked to this artwork")
    return asdict(tag)


@router.post("/{artwork_id}/tag")
async def link_artwork_tag(
    artwork_id: str,
    body: LinkTagBody,
    state: AppState = Depends(get_state),
):
    """Bind a scanned tag to this artwork (rebinding it if it was elsewhere)."""
    if await state.artworks.get(artwork_id) is None:
        raise HTTPException(status_code=404, detail="Artwork not found")
    tag = await state.binding.link_tag(artwork_id, format_uid(body.uid))
    return asdict(tag)


@router.delete("/{artwork_id}/tag", status_code=204)
async def unlink_artwork_tag(artwork_id: str, state: AppState = Depends(get_state)):
    await state.binding.unlink_tag(artwork_id)


@router.get("/{artwork_id}/certificate")
async def get_artwork_certificate(artwork_id: str, state: AppState = Depends(get_state)):
    certificate = await state.certificates.get_by_artwork(artwork_id)
    if certificate is None:
        raise HTTPException(status_code=404, detail="No certificate for this artwork")
    return asdict(certificate)


@router.post("/{artwork_id}/certificate", status_code=201)
async def create_artwork_certificate(
    artwork_id: str,
    body: Optional[CreateCertificateBody] = None,
    state: AppState = Depends(get_state),
):
    options = body or CreateCertificateBody()
    certificate = await state.certificates.create(artwork_id, **options.model_dump())
    return asdict(certificate)

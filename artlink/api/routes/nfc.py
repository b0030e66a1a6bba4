"""Tag lookup by scanned UID."""
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException

from artlink.api.state import AppState, get_state
from artlink.core.binding import format_uid

router = APIRouter()


@router.get("/tags/{uid}")
async def get_tag(uid: str, state: AppState = Depends(get_state)):
    """Return the tag for a scanned UID and the artwork it is bound to, if any."""
    tag = await state.binding.lookup_by_uid(format_uid(uid))
    if tag is None:
        raise HTTPException(status_code=404, detail="Unknown tag")
    artwork = None
    if tag.is_bound and tag.artwork_id:
        artwork = await state.artworks.get(tag.artwork_id)
    return {
        "tag": asdict(tag),
        "artwork": asdict(artwork) if artwork else None,
    }


@router.delete("/tags/by-id/{tag_id}", status_code=204)
async def delete_tag(tag_id: str, state: AppState = Depends(get_state)):
    await state.binding.delete_tag(tag_id)

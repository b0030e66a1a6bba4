"""Profiles: edits, username/slug handles, visibility, public lookup."""
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from artlink.api.state import AppState, get_state
from artlink.core.identifiers import normalize_handle, profile_share_url, validate_handle

router = APIRouter()


class CreateProfileBody(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    user_type: str = "artist"


class UpdateProfileBody(BaseModel):
    full_name: Optional[str] = None
    username: Optional[str] = None
    slug: Optional[str] = None
    avatar_url: Optional[str] = None
    user_type: Optional[str] = None
    bio: Optional[str] = None
    website: Optional[str] = None
    location: Optional[str] = None
    phone: Optional[str] = None
    instagram: Optional[str] = None
    profile_visibility: Optional[str] = None


class UsernameBody(BaseModel):
    username: str


class VisibilityBody(BaseModel):
    profile_visibility: str


@router.post("/", status_code=201)
async def create_profile(body: CreateProfileBody, state: AppState = Depends(get_state)):
    profile = await state.profiles.create(
        body.id, body.email, full_name=body.full_name, user_type=body.user_type
    )
    return asdict(profile)


@router.get("/public/{identifier}")
async def get_public_profile(identifier: str, state: AppState = Depends(get_state)):
    """Share-safe profile by username or slug."""
    profile = await state.profiles.get_public_profile(identifier)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return asdict(profile)


@router.get("/{profile_id}")
async def get_profile(profile_id: str, state: AppState = Depends(get_state)):
    profile = await state.profiles.get(profile_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return asdict(profile)


@router.patch("/{profile_id}")
async def update_profile(
    profile_id: str,
    body: UpdateProfileBody,
    state: AppState = Depends(get_state),
):
    profile = await state.profiles.update(profile_id, **body.model_dump(exclude_unset=True))
    return asdict(profile)


@router.put("/{profile_id}/username")
async def update_username(
    profile_id: str,
    body: UsernameBody,
    state: AppState = Depends(get_state),
):
    profile = await state.allocator.update_handle(profile_id, body.username)
    return asdict(profile)


@router.get("/{profile_id}/username/available")
async def username_available(
    profile_id: str,
    username: str,
    state: AppState = Depends(get_state),
):
    """Live check while the user types: format first, then uniqueness excluding the profile itself."""
    normalized = normalize_handle(username)
    check = validate_handle(normalized)
    if not check.valid:
        return {"username": normalized, "available": False, "reason": check.reason}
    available = await state.allocator.is_username_available(normalized, exclude_id=profile_id)
    return {"username": normalized, "available": available, "reason": None if available else "username-taken"}


@router.put("/{profile_id}/visibility")
async def update_visibility(
    profile_id: str,
    body: VisibilityBody,
    state: AppState = Depends(get_state),
):
    profile = await state.profiles.set_visibility(profile_id, body.profile_visibility)
    return asdict(profile)


@router.post("/{profile_id}/slug")
async def ensure_slug(profile_id: str, state: AppState = Depends(get_state)):
    """Return the profile's slug and share URL, allocating the slug on first use."""
    profile = await state.profiles.get(profile_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    slug = await state.allocator.ensure_slug(profile)
    return {"slug": slug, "share_url": profile_share_url(slug)}


@router.get("/{profile_id}/statistics")
async def get_statistics(profile_id: str, state: AppState = Depends(get_state)):
    if await state.profiles.get(profile_id) is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return asdict(await state.profiles.statistics(profile_id))

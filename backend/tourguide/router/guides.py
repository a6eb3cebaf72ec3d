"""
Guide Router
Guide directory and nearby searches for guides and places
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from tourguide.core.config import NEARBY_DEFAULT_RADIUS_KM
from tourguide.core.errors import NotFoundError
from tourguide.db.storage import Storage, get_storage
from tourguide.models.place import Place
from tourguide.models.user import GuideOut, User
from tourguide.services.auth import sanitize_user
from tourguide.services.geo import within_radius

router = APIRouter(prefix="/api", tags=["Guides"])


async def _guide_out(storage: Storage, user: User) -> GuideOut:
    profile = await storage.get_guide_profile(user.id)
    return GuideOut(**sanitize_user(user).model_dump(), guide_profile=profile)


@router.get("/guides", response_model=list[GuideOut])
async def list_guides(storage: Storage = Depends(get_storage)):
    guides = await storage.list_users("guide")
    return [await _guide_out(storage, g) for g in guides]


@router.get("/guides/{user_id}", response_model=GuideOut)
async def get_guide(user_id: str, storage: Storage = Depends(get_storage)):
    user = await storage.get_user(user_id)
    if user is None or user.user_type != "guide":
        raise NotFoundError("Guide not found")
    return await _guide_out(storage, user)


@router.get("/nearby/guides", response_model=list[GuideOut])
async def nearby_guides(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    radius: float = Query(NEARBY_DEFAULT_RADIUS_KM, gt=0, description="Radius in km"),
    storage: Storage = Depends(get_storage),
):
    """Guides whose last reported location is inside the radius, nearest first."""
    guides = await storage.list_users("guide")
    nearby = within_radius(
        guides, latitude, longitude, radius, "current_latitude", "current_longitude"
    )
    return [await _guide_out(storage, g) for g in nearby]


@router.get("/nearby/places", response_model=list[Place])
async def nearby_places(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    radius: float = Query(NEARBY_DEFAULT_RADIUS_KM, gt=0, description="Radius in km"),
    category: Optional[str] = Query(None),
    storage: Storage = Depends(get_storage),
):
    places = await storage.list_places(category)
    return within_radius(places, latitude, longitude, radius, "latitude", "longitude")

"""
User Router
User lookup, live location updates and per-user listings
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from tourguide.core.errors import NotFoundError
from tourguide.db.storage import Storage, get_storage
from tourguide.models.booking import Booking, BookingType
from tourguide.models.connection import ConnectionDetail
from tourguide.models.itinerary import Itinerary
from tourguide.models.saved_place import SavedPlaceDetail
from tourguide.models.user import LocationUpdate, UserOut
from tourguide.router.connections import connection_detail
from tourguide.services.auth import sanitize_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Users"])


@router.get("/users/{user_id}", response_model=UserOut)
async def get_user(user_id: str, storage: Storage = Depends(get_storage)):
    user = await storage.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return sanitize_user(user)


@router.post("/user/location", response_model=UserOut)
async def update_location(body: LocationUpdate, storage: Storage = Depends(get_storage)):
    user = await storage.update_user_location(body.user_id, body.latitude, body.longitude)
    if user is None:
        raise NotFoundError("User not found")
    logger.debug(f"[users] Location of {user.username} set to ({body.latitude}, {body.longitude})")
    return sanitize_user(user)


@router.get("/users/{user_id}/itineraries", response_model=list[Itinerary])
async def list_user_itineraries(user_id: str, storage: Storage = Depends(get_storage)):
    return await storage.list_itineraries(user_id)


@router.get("/users/{user_id}/bookings", response_model=list[Booking])
async def list_user_bookings(
    user_id: str,
    type: Optional[BookingType] = Query(None, description="hotel | transport"),
    storage: Storage = Depends(get_storage),
):
    return await storage.list_bookings(user_id, type)


@router.get("/users/{user_id}/connections", response_model=list[ConnectionDetail])
async def list_user_connections(user_id: str, storage: Storage = Depends(get_storage)):
    connections = await storage.list_connections(user_id)
    return [await connection_detail(storage, c) for c in connections]


@router.get("/users/{user_id}/saved-places", response_model=list[SavedPlaceDetail])
async def list_user_saved_places(user_id: str, storage: Storage = Depends(get_storage)):
    saved = await storage.list_saved_places(user_id)
    details = []
    for item in saved:
        place = await storage.get_place(item.place_id)
        details.append(SavedPlaceDetail(**item.model_dump(), place=place))
    return details

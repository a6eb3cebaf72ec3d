"""
Itinerary Router
Create itineraries and manage their ordered stops
"""

import logging

from fastapi import APIRouter, Depends

from tourguide.core.errors import NotFoundError
from tourguide.db.storage import Storage, get_storage
from tourguide.models.itinerary import (
    Itinerary,
    ItineraryCreate,
    ItineraryStop,
    ItineraryStopDetail,
    ordered_stops,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/itineraries", tags=["Itineraries"])


async def _require_itinerary(storage: Storage, itinerary_id: str) -> Itinerary:
    itinerary = await storage.get_itinerary(itinerary_id)
    if itinerary is None:
        raise NotFoundError("Itinerary not found")
    return itinerary


@router.post("", status_code=201, response_model=Itinerary)
async def create_itinerary(body: ItineraryCreate, storage: Storage = Depends(get_storage)):
    if await storage.get_user(body.user_id) is None:
        raise NotFoundError("User not found")
    itinerary = await storage.create_itinerary(body)
    logger.info(f"[itineraries] Created '{itinerary.title}' for user {itinerary.user_id}")
    return itinerary


@router.get("/{itinerary_id}", response_model=Itinerary)
async def get_itinerary(itinerary_id: str, storage: Storage = Depends(get_storage)):
    itinerary = await _require_itinerary(storage, itinerary_id)
    return itinerary.model_copy(update={"places": ordered_stops(itinerary.places)})


@router.get("/{itinerary_id}/places", response_model=list[ItineraryStopDetail])
async def list_itinerary_places(itinerary_id: str, storage: Storage = Depends(get_storage)):
    """Stops ordered by day then order, each with its place document."""
    itinerary = await _require_itinerary(storage, itinerary_id)
    stops = []
    for stop in ordered_stops(itinerary.places):
        place = await storage.get_place(stop.place_id)
        stops.append(ItineraryStopDetail(**stop.model_dump(), place=place))
    return stops


@router.post("/{itinerary_id}/places", status_code=201, response_model=Itinerary)
async def add_itinerary_place(
    itinerary_id: str,
    body: ItineraryStop,
    storage: Storage = Depends(get_storage),
):
    await _require_itinerary(storage, itinerary_id)
    if await storage.get_place(body.place_id) is None:
        raise NotFoundError("Place not found")

    itinerary = await storage.add_itinerary_stop(itinerary_id, body)
    if itinerary is None:
        raise NotFoundError("Itinerary not found")
    return itinerary.model_copy(update={"places": ordered_stops(itinerary.places)})

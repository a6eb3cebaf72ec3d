"""
Place Router
Place CRUD, Wikimedia image lookups and batch enrichment
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from tourguide.core.errors import EnrichmentLookupError, NotFoundError
from tourguide.db.storage import Storage, get_storage
from tourguide.models.place import (
    EnrichRequest,
    Place,
    PlaceCreate,
    PlaceWikimedia,
    WikimediaImageInfo,
)
from tourguide.services.enrichment import EnrichmentCache, EnrichmentOptions, enrich_places
from tourguide.services.wikimedia import WikimediaClient, get_wikimedia_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Places"])


def get_enrichment_cache(request: Request) -> EnrichmentCache:
    """The application-wide cache created at startup."""
    cache = getattr(request.app.state, "enrichment_cache", None)
    if cache is None:
        cache = EnrichmentCache()
        request.app.state.enrichment_cache = cache
    return cache


@router.get("/places", response_model=list[Place])
async def list_places(
    category: Optional[str] = Query(None, description="Filter by category"),
    storage: Storage = Depends(get_storage),
):
    return await storage.list_places(category)


@router.post("/places", status_code=201, response_model=Place)
async def create_place(body: PlaceCreate, storage: Storage = Depends(get_storage)):
    place = await storage.create_place(body)
    logger.info(f"[places] Created {place.category} '{place.name}' ({place.id})")
    return place


@router.post("/places/enrich")
async def enrich_stored_places(
    body: Optional[EnrichRequest] = None,
    storage: Storage = Depends(get_storage),
    client: WikimediaClient = Depends(get_wikimedia_client),
    cache: EnrichmentCache = Depends(get_enrichment_cache),
):
    """
    Attach Wikimedia images to stored attractions, monuments, heritage sites
    and landmarks that have none yet.

    Re-running with the same set of places returns the previous result.
    """
    body = body or EnrichRequest()
    places = await storage.list_places(body.category)

    options = EnrichmentOptions()
    if body.persist is not None:
        options.persist = body.persist

    result = await enrich_places(places, client, cache, options=options, storage=storage)
    return {
        "places": result.places,
        "updated_count": result.updated_count,
        "updated_ids": result.updated_ids,
        "failed_ids": result.failed_ids,
        "persisted_ids": result.persisted_ids,
        "from_cache": result.from_cache,
        "completed": result.completed,
    }


@router.get("/places/{place_id}", response_model=Place)
async def get_place(place_id: str, storage: Storage = Depends(get_storage)):
    place = await storage.get_place(place_id)
    if place is None:
        raise NotFoundError("Place not found")
    return place


@router.post("/places/{place_id}/wikimedia", response_model=Place)
async def update_place_wikimedia(
    place_id: str,
    body: PlaceWikimedia,
    storage: Storage = Depends(get_storage),
):
    info = WikimediaImageInfo(
        thumbnail_url=body.wikimedia_thumbnail_url,
        description_html=body.wikimedia_description,
        artist_name=body.wikimedia_artist,
        attribution_url=body.wikimedia_attribution_url,
        license_name=body.wikimedia_license,
        license_url=body.wikimedia_license_url,
    )
    place = await storage.update_place_wikimedia(place_id, info)
    if place is None:
        raise NotFoundError("Place not found")
    return place


@router.get("/wikimedia/images", response_model=list[WikimediaImageInfo])
async def search_wikimedia_images(
    q: str = Query(..., min_length=1, description="Search term"),
    limit: int = Query(5, ge=1, le=20),
    client: WikimediaClient = Depends(get_wikimedia_client),
):
    try:
        return await client.fetch_images(q, limit=limit)
    except EnrichmentLookupError as e:
        logger.warning(f"[wikimedia] Image search failed for '{q}': {e}")
        return []

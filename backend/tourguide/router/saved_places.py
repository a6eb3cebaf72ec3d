from fastapi import APIRouter, Depends, Response

from tourguide.core.errors import NotFoundError
from tourguide.db.storage import Storage, get_storage
from tourguide.models.saved_place import SavedPlace, SavedPlaceCreate

router = APIRouter(prefix="/api/saved-places", tags=["Saved places"])


@router.post("", status_code=201, response_model=SavedPlace)
async def save_place(body: SavedPlaceCreate, storage: Storage = Depends(get_storage)):
    if await storage.get_user(body.user_id) is None:
        raise NotFoundError("User not found")
    if await storage.get_place(body.place_id) is None:
        raise NotFoundError("Place not found")
    return await storage.create_saved_place(body)


@router.delete("/{saved_place_id}", status_code=204)
async def unsave_place(saved_place_id: str, storage: Storage = Depends(get_storage)):
    if not await storage.delete_saved_place(saved_place_id):
        raise NotFoundError("Saved place not found")
    return Response(status_code=204)

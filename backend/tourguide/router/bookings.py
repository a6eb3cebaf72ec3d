from fastapi import APIRouter, Depends

from tourguide.core.errors import NotFoundError
from tourguide.db.storage import Storage, get_storage
from tourguide.models.booking import Booking, BookingCreate, BookingStatusUpdate

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


@router.post("", status_code=201, response_model=Booking)
async def create_booking(body: BookingCreate, storage: Storage = Depends(get_storage)):
    if await storage.get_user(body.user_id) is None:
        raise NotFoundError("User not found")
    return await storage.create_booking(body)


@router.get("/{booking_id}", response_model=Booking)
async def get_booking(booking_id: str, storage: Storage = Depends(get_storage)):
    booking = await storage.get_booking(booking_id)
    if booking is None:
        raise NotFoundError("Booking not found")
    return booking


@router.patch("/{booking_id}", response_model=Booking)
async def update_booking_status(
    booking_id: str,
    body: BookingStatusUpdate,
    storage: Storage = Depends(get_storage),
):
    booking = await storage.update_booking(booking_id, {"status": body.status})
    if booking is None:
        raise NotFoundError("Booking not found")
    return booking

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

from tourguide.models.itinerary import DATE_PATTERN

BookingType = Literal["hotel", "transport"]
BookingStatus = Literal["pending", "confirmed", "cancelled"]


class BookingCreate(BaseModel):
    user_id: str
    type: BookingType = Field(..., description="hotel | transport")
    from_location: str | None = Field(default=None, description="Origin (transport)")
    to_location: str | None = Field(default=None, description="Destination or hotel city")
    departure_date: str | None = Field(default=None, pattern=DATE_PATTERN)
    return_date: str | None = Field(default=None, pattern=DATE_PATTERN)
    passengers: int | None = Field(default=None, ge=1)
    room_count: int | None = Field(default=None, ge=1)
    booking_details: dict[str, Any] = Field(
        default_factory=dict, description="Vendor, train/bus number, hotel name, price, ..."
    )
    status: BookingStatus = "pending"


class Booking(BookingCreate):
    id: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class BookingStatusUpdate(BaseModel):
    status: BookingStatus

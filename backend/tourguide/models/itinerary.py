"""
Itinerary model for MongoDB persistence
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field, model_validator

from tourguide.models.place import Place

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class ItineraryStop(BaseModel):
    """
    Reference to a place within an itinerary, ordered by (day, order).
    """

    place_id: str = Field(..., description="Referenced place id")
    day: int | None = Field(default=None, ge=1, description="1-based day number")
    order: int | None = Field(default=None, ge=0, description="Position within the day")


class ItineraryStopDetail(ItineraryStop):
    place: Place | None = None


class ItineraryCreate(BaseModel):
    user_id: str = Field(..., description="Owning user id")
    title: str = Field(..., min_length=1)
    description: str | None = None
    start_date: str | None = Field(default=None, pattern=DATE_PATTERN, description="YYYY-MM-DD")
    end_date: str | None = Field(default=None, pattern=DATE_PATTERN, description="YYYY-MM-DD")
    trip_type: str | None = Field(default=None, description="solo, family, pilgrimage, trek, ...")
    places: list[ItineraryStop] = Field(default_factory=list)

    @model_validator(mode="after")
    def _dates_in_order(self):
        # ISO dates compare correctly as strings
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class Itinerary(ItineraryCreate):
    """
    Full itinerary document.
    """

    id: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Config:
        json_schema_extra = {
            "example": {
                "id": "65f1c0a2e4b0a1b2c3d4e5f9",
                "user_id": "65f1c0a2e4b0a1b2c3d4e5f6",
                "title": "Konkan coast weekend",
                "start_date": "2024-12-20",
                "end_date": "2024-12-22",
                "trip_type": "family",
                "places": [{"place_id": "65f1c0a2e4b0a1b2c3d4e5f8", "day": 1, "order": 0}],
            }
        }


def ordered_stops(stops: list[ItineraryStop]) -> list[ItineraryStop]:
    """Sort by day then order; stops without either keep insertion order at the end."""
    indexed = list(enumerate(stops))
    indexed.sort(
        key=lambda pair: (
            pair[1].day is None,
            pair[1].day or 0,
            pair[1].order is None,
            pair[1].order or 0,
            pair[0],
        )
    )
    return [stop for _, stop in indexed]

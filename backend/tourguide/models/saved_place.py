from datetime import datetime, timezone

from pydantic import BaseModel, Field

from tourguide.models.place import Place


class SavedPlaceCreate(BaseModel):
    user_id: str
    place_id: str


class SavedPlace(SavedPlaceCreate):
    id: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SavedPlaceDetail(SavedPlace):
    place: Place | None = None

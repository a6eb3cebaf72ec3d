"""
Place models and Wikimedia enrichment fields
"""

from pydantic import BaseModel, Field, model_validator

ENRICHABLE_CATEGORIES = frozenset({"attraction", "monument", "heritage", "landmark"})

WIKIMEDIA_FIELDS = (
    "wikimedia_thumbnail_url",
    "wikimedia_description",
    "wikimedia_artist",
    "wikimedia_attribution_url",
    "wikimedia_license",
    "wikimedia_license_url",
)


class WikimediaImageInfo(BaseModel):
    """Image metadata returned by a Wikimedia Commons lookup"""

    thumbnail_url: str
    description_html: str = ""
    artist_name: str = "Unknown"
    attribution_url: str = ""
    license_name: str = "Unknown license"
    license_url: str = ""

    def as_place_fields(self) -> dict[str, str]:
        return {
            "wikimedia_thumbnail_url": self.thumbnail_url,
            "wikimedia_description": self.description_html,
            "wikimedia_artist": self.artist_name,
            "wikimedia_attribution_url": self.attribution_url,
            "wikimedia_license": self.license_name,
            "wikimedia_license_url": self.license_url,
        }


class PlaceWikimedia(BaseModel):
    """Body of POST /api/places/{id}/wikimedia; all six fields travel together"""

    wikimedia_thumbnail_url: str = Field(..., min_length=1)
    wikimedia_description: str = ""
    wikimedia_artist: str = "Unknown"
    wikimedia_attribution_url: str = ""
    wikimedia_license: str = "Unknown license"
    wikimedia_license_url: str = ""


class PlaceCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str | None = None
    location: str = Field(..., min_length=1, description="City or district")
    category: str = Field(..., min_length=1, description="attraction, monument, hotel, restaurant, ...")
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    image_url: str | None = None

    wikimedia_thumbnail_url: str | None = None
    wikimedia_description: str | None = None
    wikimedia_artist: str | None = None
    wikimedia_attribution_url: str | None = None
    wikimedia_license: str | None = None
    wikimedia_license_url: str | None = None

    @model_validator(mode="after")
    def _wikimedia_all_or_nothing(self):
        present = [getattr(self, name) is not None for name in WIKIMEDIA_FIELDS]
        if any(present) and not all(present):
            raise ValueError("Wikimedia fields must be set together")
        return self


class Place(PlaceCreate):
    id: str | None = None

    @property
    def has_wikimedia(self) -> bool:
        return bool(self.wikimedia_thumbnail_url)

    @property
    def is_enrichable(self) -> bool:
        return self.category in ENRICHABLE_CATEGORIES and not self.has_wikimedia

    class Config:
        json_schema_extra = {
            "example": {
                "id": "65f1c0a2e4b0a1b2c3d4e5f8",
                "name": "Gateway of India",
                "description": "Arch monument built in the early 20th century",
                "location": "Mumbai",
                "category": "monument",
                "latitude": 18.922,
                "longitude": 72.8347,
                "image_url": None,
            }
        }


class EnrichRequest(BaseModel):
    category: str | None = Field(None, description="Only enrich stored places of this category")
    persist: bool | None = Field(None, description="Write results back; defaults to ENRICHMENT_PERSIST")

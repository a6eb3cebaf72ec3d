"""
Guide profile models
"""

from pydantic import BaseModel, Field


class GuideProfileInput(BaseModel):
    location: str = Field(..., min_length=1, description="Base city or region")
    experience: int = Field(default=0, ge=0, description="Years of guiding experience")
    languages: list[str] = Field(default_factory=list)
    specialties: list[str] = Field(default_factory=list)
    rating: float | None = Field(default=None, ge=0, le=5)
    bio: str | None = None


class GuideProfileCreate(GuideProfileInput):
    user_id: str = Field(..., description="Owning guide user id")


class GuideProfile(GuideProfileCreate):
    id: str | None = None

    class Config:
        json_schema_extra = {
            "example": {
                "id": "65f1c0a2e4b0a1b2c3d4e5f7",
                "user_id": "65f1c0a2e4b0a1b2c3d4e5f6",
                "location": "Pune",
                "experience": 6,
                "languages": ["Marathi", "Hindi", "English"],
                "specialties": ["Forts", "Heritage walks"],
                "rating": 4.7,
                "bio": "Trekker and history buff covering the Sahyadri forts.",
            }
        }

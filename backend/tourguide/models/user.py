"""
User models for MongoDB storage
"""

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

from tourguide.models.guide import GuideProfile, GuideProfileInput

UserType = Literal["tourist", "guide"]


class UserBase(BaseModel):
    username: str = Field(..., min_length=1, description="Unique login name")
    email: str = Field(..., min_length=3, description="Unique email address")
    full_name: str = Field(..., min_length=1, description="Display name")
    user_type: UserType = Field(..., description="tourist | guide")
    phone: str | None = Field(None, description="Contact number")


class UserCreate(UserBase):
    # Stored as plaintext; see DESIGN.md (known defect carried over)
    password: str = Field(..., min_length=1)
    is_test_account: bool = Field(default=False, description="Marks seeded/test users for cleanup")


class User(UserCreate):
    """
    User document as stored in the users collection
    """

    id: str | None = None
    current_latitude: float | None = None
    current_longitude: float | None = None
    last_location_update: datetime | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class UserOut(UserBase):
    """
    User as returned to clients; the password is projected away
    """

    id: str | None = None
    is_test_account: bool = False
    current_latitude: float | None = None
    current_longitude: float | None = None
    last_location_update: datetime | None = None
    created_at: datetime | None = None

    class Config:
        json_schema_extra = {
            "example": {
                "id": "65f1c0a2e4b0a1b2c3d4e5f6",
                "username": "guide",
                "email": "guide@example.com",
                "full_name": "Rahul Patil",
                "user_type": "guide",
                "phone": "+91 98200 00000",
                "is_test_account": False,
                "created_at": "2024-01-01T00:00:00",
            }
        }


class GuideOut(UserOut):
    guide_profile: GuideProfile | None = None


class RegisterRequest(UserBase):
    """
    Public sign-up body. is_test_account is not accepted here; only operators
    set it (see tourguide.scripts.maintenance).
    """

    password: str = Field(..., min_length=1)
    guide_profile: GuideProfileInput | None = Field(
        None, description="Profile details, used when user_type is guide"
    )


class LoginRequest(BaseModel):
    username: str | None = None
    email: str | None = None
    password: str | None = None


class LocationUpdate(BaseModel):
    user_id: str
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

"""
Tourist/guide connection and messaging models
"""

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

from tourguide.models.guide import GuideProfile
from tourguide.models.user import UserOut

ConnectionStatus = Literal["pending", "accepted", "rejected"]


class ConnectionCreate(BaseModel):
    from_user_id: str = Field(..., description="Requesting user (usually the tourist)")
    to_user_id: str = Field(..., description="Receiving user (usually the guide)")
    status: ConnectionStatus = "pending"
    message: str | None = Field(default=None, description="Introductory message")
    trip_details: str | dict[str, Any] | None = Field(default=None, description="Dates, group size, interests")
    budget: float | None = Field(default=None, ge=0)


class Connection(ConnectionCreate):
    id: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def involves(self, user_id: str) -> bool:
        return user_id in (self.from_user_id, self.to_user_id)

    def other_party(self, user_id: str) -> str:
        return self.to_user_id if user_id == self.from_user_id else self.from_user_id


class ConnectionDetail(Connection):
    from_user: UserOut | None = None
    to_user: UserOut | None = None
    guide_profile: GuideProfile | None = None


class ConnectionStatusUpdate(BaseModel):
    status: ConnectionStatus


class MessageCreate(BaseModel):
    sender_id: str
    content: str = Field(..., min_length=1, max_length=4000)


class Message(BaseModel):
    id: str | None = None
    connection_id: str
    sender_id: str
    recipient_id: str
    content: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

"""
Models package for database schemas
"""

from tourguide.models.booking import Booking
from tourguide.models.connection import Connection, Message
from tourguide.models.guide import GuideProfile
from tourguide.models.itinerary import Itinerary
from tourguide.models.place import Place
from tourguide.models.saved_place import SavedPlace
from tourguide.models.user import User

__all__ = [
    "User",
    "GuideProfile",
    "Place",
    "Itinerary",
    "Booking",
    "Connection",
    "Message",
    "SavedPlace",
]

"""
Persistence gateway over the MongoDB collections.

`Storage` is the interface routers and services depend on; `MongoStorage`
implements it with motor. Documents are returned as pydantic models with the
ObjectId exposed as a string `id`. Nothing here spans multiple writes in a
transaction: a guide profile created after its user is an independent insert.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, TypeVar

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from tourguide.core.errors import StorageError, ValidationError
from tourguide.db import database
from tourguide.models.booking import Booking, BookingCreate
from tourguide.models.connection import Connection, ConnectionCreate, ConnectionStatus, Message
from tourguide.models.guide import GuideProfile, GuideProfileCreate
from tourguide.models.itinerary import Itinerary, ItineraryCreate, ItineraryStop
from tourguide.models.place import WIKIMEDIA_FIELDS, Place, PlaceCreate, WikimediaImageInfo
from tourguide.models.saved_place import SavedPlace, SavedPlaceCreate
from tourguide.models.user import User, UserCreate

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def to_object_id(value: str, label: str = "ID") -> ObjectId:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise ValidationError(f"Invalid {label}")


def from_document(model: type[ModelT], doc: dict | None) -> ModelT | None:
    if not doc:
        return None
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    return model.model_validate(doc)


class Storage(ABC):
    """Async CRUD surface for every entity the API serves."""

    # Users
    @abstractmethod
    async def get_user(self, user_id: str) -> User | None: ...

    @abstractmethod
    async def get_user_by_username(self, username: str) -> User | None: ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> User | None: ...

    @abstractmethod
    async def list_users(self, user_type: str | None = None) -> list[User]: ...

    @abstractmethod
    async def create_user(self, user: UserCreate) -> User: ...

    @abstractmethod
    async def update_user(self, user_id: str, fields: dict[str, Any]) -> User | None: ...

    @abstractmethod
    async def delete_user(self, user_id: str) -> bool: ...

    async def update_user_location(self, user_id: str, latitude: float, longitude: float) -> User | None:
        return await self.update_user(
            user_id,
            {
                "current_latitude": latitude,
                "current_longitude": longitude,
                "last_location_update": datetime.now(timezone.utc),
            },
        )

    # Guide profiles
    @abstractmethod
    async def get_guide_profile(self, user_id: str) -> GuideProfile | None: ...

    @abstractmethod
    async def list_guide_profiles(self) -> list[GuideProfile]: ...

    @abstractmethod
    async def create_guide_profile(self, profile: GuideProfileCreate) -> GuideProfile: ...

    @abstractmethod
    async def update_guide_profile(self, profile_id: str, fields: dict[str, Any]) -> GuideProfile | None: ...

    @abstractmethod
    async def delete_guide_profile_for_user(self, user_id: str) -> int: ...

    # Places
    @abstractmethod
    async def get_place(self, place_id: str) -> Place | None: ...

    @abstractmethod
    async def list_places(self, category: str | None = None) -> list[Place]: ...

    @abstractmethod
    async def create_place(self, place: PlaceCreate) -> Place: ...

    @abstractmethod
    async def update_place(self, place_id: str, fields: dict[str, Any]) -> Place | None: ...

    async def update_place_wikimedia(self, place_id: str, info: WikimediaImageInfo) -> Place | None:
        """Write the six wikimedia fields in one update so they never diverge."""
        return await self.update_place(place_id, info.as_place_fields())

    # Itineraries
    @abstractmethod
    async def get_itinerary(self, itinerary_id: str) -> Itinerary | None: ...

    @abstractmethod
    async def list_itineraries(self, user_id: str) -> list[Itinerary]: ...

    @abstractmethod
    async def create_itinerary(self, itinerary: ItineraryCreate) -> Itinerary: ...

    @abstractmethod
    async def update_itinerary(self, itinerary_id: str, fields: dict[str, Any]) -> Itinerary | None: ...

    @abstractmethod
    async def add_itinerary_stop(self, itinerary_id: str, stop: ItineraryStop) -> Itinerary | None: ...

    # Bookings
    @abstractmethod
    async def get_booking(self, booking_id: str) -> Booking | None: ...

    @abstractmethod
    async def list_bookings(self, user_id: str, booking_type: str | None = None) -> list[Booking]: ...

    @abstractmethod
    async def create_booking(self, booking: BookingCreate) -> Booking: ...

    @abstractmethod
    async def update_booking(self, booking_id: str, fields: dict[str, Any]) -> Booking | None: ...

    # Connections
    @abstractmethod
    async def get_connection(self, connection_id: str) -> Connection | None: ...

    @abstractmethod
    async def list_connections(self, user_id: str) -> list[Connection]: ...

    @abstractmethod
    async def create_connection(self, connection: ConnectionCreate) -> Connection: ...

    @abstractmethod
    async def update_connection_status(self, connection_id: str, status: ConnectionStatus) -> Connection | None: ...

    @abstractmethod
    async def delete_connections_for_user(self, user_id: str) -> int: ...

    # Saved places
    @abstractmethod
    async def get_saved_place(self, saved_place_id: str) -> SavedPlace | None: ...

    @abstractmethod
    async def list_saved_places(self, user_id: str) -> list[SavedPlace]: ...

    @abstractmethod
    async def create_saved_place(self, saved_place: SavedPlaceCreate) -> SavedPlace: ...

    @abstractmethod
    async def delete_saved_place(self, saved_place_id: str) -> bool: ...

    # Messages
    @abstractmethod
    async def list_messages(self, connection_id: str) -> list[Message]: ...

    @abstractmethod
    async def create_message(self, message: Message) -> Message: ...


class MongoStorage(Storage):
    def __init__(self, db):
        self.db = db

    # ---- generic helpers ----

    async def _find_one(self, collection: str, model: type[ModelT], query: dict) -> ModelT | None:
        try:
            doc = await self.db[collection].find_one(query)
        except PyMongoError as e:
            raise StorageError(f"{collection} lookup failed: {e}") from e
        return from_document(model, doc)

    async def _get(self, collection: str, model: type[ModelT], doc_id: str, label: str) -> ModelT | None:
        return await self._find_one(collection, model, {"_id": to_object_id(doc_id, label)})

    async def _list(self, collection: str, model: type[ModelT], query: dict) -> list[ModelT]:
        try:
            docs = await self.db[collection].find(query).to_list(length=None)
        except PyMongoError as e:
            raise StorageError(f"{collection} query failed: {e}") from e
        return [from_document(model, doc) for doc in docs]

    async def _insert(self, collection: str, model: type[ModelT], data: dict) -> ModelT:
        data.pop("id", None)
        try:
            result = await self.db[collection].insert_one(data)
        except DuplicateKeyError as e:
            raise ValidationError(f"Duplicate {collection} record") from e
        except PyMongoError as e:
            raise StorageError(f"{collection} insert failed: {e}") from e
        if not result.inserted_id:
            raise StorageError(f"Failed to create {collection} record - no inserted_id returned")
        data["_id"] = result.inserted_id
        logger.debug(f"[storage] Inserted {collection} {result.inserted_id}")
        return from_document(model, data)

    async def _update(
        self, collection: str, model: type[ModelT], doc_id: str, update: dict, label: str
    ) -> ModelT | None:
        try:
            doc = await self.db[collection].find_one_and_update(
                {"_id": to_object_id(doc_id, label)},
                update,
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            raise StorageError(f"{collection} update failed: {e}") from e
        return from_document(model, doc)

    async def _set(self, collection: str, model: type[ModelT], doc_id: str, fields: dict, label: str):
        fields = {k: v for k, v in fields.items() if k not in ("id", "_id")}
        if not fields:
            return await self._get(collection, model, doc_id, label)
        return await self._update(collection, model, doc_id, {"$set": fields}, label)

    async def _delete_one(self, collection: str, query: dict) -> bool:
        try:
            result = await self.db[collection].delete_one(query)
        except PyMongoError as e:
            raise StorageError(f"{collection} delete failed: {e}") from e
        return result.deleted_count == 1

    async def _delete_many(self, collection: str, query: dict) -> int:
        try:
            result = await self.db[collection].delete_many(query)
        except PyMongoError as e:
            raise StorageError(f"{collection} delete failed: {e}") from e
        return result.deleted_count

    # ---- users ----

    async def get_user(self, user_id):
        return await self._get(database.USERS, User, user_id, "user ID")

    async def get_user_by_username(self, username):
        return await self._find_one(database.USERS, User, {"username": username})

    async def get_user_by_email(self, email):
        return await self._find_one(database.USERS, User, {"email": email})

    async def list_users(self, user_type=None):
        query = {"user_type": user_type} if user_type else {}
        return await self._list(database.USERS, User, query)

    async def create_user(self, user):
        doc = User(**user.model_dump()).model_dump()
        return await self._insert(database.USERS, User, doc)

    async def update_user(self, user_id, fields):
        return await self._set(database.USERS, User, user_id, fields, "user ID")

    async def delete_user(self, user_id):
        return await self._delete_one(database.USERS, {"_id": to_object_id(user_id, "user ID")})

    # ---- guide profiles ----

    async def get_guide_profile(self, user_id):
        return await self._find_one(database.GUIDE_PROFILES, GuideProfile, {"user_id": user_id})

    async def list_guide_profiles(self):
        return await self._list(database.GUIDE_PROFILES, GuideProfile, {})

    async def create_guide_profile(self, profile):
        return await self._insert(database.GUIDE_PROFILES, GuideProfile, profile.model_dump())

    async def update_guide_profile(self, profile_id, fields):
        return await self._set(database.GUIDE_PROFILES, GuideProfile, profile_id, fields, "guide profile ID")

    async def delete_guide_profile_for_user(self, user_id):
        return await self._delete_many(database.GUIDE_PROFILES, {"user_id": user_id})

    # ---- places ----

    async def get_place(self, place_id):
        return await self._get(database.PLACES, Place, place_id, "place ID")

    async def list_places(self, category=None):
        query = {"category": category} if category else {}
        return await self._list(database.PLACES, Place, query)

    async def create_place(self, place):
        return await self._insert(database.PLACES, Place, place.model_dump())

    async def update_place(self, place_id, fields):
        touched = [name for name in WIKIMEDIA_FIELDS if name in fields]
        if touched and len(touched) != len(WIKIMEDIA_FIELDS):
            raise ValidationError("Wikimedia fields must be updated together")
        return await self._set(database.PLACES, Place, place_id, fields, "place ID")

    # ---- itineraries ----

    async def get_itinerary(self, itinerary_id):
        return await self._get(database.ITINERARIES, Itinerary, itinerary_id, "itinerary ID")

    async def list_itineraries(self, user_id):
        return await self._list(database.ITINERARIES, Itinerary, {"user_id": user_id})

    async def create_itinerary(self, itinerary):
        doc = Itinerary(**itinerary.model_dump()).model_dump()
        return await self._insert(database.ITINERARIES, Itinerary, doc)

    async def update_itinerary(self, itinerary_id, fields):
        return await self._set(database.ITINERARIES, Itinerary, itinerary_id, fields, "itinerary ID")

    async def add_itinerary_stop(self, itinerary_id, stop):
        return await self._update(
            database.ITINERARIES,
            Itinerary,
            itinerary_id,
            {"$push": {"places": stop.model_dump()}},
            "itinerary ID",
        )

    # ---- bookings ----

    async def get_booking(self, booking_id):
        return await self._get(database.BOOKINGS, Booking, booking_id, "booking ID")

    async def list_bookings(self, user_id, booking_type=None):
        query: dict[str, Any] = {"user_id": user_id}
        if booking_type:
            query["type"] = booking_type
        return await self._list(database.BOOKINGS, Booking, query)

    async def create_booking(self, booking):
        doc = Booking(**booking.model_dump()).model_dump()
        return await self._insert(database.BOOKINGS, Booking, doc)

    async def update_booking(self, booking_id, fields):
        return await self._set(database.BOOKINGS, Booking, booking_id, fields, "booking ID")

    # ---- connections ----

    async def get_connection(self, connection_id):
        return await self._get(database.CONNECTIONS, Connection, connection_id, "connection ID")

    async def list_connections(self, user_id):
        query = {"$or": [{"from_user_id": user_id}, {"to_user_id": user_id}]}
        connections = await self._list(database.CONNECTIONS, Connection, query)
        logger.debug(f"[storage] Found {len(connections)} connections for user {user_id}")
        return connections

    async def create_connection(self, connection):
        doc = Connection(**connection.model_dump()).model_dump()
        return await self._insert(database.CONNECTIONS, Connection, doc)

    async def update_connection_status(self, connection_id, status):
        return await self._set(
            database.CONNECTIONS,
            Connection,
            connection_id,
            {"status": status, "updated_at": datetime.now(timezone.utc)},
            "connection ID",
        )

    async def delete_connections_for_user(self, user_id):
        query = {"$or": [{"from_user_id": user_id}, {"to_user_id": user_id}]}
        return await self._delete_many(database.CONNECTIONS, query)

    # ---- saved places ----

    async def get_saved_place(self, saved_place_id):
        return await self._get(database.SAVED_PLACES, SavedPlace, saved_place_id, "saved place ID")

    async def list_saved_places(self, user_id):
        return await self._list(database.SAVED_PLACES, SavedPlace, {"user_id": user_id})

    async def create_saved_place(self, saved_place):
        doc = SavedPlace(**saved_place.model_dump()).model_dump()
        return await self._insert(database.SAVED_PLACES, SavedPlace, doc)

    async def delete_saved_place(self, saved_place_id):
        query = {"_id": to_object_id(saved_place_id, "saved place ID")}
        return await self._delete_one(database.SAVED_PLACES, query)

    # ---- messages ----

    async def list_messages(self, connection_id):
        messages = await self._list(database.MESSAGES, Message, {"connection_id": connection_id})
        return sorted(messages, key=lambda m: m.created_at)

    async def create_message(self, message):
        return await self._insert(database.MESSAGES, Message, message.model_dump())


def get_storage() -> Storage:
    """FastAPI dependency; overridden in tests."""
    return MongoStorage(database.get_database())

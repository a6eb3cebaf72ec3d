"""
MongoDB Database Configuration and Connection
"""

import logging

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError
from pymongo.server_api import ServerApi

from tourguide.core.config import DATABASE_NAME, MONGODB_URI
from tourguide.core.errors import StorageError

logger = logging.getLogger(__name__)

# Global database client
_client = None
_database = None

USERS = "users"
GUIDE_PROFILES = "guideProfiles"
PLACES = "places"
ITINERARIES = "itineraries"
BOOKINGS = "bookings"
CONNECTIONS = "connections"
SAVED_PLACES = "savedPlaces"
MESSAGES = "messages"


def get_database():
    """
    Get MongoDB database instance
    Creates a new connection if one doesn't exist
    """
    global _client, _database

    if _database is None:
        if not MONGODB_URI:
            raise StorageError("MONGODB_URI environment variable is not set")

        # Create MongoDB client with server API version
        _client = AsyncIOMotorClient(MONGODB_URI, server_api=ServerApi("1"), tz_aware=True)
        _database = _client[DATABASE_NAME]

        logger.info(f"✅ Connected to MongoDB database: {DATABASE_NAME}")

    return _database


async def init_indexes():
    """
    Initialize database indexes; username/email uniqueness is enforced here
    as well as on registration.
    """
    try:
        db = get_database()

        await db[USERS].create_index("username", unique=True)
        await db[USERS].create_index("email", unique=True)
        await db[USERS].create_index("user_type")

        await db[GUIDE_PROFILES].create_index("user_id", unique=True)
        await db[PLACES].create_index("category")
        await db[ITINERARIES].create_index("user_id")
        await db[BOOKINGS].create_index([("user_id", 1), ("type", 1)], name="user_type")
        await db[CONNECTIONS].create_index("from_user_id")
        await db[CONNECTIONS].create_index("to_user_id")
        await db[SAVED_PLACES].create_index([("user_id", 1), ("place_id", 1)], name="user_place")
        await db[MESSAGES].create_index([("connection_id", 1), ("created_at", 1)], name="connection_time")

        logger.info("✅ Database indexes created successfully")
    except (PyMongoError, StorageError) as e:
        logger.warning(f"⚠️  Index creation warning: {e}")


async def close_database_connection():
    """
    Close the MongoDB connection
    Call this when shutting down the application
    """
    global _client, _database

    if _client:
        _client.close()
        _client = None
        _database = None
        logger.info("🔌 Closed MongoDB connection")


async def test_connection():
    """
    Test the MongoDB connection
    """
    try:
        db = get_database()
        await db.command("ping")
        logger.info("✅ MongoDB connection successful!")
        return True
    except (PyMongoError, StorageError) as e:
        logger.error(f"❌ MongoDB connection failed: {e}")
        return False

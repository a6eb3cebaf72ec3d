from fastapi import APIRouter

from tourguide.core.config import APP_NAME, APP_VERSION
from tourguide.db.database import test_connection

router = APIRouter(prefix="/api", tags=["System"])


@router.get("/")
def root():
    return {
        "status": "healthy",
        "message": f"{APP_NAME} is running",
        "version": APP_VERSION,
        "endpoints": {
            "/api/auth/login": "Authentication endpoint",
            "/api/auth/register": "Create a tourist or guide account",
            "/api/places": "Places, wikimedia images and enrichment",
            "/api/guides": "Guide directory",
            "/api/connections": "Tourist/guide connections and messages",
        },
    }


@router.get("/health")
async def health_check():
    database_ok = await test_connection()
    return {
        "status": "healthy" if database_ok else "degraded",
        "service": "tourguide-server",
        "database": "connected" if database_ok else "unavailable",
    }

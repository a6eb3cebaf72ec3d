import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from tourguide.core.config import APP_NAME, APP_VERSION, CORS_ORIGINS, SERVER_HOST, SERVER_PORT
from tourguide.core.errors import register_exception_handlers
from tourguide.core.logger import configure_logging
from tourguide.db.database import close_database_connection, init_indexes, test_connection
from tourguide.router.auth import router as auth_router
from tourguide.router.bookings import router as bookings_router
from tourguide.router.chat import router as chat_router
from tourguide.router.connections import router as connections_router
from tourguide.router.guides import router as guides_router
from tourguide.router.itineraries import router as itineraries_router
from tourguide.router.places import router as places_router
from tourguide.router.saved_places import router as saved_places_router
from tourguide.router.system import router as system_router
from tourguide.router.users import router as users_router
from tourguide.services.enrichment import EnrichmentCache

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Test database connection
    logger.info(f"🚀 Starting up {APP_NAME}...")
    await test_connection()
    await init_indexes()
    yield
    # Shutdown: Close database connection
    logger.info(f"🛑 Shutting down {APP_NAME}...")
    await close_database_connection()


app = FastAPI(title=APP_NAME, version=APP_VERSION, lifespan=lifespan)
app.state.enrichment_cache = EnrichmentCache()

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def log_api_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    path = request.url.path
    if path.startswith("/api"):
        duration = int((time.time() - start) * 1000)
        logger.info(f"{request.method} {path} {response.status_code} in {duration}ms")
    return response


# Mount routers
app.include_router(system_router)
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(guides_router)
app.include_router(places_router)
app.include_router(itineraries_router)
app.include_router(bookings_router)
app.include_router(connections_router)
app.include_router(saved_places_router)
app.include_router(chat_router)

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=SERVER_HOST, port=SERVER_PORT)

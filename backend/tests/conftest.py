import asyncio
import copy
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import DuplicateKeyError, PyMongoError

# Allow importing from backend/tourguide
sys.path.insert(0, str(Path(__file__).parent.parent))

from tourguide.db.storage import MongoStorage, get_storage
from tourguide.main import app
from tourguide.models.guide import GuideProfileCreate
from tourguide.models.place import PlaceCreate, WikimediaImageInfo
from tourguide.models.user import UserCreate
from tourguide.services.enrichment import EnrichmentCache
from tourguide.services.wikimedia import get_wikimedia_client


# ---------------------------------------------------------------------------
# In-memory stand-in for the motor database
# ---------------------------------------------------------------------------


def _matches(doc: dict, query: dict) -> bool:
    for key, expected in query.items():
        if key == "$or":
            if not any(_matches(doc, sub) for sub in expected):
                return False
        elif doc.get(key) != expected:
            return False
    return True


class FakeCursor:
    def __init__(self, docs: list[dict]):
        self._docs = docs

    async def to_list(self, length=None):
        return self._docs if length is None else self._docs[:length]


class FakeCollection:
    """Implements the subset of the motor collection API the storage layer uses."""

    def __init__(self, name: str, unique: tuple[str, ...] = (), fail: bool = False):
        self.name = name
        self.docs: list[dict] = []
        self.unique = unique
        self.fail = fail

    def _check(self):
        if self.fail:
            raise PyMongoError(f"{self.name} unavailable")

    async def find_one(self, query):
        self._check()
        for doc in self.docs:
            if _matches(doc, query):
                return copy.deepcopy(doc)
        return None

    def find(self, query):
        self._check()
        return FakeCursor([copy.deepcopy(d) for d in self.docs if _matches(d, query)])

    async def insert_one(self, doc):
        self._check()
        for field in self.unique:
            if any(existing.get(field) == doc.get(field) for existing in self.docs):
                raise DuplicateKeyError(f"E11000 duplicate key error {self.name}.{field}")
        doc.setdefault("_id", ObjectId())
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    async def find_one_and_update(self, query, update, return_document=None):
        self._check()
        for doc in self.docs:
            if not _matches(doc, query):
                continue
            for key, value in update.get("$set", {}).items():
                doc[key] = copy.deepcopy(value)
            for key, value in update.get("$push", {}).items():
                doc.setdefault(key, []).append(copy.deepcopy(value))
            return copy.deepcopy(doc)
        return None

    async def delete_one(self, query):
        self._check()
        for i, doc in enumerate(self.docs):
            if _matches(doc, query):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    async def delete_many(self, query):
        self._check()
        before = len(self.docs)
        self.docs = [d for d in self.docs if not _matches(d, query)]
        return SimpleNamespace(deleted_count=before - len(self.docs))

    async def count_documents(self, query):
        self._check()
        return sum(1 for d in self.docs if _matches(d, query))


class FakeDatabase:
    UNIQUE = {"users": ("username", "email"), "guideProfiles": ("user_id",)}

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.collections: dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self.collections:
            self.collections[name] = FakeCollection(name, self.UNIQUE.get(name, ()), self.fail)
        return self.collections[name]

    async def command(self, name):
        if self.fail:
            raise PyMongoError("ping failed")
        return {"ok": 1}


# ---------------------------------------------------------------------------
# Wikimedia stand-in
# ---------------------------------------------------------------------------


def image_info(name: str) -> WikimediaImageInfo:
    return WikimediaImageInfo(
        thumbnail_url=f"https://upload.wikimedia.org/thumb/{name}.jpg",
        description_html=f"<p>{name}</p>",
        artist_name="Photographer",
        attribution_url=f"https://commons.wikimedia.org/wiki/File:{name}.jpg",
        license_name="CC BY-SA 4.0",
        license_url="https://creativecommons.org/licenses/by-sa/4.0",
    )


class FakeWikimediaClient:
    """
    Answers fetch_image from a dict of search-term substrings. A value may be
    a WikimediaImageInfo, None, or an exception instance to raise.
    """

    def __init__(self, responses: dict | None = None, delay: float = 0.0):
        self.responses = responses or {}
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def _answer(self, term: str):
        for key, value in self.responses.items():
            if key in term:
                return value
        return image_info(term.split(" ")[0])

    async def fetch_image(self, search_term):
        self.calls.append(search_term)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            answer = self._answer(search_term)
            if isinstance(answer, Exception):
                raise answer
            return answer
        finally:
            self.in_flight -= 1

    async def fetch_images(self, search_term, limit=5):
        self.calls.append(search_term)
        answer = self._answer(search_term)
        if isinstance(answer, Exception):
            raise answer
        return [answer] if answer else []


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def storage(fake_db):
    return MongoStorage(fake_db)


@pytest.fixture
def wikimedia():
    return FakeWikimediaClient()


@pytest.fixture
def client(storage, wikimedia):
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_wikimedia_client] = lambda: wikimedia
    app.state.enrichment_cache = EnrichmentCache()
    # No context manager: the lifespan (real MongoDB) is not started
    yield TestClient(app)
    app.dependency_overrides.clear()


def seed_user(storage, username: str, user_type: str = "tourist", **extra):
    data = {
        "username": username,
        "email": f"{username}@mail.in",
        "full_name": username.title(),
        "user_type": user_type,
        "password": "secret",
        **extra,
    }
    return asyncio.run(storage.create_user(UserCreate(**data)))


def seed_guide(storage, username: str, location: str = "Pune", **extra):
    user = seed_user(storage, username, "guide", **extra)
    asyncio.run(
        storage.create_guide_profile(
            GuideProfileCreate(user_id=user.id, location=location, experience=4, languages=["Marathi"])
        )
    )
    return user


def seed_place(storage, name: str, category: str = "monument", **extra):
    data = {"name": name, "location": "Mumbai", "category": category, **extra}
    return asyncio.run(storage.create_place(PlaceCreate(**data)))

import asyncio
import sys
from pathlib import Path

import httpx

# Allow importing from backend/tourguide
sys.path.insert(0, str(Path(__file__).parent.parent))

from conftest import image_info, seed_place
from tourguide.core.errors import EnrichmentLookupError
from tourguide.main import app
from tourguide.services.wikimedia import WikimediaClient, get_wikimedia_client


def test_create_and_list_places_by_category(client):
    for name, category in [("Raigad", "monument"), ("Taj Hotel", "hotel")]:
        response = client.post(
            "/api/places",
            json={"name": name, "location": "Mumbai", "category": category},
        )
        assert response.status_code == 201

    all_places = client.get("/api/places").json()
    monuments = client.get("/api/places", params={"category": "monument"}).json()

    assert len(all_places) == 2
    assert [p["name"] for p in monuments] == ["Raigad"]
    assert all("id" in p and "_id" not in p for p in all_places)


def test_create_place_with_partial_wikimedia_is_400(client):
    response = client.post(
        "/api/places",
        json={
            "name": "Raigad",
            "location": "Raigad",
            "category": "monument",
            "wikimedia_thumbnail_url": "https://upload.test/raigad.jpg",
        },
    )
    assert response.status_code == 400


def test_get_place_not_found(client):
    response = client.get("/api/places/65f1c0a2e4b0a1b2c3d4e5f8")
    assert response.status_code == 404
    assert response.json() == {"message": "Place not found"}


def test_get_place_invalid_id_is_400(client):
    response = client.get("/api/places/not-an-id")
    assert response.status_code == 400


def test_update_place_wikimedia_sets_all_fields(client, storage):
    place = seed_place(storage, "Gateway of India")
    fields = image_info("gateway").as_place_fields()

    response = client.post(f"/api/places/{place.id}/wikimedia", json=fields)

    assert response.status_code == 200
    body = response.json()
    for key, value in fields.items():
        assert body[key] == value


def test_enrich_updates_eligible_places_and_caches(client, storage, wikimedia):
    seed_place(storage, "Raigad", "monument")
    seed_place(storage, "Taj Hotel", "hotel")

    first = client.post("/api/places/enrich", json={})
    assert first.status_code == 200
    body = first.json()
    assert body["updated_count"] == 1
    assert body["from_cache"] is False
    assert len(body["places"]) == 2

    second = client.post("/api/places/enrich").json()
    assert second["from_cache"] is True
    assert len(wikimedia.calls) == 1


def test_enrich_with_persist_writes_back(client, storage):
    place = seed_place(storage, "Shaniwar Wada", "heritage")

    response = client.post("/api/places/enrich", json={"persist": True})

    assert response.json()["persisted_ids"] == [place.id]
    saved = asyncio.run(storage.get_place(place.id))
    assert saved.wikimedia_thumbnail_url is not None


def test_wikimedia_images_search(client):
    response = client.get("/api/wikimedia/images", params={"q": "Ajanta Caves", "limit": 3})
    assert response.status_code == 200
    assert response.json()[0]["thumbnail_url"].startswith("https://upload.wikimedia.org")


def test_wikimedia_images_failure_returns_empty_list(client, wikimedia):
    wikimedia.responses["Ajanta"] = EnrichmentLookupError("HTTP 500")
    response = client.get("/api/wikimedia/images", params={"q": "Ajanta"})
    assert response.status_code == 200
    assert response.json() == []


def test_nearby_places_sorted_by_distance(client, storage):
    seed_place(storage, "Gateway of India", latitude=18.922, longitude=72.8347)
    seed_place(storage, "CST", latitude=18.940, longitude=72.835)
    seed_place(storage, "Shaniwar Wada", latitude=18.519, longitude=73.855)

    response = client.get(
        "/api/nearby/places", params={"latitude": 18.93, "longitude": 72.83, "radius": 10}
    )

    names = [p["name"] for p in response.json()]
    assert names == ["Gateway of India", "CST"]


def test_enrich_cached_batch_persists_on_later_request(client, storage, wikimedia):
    place = seed_place(storage, "Raigad", "monument")

    first = client.post("/api/places/enrich", json={"persist": False}).json()
    assert first["persisted_ids"] == []
    assert asyncio.run(storage.get_place(place.id)).wikimedia_thumbnail_url is None

    second = client.post("/api/places/enrich", json={"persist": True}).json()

    assert second["from_cache"] is True
    assert second["persisted_ids"] == [place.id]
    assert len(wikimedia.calls) == 1
    saved = asyncio.run(storage.get_place(place.id))
    assert saved.wikimedia_thumbnail_url == second["places"][0]["wikimedia_thumbnail_url"]


def test_wikimedia_images_malformed_payload_returns_empty_list(client):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"query": {"search": ["File:broken.jpg"]}})

    commons = WikimediaClient(api_url="https://commons.test/w/api.php", transport=httpx.MockTransport(handler))
    app.dependency_overrides[get_wikimedia_client] = lambda: commons

    response = client.get("/api/wikimedia/images", params={"q": "Raigad"})

    assert response.status_code == 200
    assert response.json() == []

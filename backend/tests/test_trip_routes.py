import sys
from pathlib import Path

# Allow importing from backend/tourguide
sys.path.insert(0, str(Path(__file__).parent.parent))

from conftest import seed_place, seed_user


def test_user_lookup_hides_password(client, storage):
    user = seed_user(storage, "priya")
    response = client.get(f"/api/users/{user.id}")
    assert response.status_code == 200
    assert "password" not in response.json()
    assert client.get("/api/users/65f1c0a2e4b0a1b2c3d4e5f6").status_code == 404


def test_location_update(client, storage):
    user = seed_user(storage, "priya")
    response = client.post(
        "/api/user/location", json={"user_id": user.id, "latitude": 19.07, "longitude": 72.87}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["current_latitude"] == 19.07
    assert body["last_location_update"] is not None


def test_itinerary_stops_are_ordered_by_day_then_order(client, storage):
    user = seed_user(storage, "priya")
    fort = seed_place(storage, "Sinhagad")
    wada = seed_place(storage, "Shaniwar Wada")
    caves = seed_place(storage, "Karla Caves")

    created = client.post(
        "/api/itineraries",
        json={
            "user_id": user.id,
            "title": "Pune weekend",
            "start_date": "2024-12-20",
            "end_date": "2024-12-21",
            "places": [{"place_id": caves.id, "day": 2, "order": 0}],
        },
    )
    assert created.status_code == 201
    itinerary_id = created.json()["id"]

    client.post(f"/api/itineraries/{itinerary_id}/places", json={"place_id": wada.id, "day": 1, "order": 1})
    client.post(f"/api/itineraries/{itinerary_id}/places", json={"place_id": fort.id, "day": 1, "order": 0})

    stops = client.get(f"/api/itineraries/{itinerary_id}/places").json()
    assert [s["place"]["name"] for s in stops] == ["Sinhagad", "Shaniwar Wada", "Karla Caves"]

    listing = client.get(f"/api/users/{user.id}/itineraries").json()
    assert [i["title"] for i in listing] == ["Pune weekend"]


def test_itinerary_rejects_end_before_start(client, storage):
    user = seed_user(storage, "priya")
    response = client.post(
        "/api/itineraries",
        json={"user_id": user.id, "title": "Backwards", "start_date": "2024-12-22", "end_date": "2024-12-20"},
    )
    assert response.status_code == 400


def test_adding_unknown_place_is_404(client, storage):
    user = seed_user(storage, "priya")
    itinerary_id = client.post("/api/itineraries", json={"user_id": user.id, "title": "Trip"}).json()["id"]
    response = client.post(
        f"/api/itineraries/{itinerary_id}/places", json={"place_id": "65f1c0a2e4b0a1b2c3d4e5f8", "day": 1}
    )
    assert response.status_code == 404


def test_bookings_filter_by_type_and_update_status(client, storage):
    user = seed_user(storage, "priya")
    hotel = client.post(
        "/api/bookings",
        json={
            "user_id": user.id,
            "type": "hotel",
            "to_location": "Mahabaleshwar",
            "room_count": 1,
            "booking_details": {"hotel": "Valley View"},
        },
    )
    assert hotel.status_code == 201
    client.post(
        "/api/bookings",
        json={"user_id": user.id, "type": "transport", "from_location": "Mumbai", "to_location": "Pune"},
    )

    hotels = client.get(f"/api/users/{user.id}/bookings", params={"type": "hotel"}).json()
    assert [b["to_location"] for b in hotels] == ["Mahabaleshwar"]
    assert len(client.get(f"/api/users/{user.id}/bookings").json()) == 2

    updated = client.patch(f"/api/bookings/{hotel.json()['id']}", json={"status": "confirmed"})
    assert updated.json()["status"] == "confirmed"


def test_saved_places_round_trip(client, storage):
    user = seed_user(storage, "priya")
    place = seed_place(storage, "Elephanta Caves", "heritage")

    saved = client.post("/api/saved-places", json={"user_id": user.id, "place_id": place.id})
    assert saved.status_code == 201

    listing = client.get(f"/api/users/{user.id}/saved-places").json()
    assert listing[0]["place"]["name"] == "Elephanta Caves"

    assert client.delete(f"/api/saved-places/{saved.json()['id']}").status_code == 204
    assert client.get(f"/api/users/{user.id}/saved-places").json() == []
    assert client.delete(f"/api/saved-places/{saved.json()['id']}").status_code == 404

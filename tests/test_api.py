import pytest
from flask import current_app

from api.pydantic_models import UpsertUser
from storage import DatabaseStorage

GARDEN = {"lat": 40.7614, "lng": -73.9776}


def _create_hunt(client, user_id="user-1", theme="pollinator-hunt", location=None):
    return client.post("/hunts", json={"theme": theme, "location": location or GARDEN, "userId": user_id})


def _answer_for(stop):
    return stop["challenge"]["correctAnswer"] if stop["type"] == "trivia" else None


def test_create_hunt_returns_full_hunt(client, user):
    response = _create_hunt(client)
    assert response.status_code == 200

    hunt = response.get_json()
    assert hunt["status"] == "active"
    assert hunt["userId"] == "user-1"
    assert hunt["theme"] == "pollinator-hunt"
    assert hunt["location"]["address"] == "1 Garden Path, New York"
    assert hunt["totalPoints"] == sum(stop["points"] for stop in hunt["stops"])
    assert hunt["completedStops"] == 0
    assert all(stop["completed"] is False for stop in hunt["stops"])


def test_unknown_theme_is_rejected_and_nothing_is_stored(client, user, storage):
    response = _create_hunt(client, theme="volcano-hunt")
    assert response.status_code == 400
    body = response.get_json()
    assert body["error_code"] == "VALIDATION_ERROR"
    assert "urban-nature" in body["details"]["allowedThemes"]
    assert storage.get_user_hunts("user-1") == []


def test_malformed_body_is_a_bad_request(client, user):
    response = client.post("/hunts", json={"theme": "urban-nature", "location": {"lat": 200, "lng": 0},
                                           "userId": "user-1"})
    assert response.status_code == 400
    assert response.get_json()["error_code"] == "BAD_REQUEST"

    assert client.post("/hunts", data="nope", content_type="text/plain").status_code == 400


def test_second_active_hunt_conflicts(client, user):
    first = _create_hunt(client).get_json()
    response = _create_hunt(client, theme="urban-nature")
    assert response.status_code == 409
    body = response.get_json()
    assert body["error_code"] == "ACTIVE_HUNT_EXISTS"
    assert body["details"]["huntId"] == first["id"]


def test_create_hunt_for_unknown_user(client):
    response = _create_hunt(client, user_id="ghost")
    assert response.status_code == 404
    assert response.get_json()["error_code"] == "NOT_FOUND"


def test_hunt_lookups(client, user):
    hunt = _create_hunt(client).get_json()

    assert client.get(f"/hunts/{hunt['id']}").get_json()["id"] == hunt["id"]
    assert client.get("/hunts/active/user-1").get_json()["id"] == hunt["id"]
    assert [h["id"] for h in client.get("/hunts/user/user-1").get_json()] == [hunt["id"]]
    assert client.get("/hunts/user/nobody").get_json() == []

    assert client.get("/hunts/999").status_code == 404
    assert client.get("/hunts/active/nobody").status_code == 404


def test_play_through_pollinator_hunt(client, user):
    hunt = _create_hunt(client).get_json()

    earned = 0
    result = None
    for stop in hunt["stops"]:
        response = client.post(f"/hunts/{hunt['id']}/stops/{stop['id']}/complete",
                               json={"answer": _answer_for(stop)})
        assert response.status_code == 200
        result = response.get_json()
        earned += result["pointsEarned"]

    assert result["hunt"]["status"] == "completed"
    assert result["hunt"]["completedStops"] == len(hunt["stops"])
    assert [a["type"] for a in result["achievements"]] == ["nature-photographer"]
    assert earned == hunt["totalPoints"]

    profile = client.get("/users/user-1/profile").get_json()
    assert profile["user"]["points"] == earned
    assert profile["stats"] == {"totalHunts": 1, "completedHunts": 1, "totalPoints": earned}
    assert [a["type"] for a in profile["achievements"]] == ["nature-photographer"]


def test_completing_same_stop_twice_awards_nothing_more(client, user):
    hunt = _create_hunt(client).get_json()
    photo = next(stop for stop in hunt["stops"] if stop["type"] == "photo")
    url = f"/hunts/{hunt['id']}/stops/{photo['id']}/complete"

    first = client.post(url, json={"photoData": "data:image/jpeg;base64,AAAA"}).get_json()
    second = client.post(url, json={}).get_json()

    assert first["pointsEarned"] == photo["points"]
    assert second["pointsEarned"] == 0
    assert second["hunt"]["completedStops"] == 1
    assert client.get("/users/user-1/profile").get_json()["user"]["points"] == photo["points"]


def test_complete_unknown_stop(client, user):
    hunt = _create_hunt(client).get_json()
    assert client.post(f"/hunts/{hunt['id']}/stops/nope/complete", json={}).status_code == 404
    assert client.post("/hunts/999/stops/nope/complete", json={}).status_code == 404


def test_hint_endpoint(client, user, hint_provider):
    hunt = _create_hunt(client).get_json()
    stop = hunt["stops"][0]
    response = client.post(f"/hunts/{hunt['id']}/stops/{stop['id']}/hint")
    assert response.status_code == 200
    assert response.get_json() == {"hint": hint_provider.hint}


def test_pause_and_resume(client, user):
    hunt = _create_hunt(client).get_json()

    paused = client.post(f"/hunts/{hunt['id']}/pause")
    assert paused.status_code == 200
    assert paused.get_json()["status"] == "paused"
    assert client.get("/hunts/active/user-1").status_code == 404

    other = _create_hunt(client, theme="urban-nature").get_json()
    conflict = client.post(f"/hunts/{hunt['id']}/resume")
    assert conflict.status_code == 409
    assert conflict.get_json()["details"]["huntId"] == other["id"]

    client.post(f"/hunts/{other['id']}/pause")
    assert client.post(f"/hunts/{hunt['id']}/resume").get_json()["status"] == "active"


def test_demo_user_starts_with_points(client, storage):
    response = client.post("/users/demo")
    assert response.status_code == 201

    user = response.get_json()
    assert user["id"].startswith("demo_user_")
    assert user["points"] == 127
    assert user["email"] == f"{user['id']}@example.com"
    assert storage.get_user(user["id"]).firstName == "Demo"


def test_profile_for_unknown_user(client):
    assert client.get("/users/ghost/profile").status_code == 404


def test_update_location_resolves_address(client, user, geocoder):
    response = client.put("/users/user-1/location", json={"lat": 40.75, "lng": -73.98})
    assert response.status_code == 200
    assert response.get_json()["location"]["address"] == geocoder.address

    response = client.put("/users/user-1/location", json={"lat": 40.75, "lng": -73.98, "address": "Home"})
    assert response.get_json()["location"]["address"] == "Home"

    assert client.put("/users/user-1/location", json={"lat": "north"}).status_code == 400
    assert client.put("/users/ghost/location", json={"lat": 1, "lng": 1}).status_code == 404


def test_themes_listing(client):
    themes = client.get("/themes").get_json()
    assert [theme["theme"] for theme in themes] == [
        "urban-nature", "sustainable-shopping", "pollinator-hunt", "zero-waste-picnic"]


def test_geocode_endpoint(client):
    response = client.get("/geocode", query_string={"address": "11 W 53rd St"})
    assert response.status_code == 200
    assert response.get_json()["address"] == "11 W 53rd St"

    assert client.get("/geocode").status_code == 400
    assert client.get("/geocode", query_string={"address": "nowhere"}).status_code == 404


@pytest.mark.parametrize("secret, expected", [(None, 401), ("wrong", 401), ("let-me-in", 200)])
def test_status_page_requires_secret(client, secret, expected):
    query = {"secret": secret} if secret else {}
    assert client.get("/status", query_string=query).status_code == expected


def test_unknown_route_uses_error_body(client):
    response = client.get("/definitely/not/here")
    assert response.status_code == 404
    assert response.get_json()["error_code"] == "NOT_FOUND"


def test_api_against_database_backend(any_storage):
    if not isinstance(any_storage, DatabaseStorage):
        pytest.skip("covered by the in-memory tests above")

    any_storage.upsert_user(UpsertUser(id="db-user"))
    client = current_app.test_client()

    hunt = _create_hunt(client, user_id="db-user", theme="zero-waste-picnic").get_json()
    for stop in hunt["stops"]:
        client.post(f"/hunts/{hunt['id']}/stops/{stop['id']}/complete", json={"answer": _answer_for(stop)})

    profile = client.get("/users/db-user/profile").get_json()
    assert profile["stats"]["completedHunts"] == 1
    assert profile["user"]["points"] == hunt["totalPoints"]

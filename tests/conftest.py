import os
import random

# Keep the suite self-contained: no Redis, no real log location requirements.
os.environ["REDIS_URL"] = ""
os.environ.setdefault("LOG_FILE_PATH", "/tmp/ecoquest_test.log")

import pytest

from api.pydantic_models import Location, NewHunt, UpsertUser
from hunt_generator import TemplateHuntGenerator
from main import create_app
from models import db
from storage import DatabaseStorage, MemStorage

CHALLENGES = {
    "photo": {"photoPrompt": "Photograph a bee on a native flower"},
    "task": {"taskDescription": "Pick up three pieces of litter"},
    "trivia": {
        "question": "Which flower shape do butterflies prefer?",
        "options": ["Flat-topped clusters", "Deep tubes"],
        "correctAnswer": "Flat-topped clusters",
    },
}


class StubGeocoder:
    def __init__(self, address="1 Garden Path, New York"):
        self.address = address
        self.reverse_calls = []

    def reverse_geocode(self, lat, lng):
        self.reverse_calls.append((lat, lng))
        return self.address

    def geocode(self, address):
        if address.lower() == "nowhere":
            return None
        return Location(lat=40.7614, lng=-73.9776, address=address)

    def health_check(self):
        return {"status": "OK", "details": "stub"}


class StubHintProvider:
    def __init__(self, hint="Look for the brightest petals."):
        self.hint = hint

    def generate_hint(self, challenge):
        return self.hint


def build_stops(points=(50, 40, 30), types=("photo", "task", "trivia")):
    return [
        {
            "id": f"stop_{index}",
            "title": f"Stop {index}",
            "description": "A stop on the test route",
            "location": {"lat": 40.76 + index * 0.001, "lng": -73.97},
            "address": "Test Garden Area",
            "type": stop_type,
            "challenge": dict(CHALLENGES[stop_type]),
            "completed": False,
            "points": stop_points,
        }
        for index, (stop_points, stop_type) in enumerate(zip(points, types))
    ]


@pytest.fixture
def make_hunt():
    """Persists a hunt with hand-picked stops straight into a storage backend."""

    def _make_hunt(storage, user_id, theme="pollinator-hunt", points=(50, 40, 30),
                   types=("photo", "task", "trivia"), status="active"):
        stops = build_stops(points, types)
        return storage.create_hunt(NewHunt(
            userId=user_id,
            theme=theme,
            title="Test Hunt",
            description="A hunt built for tests",
            location={"lat": 40.7614, "lng": -73.9776, "address": "Test Garden"},
            stops=stops,
            status=status,
            totalPoints=sum(points),
        ))

    return _make_hunt


@pytest.fixture
def storage():
    return MemStorage()


@pytest.fixture
def user(storage):
    return storage.upsert_user(UpsertUser(id="user-1", firstName="Ada"))


@pytest.fixture
def geocoder():
    return StubGeocoder()


@pytest.fixture
def generator():
    return TemplateHuntGenerator(rng=random.Random(7))


@pytest.fixture
def hint_provider():
    return StubHintProvider()


@pytest.fixture
def app(storage, generator, geocoder, hint_provider):
    return create_app(
        config={"TESTING": True, "RATELIMIT_ENABLED": False, "STATUS_SECRET_KEY": "let-me-in"},
        storage=storage,
        generator=generator,
        geocoder=geocoder,
        hint_provider=hint_provider,
    )


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture(params=["memory", "database"])
def any_storage(request, generator, geocoder, hint_provider):
    """Runs a test against both storage backends."""
    if request.param == "memory":
        yield MemStorage()
        return

    backend = DatabaseStorage()
    database_app = create_app(
        config={"TESTING": True, "RATELIMIT_ENABLED": False, "SQLALCHEMY_DATABASE_URI": "sqlite://"},
        storage=backend,
        generator=generator,
        geocoder=geocoder,
        hint_provider=hint_provider,
    )
    with database_app.app_context():
        yield backend
        db.session.remove()
        db.drop_all()

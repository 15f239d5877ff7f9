import json

import pytest

from api.prompts import FALLBACK_HINT
from api.pydantic_models import Location
from errors import UpstreamFailure
from gemini_service import GeminiHintProvider, GeminiHuntGenerator, parse_route_response

LOCATION = Location(lat=40.7614, lng=-73.9776, address="Community Garden")

ROUTE = {
    "title": "Pollinator Paradise",
    "description": "Meet the bees of Midtown",
    "stops": [
        {
            "id": "bee-1",
            "title": "Lavender Bed",
            "description": "Bees love lavender",
            "location": {"lat": 40.762, "lng": -73.977},
            "address": "W 53rd St",
            "type": "photo",
            "challenge": {"photoPrompt": "Photograph a bee", "question": None, "options": None,
                          "correctAnswer": None, "taskDescription": None},
            "points": 50,
        },
        {
            "id": "bee-2",
            "title": "Butterfly Border",
            "description": "Flowers for butterflies",
            "location": {"lat": 40.761, "lng": -73.978},
            "type": "trivia",
            "challenge": {"photoPrompt": None, "question": "Which shape?", "options": ["Flat", "Tube"],
                          "correctAnswer": "Flat", "taskDescription": None},
            "points": 30,
        },
    ],
}


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeClient:
    """Plays back scripted responses; an Exception entry is raised instead of returned."""

    def __init__(self, script, calls):
        self.models = self
        self._script = script
        self._calls = calls

    def generate_content(self, model, contents, config):
        self._calls.append({"model": model, "contents": contents})
        outcome = self._script.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return FakeResponse(outcome)


def _factory(script, calls, keys_used):
    def client_factory(api_key, http_options):
        keys_used.append(api_key)
        return FakeClient(script, calls)
    return client_factory


def test_parse_route_response_builds_payload():
    payload = parse_route_response("```json\n" + json.dumps(ROUTE) + "\n```", LOCATION)
    assert payload.title == "Pollinator Paradise"
    assert payload.totalPoints == 80
    assert payload.location.address == "Community Garden"
    photo, trivia = payload.stops
    assert photo.challenge.photoPrompt == "Photograph a bee"
    assert trivia.challenge.correctAnswer == "Flat"
    assert trivia.address == "40.7610, -73.9780"
    assert not any(stop.completed for stop in payload.stops)


def test_parse_route_response_replaces_duplicate_ids():
    route = json.loads(json.dumps(ROUTE))
    route["stops"][1]["id"] = "bee-1"
    payload = parse_route_response(json.dumps(route), LOCATION, now=5.0)
    assert [stop.id for stop in payload.stops] == ["stop_5000_0", "stop_5000_1"]


@pytest.mark.parametrize("raw", ["", "not json", json.dumps({"title": "x"}), json.dumps({"title": "x", "stops": []})])
def test_parse_route_response_rejects_bad_output(raw):
    with pytest.raises(ValueError):
        parse_route_response(raw, LOCATION)


def test_generator_retries_with_next_key_and_backs_off():
    calls, keys_used, sleeps = [], [], []
    generator = GeminiHuntGenerator(
        api_keys=["key-a", "key-b"],
        model="test-model",
        timeout_ms=1000,
        max_attempts=3,
        client_factory=_factory(["not json", json.dumps(ROUTE)], calls, keys_used),
        redis_getter=lambda: None,
        sleep=sleeps.append,
    )
    payload = generator.generate("pollinator-hunt", LOCATION)

    assert payload.title == "Pollinator Paradise"
    assert keys_used == ["key-a", "key-b"]
    assert sleeps == [1.0]
    assert "pollinator-hunt" in calls[0]["contents"][0]
    assert calls[0]["model"] == "test-model"


def test_generator_gives_up_after_max_attempts():
    calls, keys_used, sleeps = [], [], []
    generator = GeminiHuntGenerator(
        api_keys=["only-key"],
        model="test-model",
        timeout_ms=1000,
        max_attempts=3,
        client_factory=_factory([RuntimeError("timeout")] * 3, calls, keys_used),
        redis_getter=lambda: None,
        sleep=sleeps.append,
    )
    with pytest.raises(UpstreamFailure):
        generator.generate("urban-nature", LOCATION)
    assert len(calls) == 3
    assert sleeps == [1.0, 2.0]


def test_generator_without_keys_fails_fast():
    generator = GeminiHuntGenerator(api_keys=[], model="m", timeout_ms=1, max_attempts=1, redis_getter=lambda: None)
    with pytest.raises(UpstreamFailure):
        generator.generate("urban-nature", LOCATION)


def test_hint_provider_returns_model_text():
    calls, keys_used = [], []
    provider = GeminiHintProvider(api_keys=["k"], model="m", timeout_ms=1000,
                                  client_factory=_factory(["  Look near the lavender.  "], calls, keys_used))
    assert provider.generate_hint({"photoPrompt": "Photograph a bee"}) == "Look near the lavender."
    assert "Photograph a bee" in calls[0]["contents"][0]


def test_hint_provider_falls_back():
    calls, keys_used = [], []
    failing = GeminiHintProvider(api_keys=["k"], model="m", timeout_ms=1000,
                                 client_factory=_factory([RuntimeError("down")], calls, keys_used))
    assert failing.generate_hint({"taskDescription": "t"}) == FALLBACK_HINT
    assert GeminiHintProvider(api_keys=[], model="m", timeout_ms=1).generate_hint({}) == FALLBACK_HINT

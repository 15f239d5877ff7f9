import json
import logging
import time

from google import genai
from google.genai import types

import dependencies
from api.prompts import (
    FALLBACK_HINT,
    HINT_PROMPT,
    HINT_SYSTEM_PROMPT,
    ROUTE_GENERATION_PROMPT,
    ROUTE_SYSTEM_PROMPT,
    THEME_FOCUS,
)
from api.pydantic_models import HuntPayload
from errors import UpstreamFailure
from geo_utils import format_coordinates

logger = logging.getLogger(__name__)

GENERATION_FAILED_MESSAGE = "Failed to generate quest, please try again."
KEY_INDEX_CACHE_KEY = "current_hunt_gemini_key_index"

# Which challenge fields belong to each stop type. The model tends to return all of them.
CHALLENGE_FIELDS = {
    'photo': ('photoPrompt',),
    'trivia': ('question', 'options', 'correctAnswer'),
    'task': ('taskDescription',),
}


def _strip_code_fence(raw_text):
    return raw_text.strip().removeprefix("```json").removeprefix("```").removesuffix("```").strip()


def parse_route_response(raw_text, location, now=None):
    """
    Turns Gemini's JSON route into a HuntPayload centered on `location`.
    Raises ValueError (pydantic's ValidationError included) when the response is unusable.
    """
    if not raw_text:
        raise ValueError("Empty response from Gemini")
    data = json.loads(_strip_code_fence(raw_text))
    if not data.get('title') or not isinstance(data.get('stops'), list):
        raise ValueError("Invalid response format from Gemini")

    timestamp = int((now if now is not None else time.time()) * 1000)
    stops = []
    for index, raw_stop in enumerate(data['stops']):
        stop_type = raw_stop.get('type')
        challenge = raw_stop.get('challenge') or {}
        stop_location = raw_stop.get('location') or {}
        stops.append({
            'id': str(raw_stop.get('id') or f"stop_{timestamp}_{index}"),
            'title': raw_stop.get('title'),
            'description': raw_stop.get('description', ''),
            'location': stop_location,
            'address': raw_stop.get('address') or format_coordinates(stop_location.get('lat', 0), stop_location.get('lng', 0)),
            'type': stop_type,
            'challenge': {key: challenge.get(key) for key in CHALLENGE_FIELDS.get(stop_type, ())},
            'completed': False,
            'points': raw_stop.get('points'),
        })

    # Stop ids must be unique within a hunt; fall back to generated ids if the model repeats itself.
    if len({stop['id'] for stop in stops}) != len(stops):
        for index, stop in enumerate(stops):
            stop['id'] = f"stop_{timestamp}_{index}"

    return HuntPayload.model_validate({
        'title': data['title'],
        'description': data.get('description', ''),
        'location': location.model_dump(),
        'stops': stops,
    })


class GeminiHuntGenerator:
    """
    Generates hunts with Gemini, rotating through the configured API keys.

    Each attempt uses the next key; failed attempts back off exponentially. After
    `max_attempts` failures an UpstreamFailure is raised for the API layer to report.
    """

    def __init__(self, api_keys=None, model=None, timeout_ms=None, max_attempts=None,
                 backoff_seconds=1.0, client_factory=genai.Client, redis_getter=None, sleep=time.sleep):
        self.api_keys = list(api_keys if api_keys is not None else dependencies.ACTIVE_GEMINI_KEYS)
        self.model = model or dependencies.GEMINI_MODEL
        self.timeout_ms = timeout_ms or dependencies.GEMINI_TIMEOUT_MS
        self.max_attempts = max_attempts or dependencies.GEMINI_MAX_ATTEMPTS
        self.backoff_seconds = backoff_seconds
        self.client_factory = client_factory
        self.redis_getter = redis_getter or dependencies.redis_client
        self.sleep = sleep

    def _start_index(self):
        redis_client = self.redis_getter()
        if not redis_client:
            return 0
        try:
            return int(redis_client.get(KEY_INDEX_CACHE_KEY) or 0)
        except Exception as e:
            logger.warning(f"Could not read Gemini key index from Redis: {e}")
            return 0

    def _remember_index(self, index):
        redis_client = self.redis_getter()
        if not redis_client:
            return
        try:
            redis_client.set(KEY_INDEX_CACHE_KEY, index)
        except Exception as e:
            logger.warning(f"Could not store Gemini key index in Redis: {e}")

    def _client(self, api_key):
        return self.client_factory(api_key=api_key, http_options=types.HttpOptions(timeout=self.timeout_ms))

    def generate(self, theme, location):
        if not self.api_keys:
            logger.error("No active Gemini API keys found.")
            raise UpstreamFailure(GENERATION_FAILED_MESSAGE)

        prompt = ROUTE_GENERATION_PROMPT.replace('{theme_placeholder}', theme)
        prompt = prompt.replace('{location_placeholder}', location.address or format_coordinates(location.lat, location.lng))
        prompt = prompt.replace('{theme_focus_placeholder}', THEME_FOCUS.get(theme, 'General eco-friendly activities'))
        prompt = prompt.replace('{radius_placeholder}', '2')

        start_index = self._start_index()
        for attempt in range(self.max_attempts):
            current_index = (start_index + attempt) % len(self.api_keys)
            try:
                logger.info(f"--> Generating '{theme}' hunt with Gemini API Key #{current_index + 1} (attempt {attempt + 1})")
                response = self._client(self.api_keys[current_index]).models.generate_content(
                    model=self.model,
                    contents=[prompt],
                    config=types.GenerateContentConfig(
                        system_instruction=ROUTE_SYSTEM_PROMPT,
                        response_mime_type="application/json",
                        temperature=0.7,
                    ),
                )
                logger.debug(f"Raw Gemini response: {response.text}")
                payload = parse_route_response(response.text, location)
                self._remember_index(current_index)
                logger.info(f"Gemini generated hunt '{payload.title}' with {len(payload.stops)} stops.")
                return payload
            except Exception as e:
                logger.warning(f"Gemini hunt generation attempt {attempt + 1} failed. Error: {e}")
                if attempt < self.max_attempts - 1:
                    self.sleep(self.backoff_seconds * (2 ** attempt))

        logger.error(f"All {self.max_attempts} Gemini attempts failed for theme '{theme}'.")
        raise UpstreamFailure(GENERATION_FAILED_MESSAGE)


class GeminiHintProvider:
    """Asks Gemini for a spoiler-free hint. Never raises; falls back to a canned encouragement."""

    def __init__(self, api_keys=None, model=None, timeout_ms=None, client_factory=genai.Client):
        self.api_keys = list(api_keys if api_keys is not None else dependencies.ACTIVE_GEMINI_KEYS)
        self.model = model or dependencies.GEMINI_MODEL
        self.timeout_ms = timeout_ms or dependencies.GEMINI_TIMEOUT_MS
        self.client_factory = client_factory

    def generate_hint(self, challenge):
        if not self.api_keys:
            return FALLBACK_HINT
        try:
            client = self.client_factory(api_key=self.api_keys[0], http_options=types.HttpOptions(timeout=self.timeout_ms))
            prompt = HINT_PROMPT.replace('{challenge_placeholder}', json.dumps(challenge))
            response = client.models.generate_content(
                model=self.model,
                contents=[prompt],
                config=types.GenerateContentConfig(
                    system_instruction=HINT_SYSTEM_PROMPT,
                    temperature=0.7,
                    max_output_tokens=150,
                ),
            )
            hint = (response.text or "").strip()
            return hint or FALLBACK_HINT
        except Exception as e:
            logger.error(f"Error generating hint: {str(e)}")
            return FALLBACK_HINT

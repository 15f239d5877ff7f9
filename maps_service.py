import json
import logging

import requests

import dependencies
from api.pydantic_models import Location
from geo_utils import format_coordinates

logger = logging.getLogger(__name__)


class NominatimGeocoder:
    """
    OpenStreetMap Nominatim lookups (free, no API key required).

    Reverse lookups fail open to a plain "lat, lng" string; successful results are
    cached in Redis when it is available.
    """

    def __init__(self, base_url=None, user_agent=None, timeout=None, cache_ttl=None, redis_getter=None, session=None):
        self.base_url = (base_url or dependencies.NOMINATIM_URL).rstrip('/')
        self.user_agent = user_agent or dependencies.GEOCODER_USER_AGENT
        self.timeout = timeout or dependencies.GEOCODER_TIMEOUT_SECONDS
        self.cache_ttl = cache_ttl or dependencies.GEOCODE_CACHE_TTL
        self.redis_getter = redis_getter or dependencies.redis_client
        self.session = session or requests

    def _get_json(self, path, params):
        response = self.session.get(
            f"{self.base_url}/{path}",
            params=params,
            headers={'User-Agent': self.user_agent},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    def _cache_get(self, key):
        redis_client = self.redis_getter()
        if not redis_client:
            return None
        try:
            return redis_client.get(key)
        except Exception as e:
            logger.warning(f"Geocode cache read failed for {key}: {e}")
            return None

    def _cache_set(self, key, value):
        redis_client = self.redis_getter()
        if not redis_client:
            return
        try:
            redis_client.set(key, value, ex=self.cache_ttl)
        except Exception as e:
            logger.warning(f"Geocode cache write failed for {key}: {e}")

    def reverse_geocode(self, lat, lng):
        cache_key = f"geocode:reverse:{lat:.5f}:{lng:.5f}"
        cached = self._cache_get(cache_key)
        if cached:
            return cached

        try:
            data = self._get_json('reverse', {'format': 'json', 'lat': lat, 'lon': lng, 'addressdetails': 1})
            address = data.get('display_name') if isinstance(data, dict) else None
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Reverse geocoding error for ({lat}, {lng}): {e}")
            address = None

        if not address:
            return format_coordinates(lat, lng)

        self._cache_set(cache_key, address)
        return address

    def geocode(self, address):
        """Looks up coordinates for a free-text address. Returns None when nothing matches."""
        cache_key = f"geocode:search:{address.strip().lower()}"
        cached = self._cache_get(cache_key)
        if cached:
            return Location.model_validate(json.loads(cached))

        try:
            results = self._get_json('search', {'format': 'json', 'q': address, 'limit': 1})
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Geocoding error for '{address}': {e}")
            return None

        if not results:
            return None

        result = results[0]
        location = Location(lat=float(result['lat']), lng=float(result['lon']), address=result.get('display_name'))
        self._cache_set(cache_key, location.model_dump_json())
        return location

    def health_check(self):
        return {"status": "OK", "details": f"Geocoding via {self.base_url} (fails open to coordinates)."}

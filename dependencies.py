"""
Dependency configuration for the EcoQuest backend.
This module reads the environment once and provides access to shared resources
(Redis, storage backends, hunt generators) so blueprints never build their own.
"""

import logging
import os
import threading

import redis
from dotenv import load_dotenv
from redis.backoff import ExponentialBackoff
from redis.retry import Retry

load_dotenv()

# --- Storage ---
STORAGE_BACKEND = os.environ.get("STORAGE_BACKEND", "memory")
DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///ecoquest.db")

# --- Hunt generation ---
HUNT_GENERATOR = os.environ.get("HUNT_GENERATOR", "template")

# --- Gemini API Keys ---
# Load up to 4 keys for redundancy.
GEMINI_API_KEYS = [os.environ.get(f"GEMINI_API_KEY_{i+1}") for i in range(4)]
ACTIVE_GEMINI_KEYS = [key for key in GEMINI_API_KEYS if key]
GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")
GEMINI_TIMEOUT_MS = int(os.environ.get("GEMINI_TIMEOUT_MS", "30000"))
GEMINI_MAX_ATTEMPTS = int(os.environ.get("GEMINI_MAX_ATTEMPTS", "3"))

# --- Geocoding ---
NOMINATIM_URL = os.environ.get("NOMINATIM_URL", "https://nominatim.openstreetmap.org")
GEOCODER_USER_AGENT = os.environ.get("GEOCODER_USER_AGENT", "EcoQuest-App/1.0")
GEOCODER_TIMEOUT_SECONDS = float(os.environ.get("GEOCODER_TIMEOUT_SECONDS", "5"))
GEOCODE_CACHE_TTL = int(os.environ.get("GEOCODE_CACHE_TTL", str(24 * 3600)))

# --- Rate limiting & status page ---
RATELIMIT_STORAGE_URI = os.environ.get("RATELIMIT_STORAGE_URI", "memory://")
RATELIMIT_ENABLED = os.environ.get("RATELIMIT_ENABLED", "true").lower() == "true"
STATUS_SECRET_KEY = os.environ.get("STATUS_SECRET_KEY")

# --- Redis Connection Pool with Retry Logic ---
# An empty REDIS_URL disables Redis; callers must handle a None client.
REDIS_URL = os.environ.get("REDIS_URL", "")

# Thread-local storage for Redis connections
_redis_local = threading.local()


def get_redis_connection():
    """
    Get a thread-safe Redis connection from the pool with retry logic.
    Returns None when Redis is not configured or unreachable.
    """
    if not REDIS_URL:
        return None
    if not hasattr(_redis_local, 'connection'):
        try:
            retry = Retry(ExponentialBackoff(), retries=3)
            connection_pool = redis.ConnectionPool.from_url(
                REDIS_URL,
                decode_responses=True,
                retry=retry,
                max_connections=20,
                health_check_interval=30,
                socket_connect_timeout=5,
                socket_timeout=10
            )
            _redis_local.connection = redis.Redis(connection_pool=connection_pool)
            _redis_local.connection.ping()  # Test connection
            logging.info("Redis connection pool initialized successfully")

        except redis.exceptions.ConnectionError as e:
            logging.error(f"Failed to connect to Redis: {e}")
            _redis_local.connection = None

    return _redis_local.connection


def redis_client():
    """Thread-safe access to the Redis client (may be None)."""
    return get_redis_connection()


def build_storage(backend=None):
    from storage import DatabaseStorage, MemStorage

    backend = backend or STORAGE_BACKEND
    if backend == "memory":
        return MemStorage()
    if backend == "database":
        return DatabaseStorage()
    raise ValueError(f"Unknown STORAGE_BACKEND '{backend}'")


def build_hunt_generator(kind=None):
    kind = kind or HUNT_GENERATOR
    if kind == "template":
        from hunt_generator import TemplateHuntGenerator
        return TemplateHuntGenerator()
    if kind == "ai":
        from gemini_service import GeminiHuntGenerator
        return GeminiHuntGenerator()
    raise ValueError(f"Unknown HUNT_GENERATOR '{kind}'")


def build_geocoder():
    from maps_service import NominatimGeocoder
    return NominatimGeocoder()


def build_hint_provider():
    from gemini_service import GeminiHintProvider
    return GeminiHintProvider()


def get_services():
    """The collaborators wired into the running Flask app by main.create_app."""
    from flask import current_app
    return current_app.extensions["ecoquest"]

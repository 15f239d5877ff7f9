import logging
import secrets
import string
import time

from flask import Blueprint, jsonify, request

from dependencies import get_services
from .pydantic_models import Location, ProfileResponse, ProfileStats, UpsertUser

users_bp = Blueprint('users_bp', __name__)

# Demo accounts start with a few points so the UI has something to show.
DEMO_STARTING_POINTS = 127


def generate_demo_user_id():
    """Generate a unique demo user ID"""
    timestamp = str(int(time.time() * 1000))
    random_suffix = ''.join(secrets.choice(string.ascii_lowercase + string.digits) for _ in range(8))
    return f"demo_user_{timestamp}_{random_suffix}"


@users_bp.route('/demo', methods=['POST'])
def create_demo_user():
    storage = get_services()["storage"]
    user_id = generate_demo_user_id()
    storage.upsert_user(UpsertUser(
        id=user_id,
        email=f"{user_id}@example.com",
        firstName="Demo",
        lastName="User",
    ))
    user = storage.update_user_points(user_id, DEMO_STARTING_POINTS)
    logging.info(f"Created demo user {user_id}")
    return jsonify(user.model_dump(mode="json")), 201


@users_bp.route('/<user_id>/profile', methods=['GET'])
def get_profile(user_id):
    storage = get_services()["storage"]
    user = storage.get_user(user_id)
    achievements = storage.get_user_achievements(user_id)
    hunts = storage.get_user_hunts(user_id)

    profile = ProfileResponse(
        user=user,
        achievements=achievements,
        stats=ProfileStats(
            totalHunts=len(hunts),
            completedHunts=sum(1 for hunt in hunts if hunt.status == "completed"),
            totalPoints=user.points or 0,
        ),
    )
    return jsonify(profile.model_dump(mode="json")), 200


@users_bp.route('/<user_id>/location', methods=['PUT'])
def update_location(user_id):
    """Stores the user's last known position, resolving an address when none is given."""
    services = get_services()
    location = Location.model_validate(request.get_json(silent=True) or {})
    if not location.address:
        location = location.model_copy(update={'address': services["geocoder"].reverse_geocode(location.lat, location.lng)})
    user = services["storage"].update_user_location(user_id, location)
    return jsonify(user.model_dump(mode="json")), 200

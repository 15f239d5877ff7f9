"""
Hunt lifecycle: starting a hunt, completing stops, hints, pausing and resuming.

Every read-modify-write on a hunt happens under that hunt's lock, and the
writes of a single stop completion (hunt, points, badges) are committed in one
storage transaction.
"""

import logging
import math

from achievements import award_achievements
from api.prompts import FALLBACK_HINT
from api.pydantic_models import THEMES, NewHunt, StopCompletionResult
from errors import ActiveHuntExists, InvariantViolation, NotFoundError, RequestValidationError
from hunt_generator import is_known_theme

logger = logging.getLogger(__name__)

# A wrong trivia answer still resolves the stop, for half the points (rounded down).
TRIVIA_WRONG_ANSWER_RATIO = 0.5


def _unknown_theme(theme):
    return RequestValidationError(f"Unknown theme '{theme}'", details={"allowedThemes": list(THEMES)})


def _find_stop(hunt, stop_id):
    stop = next((s for s in hunt.stops if s.id == stop_id), None)
    if stop is None:
        raise NotFoundError("Stop not found")
    return stop


def _current_active_hunt(storage, user_id):
    try:
        return storage.get_active_hunt(user_id)
    except NotFoundError:
        return None


def start_hunt(storage, generator, geocoder, user_id, theme, location):
    """
    Creates a new active hunt for `user_id`.

    Rejects unknown themes and users who already have an active hunt. The address is
    reverse-geocoded when the client did not send one; the user's last known location
    is updated together with the new hunt.
    """
    if not is_known_theme(theme):
        raise _unknown_theme(theme)

    with storage.user_lock(user_id):
        storage.get_user(user_id)
        active = _current_active_hunt(storage, user_id)
        if active is not None:
            raise ActiveHuntExists("You already have an active hunt. Complete it first.",
                                   details={"huntId": active.id})

        address = location.address or geocoder.reverse_geocode(location.lat, location.lng)
        located = location.model_copy(update={'address': address})

        payload = generator.generate(theme, located)
        if payload is None:
            raise _unknown_theme(theme)

        with storage.transaction():
            hunt = storage.create_hunt(NewHunt(
                userId=user_id,
                theme=theme,
                title=payload.title,
                description=payload.description,
                location=located,
                stops=payload.stops,
                status="active",
                totalPoints=payload.totalPoints,
            ))
            storage.update_user_location(user_id, located)

    logger.info(f"Created hunt {hunt.id} ('{theme}', {len(hunt.stops)} stops) for user {user_id}.")
    return hunt


def compute_stop_points(stop, answer=None):
    """Photo and task stops pay in full; trivia pays in full only for the correct answer."""
    if stop.type == "trivia" and answer != stop.challenge.correctAnswer:
        return math.floor(stop.points * TRIVIA_WRONG_ANSWER_RATIO)
    return stop.points


def complete_stop(storage, hunt_id, stop_id, answer=None, photo_data=None):
    """
    Applies one stop-completion event and returns the updated hunt, the points earned
    and any newly earned achievements. Completing an already completed stop is a no-op.
    """
    with storage.hunt_lock(hunt_id):
        hunt = storage.get_hunt(hunt_id)
        stop = _find_stop(hunt, stop_id)

        if stop.completed:
            logger.info(f"Stop {stop_id} of hunt {hunt_id} was already completed; nothing awarded.")
            return StopCompletionResult(hunt=hunt, achievements=[], pointsEarned=0)

        points_earned = compute_stop_points(stop, answer)
        if stop.type == "photo" and photo_data:
            logger.info(f"Photo submitted for stop {stop_id} of hunt {hunt_id} ({len(photo_data)} bytes).")

        stops = [s.model_copy(update={'completed': True}) if s.id == stop_id else s for s in hunt.stops]
        completed_stops = sum(1 for s in stops if s.completed)
        status = "completed" if completed_stops == len(stops) else hunt.status

        # Fail before writing anything if the owner is gone.
        storage.get_user(hunt.userId)

        # Badge checks for one user are serialized across all of their hunts.
        with storage.user_lock(hunt.userId), storage.transaction():
            updated_hunt = storage.update_hunt(hunt_id, stops=stops, completedStops=completed_stops, status=status)
            storage.update_user_points(hunt.userId, points_earned)
            achievements = award_achievements(storage, updated_hunt)

    logger.info(f"User {hunt.userId} completed stop {stop_id} of hunt {hunt_id} for {points_earned} points "
                f"({completed_stops}/{len(stops)} done).")
    return StopCompletionResult(hunt=updated_hunt, achievements=achievements, pointsEarned=points_earned)


def get_stop_hint(storage, hint_provider, hunt_id, stop_id):
    hunt = storage.get_hunt(hunt_id)
    stop = _find_stop(hunt, stop_id)
    try:
        return hint_provider.generate_hint(stop.challenge.model_dump()) or FALLBACK_HINT
    except Exception as e:
        logger.error(f"Hint provider failed for stop {stop_id} of hunt {hunt_id}: {e}")
        return FALLBACK_HINT


def pause_hunt(storage, hunt_id):
    with storage.hunt_lock(hunt_id):
        hunt = storage.get_hunt(hunt_id)
        if hunt.status == "paused":
            return hunt
        if hunt.status != "active":
            raise InvariantViolation("Only an active hunt can be paused.")
        return storage.update_hunt(hunt_id, status="paused")


def resume_hunt(storage, hunt_id):
    with storage.hunt_lock(hunt_id):
        hunt = storage.get_hunt(hunt_id)
        if hunt.status == "active":
            return hunt
        if hunt.status != "paused":
            raise InvariantViolation("Only a paused hunt can be resumed.")

        with storage.user_lock(hunt.userId):
            active = _current_active_hunt(storage, hunt.userId)
            if active is not None:
                raise ActiveHuntExists("You already have an active hunt. Pause or complete it first.",
                                       details={"huntId": active.id})
            return storage.update_hunt(hunt_id, status="active")

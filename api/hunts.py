import logging

from flask import Blueprint, jsonify, request

from dependencies import get_services
from extensions import HINT_LIMIT, HUNT_CREATION_LIMIT, limiter
from hunt_engine import complete_stop, get_stop_hint, pause_hunt, resume_hunt, start_hunt
from .pydantic_models import CompleteStopRequest, CreateHuntRequest, HintResponse

hunts_bp = Blueprint('hunts_bp', __name__)


def _json_body():
    return request.get_json(silent=True) or {}


@hunts_bp.route('', methods=['POST'])
@limiter.limit(HUNT_CREATION_LIMIT)
def create_hunt():
    """Generates a new hunt for the user around the given location."""
    req_data = CreateHuntRequest.model_validate(_json_body())
    services = get_services()
    hunt = start_hunt(
        services["storage"],
        services["generator"],
        services["geocoder"],
        user_id=req_data.userId,
        theme=req_data.theme,
        location=req_data.location,
    )
    return jsonify(hunt.model_dump(mode="json")), 200


@hunts_bp.route('/active/<user_id>', methods=['GET'])
def get_active_hunt(user_id):
    hunt = get_services()["storage"].get_active_hunt(user_id)
    return jsonify(hunt.model_dump(mode="json")), 200


@hunts_bp.route('/user/<user_id>', methods=['GET'])
def get_user_hunts(user_id):
    hunts = get_services()["storage"].get_user_hunts(user_id)
    return jsonify([hunt.model_dump(mode="json") for hunt in hunts]), 200


@hunts_bp.route('/<int:hunt_id>', methods=['GET'])
def get_hunt(hunt_id):
    hunt = get_services()["storage"].get_hunt(hunt_id)
    return jsonify(hunt.model_dump(mode="json")), 200


@hunts_bp.route('/<int:hunt_id>/stops/<stop_id>/complete', methods=['POST'])
def complete_hunt_stop(hunt_id, stop_id):
    req_data = CompleteStopRequest.model_validate(_json_body())
    result = complete_stop(
        get_services()["storage"],
        hunt_id,
        stop_id,
        answer=req_data.answer,
        photo_data=req_data.photoData,
    )
    return jsonify(result.model_dump(mode="json")), 200


@hunts_bp.route('/<int:hunt_id>/stops/<stop_id>/hint', methods=['POST'])
@limiter.limit(HINT_LIMIT)
def get_hint(hunt_id, stop_id):
    services = get_services()
    hint = get_stop_hint(services["storage"], services["hint_provider"], hunt_id, stop_id)
    logging.info(f"Served hint for stop {stop_id} of hunt {hunt_id}.")
    return jsonify(HintResponse(hint=hint).model_dump()), 200


@hunts_bp.route('/<int:hunt_id>/pause', methods=['POST'])
def pause(hunt_id):
    hunt = pause_hunt(get_services()["storage"], hunt_id)
    return jsonify(hunt.model_dump(mode="json")), 200


@hunts_bp.route('/<int:hunt_id>/resume', methods=['POST'])
def resume(hunt_id):
    hunt = resume_hunt(get_services()["storage"], hunt_id)
    return jsonify(hunt.model_dump(mode="json")), 200

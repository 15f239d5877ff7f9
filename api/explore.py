from flask import Blueprint, jsonify, request

from dependencies import get_services
from errors import NotFoundError, RequestValidationError
from hunt_generator import list_themes

explore_bp = Blueprint('explore_bp', __name__)


@explore_bp.route('/themes', methods=['GET'])
def get_themes():
    """Lists the hunt themes and their template areas for the theme picker."""
    return jsonify([theme.model_dump() for theme in list_themes()]), 200


@explore_bp.route('/geocode', methods=['GET'])
def geocode_address():
    address = (request.args.get('address') or '').strip()
    if not address:
        raise RequestValidationError("The 'address' query parameter is required")

    location = get_services()["geocoder"].geocode(address)
    if location is None:
        raise NotFoundError("No location matches that address")
    return jsonify(location.model_dump()), 200

"""
Standardized error handling utilities for EcoQuest API endpoints.
Provides consistent error formats, HTTP status codes, and error codes across all endpoints.
"""

import logging
from typing import Any, Dict, Optional

from flask import jsonify
from pydantic import ValidationError

from errors import EcoQuestError

# Standard error codes for consistent API responses
ERROR_CODES = {
    # Validation errors (400-499)
    "BAD_REQUEST": "Invalid request body or parameters",
    "VALIDATION_ERROR": "Request validation failed",

    # Resource errors (400-499)
    "NOT_FOUND": "Resource not found",
    "UNAUTHORIZED": "Invalid credentials or unauthorized access",
    "RATE_LIMITED": "Too many requests, please slow down",

    # Business logic errors (400-499)
    "ACTIVE_HUNT_EXISTS": "You already have an active hunt. Complete it first.",
    "INVALID_STATE": "The hunt cannot move to the requested state",

    # System errors (500-599)
    "SERVER_ERROR": "Internal server error",
    "INTERNAL_SERVER_ERROR": "An unexpected error occurred on the server.",
    "EXTERNAL_SERVICE_ERROR": "External service unavailable",
}


def create_error_response(
    error_code: str,
    message: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    status_code: int = 500
) -> tuple:
    """
    Create a standardized error response with consistent format.

    Args:
        error_code: One of the standard ERROR_CODES keys
        message: Optional custom message (defaults to standard message)
        details: Optional additional error details
        status_code: HTTP status code

    Returns:
        Tuple of (JSON response, HTTP status code)
    """
    if error_code not in ERROR_CODES:
        logging.warning(f"Unknown error code used: {error_code}")
        error_code = "SERVER_ERROR"

    error_message = message or ERROR_CODES[error_code]

    response_data = {
        "error_code": error_code,
        "message": error_message
    }

    if details:
        response_data["details"] = details

    log = logging.error if status_code >= 500 else logging.info
    log(f"API Error [{error_code}]: {error_message} - Status: {status_code}")

    return jsonify(response_data), status_code


def register_error_handlers(app):
    """Maps domain exceptions and framework errors onto the standard error body."""

    @app.errorhandler(EcoQuestError)
    def handle_domain_error(e):
        return create_error_response(e.error_code, e.message, e.details, status_code=e.status_code)

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        details = {"errors": e.errors(include_url=False, include_context=False, include_input=False)}
        return create_error_response("BAD_REQUEST", "Request validation failed", details, status_code=400)

    @app.errorhandler(400)
    def bad_request(e):
        return create_error_response("BAD_REQUEST", status_code=400)

    @app.errorhandler(404)
    def resource_not_found(e):
        """Handles 404 Not Found errors for a clean API response."""
        return create_error_response("NOT_FOUND", "The requested resource was not found.", status_code=404)

    @app.errorhandler(429)
    def rate_limited(e):
        return create_error_response("RATE_LIMITED", details={"limit": str(e.description)}, status_code=429)

    @app.errorhandler(500)
    def internal_server_error(e):
        """Handles unexpected 500 Internal Server Errors for a clean API response."""
        original = getattr(e, "original_exception", None) or e
        logging.critical(f"An unhandled exception occurred: {original}", exc_info=original)
        return create_error_response("INTERNAL_SERVER_ERROR", status_code=500)

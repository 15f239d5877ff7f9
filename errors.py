"""
Domain exceptions for the EcoQuest backend.
These are raised by the storage layer, the hunt engine and the external
service wrappers, and are translated into HTTP responses in api/error_utils.py.
"""


class EcoQuestError(Exception):
    """Base class for all errors the API knows how to report."""
    error_code = "SERVER_ERROR"
    status_code = 500

    def __init__(self, message=None, details=None):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(EcoQuestError):
    """A user, hunt or stop does not exist."""
    error_code = "NOT_FOUND"
    status_code = 404


class RequestValidationError(EcoQuestError):
    """The caller sent missing or invalid input (for example an unknown theme)."""
    error_code = "VALIDATION_ERROR"
    status_code = 400


class InvariantViolation(EcoQuestError):
    """The request would break a hunt lifecycle rule."""
    error_code = "INVALID_STATE"
    status_code = 409


class ActiveHuntExists(InvariantViolation):
    error_code = "ACTIVE_HUNT_EXISTS"


class UpstreamFailure(EcoQuestError):
    """An external service (AI generation) failed or timed out."""
    error_code = "EXTERNAL_SERVICE_ERROR"
    status_code = 500

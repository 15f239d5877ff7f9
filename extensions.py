from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

limiter = Limiter(
    # The default key is the IP address of the user making the request.
    key_func=get_remote_address,
    # Storage and the on/off switch come from RATELIMIT_STORAGE_URI / RATELIMIT_ENABLED in app.config.
    default_limits=["1000 per day", "300 per hour"]
)

# Hunt generation may call the AI service, so it gets a tighter budget.
HUNT_CREATION_LIMIT = "10 per minute"
HINT_LIMIT = "30 per minute"

import datetime

import pytz
from flask import Blueprint, render_template_string, request

import dependencies
from dependencies import get_services

status_bp = Blueprint('status_bp', __name__)

# --- Helper Check Functions ---


def check_storage():
    """Checks that the configured storage backend answers a simple query."""
    return get_services()["storage"].health_check()


def check_redis():
    """Checks if the Redis server is responsive."""
    if not dependencies.REDIS_URL:
        return {"status": "OK", "details": "Redis is disabled; geocode caching is off."}
    redis_client = dependencies.redis_client()
    if not redis_client:
        return {"status": "ERROR", "details": "Redis is configured but unreachable."}
    try:
        redis_client.ping()
        return {"status": "OK", "details": "Ping successful."}
    except Exception as e:
        return {"status": "ERROR", "details": f"Failed to ping Redis server: {str(e)}"}


def check_hunt_generator():
    """Reports which generator is active and whether the AI generator has keys to use."""
    generator = get_services()["generator"]
    name = type(generator).__name__
    api_keys = getattr(generator, "api_keys", None)
    if api_keys is not None and not api_keys:
        return {"status": "ERROR", "details": f"{name} has no GEMINI_API_KEY environment variables."}
    if api_keys:
        return {"status": "OK", "details": f"{name} with {len(api_keys)} Gemini API key(s)."}
    return {"status": "OK", "details": f"{name} (no external calls)."}


def check_geocoder():
    return get_services()["geocoder"].health_check()


# --- HTML Template ---
STATUS_PAGE_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>EcoQuest Status</title>
    <style>
        body { font-family: system-ui, sans-serif; background: #eef5ee; color: #1f3b2c; margin: 0; }
        main { max-width: 760px; margin: 2rem auto; background: #fff; padding: 1.5rem; border-radius: 10px; }
        h1 { margin-top: 0; font-size: 1.6rem; }
        .overall { font-weight: 600; margin-bottom: 1rem; }
        table { width: 100%; border-collapse: collapse; }
        td, th { padding: 0.6rem; border-bottom: 1px solid #dfe9df; text-align: left; vertical-align: top; }
        .badge { display: inline-block; min-width: 3.5rem; text-align: center; padding: 0.2rem 0.5rem;
                 border-radius: 0.8rem; color: #fff; font-size: 0.85em; }
        .ok { background: #2e8b57; }
        .error { background: #c0392b; }
        .details { color: #5a6b60; font-size: 0.9em; }
    </style>
</head>
<body>
<main>
    <h1>EcoQuest Status</h1>
    <p class="overall">{{ 'All systems go' if healthy else 'Degraded' }} as of {{ timestamp }}</p>
    <table>
        <tr><th>Component</th><th>State</th><th>Details</th></tr>
        {% for name, result in checks.items() %}
        <tr>
            <td>{{ name }}</td>
            <td><span class="badge {{ 'ok' if result.status == 'OK' else 'error' }}">{{ result.status }}</span></td>
            <td class="details">{{ result.details }}</td>
        </tr>
        {% endfor %}
    </table>
</main>
</body>
</html>
"""


# --- Main Endpoint ---
@status_bp.route('/status')
def system_status():
    # Secure the endpoint with a secret key passed as a query parameter
    status_secret_key = get_services().get("status_secret_key")
    secret = request.args.get('secret')
    if not status_secret_key or secret != status_secret_key:
        return "Unauthorized", 401

    all_checks = {
        "Hunt Storage": check_storage(),
        "Redis Cache": check_redis(),
        "Hunt Generator": check_hunt_generator(),
        "Geocoder": check_geocoder(),
    }

    timestamp = datetime.datetime.now(pytz.utc).strftime('%Y-%m-%d %H:%M:%S %Z')
    healthy = all(check["status"] == "OK" for check in all_checks.values())
    page = render_template_string(STATUS_PAGE_TEMPLATE, checks=all_checks, timestamp=timestamp, healthy=healthy)
    return page, 200 if healthy else 503

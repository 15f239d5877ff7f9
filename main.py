# FILE: ecoquest-backend/main.py

import logging

from dotenv import load_dotenv
from flask import Flask

import dependencies
from logging_config import setup_logging
from extensions import limiter
from models import db

# --- SETUP & CONFIG ---
# Load environment variables for the Flask app process.
load_dotenv()


def create_app(config=None, storage=None, generator=None, geocoder=None, hint_provider=None):
    """
    Builds the Flask app. Any collaborator left as None is built from the environment
    (see dependencies.py); tests pass their own.
    """
    setup_logging()
    app = Flask(__name__)
    app.json.sort_keys = False

    app.config.update(
        SQLALCHEMY_DATABASE_URI=dependencies.DATABASE_URL,
        RATELIMIT_STORAGE_URI=dependencies.RATELIMIT_STORAGE_URI,
        RATELIMIT_ENABLED=dependencies.RATELIMIT_ENABLED,
        STATUS_SECRET_KEY=dependencies.STATUS_SECRET_KEY,
    )
    if config:
        app.config.update(config)

    # --- Initialize Extensions ---
    limiter.init_app(app)

    storage = storage or dependencies.build_storage()
    app.extensions["ecoquest"] = {
        "storage": storage,
        "generator": generator or dependencies.build_hunt_generator(),
        "geocoder": geocoder or dependencies.build_geocoder(),
        "hint_provider": hint_provider or dependencies.build_hint_provider(),
        "status_secret_key": app.config.get("STATUS_SECRET_KEY"),
    }

    from storage import DatabaseStorage
    if isinstance(storage, DatabaseStorage):
        db.init_app(app)
        with app.app_context():
            db.create_all()

    # --- Import and Register Blueprints ---
    from api.hunts import hunts_bp
    from api.users import users_bp
    from api.explore import explore_bp
    from api.status import status_bp
    from api.error_utils import register_error_handlers

    app.register_blueprint(hunts_bp, url_prefix='/hunts', strict_slashes=False)
    app.register_blueprint(users_bp, url_prefix='/users', strict_slashes=False)
    app.register_blueprint(explore_bp, url_prefix='/', strict_slashes=False)
    app.register_blueprint(status_bp, url_prefix='/', strict_slashes=False)

    # --- Global Error Handlers ---
    register_error_handlers(app)

    logging.info(f"EcoQuest app created with {type(storage).__name__} and "
                 f"{type(app.extensions['ecoquest']['generator']).__name__}.")
    return app


if __name__ == '__main__':
    create_app().run(debug=False)

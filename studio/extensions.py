# studio/extensions.py
from flask import current_app
from flask_cors import CORS

from .storage.json_database import JsonDatabase

# configured for /api/* in create_app
cors = CORS()


def init_database(app) -> JsonDatabase:
    """Open the JSON document configured for this app, one store per app."""
    database = JsonDatabase(app.config["DATABASE_PATH"])
    app.extensions["database"] = database
    return database


def get_database() -> JsonDatabase:
    return current_app.extensions["database"]

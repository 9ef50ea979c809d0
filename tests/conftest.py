"""
Shared test fixtures and configuration for the studio site tests.
"""
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient

from studio import create_app
from studio.config import Config
from studio.storage.json_database import JsonDatabase

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "s3cret-pass"


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Location of the JSON database file for one test."""
    return tmp_path / "data" / "site.json"


@pytest.fixture
def app(db_path: Path) -> Flask:
    """Create a Flask app backed by a throwaway database file."""

    class TestConfig(Config):
        TESTING = True
        DATABASE_PATH = db_path
        ADMIN_USERNAME = ADMIN_USERNAME
        ADMIN_PASSWORD = ADMIN_PASSWORD
        DISCORD_WEBHOOK_URL = None
        DISCORD_GUILD_ID = None
        SMTP_HOST = None
        NOTIFY_EMAIL = None
        SITE_URL = "https://example.test"

    app = create_app(TestConfig)
    yield app


@pytest.fixture
def client(app: Flask) -> FlaskClient:
    """Create a Flask test client."""
    return app.test_client()


@pytest.fixture
def database(app: Flask) -> JsonDatabase:
    """The store the app under test reads and writes."""
    return app.extensions["database"]


@pytest.fixture
def json_database(db_path: Path) -> JsonDatabase:
    """A standalone JsonDatabase on a temporary file."""
    return JsonDatabase(db_path)


@pytest.fixture
def admin_headers() -> dict:
    return {"X-Admin-Username": ADMIN_USERNAME, "X-Admin-Password": ADMIN_PASSWORD}


# Helper functions for tests

def make_submission(db: JsonDatabase, **overrides) -> dict:
    """Add a contact submission with sensible defaults."""
    fields = {
        "name": "Ann",
        "discord": "ann#1",
        "service": "custom-script",
        "message": "Hi",
    }
    fields.update(overrides)
    return db.add_submission(fields)

import os, sys
from dataclasses import replace

import pytest

# allow importing the app modules from the repo root
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app import create_app
from app_core.config import Settings
from models import db


@pytest.fixture()
def make_app(tmp_path):
    """Build an app on a temp sqlite file; extra kwargs override Settings fields."""
    apps = []

    def _make(**overrides):
        settings = Settings(
            secret_key="test",
            jwt_secret="test-jwt-secret",
            database_url=f"sqlite:///{tmp_path / f'test{len(apps)}.db'}",
            bcrypt_rounds=4,  # keep hashing fast
            log_level="WARNING",
            testing=True,
        )
        app = create_app(replace(settings, **overrides))
        apps.append(app)
        return app

    yield _make

    # teardown: close sessions and dispose engines to silence ResourceWarnings
    for app in apps:
        with app.app_context():
            db.session.remove()
            db.engine.dispose()


@pytest.fixture()
def app(make_app):
    return make_app()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def signup(client):
    """Register a user and return ready-to-use auth headers."""
    def _signup(username="alice", email=None, password="secret123"):
        r = client.post("/api/auth/register", json={
            "username": username,
            "email": email or f"{username}@example.com",
            "password": password,
        })
        assert r.status_code == 201, r.json
        return {"Authorization": f"Bearer {r.json['token']}"}
    return _signup


@pytest.fixture()
def add_movie(client):
    def _add(headers, title, description="Some description", **extra):
        r = client.post("/api/movies", headers=headers, json={"title": title, "description": description, **extra})
        assert r.status_code == 201, r.json
        return r.json["movie"]
    return _add

"""
Fixtures for HTTP-level tests.

The app is wired exactly like production (middleware, error handlers,
routers) but its lifespan hands in the mongomock database, the frozen clock
and the recording email provider instead of real connections.
"""

from contextlib import asynccontextmanager

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app import configure_app
from services.token_service import TokenService
from tests.support import DEFAULT_PASSWORD


@pytest.fixture
def app(settings, mongo_db, clock, email_provider) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.settings = settings
        app.state.db = mongo_db
        app.state.clock = clock
        # Access JWTs are checked against wall-clock time by PyJWT
        app.state.token_service = TokenService(settings.jwt)
        app.state.email_provider = email_provider
        yield

    return configure_app(FastAPI(lifespan=lifespan), settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def register(client):
    """Register through the API and return ``(user_json, auth_headers)``."""

    def _register(username: str = "alice", password: str = DEFAULT_PASSWORD):
        resp = client.post(
            "/api/auth/register",
            json={
                "username": username,
                "email": f"{username}@example.com",
                "password": password,
                "confirmPassword": password,
            },
        )
        assert resp.status_code == 201, resp.text
        body = resp.json()
        return body["user"], {"Authorization": f"Bearer {body['access_token']}"}

    return _register


@pytest.fixture
def admin(register, mongo_db):
    user, headers = register("root")
    mongo_db["users"].sync.update_one({"username": "root"}, {"$set": {"role": "admin"}})
    return user, headers

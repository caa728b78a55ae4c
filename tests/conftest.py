"""
Shared test configuration.

Patches dotenv so pydantic-settings never reads the project's real .env file
during tests. Tests control config exclusively through monkeypatch.setenv()
or explicit constructor arguments.
"""

import pytest

from tests.support import (
    FrozenClock,
    RecordingEmailProvider,
    make_settings,
    new_db,
)


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in all tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})


@pytest.fixture
def mongo_db():
    return new_db()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def email_provider() -> RecordingEmailProvider:
    return RecordingEmailProvider()


@pytest.fixture
def settings(disable_dotenv_loading):
    return make_settings()

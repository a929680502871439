"""Shared pytest fixtures."""

import pytest

from notifier.logging.context import clear_log_context
from notifier.persistence.database import close_database, init_database

PROVIDER_ENV_VARS = (
    "TWILIO_ACCOUNT_SID",
    "TWILIO_AUTH_TOKEN",
    "EXPO_ACCESS_TOKEN",
    "SMS_FROM_NUMBER",
    "LOG_LEVEL",
    "DATABASE_URL",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Strip provider variables a developer's .env may have exported."""
    for name in PROVIDER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Full set of valid provider credentials."""
    values = {
        "TWILIO_ACCOUNT_SID": "AC00000000000000000000000000000000",
        "TWILIO_AUTH_TOKEN": "test-auth-token",
        "SMS_FROM_NUMBER": "+15550100000",
        "EXPO_ACCESS_TOKEN": "expo-test-token",
    }
    for name, value in values.items():
        monkeypatch.setenv(name, value)
    return values


@pytest.fixture
def database(tmp_path):
    """Initialised SQLite database in a temp directory."""
    db_url = f"sqlite:///{tmp_path / 'notifications.db'}"
    init_database(db_url)
    yield db_url
    close_database()

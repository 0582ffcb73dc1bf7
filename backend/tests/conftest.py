"""
Central pytest configuration for the clinic test-suite.

Environment variables are set before any ``clinic`` module is imported so
module-level settings (timezone, database URL, secrets) pick up test values.
"""

import os
from datetime import datetime

import pytest

os.environ["TESTING"] = "true"
os.environ["TZ"] = "UTC"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key-with-at-least-32-chars"
os.environ["FLASK_SECRET_KEY"] = "test-flask-secret"
os.environ["LOG_TO_FILE"] = "false"
os.environ.pop("NEXT_APPOINTMENT_DEFAULT_TIME", None)
os.environ.pop("FOLLOW_UP_DEFAULT_TIME", None)
os.environ.pop("NORMALIZE_CPA_WITHOUT_SEDATION", None)
os.environ.pop("ADMIN_EMAIL", None)

from clinic.domain.defaults import default_configuration  # noqa: E402
from clinic.domain.entities import Actor  # noqa: E402


def pytest_collection_modifyitems(config, items):
    """Add markers based on test file location."""
    for item in items:
        path = str(item.fspath)
        if "unit" in path:
            item.add_marker(pytest.mark.unit)
        if "integration" in path:
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def doctor() -> Actor:
    return Actor(id="doc-1", role="doctor", name="Dr Martin")


@pytest.fixture
def other_doctor() -> Actor:
    return Actor(id="doc-2", role="doctor", name="Dr Bernard")


@pytest.fixture
def admin() -> Actor:
    return Actor(id="admin-1", role="admin", name="Admin")


@pytest.fixture
def configuration():
    return default_configuration()


@pytest.fixture
def now() -> datetime:
    """Fixed wall-clock instant used by temporal tests."""
    return datetime(2024, 3, 15, 12, 0)

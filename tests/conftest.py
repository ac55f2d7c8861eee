import os
import sys
from pathlib import Path

# Keep test output readable and independent of a developer's .env
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("YGG_PREFERRED_LANGUAGE", "en")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


from yggauth.app import create_app  # noqa: E402
from yggauth.config import Settings, reset_settings_cache  # noqa: E402
from yggauth.storage.memory import MemoryTokenAuthority  # noqa: E402

TEST_USERNAME = "steve@example.com"
TEST_PASSWORD = "Correct-Horse-9"
TEST_PROFILE = "Steve"


@pytest.fixture(autouse=True)
def reset_settings_state():
    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture
def settings():
    return Settings(preferred_language="en", server_name="yggauth-test")


@pytest.fixture
def authority(settings):
    return MemoryTokenAuthority(preferred_language=settings.preferred_language)


@pytest.fixture
def seeded_user(authority):
    """A user with one profile; returns (user_id, profile)."""
    user_id = authority.register_user(TEST_USERNAME, TEST_PASSWORD)
    profile = authority.register_profile(user_id, TEST_PROFILE)
    return user_id, profile


@pytest.fixture
def app(authority, settings):
    return create_app(authority, settings)


@pytest.fixture
def client(app):
    return TestClient(app)

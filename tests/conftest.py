import sys
from pathlib import Path

import pytest

# Modules live flat under src/, the same way run.py loads them.
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT / "tests"))

from config import Settings  # noqa: E402
from identity import IdentityFactory  # noqa: E402

from fakes import FakeAuthApp, FakeBrowser, FakePage  # noqa: E402

BASE_URL = "http://app.test"


@pytest.fixture
def settings():
    """Short timeouts so failing waits finish quickly."""
    return Settings(
        base_url=BASE_URL,
        nav_timeout_ms=500,
        submit_timeout_ms=500,
        action_timeout_ms=200,
        assert_timeout_ms=200,
        poll_interval_ms=10,
        scenario_timeout_ms=5000,
        screenshot_delay_ms=0,
    )


@pytest.fixture
def identities():
    return IdentityFactory(namespace="pytest")


@pytest.fixture
def app():
    return FakeAuthApp(base_url=BASE_URL)


@pytest.fixture
def page(app):
    return FakePage(app)


@pytest.fixture
def browser(app):
    return FakeBrowser(app)

"""Shared test fixtures for the style assistant."""

import pytest

from style_assistant.catalog.store import CatalogStore
from style_assistant.config import Settings
from style_assistant.main import build_session

_ZERO_DELAYS = {
    "thinking_step_delay": 0,
    "thinking_settle_delay": 0,
    "response_delay": 0,
    "filter_response_delay": 0,
    "filter_advance_delay": 0,
    "payment_processing_delay": 0,
    "order_confirmation_delay": 0,
}


def make_settings(**overrides):
    """Create test settings with every delay zeroed unless overridden."""
    values = {"environment": "testing", "ecommerce_mode": "full", **_ZERO_DELAYS}
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(scope="session")
def store():
    """The bundled catalog, loaded once."""
    return CatalogStore.load()


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def session(settings, store):
    return build_session(settings, store=store)


@pytest.fixture
def dress(store):
    return store.get("d1")


@pytest.fixture
def settings_factory():
    """Build settings with zeroed delays plus the given overrides."""
    return make_settings

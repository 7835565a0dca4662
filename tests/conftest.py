"""Pytest configuration and shared fixtures."""
from datetime import datetime, timezone

import pytest

from docstate import (
    InMemoryConnection,
    ModelRegistry,
    configure,
    get_event_hub,
    register_connection,
    reset_config,
)

FIXED_NOW = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def reset_framework_state():
    """Start every test with empty registries, no listeners and default config."""
    ModelRegistry.clear()
    get_event_hub().clear()
    reset_config()

    yield

    ModelRegistry.clear()
    get_event_hub().clear()
    reset_config()


@pytest.fixture
def connection():
    """In-memory storage registered as the default connection."""
    conn = InMemoryConnection()
    register_connection("default", conn, default=True)
    return conn


@pytest.fixture
def frozen_clock():
    """Make timestamping deterministic."""
    configure(clock=lambda: FIXED_NOW)
    return FIXED_NOW

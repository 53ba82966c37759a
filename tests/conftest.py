"""
Shared fixtures.
"""

import pytest

from decksmith.config import Settings
from decksmith.store import JobStore, MemoryStorage
from fakes import FakeImageClient


@pytest.fixture
def settings():
    """Settings with no model key, independent of the environment."""
    return Settings(gemini_api_key=None, database_url="sqlite://")


@pytest.fixture
def image_client():
    return FakeImageClient()


@pytest.fixture
def store():
    return JobStore(MemoryStorage())

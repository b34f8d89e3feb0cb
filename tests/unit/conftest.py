"""Shared test fixtures."""

import pytest

from structured_editor.config import COMMUNITY_PROFILE
from structured_editor.session import EditingSession
from tests.unit.fakes import FakeMediaStore, FakePersistence


@pytest.fixture
def store() -> FakeMediaStore:
    return FakeMediaStore()


@pytest.fixture
def persistence(store: FakeMediaStore) -> FakePersistence:
    return FakePersistence(store)


@pytest.fixture
def session(store: FakeMediaStore, persistence: FakePersistence) -> EditingSession:
    """A new community post with a category and title already chosen."""
    return EditingSession.new(
        COMMUNITY_PROFILE,
        store,
        persistence,
        metadata={"category": "FREE", "title": "First post"},
    )

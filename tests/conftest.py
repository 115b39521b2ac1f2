"""
conftest.py
-----------
Shared pytest fixtures for the mood calendar tests.
"""
from datetime import datetime, timezone

import pytest

from database import MemoryBlobStore
from schemas import MoodEntry
from store import EntryStore
from views import GridViewModel


@pytest.fixture
def blobs():
    """Empty in-memory blob store."""
    return MemoryBlobStore()


@pytest.fixture
def store(blobs):
    """Entry store over the in-memory blobs, nothing loaded yet."""
    return EntryStore(blobs)


@pytest.fixture
def grid(store):
    return GridViewModel(store)


@pytest.fixture
def make_entry():
    """Factory for entries on a given day of October 2024."""
    def _make(day=1, rating=3, notes="", hour=12):
        return MoodEntry(
            date=datetime(2024, 10, day, hour, tzinfo=timezone.utc),
            rating=rating,
            notes=notes,
        )
    return _make

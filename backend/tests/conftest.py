"""Pytest fixtures for note store, service and API tests."""

import pytest

from domains.core import reset_service_registry
from domains.note_hub import NoteDraft, NoteService, NoteStore


@pytest.fixture
def data_dir(tmp_path):
    """Directory holding the notes box file (created lazily by the store)."""
    return tmp_path / "data"


@pytest.fixture
async def store(data_dir):
    """An initialized NoteStore backed by a fresh box file."""
    note_store = NoteStore(data_dir=data_dir)
    await note_store.initialize()
    yield note_store
    note_store.close()


@pytest.fixture
def service(store):
    return NoteService(store)


@pytest.fixture
def make_draft():
    """Factory for drafts with a fixed timestamp unless one is given."""
    def _make(title="Meeting", content="Discussed the timeline", created_at="2024-01-01 10:00:00", **kwargs):
        return NoteDraft(title=title, content=content, created_at=created_at, **kwargs)
    return _make


@pytest.fixture(autouse=True)
def _fresh_registry():
    reset_service_registry()
    yield
    reset_service_registry()

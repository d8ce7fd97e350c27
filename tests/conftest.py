import pytest
import structlog

from keepnote.config import get_settings
from keepnote.identity import LocalIdentityProvider
from keepnote.service import NoteService
from keepnote.store import InMemoryNoteStore


@pytest.fixture(autouse=True)
def reset_structlog():
    """The CLI configures structlog against the captured stderr of one test."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def memory_store():
    return InMemoryNoteStore()


@pytest.fixture
def identity():
    """A local identity provider with its user already signed in."""
    provider = LocalIdentityProvider(uid="alice")
    provider.sign_in()
    return provider


@pytest.fixture
def service(memory_store, identity):
    return NoteService(memory_store, identity)


@pytest.fixture
def store_path(tmp_path, monkeypatch):
    """Points the configured note store at a temporary file."""
    path = tmp_path / "notes.json"
    monkeypatch.setenv("KEEPNOTE_STORE__PATH", str(path))
    monkeypatch.setenv("KEEPNOTE_DEFAULT_USER", "alice")
    get_settings.cache_clear()
    yield path
    get_settings.cache_clear()

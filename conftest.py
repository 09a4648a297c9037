"""
Pytest configuration and shared fixtures.

Each test gets its own data file under tmp_path. Settings are read from the
environment, so fixtures set the variables and clear the settings cache
before the app starts.
"""

import json
import logging

import pytest
from fastapi.testclient import TestClient

from msgboard.config import get_settings
from msgboard.logging_utils import setup_logging
from msgboard.main import app
from msgboard.messages import MessageService
from msgboard.storage import MessageStore
from msgboard.utils import MessageIdGenerator

get_settings.cache_clear()


@pytest.fixture
def data_file(tmp_path, monkeypatch):
    """Point the app at a fresh, not yet created, data file."""
    path = tmp_path / "data" / "messages.json"
    monkeypatch.setenv("DATA_FILE", str(path))
    monkeypatch.delenv("READ_FAILURE_POLICY", raising=False)
    get_settings.cache_clear()
    yield path
    get_settings.cache_clear()


@pytest.fixture
def client(data_file):
    """Test client running the app lifespan against `data_file`."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def fail_closed_client(data_file, monkeypatch):
    """Test client whose store surfaces read failures instead of hiding them."""
    monkeypatch.setenv("READ_FAILURE_POLICY", "fail_closed")
    get_settings.cache_clear()
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def store(tmp_path):
    """Initialized store with an empty collection."""
    store = MessageStore(tmp_path / "messages.json")
    store.init()
    return store


@pytest.fixture
def service(store):
    """Service with its own id generator so tests don't share id state."""
    return MessageService(store, ids=MessageIdGenerator())


@pytest.fixture
def json_stdout(capsys):
    """
    Install the app's logging on the captured stdout.

    Yields a function returning the JSON lines written so far. The
    previous handlers are put back afterwards.
    """
    names = ["", "uvicorn", "uvicorn.error", "uvicorn.access"]
    saved = {name: logging.getLogger(name).handlers[:] for name in names}
    level = logging.getLogger().level

    setup_logging("INFO")

    def lines():
        out = capsys.readouterr().out
        return [json.loads(line) for line in out.splitlines() if line.startswith("{")]

    yield lines

    for name, handlers in saved.items():
        logging.getLogger(name).handlers = handlers
    logging.getLogger().setLevel(level)

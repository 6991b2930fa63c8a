from unittest.mock import MagicMock

import pytest
from starlette.testclient import TestClient

from stream_relay_api.core.config import Settings
from stream_relay_api.main import create_app
from stream_relay_api.services.relay import MediaMTXClient
from stream_relay_api.services.store import StreamStore
from stream_relay_api.services.streams import StreamService


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "data" / "streams.json"


@pytest.fixture
def store(store_path):
    return StreamStore(store_path)


@pytest.fixture
def relay():
    client = MagicMock(spec=MediaMTXClient)
    client.list_live_paths.return_value = {}
    client.ping.return_value = True
    return client


@pytest.fixture
def service(store, relay):
    return StreamService(store, relay)


@pytest.fixture
def settings(store_path, tmp_path):
    return Settings(store_path=str(store_path), web_dir=str(tmp_path / "web"))


@pytest.fixture
def test_app(settings, store, relay):
    app = create_app(settings, store=store, relay=relay, start_reconciler=False)
    with TestClient(app) as client:
        yield client

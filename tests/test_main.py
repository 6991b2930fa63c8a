import json
import logging
from unittest.mock import patch

from starlette.testclient import TestClient

from stream_relay_api.core.config import Settings
from stream_relay_api.core.logging import setup_logging
from stream_relay_api.main import create_app
from stream_relay_api.services.reconciler import ReconcilerState
from stream_relay_api.services.relay import MediaMTXClient
from stream_relay_api.services.store import StreamStore


def test_lifespan_builds_components_and_restores(tmp_path):
    store_path = tmp_path / "streams.json"
    store_path.write_text(json.dumps([{"name": "cam1", "rtspUrl": "rtsp://10.0.0.5/s", "label": "Lobby"}]))
    settings = Settings(store_path=str(store_path), web_dir=str(tmp_path / "web"), restore_interval=0.01)

    with patch.object(MediaMTXClient, "ping", return_value=True), patch.object(
        MediaMTXClient, "register_path"
    ) as register:
        app = create_app(settings)
        with TestClient(app):
            assert isinstance(app.state.store, StreamStore)
            assert isinstance(app.state.relay, MediaMTXClient)
            app.state.reconciler._thread.join(2.0)
            assert app.state.reconciler.state is ReconcilerState.DONE

    register.assert_called_once_with("cam1", "rtsp://10.0.0.5/s")


def test_web_dir_is_served(tmp_path, store, relay):
    web_dir = tmp_path / "web"
    web_dir.mkdir()
    (web_dir / "index.html").write_text("<h1>streams</h1>")
    settings = Settings(store_path=str(tmp_path / "streams.json"), web_dir=str(web_dir))

    app = create_app(settings, store=store, relay=relay, start_reconciler=False)
    with TestClient(app) as client:
        assert "streams" in client.get("/").text
        assert client.get("/api/streams").json()["success"] is True


def test_log_level_comes_from_settings(tmp_path):
    settings = Settings(store_path=str(tmp_path / "streams.json"), web_dir=str(tmp_path / "web"), log_level="WARNING")
    try:
        create_app(settings, start_reconciler=False)
        assert logging.getLogger().level == logging.WARNING
        assert logging.getLogger("urllib3").level == logging.WARNING
    finally:
        setup_logging("INFO")


def test_log_level_from_dotenv(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("LOG_LEVEL=DEBUG\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("LOG_LEVEL", "")
    monkeypatch.delenv("LOG_LEVEL")
    monkeypatch.setenv("STORE_PATH", str(tmp_path / "streams.json"))
    try:
        app = create_app(start_reconciler=False)
        assert app.state.settings.log_level == "DEBUG"
        assert logging.getLogger().level == logging.DEBUG
    finally:
        setup_logging("INFO")


def test_setup_logging_replaces_only_its_handler():
    root = logging.getLogger()
    foreign = logging.NullHandler()
    root.addHandler(foreign)
    try:
        setup_logging("INFO")
        setup_logging("bogus")
        ours = [h for h in root.handlers if h.get_name() == "stream_relay_api"]
        assert len(ours) == 1
        assert foreign in root.handlers
        assert root.level == logging.INFO
    finally:
        root.removeHandler(foreign)

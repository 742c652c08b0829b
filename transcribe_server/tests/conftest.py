"""Shared fixtures: isolated config, migrated store, fake provider, API client."""

from pathlib import Path
from typing import Optional

import pytest
import yaml
from fastapi.testclient import TestClient

from transcribe_server.api.main import create_app
from transcribe_server.config import ServerConfig
from transcribe_server.core.provider import SpeechProvider
from transcribe_server.database.store import TranscriptStore
from transcribe_server.logging import reset_logging

ALLOWED_ORIGIN = "http://localhost:5173"

_ENV_OVERRIDES = (
    "DATABASE_URL",
    "DEEPGRAM_API_KEY",
    "CORS_ORIGINS",
    "PORT",
    "DATA_DIR",
    "TRANSCRIBE_SERVER_CONFIG",
)


class FakeProvider(SpeechProvider):
    """Provider double that records calls and returns a canned transcript."""

    def __init__(self, transcript: str = "hello world") -> None:
        self.transcript = transcript
        self.error: Optional[Exception] = None
        self.calls: list[bytes] = []
        self.closed = False

    async def transcribe(self, audio: bytes) -> str:
        self.calls.append(audio)
        if self.error is not None:
            raise self.error
        return self.transcript

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    data = {
        "server": {
            "port": 5050,
            "cors_origins": [ALLOWED_ORIGIN],
            "upload_dir": str(tmp_path / "uploads"),
        },
        "database": {"path": str(tmp_path / "database" / "transcripts.db")},
        "provider": {"name": "deepgram", "api_key": "test-key"},
        "logging": {
            "level": "DEBUG",
            "directory": str(tmp_path / "logs"),
            "console_output": False,
        },
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


@pytest.fixture
def server_config(config_file: Path) -> ServerConfig:
    return ServerConfig(config_file)


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def store(tmp_path: Path):
    transcript_store = TranscriptStore(tmp_path / "store" / "transcripts.db")
    transcript_store.open()
    yield transcript_store
    transcript_store.close()


@pytest.fixture
def client(server_config: ServerConfig, fake_provider: FakeProvider):
    app = create_app(server_config, provider=fake_provider)
    with TestClient(app) as test_client:
        yield test_client
    reset_logging()

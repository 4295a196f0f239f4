"""Shared pytest fixtures for Voice Notes Pipeline tests.

ffmpeg and Deepgram are never called for real: subprocess.run and
requests.post are mocked by the fixtures below.
"""

import io
import json
import subprocess
import wave
from pathlib import Path
from unittest import mock

import pytest
from fastapi.testclient import TestClient

from app.db import NoteStore

WEBM_HEADER = b"\x1a\x45\xdf\xa3"


def _make_wav(channels: int = 2, sample_rate: int = 48000, sampwidth: int = 3, frames: int = 480) -> bytes:
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(sampwidth)
        wf.setframerate(sample_rate)
        wf.writeframes(b"\x00" * frames * channels * sampwidth)
    return buf.getvalue()


@pytest.fixture
def wav_bytes():
    """10ms of silence in the canonical format (48 kHz, stereo, 24-bit)."""
    return _make_wav()


@pytest.fixture
def webm_bytes():
    """Synthetic buffer carrying the WebM/EBML magic number."""
    return WEBM_HEADER + b"\x9f\x42\x86\x81\x01" + b"\x00" * 59


@pytest.fixture
def note_store(tmp_path):
    """An open NoteStore backed by a temporary SQLite file."""
    store = NoteStore(tmp_path / "test.db").open()
    yield store
    store.close()


@pytest.fixture
def fake_ffmpeg():
    """Factory for subprocess.run side effects imitating ffmpeg.

    On success the fake writes `output` to the last argument (the output
    path). Every call's argument list is recorded in `calls`.
    """

    def factory(output: bytes = b"", returncode: int = 0, stderr: bytes = b""):
        calls: list[list[str]] = []

        def run(cmd, **kwargs):
            calls.append(list(cmd))
            if returncode == 0:
                Path(cmd[-1]).write_bytes(output)
            return subprocess.CompletedProcess(cmd, returncode, stdout=b"", stderr=stderr)

        run.calls = calls
        return run

    return factory


@pytest.fixture
def deepgram_response():
    """Factory for mocked requests.Response objects from Deepgram."""

    def factory(transcript: str | None = "hello world", confidence: float = 0.92, status_code: int = 200, payload=None):
        if payload is None:
            payload = {
                "results": {
                    "channels": [
                        {"alternatives": [{"transcript": transcript, "confidence": confidence}]}
                    ]
                }
            }
        resp = mock.Mock()
        resp.status_code = status_code
        resp.text = json.dumps(payload)
        resp.json.return_value = payload
        return resp

    return factory


@pytest.fixture
def api_dirs(tmp_path, monkeypatch):
    """Point the API at a temporary database and recordings directory."""
    db_path = tmp_path / "data" / "notes.db"
    recordings_dir = tmp_path / "recordings"
    monkeypatch.setattr("services.transcribe_api.main.DB_PATH", db_path)
    monkeypatch.setattr("services.transcribe_api.main.RECORDINGS_DIR", recordings_dir)
    monkeypatch.setenv("DEEPGRAM_API_KEY", "test-key")
    return db_path, recordings_dir


@pytest.fixture
def client(api_dirs):
    """FastAPI test client running the real lifespan against temp paths.

    Yields:
        tuple: (test_client, recordings_dir)
    """
    from services.transcribe_api.main import app

    _, recordings_dir = api_dirs
    with TestClient(app) as test_client:
        yield test_client, recordings_dir
    app.dependency_overrides.clear()

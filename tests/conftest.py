import threading
from pathlib import Path
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from clipconvert.core.config import Settings
from clipconvert.core.errors import TranscodeError
from clipconvert.main import create_app
from clipconvert.services.transcode_service import TranscodeResult

FAKE_MP4 = b"\x00\x00\x00\x18ftypmp42fake-mp4-payload"


class FakeTranscoder:
    """Stands in for ffmpeg: writes a small file, or fails, optionally after waiting on a gate."""

    def __init__(self, fail: bool = False, gate: Optional[threading.Event] = None, partial_output: bool = False):
        self.fail = fail
        self.gate = gate
        self.partial_output = partial_output
        self.calls = []

    def transcode(self, input_path, output_path, profile):
        self.calls.append((input_path, output_path, profile))
        if self.gate is not None:
            assert self.gate.wait(timeout=5), "test never released the transcode gate"
        if self.fail:
            if self.partial_output:
                Path(output_path).write_bytes(b"half-written")
            raise TranscodeError("FFmpeg failed with code 1", stderr="Invalid data found when processing input")
        Path(output_path).write_bytes(FAKE_MP4)
        return TranscodeResult(output_path=str(output_path), output_size=len(FAKE_MP4))

    def is_available(self) -> bool:
        return True


@pytest.fixture
def settings(tmp_path):
    public_dir = tmp_path / "public"
    return Settings(
        upload_dir=tmp_path / "uploads",
        public_dir=public_dir,
        video_dir=public_dir / "videos",
        sweep_interval_seconds=3600,
    )


@pytest.fixture
def make_client(settings):
    """Build an app around a given fake transcoder and enter its lifespan."""
    clients = []

    def _make(transcoder=None):
        app = create_app(settings=settings, transcoder=transcoder or FakeTranscoder())
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return app, client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)

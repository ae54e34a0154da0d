from pathlib import Path

import pytest

from media_core.errors import TranscriptionServiceError
from media_core.ffmpeg import ToolResult
from media_core.models import Transcript
from media_core.settings import PipelineSettings


@pytest.fixture()
def settings(tmp_path) -> PipelineSettings:
    return PipelineSettings(
        work_dir=tmp_path / "work",
        public_dir=tmp_path / "public",
        public_url_prefix="/files",
        assemblyai_api_key="test-key",
        assemblyai_base_url="https://aai.test/v2",
        poll_interval=0.01,
        max_wait=1.0,
    )


@pytest.fixture()
def mp4_upload(tmp_path) -> Path:
    path = tmp_path / "ingest" / "clip.mp4"
    path.parent.mkdir(parents=True)
    path.write_bytes(b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 64)
    return path


class FakeRunner:
    """Stands in for ffmpeg: records argv and writes the output file."""

    def __init__(self, size: int = 2048, returncode: int = 0, stderr: str = "", write: bool = True):
        self.size = size
        self.returncode = returncode
        self.stderr = stderr
        self.write = write
        self.calls: list[list[str]] = []

    async def __call__(self, args) -> ToolResult:
        self.calls.append(list(args))
        if self.write:
            Path(args[-1]).write_bytes(b"\x00" * self.size)
        return ToolResult(returncode=self.returncode, stderr=self.stderr)


class FakeTranscriber:
    def __init__(self, text: str | None = "", error: Exception | None = None):
        self.text = text
        self.error = error
        self.submitted: list[Path] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None

    async def submit(self, audio_path):
        if self.error is not None:
            raise self.error
        self.submitted.append(Path(audio_path))
        return "job-1"

    async def await_completion(self, job_id, poll_interval=5.0, max_wait=1800.0):
        return Transcript(text=self.text)


@pytest.fixture()
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture()
def unreachable_error() -> TranscriptionServiceError:
    return TranscriptionServiceError("upload request failed (ConnectError: connection refused)")

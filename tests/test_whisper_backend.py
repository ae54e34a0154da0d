import asyncio
from dataclasses import replace
from pathlib import Path
from types import SimpleNamespace

import httpx
import openai
import pytest

from media_core.errors import TranscriptionServiceError
from media_core.ffmpeg import ToolResult
from media_core.models import JobStatus
from media_core.whisper_backend import WhisperApiBackend


class FakeOpenAI:
    def __init__(self, texts=None, error: Exception | None = None):
        self.texts = list(texts or [])
        self.error = error
        self.files: list[str] = []
        self.closed = False
        self.audio = SimpleNamespace(transcriptions=SimpleNamespace(create=self._create))

    async def _create(self, *, model, file, language, response_format):
        assert response_format == "text"
        self.files.append(Path(file.name).name)
        if self.error is not None:
            raise self.error
        return self.texts.pop(0)

    async def close(self):
        self.closed = True


@pytest.fixture()
def openai_settings(settings):
    return replace(settings, transcribe_backend="openai", openai_api_key="sk-test")


@pytest.fixture()
def audio_file(tmp_path):
    path = tmp_path / "clip.audio.mp3"
    path.write_bytes(b"\x00" * 100)
    return path


@pytest.mark.asyncio
async def test_small_file_is_sent_in_one_request(openai_settings, audio_file) -> None:
    fake = FakeOpenAI(texts=["hola mundo\n"])
    async with WhisperApiBackend(openai_settings, client=fake) as backend:
        job_id = await backend.submit(audio_file)
        transcript = await backend.await_completion(job_id, max_wait=1)

    assert transcript.text == "hola mundo"
    assert fake.files == ["clip.audio.mp3"]
    assert backend.jobs[job_id].status is JobStatus.COMPLETED
    assert not fake.closed


@pytest.mark.asyncio
async def test_own_client_is_closed_on_exit(openai_settings, audio_file, monkeypatch) -> None:
    fake = FakeOpenAI(texts=["hola"])
    monkeypatch.setattr("media_core.whisper_backend.AsyncOpenAI", lambda **kwargs: fake)

    async with WhisperApiBackend(openai_settings) as backend:
        job_id = await backend.submit(audio_file)
        await backend.await_completion(job_id, max_wait=1)

    assert fake.closed


@pytest.mark.asyncio
async def test_exit_cancels_and_awaits_pending_jobs(openai_settings, audio_file) -> None:
    started = asyncio.Event()

    async def runner(args):
        started.set()
        await asyncio.Event().wait()

    capped = replace(openai_settings, openai_max_upload_bytes=10)
    async with WhisperApiBackend(capped, client=FakeOpenAI(), runner=runner) as backend:
        job_id = await backend.submit(audio_file)
        await started.wait()

    task = backend._tasks[job_id]
    assert task.done() and task.cancelled()


@pytest.mark.asyncio
async def test_large_file_is_split_and_joined_in_order(openai_settings, audio_file) -> None:
    calls = []

    async def runner(args):
        calls.append(list(args))
        out_dir = Path(args[-1]).parent
        for i in range(3):
            (out_dir / f"clip.audio_chunk_{i:03d}.mp3").write_bytes(b"\x00")
        return ToolResult(returncode=0, stderr="")

    fake = FakeOpenAI(texts=["uno", "dos", "tres"])
    capped = replace(openai_settings, openai_max_upload_bytes=10, openai_chunk_seconds=300)
    async with WhisperApiBackend(capped, client=fake, runner=runner) as backend:
        job_id = await backend.submit(audio_file)
        transcript = await backend.await_completion(job_id, max_wait=1)

    assert transcript.text == "uno\ndos\ntres"
    assert fake.files == [f"clip.audio_chunk_{i:03d}.mp3" for i in range(3)]
    assert calls[0][calls[0].index("-segment_time") + 1] == "300"


@pytest.mark.asyncio
async def test_api_failure_becomes_service_error(openai_settings, audio_file) -> None:
    error = openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/audio"))
    fake = FakeOpenAI(error=error)
    async with WhisperApiBackend(openai_settings, client=fake) as backend:
        job_id = await backend.submit(audio_file)
        with pytest.raises(TranscriptionServiceError):
            await backend.await_completion(job_id, max_wait=1)
    assert backend.jobs[job_id].status is JobStatus.FAILED


@pytest.mark.asyncio
async def test_missing_key_is_a_service_error(settings, audio_file) -> None:
    backend = WhisperApiBackend(replace(settings, openai_api_key=""))
    with pytest.raises(TranscriptionServiceError):
        await backend.submit(audio_file)

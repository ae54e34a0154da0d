# media_core/transcription.py

"""
Hosted transcription backends.

Every backend exposes the same two coroutines:

    submit(audio_path) -> job_id
    await_completion(job_id, poll_interval, max_wait) -> Transcript

and is used as an async context manager so its HTTP client lives exactly as
long as one pipeline run.
"""

import asyncio
import logging
from pathlib import Path
from typing import AsyncIterator, Protocol

import httpx

from .errors import TranscriptionFailed, TranscriptionServiceError, TranscriptionTimeout
from .models import JobStatus, Transcript, TranscriptionJob
from .settings import PipelineSettings

logger = logging.getLogger(__name__)

UPLOAD_CHUNK_BYTES = 5 * 1024 * 1024


class TranscriptionBackend(Protocol):
    async def submit(self, audio_path: Path) -> str: ...

    async def await_completion(self, job_id: str, poll_interval: float, max_wait: float) -> Transcript: ...

    async def __aenter__(self): ...

    async def __aexit__(self, *exc_info): ...


async def _file_chunks(path: Path, chunk_size: int = UPLOAD_CHUNK_BYTES) -> AsyncIterator[bytes]:
    with open(path, "rb") as fh:
        while True:
            chunk = await asyncio.to_thread(fh.read, chunk_size)
            if not chunk:
                break
            yield chunk


class AssemblyAIClient:
    """
    Client for AssemblyAI's asynchronous transcript API.

    Job status is only ever taken from what the service reports; a failed
    HTTP call is an error of its own, never "still processing".
    """

    def __init__(self, settings: PipelineSettings, client: httpx.AsyncClient | None = None):
        self.settings = settings
        self.base_url = settings.assemblyai_base_url.rstrip("/")
        self._client = client
        self._owns_client = client is None
        self.jobs: dict[str, TranscriptionJob] = {}

    async def __aenter__(self) -> "AssemblyAIClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.settings.http_timeout))
        return self._client

    def _headers(self, **extra: str) -> dict:
        if not self.settings.assemblyai_api_key:
            raise TranscriptionServiceError("ASSEMBLYAI_API_KEY is not configured")
        return {"authorization": self.settings.assemblyai_api_key, **extra}

    async def _request(self, step: str, method: str, path: str, **kwargs) -> dict:
        try:
            resp = await self._get_client().request(method, f"{self.base_url}{path}", **kwargs)
        except httpx.HTTPError as e:
            raise TranscriptionServiceError(f"{step} request failed ({e.__class__.__name__}: {e})") from e

        if not resp.is_success:
            raise TranscriptionServiceError(f"{step} failed", status_code=resp.status_code, body=resp.text)
        try:
            data = resp.json()
        except ValueError as e:
            raise TranscriptionServiceError(f"{step} returned invalid JSON", status_code=resp.status_code, body=resp.text) from e
        if not isinstance(data, dict):
            raise TranscriptionServiceError(f"{step} returned unexpected JSON", status_code=resp.status_code, body=resp.text)
        return data

    # --- submission ---

    async def upload(self, audio_path: Path) -> str:
        audio_path = Path(audio_path)
        if not audio_path.is_file():
            raise TranscriptionServiceError(f"Audio file not found: {audio_path}")

        data = await self._request(
            "upload",
            "POST",
            "/upload",
            headers=self._headers(**{"content-type": "application/octet-stream"}),
            content=_file_chunks(audio_path),
        )
        upload_url = data.get("upload_url")
        if not upload_url:
            raise TranscriptionServiceError("upload response carried no upload_url", body=str(data))
        return upload_url

    async def create_job(self, audio_url: str) -> TranscriptionJob:
        payload = {
            "audio_url": audio_url,
            "language_code": self.settings.language_code,
            "language_detection": False,
            "punctuate": True,
        }
        data = await self._request("create transcript", "POST", "/transcript", headers=self._headers(), json=payload)
        job_id = data.get("id")
        if not job_id:
            raise TranscriptionServiceError("create transcript response carried no id", body=str(data))

        job = TranscriptionJob(job_id=job_id, status=JobStatus.from_service(data.get("status")) or JobStatus.QUEUED)
        self.jobs[job_id] = job
        return job

    async def submit(self, audio_path: Path) -> str:
        upload_url = await self.upload(audio_path)
        job = await self.create_job(upload_url)
        logger.info("[transcribe] submitted %s as job %s", Path(audio_path).name, job.job_id)
        return job.job_id

    # --- polling ---

    async def fetch_status(self, job_id: str) -> dict:
        data = await self._request("get transcript", "GET", f"/transcript/{job_id}", headers=self._headers())
        status = JobStatus.from_service(data.get("status"))
        job = self.jobs.setdefault(job_id, TranscriptionJob(job_id=job_id))
        if status is None:
            logger.warning("[transcribe] job %s reported unknown status %r", job_id, data.get("status"))
        elif status != job.status:
            logger.info("[transcribe] job %s: %s -> %s", job_id, job.status.value, status.value)
            job.status = status
        return data

    async def _poll(self, job_id: str, poll_interval: float) -> Transcript:
        while True:
            data = await self.fetch_status(job_id)
            status = self.jobs[job_id].status
            if status is JobStatus.COMPLETED:
                return Transcript(text=data.get("text") or "")
            if status is JobStatus.FAILED:
                raise TranscriptionFailed(job_id, data.get("error") or "service reported an error without detail")
            await asyncio.sleep(poll_interval)

    async def await_completion(
        self,
        job_id: str,
        poll_interval: float = 5.0,
        max_wait: float = 30 * 60.0,
    ) -> Transcript:
        try:
            return await asyncio.wait_for(self._poll(job_id, poll_interval), timeout=max_wait)
        except asyncio.TimeoutError as e:
            # abandoned locally; the service-side job keeps running
            raise TranscriptionTimeout(job_id, max_wait) from e


def build_transcriber(settings: PipelineSettings) -> TranscriptionBackend:
    """Backend chosen by TRANSCRIBE_BACKEND."""
    if settings.transcribe_backend == "openai":
        from .whisper_backend import WhisperApiBackend

        return WhisperApiBackend(settings)
    return AssemblyAIClient(settings)

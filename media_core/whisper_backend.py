# media_core/whisper_backend.py

import asyncio
import logging
import shutil
import tempfile
from pathlib import Path
from uuid import uuid4

import openai
from openai import AsyncOpenAI

from .errors import TranscriptionFailed, TranscriptionServiceError, TranscriptionTimeout
from .ffmpeg import resolve_ffmpeg_bin, run_tool
from .models import JobStatus, Transcript, TranscriptionJob
from .settings import PipelineSettings

logger = logging.getLogger(__name__)


class WhisperApiBackend:
    """
    Direct OpenAI transcription behind the same submit/await_completion interface.

    The API caps request size, so audio above `openai_max_upload_bytes` is cut
    into fixed-length chunks with ffmpeg and transcribed one chunk at a time.
    There is no remote job: `submit` starts a local task and the job id is ours.
    """

    def __init__(self, settings: PipelineSettings, client: AsyncOpenAI | None = None, runner=run_tool):
        self.settings = settings
        self.runner = runner
        self._client = client
        self._owns_client = client is None
        self.jobs: dict[str, TranscriptionJob] = {}
        self._tasks: dict[str, asyncio.Task] = {}

    async def __aenter__(self) -> "WhisperApiBackend":
        return self

    async def __aexit__(self, *exc_info) -> None:
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if self._owns_client and self._client is not None:
            await self._client.close()

    def _get_openai(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.settings.openai_api_key:
                raise TranscriptionServiceError("OPENAI_API_KEY is not configured")
            self._client = AsyncOpenAI(api_key=self.settings.openai_api_key, timeout=self.settings.http_timeout)
        return self._client

    # --- chunking ---

    async def split(self, audio_path: Path, out_dir: Path) -> list[Path]:
        if audio_path.stat().st_size <= self.settings.openai_max_upload_bytes:
            return [audio_path]

        logger.info("[whisper] %s over upload limit; splitting into %ss chunks",
                    audio_path.name, self.settings.openai_chunk_seconds)
        pattern = out_dir / f"{audio_path.stem}_chunk_%03d{audio_path.suffix}"
        cmd = [
            resolve_ffmpeg_bin(self.settings.ffmpeg_bin),
            "-hide_banner",
            "-y",
            "-i", str(audio_path),
            "-f", "segment",
            "-segment_time", str(self.settings.openai_chunk_seconds),
            "-c", "copy",
            str(pattern),
        ]
        result = await self.runner(cmd)
        chunks = sorted(out_dir.glob(f"{audio_path.stem}_chunk_*{audio_path.suffix}"))
        if result.returncode != 0 or not chunks:
            raise TranscriptionServiceError(
                f"Could not split audio for upload (ffmpeg code {result.returncode}): {result.stderr.strip()[-300:]}"
            )
        return chunks

    # --- transcription ---

    async def _transcribe_file(self, path: Path) -> str:
        client = self._get_openai()
        try:
            with open(path, "rb") as f:
                resp = await client.audio.transcriptions.create(
                    model=self.settings.openai_model,
                    file=f,
                    language=self.settings.language_code or openai.NOT_GIVEN,
                    response_format="text",
                )
        except openai.APIStatusError as e:
            raise TranscriptionServiceError("OpenAI transcription failed", status_code=e.status_code,
                                            body=e.response.text) from e
        except openai.APIError as e:
            raise TranscriptionServiceError(f"OpenAI transcription request failed: {e}") from e

        # response_format="text" yields a plain string on current SDKs
        text = resp if isinstance(resp, str) else getattr(resp, "text", "")
        return (text or "").strip()

    async def _run(self, job: TranscriptionJob, audio_path: Path) -> Transcript:
        job.status = JobStatus.PROCESSING
        tmp_dir = Path(tempfile.mkdtemp(prefix=f"chunks_{job.job_id}_"))
        try:
            parts = []
            for chunk in await self.split(audio_path, tmp_dir):
                logger.info("[whisper] job %s: transcribing %s", job.job_id, chunk.name)
                parts.append(await self._transcribe_file(chunk))
            job.status = JobStatus.COMPLETED
            return Transcript(text="\n".join(p for p in parts if p).strip())
        except Exception:
            job.status = JobStatus.FAILED
            raise
        finally:
            shutil.rmtree(tmp_dir, ignore_errors=True)

    async def submit(self, audio_path: Path) -> str:
        audio_path = Path(audio_path)
        if not audio_path.is_file():
            raise TranscriptionServiceError(f"Audio file not found: {audio_path}")
        self._get_openai()

        job = TranscriptionJob(job_id=f"whisper-{uuid4().hex[:12]}")
        self.jobs[job.job_id] = job
        self._tasks[job.job_id] = asyncio.create_task(self._run(job, audio_path))
        logger.info("[whisper] submitted %s as job %s", audio_path.name, job.job_id)
        return job.job_id

    async def await_completion(
        self,
        job_id: str,
        poll_interval: float = 5.0,
        max_wait: float = 30 * 60.0,
    ) -> Transcript:
        task = self._tasks.get(job_id)
        if task is None:
            raise TranscriptionFailed(job_id, "unknown job")
        try:
            return await asyncio.wait_for(task, timeout=max_wait)
        except asyncio.TimeoutError as e:
            raise TranscriptionTimeout(job_id, max_wait) from e

# media_core/pipeline.py

import asyncio
import logging
from enum import Enum
from pathlib import Path

from .acquisition import Acquirer
from .errors import TranscriptionError
from .models import ArtifactRole, MediaSource, PipelineResult, Summary, Transcript, WorkingArtifact
from .publisher import ArtifactPublisher
from .settings import PipelineSettings
from .summarization import summarize_text
from .transcoder import Transcoder
from .transcription import build_transcriber
from .workspace import RunWorkspace

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    ACQUIRING = "acquiring"
    TRANSCODING = "transcoding"
    TRANSCRIBING = "transcribing"
    SUMMARIZING = "summarizing"
    PUBLISHING = "publishing"
    DONE = "done"


class Pipeline:
    """
    acquire -> transcode -> transcribe -> summarize -> publish, for one request.

    Acquisition and transcode errors (FatalStageError) propagate and nothing is
    published. Transcription and summary errors are recorded on the result and
    the media is still published.
    """

    def __init__(
        self,
        settings: PipelineSettings,
        *,
        acquirer: Acquirer | None = None,
        transcoder: Transcoder | None = None,
        publisher: ArtifactPublisher | None = None,
        transcriber_factory=build_transcriber,
    ):
        self.settings = settings
        self.acquirer = acquirer or Acquirer(settings)
        self.transcoder = transcoder or Transcoder(settings)
        self.publisher = publisher or ArtifactPublisher(settings.public_dir, settings.public_url_prefix)
        self.transcriber_factory = transcriber_factory

    async def run(self, source: MediaSource, run_id: str | None = None) -> PipelineResult:
        self.acquirer.validate(source)

        workspace = RunWorkspace(self.settings.work_dir, run_id)
        tag = f"[pipeline {workspace.run_id}]"
        try:
            logger.info("%s %s (%s)", tag, PipelineStage.ACQUIRING.value, source.kind)
            media = await self.acquirer.acquire(source, workspace)

            logger.info("%s %s", tag, PipelineStage.TRANSCODING.value)
            audio_path = await self.transcoder.convert(media.path)

            logger.info("%s %s", tag, PipelineStage.TRANSCRIBING.value)
            transcript, transcribe_error = await self._transcribe(audio_path)

            summary, summary_error = None, None
            if transcript is not None:
                logger.info("%s %s", tag, PipelineStage.SUMMARIZING.value)
                summary, summary_error = self._summarize(transcript)

            logger.info("%s %s", tag, PipelineStage.PUBLISHING.value)
            transcript_file = self._write_text(media, ArtifactRole.TRANSCRIPT_TEXT, transcript.text if transcript else None)
            summary_file = self._write_text(media, ArtifactRole.SUMMARY_TEXT, summary.text if summary else None)

            result = PipelineResult(
                media=self.publisher.publish(media.path),
                audio=self.publisher.publish(audio_path),
                transcript_file=self.publisher.publish(transcript_file),
                summary_file=self.publisher.publish(summary_file),
                transcript=transcript,
                summary=summary,
                transcribe_error=transcribe_error,
                summary_error=summary_error,
            )
            logger.info("%s %s%s", tag, PipelineStage.DONE.value,
                        f" (degraded: {result.error})" if result.error else "")
            return result
        finally:
            workspace.discard()

    async def _transcribe(self, audio_path: Path) -> tuple[Transcript | None, str | None]:
        try:
            async with self.transcriber_factory(self.settings) as transcriber:
                job_id = await transcriber.submit(audio_path)
                transcript = await transcriber.await_completion(
                    job_id,
                    poll_interval=self.settings.poll_interval,
                    max_wait=self.settings.max_wait,
                )
        except TranscriptionError as e:
            logger.warning("[transcribe] %s", e)
            return None, str(e)
        return transcript, None

    def _summarize(self, transcript: Transcript) -> tuple[Summary | None, str | None]:
        try:
            summary = summarize_text(
                transcript.text,
                max_sentences=self.settings.summary_max_sentences,
                min_sentence_chars=self.settings.summary_min_sentence_chars,
            )
        except Exception as e:
            logger.warning("[summary] unavailable: %s", e)
            return None, f"Summary unavailable: {e}"
        return summary, None

    def _write_text(self, media: WorkingArtifact, role: ArtifactRole, text: str | None) -> Path | None:
        if text is None:
            return None
        suffix = ".transcript.txt" if role is ArtifactRole.TRANSCRIPT_TEXT else ".summary.txt"
        path = media.path.with_name(f"{media.path.stem}{suffix}")
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            logger.warning("[publish] could not write %s: %s", path.name, e)
            return None
        return path


def run_pipeline(pipeline: Pipeline, source: MediaSource) -> PipelineResult:
    """Blocking entry point for callers without an event loop."""
    return asyncio.run(pipeline.run(source))

# media_core/transcoder.py

import logging
from pathlib import Path

from .errors import ArtifactTooLarge, TranscodeFailed
from .ffmpeg import resolve_ffmpeg_bin, run_tool
from .settings import PipelineSettings

logger = logging.getLogger(__name__)

SAMPLE_RATE = 16000
BITRATE = "96k"
DIAGNOSTIC_CHARS = 500


def derived_audio_path(source_path: Path) -> Path:
    return source_path.with_name(f"{source_path.stem}.audio.mp3")


class Transcoder:
    """Turns acquired media into mono 16 kHz CBR MP3 suitable for upload."""

    def __init__(self, settings: PipelineSettings, runner=run_tool):
        self.settings = settings
        self.runner = runner

    def command(self, source_path: Path, target_path: Path) -> list[str]:
        return [
            resolve_ffmpeg_bin(self.settings.ffmpeg_bin),
            "-hide_banner",
            "-y",
            "-i", str(source_path),
            "-vn",
            "-ac", "1",
            "-ar", str(SAMPLE_RATE),
            "-codec:a", "libmp3lame",
            "-b:a", BITRATE,
            str(target_path),
        ]

    async def convert(self, source_path: Path) -> Path:
        source_path = Path(source_path)
        if not source_path.is_file():
            raise TranscodeFailed(f"Input file does not exist: {source_path}")

        target = derived_audio_path(source_path)
        # stale output must never pass for a fresh result
        target.unlink(missing_ok=True)

        try:
            result = await self.runner(self.command(source_path, target))
        except FileNotFoundError as e:
            raise TranscodeFailed(f"Could not run ffmpeg: {e}") from e

        if result.returncode != 0 or not target.exists():
            detail = (result.stderr or "").strip()[-DIAGNOSTIC_CHARS:]
            raise TranscodeFailed(f"ffmpeg failed (code {result.returncode}). Detail: {detail}")

        size = target.stat().st_size
        if size > self.settings.max_audio_bytes:
            raise ArtifactTooLarge(size, self.settings.max_audio_bytes)

        logger.info("[transcode] %s -> %s (%.1f MiB)", source_path.name, target.name, size / (1024 * 1024))
        return target

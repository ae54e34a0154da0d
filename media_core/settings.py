# media_core/settings.py

from dataclasses import dataclass
from pathlib import Path

MIB = 1024 * 1024


@dataclass(frozen=True)
class PipelineSettings:
    """
    Process-wide configuration handed to every pipeline component.

    Built once from the environment-backed Config (see config.py) and passed in
    explicitly, so a run never reads module globals.
    """

    work_dir: Path
    public_dir: Path
    public_url_prefix: str = "/files"

    max_audio_bytes: int = 500 * MIB
    allow_audio_uploads: bool = True
    ffmpeg_bin: str = "ffmpeg"

    cookie_file: str | None = None
    user_agent: str | None = None

    transcribe_backend: str = "assemblyai"
    language_code: str = "es"
    poll_interval: float = 5.0
    max_wait: float = 30 * 60.0
    http_timeout: float = 120.0

    assemblyai_api_key: str = ""
    assemblyai_base_url: str = "https://api.assemblyai.com/v2"

    openai_api_key: str = ""
    openai_model: str = "whisper-1"
    openai_max_upload_bytes: int = 25 * MIB
    openai_chunk_seconds: int = 300

    summary_max_sentences: int = 8
    summary_min_sentence_chars: int = 20

    @classmethod
    def from_config(cls, config) -> "PipelineSettings":
        return cls(
            work_dir=Path(config.WORK_DIR).resolve(),
            public_dir=Path(config.PUBLIC_DIR).resolve(),
            public_url_prefix=config.PUBLIC_URL_PREFIX.rstrip("/"),
            max_audio_bytes=config.MAX_AUDIO_MB * MIB,
            allow_audio_uploads=config.ALLOW_AUDIO_UPLOADS,
            ffmpeg_bin=config.FFMPEG_BIN,
            cookie_file=config.YTDLP_COOKIEFILE or None,
            user_agent=config.YTDLP_UA or None,
            transcribe_backend=(config.TRANSCRIBE_BACKEND or "assemblyai").lower(),
            language_code=config.TRANSCRIPT_LANGUAGE,
            poll_interval=config.POLL_INTERVAL_SEC,
            max_wait=config.POLL_MAX_WAIT_SEC,
            http_timeout=config.HTTP_TIMEOUT_SEC,
            assemblyai_api_key=config.ASSEMBLYAI_API_KEY,
            assemblyai_base_url=config.ASSEMBLYAI_BASE_URL.rstrip("/"),
            openai_api_key=config.OPENAI_API_KEY,
            openai_model=config.OPENAI_TRANSCRIBE_MODEL,
            openai_max_upload_bytes=config.OPENAI_MAX_UPLOAD_MB * MIB,
            openai_chunk_seconds=config.OPENAI_CHUNK_SEC,
            summary_max_sentences=config.SUMMARY_MAX_SENTENCES,
            summary_min_sentence_chars=config.SUMMARY_MIN_SENTENCE_CHARS,
        )

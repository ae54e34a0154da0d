import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return (os.getenv(name, default) or "").strip().lower() in {"1", "true", "yes", "on"}


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Shared key expected in the x-access-key header (empty = open)
    ACCESS_KEY = os.getenv("ACCESS_KEY", "")

    # ---- Filesystem roots ----
    WORK_DIR = os.getenv("WORK_DIR", "data/work")
    PUBLIC_DIR = os.getenv("PUBLIC_DIR", "data/public")
    PUBLIC_URL_PREFIX = os.getenv("PUBLIC_URL_PREFIX", "/files")
    WORK_TTL_MIN = int(os.getenv("WORK_TTL_MIN", "120"))
    CLEANUP_INTERVAL_SEC = int(os.getenv("CLEANUP_INTERVAL_SEC", "120"))

    MAX_UPLOAD_MB = int(os.getenv("MAX_UPLOAD_MB", "2048"))
    MAX_AUDIO_MB = int(os.getenv("MAX_AUDIO_MB", "500"))
    ALLOW_AUDIO_UPLOADS = _env_bool("ALLOW_AUDIO_UPLOADS", "true")

    FFMPEG_BIN = os.getenv("FFMPEG_BIN", "ffmpeg")

    # ---- yt-dlp ----
    YTDLP_COOKIEFILE = os.getenv("YTDLP_COOKIEFILE", "cookies.txt")
    YTDLP_UA = os.getenv(
        "YTDLP_UA",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 13_5) AppleWebKit/605.1.15 "
        "(KHTML, like Gecko) Version/16.5 Safari/605.1.15",
    )

    # ---- Transcription switching ----
    # assemblyai | openai
    TRANSCRIBE_BACKEND = os.getenv("TRANSCRIBE_BACKEND", "assemblyai")
    TRANSCRIPT_LANGUAGE = os.getenv("TRANSCRIPT_LANGUAGE", "es")
    POLL_INTERVAL_SEC = float(os.getenv("POLL_INTERVAL_SEC", "5"))
    POLL_MAX_WAIT_SEC = float(os.getenv("POLL_MAX_WAIT_SEC", str(30 * 60)))
    HTTP_TIMEOUT_SEC = float(os.getenv("HTTP_TIMEOUT_SEC", "120"))

    # AssemblyAI
    ASSEMBLYAI_API_KEY = os.getenv("ASSEMBLYAI_API_KEY", "")
    ASSEMBLYAI_BASE_URL = os.getenv("ASSEMBLYAI_BASE_URL", "https://api.assemblyai.com/v2")

    # OpenAI
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
    OPENAI_TRANSCRIBE_MODEL = os.getenv("OPENAI_TRANSCRIBE_MODEL", "whisper-1")
    OPENAI_MAX_UPLOAD_MB = int(os.getenv("OPENAI_MAX_UPLOAD_MB", "25"))
    OPENAI_CHUNK_SEC = int(os.getenv("OPENAI_CHUNK_SEC", "300"))

    # ---- Summary ----
    SUMMARY_MAX_SENTENCES = int(os.getenv("SUMMARY_MAX_SENTENCES", "8"))
    SUMMARY_MIN_SENTENCE_CHARS = int(os.getenv("SUMMARY_MIN_SENTENCE_CHARS", "20"))

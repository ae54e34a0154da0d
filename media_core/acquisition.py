# media_core/acquisition.py

import asyncio
import logging
import os
import shutil
from pathlib import Path
from urllib.parse import urlparse

import yt_dlp
from werkzeug.utils import secure_filename

from .errors import AcquisitionFailed, InvalidInput
from .ffmpeg import resolve_ffmpeg_bin
from .models import ArtifactRole, MediaSource, RemoteUrlSource, UploadSource, WorkingArtifact
from .settings import PipelineSettings
from .workspace import RunWorkspace

logger = logging.getLogger(__name__)

VIDEO_TYPES = {
    "video/mp4": {".mp4"},
}

AUDIO_TYPES = {
    "audio/mpeg": {".mp3"},
    "audio/mp3": {".mp3"},
    "audio/wav": {".wav"},
    "audio/x-wav": {".wav"},
    "audio/wave": {".wav"},
    "audio/mp4": {".m4a"},
    "audio/x-m4a": {".m4a"},
    "audio/m4a": {".m4a"},
}

AUDIO_EXTS = {".mp3", ".wav", ".m4a", ".opus", ".ogg"}


class YtDlpDownloader:
    """Fetches a remote URL into the working area through yt-dlp."""

    def __init__(self, settings: PipelineSettings):
        self.settings = settings

    def options(self, out_base: Path, use_cookies: bool = False) -> dict:
        opts = {
            "quiet": True,
            "noprogress": True,
            "outtmpl": f"{out_base}.%(ext)s",
            "format": "bv*+ba/b",
            "merge_output_format": "mp4",
            "overwrites": True,
            "cachedir": False,
            "geo_bypass": True,
            "http_headers": {"Accept-Language": "en-US,en;q=0.9"},
            "ffmpeg_location": resolve_ffmpeg_bin(self.settings.ffmpeg_bin),
        }
        if self.settings.user_agent:
            opts["http_headers"]["User-Agent"] = self.settings.user_agent

        if use_cookies:
            cookie_file = self.settings.cookie_file
            if cookie_file and os.path.exists(cookie_file):
                opts["cookiefile"] = cookie_file
            else:
                logger.warning("[acquire] cookies requested but %r not found; continuing without", cookie_file)
        return opts

    def download(self, url: str, out_base: Path, use_cookies: bool = False) -> Path:
        try:
            with yt_dlp.YoutubeDL(self.options(out_base, use_cookies)) as ydl:
                info = ydl.extract_info(url, download=True)
                out = Path(ydl.prepare_filename(info))
        except yt_dlp.utils.YoutubeDLError as e:
            raise AcquisitionFailed(f"Download failed for {url}: {e}") from e

        # merged output may differ from the template extension
        if not out.exists():
            merged = out.with_suffix(".mp4")
            if merged.exists():
                out = merged
        if not out.exists() or out.stat().st_size == 0:
            raise AcquisitionFailed(f"Downloader produced no file for {url}")
        return out


def _normalized_type(media_type: str) -> str:
    return (media_type or "").split(";", 1)[0].strip().lower()


class Acquirer:
    def __init__(self, settings: PipelineSettings, downloader=None):
        self.settings = settings
        self.downloader = downloader or YtDlpDownloader(settings)

    def validate(self, source: MediaSource) -> None:
        """Checks that need no I/O beyond a stat; raises InvalidInput."""
        if isinstance(source, UploadSource):
            self._validate_upload(source)
        elif isinstance(source, RemoteUrlSource):
            self._validate_url(source)
        else:
            raise InvalidInput(f"Unknown media source: {source!r}")

    def _validate_url(self, source: RemoteUrlSource) -> None:
        parsed = urlparse((source.url or "").strip())
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise InvalidInput(f"Not a downloadable URL: {source.url!r}")

    def _validate_upload(self, source: UploadSource) -> ArtifactRole:
        media_type = _normalized_type(source.media_type)
        ext = Path(source.filename or source.local_path.name).suffix.lower()

        if media_type.startswith("video/"):
            if ext not in VIDEO_TYPES.get(media_type, set()):
                raise InvalidInput("Only MP4 video (.mp4) is accepted.")
            role = ArtifactRole.SOURCE_VIDEO
        elif media_type.startswith("audio/"):
            if not self.settings.allow_audio_uploads:
                raise InvalidInput("Audio uploads are disabled; upload an MP4 video.")
            if ext not in AUDIO_TYPES.get(media_type, set()):
                raise InvalidInput("Only MP3, WAV or M4A audio is accepted.")
            role = ArtifactRole.SOURCE_AUDIO
        else:
            raise InvalidInput(f"Unsupported media type: {source.media_type or 'unknown'}")

        path = Path(source.local_path)
        if not path.is_file():
            raise InvalidInput(f"Uploaded file not found: {path}")
        if path.stat().st_size == 0:
            raise InvalidInput("Uploaded file is empty.")
        return role

    async def acquire(self, source: MediaSource, workspace: RunWorkspace) -> WorkingArtifact:
        if isinstance(source, UploadSource):
            return await self._acquire_upload(source, workspace)
        if isinstance(source, RemoteUrlSource):
            self._validate_url(source)
            return await self._acquire_remote(source, workspace)
        raise InvalidInput(f"Unknown media source: {source!r}")

    async def _acquire_upload(self, source: UploadSource, workspace: RunWorkspace) -> WorkingArtifact:
        role = self._validate_upload(source)
        name = source.filename or source.local_path.name
        stem = secure_filename(Path(name).stem) or "upload"
        target = workspace.path_for(stem, Path(name).suffix.lower())

        try:
            await asyncio.to_thread(shutil.copyfile, source.local_path, target)
        except OSError as e:
            raise AcquisitionFailed(f"Could not copy upload into the working area: {e}") from e

        logger.info("[acquire] upload %s -> %s (%s)", name, target.name, role.value)
        return WorkingArtifact(path=target, role=role)

    async def _acquire_remote(self, source: RemoteUrlSource, workspace: RunWorkspace) -> WorkingArtifact:
        out_base = workspace.path_for("remote", "")
        logger.info("[acquire] downloading %s", source.url)
        path = await asyncio.to_thread(
            self.downloader.download, source.url.strip(), out_base, source.use_cookies
        )
        path = Path(path)
        if not path.exists():
            raise AcquisitionFailed(f"Downloader produced no file for {source.url}")

        role = ArtifactRole.SOURCE_AUDIO if path.suffix.lower() in AUDIO_EXTS else ArtifactRole.SOURCE_VIDEO
        logger.info("[acquire] downloaded %s (%s)", path.name, role.value)
        return WorkingArtifact(path=path, role=role)

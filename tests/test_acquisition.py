from dataclasses import replace
from pathlib import Path

import pytest
import yt_dlp

from media_core.acquisition import Acquirer, YtDlpDownloader
from media_core.errors import AcquisitionFailed, InvalidInput
from media_core.models import ArtifactRole, RemoteUrlSource, UploadSource
from media_core.workspace import RunWorkspace


class FakeDownloader:
    def __init__(self, suffix: str = ".mp4", produce: bool = True, error: Exception | None = None):
        self.suffix = suffix
        self.produce = produce
        self.error = error
        self.calls = []

    def download(self, url, out_base, use_cookies=False):
        self.calls.append((url, use_cookies))
        if self.error is not None:
            raise self.error
        out = Path(f"{out_base}{self.suffix}")
        if self.produce:
            out.write_bytes(b"\x00" * 32)
        return out


@pytest.fixture()
def workspace(settings) -> RunWorkspace:
    return RunWorkspace(settings.work_dir, run_id="run1")


@pytest.mark.asyncio
async def test_mp4_upload_is_copied_into_workspace(settings, workspace, mp4_upload) -> None:
    source = UploadSource(local_path=mp4_upload, media_type="video/mp4", filename="My Clip.mp4")
    artifact = await Acquirer(settings).acquire(source, workspace)

    assert artifact.role is ArtifactRole.SOURCE_VIDEO
    assert artifact.path.parent == workspace.root
    assert artifact.path.name == "run1_My_Clip.mp4"
    assert artifact.path.read_bytes() == mp4_upload.read_bytes()
    assert mp4_upload.exists()


@pytest.mark.parametrize(
    "filename, media_type",
    [
        ("clip.avi", "video/x-msvideo"),
        ("clip.mov", "video/mp4"),
        ("clip.mp4", "video/quicktime"),
        ("notes.txt", "text/plain"),
        ("clip.mp4", ""),
    ],
)
def test_unsupported_uploads_are_invalid(settings, mp4_upload, filename, media_type) -> None:
    source = UploadSource(local_path=mp4_upload, media_type=media_type, filename=filename)
    with pytest.raises(InvalidInput):
        Acquirer(settings).validate(source)


@pytest.mark.asyncio
async def test_audio_upload_accepted_when_enabled(settings, workspace, tmp_path) -> None:
    path = tmp_path / "voice.m4a"
    path.write_bytes(b"\x00" * 16)
    source = UploadSource(local_path=path, media_type="audio/x-m4a", filename="voice.m4a")

    artifact = await Acquirer(settings).acquire(source, workspace)
    assert artifact.role is ArtifactRole.SOURCE_AUDIO

    with pytest.raises(InvalidInput):
        Acquirer(replace(settings, allow_audio_uploads=False)).validate(source)


def test_missing_or_empty_upload_is_invalid(settings, tmp_path) -> None:
    missing = UploadSource(local_path=tmp_path / "gone.mp4", media_type="video/mp4")
    with pytest.raises(InvalidInput):
        Acquirer(settings).validate(missing)

    empty = tmp_path / "empty.mp4"
    empty.touch()
    with pytest.raises(InvalidInput):
        Acquirer(settings).validate(UploadSource(local_path=empty, media_type="video/mp4"))


@pytest.mark.asyncio
async def test_remote_download_lands_in_workspace(settings, workspace) -> None:
    downloader = FakeDownloader()
    source = RemoteUrlSource(url="https://www.youtube.com/watch?v=abc", use_cookies=True)
    artifact = await Acquirer(settings, downloader=downloader).acquire(source, workspace)

    assert artifact.role is ArtifactRole.SOURCE_VIDEO
    assert artifact.path == workspace.root / "run1_remote.mp4"
    assert downloader.calls == [("https://www.youtube.com/watch?v=abc", True)]


@pytest.mark.asyncio
async def test_remote_audio_download_is_tagged_as_audio(settings, workspace) -> None:
    source = RemoteUrlSource(url="https://example.com/podcast")
    artifact = await Acquirer(settings, downloader=FakeDownloader(suffix=".mp3")).acquire(source, workspace)
    assert artifact.role is ArtifactRole.SOURCE_AUDIO


@pytest.mark.asyncio
async def test_remote_without_output_fails(settings, workspace) -> None:
    source = RemoteUrlSource(url="https://example.com/v")
    with pytest.raises(AcquisitionFailed):
        await Acquirer(settings, downloader=FakeDownloader(produce=False)).acquire(source, workspace)


@pytest.mark.asyncio
async def test_downloader_error_propagates_once(settings, workspace) -> None:
    downloader = FakeDownloader(error=AcquisitionFailed("HTTP Error 403"))
    with pytest.raises(AcquisitionFailed):
        await Acquirer(settings, downloader=downloader).acquire(RemoteUrlSource(url="https://example.com/v"), workspace)
    assert len(downloader.calls) == 1


@pytest.mark.parametrize("url", ["", "   ", "ftp://example.com/a.mp4", "not a url", "file:///etc/passwd"])
def test_bad_urls_are_invalid(settings, url) -> None:
    with pytest.raises(InvalidInput):
        Acquirer(settings, downloader=FakeDownloader()).validate(RemoteUrlSource(url=url))


def test_ytdlp_errors_become_acquisition_failed(settings, tmp_path, monkeypatch) -> None:
    class BrokenYDL:
        def __init__(self, opts):
            self.opts = opts

        def __enter__(self):
            return self

        def __exit__(self, *exc_info):
            return False

        def extract_info(self, url, download=True):
            raise yt_dlp.utils.DownloadError("ERROR: Unsupported URL")

    monkeypatch.setattr(yt_dlp, "YoutubeDL", BrokenYDL)
    with pytest.raises(AcquisitionFailed):
        YtDlpDownloader(settings).download("https://example.com/v", tmp_path / "out")


def test_ytdlp_options_use_cookie_file_only_when_present(settings, tmp_path) -> None:
    cookies = tmp_path / "cookies.txt"
    cookies.write_text("# Netscape HTTP Cookie File\n")
    downloader = YtDlpDownloader(replace(settings, cookie_file=str(cookies)))

    opts = downloader.options(tmp_path / "out", use_cookies=True)
    assert opts["cookiefile"] == str(cookies)
    assert opts["outtmpl"] == f"{tmp_path / 'out'}.%(ext)s"
    assert "cookiefile" not in downloader.options(tmp_path / "out", use_cookies=False)

    missing = YtDlpDownloader(replace(settings, cookie_file=str(tmp_path / "none.txt")))
    assert "cookiefile" not in missing.options(tmp_path / "out", use_cookies=True)

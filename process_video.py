# process_video.py
"""
Run the media pipeline once from the command line, outside Flask.

    python process_video.py clip.mp4
    python process_video.py https://www.youtube.com/watch?v=... --cookies

Prints the same JSON record the /transcribir endpoint returns.
"""

import argparse
import json
import logging
import mimetypes
import sys
from pathlib import Path

from config import Config
from media_core import (
    Pipeline,
    PipelineError,
    PipelineSettings,
    RemoteUrlSource,
    UploadSource,
    run_pipeline,
)


def source_from_arg(target: str, use_cookies: bool = False):
    if target.lower().startswith(("http://", "https://")):
        return RemoteUrlSource(url=target, use_cookies=use_cookies)
    path = Path(target)
    media_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return UploadSource(local_path=path, media_type=media_type, filename=path.name)


def main(argv=None, pipeline: Pipeline | None = None) -> int:
    parser = argparse.ArgumentParser(description="Transcribe and summarize a media file or URL.")
    parser.add_argument("target", help="local .mp4/.mp3/.wav/.m4a file or http(s) URL")
    parser.add_argument("--cookies", action="store_true", help="pass the configured cookie file to yt-dlp")
    args = parser.parse_args(argv)

    logging.basicConfig(level=Config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    pipeline = pipeline or Pipeline(PipelineSettings.from_config(Config))

    try:
        result = run_pipeline(pipeline, source_from_arg(args.target, args.cookies))
    except PipelineError as e:
        print(json.dumps(e.to_dict(), ensure_ascii=False, indent=2))
        return 1

    print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())

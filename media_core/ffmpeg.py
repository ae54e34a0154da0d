# media_core/ffmpeg.py

import asyncio
import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from typing import Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolResult:
    returncode: int
    stderr: str


def resolve_ffmpeg_bin(ffmpeg_bin: str = "ffmpeg") -> str:
    """Prefer an explicit path, then PATH, then the usual Homebrew locations."""
    ffmpeg_bin = (ffmpeg_bin or "ffmpeg").strip()
    if os.path.exists(ffmpeg_bin):
        return ffmpeg_bin

    found = shutil.which(ffmpeg_bin)
    if found:
        return found

    for alt in ("/usr/local/bin/ffmpeg", "/opt/homebrew/bin/ffmpeg"):
        if os.path.exists(alt):
            return alt
    return ffmpeg_bin


async def run_tool(args: Sequence[str]) -> ToolResult:
    """
    Run an external CLI to completion on a worker thread.

    Raises FileNotFoundError when the binary itself is missing.
    """

    def _run() -> subprocess.CompletedProcess:
        return subprocess.run(
            list(args),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            check=False,
        )

    logger.debug("[ffmpeg] exec %s", " ".join(args))
    cp = await asyncio.to_thread(_run)
    return ToolResult(
        returncode=int(cp.returncode),
        stderr=(cp.stderr or b"").decode("utf-8", errors="replace"),
    )

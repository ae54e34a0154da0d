# media_core/workspace.py

import logging
import shutil
import time
from pathlib import Path
from uuid import uuid4

logger = logging.getLogger(__name__)


class RunWorkspace:
    """
    Transient working directory owned by exactly one pipeline run.

    Every file name handed out is prefixed with the run id, so names stay
    unique once they are moved into the shared published root.
    """

    def __init__(self, work_root: Path, run_id: str | None = None):
        self.run_id = run_id or uuid4().hex[:12]
        self.root = Path(work_root) / self.run_id
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, stem: str, suffix: str) -> Path:
        return self.root / f"{self.run_id}_{stem}{suffix}"

    def discard(self) -> None:
        shutil.rmtree(self.root, ignore_errors=True)


def cleanup_stale_workspaces(work_root: Path, ttl_seconds: float, now: float | None = None) -> int:
    """Remove run directories left behind by interrupted runs. Returns the count removed."""
    work_root = Path(work_root)
    if not work_root.is_dir():
        return 0

    now = now if now is not None else time.time()
    cutoff = now - ttl_seconds
    removed = 0
    for entry in work_root.iterdir():
        if not entry.is_dir():
            continue
        try:
            mtime = entry.stat().st_mtime
        except FileNotFoundError:
            continue
        if mtime < cutoff:
            shutil.rmtree(entry, ignore_errors=True)
            removed += 1

    if removed:
        logger.info("[cleanup] removed %d stale workspace(s) under %s", removed, work_root)
    return removed

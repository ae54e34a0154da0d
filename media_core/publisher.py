# media_core/publisher.py

import logging
import shutil
from pathlib import Path
from urllib.parse import quote

from .models import PublishedArtifact

logger = logging.getLogger(__name__)


class ArtifactPublisher:
    """Moves finished files into the published root and names their URLs."""

    def __init__(self, public_dir: Path, url_prefix: str = "/files"):
        self.public_dir = Path(public_dir).resolve()
        self.url_prefix = url_prefix.rstrip("/")

    def to_public_url(self, absolute_path: Path) -> str:
        rel = Path(absolute_path).resolve().relative_to(self.public_dir)  # ValueError if outside
        return f"{self.url_prefix}/{quote(rel.as_posix())}"

    def publish(self, working_path: Path | None) -> PublishedArtifact | None:
        """
        Move `working_path` into the published root, keeping its filename.

        Missing sources and failed moves both yield None: the caller still has
        the text in memory, only the URL is lost.
        """
        if working_path is None:
            return None
        src = Path(working_path)
        if not src.is_file():
            return None

        dest = self.public_dir / src.name
        try:
            self.public_dir.mkdir(parents=True, exist_ok=True)
            shutil.move(str(src), str(dest))
        except OSError as e:
            logger.warning("[publish] could not move %s: %s", src.name, e)
            return None

        return PublishedArtifact(absolute_path=dest, public_url=self.to_public_url(dest))

"""Local file store for uploaded media and command outputs."""
from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from uuid import uuid4

from media_agent.models.media_models import (
    Artifact,
    MediaKind,
    UnknownMediaTypeError,
    lookup_media_kind,
    normalize_extension,
)

logger = logging.getLogger(__name__)


class UploadStore:
    """Owns the paths of uploaded files and of generated outputs.

    Uploaded files are only referenced, never deleted. Output paths are
    handed out under ``temp_dir`` and only those may be removed.
    """

    def __init__(self, temp_dir: str | Path | None = None):
        if temp_dir is None:
            temp_dir = Path(tempfile.gettempdir()) / "media_agent"
        self.temp_dir = Path(temp_dir)
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        self._issued: set[Path] = set()

    def register(self, filename: str, path: str | Path) -> Artifact:
        location = Path(path)
        if not location.is_file():
            raise FileNotFoundError(f"Uploaded file not found: {location}")
        return Artifact.from_path(filename, location)

    def resolve_path(self, artifact: Artifact) -> Path:
        return artifact.location

    def media_kind_of(self, filename: str) -> MediaKind:
        media_kind = lookup_media_kind(filename)
        if media_kind is None:
            raise UnknownMediaTypeError(filename)
        return media_kind

    def fresh_temp_path(self, extension: str) -> Path:
        """Return a unique path with ``extension`` that does not exist yet.

        The file is not created, so tools that refuse to overwrite can write it.
        """
        ext = normalize_extension(extension)
        while True:
            candidate = self.temp_dir / f"{uuid4().hex}.{ext}"
            if not candidate.exists():
                self._issued.add(candidate)
                return candidate

    def owns(self, path: str | Path) -> bool:
        return Path(path) in self._issued

    def discard(self, path: str | Path) -> None:
        """Delete a generated output. Paths the store did not hand out are left alone."""
        target = Path(path)
        if not self.owns(target):
            logger.warning("Refusing to delete file outside the store: %s", target)
            return
        target.unlink(missing_ok=True)
        self._issued.discard(target)

    def cleanup(self) -> None:
        """Delete every output path this store handed out."""
        for path in list(self._issued):
            path.unlink(missing_ok=True)
        self._issued.clear()

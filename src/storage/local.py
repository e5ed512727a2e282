from __future__ import annotations

import os
import tempfile
from pathlib import Path

import structlog

from .base import ArtifactNotFoundError, ArtifactStore, StorageError
from .data_access import resolve_under_data_root

logger = structlog.get_logger(__name__)


class LocalArtifactStore(ArtifactStore):
    """
    Filesystem-backed store rooted at an explicit data root.

    Writes go to a temporary sibling file and are moved into place, so a
    reader never sees a half-written artifact and a rewrite replaces the
    previous object.
    """

    def __init__(self, *, data_root: Path) -> None:
        self._root = data_root

    @property
    def data_root(self) -> Path:
        return self._root

    def upload(self, path: str, data: bytes, content_type: str) -> None:
        target = resolve_under_data_root(data_root=self._root, relpath=path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                os.replace(tmp_name, target)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write {path!r}: {e}") from e

        logger.debug("artifact_uploaded", path=path, bytes=len(data), content_type=content_type)

    def download(self, path: str) -> bytes:
        target = resolve_under_data_root(data_root=self._root, relpath=path)
        if not target.is_file():
            raise ArtifactNotFoundError(f"No object stored at {path!r}")
        try:
            return target.read_bytes()
        except OSError as e:
            raise StorageError(f"Failed to read {path!r}: {e}") from e

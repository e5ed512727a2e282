"""
Artifact storage.

Store keys are relative paths; the filesystem store resolves them under an
explicitly passed data_root and rejects traversal. No environment reads.
"""

from .base import ArtifactNotFoundError, ArtifactStore, StorageError
from .data_access import DataAccessError, resolve_under_data_root
from .local import LocalArtifactStore
from .paths import derive_artifact_path, derive_text_path

__all__ = [
    "ArtifactNotFoundError",
    "ArtifactStore",
    "DataAccessError",
    "LocalArtifactStore",
    "StorageError",
    "derive_artifact_path",
    "derive_text_path",
    "resolve_under_data_root",
]

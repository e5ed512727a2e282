from __future__ import annotations

from pathlib import Path

from .base import StorageError


class DataAccessError(StorageError):
    pass


def resolve_under_data_root(*, data_root: Path, relpath: str) -> Path:
    """
    Resolve a store key to a file under an explicit data_root.

    Absolute paths, drive-qualified paths and `..` escapes are rejected.
    """

    if relpath == "" or relpath.startswith(("/", "\\")) or (len(relpath) > 1 and relpath[1] == ":"):
        raise DataAccessError(f"Expected a relative path under data_root, got: {relpath!r}")

    root = data_root.expanduser().resolve()
    candidate = (root / relpath).resolve()
    if candidate == root or not candidate.is_relative_to(root):
        raise DataAccessError(f"Path traversal or external reference detected: relpath={relpath!r}")
    return candidate

from __future__ import annotations

from abc import ABC, abstractmethod


class StorageError(Exception):
    pass


class ArtifactNotFoundError(StorageError):
    pass


class ArtifactStore(ABC):
    """
    Durable store for source documents and derived artifacts.

    Paths are store-relative keys. `upload` overwrites whatever is stored at
    the same path; it never appends or versions.
    """

    @abstractmethod
    def upload(self, path: str, data: bytes, content_type: str) -> None:
        """
        Raise StorageError if the object could not be written.
        """

        raise NotImplementedError

    @abstractmethod
    def download(self, path: str) -> bytes:
        """
        Raise ArtifactNotFoundError if nothing is stored at `path`.
        """

        raise NotImplementedError
